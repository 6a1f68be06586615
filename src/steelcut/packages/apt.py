"""
Steelcut apt driver

Debian/Ubuntu package management.
"""

import logging
import shlex
from typing import List, Optional

from steelcut.executor import CommandOptions
from steelcut.packages.base import PackageManager, Update, register_package_manager, split_lines
from steelcut.resolver import OSKind

logger = logging.getLogger(__name__)


@register_package_manager(OSKind.DEBIAN)
class AptPackageManager(PackageManager):
    """Manage packages with apt on Debian/Ubuntu systems."""

    name = "apt"

    async def list_packages(self, options: Optional[CommandOptions] = None) -> List[str]:
        output = await self._run("apt list --installed", use_sudo=False, options=options)
        return [line for line in split_lines(output) if not line.startswith("Listing...")]

    async def add_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"apt install -y {shlex.quote(package)}", use_sudo=True, options=options)

    async def remove_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"apt remove -y {shlex.quote(package)}", use_sudo=True, options=options)

    async def upgrade_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"apt upgrade -y {shlex.quote(package)}", use_sudo=True, options=options)

    async def upgrade_all(self, options: Optional[CommandOptions] = None) -> List[Update]:
        output = await self._run("apt upgrade -y", use_sudo=True, options=options)
        return parse_apt_updates(output)

    async def check_updates(self, options: Optional[CommandOptions] = None) -> List[Update]:
        # A failed index refresh propagates; stale results are not returned
        await self._run("apt update", use_sudo=True, options=options)

        output = await self._run("apt list --upgradable", use_sudo=False, options=options)
        updates = parse_apt_updates(output)
        logger.info("apt updates available: %d", len(updates))
        return updates


def parse_apt_updates(output: str) -> List[Update]:
    """
    Parse ``apt list --upgradable`` style lines.

    Example line::

        packagename/xenial 2.0.1 amd64 [upgradable from: 1.9.3]
    """
    updates = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 4 or parts[3] != "[upgradable":
            continue

        name = parts[0].split("/")[0]
        if not name:
            continue
        updates.append(Update(name=name, version=parts[1]))

    return updates
