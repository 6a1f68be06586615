"""
Steelcut yum driver

Red Hat/CentOS/Fedora package management.
"""

import logging
import shlex
from typing import List, Optional

from steelcut.executor import CommandOptions
from steelcut.packages.base import (
    PackageManager,
    Update,
    parse_updates,
    register_package_manager,
    split_lines,
)
from steelcut.resolver import OSKind

logger = logging.getLogger(__name__)

# yum check-update exits 100 when updates are available
CHECK_UPDATE_EXIT_CODES = (0, 100)


@register_package_manager(OSKind.REDHAT)
class YumPackageManager(PackageManager):
    """Manage packages with yum on Red Hat family systems."""

    name = "yum"

    async def list_packages(self, options: Optional[CommandOptions] = None) -> List[str]:
        output = await self._run("yum list installed", use_sudo=False, options=options)
        return split_lines(output)

    async def add_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"yum install -y {shlex.quote(package)}", use_sudo=True, options=options)

    async def remove_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"yum remove -y {shlex.quote(package)}", use_sudo=True, options=options)

    async def upgrade_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"yum upgrade -y {shlex.quote(package)}", use_sudo=True, options=options)

    async def upgrade_all(self, options: Optional[CommandOptions] = None) -> List[Update]:
        output = await self._run("yum update -y", use_sudo=True, options=options)
        return parse_updates(output)

    async def check_updates(self, options: Optional[CommandOptions] = None) -> List[Update]:
        logger.info("Checking for yum updates")
        output = await self._run(
            "yum check-update",
            use_sudo=True,
            options=options,
            ok_exit_codes=CHECK_UPDATE_EXIT_CODES,
        )
        updates = parse_check_update(output)
        logger.info("yum updates available: %d", len(updates))
        return updates


def parse_check_update(output: str) -> List[Update]:
    """
    Parse ``yum check-update`` output.

    Package lines have exactly three columns::

        kernel.x86_64    3.10.0-1160.el7    updates

    The ``.arch`` suffix is dropped from the name. Headers, blank lines and
    the "Obsoleting Packages" section (which has other shapes) are skipped.
    """
    updates = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) != 3 or "." not in parts[0]:
            continue

        name = parts[0].rsplit(".", 1)[0]
        updates.append(Update(name=name, version=parts[1]))

    return updates
