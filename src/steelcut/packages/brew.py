"""
Steelcut Homebrew driver

macOS package management. Homebrew refuses to run as root, so no command
here ever uses sudo.
"""

import re
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

# "name (1.0.0) < 1.1.0", "name (1.0, 1.0_1) != 2.0"
_OUTDATED_RE = re.compile(r"^(?P<name>\S+)\s+\((?P<installed>[^)]*)\)\s+(?:<|!=)\s+(?P<latest>\S+)")


@register_package_manager(OSKind.DARWIN)
class BrewPackageManager(PackageManager):
    """Manage packages with Homebrew."""

    name = "brew"

    async def list_packages(self, options: Optional[CommandOptions] = None) -> List[str]:
        output = await self._run("brew list --versions", use_sudo=False, options=options)
        return split_lines(output)

    async def add_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"brew install {shlex.quote(package)}", use_sudo=False, options=options)

    async def remove_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"brew uninstall {shlex.quote(package)}", use_sudo=False, options=options)

    async def upgrade_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"brew upgrade {shlex.quote(package)}", use_sudo=False, options=options)

    async def upgrade_all(self, options: Optional[CommandOptions] = None) -> List[Update]:
        output = await self._run("brew upgrade", use_sudo=False, options=options)
        return parse_updates(output)

    async def check_updates(self, options: Optional[CommandOptions] = None) -> List[Update]:
        output = await self._run("brew outdated --verbose", use_sudo=False, options=options)
        return parse_outdated(output)


def parse_outdated(output: str) -> List[Update]:
    """Parse ``brew outdated --verbose`` lines into the versions available."""
    updates = []
    for line in output.splitlines():
        match = _OUTDATED_RE.match(line.strip())
        if match:
            updates.append(Update(name=match.group("name"), version=match.group("latest")))
    return updates
