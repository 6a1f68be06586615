"""
Steelcut Package Manager Base

Base class, update record, output parsers and registry for package
manager drivers.
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from steelcut.executor import CommandExecutor, CommandOptions
from steelcut.resolver import OSKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Update:
    """A package and the version it is (or can be) upgraded to."""

    name: str
    version: str


class PackageManager(ABC):
    """
    Base class for package manager drivers.

    Each operation issues its command through the executor with a fixed
    sudo setting. Options passed by the caller only contribute the sudo
    password and timeout; their use_sudo flag is ignored.
    """

    # Driver name (used in logs and the CLI)
    name: str = ""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    async def _run(
        self,
        command: str,
        use_sudo: bool,
        options: Optional[CommandOptions] = None,
        ok_exit_codes: Tuple[int, ...] = (0,),
    ) -> str:
        options = dataclasses.replace(
            options or CommandOptions(),
            use_sudo=use_sudo,
            ok_exit_codes=ok_exit_codes,
        )
        return await self.executor.run_command(command, options)

    @abstractmethod
    async def list_packages(self, options: Optional[CommandOptions] = None) -> List[str]:
        """Return one entry per installed package as printed by the tool."""
        pass

    @abstractmethod
    async def add_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        pass

    @abstractmethod
    async def remove_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        pass

    @abstractmethod
    async def upgrade_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        pass

    @abstractmethod
    async def upgrade_all(self, options: Optional[CommandOptions] = None) -> List[Update]:
        """Upgrade every package and return what the tool reported."""
        pass

    @abstractmethod
    async def check_updates(self, options: Optional[CommandOptions] = None) -> List[Update]:
        """Return the packages that have a newer version available."""
        pass


def split_lines(output: str) -> List[str]:
    """Split output into stripped, non-blank lines."""
    return [line.strip() for line in output.splitlines() if line.strip()]


def parse_updates(output: str) -> List[Update]:
    """
    Generic parser: the first two whitespace-separated fields of each line
    are the package name and version. Lines with fewer fields are skipped.
    """
    updates = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        updates.append(Update(name=parts[0], version=parts[1]))
    return updates


# Driver registry, keyed by OS kind
_package_managers: Dict[OSKind, Type[PackageManager]] = {}


def register_package_manager(*kinds: OSKind):
    """Decorator registering a driver class for one or more OS kinds."""
    def decorator(cls: Type[PackageManager]) -> Type[PackageManager]:
        for kind in kinds:
            _package_managers[kind] = cls
        return cls
    return decorator


def get_package_manager(kind: OSKind) -> Type[PackageManager]:
    """Get the driver class for an OS kind."""
    _ensure_drivers_imported()
    try:
        return _package_managers[kind]
    except KeyError:
        raise LookupError(f"No package manager registered for {kind.value}") from None


def _ensure_drivers_imported() -> None:
    # These imports trigger the @register_package_manager decorators
    from steelcut.packages import apt, brew, yum  # noqa: F401
