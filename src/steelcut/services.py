"""
Steelcut Service Managers

Start, stop, restart, enable and query services with the host's init
system: systemd on Linux, launchd on macOS.
"""

import logging
import shlex
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from steelcut.executor import CommandExecutor, CommandOptions
from steelcut.resolver import OSKind

logger = logging.getLogger(__name__)


class ServiceManager(ABC):
    """Base class for service manager drivers."""

    name: str = ""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    async def _run(self, command: str, ok_exit_codes=(0,), use_sudo: bool = True,
                   options: Optional[CommandOptions] = None) -> str:
        base = options or CommandOptions()
        return await self.executor.run_command(
            command,
            CommandOptions(
                use_sudo=use_sudo,
                sudo_password=base.sudo_password,
                timeout=base.timeout,
                ok_exit_codes=tuple(ok_exit_codes),
            ),
        )

    @abstractmethod
    async def enable(self, service: str, options: Optional[CommandOptions] = None) -> None:
        pass

    @abstractmethod
    async def start(self, service: str, options: Optional[CommandOptions] = None) -> None:
        pass

    @abstractmethod
    async def stop(self, service: str, options: Optional[CommandOptions] = None) -> None:
        pass

    @abstractmethod
    async def restart(self, service: str, options: Optional[CommandOptions] = None) -> None:
        pass

    @abstractmethod
    async def status(self, service: str, options: Optional[CommandOptions] = None) -> str:
        """Return a one-word state such as ``active`` or ``inactive``."""
        pass


class SystemdServiceManager(ServiceManager):
    """Services managed by systemd."""

    name = "systemd"

    async def enable(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"systemctl enable {shlex.quote(service)}", options=options)

    async def start(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"systemctl start {shlex.quote(service)}", options=options)

    async def stop(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"systemctl stop {shlex.quote(service)}", options=options)

    async def restart(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"systemctl restart {shlex.quote(service)}", options=options)

    async def status(self, service: str, options: Optional[CommandOptions] = None) -> str:
        # is-active exits 3 for inactive units and 4 for unknown ones
        output = await self._run(
            f"systemctl is-active {shlex.quote(service)}",
            ok_exit_codes=(0, 3, 4),
            use_sudo=False,
            options=options,
        )
        lines = output.strip().splitlines()
        return lines[-1].strip() if lines else "unknown"


class LaunchdServiceManager(ServiceManager):
    """Services managed by launchd in the system domain."""

    name = "launchd"

    async def enable(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"launchctl enable {shlex.quote('system/' + service)}", options=options)

    async def start(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"launchctl kickstart {shlex.quote('system/' + service)}", options=options)

    async def stop(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"launchctl kill SIGTERM {shlex.quote('system/' + service)}", options=options)

    async def restart(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self._run(f"launchctl kickstart -k {shlex.quote('system/' + service)}", options=options)

    async def status(self, service: str, options: Optional[CommandOptions] = None) -> str:
        # launchctl print exits 113 when the service is not loaded
        output = await self._run(
            f"launchctl print {shlex.quote('system/' + service)}",
            ok_exit_codes=(0, 113),
            options=options,
        )
        for line in output.splitlines():
            key, sep, value = line.strip().partition("=")
            if sep and key.strip() == "state":
                return value.strip()
        return "unknown"


_service_managers: Dict[OSKind, Type[ServiceManager]] = {
    OSKind.DEBIAN: SystemdServiceManager,
    OSKind.REDHAT: SystemdServiceManager,
    OSKind.DARWIN: LaunchdServiceManager,
}


def get_service_manager(kind: OSKind) -> Type[ServiceManager]:
    """Get the service manager class for an OS kind."""
    return _service_managers[kind]
