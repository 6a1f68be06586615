# Copyright (c) 2024 Steelcut Contributors
# MIT License

"""
Steelcut Host

A fully configured Unix host: command execution, packages, services,
files, file copy, reachability and resource reports behind one object.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from steelcut.config import HostConfig
from steelcut.executor import CommandExecutor, CommandOptions, DefaultExecutor, is_local_address
from steelcut.files import FileManager
from steelcut.packages.base import PackageManager, Update
from steelcut.probe import is_reachable
from steelcut.reporter import HostInfo, SystemReporter
from steelcut.resolver import OSKind, resolve_os_kind, select_drivers
from steelcut.services import ServiceManager
from steelcut.transfer import copy_file

logger = logging.getLogger(__name__)


async def create_host(
    hostname: str,
    config: Optional[HostConfig] = None,
    **options: Any,
) -> "Host":
    """
    Build a Host, probing its operating system unless one is given.

    Args:
        hostname: Host name or address; ``localhost`` and ``127.0.0.1``
            run commands locally
        config: Base configuration
        **options: Individual HostConfig fields (user, password,
            key_passphrase, os, transport, sudo_password, executor, ...)
            applied on top of ``config``

    Returns:
        A configured Host

    Raises:
        ConfigError: If an option name is unknown
        ConstructionError: If the operating system is not supported
    """
    config = config or HostConfig()
    if options:
        config = config.merged(**options)

    executor = config.executor or DefaultExecutor(hostname, config)
    kind = await resolve_os_kind(executor, hostname, config.os)
    package_manager, service_manager = select_drivers(kind, executor)

    return Host(
        hostname=hostname,
        config=config,
        os_kind=kind,
        executor=executor,
        package_manager=package_manager,
        service_manager=service_manager,
    )


class Host:
    """
    A Unix host resolved to one OS family.

    Build hosts with :func:`create_host`. Every remote operation opens
    its own SSH session and closes it before returning. Running several
    operations on the same Host at once is the caller's responsibility
    and only safe when the transport supports concurrent dials.
    """

    def __init__(
        self,
        hostname: str,
        config: HostConfig,
        os_kind: OSKind,
        executor: CommandExecutor,
        package_manager: PackageManager,
        service_manager: ServiceManager,
    ):
        self._hostname = hostname
        self.config = config
        self.os_kind = os_kind
        self.executor = executor
        self.package_manager = package_manager
        self.service_manager = service_manager
        self.reporter = SystemReporter(executor, hostname, os_kind)
        self.files = FileManager(executor, hostname, os_kind)

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def user(self) -> str:
        return self.config.login_user

    @property
    def is_local(self) -> bool:
        return is_local_address(self._hostname)

    def __repr__(self) -> str:
        return f"Host({self._hostname!r}, os={self.os_kind.value})"

    # Commands

    async def run_command(self, command: str, options: Optional[CommandOptions] = None) -> str:
        """Run a shell command and return its combined output."""
        return await self.executor.run_command(command, options)

    async def is_reachable(self) -> None:
        """Raise UnreachableError unless the host answers ping and SSH."""
        await is_reachable(self)

    async def copy_file(self, local_path: Union[str, Path], remote_path: str, mode: Optional[int] = None) -> None:
        """Copy a local file to the host over scp."""
        await copy_file(self, local_path, remote_path, mode)

    async def reboot(self, options: Optional[CommandOptions] = None) -> None:
        await self.executor.run_command("shutdown -r now", _escalated(options))

    async def shutdown(self, options: Optional[CommandOptions] = None) -> None:
        await self.executor.run_command("shutdown -h now", _escalated(options))

    # Packages

    async def list_packages(self, options: Optional[CommandOptions] = None) -> List[str]:
        return await self.package_manager.list_packages(options)

    async def add_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self.package_manager.add_package(package, options)

    async def remove_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self.package_manager.remove_package(package, options)

    async def upgrade_package(self, package: str, options: Optional[CommandOptions] = None) -> None:
        await self.package_manager.upgrade_package(package, options)

    async def upgrade_all_packages(self, options: Optional[CommandOptions] = None) -> List[Update]:
        return await self.package_manager.upgrade_all(options)

    async def check_updates(self, options: Optional[CommandOptions] = None) -> List[Update]:
        return await self.package_manager.check_updates(options)

    # Services

    async def enable_service(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self.service_manager.enable(service, options)

    async def start_service(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self.service_manager.start(service, options)

    async def stop_service(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self.service_manager.stop(service, options)

    async def restart_service(self, service: str, options: Optional[CommandOptions] = None) -> None:
        await self.service_manager.restart(service, options)

    async def service_status(self, service: str, options: Optional[CommandOptions] = None) -> str:
        return await self.service_manager.status(service, options)

    # Reports

    async def cpu_usage(self) -> float:
        return await self.reporter.cpu_usage()

    async def memory_usage(self) -> float:
        return await self.reporter.memory_usage()

    async def disk_usage(self) -> float:
        return await self.reporter.disk_usage()

    async def running_processes(self) -> List[str]:
        return await self.reporter.running_processes()

    async def info(self) -> HostInfo:
        return await self.reporter.info()


def _escalated(options: Optional[CommandOptions]) -> CommandOptions:
    base = options or CommandOptions()
    return CommandOptions(use_sudo=True, sudo_password=base.sudo_password, timeout=base.timeout)
