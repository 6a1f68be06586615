"""
Tests for resource reports and file operations.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from steelcut.errors import CommandError
from steelcut.files import FileManager
from steelcut.reporter import HostInfo, SystemReporter
from steelcut.resolver import OSKind

LINUX_TOP = "%Cpu(s):  3.1 us,  1.0 sy,  0.0 ni, 95.4 id,  0.3 wa,  0.0 hi,  0.2 si,  0.0 st"
DARWIN_TOP = "CPU usage: 5.26% user, 10.52% sys, 84.21% idle"
LINUX_FREE = (
    "               total        used        free      shared  buff/cache   available\n"
    "Mem:      8000000000  2000000000  4000000000    10000000  2000000000  5800000000\n"
    "Swap:     2000000000           0  2000000000\n"
)
DARWIN_PHYSMEM = "PhysMem: 12G used (2048M wired), 4096M unused."
DF = (
    "Filesystem     1024-blocks     Used Available Capacity Mounted on\n"
    "/dev/sda1         41152736 16462900  22575544      43% /\n"
)


def _executor(*outputs: str) -> MagicMock:
    executor = MagicMock()
    executor.run_command = AsyncMock(side_effect=list(outputs))
    return executor


class TestLinuxReports:
    """Reports parsed from procps and coreutils output."""

    @pytest.mark.asyncio
    async def test_cpu_usage(self):
        """CPU usage is 100 minus the idle percentage."""
        reporter = SystemReporter(_executor(LINUX_TOP), "web1", OSKind.DEBIAN)
        assert await reporter.cpu_usage() == pytest.approx(4.6)

    @pytest.mark.asyncio
    async def test_memory_usage(self):
        """Memory usage comes from the Mem line of free."""
        reporter = SystemReporter(_executor(LINUX_FREE), "web1", OSKind.REDHAT)
        assert await reporter.memory_usage() == 25.0

    @pytest.mark.asyncio
    async def test_disk_usage(self):
        """Disk usage is the capacity column of df."""
        reporter = SystemReporter(_executor(DF), "web1", OSKind.DEBIAN)
        assert await reporter.disk_usage() == 43.0

    @pytest.mark.asyncio
    async def test_info(self):
        """info combines all reports."""
        executor = _executor(LINUX_TOP, LINUX_FREE, DF, "systemd\nsshd\n\nbash\n")
        info = await SystemReporter(executor, "web1", OSKind.DEBIAN).info()

        assert isinstance(info, HostInfo)
        assert info.disk_usage == 43.0
        assert info.running_processes == ["systemd", "sshd", "bash"]

    @pytest.mark.asyncio
    async def test_unparseable_output(self):
        """Unparseable output raises CommandError with the output."""
        reporter = SystemReporter(_executor("command not found"), "web1", OSKind.DEBIAN)
        with pytest.raises(CommandError) as exc_info:
            await reporter.cpu_usage()
        assert exc_info.value.output == "command not found"


class TestDarwinReports:
    """Reports parsed from macOS top."""

    @pytest.mark.asyncio
    async def test_cpu_usage(self):
        """macOS CPU usage is 100 minus idle."""
        reporter = SystemReporter(_executor(DARWIN_TOP), "mac1", OSKind.DARWIN)
        assert await reporter.cpu_usage() == pytest.approx(15.79)

    @pytest.mark.asyncio
    async def test_memory_usage(self):
        """macOS memory usage is used over used plus unused."""
        reporter = SystemReporter(_executor(DARWIN_PHYSMEM), "mac1", OSKind.DARWIN)
        assert await reporter.memory_usage() == 75.0


class TestFileManager:
    """Directory and permission commands."""

    @pytest.mark.asyncio
    async def test_paths_are_quoted(self):
        """Paths are quoted for the shell."""
        executor = _executor("", "", "")
        files = FileManager(executor, "web1", OSKind.DEBIAN)

        await files.create_directory("/srv/my app")
        await files.delete_directory("/srv/old")
        await files.set_permissions("/srv/my app", 0o750)

        commands = [c.args[0] for c in executor.run_command.call_args_list]
        assert commands == ["mkdir -p '/srv/my app'", "rm -rf /srv/old", "chmod 750 '/srv/my app'"]

    @pytest.mark.asyncio
    async def test_list_directory(self):
        """Hidden entries are listed."""
        files = FileManager(_executor(".env\napp.py\n"), "web1", OSKind.DEBIAN)
        assert await files.list_directory("/srv") == [".env", "app.py"]

    @pytest.mark.asyncio
    async def test_get_permissions_linux(self):
        """Linux permissions are read with stat -c."""
        executor = _executor("755\n")
        assert await FileManager(executor, "web1", OSKind.DEBIAN).get_permissions("/srv") == 0o755
        assert executor.run_command.call_args.args[0] == "stat -c %a /srv"

    @pytest.mark.asyncio
    async def test_get_permissions_darwin(self):
        """macOS permissions are read with stat -f."""
        executor = _executor("644\n")
        assert await FileManager(executor, "mac1", OSKind.DARWIN).get_permissions("/etc/hosts") == 0o644
        assert executor.run_command.call_args.args[0] == "stat -f %Lp /etc/hosts"

    @pytest.mark.asyncio
    async def test_get_permissions_garbage(self):
        """Unparseable stat output raises CommandError."""
        files = FileManager(_executor("stat: cannot stat"), "web1", OSKind.DEBIAN)
        with pytest.raises(CommandError):
            await files.get_permissions("/nope")
