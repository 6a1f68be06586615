"""
Tests for OS detection and driver selection.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from steelcut import errors
from steelcut.host import create_host
from steelcut.packages.apt import AptPackageManager
from steelcut.packages.brew import BrewPackageManager
from steelcut.packages.yum import YumPackageManager
from steelcut.resolver import OSKind, classify_os_release, parse_os_release, resolve_os_kind
from steelcut.services import LaunchdServiceManager, SystemdServiceManager
from steelcut.transport.base import RunResult

UBUNTU_RELEASE = '''NAME="Ubuntu"
VERSION="22.04.3 LTS (Jammy Jellyfish)"
ID=ubuntu
ID_LIKE=debian
PRETTY_NAME="Ubuntu 22.04.3 LTS"
'''

ROCKY_RELEASE = '''NAME="Rocky Linux"
ID="rocky"
ID_LIKE="rhel centos fedora"
VERSION_ID="9.3"
'''

DERIVATIVE_RELEASE = '''ID=tuxedo
ID_LIKE="ubuntu debian"
'''

ARCH_RELEASE = '''NAME="Arch Linux"
ID=arch
'''


def _probe(*outputs: str) -> MagicMock:
    executor = MagicMock()
    executor.run_command = AsyncMock(side_effect=list(outputs))
    return executor


class TestOsRelease:
    """Parsing and classifying /etc/os-release."""

    def test_parse_strips_quotes_and_comments(self):
        """Quotes, comments and broken lines are handled."""
        fields = parse_os_release('# comment\nID="rocky"\nVERSION_ID=\'9.3\'\nbroken\n')
        assert fields == {"ID": "rocky", "VERSION_ID": "9.3"}

    def test_ubuntu(self):
        """Ubuntu is Debian-family."""
        assert classify_os_release("h", UBUNTU_RELEASE) is OSKind.DEBIAN

    def test_rocky(self):
        """Rocky Linux is RedHat-family."""
        assert classify_os_release("h", ROCKY_RELEASE) is OSKind.REDHAT

    def test_id_like_fallback(self):
        """ID_LIKE is consulted when ID is unknown."""
        assert classify_os_release("h", DERIVATIVE_RELEASE) is OSKind.DEBIAN

    def test_unsupported_distribution(self):
        """Other distributions are rejected with the detection output."""
        with pytest.raises(errors.ConstructionError) as exc_info:
            classify_os_release("h", ARCH_RELEASE)
        assert "arch" in exc_info.value.message
        assert exc_info.value.probe_output == ARCH_RELEASE


class TestResolveOsKind:
    """Probing uname, then os-release on Linux."""

    @pytest.mark.asyncio
    async def test_darwin_needs_one_probe(self):
        """Darwin is known after uname alone."""
        executor = _probe("Darwin\n")
        assert await resolve_os_kind(executor, "mac1") is OSKind.DARWIN
        executor.run_command.assert_awaited_once_with("uname")

    @pytest.mark.asyncio
    async def test_linux_reads_os_release(self):
        """Linux hosts are classified from os-release."""
        executor = _probe("Linux\n", ROCKY_RELEASE)
        assert await resolve_os_kind(executor, "db1") is OSKind.REDHAT
        assert executor.run_command.call_args.args[0] == "cat /etc/os-release"

    @pytest.mark.asyncio
    async def test_unsupported_kernel(self):
        """Non-Linux, non-Darwin kernels are rejected."""
        with pytest.raises(errors.ConstructionError) as exc_info:
            await resolve_os_kind(_probe("FreeBSD\n"), "bsd1")
        assert "FreeBSD" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_override_skips_probing(self):
        """A kind name or alias skips all probes."""
        executor = _probe()
        assert await resolve_os_kind(executor, "web1", override="Ubuntu") is OSKind.DEBIAN
        executor.run_command.assert_not_called()

    @pytest.mark.asyncio
    async def test_kernel_name_override(self):
        """The Darwin kernel name skips all probes."""
        executor = _probe()
        assert await resolve_os_kind(executor, "mac1", override="Darwin") is OSKind.DARWIN
        executor.run_command.assert_not_called()

    @pytest.mark.asyncio
    async def test_linux_override_still_reads_os_release(self):
        """The Linux kernel name still needs os-release."""
        executor = _probe(UBUNTU_RELEASE)
        assert await resolve_os_kind(executor, "web1", override="Linux") is OSKind.DEBIAN
        executor.run_command.assert_awaited_once_with("cat /etc/os-release")

    @pytest.mark.asyncio
    async def test_unknown_override(self):
        """Unknown overrides are rejected."""
        with pytest.raises(errors.ConstructionError):
            await resolve_os_kind(_probe(), "web1", override="windows")


class TestDriverSelection:
    """create_host wires drivers for the detected family."""

    @pytest.mark.asyncio
    async def test_debian(self):
        """Debian hosts get apt and systemd."""
        host = await create_host("web1", executor=_probe("Linux\n", UBUNTU_RELEASE))
        assert host.os_kind is OSKind.DEBIAN
        assert isinstance(host.package_manager, AptPackageManager)
        assert isinstance(host.service_manager, SystemdServiceManager)

    @pytest.mark.asyncio
    async def test_redhat(self):
        """RedHat hosts get yum and systemd."""
        host = await create_host("db1", executor=_probe("Linux\n", ROCKY_RELEASE))
        assert isinstance(host.package_manager, YumPackageManager)
        assert isinstance(host.service_manager, SystemdServiceManager)

    @pytest.mark.asyncio
    async def test_darwin(self):
        """macOS hosts get brew and launchd."""
        host = await create_host("mac1", executor=_probe("Darwin\n"))
        assert isinstance(host.package_manager, BrewPackageManager)
        assert isinstance(host.service_manager, LaunchdServiceManager)

    @pytest.mark.asyncio
    async def test_unsupported_host_is_not_built(self):
        """Unsupported hosts are never built."""
        with pytest.raises(errors.ConstructionError) as exc_info:
            await create_host("bsd1", executor=_probe("FreeBSD\n"))
        assert exc_info.value.exit_code == errors.ExitCode.UNSUPPORTED_HOST

    @pytest.mark.asyncio
    async def test_detection_runs_over_the_transport(self, fake_transport, fake_session):
        """Detection runs through the host's transport."""
        fake_session.result = RunResult(rc=0, output="Darwin\n")
        host = await create_host("mac1", password="x", transport=fake_transport)

        assert host.os_kind is OSKind.DARWIN
        assert fake_session.commands == ["uname"]
