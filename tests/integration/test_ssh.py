"""
SSH Integration Tests

Tests that talk to a real SSH server. They are skipped unless a target is
configured through the environment:

    STEELCUT_TEST_SSH_HOST      host name or address (required)
    STEELCUT_TEST_SSH_PORT      port, default 22
    STEELCUT_TEST_SSH_USER      login user
    STEELCUT_PASSWORD           SSH password (otherwise keys/agent are used)
    STEELCUT_SUDO_PASSWORD      sudo password for the escalation test

Host keys are not checked; point these tests at a throwaway container.
"""

import os

import pytest

from steelcut import errors
from steelcut.config import HostConfig
from steelcut.executor import CommandOptions
from steelcut.host import create_host

SSH_HOST = os.environ.get("STEELCUT_TEST_SSH_HOST")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not SSH_HOST, reason="STEELCUT_TEST_SSH_HOST not set"),
]


def _config() -> HostConfig:
    return HostConfig(
        user=os.environ.get("STEELCUT_TEST_SSH_USER"),
        port=int(os.environ.get("STEELCUT_TEST_SSH_PORT", "22")),
        host_key_checking=False,
        command_timeout=30.0,
    ).with_env()


@pytest.mark.asyncio
async def test_detects_os_and_runs_command():
    """A command runs on a real SSH host."""
    host = await create_host(SSH_HOST, _config())

    output = await host.run_command("echo steelcut")

    assert output.strip() == "steelcut"


@pytest.mark.asyncio
async def test_nonzero_exit():
    """A failing command raises ExecutionError with its status."""
    host = await create_host(SSH_HOST, _config())

    with pytest.raises(errors.ExecutionError) as exc_info:
        await host.run_command("exit 7")
    assert exc_info.value.rc == 7


@pytest.mark.asyncio
async def test_timeout():
    """A slow command is cut off by the timeout."""
    host = await create_host(SSH_HOST, _config())

    with pytest.raises(errors.TimeoutError):
        await host.run_command("sleep 10", CommandOptions(timeout=1))


@pytest.mark.asyncio
@pytest.mark.skipif(not os.environ.get("STEELCUT_SUDO_PASSWORD"), reason="STEELCUT_SUDO_PASSWORD not set")
async def test_sudo():
    """sudo escalates to root with the password on stdin."""
    host = await create_host(SSH_HOST, _config())

    output = await host.run_command("id -u", CommandOptions(use_sudo=True))

    assert output.strip().splitlines()[-1] == "0"


@pytest.mark.asyncio
async def test_copy_file(tmp_path):
    """A file copied over scp keeps its content and mode."""
    host = await create_host(SSH_HOST, _config())
    local = tmp_path / "payload.txt"
    local.write_text("copied by steelcut\n")
    remote = "/tmp/steelcut-integration.txt"

    await host.copy_file(local, remote, mode=0o600)

    assert await host.run_command(f"cat {remote}") == "copied by steelcut\n"
    assert await host.files.get_permissions(remote) == 0o600
    await host.run_command(f"rm -f {remote}")
