"""
Steelcut Command Executor

Dispatches a command to a local subprocess or a remote SSH session,
applies sudo, bounds remote commands with a timeout and turns known sudo
failure messages into named errors.
"""

import asyncio
import enum
import logging
import os
import signal
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from steelcut import errors
from steelcut.config import HostConfig
from steelcut.transport.base import RunResult, Session

logger = logging.getLogger(__name__)

LOCAL_ALIASES = ("localhost", "127.0.0.1")

# -p '' keeps sudo's prompt out of the command output
SUDO_PREFIX = "sudo -S -p '' "

# Output fragments sudo prints when it refuses to run a command. Matching
# on text is locale dependent; both phrases are what sudo prints in the C
# and English locales.
SUDO_FAILURES = (
    ("incorrect password", errors.IncorrectSudoPassword),
    ("not in the sudoers file", errors.NotInSudoers),
)


def is_local_address(hostname: str) -> bool:
    """Return True if the hostname refers to the machine we run on."""
    return hostname in LOCAL_ALIASES


@dataclass(frozen=True)
class CommandOptions:
    """
    Per-call execution options.

    Attributes:
        use_sudo: Run the command through sudo
        sudo_password: Password for sudo; defaults to the host's
        timeout: Seconds to wait for the command; defaults to the host's
            command timeout for remote hosts and no limit locally
        ok_exit_codes: Exit statuses treated as success
    """

    use_sudo: bool = False
    sudo_password: Optional[str] = None
    timeout: Optional[float] = None
    ok_exit_codes: Tuple[int, ...] = (0,)

    def __repr__(self) -> str:
        return (
            f"CommandOptions(use_sudo={self.use_sudo}, "
            f"sudo_password={'***' if self.sudo_password else None}, "
            f"timeout={self.timeout}, ok_exit_codes={self.ok_exit_codes})"
        )


class CompletionStatus(enum.Enum):
    SUCCESS = "success"
    AUTH_FAILURE = "authentication failure"
    TIMEOUT = "timeout"
    TRANSPORT_FAILURE = "transport failure"
    FAILED = "failed"


@dataclass
class ExecutionOutcome:
    """What happened to one dispatched command."""

    output: str
    status: CompletionStatus
    exit_status: Optional[int] = None
    error: Optional[errors.SteelcutError] = None

    @property
    def success(self) -> bool:
        return self.status is CompletionStatus.SUCCESS


class CommandExecutor(ABC):
    """Runs shell commands on one host."""

    @abstractmethod
    async def run_command(self, command: str, options: Optional[CommandOptions] = None) -> str:
        """
        Run a command and return its output.

        Raises:
            CommandError: If the command failed, timed out or sudo refused it
            TransportError: If the host could not be reached
        """
        pass


async def open_session(hostname: str, config: HostConfig) -> Session:
    """Dial a fresh session to a host using its configuration."""
    transport = config.get_transport()
    return await transport.dial(
        hostname,
        config.port,
        config.auth_config(),
        config.connect_timeout,
    )


def classify_output(command: str, hostname: str, result: RunResult, ok_exit_codes: Tuple[int, ...] = (0,)) -> ExecutionOutcome:
    """
    Turn a finished command into an outcome.

    sudo failure messages take precedence over the exit status.
    """
    for phrase, error_class in SUDO_FAILURES:
        if phrase in result.output:
            return ExecutionOutcome(
                output=result.output,
                status=CompletionStatus.AUTH_FAILURE,
                exit_status=result.rc,
                error=error_class(command, hostname, result.output),
            )

    if result.rc not in ok_exit_codes:
        return ExecutionOutcome(
            output=result.output,
            status=CompletionStatus.FAILED,
            exit_status=result.rc,
            error=errors.ExecutionError(command, hostname, result.rc, result.output),
        )

    return ExecutionOutcome(
        output=result.output,
        status=CompletionStatus.SUCCESS,
        exit_status=result.rc,
    )


class DefaultExecutor(CommandExecutor):
    """
    Executor bound to one hostname.

    Each remote command dials its own session and closes it before
    returning; nothing is pooled. Running several commands on the same
    host concurrently is only safe if the transport allows it.
    """

    def __init__(self, hostname: str, config: HostConfig):
        self.hostname = hostname
        self.config = config

    @property
    def is_local(self) -> bool:
        return is_local_address(self.hostname)

    async def run_command(self, command: str, options: Optional[CommandOptions] = None) -> str:
        outcome = await self.execute(command, options)
        if outcome.error is not None:
            raise outcome.error
        return outcome.output

    async def execute(self, command: str, options: Optional[CommandOptions] = None) -> ExecutionOutcome:
        """
        Run a command and report the outcome without raising for
        command-level failures.
        """
        options = options or CommandOptions()
        password = None

        if options.use_sudo:
            logger.info("Using sudo for command '%s' on host '%s'", command, self.hostname)
            command = SUDO_PREFIX + command
            password = options.sudo_password or self.config.sudo_password

        logger.debug(
            "Running command '%s' on host '%s' with user '%s'",
            command, self.hostname, self.config.login_user,
        )

        # The password only ever travels on stdin
        stdin = password + "\n" if password else None

        try:
            if self.is_local:
                result = await self._run_local(command, stdin, options.timeout)
            else:
                timeout = options.timeout if options.timeout is not None else self.config.command_timeout
                result = await self._run_remote(command, stdin, timeout)
        except errors.TimeoutError as e:
            logger.warning("%s", e)
            return ExecutionOutcome(output="", status=CompletionStatus.TIMEOUT, error=e)
        except errors.TransportError as e:
            logger.warning("%s", e)
            return ExecutionOutcome(output="", status=CompletionStatus.TRANSPORT_FAILURE, error=e)

        outcome = classify_output(command, self.hostname, result, options.ok_exit_codes)
        if outcome.error is not None:
            logger.warning("Error running command on host '%s': %s", self.hostname, outcome.error.message)
        return outcome

    async def _run_local(self, command: str, stdin: Optional[str], timeout: Optional[float]) -> RunResult:
        if stdin is not None:
            logger.debug("Providing sudo password through stdin for local command")

        try:
            # Own process group, so a timeout can kill the shell's children too
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=True,
            )
        except OSError as e:
            return RunResult(rc=127, output=str(e))

        data = stdin.encode('utf-8') if stdin is not None else None
        try:
            stdout_bytes, _ = await asyncio.wait_for(process.communicate(data), timeout=timeout)
        except asyncio.TimeoutError:
            _kill_process_group(process)
            await process.wait()
            raise errors.TimeoutError(command, self.hostname, timeout)

        return RunResult(
            rc=process.returncode if process.returncode is not None else -1,
            output=stdout_bytes.decode('utf-8', errors='replace'),
        )

    async def _run_remote(self, command: str, stdin: Optional[str], timeout: float) -> RunResult:
        session = await open_session(self.hostname, self.config)
        try:
            try:
                return await asyncio.wait_for(session.run(command, input=stdin), timeout=timeout)
            except asyncio.TimeoutError:
                # Closing the session below is the only interrupt sent; the
                # remote process may keep running.
                raise errors.TimeoutError(command, self.hostname, timeout) from None
        finally:
            await session.close()


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError:
        process.kill()
