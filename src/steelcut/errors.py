# Copyright (c) 2024 Steelcut Contributors
# MIT License

"""
Steelcut Error Classes.

Every failure a host operation can produce is one of the classes below.
Nothing is retried automatically; errors carry the command text and host
identity so callers can log them verbatim.
"""

from __future__ import annotations

import enum


class ExitCode(enum.IntEnum):
    """Exit codes used by the steelcut CLI."""

    SUCCESS = 0
    GENERIC_ERROR = 1
    HOST_FAILED = 2
    CONFIG_ERROR = 3
    UNSUPPORTED_HOST = 4
    KEYBOARD_INTERRUPT = 130


class SteelcutError(Exception):
    """Base exception for all steelcut errors."""

    exit_code: int = ExitCode.GENERIC_ERROR

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class ConfigError(SteelcutError):
    """Invalid host options or a malformed inventory file."""

    exit_code: int = ExitCode.CONFIG_ERROR

    def __init__(self, message: str, file_path: str | None = None) -> None:
        self.file_path = file_path
        location = f" in {file_path}" if file_path else ""
        super().__init__(f"Configuration error{location}: {message}")


class ConstructionError(SteelcutError):
    """The host's operating system is not one steelcut can drive."""

    exit_code: int = ExitCode.UNSUPPORTED_HOST

    def __init__(self, host: str, message: str, probe_output: str | None = None) -> None:
        self.host = host
        self.probe_output = probe_output
        super().__init__(f"Cannot configure host {host}: {message}")


class TransportError(SteelcutError):
    """Dialing, authenticating or handshaking with a remote host failed."""

    exit_code: int = ExitCode.HOST_FAILED

    def __init__(self, host: str, message: str, details: str | None = None) -> None:
        self.host = host
        self.reason = message
        super().__init__(f"SSH connection to {host} failed: {message}", details)


class UnreachableError(SteelcutError):
    """A reachability check failed."""

    exit_code: int = ExitCode.HOST_FAILED

    phase: str = ""

    def __init__(self, host: str, message: str) -> None:
        self.host = host
        super().__init__(f"{self.phase} test failed for host {host}: {message}")


class PingError(UnreachableError):
    """The host did not answer a network ping."""

    phase = "Ping"


class HandshakeError(UnreachableError):
    """The host answered pings but the SSH handshake failed."""

    phase = "SSH"


class CommandError(SteelcutError):
    """Base class for failures of a command that was actually dispatched."""

    exit_code: int = ExitCode.HOST_FAILED

    def __init__(
        self,
        command: str,
        host: str,
        message: str,
        output: str | None = None,
    ) -> None:
        self.command = command
        self.host = host
        self.output = output
        details = None
        if output:
            details = f"output: {output.strip()[:200]}"
        super().__init__(f"Command '{command}' on {host} {message}", details)


class ExecutionError(CommandError):
    """The command exited with a status that was not expected."""

    def __init__(self, command: str, host: str, rc: int, output: str | None = None) -> None:
        self.rc = rc
        super().__init__(command, host, f"failed with exit status {rc}", output)


class TimeoutError(CommandError):
    """The command did not finish before its deadline."""

    def __init__(self, command: str, host: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(command, host, f"timed out after {timeout:g}s")


class EscalationError(CommandError):
    """sudo refused to run the command."""


class IncorrectSudoPassword(EscalationError):
    """sudo rejected the supplied password."""

    def __init__(self, command: str, host: str, output: str | None = None) -> None:
        super().__init__(command, host, "failed: sudo: incorrect password provided", output)


class NotInSudoers(EscalationError):
    """The login user may not use sudo at all."""

    def __init__(self, command: str, host: str, output: str | None = None) -> None:
        super().__init__(command, host, "failed: sudo: user is not in the sudoers file", output)


class CopyError(SteelcutError):
    """Copying a file to a remote host failed."""

    exit_code: int = ExitCode.HOST_FAILED

    def __init__(self, host: str, local_path: str, remote_path: str, message: str) -> None:
        self.host = host
        self.local_path = local_path
        self.remote_path = remote_path
        super().__init__(f"Copy of {local_path} to {host}:{remote_path} failed: {message}")


class ProtocolError(CopyError):
    """The remote scp sink answered with an error or closed early."""
