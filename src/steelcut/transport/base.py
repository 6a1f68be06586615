"""
Steelcut Transport Base Classes

Abstract interfaces for secure sessions to remote hosts.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from steelcut.transport.hostkeys import HostKeyPolicy, KnownHostsPolicy


@dataclass
class RunResult:
    """Result of running a command over a session."""

    rc: int
    output: str

    @property
    def success(self) -> bool:
        return self.rc == 0


@dataclass
class AuthConfig:
    """
    Credentials used to authenticate a session.

    Exactly one method is used per session, see
    :func:`steelcut.transport.auth.select_auth_method`.
    """

    user: str
    password: Optional[str] = None
    key_passphrase: Optional[str] = None
    key_files: Sequence[str] = ()
    host_key_policy: HostKeyPolicy = field(default_factory=KnownHostsPolicy)

    def __repr__(self) -> str:
        return (
            f"AuthConfig(user={self.user!r}, password={'***' if self.password else None}, "
            f"key_passphrase={'***' if self.key_passphrase else None})"
        )


class RemoteProcess(ABC):
    """A command started on a session with raw byte streams attached."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Write bytes to the process's stdin and wait for them to drain."""
        pass

    @abstractmethod
    async def read(self, n: int) -> bytes:
        """Read up to n bytes from stdout. Returns b'' at EOF."""
        pass

    @abstractmethod
    async def readline(self) -> bytes:
        """Read one line from stdout."""
        pass

    @abstractmethod
    def write_eof(self) -> None:
        """Close the process's stdin."""
        pass

    @abstractmethod
    async def wait(self) -> int:
        """Wait for the process to exit and return its exit status."""
        pass


class Session(ABC):
    """
    A live authenticated connection to one host.

    A session is owned by the call that dialed it and must be closed by
    that call on every exit path.
    """

    @abstractmethod
    async def run(self, command: str, input: Optional[str] = None) -> RunResult:
        """
        Run a command and collect its combined stdout/stderr.

        Args:
            command: Command line to execute
            input: Text written to the command's stdin before it is closed

        Returns:
            RunResult with exit status and combined output
        """
        pass

    @abstractmethod
    async def start(self, command: str) -> RemoteProcess:
        """Start a command and return its byte streams."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the session and release the connection."""
        pass


class Transport(ABC):
    """Factory for sessions."""

    @abstractmethod
    async def dial(
        self,
        address: str,
        port: int,
        auth: AuthConfig,
        timeout: float,
    ) -> Session:
        """
        Open an authenticated session.

        Args:
            address: Host name or IP address
            port: SSH port
            auth: Credentials and host key policy
            timeout: Bound on connect plus handshake, in seconds

        Raises:
            TransportError: If any stage fails
        """
        pass
