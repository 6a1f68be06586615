"""
Steelcut SSH Transport (asyncssh)

Dials SSH sessions with asyncssh.
"""

import asyncio
import logging
from typing import Optional

import asyncssh

from steelcut.errors import TransportError
from steelcut.transport.auth import (
    AuthMethod,
    KeyManager,
    connect_options,
    create_key_manager,
    select_auth_method,
)
from steelcut.transport.base import AuthConfig, RemoteProcess, RunResult, Session, Transport

logger = logging.getLogger(__name__)


class AsyncSSHTransport(Transport):
    """
    SSH transport using asyncssh.

    Supports:
    - Password authentication
    - Encrypted private key files
    - SSH agent
    - Pluggable host key policy
    """

    async def dial(
        self,
        address: str,
        port: int,
        auth: AuthConfig,
        timeout: float,
    ) -> Session:
        method = select_auth_method(auth)
        logger.debug("Using %s authentication for %s@%s:%d", method.value, auth.user, address, port)

        key_manager = create_key_manager(method, auth)
        try:
            keys = None
            if key_manager is not None:
                keys = await key_manager.read_private_keys(auth.key_passphrase)

            conn = await asyncssh.connect(
                address,
                port=port,
                username=auth.user,
                known_hosts=auth.host_key_policy.known_hosts(address),
                connect_timeout=timeout,
                **connect_options(method, auth, keys),
            )
        except (OSError, asyncssh.Error, asyncio.TimeoutError, ValueError) as e:
            if key_manager is not None:
                await key_manager.close()
            raise TransportError(
                host=address,
                message=str(e) or type(e).__name__,
                details=f"auth={method.value}",
            ) from e

        return AsyncSSHSession(address, conn, key_manager)


class AsyncSSHSession(Session):
    """One asyncssh client connection."""

    def __init__(
        self,
        address: str,
        conn: asyncssh.SSHClientConnection,
        key_manager: Optional[KeyManager] = None,
    ):
        self.address = address
        self._conn: Optional[asyncssh.SSHClientConnection] = conn
        self._key_manager = key_manager

    async def run(self, command: str, input: Optional[str] = None) -> RunResult:
        if self._conn is None:
            raise TransportError(self.address, "session is closed")

        try:
            result = await self._conn.run(
                command,
                input=input,
                stderr=asyncssh.STDOUT,
                check=False,
            )
        except (OSError, asyncssh.Error) as e:
            raise TransportError(self.address, str(e) or type(e).__name__) from e

        # exit_status is None when the remote process died from a signal
        rc = result.exit_status if result.exit_status is not None else -1
        output = result.stdout or ""
        if isinstance(output, bytes):
            output = output.decode('utf-8', errors='replace')

        return RunResult(rc=rc, output=output)

    async def start(self, command: str) -> RemoteProcess:
        if self._conn is None:
            raise TransportError(self.address, "session is closed")

        try:
            process = await self._conn.create_process(command, encoding=None)
        except (OSError, asyncssh.Error) as e:
            raise TransportError(self.address, str(e) or type(e).__name__) from e

        return AsyncSSHProcess(self.address, process)

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            await self._conn.wait_closed()
            self._conn = None

        if self._key_manager is not None:
            await self._key_manager.close()
            self._key_manager = None


class AsyncSSHProcess(RemoteProcess):
    """Byte-stream wrapper around an asyncssh client process."""

    def __init__(self, address: str, process: asyncssh.SSHClientProcess):
        self.address = address
        self._process = process

    def _error(self, e: Exception) -> TransportError:
        return TransportError(self.address, str(e) or type(e).__name__)

    async def write(self, data: bytes) -> None:
        try:
            self._process.stdin.write(data)
            await self._process.stdin.drain()
        except (OSError, asyncssh.Error) as e:
            raise self._error(e) from e

    async def read(self, n: int) -> bytes:
        try:
            return await self._process.stdout.read(n)
        except (OSError, asyncssh.Error) as e:
            raise self._error(e) from e

    async def readline(self) -> bytes:
        try:
            return await self._process.stdout.readline()
        except (OSError, asyncssh.Error) as e:
            raise self._error(e) from e

    def write_eof(self) -> None:
        try:
            self._process.stdin.write_eof()
        except (OSError, asyncssh.Error) as e:
            raise self._error(e) from e

    async def wait(self) -> int:
        # wait_closed() leaves stdout alone; wait() would drain it and race
        # with protocol reads happening concurrently
        try:
            await self._process.wait_closed()
        except (OSError, asyncssh.Error) as e:
            raise self._error(e) from e
        status = self._process.exit_status
        return status if status is not None else -1
