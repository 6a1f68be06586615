"""
Steelcut File Transfer

Pushes a local file to a remote host by speaking the scp sink protocol to
``scp -t`` over an SSH session.

Protocol, as seen from the sending side::

    <- \\0                          sink is ready
    -> C<mode> <size> <name>\\n     control line
    <- \\0
    -> <size bytes of data>\\0
    <- \\0

The sink answers with \\1 (warning) or \\2 (fatal) followed by a message
line instead of \\0 when it rejects a step.
"""

import asyncio
import logging
import os
import posixpath
import shlex
import stat
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Optional, Union

from steelcut.errors import CopyError, ProtocolError, TransportError
from steelcut.executor import open_session
from steelcut.transport.base import RemoteProcess

if TYPE_CHECKING:
    from steelcut.host import Host

logger = logging.getLogger(__name__)

CHUNK_SIZE = 32 * 1024

ACK_OK = b"\x00"
ACK_ERRORS = (b"\x01", b"\x02")


async def copy_file(
    host: "Host",
    local_path: Union[str, Path],
    remote_path: str,
    mode: Optional[int] = None,
) -> None:
    """
    Copy a local file to a path on the host.

    Args:
        host: Destination host; must not be the local machine
        local_path: File to send
        remote_path: Destination path on the host
        mode: Permission bits for the remote file; defaults to the local file's

    Raises:
        CopyError: If the host is local, the file cannot be read, the
            stream to the remote scp breaks or the remote side fails
        ProtocolError: If the remote scp rejects a step or closes early
        TransportError: If the session cannot be opened
    """
    transfer = _Transfer(host.hostname, str(local_path), remote_path)

    if host.is_local:
        raise transfer.error("source and destination are the same host")

    # Checked before opening so a FIFO or directory never blocks or fails in open()
    try:
        st = os.stat(transfer.local_path)
    except OSError as e:
        raise transfer.error(str(e)) from e
    if not stat.S_ISREG(st.st_mode):
        raise transfer.error("source is not a regular file")

    if mode is None:
        mode = stat.S_IMODE(st.st_mode)

    try:
        handle = open(transfer.local_path, "rb")
    except OSError as e:
        raise transfer.error(str(e)) from e

    with handle:
        session = await open_session(host.hostname, host.config)
        try:
            process = await session.start(f"scp -t {shlex.quote(remote_path)}")

            # The remote scp runs while we feed it; both must finish
            waiter = asyncio.ensure_future(process.wait())
            try:
                await transfer.send(process, handle, st.st_size, mode)
                rc = await waiter
            except (OSError, TransportError) as e:
                raise transfer.error(f"stream to remote scp failed: {_reason(e)}") from e
            finally:
                if not waiter.done():
                    waiter.cancel()
        finally:
            await session.close()

    if rc != 0:
        raise transfer.error(f"remote scp exited with status {rc}")

    logger.info(
        "File copied successfully from '%s' to '%s:%s'",
        transfer.local_path, host.hostname, remote_path,
    )


def _reason(e: Exception) -> str:
    if isinstance(e, TransportError):
        return e.reason
    return str(e) or type(e).__name__


class _Transfer:
    """Sender side of one scp sink conversation."""

    def __init__(self, hostname: str, local_path: str, remote_path: str):
        self.hostname = hostname
        self.local_path = local_path
        self.remote_path = remote_path

    def error(self, message: str) -> CopyError:
        return CopyError(self.hostname, self.local_path, self.remote_path, message)

    def protocol_error(self, message: str) -> ProtocolError:
        return ProtocolError(self.hostname, self.local_path, self.remote_path, message)

    async def send(self, process: RemoteProcess, handle: BinaryIO, size: int, mode: int) -> None:
        await self.expect_ack(process, "while starting")

        # A trailing slash names a directory; the file keeps its local name
        if self.remote_path.endswith("/"):
            name = os.path.basename(self.local_path)
        else:
            name = posixpath.basename(self.remote_path)
        control = f"C{mode:04o} {size} {name}\n"
        await process.write(control.encode("utf-8"))
        await self.expect_ack(process, "after the control line")

        sent = 0
        while True:
            try:
                chunk = handle.read(CHUNK_SIZE)
            except OSError as e:
                raise self.error(f"reading local file: {e}") from e
            if not chunk:
                break
            await process.write(chunk)
            sent += len(chunk)

        if sent != size:
            raise self.error(f"local file changed size during copy ({sent} of {size} bytes sent)")

        await process.write(ACK_OK)
        await self.expect_ack(process, "after the file data")
        process.write_eof()

    async def expect_ack(self, process: RemoteProcess, stage: str) -> None:
        reply = await process.read(1)
        if reply == ACK_OK:
            return

        if not reply:
            raise self.protocol_error(f"remote scp closed the stream {stage}")
        if reply in ACK_ERRORS:
            message = (await process.readline()).decode("utf-8", errors="replace").strip()
            raise self.protocol_error(f"remote scp failed {stage}: {message or 'no message'}")
        raise self.protocol_error(f"unexpected reply {reply!r} from remote scp {stage}")
