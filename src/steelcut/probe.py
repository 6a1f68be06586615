"""
Steelcut Reachability Probe

A host is reachable when it answers a ping and accepts an SSH handshake.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from steelcut.errors import HandshakeError, PingError, TransportError
from steelcut.executor import open_session

if TYPE_CHECKING:
    from steelcut.host import Host

logger = logging.getLogger(__name__)

PING_TIMEOUT = 10.0


async def is_reachable(host: "Host") -> None:
    """
    Check that a host answers on the network and over SSH.

    Local hosts are always reachable and cause no I/O.

    Raises:
        PingError: If the host does not answer a ping
        HandshakeError: If the SSH handshake fails
    """
    if host.is_local:
        return

    await ping(host.hostname)
    await check_ssh(host)


async def ping(hostname: str, timeout: float = PING_TIMEOUT) -> None:
    """Send a single ICMP echo request with the system ping tool."""
    try:
        process = await asyncio.create_subprocess_exec(
            "ping", "-c", "1", hostname,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        raise PingError(hostname, f"cannot run ping: {e}") from e

    try:
        stdout_bytes, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise PingError(hostname, f"no answer within {timeout:g}s") from None

    if process.returncode != 0:
        output = stdout_bytes.decode("utf-8", errors="replace").strip()
        raise PingError(hostname, f"exit status {process.returncode}: {output}")

    logger.info("Ping test passed for host '%s'", hostname)


async def check_ssh(host: "Host") -> None:
    """Dial the host and close the session immediately."""
    try:
        session = await open_session(host.hostname, host.config)
    except TransportError as e:
        raise HandshakeError(host.hostname, e.reason) from e

    await session.close()
    logger.info("SSH test passed for host '%s'", host.hostname)
