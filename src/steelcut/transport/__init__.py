"""
Steelcut Transport Module

Secure sessions to remote hosts.
"""

from steelcut.transport.base import AuthConfig, RemoteProcess, RunResult, Session, Transport
from steelcut.transport.hostkeys import AcceptAnyPolicy, HostKeyPolicy, KnownHostsPolicy

__all__ = [
    'AuthConfig',
    'RemoteProcess',
    'RunResult',
    'Session',
    'Transport',
    'HostKeyPolicy',
    'KnownHostsPolicy',
    'AcceptAnyPolicy',
    'create_transport',
]


def create_transport() -> Transport:
    """Return the default SSH transport."""
    from steelcut.transport.ssh_asyncssh import AsyncSSHTransport
    return AsyncSSHTransport()
