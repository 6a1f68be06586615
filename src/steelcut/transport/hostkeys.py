"""
Host key verification policies.

The policy decides what asyncssh receives as its ``known_hosts`` option.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_KNOWN_HOSTS = "~/.ssh/known_hosts"


class HostKeyPolicy(ABC):
    """Decides how the identity of a remote endpoint is verified."""

    @abstractmethod
    def known_hosts(self, address: str) -> Any:
        """Return the value for asyncssh's ``known_hosts`` connect option."""
        pass


class KnownHostsPolicy(HostKeyPolicy):
    """Trust only endpoints whose keys are listed in a known_hosts file."""

    def __init__(self, path: Optional[str] = None):
        self.path = os.path.expanduser(path or DEFAULT_KNOWN_HOSTS)

    def known_hosts(self, address: str) -> Any:
        return self.path

    def __repr__(self) -> str:
        return f"KnownHostsPolicy({self.path!r})"


class AcceptAnyPolicy(HostKeyPolicy):
    """
    Accept any remote host key.

    Only meant for test and throwaway environments.
    """

    def known_hosts(self, address: str) -> Any:
        logger.warning("Host key checking is disabled for '%s'", address)
        return None

    def __repr__(self) -> str:
        return "AcceptAnyPolicy()"
