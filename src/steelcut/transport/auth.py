"""
SSH authentication method selection and private key sources.

Exactly one method is active per session:

    password given            -> password
    key passphrase given      -> private key files decrypted with it
    neither                   -> keys offered by the running ssh-agent
"""

import enum
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import asyncssh

from steelcut.transport.base import AuthConfig

logger = logging.getLogger(__name__)

DEFAULT_KEY_FILES = (
    "~/.ssh/id_ed25519",
    "~/.ssh/id_ecdsa",
    "~/.ssh/id_rsa",
)


class AuthMethod(enum.Enum):
    PASSWORD = "password"
    KEY_FILE = "key file"
    AGENT = "ssh-agent"


def select_auth_method(auth: AuthConfig) -> AuthMethod:
    """Pick the single authentication method for a session."""
    if auth.password:
        return AuthMethod.PASSWORD
    if auth.key_passphrase:
        return AuthMethod.KEY_FILE
    return AuthMethod.AGENT


class KeyManager(ABC):
    """A source of private keys for public key authentication."""

    @abstractmethod
    async def read_private_keys(self, passphrase: Optional[str] = None) -> List[Any]:
        """
        Load the keys to offer to the server.

        Raises:
            ValueError: If no usable key could be loaded
        """
        pass

    async def close(self) -> None:
        """Release anything held open while the keys are in use."""
        pass


class FileKeyManager(KeyManager):
    """Reads encrypted private keys from disk."""

    def __init__(self, paths: Sequence[str] = ()):
        self.paths = [os.path.expanduser(p) for p in (paths or DEFAULT_KEY_FILES)]

    async def read_private_keys(self, passphrase: Optional[str] = None) -> List[Any]:
        keys = []
        failures = []
        for path in self.paths:
            if not os.path.exists(path):
                continue
            try:
                keys.append(asyncssh.read_private_key(path, passphrase))
            except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError, OSError) as e:
                failures.append(f"{path}: {e}")

        if not keys:
            reason = "; ".join(failures) if failures else "none of " + ", ".join(self.paths) + " exist"
            raise ValueError(f"no usable private key ({reason})")

        logger.debug("Loaded %d private key(s) from disk", len(keys))
        return keys


class AgentKeyManager(KeyManager):
    """
    Uses the keys held by the running ssh-agent.

    The agent connection signs on behalf of the session, so it stays open
    until :meth:`close` is called when the session ends.
    """

    def __init__(self):
        self._agent: Optional[asyncssh.SSHAgentClient] = None

    async def read_private_keys(self, passphrase: Optional[str] = None) -> List[Any]:
        try:
            self._agent = await asyncssh.connect_agent()
        except OSError as e:
            raise ValueError(f"cannot reach ssh-agent: {e}") from e

        if self._agent is None:
            raise ValueError("no ssh-agent available (SSH_AUTH_SOCK is not set)")

        keys = await self._agent.get_keys()
        if not keys:
            raise ValueError("ssh-agent holds no keys")

        logger.debug("Loaded %d key(s) from ssh-agent", len(keys))
        return list(keys)

    async def close(self) -> None:
        if self._agent is not None:
            self._agent.close()
            await self._agent.wait_closed()
            self._agent = None


def create_key_manager(method: AuthMethod, auth: AuthConfig) -> Optional[KeyManager]:
    """Return the key source for a public key method, or None for passwords."""
    if method is AuthMethod.KEY_FILE:
        return FileKeyManager(auth.key_files)
    if method is AuthMethod.AGENT:
        return AgentKeyManager()
    return None


def connect_options(method: AuthMethod, auth: AuthConfig, keys: Optional[List[Any]] = None) -> Dict[str, Any]:
    """
    Build the asyncssh.connect keyword arguments enabling only one method.

    Every other source asyncssh would consult on its own (default key
    files, the agent, the password) is switched off explicitly.
    """
    if method is AuthMethod.PASSWORD:
        return {
            'password': auth.password,
            'client_keys': None,
            'agent_path': None,
            # keyboard-interactive is answered with the same password
            'preferred_auth': 'password,keyboard-interactive',
        }

    return {
        'password': None,
        'client_keys': keys,
        'agent_path': None,
        'preferred_auth': 'publickey',
    }
