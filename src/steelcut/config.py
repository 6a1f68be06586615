"""
Steelcut Host Configuration

Per-host connection settings and the YAML inventory loader.
"""

import dataclasses
import getpass
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import yaml

from steelcut.errors import ConfigError
from steelcut.transport.base import AuthConfig, Transport
from steelcut.transport.hostkeys import AcceptAnyPolicy, HostKeyPolicy, KnownHostsPolicy

DEFAULT_PORT = 22
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_COMMAND_TIMEOUT = 5.0

# Environment variables consulted by HostConfig.with_env()
ENV_SECRETS = {
    'password': 'STEELCUT_PASSWORD',
    'key_passphrase': 'STEELCUT_KEY_PASSPHRASE',
    'sudo_password': 'STEELCUT_SUDO_PASSWORD',
}

# Options that can be written in an inventory file
_FILE_OPTIONS = {
    'user', 'password', 'key_passphrase', 'key_files', 'sudo_password', 'os',
    'port', 'connect_timeout', 'command_timeout', 'host_key_checking', 'known_hosts',
}


@dataclass
class HostConfig:
    """
    Settings used to build a Host.

    Every field is optional. Unset fields are resolved when the host is
    built: the user defaults to the current login, the OS is probed on the
    host itself and the transport defaults to asyncssh.

    Attributes:
        user: Login user
        password: SSH password; selects password authentication
        key_passphrase: Passphrase for private key files; selects key files
        key_files: Private key paths to try instead of the defaults
        sudo_password: Password fed to sudo for escalated commands
        os: OS override (kind name, alias or kernel name)
        port: SSH port
        connect_timeout: Bound on dial plus handshake, in seconds
        command_timeout: Default bound on remote commands, in seconds
        host_key_checking: False accepts any host key
        known_hosts: known_hosts file used when checking is on
        host_key_policy: Explicit policy, overrides the two fields above
        transport: Transport override
        executor: Command executor override
    """

    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    key_passphrase: Optional[str] = field(default=None, repr=False)
    key_files: Sequence[str] = ()
    sudo_password: Optional[str] = field(default=None, repr=False)
    os: Optional[str] = None
    port: int = DEFAULT_PORT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    host_key_checking: bool = True
    known_hosts: Optional[str] = None
    host_key_policy: Optional[HostKeyPolicy] = None
    transport: Optional[Transport] = None
    executor: Optional[Any] = None

    @classmethod
    def from_options(cls, **options: Any) -> "HostConfig":
        """Build a config from keyword options, rejecting unknown names."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigError(f"unknown host option(s): {', '.join(unknown)}")
        return cls(**options)

    def merged(self, **options: Any) -> "HostConfig":
        """Return a copy with the given options applied."""
        base = HostConfig.from_options(**options)
        return dataclasses.replace(self, **{k: getattr(base, k) for k in options})

    def with_env(self, environ: Optional[Dict[str, str]] = None) -> "HostConfig":
        """Return a copy with unset secrets filled from the environment."""
        environ = os.environ if environ is None else environ
        updates = {}
        for name, var in ENV_SECRETS.items():
            if getattr(self, name) is None and environ.get(var):
                updates[name] = environ[var]
        return dataclasses.replace(self, **updates)

    @property
    def login_user(self) -> str:
        return self.user or getpass.getuser()

    def get_host_key_policy(self) -> HostKeyPolicy:
        if self.host_key_policy is not None:
            return self.host_key_policy
        if not self.host_key_checking:
            return AcceptAnyPolicy()
        return KnownHostsPolicy(self.known_hosts)

    def get_transport(self) -> Transport:
        if self.transport is not None:
            return self.transport
        from steelcut.transport import create_transport
        return create_transport()

    def auth_config(self) -> AuthConfig:
        return AuthConfig(
            user=self.login_user,
            password=self.password,
            key_passphrase=self.key_passphrase,
            key_files=tuple(self.key_files),
            host_key_policy=self.get_host_key_policy(),
        )


def load_inventory(path: Union[str, Path]) -> Dict[str, HostConfig]:
    """
    Load host configurations from a YAML file.

    Format::

        defaults:
          user: deploy
          command_timeout: 30
        hosts:
          web1.example.com:
            sudo_password: secret
          localhost: {}

    Values under ``defaults`` apply to every host unless the host sets
    them itself.

    Returns:
        Mapping of hostname to HostConfig, in file order
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read file: {e}", file_path=str(path)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", file_path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("top level must be a mapping", file_path=str(path))

    defaults = _section(data, 'defaults', path)
    hosts = _section(data, 'hosts', path)

    inventory: Dict[str, HostConfig] = {}
    for hostname, host_vars in hosts.items():
        if host_vars is None:
            host_vars = {}
        if not isinstance(host_vars, dict):
            raise ConfigError(f"host '{hostname}' must map to a mapping", file_path=str(path))

        options = dict(defaults)
        options.update(host_vars)
        inventory[str(hostname)] = _config_from_mapping(options, path, str(hostname))

    return inventory


def _section(data: dict, name: str, path: Path) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping", file_path=str(path))
    return section


def _config_from_mapping(options: Dict[str, Any], path: Path, hostname: str) -> HostConfig:
    unknown = sorted(set(options) - _FILE_OPTIONS)
    if unknown:
        raise ConfigError(
            f"unknown option(s) for host '{hostname}': {', '.join(unknown)}",
            file_path=str(path),
        )

    if 'key_files' in options:
        key_files = options['key_files']
        options['key_files'] = (key_files,) if isinstance(key_files, str) else tuple(key_files)

    if 'port' in options:
        options['port'] = _coerce(options['port'], int, 'port', path, hostname)
    for name in ('connect_timeout', 'command_timeout'):
        if name in options:
            options[name] = _coerce(options[name], float, name, path, hostname)
    if 'host_key_checking' in options:
        options['host_key_checking'] = str(options['host_key_checking']).lower() not in ('false', 'no', '0')

    return HostConfig(**options)


def _coerce(value: Any, kind: type, name: str, path: Path, hostname: str) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"option '{name}' for host '{hostname}' must be a number, got {value!r}",
            file_path=str(path),
        )
