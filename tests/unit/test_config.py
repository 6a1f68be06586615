"""
Tests for host configuration and the YAML inventory.
"""

import pytest

from steelcut.config import HostConfig, load_inventory
from steelcut.errors import ConfigError
from steelcut.transport.hostkeys import AcceptAnyPolicy, KnownHostsPolicy


class TestHostConfig:
    """Option handling on HostConfig."""

    def test_defaults(self):
        """Defaults match the documented values."""
        config = HostConfig()
        assert config.port == 22
        assert config.connect_timeout == 5.0
        assert config.command_timeout == 5.0
        assert isinstance(config.get_host_key_policy(), KnownHostsPolicy)

    def test_unknown_option(self):
        """Unknown option names are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            HostConfig.from_options(usr="deploy")
        assert "usr" in str(exc_info.value)

    def test_merged_keeps_other_fields(self):
        """merged keeps fields that are not overridden."""
        config = HostConfig(user="deploy", port=2222).merged(sudo_password="pw")
        assert (config.user, config.port, config.sudo_password) == ("deploy", 2222, "pw")

    def test_secrets_not_in_repr(self):
        """Secrets are kept out of repr."""
        text = repr(HostConfig(password="hunter2", sudo_password="s3cret", key_passphrase="kp"))
        assert "hunter2" not in text
        assert "s3cret" not in text

    def test_with_env_fills_unset_secrets(self):
        """Only unset secrets are taken from the environment."""
        env = {"STEELCUT_PASSWORD": "from-env", "STEELCUT_SUDO_PASSWORD": "sudo-env"}
        config = HostConfig(sudo_password="explicit").with_env(env)

        assert config.password == "from-env"
        assert config.sudo_password == "explicit"
        assert config.key_passphrase is None

    def test_insecure_policy(self):
        """Disabling host key checking accepts any key."""
        assert isinstance(HostConfig(host_key_checking=False).get_host_key_policy(), AcceptAnyPolicy)

    def test_auth_config(self):
        """AuthConfig carries the configured credentials."""
        auth = HostConfig(user="deploy", password="pw", key_files=["~/.ssh/deploy"]).auth_config()
        assert auth.user == "deploy"
        assert auth.password == "pw"
        assert auth.key_files == ("~/.ssh/deploy",)

    def test_login_user_defaults_to_current_user(self, monkeypatch):
        """The current login is the default user."""
        monkeypatch.setattr("steelcut.config.getpass.getuser", lambda: "alice")
        assert HostConfig().login_user == "alice"


class TestInventory:
    """Loading hosts from YAML."""

    def test_defaults_and_overrides(self, tmp_path):
        """Host entries override defaults and values are coerced."""
        path = tmp_path / "hosts.yml"
        path.write_text(
            "defaults:\n"
            "  user: deploy\n"
            "  command_timeout: 30\n"
            "hosts:\n"
            "  web1.example.com:\n"
            "    port: '2222'\n"
            "    host_key_checking: no\n"
            "  db1.example.com:\n"
            "    user: postgres\n"
            "    key_files: ~/.ssh/db\n"
            "  localhost:\n"
        )

        inventory = load_inventory(path)

        assert list(inventory) == ["web1.example.com", "db1.example.com", "localhost"]
        web1 = inventory["web1.example.com"]
        assert (web1.user, web1.port, web1.command_timeout) == ("deploy", 2222, 30.0)
        assert web1.host_key_checking is False
        db1 = inventory["db1.example.com"]
        assert db1.user == "postgres"
        assert db1.key_files == ("~/.ssh/db",)
        assert inventory["localhost"].user == "deploy"

    def test_empty_file(self, tmp_path):
        """An empty file is an empty inventory."""
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_inventory(path) == {}

    def test_missing_file(self, tmp_path):
        """A missing file is a ConfigError naming the file."""
        with pytest.raises(ConfigError) as exc_info:
            load_inventory(tmp_path / "nope.yml")
        assert exc_info.value.file_path.endswith("nope.yml")

    def test_invalid_yaml(self, tmp_path):
        """Invalid YAML is a ConfigError."""
        path = tmp_path / "bad.yml"
        path.write_text("hosts: [unclosed\n")
        with pytest.raises(ConfigError):
            load_inventory(path)

    def test_unknown_host_option(self, tmp_path):
        """Unknown host options are rejected."""
        path = tmp_path / "hosts.yml"
        path.write_text("hosts:\n  web1:\n    transport: paramiko\n")
        with pytest.raises(ConfigError) as exc_info:
            load_inventory(path)
        assert "transport" in str(exc_info.value)

    def test_bad_port(self, tmp_path):
        """A non-numeric port is rejected."""
        path = tmp_path / "hosts.yml"
        path.write_text("hosts:\n  web1:\n    port: ssh\n")
        with pytest.raises(ConfigError):
            load_inventory(path)
