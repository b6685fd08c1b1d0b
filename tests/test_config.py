"""Unit tests for simplessh.config module"""

import sys

from pathlib import Path

import pytest

from pydantic import SecretStr
from pydantic import ValidationError

from simplessh.config import CliArgs
from simplessh.config import Config


class TestConfig:
    """Test cases for Config class"""

    def test_defaults(self, monkeypatch):
        for name in ("LOG_LEVEL", "CONNECT_TIMEOUT", "POLL_INTERVAL", "RETRY_DEADLINE", "TRANSFER_CHUNK_SIZE"):
            monkeypatch.delenv(f"SIMPLESSH_{name}", raising=False)

        config = Config()

        assert config.log_level == "INFO"
        assert config.connect_timeout == 10
        assert config.poll_interval == 10.0
        assert config.retry_deadline is None
        assert config.transfer_chunk_size == 16384

    def test_custom_values(self):
        """Test that Config accepts custom values"""
        config = Config(
            user="customuser",
            log_dir=Path("/var/log/custom"),
            log_level="DEBUG",
            log_retention_days=30,
            ssh_key_path=Path("/home/user/.ssh/id_ed25519"),
            key_passphrase=SecretStr("secret"),
            search_for_ssh_key=True,
            connect_timeout=3,
            retry_deadline=30,
        )

        assert config.user == "customuser"
        assert config.log_dir == Path("/var/log/custom")
        assert config.log_level == "DEBUG"
        assert config.log_retention_days == 30
        assert config.ssh_key_path == Path("/home/user/.ssh/id_ed25519")
        assert config.key_passphrase.get_secret_value() == "secret"
        assert config.search_for_ssh_key is True
        assert config.connect_timeout == 3
        assert config.retry_deadline == 30.0

    def test_env_var_override_log_level(self, monkeypatch):
        """Test that SIMPLESSH_LOG_LEVEL environment variable overrides default"""
        monkeypatch.setenv("SIMPLESSH_LOG_LEVEL", "WARNING")

        assert Config().log_level == "WARNING"

    def test_env_var_override_connection_settings(self, monkeypatch):
        monkeypatch.setenv("SIMPLESSH_CONNECT_TIMEOUT", "4")
        monkeypatch.setenv("SIMPLESSH_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("SIMPLESSH_RETRY_DEADLINE", "60")
        monkeypatch.setenv("SIMPLESSH_TRANSFER_CHUNK_SIZE", "4096")

        config = Config()

        assert config.connect_timeout == 4
        assert config.poll_interval == 0.5
        assert config.retry_deadline == 60.0
        assert config.transfer_chunk_size == 4096

    def test_env_var_override_ssh_key_path(self, monkeypatch):
        """Test that SIMPLESSH_SSH_KEY_PATH environment variable works"""
        monkeypatch.setenv("SIMPLESSH_SSH_KEY_PATH", "/home/user/.ssh/custom_key")

        assert Config().ssh_key_path == Path("/home/user/.ssh/custom_key")

    def test_env_ignore_empty(self, monkeypatch):
        """Test that empty environment variables are ignored"""
        monkeypatch.setenv("SIMPLESSH_LOG_LEVEL", "")

        assert Config().log_level == "INFO"

    @pytest.mark.parametrize(("value", "expected"), [("debug", "DEBUG"), ("ERROR", "ERROR"), ("WaRnInG", "WARNING")])
    def test_normalize_log_level(self, value, expected):
        """Test that log_level is converted to uppercase"""
        assert Config(log_level=value).log_level == expected

    @pytest.mark.parametrize("value", ["0", "-5", "65536"])
    def test_transfer_chunk_size_bounds(self, monkeypatch, value):
        """Test that the upload chunk size stays within 1 byte and 16 KiB"""
        monkeypatch.setenv("SIMPLESSH_TRANSFER_CHUNK_SIZE", value)

        with pytest.raises(ValidationError):
            Config()

    def test_transfer_chunk_size_upper_limit_accepted(self):
        assert Config(transfer_chunk_size=16384).transfer_chunk_size == 16384

    def test_effective_passphrase(self):
        assert Config(key_passphrase=SecretStr("s3cret")).effective_passphrase == "s3cret"

    def test_effective_passphrase_unset(self, monkeypatch):
        monkeypatch.delenv("SIMPLESSH_KEY_PASSPHRASE", raising=False)

        assert Config().effective_passphrase == ""

    def test_passphrase_not_in_repr(self):
        config = Config(key_passphrase=SecretStr("s3cret"))

        assert "s3cret" not in repr(config)

    def test_model_config_settings(self):
        """Test that the environment prefix is kept stable"""
        assert Config.model_config["env_prefix"] == "SIMPLESSH_"  # pyright: ignore[reportTypedDictNotRequiredAccess]


class TestCliArgs:
    """Test parsing of the command line."""

    @pytest.fixture
    def argv(self, monkeypatch):
        def set_argv(*args):
            monkeypatch.setattr(sys, "argv", ["simplessh", *args])

        for name in ("HOST", "PORT", "PASSWORD", "COMMAND", "MODE"):
            monkeypatch.delenv(f"SIMPLESSH_{name}", raising=False)

        return set_argv

    def test_minimal(self, argv):
        argv("--host", "server.example.com", "--command", "uptime")

        args = CliArgs()

        assert args.host == "server.example.com"
        assert args.port == 22
        assert args.command == "uptime"
        assert args.password is None
        assert args.upload is None

    def test_upload_mode_is_octal(self, argv):
        argv("--host", "h", "--upload", "/tmp/file", "--destination", "/srv/file", "--mode", "644")

        args = CliArgs()

        assert args.upload == Path("/tmp/file")
        assert args.destination == "/srv/file"
        assert args.mode == 0o644

    def test_password_from_environment(self, argv, monkeypatch):
        argv("--host", "h")
        monkeypatch.setenv("SIMPLESSH_PASSWORD", "hunter2")

        args = CliArgs()

        assert args.password.get_secret_value() == "hunter2"

    def test_port_out_of_range(self, argv):
        argv()

        with pytest.raises(ValidationError):
            CliArgs(host="h", port=70000)

    def test_integer_mode_kept(self, argv):
        argv()

        assert CliArgs(host="h", mode=0o600).mode == 0o600
