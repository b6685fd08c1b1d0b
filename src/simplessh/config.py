"""Settings for simplessh"""

import getpass

from pathlib import Path

from pydantic import Field
from pydantic import field_validator
from pydantic import SecretStr
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from simplessh.utils.types import Port
from simplessh.utils.types import UpperCase


class Config(BaseSettings):
    # The `_` is required in the env_prefix, otherwise, pydantic would
    # interpret the prefix as `SIMPLESSHLOG_DIR`, instead of `SIMPLESSH_LOG_DIR`
    model_config = SettingsConfigDict(env_prefix="SIMPLESSH_", env_ignore_empty=True)

    user: str = getpass.getuser()

    # Logging configuration
    log_dir: Path | None = None
    log_level: UpperCase = "INFO"
    log_retention_days: int = 10

    # SSH key configuration
    ssh_key_path: Path | None = None
    key_passphrase: SecretStr | None = None
    search_for_ssh_key: bool = False

    # Connection establishment, in seconds. Also used as the engine's own
    # operation timeout once the session exists.
    connect_timeout: int = 10

    # Ceiling of a single readiness wait while the engine would block
    poll_interval: float = 10.0

    # Total time a single engine operation may keep answering "would block".
    # None leaves the bound to the engine's operation timeout.
    retry_deadline: float | None = None

    # Largest slice of an upload handed to the engine in one write
    transfer_chunk_size: int = Field(default=16 * 1024, gt=0, le=16 * 1024)

    @property
    def effective_passphrase(self) -> str:
        """Return the configured key passphrase, or an empty string when unset."""
        return self.key_passphrase.get_secret_value() if self.key_passphrase else ""


class CliArgs(BaseSettings):
    """Arguments of the ``simplessh`` command.

    Every argument can also come from a ``SIMPLESSH_`` environment variable,
    which keeps passwords off the command line.
    """

    model_config = SettingsConfigDict(
        env_prefix="SIMPLESSH_",
        env_ignore_empty=True,
        cli_parse_args=True,
        cli_prog_name="simplessh",
        extra="ignore",
    )

    host: str
    port: Port = 22
    username: str = getpass.getuser()
    password: SecretStr | None = None
    key_path: Path | None = None
    passphrase: SecretStr | None = None
    timeout: int | None = None

    command: str | None = None
    upload: Path | None = None
    destination: str | None = None
    mode: int | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def parse_octal_mode(cls, value):
        """Read permission bits the way chmod does: ``644`` means ``0o644``."""
        if isinstance(value, str):
            return int(value, 8)
        return value


CONFIG = Config()
