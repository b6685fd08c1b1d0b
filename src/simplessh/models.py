from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


# Exit code reported when the remote exit status could not be determined
UNKNOWN_EXIT_CODE = 127


class CommandResult(BaseModel):
    """Outcome of a remote command."""

    model_config = ConfigDict(frozen=True)

    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int = UNKNOWN_EXIT_CODE
    exit_signal: str | None = Field(default=None, description="Name of the signal that terminated the command")

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and self.exit_signal is None

    def text(self, encoding: str = "utf-8") -> tuple[str, str]:
        """Return stdout and stderr decoded, replacing undecodable bytes."""
        return self.stdout.decode(encoding, errors="replace"), self.stderr.decode(encoding, errors="replace")
