"""Protocol definitions for the non-blocking SSH engine.

The engine does the SSH wire protocol (key exchange, channel multiplexing,
SCP framing). Everything above it only relies on the contract defined here:

* an operation that cannot make progress without waiting on the socket
  returns :data:`WOULD_BLOCK` instead of blocking,
* a hard failure raises :class:`EngineError`,
* anything else is the operation's value.

This enables a clean separation between the libssh2 adapter and the
scripted engines used in tests.
"""

import socket

from enum import Enum
from enum import IntFlag
from typing import Literal
from typing import Protocol
from typing import runtime_checkable
from typing import TypeAlias


class _WouldBlock(Enum):
    WOULD_BLOCK = "would-block"

    def __repr__(self) -> str:
        return "WOULD_BLOCK"


WOULD_BLOCK = _WouldBlock.WOULD_BLOCK
WouldBlock: TypeAlias = Literal[_WouldBlock.WOULD_BLOCK]


class BlockDirection(IntFlag):
    """Socket direction(s) the engine is waiting on."""

    NONE = 0
    INBOUND = 1
    OUTBOUND = 2


class EngineError(Exception):
    """A hard failure reported by the SSH engine."""


class RetryDeadlineExceeded(EngineError):
    """An operation kept answering "would block" past the retry deadline."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"Operation still blocked after {deadline}s")


@runtime_checkable
class SSHEngineChannel(Protocol):
    """One channel of an engine session, used for one command or one upload."""

    def execute(self, command: str) -> None | WouldBlock:
        """Request execution of a command on the channel."""
        ...

    def read(self, size: int) -> bytes | WouldBlock:
        """Read up to ``size`` bytes of stdout. ``b""`` means end of stream."""
        ...

    def read_stderr(self, size: int) -> bytes | WouldBlock:
        """Read up to ``size`` bytes of stderr. ``b""`` means end of stream."""
        ...

    def write(self, data: bytes) -> int | WouldBlock:
        """Write data, returning how many bytes the engine accepted."""
        ...

    def send_eof(self) -> None | WouldBlock: ...

    def close(self) -> None | WouldBlock: ...

    def free(self) -> None | WouldBlock: ...

    def get_exit_status(self) -> int: ...

    def get_exit_signal(self) -> str | None: ...


@runtime_checkable
class SSHEngineSession(Protocol):
    """Handle on one engine session bound to one connected socket."""

    def set_blocking(self, blocking: bool) -> None: ...

    def set_timeout(self, milliseconds: int) -> None:
        """Set the engine's own timeout for a single blocking operation."""
        ...

    def handshake(self, sock: socket.socket) -> None | WouldBlock: ...

    def userauth_password(self, username: str, password: str) -> None | WouldBlock: ...

    def userauth_publickey_fromfile(
        self,
        username: str,
        public_key_path: str | None,
        private_key_path: str,
        passphrase: str,
    ) -> None | WouldBlock: ...

    def userauth_publickey_frommemory(
        self,
        username: str,
        public_key: bytes | None,
        private_key: bytes,
        passphrase: str,
    ) -> None | WouldBlock: ...

    def block_directions(self) -> BlockDirection:
        """Return the direction(s) the last would-block was waiting on."""
        ...

    def open_channel(self) -> SSHEngineChannel | WouldBlock: ...

    def scp_send(self, path: str, mode: int, size: int) -> SSHEngineChannel | WouldBlock:
        """Open an SCP upload channel for ``size`` bytes at ``path``."""
        ...

    def disconnect(self, reason: str) -> None | WouldBlock: ...

    def free(self) -> None: ...
