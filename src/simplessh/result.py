"""Either-style return values shared by every public operation.

Operations never raise for expected failures. They return either a
:class:`Success` holding the value or a :class:`Failure` tagged with an
:class:`ErrorKind`; callers inspect the tag before touching the value::

    opened = open_session("server.example.com", 22, 5)
    if isinstance(opened, Failure):
        print(f"could not connect: {opened.error}")
    else:
        session = opened.value

Callers who prefer exceptions can call ``unwrap()`` on either variant.
"""

import typing as t

from dataclasses import dataclass
from enum import StrEnum


T = t.TypeVar("T")


class ErrorKind(StrEnum):
    CONNECT = "CONNECT"
    INIT = "INIT"
    HANDSHAKE = "HANDSHAKE"
    AUTHENTICATION = "AUTHENTICATION"
    CHANNEL_OPEN = "CHANNEL_OPEN"
    CHANNEL_EXEC = "CHANNEL_EXEC"
    READ = "READ"
    WRITE = "WRITE"


class SimpleSSHError(Exception):
    """Raised when a :class:`Failure` is unwrapped."""

    def __init__(self, error: ErrorKind, transferred: int | None = None):
        self.error = error
        self.transferred = transferred
        message = f"SSH operation failed: {error}"
        if transferred is not None:
            message += f" (transferred {transferred} bytes)"
        super().__init__(message)


@dataclass(frozen=True)
class Success(t.Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: ErrorKind
    # Bytes already accepted by the remote end when an upload failed
    transferred: int | None = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> t.NoReturn:
        raise SimpleSSHError(self.error, self.transferred)


Either: t.TypeAlias = Success[T] | Failure
