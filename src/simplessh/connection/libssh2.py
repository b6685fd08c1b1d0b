"""SSH engine backed by libssh2 through the ssh2-python binding.

ssh2-python reports libssh2 return codes in two ways: ``LIBSSH2_ERROR_EAGAIN``
is returned as a plain integer while every other negative code is raised as an
``SSH2Error`` subclass. This module folds both into the engine contract of
:mod:`simplessh.connection.base`.
"""

import logging
import socket
import time

from collections.abc import Iterator
from contextlib import contextmanager

from ssh2.error_codes import LIBSSH2_ERROR_EAGAIN
from ssh2.exceptions import SSH2Error
from ssh2.session import LIBSSH2_SESSION_BLOCK_INBOUND
from ssh2.session import LIBSSH2_SESSION_BLOCK_OUTBOUND
from ssh2.session import Session

from simplessh.connection.base import BlockDirection
from simplessh.connection.base import EngineError
from simplessh.connection.base import WOULD_BLOCK
from simplessh.connection.base import WouldBlock


logger = logging.getLogger("simplessh")


@contextmanager
def _engine_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SSH2Error as e:
        raise EngineError(f"{operation} failed: {e!r}") from e


def _status(rc: int, operation: str) -> None | WouldBlock:
    if rc == LIBSSH2_ERROR_EAGAIN:
        return WOULD_BLOCK
    if rc < 0:
        raise EngineError(f"{operation} failed with code {rc}")
    return None


class Libssh2Channel:
    """libssh2 channel with the engine contract applied."""

    def __init__(self, channel):
        self._channel = channel

    def execute(self, command: str) -> None | WouldBlock:
        with _engine_errors("exec"):
            return _status(self._channel.execute(command), "exec")

    def _read(self, stream: str, size: int) -> bytes | WouldBlock:
        reader = self._channel.read if stream == "stdout" else self._channel.read_stderr
        with _engine_errors(f"read {stream}"):
            rc, data = reader(size)
        if rc == LIBSSH2_ERROR_EAGAIN:
            return WOULD_BLOCK
        if rc < 0:
            raise EngineError(f"read {stream} failed with code {rc}")
        return data[:rc] if rc else b""

    def read(self, size: int) -> bytes | WouldBlock:
        return self._read("stdout", size)

    def read_stderr(self, size: int) -> bytes | WouldBlock:
        return self._read("stderr", size)

    def write(self, data: bytes) -> int | WouldBlock:
        with _engine_errors("write"):
            rc, written = self._channel.write(data)
        if written:
            return written
        if rc == LIBSSH2_ERROR_EAGAIN:
            return WOULD_BLOCK
        if rc < 0:
            raise EngineError(f"write failed with code {rc}")
        # Nothing accepted: the remote window is full
        return WOULD_BLOCK if data else 0

    def send_eof(self) -> None | WouldBlock:
        with _engine_errors("send eof"):
            return _status(self._channel.send_eof(), "send eof")

    def close(self) -> None | WouldBlock:
        with _engine_errors("close channel"):
            return _status(self._channel.close(), "close channel")

    def free(self) -> None | WouldBlock:
        # ssh2-python frees the libssh2 channel when the last reference goes
        self._channel = None
        return None

    def get_exit_status(self) -> int:
        return self._channel.get_exit_status()

    def get_exit_signal(self) -> str | None:
        with _engine_errors("exit signal"):
            rc, signal, *_ = self._channel.get_exit_signal()
        if rc < 0 or not signal:
            return None
        return signal.decode("utf-8", errors="replace") if isinstance(signal, bytes) else signal


class Libssh2Session:
    """libssh2 session with the engine contract applied."""

    def __init__(self):
        try:
            self._session = Session()
        except (SSH2Error, MemoryError) as e:
            raise EngineError(f"Unable to allocate libssh2 session: {e!r}") from e

    def set_blocking(self, blocking: bool) -> None:
        with _engine_errors("set blocking"):
            self._session.set_blocking(blocking)

    def set_timeout(self, milliseconds: int) -> None:
        with _engine_errors("set timeout"):
            self._session.set_timeout(milliseconds)

    def handshake(self, sock: socket.socket) -> None | WouldBlock:
        with _engine_errors("handshake"):
            return _status(self._session.handshake(sock), "handshake")

    def userauth_password(self, username: str, password: str) -> None | WouldBlock:
        with _engine_errors("password authentication"):
            rc = self._session.userauth_password(username, password)
        return _status(rc, "password authentication")

    def userauth_publickey_fromfile(
        self,
        username: str,
        public_key_path: str | None,
        private_key_path: str,
        passphrase: str,
    ) -> None | WouldBlock:
        with _engine_errors("key file authentication"):
            rc = self._session.userauth_publickey_fromfile(
                username, private_key_path, passphrase=passphrase, publickey=public_key_path
            )
        return _status(rc, "key file authentication")

    def userauth_publickey_frommemory(
        self,
        username: str,
        public_key: bytes | None,
        private_key: bytes,
        passphrase: str,
    ) -> None | WouldBlock:
        with _engine_errors("in-memory key authentication"):
            rc = self._session.userauth_publickey_frommemory(
                username, private_key, passphrase=passphrase, publickeyfiledata=public_key
            )
        return _status(rc, "in-memory key authentication")

    def block_directions(self) -> BlockDirection:
        directions = self._session.block_directions()
        result = BlockDirection.NONE
        if directions & LIBSSH2_SESSION_BLOCK_INBOUND:
            result |= BlockDirection.INBOUND
        if directions & LIBSSH2_SESSION_BLOCK_OUTBOUND:
            result |= BlockDirection.OUTBOUND
        return result

    def _channel(self, channel, operation: str) -> Libssh2Channel | WouldBlock:
        # A NULL channel comes back as the session's last error code
        if isinstance(channel, int):
            if channel == LIBSSH2_ERROR_EAGAIN:
                return WOULD_BLOCK
            raise EngineError(f"{operation} failed with code {channel}")
        return Libssh2Channel(channel)

    def open_channel(self) -> Libssh2Channel | WouldBlock:
        with _engine_errors("open channel"):
            channel = self._session.open_session()
        return self._channel(channel, "open channel")

    def scp_send(self, path: str, mode: int, size: int) -> Libssh2Channel | WouldBlock:
        now = int(time.time())
        with _engine_errors("scp send"):
            channel = self._session.scp_send64(path, mode, size, now, now)
        return self._channel(channel, "scp send")

    def disconnect(self, reason: str) -> None | WouldBlock:
        # ssh2-python always sends its own description string
        logger.debug(f"SSH_DISCONNECT: {reason}")
        with _engine_errors("disconnect"):
            return _status(self._session.disconnect(), "disconnect")

    def free(self) -> None:
        self._session = None
