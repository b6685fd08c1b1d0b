"""Shared pytest fixtures for simplessh tests.

Testing Strategy
----------------
The SSH engine is replaced by scripted fakes implementing the engine
protocols. Each engine call pops the next scripted outcome:

- ``WOULD_BLOCK`` makes the call answer "would block",
- an exception instance is raised (usually ``EngineError``),
- anything else is returned as the call's value.

When a script is exhausted the call succeeds. Sessions use a real
``socket.socketpair()`` so readiness waits run against a real descriptor;
the fake engine reports OUTBOUND by default, which a socketpair satisfies
immediately.
"""

import socket

from collections.abc import Iterator

import pytest

from simplessh.connection.base import BlockDirection
from simplessh.connection.base import WOULD_BLOCK
from simplessh.connection.runtime import EngineRuntime
from simplessh.connection.session import Session


def _next(script: list, default=None):
    outcome = script.pop(0) if script else default
    if isinstance(outcome, BaseException):
        raise outcome
    return outcome


class FakeChannel:
    def __init__(
        self,
        stdout: list | None = None,
        stderr: list | None = None,
        exit_status: int = 0,
        exit_signal: str | None = None,
    ):
        self.stdout = list(stdout or [])
        self.stderr = list(stderr or [])
        self.exit_status = exit_status
        self.exit_signal = exit_signal
        self.execute_script: list = []
        self.write_script: list = []
        self.send_eof_script: list = []
        self.close_script: list = []
        self.executed: list[str] = []
        self.read_sizes: list[int] = []
        self.write_sizes: list[int] = []
        self.received = bytearray()
        self.calls: list[str] = []
        self.freed = False

    def execute(self, command):
        self.calls.append("execute")
        outcome = _next(self.execute_script)
        if outcome is not WOULD_BLOCK:
            self.executed.append(command)
        return outcome

    def _read(self, stream: list, size: int):
        self.read_sizes.append(size)
        outcome = _next(stream, b"")
        if isinstance(outcome, bytes) and len(outcome) > size:
            stream.insert(0, outcome[size:])
            outcome = outcome[:size]
        return outcome

    def read(self, size):
        return self._read(self.stdout, size)

    def read_stderr(self, size):
        return self._read(self.stderr, size)

    def write(self, data):
        self.write_sizes.append(len(data))
        outcome = _next(self.write_script, len(data))
        if outcome is WOULD_BLOCK:
            return outcome
        accepted = min(outcome, len(data))
        self.received.extend(data[:accepted])
        return accepted

    def send_eof(self):
        self.calls.append("send_eof")
        return _next(self.send_eof_script)

    def close(self):
        self.calls.append("close")
        return _next(self.close_script)

    def free(self):
        self.calls.append("free")
        self.freed = True

    def get_exit_status(self):
        return self.exit_status

    def get_exit_signal(self):
        return self.exit_signal


class FakeEngine:
    def __init__(self):
        self.directions = BlockDirection.OUTBOUND
        self.blocking: bool | None = None
        self.timeout: int | None = None
        self.handshake_script: list = []
        self.auth_script: list = []
        self.open_channel_script: list = []
        self.scp_send_script: list = []
        self.disconnect_script: list = []
        self.channels: list[FakeChannel] = []
        self.calls: list[tuple] = []
        self.freed = False

    def add_channel(self, **kwargs) -> FakeChannel:
        """Queue a channel for the next open_channel or scp_send call."""
        channel = FakeChannel(**kwargs)
        self.channels.append(channel)
        return channel

    def _channel(self, script: list):
        outcome = _next(script)
        if outcome is not None:
            return outcome
        return self.channels.pop(0) if self.channels else FakeChannel()

    def set_blocking(self, blocking):
        self.blocking = blocking

    def set_timeout(self, milliseconds):
        self.timeout = milliseconds

    def handshake(self, sock):
        self.calls.append(("handshake", sock))
        return _next(self.handshake_script)

    def userauth_password(self, username, password):
        self.calls.append(("password", username, password))
        return _next(self.auth_script)

    def userauth_publickey_fromfile(self, username, public_key_path, private_key_path, passphrase):
        self.calls.append(("key-file", username, public_key_path, private_key_path, passphrase))
        return _next(self.auth_script)

    def userauth_publickey_frommemory(self, username, public_key, private_key, passphrase):
        self.calls.append(("key-memory", username, public_key, private_key, passphrase))
        return _next(self.auth_script)

    def block_directions(self):
        return self.directions

    def open_channel(self):
        self.calls.append(("open_channel",))
        return self._channel(self.open_channel_script)

    def scp_send(self, path, mode, size):
        self.calls.append(("scp_send", path, mode, size))
        return self._channel(self.scp_send_script)

    def disconnect(self, reason):
        self.calls.append(("disconnect", reason))
        return _next(self.disconnect_script)

    def free(self):
        self.freed = True


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def runtime(engine) -> EngineRuntime:
    return EngineRuntime(lambda: engine, name="fake")


@pytest.fixture
def sock_pair() -> Iterator[tuple[socket.socket, socket.socket]]:
    local, remote = socket.socketpair()
    yield local, remote
    local.close()
    remote.close()


@pytest.fixture
def session(engine, runtime, sock_pair) -> Iterator[Session]:
    """An opened session on a fake engine, as left by a successful handshake."""
    session = Session("testhost", 22, sock_pair[0], runtime.acquire(), poll_interval=0.05)
    session.engine = engine
    yield session
    if not session.closed:
        session.close()
