"""SSH session lifecycle: connect, handshake, close."""

import logging
import socket
import time

from collections.abc import Callable
from typing import TypeVar

from simplessh.audit import Event
from simplessh.audit import log_operation
from simplessh.audit import log_ssh_connect
from simplessh.audit import Status
from simplessh.config import CONFIG
from simplessh.connection.base import EngineError
from simplessh.connection.base import SSHEngineSession
from simplessh.connection.base import WOULD_BLOCK
from simplessh.connection.base import WouldBlock
from simplessh.connection.connector import connect
from simplessh.connection.runtime import default_runtime
from simplessh.connection.runtime import EngineHandle
from simplessh.connection.runtime import EngineRuntime
from simplessh.connection.waiter import drive
from simplessh.connection.waiter import wait_socket
from simplessh.result import Either
from simplessh.result import ErrorKind
from simplessh.result import Failure
from simplessh.result import Success


logger = logging.getLogger("simplessh")

T = TypeVar("T")

DISCONNECT_REASON = "simplessh: closing session"


class Session:
    """
    One connected socket plus one engine session.

    Sessions are created by :func:`open_session` and must be closed exactly
    once with :func:`close_session` (or by leaving a ``with`` block). A session
    is used by one caller at a time; channel operations on it are sequential.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sock: socket.socket,
        handle: EngineHandle,
        poll_interval: float | None = None,
        retry_deadline: float | None = None,
    ):
        self.host = host
        self.port = port
        self.sock = sock
        self.engine: SSHEngineSession | None = None
        self.username: str | None = None
        self.poll_interval = CONFIG.poll_interval if poll_interval is None else poll_interval
        self.retry_deadline = CONFIG.retry_deadline if retry_deadline is None else retry_deadline
        self._handle = handle
        self._closed = False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        user = f"{self.username}@" if self.username else ""
        return f"<Session {user}{self.host}:{self.port} {state}>"

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def wait(self) -> bool:
        """Wait for the socket in the direction the engine is blocked on."""
        return wait_socket(self.sock, self.engine, self.poll_interval)

    def drive(self, operation: Callable[[], T | WouldBlock]) -> T:
        """Run an engine operation to completion, waiting on the socket between attempts."""
        return drive(operation, wait=self.wait, deadline=self.retry_deadline)

    def close(self) -> None:
        """
        Tear the session down: disconnect and free the engine session, then
        close the socket, then release the engine runtime.
        """
        if self._closed:
            logger.debug(f"{Event.SSH_CLOSE}: {self.host}:{self.port} already closed")
            return

        self._closed = True

        if self.engine is not None:
            try:
                if self.engine.disconnect(DISCONNECT_REASON) is WOULD_BLOCK:
                    logger.debug(f"{Event.SSH_CLOSE}: disconnect message to {self.host} would block, not sent")
            except EngineError as e:
                logger.debug(f"{Event.SSH_CLOSE}: disconnect from {self.host} failed: {e}")
            self.engine.free()
            self.engine = None

        self.sock.close()
        self._handle.release()
        logger.debug(f"{Event.SSH_CLOSE}: {self.host}:{self.port}")


@log_operation
def open_session(
    host: str,
    port: int = 22,
    timeout: float | None = None,
    runtime: EngineRuntime | None = None,
) -> Either[Session]:
    """
    Open an SSH session. The next step is to authenticate.

    Args:
        host: Remote hostname or address
        port: Remote SSH port
        timeout: Seconds allowed for the TCP connect, also used as the
            engine's per-operation timeout. Defaults to CONFIG.connect_timeout.
        runtime: Engine runtime to use. Defaults to the shared libssh2 runtime.

    Returns:
        Success(Session), or Failure with CONNECT, INIT or HANDSHAKE.
    """
    if timeout is None:
        timeout = CONFIG.connect_timeout
    start_time = time.time()

    connected = connect(host, port, timeout)
    if isinstance(connected, Failure):
        log_ssh_connect(host, port, status=Status.failed, error=connected.error)
        return connected

    handle = (runtime or default_runtime()).acquire()
    session = Session(host, port, connected.value, handle)

    try:
        session.engine = handle.new_session()
        session.engine.set_blocking(False)
        session.engine.set_timeout(int(timeout * 1000))
    except EngineError as e:
        logger.error(f"Unable to initialise SSH engine for {host}: {e}")
        session.close()
        log_ssh_connect(host, port, status=Status.failed, error=ErrorKind.INIT)
        return Failure(ErrorKind.INIT)

    try:
        session.drive(lambda: session.engine.handshake(session.sock))
    except EngineError as e:
        logger.debug(f"SSH_HANDSHAKE: {host}:{port} failed: {e}")
        session.close()
        log_ssh_connect(host, port, status=Status.failed, error=ErrorKind.HANDSHAKE)
        return Failure(ErrorKind.HANDSHAKE)

    log_ssh_connect(host, port, status=Status.success, duration=time.time() - start_time)
    return Success(session)


def close_session(session: Session) -> None:
    """Close a session opened with :func:`open_session`."""
    session.close()
