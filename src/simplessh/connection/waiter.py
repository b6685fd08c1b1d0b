"""Socket readiness waiting and the retry-until-progress helper.

The engine runs in non-blocking mode, so any call may answer
:data:`~simplessh.connection.base.WOULD_BLOCK`. The response is always the
same: wait until the socket is ready in the direction the engine needs, then
issue the exact same call again. :func:`drive` implements that loop once for
every component.
"""

import logging
import selectors
import socket
import time

from collections.abc import Callable
from typing import TypeVar

from simplessh.config import CONFIG
from simplessh.connection.base import BlockDirection
from simplessh.connection.base import RetryDeadlineExceeded
from simplessh.connection.base import SSHEngineSession
from simplessh.connection.base import WOULD_BLOCK
from simplessh.connection.base import WouldBlock


logger = logging.getLogger("simplessh")

T = TypeVar("T")


def wait_socket(sock: socket.socket, engine: SSHEngineSession, ceiling: float | None = None) -> bool:
    """
    Block until the socket is ready in the direction(s) the engine is waiting on.

    The wait is bounded by ``ceiling`` (defaults to CONFIG.poll_interval). It is
    not a timeout: returning does not guarantee readiness and callers simply
    retry their operation.

    Returns:
        True if the socket became ready before the ceiling, False otherwise.
    """
    if ceiling is None:
        ceiling = CONFIG.poll_interval

    directions = engine.block_directions()
    events = 0
    if directions & BlockDirection.INBOUND:
        events |= selectors.EVENT_READ
    if directions & BlockDirection.OUTBOUND:
        events |= selectors.EVENT_WRITE

    if not events:
        return False

    with selectors.DefaultSelector() as selector:
        selector.register(sock, events)
        ready = bool(selector.select(ceiling))

    if not ready:
        logger.debug(f"SOCKET_WAIT: no readiness after {ceiling}s | directions={directions!r}")

    return ready


def drive(
    operation: Callable[[], T | WouldBlock],
    wait: Callable[[], object] | None = None,
    deadline: float | None = None,
) -> T:
    """
    Re-issue an engine operation until it stops answering "would block".

    Args:
        operation: Zero-argument callable performing one engine call
        wait: Called between attempts, usually a bound :func:`wait_socket`
        deadline: Seconds after which a still-blocked operation gives up.
            None retries for as long as the engine keeps answering.

    Returns:
        The operation's value.

    Raises:
        EngineError: The operation failed hard.
        RetryDeadlineExceeded: The deadline passed while still blocked.
    """
    started = time.monotonic()

    while True:
        outcome = operation()
        if outcome is not WOULD_BLOCK:
            return outcome

        if deadline is not None and time.monotonic() - started >= deadline:
            raise RetryDeadlineExceeded(deadline)

        if wait is not None:
            wait()
