"""TCP connection establishment with a connect timeout."""

import errno
import logging
import selectors
import socket
import time

from simplessh.result import Either
from simplessh.result import ErrorKind
from simplessh.result import Failure
from simplessh.result import Success


logger = logging.getLogger("simplessh")

_IN_PROGRESS = {0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY}


def _wait_connected(sock: socket.socket, timeout: float) -> bool:
    """Wait until a non-blocking connect settles, then report whether it succeeded."""
    with selectors.DefaultSelector() as selector:
        selector.register(sock, selectors.EVENT_WRITE)
        if not selector.select(max(timeout, 0)):
            return False

    return sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR) == 0


def _try_address(family, socktype, proto, address, timeout: float) -> socket.socket | None:
    try:
        sock = socket.socket(family, socktype, proto)
    except OSError as e:
        logger.debug(f"SOCKET_CREATE_FAILED: {address} | error={e}")
        return None

    try:
        sock.setblocking(False)
        rc = sock.connect_ex(address)
        if rc in _IN_PROGRESS and _wait_connected(sock, timeout):
            sock.setblocking(True)
            return sock
        logger.debug(f"CONNECT_FAILED: {address} | code={rc}")
    except OSError as e:
        logger.debug(f"CONNECT_FAILED: {address} | error={e}")

    sock.close()
    return None


def connect(host: str, port: int, timeout: float) -> Either[socket.socket]:
    """
    Connect a TCP socket to the first reachable address of a host.

    Every resolved address (IPv4 or IPv6) is tried in order. The timeout is an
    overall deadline shared by all candidates. Sockets opened for candidates
    that fail are closed before moving on.

    Args:
        host: Hostname or address literal
        port: TCP port
        timeout: Seconds to wait for the connection to be established

    Returns:
        Success holding a connected socket in blocking mode, or
        Failure(CONNECT) when resolution or every candidate fails.
    """
    deadline = time.monotonic() + timeout

    try:
        candidates = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        logger.debug(f"RESOLVE_FAILED: {host}:{port} | error={e}")
        return Failure(ErrorKind.CONNECT)

    for family, socktype, proto, _, address in candidates:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break

        sock = _try_address(family, socktype, proto, address, remaining)
        if sock is not None:
            logger.debug(f"TCP_CONNECTED: {host}:{port} | address={address[0]}")
            return Success(sock)

    logger.debug(f"TCP_UNREACHABLE: {host}:{port} | candidates={len(candidates)}")
    return Failure(ErrorKind.CONNECT)
