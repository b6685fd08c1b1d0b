"""Scoped sessions: open, authenticate, use, always close.

These helpers are the safe way of using simplessh from code that prefers
exceptions to inspecting results::

    with password_session("server.example.com", 22, "admin", "secret") as session:
        result = exec_command(session, "uptime").unwrap()

Any failure while opening or authenticating raises SimpleSSHError. The session
is closed on every exit path.
"""

from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from simplessh.auth import authenticate_key
from simplessh.auth import authenticate_password
from simplessh.connection.runtime import EngineRuntime
from simplessh.connection.session import open_session
from simplessh.connection.session import Session
from simplessh.result import Either


@contextmanager
def _scoped_session(
    host: str,
    port: int,
    timeout: int | None,
    runtime: EngineRuntime | None,
    authenticate: Callable[[Session], Either[Session]],
) -> Iterator[Session]:
    session = open_session(host, port, timeout, runtime=runtime).unwrap()
    try:
        authenticate(session).unwrap()
        yield session
    finally:
        session.close()


def password_session(
    host: str,
    port: int,
    username: str,
    password: str,
    timeout: int | None = None,
    runtime: EngineRuntime | None = None,
):
    """Open a session authenticated with a username / password pair.

    Raises:
        SimpleSSHError: If the session cannot be opened or authenticated.
    """
    return _scoped_session(
        host,
        port,
        timeout,
        runtime,
        lambda session: authenticate_password(session, username, password),
    )


def key_session(
    host: str,
    port: int,
    username: str,
    public_key_path: str | Path | None,
    private_key_path: str | Path,
    passphrase: str = "",
    timeout: int | None = None,
    runtime: EngineRuntime | None = None,
):
    """Open a session authenticated with a key pair stored in files.

    Raises:
        SimpleSSHError: If the session cannot be opened or authenticated.
    """
    return _scoped_session(
        host,
        port,
        timeout,
        runtime,
        lambda session: authenticate_key(session, username, public_key_path, private_key_path, passphrase),
    )
