"""Process-wide engine runtime with reference-counted acquisition.

The SSH engine needs a global initialisation before the first session and a
matching cleanup after the last one. Instead of ambient global calls, every
session holds an :class:`EngineHandle` obtained from :meth:`EngineRuntime.acquire`
and releases it exactly once, on every exit path.
"""

import logging
import threading

from collections.abc import Callable
from typing import Optional

from simplessh.connection.base import SSHEngineSession


logger = logging.getLogger("simplessh")

SessionFactory = Callable[[], SSHEngineSession]


class EngineHandle:
    """A lease on an :class:`EngineRuntime`, usable as a context manager."""

    def __init__(self, runtime: "EngineRuntime"):
        self._runtime = runtime
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def new_session(self) -> SSHEngineSession:
        """Allocate a fresh engine session.

        Raises:
            EngineError: If the engine cannot allocate a session.
        """
        if self._released:
            raise RuntimeError("Engine handle used after release")
        return self._runtime.factory()

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._runtime._release()

    def __enter__(self) -> "EngineHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class EngineRuntime:
    """Counts live users of one engine implementation."""

    def __init__(self, factory: SessionFactory, name: str = "engine"):
        self.factory = factory
        self.name = name
        self._users = 0
        self._lock = threading.Lock()

    @property
    def users(self) -> int:
        return self._users

    def acquire(self) -> EngineHandle:
        with self._lock:
            self._users += 1
            if self._users == 1:
                logger.debug(f"ENGINE_INIT: {self.name}")
        return EngineHandle(self)

    def _release(self) -> None:
        with self._lock:
            self._users -= 1
            if self._users == 0:
                logger.debug(f"ENGINE_EXIT: {self.name}")


_default_runtime: Optional[EngineRuntime] = None


def default_runtime() -> EngineRuntime:
    """Return the shared libssh2 runtime, importing the binding on first use."""
    global _default_runtime

    if _default_runtime is None:
        from simplessh.connection.libssh2 import Libssh2Session

        _default_runtime = EngineRuntime(Libssh2Session, name="libssh2")

    return _default_runtime
