from simplessh.connection.base import BlockDirection
from simplessh.connection.base import EngineError
from simplessh.connection.base import RetryDeadlineExceeded
from simplessh.connection.base import SSHEngineChannel
from simplessh.connection.base import SSHEngineSession
from simplessh.connection.base import WOULD_BLOCK
from simplessh.connection.runtime import default_runtime
from simplessh.connection.runtime import EngineRuntime
from simplessh.connection.session import close_session
from simplessh.connection.session import open_session
from simplessh.connection.session import Session


__all__ = [
    "BlockDirection",
    "close_session",
    "default_runtime",
    "EngineError",
    "EngineRuntime",
    "open_session",
    "RetryDeadlineExceeded",
    "Session",
    "SSHEngineChannel",
    "SSHEngineSession",
    "WOULD_BLOCK",
]
