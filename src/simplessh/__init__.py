"""simplessh - a synchronous SSH client over a non-blocking libssh2 engine."""

import importlib.metadata

from simplessh.auth import authenticate_key
from simplessh.auth import authenticate_memory
from simplessh.auth import authenticate_password
from simplessh.client import key_session
from simplessh.client import password_session
from simplessh.commands import exec_command
from simplessh.connection.session import close_session
from simplessh.connection.session import open_session
from simplessh.connection.session import Session
from simplessh.models import CommandResult
from simplessh.result import Either
from simplessh.result import ErrorKind
from simplessh.result import Failure
from simplessh.result import SimpleSSHError
from simplessh.result import Success
from simplessh.transfer import send_file
from simplessh.transfer import upload_file


__version__ = importlib.metadata.version(__spec__.parent)

__all__ = [
    "authenticate_key",
    "authenticate_memory",
    "authenticate_password",
    "close_session",
    "CommandResult",
    "Either",
    "ErrorKind",
    "exec_command",
    "Failure",
    "key_session",
    "open_session",
    "password_session",
    "send_file",
    "Session",
    "SimpleSSHError",
    "Success",
    "upload_file",
]
