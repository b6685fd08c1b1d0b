"""Audit logging utilities for simplessh.

This module provides helper functions for consistent audit logging across
the session lifecycle. All functions add structured context to log records
that can be output in both human-readable and JSON formats.
"""

import functools
import inspect
import logging
import time
import typing as t

from datetime import timedelta
from enum import StrEnum


Function: t.TypeAlias = t.Callable[..., t.Any]

# Sensitive field names that should be redacted in logs
SENSITIVE_FIELDS = {
    "password",
    "passwd",
    "passphrase",
    "secret",
    "token",
    "private_key",
    "privatekey",
    "public_key",
}

REDACTED = "***REDACTED***"


class Event(StrEnum):
    OPERATION_CALL = "OPERATION_CALL"
    OPERATION_COMPLETE = "OPERATION_COMPLETE"
    REMOTE_EXEC = "REMOTE_EXEC"
    SCP_SEND = "SCP_SEND"
    SCP_SEND_FAILED = "SCP_SEND_FAILED"
    SSH_AUTH = "SSH_AUTH"
    SSH_AUTH_FAILED = "SSH_AUTH_FAILED"
    SSH_CLOSE = "SSH_CLOSE"
    SSH_CONNECT = "SSH_CONNECT"
    SSH_CONNECT_FAILED = "SSH_CONNECT_FAILED"


class Status(StrEnum):
    success = "success"
    failed = "failed"


def sanitize_parameters(params: dict[str, t.Any]) -> dict[str, t.Any]:
    """
    Sanitize parameters for logging.

    Sensitive fields are redacted and binary payloads are replaced by their
    size so uploads never end up in the logs.

    Args:
        params: Dictionary of parameters to sanitize

    Returns:
        Dictionary safe to log
    """
    if not params:
        return params

    sensitive = [s.replace("_", "") for s in SENSITIVE_FIELDS]
    sanitized = {}
    for key, value in params.items():
        key_lower = key.lower().replace("_", "").replace("-", "")

        if any(name in key_lower for name in sensitive):
            sanitized[key] = REDACTED
        elif isinstance(value, (bytes, bytearray, memoryview)):
            sanitized[key] = f"<{len(value)} bytes>"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_parameters(value)
        else:
            sanitized[key] = value

    return sanitized


def _log_event_start(logger: logging.Logger, operation: str, params: dict[str, t.Any]) -> int:
    """
    Emit a log event and return a performance counter timestamp.

    The timestamp is in nanoseconds. It is meant to be used to calculate
    total execution time.
    """
    safe_params = sanitize_parameters(params)
    extra = {"operation": operation}

    message = f"{Event.OPERATION_CALL}: {operation}"
    params_str = ", ".join(f"{k}={v}" for k, v in safe_params.items())
    if params_str:
        message += f" | {params_str}"

    logger.debug(message, extra=extra)

    return time.perf_counter_ns()


def _log_event_complete(logger: logging.Logger, operation: str, start_time: int, error: str | None = None) -> None:
    """
    Log the completion of an operation and calculate the total execution time.
    """
    stop_time = time.perf_counter_ns()
    duration = timedelta(microseconds=(stop_time - start_time) / 1_000)
    extra = {
        "operation": operation,
        "status": Status.failed if error else Status.success,
        "duration": f"{duration}s",
    }

    message = f"{Event.OPERATION_COMPLETE}: {operation}"

    if error:
        extra["error"] = error
        message += f" | error: {error}"
        logger.warning(message, extra=extra)
    else:
        logger.debug(message, extra=extra)


def log_operation(func: t.Callable) -> Function:
    """Decorator to log calls of public operations.

    The wrapped function must return a Success or Failure; a Failure is
    logged with its error kind. Arguments are sanitized before logging.
    """
    logger = logging.getLogger("simplessh")
    operation = func.__name__
    signature = inspect.signature(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        params = signature.bind_partial(*args, **kwargs).arguments
        start_time = _log_event_start(logger, operation, dict(params))
        result = func(*args, **kwargs)
        error = getattr(result, "error", None)
        _log_event_complete(logger, operation, start_time, str(error) if error else None)
        return result

    return wrapper


def log_ssh_connect(
    host: str,
    port: int,
    status: str,
    error: str | None = None,
    duration: float | None = None,
):
    """
    Log SSH session establishment (TCP connect and handshake).

    Args:
        host: Remote host
        port: Remote port
        status: Connection status ("success" or "failed")
        error: Error kind when the connection failed
        duration: Optional time to connect in seconds (shown at DEBUG level)
    """
    logger = logging.getLogger(__name__)

    extra = {
        "host": host,
        "port": port,
        "status": status,
    }

    if status == Status.success:
        message = f"{Event.SSH_CONNECT}: {host}:{port}"
        if duration is not None and logger.isEnabledFor(logging.DEBUG):
            extra["duration"] = f"{duration:.3f}s"
        logger.info(message, extra=extra)
        return

    message = f"{Event.SSH_CONNECT_FAILED}: {host}:{port}"
    if error:
        extra["reason"] = error
        message += f" | reason: {error}"

    logger.warning(message, extra=extra)


def log_ssh_auth(host: str, username: str, method: str, status: str):
    """
    Log an authentication attempt.

    The failure cause is not known, so only the method is logged.

    Args:
        host: Remote host
        username: SSH username
        method: Authentication method ("password", "key-file", "key-memory")
        status: Authentication status ("success" or "failed")
    """
    logger = logging.getLogger(__name__)

    user_host = f"{username}@{host}"
    extra = {
        "host": host,
        "username": username,
        "method": method,
        "status": status,
    }

    if status == Status.success:
        logger.info(f"{Event.SSH_AUTH}: {user_host} | method={method}", extra=extra)
    else:
        logger.warning(f"{Event.SSH_AUTH_FAILED}: {user_host} | method={method}", extra=extra)


def log_ssh_command(
    command: str,
    host: str,
    exit_code: int,
    duration: float | None = None,
    exit_signal: str | None = None,
):
    """
    Log SSH command execution.

    Verbosity is tiered based on log level:
    - INFO: Command and exit code
    - DEBUG: Also includes execution duration

    Args:
        command: Command that was executed
        host: Remote host
        exit_code: Command exit code
        duration: Optional execution duration in seconds (shown at DEBUG level)
        exit_signal: Signal that terminated the command, if any
    """
    logger = logging.getLogger(__name__)

    extra = {
        "command": command,
        "host": host,
        "exit_code": exit_code,
    }

    message = f"{Event.REMOTE_EXEC}: {command} | host={host} | exit_code={exit_code}"

    if exit_signal:
        extra["exit_signal"] = exit_signal
        message += f" | signal={exit_signal}"

    # At DEBUG level, include duration
    if duration is not None and logger.isEnabledFor(logging.DEBUG):
        extra["duration"] = f"{duration:.3f}s"
        message += f" | duration={duration:.3f}s"

    logger.info(message, extra=extra)


def log_file_transfer(
    destination: str,
    host: str,
    transferred: int,
    size: int,
    status: str,
    duration: float | None = None,
):
    """
    Log an SCP upload.

    Args:
        destination: Remote destination path
        host: Remote host
        transferred: Bytes accepted by the remote end
        size: Total payload size
        status: Transfer status ("success" or "failed")
        duration: Optional transfer duration in seconds (shown at DEBUG level)
    """
    logger = logging.getLogger(__name__)

    extra = {
        "destination": destination,
        "host": host,
        "transferred": transferred,
        "size": size,
        "status": status,
    }

    event = Event.SCP_SEND if status == Status.success else Event.SCP_SEND_FAILED
    message = f"{event}: {destination} | host={host} | transferred={transferred}/{size}"

    if duration is not None and logger.isEnabledFor(logging.DEBUG):
        extra["duration"] = f"{duration:.3f}s"
        message += f" | duration={duration:.3f}s"

    if status == Status.success:
        logger.info(message, extra=extra)
    else:
        logger.warning(message, extra=extra)
