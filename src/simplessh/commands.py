"""Remote command execution over a session channel."""

import logging
import time

from simplessh.audit import log_operation
from simplessh.audit import log_ssh_command
from simplessh.buffers import OutputBuffer
from simplessh.connection.base import EngineError
from simplessh.connection.base import RetryDeadlineExceeded
from simplessh.connection.base import SSHEngineChannel
from simplessh.connection.base import WOULD_BLOCK
from simplessh.connection.session import Session
from simplessh.models import CommandResult
from simplessh.models import UNKNOWN_EXIT_CODE
from simplessh.result import Either
from simplessh.result import ErrorKind
from simplessh.result import Failure
from simplessh.result import Success


logger = logging.getLogger("simplessh")


def drain_output(session: Session, channel: SSHEngineChannel) -> tuple[bytes, bytes]:
    """
    Read stdout and stderr until both reach end of stream.

    Both streams are read in the same loop, one attempt each per iteration.
    Draining one stream to completion first could deadlock a remote process
    that is blocked writing to the other one.

    Raises:
        EngineError: If either stream reports a hard error.
        RetryDeadlineExceeded: If neither stream made progress within the
            session's retry deadline.
    """
    out = OutputBuffer()
    err = OutputBuffer()
    last_progress = time.monotonic()

    while True:
        chunk_out = channel.read(out.headroom)
        chunk_err = channel.read_stderr(err.headroom)

        if chunk_out == b"" and chunk_err == b"":
            break

        progress = False
        if chunk_out is not WOULD_BLOCK and chunk_out:
            out.append(chunk_out)
            progress = True
        if chunk_err is not WOULD_BLOCK and chunk_err:
            err.append(chunk_err)
            progress = True

        if progress:
            last_progress = time.monotonic()
            continue

        # One stream is blocked, the other is blocked or already finished
        deadline = session.retry_deadline
        if deadline is not None and time.monotonic() - last_progress >= deadline:
            raise RetryDeadlineExceeded(deadline)
        session.wait()

    return out.getvalue(), err.getvalue()


def _close_channel(session: Session, channel: SSHEngineChannel) -> tuple[int, str | None]:
    """Close the channel and collect the exit status and signal.

    The exit status is only meaningful after a clean close; otherwise
    UNKNOWN_EXIT_CODE is reported.
    """
    try:
        session.drive(channel.close)
    except EngineError as e:
        logger.debug(f"Channel close on {session.host} failed, exit status unknown: {e}")
        return UNKNOWN_EXIT_CODE, None

    return channel.get_exit_status(), channel.get_exit_signal()


@log_operation
def exec_command(session: Session, command: str) -> Either[CommandResult]:
    """
    Execute a command on the remote host and capture its output.

    One should be authenticated before sending commands on a session.

    Args:
        session: Authenticated session
        command: Command line, interpreted by the remote user's shell

    Returns:
        Success(CommandResult), or Failure with CHANNEL_OPEN, CHANNEL_EXEC or
        READ. A channel that fails to close cleanly is not an error: the
        result then carries exit code 127 and no signal.
    """
    start_time = time.time()

    try:
        channel = session.drive(session.engine.open_channel)
    except EngineError as e:
        logger.debug(f"Unable to open channel on {session.host}: {e}")
        return Failure(ErrorKind.CHANNEL_OPEN)

    try:
        try:
            session.drive(lambda: channel.execute(command))
        except EngineError as e:
            logger.debug(f"Unable to execute '{command}' on {session.host}: {e}")
            return Failure(ErrorKind.CHANNEL_EXEC)

        try:
            stdout, stderr = drain_output(session, channel)
        except EngineError as e:
            logger.error(f"Error reading output of '{command}' on {session.host}: {e}")
            return Failure(ErrorKind.READ)

        exit_code, exit_signal = _close_channel(session, channel)
    finally:
        channel.free()

    result = CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code, exit_signal=exit_signal)
    log_ssh_command(
        command,
        session.host,
        exit_code=exit_code,
        duration=time.time() - start_time,
        exit_signal=exit_signal,
    )

    return Success(result)
