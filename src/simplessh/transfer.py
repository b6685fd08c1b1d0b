"""File upload over an SCP channel."""

import functools
import logging
import stat
import time

from pathlib import Path

from simplessh.audit import log_file_transfer
from simplessh.audit import log_operation
from simplessh.audit import Status
from simplessh.config import CONFIG
from simplessh.connection.base import EngineError
from simplessh.connection.base import SSHEngineChannel
from simplessh.connection.session import Session
from simplessh.result import Either
from simplessh.result import ErrorKind
from simplessh.result import Failure
from simplessh.result import Success


logger = logging.getLogger("simplessh")

# Largest slice handed to the engine in one write
MAX_CHUNK_SIZE = 16 * 1024


def _finish_channel(session: Session, channel: SSHEngineChannel, destination: str) -> None:
    """Send end of stream, close and free the upload channel.

    The payload is fully written at this point, so failures here are logged
    and not reported to the caller.
    """
    for step in (channel.send_eof, channel.close, channel.free):
        try:
            session.drive(step)
        except EngineError as e:
            logger.warning(f"Finishing upload of {destination} on {session.host}: {step.__name__} failed: {e}")


@log_operation
def send_file(
    session: Session,
    mode: int,
    data: bytes,
    destination: str,
    chunk_size: int | None = None,
) -> Either[int]:
    """
    Upload a payload to the remote host and return the number of bytes transferred.

    One should be authenticated before sending files on a session.

    Args:
        session: Authenticated session
        mode: File mode of the remote file (e.g. 0o644); only the
            permission bits are used
        data: Payload to upload
        destination: Remote path of the file
        chunk_size: Largest slice handed to the engine in one write.
            Defaults to CONFIG.transfer_chunk_size, capped at MAX_CHUNK_SIZE.

    Returns:
        Success(bytes transferred), or Failure with CHANNEL_OPEN or WRITE.
        A Failure carries the bytes accepted before the error in
        ``transferred`` so partial uploads can be detected.

    Raises:
        ValueError: If chunk_size is not positive.
    """
    if chunk_size is None:
        chunk_size = CONFIG.transfer_chunk_size
    if chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")
    chunk_size = min(chunk_size, MAX_CHUNK_SIZE)

    size = len(data)
    transferred = 0
    start_time = time.time()

    try:
        channel = session.drive(lambda: session.engine.scp_send(destination, mode & 0o777, size))
    except EngineError as e:
        logger.debug(f"Unable to open upload channel for {destination} on {session.host}: {e}")
        log_file_transfer(destination, session.host, transferred, size, status=Status.failed)
        return Failure(ErrorKind.CHANNEL_OPEN, transferred=transferred)

    view = memoryview(data)
    try:
        while transferred < size:
            chunk = bytes(view[transferred : transferred + chunk_size])
            while chunk:
                written = session.drive(functools.partial(channel.write, chunk))
                if not written:
                    session.wait()
                    continue
                chunk = chunk[written:]
                transferred += written
    except EngineError as e:
        logger.error(f"Error writing {destination} on {session.host} after {transferred} bytes: {e}")
        channel.free()
        log_file_transfer(destination, session.host, transferred, size, status=Status.failed)
        return Failure(ErrorKind.WRITE, transferred=transferred)

    _finish_channel(session, channel, destination)
    duration = time.time() - start_time
    log_file_transfer(destination, session.host, transferred, size, status=Status.success, duration=duration)

    return Success(transferred)


def upload_file(session: Session, source: str | Path, destination: str, mode: int | None = None) -> Either[int]:
    """
    Upload a local file.

    Args:
        session: Authenticated session
        source: Local file to read
        destination: Remote path of the file
        mode: File mode of the remote file. Defaults to the local file's
            permission bits.

    Returns:
        The result of :func:`send_file`.
    """
    path = Path(source)
    if mode is None:
        mode = stat.S_IMODE(path.stat().st_mode)

    return send_file(session, mode, path.read_bytes(), destination)
