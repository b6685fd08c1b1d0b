"""Command line entry point: run a command and/or upload a file over SSH."""

import logging
import sys

from simplessh import __version__
from simplessh.auth import authenticate_key
from simplessh.auth import authenticate_password
from simplessh.auth import discover_ssh_key
from simplessh.commands import exec_command
from simplessh.config import CliArgs
from simplessh.config import CONFIG
from simplessh.connection.session import open_session
from simplessh.connection.session import Session
from simplessh.logging_config import setup_logging
from simplessh.result import Either
from simplessh.result import ErrorKind
from simplessh.result import Failure
from simplessh.result import SimpleSSHError
from simplessh.transfer import upload_file


logger = logging.getLogger("simplessh")


def _authenticate(session: Session, args: CliArgs) -> Either[Session]:
    if args.password is not None:
        return authenticate_password(session, args.username, args.password.get_secret_value())

    key_path = str(args.key_path) if args.key_path else discover_ssh_key()
    if key_path is None:
        logger.error("No password given and no SSH key found")
        return Failure(ErrorKind.AUTHENTICATION)

    passphrase = args.passphrase.get_secret_value() if args.passphrase else CONFIG.effective_passphrase
    return authenticate_key(session, args.username, None, key_path, passphrase)


def run(args: CliArgs) -> int:
    """Run the requested actions and return the process exit code."""
    if args.upload is not None and not args.destination:
        logger.error("--upload needs --destination")
        return 2

    session = open_session(args.host, args.port, args.timeout).unwrap()
    try:
        _authenticate(session, args).unwrap()

        if args.upload is not None:
            transferred = upload_file(session, args.upload, args.destination, args.mode).unwrap()
            logger.info(f"Uploaded {transferred} bytes to {args.host}:{args.destination}")

        if args.command is None:
            return 0

        result = exec_command(session, args.command).unwrap()
        sys.stdout.buffer.write(result.stdout)
        sys.stdout.flush()
        sys.stderr.buffer.write(result.stderr)
        sys.stderr.flush()
        return result.exit_code
    finally:
        session.close()


def cli():
    """Console script entry point for simplessh."""
    args = CliArgs()
    setup_logging(log_to_files=False)

    logger.debug(f"simplessh {__version__}")

    try:
        sys.exit(run(args))
    except (SimpleSSHError, OSError) as e:
        logger.error(f"{e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("simplessh stopped by user")
        sys.exit(130)


if __name__ == "__main__":
    cli()
