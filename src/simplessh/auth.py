"""Authentication of an open session.

All three methods share one pattern: drive the engine primitive until it stops
answering "would block", then classify any failure as AUTHENTICATION. Wrong
credentials, malformed keys and protocol rejections are not told apart. A
failed attempt leaves the session open so another method can be tried.
"""

import logging

from pathlib import Path

import asyncssh

from simplessh.audit import log_operation
from simplessh.audit import log_ssh_auth
from simplessh.audit import Status
from simplessh.config import CONFIG
from simplessh.connection.base import EngineError
from simplessh.connection.session import Session
from simplessh.result import Either
from simplessh.result import ErrorKind
from simplessh.result import Failure
from simplessh.result import Success


logger = logging.getLogger("simplessh")


def discover_ssh_key() -> str | None:
    """
    Discover SSH private key for authentication.

    Checks in order:
    1. SIMPLESSH_SSH_KEY_PATH environment variable
    2. Default locations: ~/.ssh/id_ed25519, ~/.ssh/id_ecdsa, ~/.ssh/id_rsa

    Returns:
        Path to SSH private key if found, None otherwise.
    """
    logger.debug("Discovering SSH key for authentication")

    env_key = CONFIG.ssh_key_path
    if env_key:
        logger.debug(f"Checking SSH key from environment: {env_key}")
        key_path = Path(env_key)
        if key_path.is_file():
            logger.info(f"Using SSH key from environment: {env_key}")
            return str(key_path)

        logger.warning(f"SSH key specified in SIMPLESSH_SSH_KEY_PATH not found: {env_key}")
        return None

    # Check default locations (prefer modern algorithms)
    if CONFIG.search_for_ssh_key:
        ssh_dir = Path.home() / ".ssh"
        default_keys = [ssh_dir / "id_ed25519", ssh_dir / "id_ecdsa", ssh_dir / "id_rsa"]

        logger.debug(f"Checking default SSH key locations: {[str(k) for k in default_keys]}")

        for key_path in default_keys:
            if key_path.is_file():
                logger.info(f"Using SSH key: {key_path}")
                return str(key_path)

        logger.warning("No SSH private key found in default locations")

    logger.debug("Not providing an SSH key")
    return None


def derive_public_key(private_key: bytes, passphrase: str = "") -> bytes | None:
    """Return the OpenSSH public key matching a private key, or None if the key cannot be read."""
    try:
        key = asyncssh.import_private_key(private_key, passphrase or None)
    except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError) as e:
        logger.debug(f"Unable to read private key: {e}")
        return None

    return key.export_public_key("openssh")


def _authenticate(session: Session, username: str, method: str, attempt) -> Either[Session]:
    try:
        session.drive(attempt)
    except EngineError as e:
        logger.debug(f"Authentication of {username}@{session.host} with {method} rejected: {e}")
        log_ssh_auth(session.host, username, method, status=Status.failed)
        return Failure(ErrorKind.AUTHENTICATION)

    session.username = username
    log_ssh_auth(session.host, username, method, status=Status.success)
    return Success(session)


@log_operation
def authenticate_password(session: Session, username: str, password: str) -> Either[Session]:
    """Authenticate a session with a username / password pair."""
    return _authenticate(session, username, "password", lambda: session.engine.userauth_password(username, password))


@log_operation
def authenticate_key(
    session: Session,
    username: str,
    public_key_path: str | Path | None,
    private_key_path: str | Path,
    passphrase: str = "",
) -> Either[Session]:
    """
    Authenticate a session with a key pair stored in files.

    Leave the passphrase empty if not needed. Without a public key path the
    ``<private key>.pub`` file is used when it exists, otherwise the engine
    derives the public key from the private one.
    """
    private_key_path = str(private_key_path)
    if public_key_path is None:
        candidate = Path(f"{private_key_path}.pub")
        public_key_path = str(candidate) if candidate.is_file() else None
    else:
        public_key_path = str(public_key_path)

    return _authenticate(
        session,
        username,
        "key-file",
        lambda: session.engine.userauth_publickey_fromfile(username, public_key_path, private_key_path, passphrase),
    )


@log_operation
def authenticate_memory(
    session: Session,
    username: str,
    public_key: bytes | None,
    private_key: bytes,
    passphrase: str = "",
) -> Either[Session]:
    """
    Authenticate a session with a key pair held in memory.

    When ``public_key`` is empty it is derived from the private key. A private
    key that cannot be read fails like any other rejected credential.
    """
    if not public_key:
        public_key = derive_public_key(private_key, passphrase)
        if public_key is None:
            log_ssh_auth(session.host, username, "key-memory", status=Status.failed)
            return Failure(ErrorKind.AUTHENTICATION)

    return _authenticate(
        session,
        username,
        "key-memory",
        lambda: session.engine.userauth_publickey_frommemory(username, public_key, private_key, passphrase),
    )
