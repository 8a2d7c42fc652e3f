"""secure key-value storage for credentials."""
from pathlib import Path
from typing import Optional

from .base import SecureStore
from .keychain import KeychainStore
from .encrypted import EncryptedFileStore
from .claude_file import ClaudeCredentialsFileStore, claude_credentials_path
from ..config import SALT_FILE, SECRETS_DIR, get_keychain_service, get_secret_backend
from ..domain.errors import UnsupportedPlatformError
from ..platform import current_platform

__all__ = [
    "SecureStore",
    "KeychainStore",
    "EncryptedFileStore",
    "ClaudeCredentialsFileStore",
    "create_secure_store",
    "create_claude_credentials_store",
]


def create_secure_store(
    platform_name: Optional[str] = None,
    backend: Optional[str] = None,
    secrets_dir: Path = SECRETS_DIR,
    salt_path: Path = SALT_FILE,
    service: Optional[str] = None,
) -> SecureStore:
    """
    pick the secure store implementation for the host, once, at startup.

    args:
        platform_name: override of the detected OS ('darwin', 'linux', ...)
        backend: explicit 'keychain' or 'file', bypassing OS detection
        secrets_dir: directory for the encrypted file backend
        salt_path: salt file for the encrypted file backend
        service: keychain service name

    raises:
        UnsupportedPlatformError: if no backend exists for the platform
    """
    backend = backend or get_secret_backend()
    if backend is None:
        name = platform_name or current_platform()
        if name == "darwin":
            backend = "keychain"
        elif name == "linux":
            backend = "file"
        else:
            raise UnsupportedPlatformError(name)

    if backend == "keychain":
        return KeychainStore(service or get_keychain_service())
    if backend == "file":
        return EncryptedFileStore(secrets_dir, salt_path)
    raise UnsupportedPlatformError(f"unknown secret backend '{backend}'")


def create_claude_credentials_store(
    platform_name: Optional[str] = None,
    backend: Optional[str] = None,
    home: Optional[Path] = None,
    service: Optional[str] = None,
) -> SecureStore:
    """
    pick the store holding Claude Code's live credentials.

    on macOS that is the keychain item Claude Code uses; on Linux it is
    Claude Code's own ~/.claude/.credentials.json. an explicit backend
    (or CFLIP_SECRET_BACKEND) hands the choice to create_secure_store.

    raises:
        UnsupportedPlatformError: if Claude Code has no known credential
            location on the platform
    """
    backend = backend or get_secret_backend()
    if backend is not None:
        return create_secure_store(backend=backend, service=service)

    name = platform_name or current_platform()
    if name == "darwin":
        return KeychainStore(service or get_keychain_service())
    if name == "linux":
        return ClaudeCredentialsFileStore(claude_credentials_path(home or Path.home()))
    raise UnsupportedPlatformError(name)
