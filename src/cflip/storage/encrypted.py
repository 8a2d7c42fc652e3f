import logging
from pathlib import Path
from typing import Optional

from .base import SecureStore
from .crypto import decrypt, derive_key, encrypt, get_or_create_salt
from ..domain.errors import NotFoundError, StorageIOError
from ..utils.fs import atomic_write_bytes, backup_file, ensure_private_dir, sanitize_filename

logger = logging.getLogger(__name__)


class EncryptedFileStore(SecureStore):
    """secure store keeping each secret in its own AES-GCM encrypted file."""

    def __init__(
        self,
        data_dir: Path,
        salt_path: Path,
        home: Optional[Path] = None,
        hostname: Optional[str] = None,
    ):
        self.data_dir = data_dir
        self.salt_path = salt_path
        self._home = home
        self._hostname = hostname
        self._key: Optional[bytes] = None

    def _get_key(self) -> bytes:
        # salt is read-or-created lazily so constructing the store never writes
        if self._key is None:
            salt = get_or_create_salt(self.salt_path)
            self._key = derive_key(salt, self._home, self._hostname)
        return self._key

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{sanitize_filename(key)}.enc"

    def store(self, key: str, data: str) -> None:
        ensure_private_dir(self.data_dir)
        blob = encrypt(data.encode("utf-8"), self._get_key())
        path = self.path_for(key)
        if path.exists():
            backup_file(path)
        atomic_write_bytes(path, blob)
        logger.debug("stored encrypted secret %s", path)

    def retrieve(self, key: str) -> str:
        path = self.path_for(key)
        try:
            blob = path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"Key not found: {key}")
        except OSError as e:
            raise StorageIOError(f"failed to read secret file {path}: {e}", path) from e
        return decrypt(blob, self._get_key()).decode("utf-8")

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageIOError(f"failed to delete secret file {path}: {e}", path) from e
