import logging
from pathlib import Path

from .base import SecureStore
from ..domain.errors import NotFoundError, StorageIOError
from ..utils.fs import atomic_write_text, backup_file

logger = logging.getLogger(__name__)


def claude_credentials_path(home: Path) -> Path:
    """where Claude Code keeps its credentials on Linux."""
    return home / ".claude" / ".credentials.json"


class ClaudeCredentialsFileStore(SecureStore):
    """
    Claude Code's own plaintext credentials file, used on Linux.

    Claude Code keeps a single login per file, so every key maps to the same
    file; the key is only used in messages.
    """

    def __init__(self, path: Path):
        self.path = path

    def store(self, key: str, data: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"failed to create {self.path.parent}: {e}", self.path) from e
        if self.path.exists():
            backup_file(self.path)
        atomic_write_text(self.path, data)
        logger.debug("wrote Claude credentials for %s to %s", key, self.path)

    def retrieve(self, key: str) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFoundError(f"Key not found: {key} ({self.path} does not exist)")
        except OSError as e:
            raise StorageIOError(f"failed to read credentials file {self.path}: {e}", self.path) from e

    def delete(self, key: str) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageIOError(f"failed to delete credentials file {self.path}: {e}", self.path) from e
