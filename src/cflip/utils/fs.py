import os
import shutil
from pathlib import Path

from ..domain.errors import StorageIOError


def ensure_private_dir(path: Path) -> Path:
    """create directory (and parents) readable only by the owner."""
    try:
        path.mkdir(mode=0o700, parents=True, exist_ok=True)
        # mkdir mode is filtered by umask, so set it explicitly
        os.chmod(path, 0o700)
    except OSError as e:
        raise StorageIOError(f"failed to create directory {path}: {e}", path) from e
    return path


def atomic_write_bytes(path: Path, data: bytes, mode: int = 0o600) -> None:
    """
    write data to a temp sibling, fsync, then rename over path.

    on any failure the temp file is removed and path is left untouched.

    raises:
        StorageIOError: if the write or rename fails
    """
    tmp = path.with_name(path.name + ".tmp")
    try:
        fd = os.open(str(tmp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        try:
            view = memoryview(data)
            while view:
                written = os.write(fd, view)
                view = view[written:]
            os.fsync(fd)
        finally:
            os.close(fd)
        os.replace(tmp, path)
    except OSError as e:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        raise StorageIOError(f"failed to write {path}: {e}", path) from e


def atomic_write_text(path: Path, text: str, mode: int = 0o600) -> None:
    atomic_write_bytes(path, text.encode("utf-8"), mode)


def backup_file(path: Path) -> Path:
    """copy path to path.backup (owner-only) and return the backup path."""
    backup = path.with_name(path.name + ".backup")
    try:
        shutil.copyfile(path, backup)
        os.chmod(backup, 0o600)
    except OSError as e:
        raise StorageIOError(f"failed to create backup of {path}: {e}", path) from e
    return backup


def sanitize_filename(value: str) -> str:
    """replace anything outside [A-Za-z0-9.-] with underscores."""
    return "".join(
        c if (c.isascii() and c.isalnum()) or c in ".-" else "_"
        for c in value
    )
