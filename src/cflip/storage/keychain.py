import logging
import subprocess
from typing import Callable, List

from .base import SecureStore
from ..domain.errors import NotFoundError, StorageIOError

logger = logging.getLogger(__name__)

# exit status of `security` for errSecItemNotFound
ITEM_NOT_FOUND = 44


class KeychainStore(SecureStore):
    """secure store backed by the macOS keychain through the `security` tool."""

    def __init__(self, service: str, runner: Callable = subprocess.run):
        self.service = service
        self._run = runner

    def _security(self, args: List[str]) -> subprocess.CompletedProcess:
        cmd = ["security", *args]
        try:
            return self._run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise StorageIOError(f"failed to run keychain utility: {e}") from e

    def store(self, key: str, data: str) -> None:
        result = self._security([
            "add-generic-password",
            "-U",  # update if exists
            "-s", self.service,
            "-a", key,
            "-w", data,
        ])
        if result.returncode != 0:
            raise StorageIOError(
                f"failed to store '{key}' in keychain "
                f"(exit {result.returncode}): {_output(result)}"
            )
        logger.debug("stored keychain item %s/%s", self.service, key)

    def retrieve(self, key: str) -> str:
        result = self._security([
            "find-generic-password",
            "-s", self.service,
            "-a", key,
            "-w",  # password only
        ])
        if result.returncode == ITEM_NOT_FOUND:
            raise NotFoundError(f"Key not found in keychain: {self.service}/{key}")
        if result.returncode != 0:
            raise StorageIOError(
                f"failed to read '{key}' from keychain "
                f"(exit {result.returncode}): {_output(result)}"
            )
        return result.stdout.rstrip("\n")

    def delete(self, key: str) -> None:
        result = self._security([
            "delete-generic-password",
            "-s", self.service,
            "-a", key,
        ])
        if result.returncode == ITEM_NOT_FOUND:
            return
        if result.returncode != 0:
            raise StorageIOError(
                f"failed to delete '{key}' from keychain "
                f"(exit {result.returncode}): {_output(result)}"
            )


def _output(result: subprocess.CompletedProcess) -> str:
    return (result.stderr or result.stdout or "").strip()
