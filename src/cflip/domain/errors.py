from typing import List, Optional
from pathlib import Path


class CflipError(Exception):
    """base class for exceptions in cflip."""
    pass


class NotFoundError(CflipError):
    """raised when a profile, secret or config file does not exist."""
    pass


class NoProfilesError(NotFoundError):
    """raised when an operation needs at least one saved profile."""
    def __init__(self):
        super().__init__("No profiles available. Add one with: cflip add")


class InvalidStateError(CflipError):
    """raised when captured or saved state is missing identity or tokens."""
    pass


class StorageIOError(CflipError):
    """raised when reading, writing or renaming persisted data fails."""
    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class UnsupportedPlatformError(CflipError):
    """raised at startup when no secure store exists for the host OS."""
    def __init__(self, platform_name: str):
        self.platform_name = platform_name
        super().__init__(f"Unsupported platform: {platform_name}")


class ProcessRunningError(CflipError):
    """raised when Claude Code is running and a switch was not forced."""
    def __init__(self, process_names: List[str]):
        self.process_names = process_names
        super().__init__(
            "Claude Code is currently running "
            f"({', '.join(process_names)}). "
            "Close it before switching accounts, or pass --force."
        )
