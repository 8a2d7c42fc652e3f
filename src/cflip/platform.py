import sys
import getpass
from pathlib import Path

from .config import DEFAULT_ACCOUNT_KEY


def current_platform() -> str:
    """normalized host OS name: 'darwin', 'linux', or sys.platform as-is."""
    if sys.platform.startswith("linux"):
        return "linux"
    return sys.platform


def is_wsl() -> bool:
    """detect Windows Subsystem for Linux via the kernel release string."""
    if current_platform() != "linux":
        return False
    try:
        release = Path("/proc/sys/kernel/osrelease").read_text().lower()
    except OSError:
        return False
    return "microsoft" in release or "wsl" in release


def platform_label() -> str:
    name = current_platform()
    if name == "darwin":
        return "macOS"
    if name == "linux":
        return "WSL" if is_wsl() else "Linux"
    return name


def resolve_account_key() -> str:
    """OS user name used as the secure store key for live credentials."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        # no login name in env and no passwd entry
        return DEFAULT_ACCOUNT_KEY
    return user or DEFAULT_ACCOUNT_KEY
