import os
from pathlib import Path
from typing import List, Optional

CONFIG_DIR = Path(os.environ.get("CFLIP_HOME", Path.home() / ".cflip"))
PROFILES_FILE = CONFIG_DIR / "profiles.json"
PROFILES_DIR = CONFIG_DIR / "profiles"
SECRETS_DIR = CONFIG_DIR / "secrets"
SALT_FILE = CONFIG_DIR / ".salt"

# service name Claude Code itself uses in the macOS keychain
DEFAULT_KEYCHAIN_SERVICE = "Claude Code-credentials"
DEFAULT_ACCOUNT_KEY = "default"


def claude_config_candidates(home: Optional[Path] = None) -> List[Path]:
    """ordered list of places Claude Code may keep its config file."""
    home = home or Path.home()
    return [
        home / ".claude.json",
        home / ".claude" / ".claude.json",
        home / ".claude" / "claude.json",
        home / ".claude" / "config.json",
    ]


def get_keychain_service() -> str:
    return os.environ.get("CFLIP_KEYCHAIN_SERVICE") or DEFAULT_KEYCHAIN_SERVICE


def get_secret_backend() -> Optional[str]:
    """explicit secure store backend ('keychain' or 'file'), None for auto."""
    value = os.environ.get("CFLIP_SECRET_BACKEND", "").strip().lower()
    return value or None


def get_log_level() -> str:
    return os.environ.get("CFLIP_LOG_LEVEL", "WARNING").upper()


def get_log_file() -> Optional[Path]:
    value = os.environ.get("CFLIP_LOG_FILE")
    return Path(value).expanduser() if value else None
