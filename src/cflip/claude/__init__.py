"""capture and apply Claude Code's live config and credentials."""
from .models import Credentials, OAuthTokens, Snapshot, OAUTH_ACCOUNT_KEY
from .state import ClaudeState

__all__ = [
    "ClaudeState",
    "Credentials",
    "OAuthTokens",
    "Snapshot",
    "OAUTH_ACCOUNT_KEY",
]
