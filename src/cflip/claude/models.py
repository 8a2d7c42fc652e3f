"""data models for Claude Code config and credentials."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.errors import InvalidStateError

# the only part of Claude Code's config we interpret
OAUTH_ACCOUNT_KEY = "oauthAccount"
# keys with this prefix are ours and never written to the live config
INTERNAL_KEY_PREFIX = "_cflip_"


class OAuthTokens(BaseModel):
    """the claudeAiOauth section of the credentials secret."""
    # unknown fields are kept so a round trip never drops data
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    access_token: str = Field("", alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    expires_at: Optional[int] = Field(None, alias="expiresAt")  # epoch millis
    scopes: Optional[List[str]] = None
    subscription_type: Optional[str] = Field(None, alias="subscriptionType")


class Credentials(BaseModel):
    """Claude Code credentials secret, as stored in the keychain."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    claude_ai_oauth: OAuthTokens = Field(default_factory=OAuthTokens, alias="claudeAiOauth")

    @property
    def access_token(self) -> str:
        return self.claude_ai_oauth.access_token

    @property
    def expires_at_datetime(self) -> Optional[datetime]:
        if not self.claude_ai_oauth.expires_at:
            return None
        return datetime.fromtimestamp(self.claude_ai_oauth.expires_at / 1000, tz=timezone.utc)

    @property
    def is_expired(self) -> bool:
        expires = self.expires_at_datetime
        return expires is not None and expires <= datetime.now(timezone.utc)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class Snapshot(BaseModel):
    """Claude Code config document plus credentials at one point in time."""
    config_document: Dict[str, Any] = Field(default_factory=dict)
    credentials: Optional[Credentials] = None

    @property
    def oauth_account(self) -> Dict[str, Any]:
        account = self.config_document.get(OAUTH_ACCOUNT_KEY)
        return account if isinstance(account, dict) else {}

    @property
    def email(self) -> str:
        return _str(self.oauth_account.get("emailAddress"))

    @property
    def account_uuid(self) -> str:
        return _str(self.oauth_account.get("accountUuid"))

    @property
    def organization_name(self) -> str:
        return _str(self.oauth_account.get("organizationName"))

    def clean_config(self) -> Dict[str, Any]:
        """config document without cflip bookkeeping keys."""
        return {
            key: value
            for key, value in self.config_document.items()
            if not key.startswith(INTERNAL_KEY_PREFIX)
        }

    def onto_live(self, live_document: Dict[str, Any]) -> "Snapshot":
        """
        this snapshot's identity laid over the live config document.

        every live key except oauthAccount keeps its live value; keys only
        present in this snapshot are appended.
        """
        document = dict(live_document)
        for key, value in self.config_document.items():
            if key not in document:
                document[key] = value
        document[OAUTH_ACCOUNT_KEY] = self.config_document.get(OAUTH_ACCOUNT_KEY)
        return Snapshot(config_document=document, credentials=self.credentials)

    def ensure_valid(self) -> None:
        """
        check the snapshot carries an identity and an access token.

        raises:
            InvalidStateError: naming the first missing piece
        """
        if not self.oauth_account:
            raise InvalidStateError("No OAuth account information found in Claude config")
        if not self.email:
            raise InvalidStateError("No email found in Claude config")
        if not self.account_uuid:
            raise InvalidStateError("No account UUID found in Claude config")
        if self.credentials is None:
            raise InvalidStateError("No Claude credentials found")
        if not self.credentials.access_token:
            raise InvalidStateError("Claude credentials have no access token")


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""
