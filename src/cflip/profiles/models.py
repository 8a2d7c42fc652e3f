"""data models for profile management."""
from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from ..claude.models import Credentials, Snapshot


class Profile(BaseModel):
    """a saved Claude Code account: identity plus full config and credentials."""
    name: str
    email: str
    alias: str = ""
    account_uuid: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    last_active_at: Optional[datetime] = None  # None until first activated

    claude_config: Dict[str, Any] = Field(default_factory=dict)
    credentials: Optional[Credentials] = None

    @classmethod
    def from_snapshot(cls, name: str, snapshot: Snapshot, alias: str = "") -> "Profile":
        """build a new profile around a captured snapshot."""
        now = datetime.now()
        return cls(
            name=name,
            email=snapshot.email,
            alias=alias,
            account_uuid=snapshot.account_uuid,
            created_at=now,
            updated_at=now,
            claude_config=snapshot.config_document,
            credentials=snapshot.credentials,
        )

    @property
    def display_name(self) -> str:
        return self.alias or self.email

    @property
    def snapshot(self) -> Snapshot:
        return Snapshot(config_document=self.claude_config, credentials=self.credentials)

    def refresh_from(self, snapshot: Snapshot) -> None:
        """replace embedded state with a fresher capture of the same account."""
        self.claude_config = snapshot.config_document
        self.credentials = snapshot.credentials
        if snapshot.email:
            self.email = snapshot.email
        if snapshot.account_uuid:
            self.account_uuid = snapshot.account_uuid


class ProfileIndex(BaseModel):
    """index of saved profiles and which one is live."""
    active_profile: str = ""
    profiles: Dict[str, str] = Field(default_factory=dict)  # name -> email
    last_updated: datetime = Field(default_factory=datetime.now)

    @classmethod
    def empty(cls) -> "ProfileIndex":
        """create empty index."""
        return cls(active_profile="", profiles={})
