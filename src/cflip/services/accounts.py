from datetime import datetime
from typing import Callable, Dict, List, Optional
import subprocess

from pydantic import BaseModel

from ..claude import ClaudeState
from ..config import PROFILES_DIR, PROFILES_FILE
from ..domain.errors import CflipError, NotFoundError, ProcessRunningError
from ..profiles import Profile, ProfileRepository, Switcher
from ..storage import create_claude_credentials_store
from ..utils.process import claude_process_names, running_processes


class ProfileView(BaseModel):
    """profile details for display, without config or secrets."""
    name: str
    email: str
    alias: str = ""
    account_uuid: str = ""
    is_active: bool = False
    created_at: datetime
    updated_at: datetime
    last_active_at: Optional[datetime] = None
    token_expired: bool = False

    @property
    def display_name(self) -> str:
        return self.alias or self.email

    @classmethod
    def from_profile(cls, profile: Profile, is_active: bool) -> "ProfileView":
        return cls(
            name=profile.name,
            email=profile.email,
            alias=profile.alias,
            account_uuid=profile.account_uuid,
            is_active=is_active,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
            last_active_at=profile.last_active_at,
            token_expired=bool(profile.credentials and profile.credentials.is_expired),
        )


class AccountService:
    """entry point used by the CLI; wraps the switcher with caller-side checks."""

    def __init__(
        self,
        switcher: Switcher,
        process_names: Optional[List[str]] = None,
        runner: Callable = subprocess.run,
    ):
        self.switcher = switcher
        self.process_names = process_names if process_names is not None else claude_process_names()
        self._run = runner

    @classmethod
    def create(cls) -> "AccountService":
        """wire up the default stores for this machine."""
        secure_store = create_claude_credentials_store()
        repository = ProfileRepository(PROFILES_DIR, PROFILES_FILE)
        return cls(Switcher(repository, ClaudeState(secure_store)))

    def _active_name(self) -> str:
        try:
            return self.switcher.current().name
        except NotFoundError:
            return ""

    def resolve(self, identifier: str) -> str:
        """
        map a 1-based list number to that profile's email.

        other identifiers are returned unchanged.

        raises:
            NotFoundError: if the number is out of range
        """
        if not identifier.isdigit() or int(identifier) < 1:
            return identifier

        index = int(identifier)
        profiles = self.switcher.list_profiles()
        if index > len(profiles):
            raise NotFoundError(
                f"Invalid account number: {index} (only {len(profiles)} accounts available)"
            )
        return profiles[index - 1].email

    def add_current(self, alias: str = "") -> ProfileView:
        profile = self.switcher.add_current(alias)
        return ProfileView.from_profile(profile, is_active=True)

    def list_profiles(self) -> List[ProfileView]:
        active = self._active_name()
        return [
            ProfileView.from_profile(p, is_active=(p.name == active))
            for p in self.switcher.list_profiles()
        ]

    def current(self) -> ProfileView:
        return ProfileView.from_profile(self.switcher.current(), is_active=True)

    def ensure_claude_not_running(self) -> None:
        running = running_processes(self.process_names, self._run)
        if running:
            raise ProcessRunningError(running)

    def switch(self, identifier: str = "", force: bool = False) -> ProfileView:
        """
        switch accounts, refusing while Claude Code is running unless forced.

        raises:
            ProcessRunningError: if Claude Code is running and force is False
        """
        if not force:
            self.ensure_claude_not_running()
        profile = self.switcher.switch_to(self.resolve(identifier) if identifier else "", force=force)
        return ProfileView.from_profile(profile, is_active=True)

    def remove(self, identifier: str) -> ProfileView:
        profile = self.switcher.remove(self.resolve(identifier))
        return ProfileView.from_profile(profile, is_active=False)

    def rename(self, identifier: str, new_alias: str) -> ProfileView:
        profile = self.switcher.rename(self.resolve(identifier), new_alias)
        return ProfileView.from_profile(profile, is_active=(profile.name == self._active_name()))

    def validate_all(self) -> Dict[str, CflipError]:
        """validate every profile, returning errors keyed by display name."""
        errors = {}
        for profile in self.switcher.list_profiles():
            try:
                self.switcher.validate_profile(profile.name)
            except CflipError as e:
                errors[profile.display_name] = e
        return errors

    def expired_profiles(self) -> List[ProfileView]:
        """profiles whose saved access token has passed its expiry time."""
        return [view for view in self.list_profiles() if view.token_expired]
