import logging
from datetime import datetime
from typing import List, Optional

from .models import Profile
from .store import ProfileRepository
from ..claude import ClaudeState, Snapshot
from ..domain.errors import CflipError, InvalidStateError, NoProfilesError, NotFoundError


class Switcher:
    """
    switches Claude Code between saved accounts.

    before overwriting the live state, the outgoing account is re-captured and
    saved so that tokens Claude Code refreshed since the last switch are kept.
    """

    def __init__(
        self,
        repository: ProfileRepository,
        claude: ClaudeState,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.claude = claude
        self.logger = logger or logging.getLogger(__name__)

    def add_current(self, alias: str = "") -> Profile:
        """
        save the live Claude Code account as a profile and mark it active.

        args:
            alias: profile name to use; defaults to the account email

        returns:
            the saved profile

        raises:
            NotFoundError: if no Claude config file exists
            InvalidStateError: if the live account has no identity or token
        """
        snapshot = self.claude.capture()
        snapshot.ensure_valid()

        name = alias or snapshot.email
        profile = self._upsert(name, snapshot, alias)
        profile.last_active_at = datetime.now()
        self.repository.save(profile)
        # what was just captured is by definition what is live
        self.repository.set_active(profile.name)

        self.logger.info("added profile %s (%s)", profile.name, profile.email)
        return profile

    def _upsert(self, name: str, snapshot: Snapshot, alias: str = "") -> Profile:
        """existing profile for this account refreshed, or a new one."""
        try:
            existing = self.repository.load(snapshot.email)
        except NotFoundError:
            return Profile.from_snapshot(name, snapshot, alias)

        existing.refresh_from(snapshot)
        existing.name = name
        if alias:
            existing.alias = alias
        return existing

    def list_profiles(self) -> List[Profile]:
        return self.repository.list()

    def current(self) -> Profile:
        return self.repository.get_active()

    def next_profile(self) -> Profile:
        """
        profile after the active one, wrapping around.

        raises:
            NoProfilesError: if there are no profiles
        """
        profiles = self.repository.list()
        if not profiles:
            raise NoProfilesError()
        if len(profiles) == 1:
            return profiles[0]

        try:
            active_name = self.repository.get_active().name
        except NotFoundError:
            return profiles[0]

        names = [p.name for p in profiles]
        if active_name not in names:
            return profiles[0]
        return profiles[(names.index(active_name) + 1) % len(profiles)]

    def switch_to(self, identifier: str = "", force: bool = False) -> Profile:
        """
        make a saved profile the live Claude Code account.

        args:
            identifier: profile name, email or alias; empty for the next one
            force: set when the caller skipped the Claude-not-running check

        returns:
            the profile now active

        raises:
            NotFoundError: if the target does not exist
            NoProfilesError: if no identifier was given and nothing is saved
            InvalidStateError: if the target profile is incomplete
            StorageIOError: if writing the live state fails
        """
        if identifier:
            target = self.repository.load(identifier)
        else:
            target = self.next_profile()

        # reject an unusable target before anything is written
        target.snapshot.ensure_valid()

        if force:
            self.logger.debug("switch forced, Claude Code may still be running")

        live = self._capture_live()
        to_apply = target.snapshot
        if live is not None:
            refreshed = self._reconcile(live)
            if refreshed is not None and refreshed.name == target.name:
                target = refreshed
            to_apply = target.snapshot.onto_live(live.config_document)

        self.claude.apply(to_apply)

        target.last_active_at = datetime.now()
        self.repository.save(target)
        self.repository.set_active(target.name)

        self.logger.info("switched to profile %s (%s)", target.name, target.email)
        return target

    def _capture_live(self) -> Optional[Snapshot]:
        try:
            return self.claude.capture()
        except CflipError as e:
            self.logger.debug("no live Claude account to back up: %s", e)
            return None

    def _reconcile(self, snapshot: Snapshot) -> Optional[Profile]:
        """
        save the live account's current state before it is overwritten.

        failures are logged as warnings and the switch goes ahead.
        """
        if not snapshot.email:
            return None

        try:
            try:
                profile = self.repository.load(snapshot.email)
            except NotFoundError:
                snapshot.ensure_valid()
                profile = Profile.from_snapshot(snapshot.email, snapshot)
                self.logger.info("backing up unsaved live account %s", snapshot.email)
            else:
                if snapshot.credentials is None:
                    raise InvalidStateError("live account has no credentials")
                profile.refresh_from(snapshot)
            self.repository.save(profile)
            return profile
        except CflipError as e:
            self.logger.warning("failed to back up current account %s: %s", snapshot.email, e)
            return None

    def rename(self, identifier: str, new_alias: str) -> Profile:
        profile = self.repository.load(identifier)
        profile.alias = new_alias
        self.repository.save(profile)
        return profile

    def validate_profile(self, identifier: str) -> Profile:
        """
        check a saved profile can be switched to.

        token expiry is not checked; Claude Code refreshes expired tokens.

        raises:
            InvalidStateError: if identity or access token is missing
        """
        profile = self.repository.load(identifier)
        if not profile.snapshot.oauth_account:
            raise InvalidStateError(f"Profile {profile.name} has no OAuth account information")
        if profile.credentials is None:
            raise InvalidStateError(f"Profile {profile.name} has no credentials")
        if not profile.credentials.access_token:
            raise InvalidStateError(f"Profile {profile.name} has no access token")
        return profile

    def remove(self, identifier: str) -> Profile:
        """delete a saved profile. the live Claude Code files are not touched."""
        profile = self.repository.delete(identifier)
        self.logger.info("removed profile %s", profile.name)
        return profile
