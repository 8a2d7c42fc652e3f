import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .models import Profile, ProfileIndex
from ..domain.errors import InvalidStateError, NotFoundError, StorageIOError
from ..utils.fs import atomic_write_text, ensure_private_dir, sanitize_filename

logger = logging.getLogger(__name__)

PROFILE_SUFFIX = ".profile"


class ProfileRepository:
    """
    persists profiles as one JSON file each, plus an index file.

    the index maps names to emails and records the active profile; the
    profile files are authoritative.
    """

    def __init__(self, profiles_dir: Path, index_file: Path):
        self.profiles_dir = profiles_dir
        self.index_file = index_file

    # index

    def load_index(self) -> ProfileIndex:
        """load index from JSON file, empty if missing or corrupt."""
        if not self.index_file.exists():
            return ProfileIndex.empty()

        try:
            with open(self.index_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ProfileIndex.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            # profile files are authoritative, the index can be rebuilt by saving
            logger.warning("ignoring unreadable profile index %s: %s", self.index_file, e)
            return ProfileIndex.empty()

    def save_index(self, index: ProfileIndex) -> None:
        """save index to JSON file atomically."""
        ensure_private_dir(self.index_file.parent)
        index.last_updated = datetime.now()
        atomic_write_text(self.index_file, index.model_dump_json(indent=2))

    # profiles

    def _path_for(self, identifier: str) -> Path:
        return self.profiles_dir / (sanitize_filename(identifier) + PROFILE_SUFFIX)

    def _file_for(self, profile: Profile) -> Path:
        # one file per account, so re-adding under another name overwrites
        return self._path_for(profile.email or profile.name)

    def _read(self, path: Path) -> Profile:
        with open(path, "r", encoding="utf-8") as f:
            return Profile.model_validate(json.load(f))

    def _iter_files(self) -> List[Path]:
        if not self.profiles_dir.exists():
            return []
        try:
            return sorted(
                p for p in self.profiles_dir.iterdir()
                if p.is_file() and p.suffix == PROFILE_SUFFIX
            )
        except OSError as e:
            raise StorageIOError(f"failed to read profiles directory: {e}", self.profiles_dir) from e

    def save(self, profile: Profile) -> Path:
        """
        write profile to its own file and record it in the index.

        the two writes are each atomic but not atomic together.

        raises:
            InvalidStateError: if the profile has no name, or it would clash
                with another account
            StorageIOError: if either write fails
        """
        if not profile.name or not profile.name.strip():
            raise InvalidStateError("Profile name cannot be empty")

        path = self._file_for(profile)
        self._check_conflicts(profile, path)

        ensure_private_dir(self.profiles_dir)
        profile.updated_at = datetime.now()
        atomic_write_text(path, profile.model_dump_json(indent=2, by_alias=True))

        index = self.load_index()
        # drop older names that pointed at this same account file
        for name, email in list(index.profiles.items()):
            if name != profile.name and email and email == profile.email:
                del index.profiles[name]
                if index.active_profile == name:
                    index.active_profile = profile.name
        index.profiles[profile.name] = profile.email
        self.save_index(index)

        logger.debug("saved profile %s to %s", profile.name, path)
        return path

    def _check_conflicts(self, profile: Profile, path: Path) -> None:
        """
        refuse to save over another account's file or reuse its identifiers.

        raises:
            InvalidStateError: if path holds a different account, or the
                profile's name or alias already identifies another account
        """
        wanted = {profile.name, profile.alias} - {""}
        for existing_path in self._iter_files():
            try:
                other = self._read(existing_path)
            except (OSError, ValueError):
                continue
            if other.email == profile.email:
                continue
            if existing_path == path:
                raise InvalidStateError(
                    f"Profile file {path.name} already belongs to {other.email}; "
                    f"cannot store {profile.email} there"
                )
            taken = wanted & ({other.name, other.email, other.alias} - {""})
            if taken:
                raise InvalidStateError(
                    f"Profile name '{sorted(taken)[0]}' is already used by {other.email}"
                )

    def _find(self, identifier: str) -> Optional[Path]:
        if not identifier:
            return None

        direct = self._path_for(identifier)
        if direct.is_file():
            return direct

        for path in self._iter_files():
            try:
                profile = self._read(path)
            except (OSError, ValueError):
                continue
            if identifier in (profile.name, profile.email, profile.alias):
                return path
        return None

    def load(self, identifier: str) -> Profile:
        """
        load a profile by name, email or alias.

        raises:
            NotFoundError: if no profile matches
            StorageIOError: if the matching file cannot be read
        """
        path = self._find(identifier)
        if path is None:
            raise NotFoundError(f"Profile not found: {identifier}")

        try:
            return self._read(path)
        except OSError as e:
            raise StorageIOError(f"failed to read profile {path}: {e}", path) from e
        except ValueError as e:
            raise StorageIOError(f"profile file {path} is corrupt: {e}", path) from e

    def list(self) -> List[Profile]:
        """all readable profiles, ordered by file name. corrupt files are skipped."""
        profiles = []
        for path in self._iter_files():
            try:
                profiles.append(self._read(path))
            except (OSError, ValueError) as e:
                logger.debug("skipping unreadable profile %s: %s", path, e)
        return profiles

    def delete(self, identifier: str) -> Profile:
        """
        remove a profile file and its index entry.

        returns:
            the removed profile

        raises:
            NotFoundError: if no profile matches
        """
        profile = self.load(identifier)
        path = self._find(identifier)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageIOError(f"failed to remove profile file {path}: {e}", path) from e

        index = self.load_index()
        index.profiles.pop(profile.name, None)
        if index.active_profile == profile.name:
            index.active_profile = ""
        self.save_index(index)

        logger.debug("deleted profile %s", profile.name)
        return profile

    # active pointer

    def get_active(self) -> Profile:
        """
        load the active profile.

        raises:
            NotFoundError: if none is set, or it points at a missing profile
                (in which case the pointer is cleared)
        """
        index = self.load_index()
        if not index.active_profile:
            raise NotFoundError("No active profile set")

        try:
            return self.load(index.active_profile)
        except NotFoundError:
            logger.warning(
                "active profile '%s' no longer exists, clearing it", index.active_profile
            )
            index.active_profile = ""
            self.save_index(index)
            raise

    def set_active(self, identifier: str) -> Profile:
        """mark a profile as active and return it."""
        profile = self.load(identifier)
        index = self.load_index()
        index.active_profile = profile.name
        index.profiles.setdefault(profile.name, profile.email)
        self.save_index(index)
        return profile
