import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .models import Credentials, Snapshot
from ..config import claude_config_candidates
from ..domain.errors import InvalidStateError, NotFoundError, StorageIOError
from ..platform import resolve_account_key
from ..storage import SecureStore
from ..utils.fs import atomic_write_text, backup_file

logger = logging.getLogger(__name__)


class ClaudeState:
    """reads and writes Claude Code's live config file and credentials."""

    def __init__(
        self,
        secure_store: SecureStore,
        home: Optional[Path] = None,
        candidates: Optional[List[Path]] = None,
        account_key: Optional[str] = None,
    ):
        self.secure_store = secure_store
        self.candidates = candidates or claude_config_candidates(home)
        self.account_key = account_key or resolve_account_key()

    def locate(self) -> Tuple[Path, Dict[str, Any]]:
        """
        find the first candidate path holding a JSON object.

        returns:
            (path, parsed document)

        raises:
            NotFoundError: if no candidate parses, listing every path tried
        """
        problems = []
        for path in self.candidates:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    document = json.load(f)
            except FileNotFoundError:
                problems.append(f"{path} (missing)")
                continue
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.debug("skipping unreadable Claude config %s: %s", path, e)
                problems.append(f"{path} ({e})")
                continue

            if isinstance(document, dict):
                return path, document
            problems.append(f"{path} (not a JSON object)")

        raise NotFoundError(
            "No valid Claude Code config file found. Tried: " + ", ".join(problems)
        )

    def live_path(self) -> Path:
        """path apply() writes to: the located config, else the primary candidate."""
        try:
            path, _ = self.locate()
        except NotFoundError:
            return self.candidates[0]
        return path

    def read_credentials(self) -> Optional[Credentials]:
        """read live credentials, None when the secure store has none."""
        try:
            raw = self.secure_store.retrieve(self.account_key)
        except NotFoundError:
            logger.debug("no Claude credentials stored under '%s'", self.account_key)
            return None
        try:
            return Credentials.model_validate_json(raw)
        except ValidationError as e:
            raise InvalidStateError(f"Stored Claude credentials are malformed: {e}") from e

    def capture(self) -> Snapshot:
        """
        capture the live Claude Code state.

        the returned snapshot may lack credentials; callers that need a
        complete one call ensure_valid().

        raises:
            NotFoundError: if no config file could be parsed
            InvalidStateError: if the config has no OAuth account section
        """
        path, document = self.locate()
        snapshot = Snapshot(config_document=document)
        if not snapshot.oauth_account:
            tried = ", ".join(str(p) for p in self.candidates)
            raise InvalidStateError(
                f"No OAuth account information in {path} (searched: {tried}). "
                "Log in to Claude Code first."
            )
        snapshot.credentials = self.read_credentials()
        logger.debug("captured Claude state for %s from %s", snapshot.email, path)
        return snapshot

    def apply(self, snapshot: Snapshot) -> Path:
        """
        write snapshot back to Claude Code's live config and secure store.

        the live file is backed up first and replaced atomically; on failure it
        is left exactly as it was.

        returns:
            the config path written

        raises:
            InvalidStateError: if the snapshot is incomplete (nothing is written)
            StorageIOError: if the config or credentials write fails
        """
        snapshot.ensure_valid()

        path = self.live_path()
        data = json.dumps(snapshot.clean_config(), indent=2, ensure_ascii=False)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"failed to create {path.parent}: {e}", path) from e

        if path.exists():
            backup_file(path)
        atomic_write_text(path, data)

        # not atomic with the config write above; see DESIGN.md
        self.secure_store.store(self.account_key, snapshot.credentials.to_json())
        logger.info("applied Claude state for %s to %s", snapshot.email, path)
        return path
