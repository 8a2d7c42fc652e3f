"""shared fixtures: a fake Claude Code install under a temporary home."""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cflip.claude import ClaudeState
from cflip.domain.errors import NotFoundError
from cflip.profiles import ProfileRepository, Switcher
from cflip.storage import SecureStore


class MemoryStore(SecureStore):
    """in-memory secure store."""

    def __init__(self):
        self.items = {}

    def store(self, key, data):
        self.items[key] = data

    def retrieve(self, key):
        if key not in self.items:
            raise NotFoundError(f"Key not found: {key}")
        return self.items[key]

    def delete(self, key):
        self.items.pop(key, None)


ACCOUNT_KEY = "tester"

# settings Claude Code keeps regardless of which account is logged in
BASE_SETTINGS = {
    "numStartups": 12,
    "theme": "dark",
    "autoUpdates": False,
    "projects": {"/work/app": {"allowedTools": ["Bash"], "history": []}},
}


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def secure_store():
    return MemoryStore()


@pytest.fixture
def claude_state(home, secure_store):
    return ClaudeState(secure_store, home=home, account_key=ACCOUNT_KEY)


@pytest.fixture
def repository(tmp_path):
    data_dir = tmp_path / "cflip"
    return ProfileRepository(data_dir / "profiles", data_dir / "profiles.json")


@pytest.fixture
def switcher(repository, claude_state):
    return Switcher(repository, claude_state)


@pytest.fixture
def live_config(home):
    """path of the primary Claude Code config file."""
    return home / ".claude.json"


@pytest.fixture
def login(live_config, secure_store):
    """
    simulate Claude Code logging in as an account.

    existing non-auth settings in the live config are kept, as Claude does.
    """
    def _login(email, uuid=None, token=None, with_credentials=True):
        if live_config.exists():
            document = json.loads(live_config.read_text())
        else:
            document = json.loads(json.dumps(BASE_SETTINGS))
        document["oauthAccount"] = {
            "accountUuid": uuid or f"uuid-{email.split('@')[0]}",
            "emailAddress": email,
            "organizationUuid": "org-1",
            "organizationName": "Co",
        }
        live_config.write_text(json.dumps(document, indent=2))

        if with_credentials:
            secure_store.store(ACCOUNT_KEY, json.dumps({
                "claudeAiOauth": {
                    "accessToken": token or f"access-{email}",
                    "refreshToken": f"refresh-{email}",
                    "expiresAt": 4102444800000,
                    "scopes": ["user:inference"],
                    "subscriptionType": "pro",
                },
            }))
        else:
            secure_store.delete(ACCOUNT_KEY)
        return document

    return _login


@pytest.fixture
def live_email(live_config):
    def _live_email():
        return json.loads(live_config.read_text())["oauthAccount"]["emailAddress"]
    return _live_email


@pytest.fixture
def live_token(secure_store):
    def _live_token():
        return json.loads(secure_store.items[ACCOUNT_KEY])["claudeAiOauth"]["accessToken"]
    return _live_token
