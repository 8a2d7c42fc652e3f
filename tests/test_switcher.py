"""test suite for the switching engine."""
import json
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cflip.domain.errors import (
    InvalidStateError,
    NoProfilesError,
    NotFoundError,
    StorageIOError,
)
from cflip.profiles import Switcher


class TestAddCurrent:
    def test_add_uses_email_as_name(self, login, switcher, repository):
        login("alice@co.com")

        profile = switcher.add_current()

        assert profile.name == "alice@co.com"
        assert profile.account_uuid == "uuid-alice"
        assert profile.last_active_at is not None
        assert repository.get_active().name == "alice@co.com"

    def test_add_with_alias(self, login, switcher, repository):
        login("alice@co.com")

        profile = switcher.add_current("work")

        assert profile.name == "work"
        assert profile.alias == "work"
        assert repository.load_index().active_profile == "work"

    def test_add_twice_is_idempotent(self, login, switcher, repository):
        login("alice@co.com")

        first = switcher.add_current("")
        second = switcher.add_current("")

        assert first.name == second.name
        assert len(repository.list()) == 1
        assert repository.load_index().profiles == {"alice@co.com": "alice@co.com"}
        assert second.created_at == first.created_at

    def test_add_refreshes_tokens(self, login, switcher, repository):
        login("alice@co.com", token="old")
        switcher.add_current()
        login("alice@co.com", token="new")

        switcher.add_current()

        assert repository.load("alice@co.com").credentials.access_token == "new"

    def test_add_without_token_fails(self, login, switcher, repository):
        login("alice@co.com", with_credentials=False)

        with pytest.raises(InvalidStateError):
            switcher.add_current()
        assert repository.list() == []

    def test_alias_taken_by_other_account(self, login, switcher, repository):
        login("alice@co.com")
        switcher.add_current("work")
        login("bob@co.com")

        with pytest.raises(InvalidStateError, match="work"):
            switcher.add_current("work")

        assert repository.load("work").email == "alice@co.com"
        assert repository.get_active().email == "alice@co.com"
        assert [p.email for p in repository.list()] == ["alice@co.com"]

    def test_add_without_config_fails(self, switcher):
        with pytest.raises(NotFoundError):
            switcher.add_current()


class TestNextProfile:
    @pytest.fixture
    def three_profiles(self, login, switcher):
        for email in ["a@co.com", "b@co.com", "c@co.com"]:
            login(email)
            switcher.add_current()
        # c was added last, so it is active and live

    def test_wraps_to_first(self, three_profiles, switcher, repository):
        assert repository.get_active().email == "c@co.com"
        assert switcher.next_profile().email == "a@co.com"

    def test_advances(self, three_profiles, switcher, repository):
        repository.set_active("a@co.com")
        assert switcher.next_profile().email == "b@co.com"

    def test_no_active_picks_first(self, three_profiles, switcher, repository):
        index = repository.load_index()
        index.active_profile = ""
        repository.save_index(index)
        assert switcher.next_profile().email == "a@co.com"

    def test_switch_without_identifier_wraps(self, three_profiles, switcher, live_email):
        profile = switcher.switch_to("")

        assert profile.email == "a@co.com"
        assert live_email() == "a@co.com"

    def test_no_profiles(self, switcher):
        with pytest.raises(NoProfilesError):
            switcher.switch_to("")


class TestSwitch:
    def test_single_profile_switches_to_itself(self, login, switcher, repository, live_email, live_token):
        login("alice@co.com", token="tok-1")
        switcher.add_current()
        # Claude refreshed the token since the profile was saved
        login("alice@co.com", token="tok-2")

        profile = switcher.switch_to("")

        assert profile.email == "alice@co.com"
        assert live_email() == "alice@co.com"
        # the fresher live token wins over the saved one
        assert live_token() == "tok-2"
        assert repository.get_active().name == "alice@co.com"

    def test_single_inactive_profile(self, login, switcher, repository, live_email):
        login("alice@co.com")
        switcher.add_current()
        index = repository.load_index()
        index.active_profile = ""
        repository.save_index(index)

        assert switcher.switch_to("").email == "alice@co.com"
        assert live_email() == "alice@co.com"

    def test_alice_to_bob(self, login, switcher, repository, live_config, live_email, live_token):
        login("bob@co.com", token="bob-token")
        switcher.add_current()
        login("alice@co.com", token="alice-token-1")
        switcher.add_current()

        # alice keeps working: Claude refreshes her token and she changes settings
        document = login("alice@co.com", token="alice-token-2")
        document["theme"] = "light"
        document["customApiKeyResponses"] = {"approved": ["abc"]}
        live_config.write_text(json.dumps(document))
        third_party = {k: v for k, v in document.items() if k != "oauthAccount"}

        profile = switcher.switch_to("bob@co.com")

        # (a) alice's profile refreshed with her live state
        alice = repository.load("alice@co.com")
        assert alice.credentials.access_token == "alice-token-2"
        assert alice.claude_config["theme"] == "light"
        # (b) live state now bob's
        assert live_email() == "bob@co.com"
        assert live_token() == "bob-token"
        # (c) bob is active
        assert profile.name == "bob@co.com"
        assert repository.load_index().active_profile == "bob@co.com"
        # (d) third-party keys untouched
        after = json.loads(live_config.read_text())
        for key, value in third_party.items():
            assert after[key] == value

    def test_round_trip_back(self, login, switcher, live_email, live_token):
        login("bob@co.com", token="bob-token")
        switcher.add_current()
        login("alice@co.com", token="alice-token")
        switcher.add_current()

        switcher.switch_to("bob@co.com")
        switcher.switch_to("alice@co.com")

        assert live_email() == "alice@co.com"
        assert live_token() == "alice-token"

    def test_unsaved_live_account_is_backed_up(self, login, switcher, repository):
        login("bob@co.com")
        switcher.add_current()
        # user logged in to a new account without running `cflip add`
        login("carol@co.com", token="carol-token")

        switcher.switch_to("bob@co.com")

        carol = repository.load("carol@co.com")
        assert carol.credentials.access_token == "carol-token"
        assert carol.name == "carol@co.com"

    def test_switch_sets_last_active(self, login, switcher, repository):
        login("bob@co.com")
        switcher.add_current()
        login("alice@co.com")
        switcher.add_current()

        switcher.switch_to("bob@co.com")

        assert repository.load("bob@co.com").last_active_at is not None

    def test_switch_by_alias(self, login, switcher, live_email):
        login("bob@co.com")
        switcher.add_current("personal")
        login("alice@co.com")
        switcher.add_current()

        switcher.switch_to("personal")

        assert live_email() == "bob@co.com"

    def test_unknown_target_leaves_live_state(self, login, switcher, live_config, live_token):
        login("alice@co.com", token="alice-token")
        switcher.add_current()
        before = live_config.read_text()

        with pytest.raises(NotFoundError):
            switcher.switch_to("nobody@co.com")

        assert live_config.read_text() == before
        assert live_token() == "alice-token"

    def test_invalid_target_aborts_before_writing(self, login, switcher, repository, live_config):
        login("bob@co.com")
        bob = switcher.add_current()
        bob.credentials.claude_ai_oauth.access_token = ""
        repository.save(bob)
        login("alice@co.com")
        switcher.add_current()
        before = live_config.read_text()

        with pytest.raises(InvalidStateError):
            switcher.switch_to("bob@co.com")

        assert live_config.read_text() == before
        assert repository.load_index().active_profile == "alice@co.com"

    def test_switch_without_live_config(self, login, switcher, live_config, live_email):
        login("bob@co.com")
        switcher.add_current()
        live_config.unlink()

        switcher.switch_to("bob@co.com")

        assert live_email() == "bob@co.com"

    def test_reconciliation_failure_is_a_warning(self, login, repository, claude_state, live_email):
        logger = MagicMock()
        switcher = Switcher(repository, claude_state, logger=logger)
        login("bob@co.com")
        switcher.add_current()
        login("alice@co.com")
        switcher.add_current()

        original_save = repository.save

        def save(profile):
            if profile.email == "alice@co.com":
                raise StorageIOError("disk full")
            return original_save(profile)

        repository.save = save

        profile = switcher.switch_to("bob@co.com")

        assert profile.email == "bob@co.com"
        assert live_email() == "bob@co.com"
        logger.warning.assert_called_once()
        assert "alice@co.com" in logger.warning.call_args[0]


class TestRenameValidateRemove:
    def test_rename_changes_alias_only(self, login, switcher, repository):
        login("alice@co.com")
        switcher.add_current()

        switcher.rename("alice@co.com", "Work")

        profile = repository.load("alice@co.com")
        assert profile.alias == "Work"
        assert profile.name == "alice@co.com"
        assert repository.load_index().active_profile == "alice@co.com"

    def test_validate_good_profile(self, login, switcher):
        login("alice@co.com")
        switcher.add_current()
        assert switcher.validate_profile("alice@co.com").email == "alice@co.com"

    def test_validate_empty_token(self, login, switcher, repository):
        login("alice@co.com")
        profile = switcher.add_current()
        profile.credentials.claude_ai_oauth.access_token = ""
        repository.save(profile)

        with pytest.raises(InvalidStateError, match="access token"):
            switcher.validate_profile("alice@co.com")

    def test_validate_missing_credentials(self, login, switcher, repository):
        login("alice@co.com")
        profile = switcher.add_current()
        profile.credentials = None
        repository.save(profile)

        with pytest.raises(InvalidStateError, match="credentials"):
            switcher.validate_profile("alice@co.com")

    def test_validate_missing_identity(self, login, switcher, repository):
        login("alice@co.com")
        profile = switcher.add_current()
        del profile.claude_config["oauthAccount"]
        repository.save(profile)

        with pytest.raises(InvalidStateError, match="OAuth"):
            switcher.validate_profile("alice@co.com")

    def test_validate_ignores_expiry(self, login, switcher, repository):
        login("alice@co.com")
        profile = switcher.add_current()
        profile.credentials.claude_ai_oauth.expires_at = 1000
        repository.save(profile)

        switcher.validate_profile("alice@co.com")

    def test_remove_active_leaves_live_files(self, login, switcher, repository, live_config, live_token):
        login("alice@co.com", token="alice-token")
        switcher.add_current("P")
        before = live_config.read_text()

        switcher.remove("P")

        with pytest.raises(NotFoundError):
            switcher.current()
        assert live_config.read_text() == before
        assert live_token() == "alice-token"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
