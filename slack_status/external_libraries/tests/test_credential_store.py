"""
Tests for the workspace credential store.

Usage:
    pytest slack_status/external_libraries/tests/test_credential_store.py -v
"""
import os
import stat

import pytest
import yaml

from slack_status.external_libraries.credential_store import ConfigError, CredentialsStore
from slack_status.external_libraries.slack.credentials import WorkspaceCredential


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "slack-status"


def write_config(path, document):
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


VALID_DOCUMENT = {
    "version": 2,
    "workspaces": [
        {"name": "acme", "user": "U001", "accessToken": "xoxp-acme", "groups": ["eng"]},
        {"name": "globex", "user": "U002", "accessToken": "xoxp-globex", "groups": ["ops", "eng"]},
        {"name": "initech", "user": None, "accessToken": "xoxp-initech"},
    ],
}


# ===========================================================================
# Loading
# ===========================================================================

class TestLoad:

    def test_load_valid_store_keeps_order(self, config_path):
        write_config(config_path, VALID_DOCUMENT)
        store = CredentialsStore.load(config_path)

        assert [w.name for w in store] == ["acme", "globex", "initech"]
        assert store.workspaces[0] == WorkspaceCredential(
            name="acme", access_token="xoxp-acme", user="U001", groups=["eng"]
        )
        assert store.workspaces[2].groups == []
        assert store.workspaces[2].user is None

    def test_missing_file_raises(self, config_path):
        with pytest.raises(ConfigError, match="failed to read file"):
            CredentialsStore.load(config_path)

    def test_malformed_yaml_raises(self, config_path):
        config_path.write_text("workspaces: [name: {", encoding="utf-8")
        with pytest.raises(ConfigError, match="failed to parse configuration"):
            CredentialsStore.load(config_path)

    def test_document_must_be_a_mapping(self, config_path):
        config_path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="not a mapping"):
            CredentialsStore.load(config_path)

    def test_empty_token_fails_whole_load(self, config_path):
        document = {
            "version": 2,
            "workspaces": [
                {"name": "acme", "user": "U001", "accessToken": "xoxp-acme"},
                {"name": "broken", "user": "U002", "accessToken": ""},
            ],
        }
        write_config(config_path, document)
        with pytest.raises(ConfigError, match="access token is required"):
            CredentialsStore.load(config_path)

    def test_missing_token_fails_load(self, config_path):
        write_config(config_path, {"version": 2, "workspaces": [{"name": "acme", "user": "U001"}]})
        with pytest.raises(ConfigError, match="access token is required"):
            CredentialsStore.load(config_path)

    def test_groups_must_be_strings(self, config_path):
        document = {"version": 2, "workspaces": [
            {"name": "acme", "user": "U1", "accessToken": "xoxp-1", "groups": "eng"},
        ]}
        write_config(config_path, document)
        with pytest.raises(ConfigError, match="groups"):
            CredentialsStore.load(config_path)

    def test_unsupported_version(self, config_path):
        write_config(config_path, {"version": 7, "workspaces": []})
        with pytest.raises(ConfigError, match="unsupported version"):
            CredentialsStore.load(config_path)

    @pytest.mark.parametrize("version", [True, "2", 2.0])
    def test_version_must_be_an_integer(self, config_path, version):
        write_config(config_path, {"version": version, "workspaces": []})
        with pytest.raises(ConfigError, match="unsupported version"):
            CredentialsStore.load(config_path)

    def test_current_version_requires_user_key(self, config_path):
        write_config(config_path, {"version": 2, "workspaces": [{"name": "acme", "accessToken": "xoxp-1"}]})
        with pytest.raises(ConfigError, match="user is required"):
            CredentialsStore.load(config_path)

    def test_empty_file_is_an_empty_store(self, config_path):
        config_path.write_text("", encoding="utf-8")
        assert len(CredentialsStore.load(config_path)) == 0


class TestLegacySchema:

    def test_unversioned_document_loads_with_and_without_user(self, config_path):
        document = {"workspaces": [
            {"name": "old", "accessToken": "xoxp-old", "groups": ["eng"]},
            {"name": "newer", "user": "U9", "accessToken": "xoxp-newer"},
        ]}
        write_config(config_path, document)
        store = CredentialsStore.load(config_path)

        assert store.workspaces[0].user is None
        assert store.workspaces[1].user == "U9"

    def test_save_upgrades_to_current_version(self, config_path):
        write_config(config_path, {"workspaces": [{"name": "old", "accessToken": "xoxp-old"}]})
        CredentialsStore.load(config_path).save()

        saved = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        assert saved["version"] == 2
        assert saved["workspaces"][0] == {"name": "old", "user": None, "accessToken": "xoxp-old", "groups": []}

        # and the upgraded file loads again
        assert CredentialsStore.load(config_path).workspaces[0].name == "old"


# ===========================================================================
# Saving
# ===========================================================================

class TestSave:

    def test_load_or_empty_without_file(self, config_path):
        store = CredentialsStore.load_or_empty(config_path)
        assert len(store) == 0
        assert store.path == config_path

    def test_load_or_empty_does_not_hide_invalid_file(self, config_path):
        write_config(config_path, {"version": 2, "workspaces": [{"name": "x", "user": "U", "accessToken": ""}]})
        with pytest.raises(ConfigError):
            CredentialsStore.load_or_empty(config_path)

    def test_add_appends_and_save_persists(self, config_path):
        write_config(config_path, VALID_DOCUMENT)
        store = CredentialsStore.load(config_path)
        store.add(WorkspaceCredential(name="acme", access_token="xoxp-second", user="U003"))
        store.save()

        reloaded = CredentialsStore.load(config_path)
        assert [w.name for w in reloaded] == ["acme", "globex", "initech", "acme"]
        assert reloaded.workspaces[-1].access_token == "xoxp-second"

    def test_add_rejects_empty_token(self, config_path):
        store = CredentialsStore(config_path)
        with pytest.raises(ConfigError):
            store.add(WorkspaceCredential(name="acme", access_token=""))
        assert len(store) == 0

    def test_saved_file_is_owner_only(self, config_path):
        store = CredentialsStore(config_path, [WorkspaceCredential(name="a", access_token="xoxp-a", user="U1")])
        store.save()
        if os.name == "posix":
            assert stat.S_IMODE(config_path.stat().st_mode) == 0o600

    def test_save_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "slack-status"
        CredentialsStore(path).save()
        assert path.exists()


class TestWorkspaceCredential:

    def test_is_in_group(self):
        credential = WorkspaceCredential(name="a", access_token="t", groups=["eng", "eng", "ops"])
        assert credential.is_in_group("eng")
        assert credential.is_in_group("ops")
        assert not credential.is_in_group("sales")
        assert not credential.is_in_group("")

    def test_to_dict_uses_file_field_names(self):
        credential = WorkspaceCredential(name="a", access_token="t", user="U1", groups=["eng"])
        assert credential.to_dict() == {"name": "a", "user": "U1", "accessToken": "t", "groups": ["eng"]}
