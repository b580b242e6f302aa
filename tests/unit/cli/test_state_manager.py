"""Unit tests for cli.config module (StateManager and SyncStore)."""

import os

import pytest

from notion_mirror.cli.config import StateManager, SyncStore
from notion_mirror.cli.errors import StateError, StateFilesystemError
from notion_mirror.cli.models import SyncState
from notion_mirror.file_mapper.models import AssetRecord, SyncRecord


def make_state():
    return SyncState(
        last_synced="2024-01-15T10:30:00.000Z",
        synced_pages={"p1": SyncRecord("p1", "Notion/Projects/Plan.md", "2024-01-15T10:12:00.000Z")},
        synced_assets={
            "https://x.com/a.png": AssetRecord("https://x.com/a.png", "attachments/a_1.png", "4abcd"),
        },
    )


class TestStateManagerLoad:
    """Test cases for StateManager.load."""

    def test_missing_file_is_fresh_state(self, tmp_path):
        state = StateManager.load(str(tmp_path / "state.yaml"))

        assert state == SyncState()
        assert state.last_synced is None

    def test_empty_file_is_fresh_state(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("   \n", encoding="utf-8")

        assert StateManager.load(str(path)) == SyncState()

    def test_malformed_yaml_raises(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("synced_pages: {unclosed\n", encoding="utf-8")

        with pytest.raises(StateError, match="Invalid YAML"):
            StateManager.load(str(path))

    @pytest.mark.parametrize("content,field_name", [
        ("last_synced: 5\n", "last_synced"),
        ("synced_pages: [a]\n", "synced_pages"),
        ("synced_pages:\n  p1: {last_synced_revision: r}\n", "synced_pages"),
        ("synced_assets:\n  u: {local_path: a.png, content_hash: 7}\n", "synced_assets"),
    ])
    def test_invalid_fields(self, tmp_path, content, field_name):
        path = tmp_path / "state.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(StateError) as exc_info:
            StateManager.load(str(path))
        assert exc_info.value.state_field == field_name

    def test_non_dict_document(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("- 1\n", encoding="utf-8")

        with pytest.raises(StateError, match="dictionary"):
            StateManager.load(str(path))

    def test_unreadable_path_raises_filesystem_error(self, tmp_path):
        with pytest.raises(StateFilesystemError):
            StateManager.load(str(tmp_path))


class TestStateManagerSave:
    """Test cases for StateManager.save."""

    def test_round_trip(self, tmp_path):
        path = str(tmp_path / ".notion-mirror" / "state.yaml")
        state = make_state()

        StateManager.save(path, state)

        assert StateManager.load(path) == state

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / "state.yaml"

        StateManager.save(str(path), make_state())
        StateManager.save(str(path), SyncState())

        assert os.listdir(tmp_path) == ["state.yaml"]
        assert StateManager.load(str(path)) == SyncState()


class TestSyncStore:
    """Test cases for SyncStore."""

    def test_checkpoint_persists_mutations(self, tmp_path):
        path = str(tmp_path / "state.yaml")
        store = SyncStore.open(path)

        store.state.synced_pages["p1"] = SyncRecord("p1", "Plan.md", "r1")
        store.checkpoint()

        assert StateManager.load(path).synced_pages["p1"].local_path == "Plan.md"

    def test_flush_sets_last_synced(self, tmp_path):
        path = str(tmp_path / "state.yaml")
        store = SyncStore.open(path)

        store.flush()

        loaded = StateManager.load(path)
        assert loaded.last_synced.endswith("Z")
        assert loaded.last_synced == store.state.last_synced
