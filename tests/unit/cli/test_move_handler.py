"""Unit tests for cli.move_handler module."""

from unittest.mock import Mock

import pytest

from notion_mirror.cli.models import MoveInfo, SyncState
from notion_mirror.cli.move_handler import MoveHandler
from notion_mirror.file_mapper.models import SyncRecord
from notion_mirror.file_mapper.vault import Vault


@pytest.fixture
def vault(tmp_path):
    return Vault(str(tmp_path / "vault"))


@pytest.fixture
def store():
    store = Mock()
    store.state = SyncState(synced_pages={"p1": SyncRecord("p1", "Old/Plan.md", "r1")})
    return store


MOVE = MoveInfo("p1", "Plan", "Old/Plan.md", "New/Folder/Plan.md")


class TestMoveLocalFiles:
    """Test cases for MoveHandler.move_local_files."""

    def test_moves_file_and_updates_record(self, vault, store):
        # Arrange
        vault.write_text("Old/Plan.md", "# Plan")
        handler = MoveHandler(vault, store)

        # Act
        moved = handler.move_local_files([MOVE])

        # Assert
        assert moved == ["p1"]
        assert vault.read_text("New/Folder/Plan.md") == "# Plan"
        assert not vault.exists("Old/Plan.md")
        assert store.state.synced_pages["p1"].local_path == "New/Folder/Plan.md"
        store.checkpoint.assert_called_once()

    def test_missing_source_only_updates_record(self, vault, store):
        moved = MoveHandler(vault, store).move_local_files([MOVE])

        assert moved == ["p1"]
        assert store.state.synced_pages["p1"].local_path == "New/Folder/Plan.md"
        assert not vault.exists("New/Folder/Plan.md")

    def test_existing_target_is_skipped(self, vault, store):
        vault.write_text("Old/Plan.md", "old")
        vault.write_text("New/Folder/Plan.md", "someone else")
        handler = MoveHandler(vault, store)

        moved = handler.move_local_files([MOVE])

        assert moved == []
        assert handler.skipped_count == 1
        assert vault.read_text("New/Folder/Plan.md") == "someone else"
        assert store.state.synced_pages["p1"].local_path == "Old/Plan.md"
        store.checkpoint.assert_not_called()

    def test_unknown_record_is_ignored(self, vault, store):
        moved = MoveHandler(vault, store).move_local_files([MoveInfo("p9", "X", "a.md", "b.md")])
        assert moved == []


class TestCleanupEmptyFolders:
    """Test cases for MoveHandler.cleanup_empty_folders."""

    def test_old_folder_removed_after_move(self, vault, store):
        vault.write_text("Old/Plan.md", "# Plan")
        handler = MoveHandler(vault, store)
        handler.move_local_files([MOVE])

        removed = handler.cleanup_empty_folders(["Old/Plan.md"], [])

        assert removed == ["Old"]
        assert vault.is_folder("New/Folder")
