"""Unit tests for file_mapper.vault module."""

import errno
import os
from pathlib import Path

import pytest

from notion_mirror.file_mapper.errors import FilesystemError
from notion_mirror.file_mapper.vault import Vault


@pytest.fixture
def vault(tmp_path):
    return Vault(str(tmp_path / "vault"))


class TestVaultFiles:
    """Test cases for reading, writing and deleting files."""

    def test_write_creates_parents(self, vault):
        vault.write_text("a/b/Plan.md", "# Plan\n")

        assert vault.is_file("a/b/Plan.md")
        assert vault.is_folder("a/b")
        assert vault.read_text("a/b/Plan.md") == "# Plan\n"

    def test_write_bytes(self, vault):
        vault.write_bytes("img.png", b"\x89PNG")
        assert (vault.root / "img.png").read_bytes() == b"\x89PNG"

    def test_write_leaves_no_temp_files(self, vault):
        vault.write_text("doc.md", "one")
        vault.write_text("doc.md", "two")

        assert vault.list_children("") == ["doc.md"]
        assert vault.read_text("doc.md") == "two"

    def test_failed_write_cleans_temp_file(self, vault, monkeypatch):
        """A failing replace must not leave the temp file behind."""
        def boom(src, dst):
            raise OSError("disk full")
        monkeypatch.setattr(os, "replace", boom)

        with pytest.raises(FilesystemError):
            vault.write_text("doc.md", "content")

        assert vault.list_children("") == []

    def test_delete_missing_returns_false(self, vault):
        assert vault.delete("nope.md") is False

    def test_delete_file_and_empty_folder(self, vault):
        vault.write_text("f/doc.md", "x")

        assert vault.delete("f/doc.md") is True
        assert vault.delete("f") is True
        assert not vault.exists("f")

    def test_delete_refuses_root(self, vault):
        with pytest.raises(FilesystemError):
            vault.delete("")

    def test_read_missing_raises(self, vault):
        with pytest.raises(FilesystemError) as exc_info:
            vault.read_text("missing.md")
        assert exc_info.value.operation == "read"


class TestVaultPathSecurity:
    """Paths must never escape the vault."""

    @pytest.mark.parametrize("path", ["../outside.md", "a/../../outside.md"])
    def test_traversal_rejected(self, vault, path):
        with pytest.raises(FilesystemError) as exc_info:
            vault.write_text(path, "x")
        assert "traversal" in str(exc_info.value)


class TestVaultStatErrors:
    """Stat and listing failures surface as FilesystemError."""

    @pytest.mark.parametrize("method,path_attr", [
        ("exists", "exists"),
        ("is_file", "is_file"),
        ("is_folder", "is_dir"),
        ("is_empty_folder", "is_dir"),
    ])
    def test_stat_oserror_is_wrapped(self, vault, monkeypatch, method, path_attr):
        def too_long(self, *args, **kwargs):
            raise OSError(errno.ENAMETOOLONG, "File name too long")
        monkeypatch.setattr(Path, path_attr, too_long)

        with pytest.raises(FilesystemError) as exc_info:
            getattr(vault, method)("doc.md")

        assert exc_info.value.operation == "stat"

    def test_overlong_folder_name(self, vault):
        with pytest.raises(FilesystemError):
            vault.ensure_folder("R" * 300)

    def test_overlong_rename_target(self, vault):
        vault.write_text("Plan.md", "x")

        with pytest.raises(FilesystemError):
            vault.rename("Plan.md", "L" * 300 + ".md")

        assert vault.is_file("Plan.md")


class TestVaultRename:
    """Test cases for Vault.rename."""

    def test_rename_into_new_folder(self, vault):
        vault.write_text("old/doc.md", "x")

        vault.rename("old/doc.md", "new/place/doc.md")

        assert vault.read_text("new/place/doc.md") == "x"
        assert not vault.exists("old/doc.md")

    def test_rename_onto_existing_target_raises(self, vault):
        vault.write_text("a.md", "a")
        vault.write_text("b.md", "b")

        with pytest.raises(FilesystemError):
            vault.rename("a.md", "b.md")
        assert vault.read_text("b.md") == "b"

    def test_rename_missing_source_raises(self, vault):
        with pytest.raises(FilesystemError):
            vault.rename("ghost.md", "b.md")


class TestRemoveEmptyAncestors:
    """Test cases for Vault.remove_empty_ancestors."""

    def test_removes_nested_empty_folders_deepest_first(self, vault):
        vault.ensure_folder("a/b/c")

        removed = vault.remove_empty_ancestors(["a/b/c/doc.md"])

        assert removed == ["a/b/c", "a/b", "a"]
        assert vault.list_children("") == []

    def test_keeps_non_empty_folders(self, vault):
        vault.write_text("a/keep.md", "x")
        vault.ensure_folder("a/b")

        removed = vault.remove_empty_ancestors(["a/b/doc.md"])

        assert removed == ["a/b"]
        assert vault.is_folder("a")

    def test_protected_folders_and_their_parents_kept(self, vault):
        vault.ensure_folder("Notion/Projects")
        vault.ensure_folder("media/attachments")

        removed = vault.remove_empty_ancestors(
            ["Notion/Projects/doc.md", "media/attachments/x.png"],
            protected=["Notion", "media/attachments"],
        )

        assert removed == ["Notion/Projects"]
        assert vault.is_folder("Notion")
        assert vault.is_folder("media/attachments")

    def test_ensure_folder_reports_creation(self, vault):
        assert vault.ensure_folder("x/y") is True
        assert vault.ensure_folder("x/y") is False
        assert vault.ensure_folder("") is False
