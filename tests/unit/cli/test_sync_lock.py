"""Unit tests for cli.sync_lock module."""

from unittest.mock import patch

import pytest

from notion_mirror.cli import sync_lock
from notion_mirror.cli.sync_lock import SyncLock


class TestSyncLock:
    """Test cases for SyncLock."""

    def test_acquire_and_release(self, tmp_path):
        lock = SyncLock(str(tmp_path / ".notion-mirror"))

        assert lock.acquire() is True
        assert lock.lock_path.exists()
        lock.release()

        assert lock.acquire() is True
        lock.release()

    def test_second_holder_is_refused(self, tmp_path):
        """A second lock on the same directory does not wait, it fails."""
        first = SyncLock(str(tmp_path))
        second = SyncLock(str(tmp_path))

        assert first.acquire()
        try:
            assert second.acquire() is False
        finally:
            first.release()

        assert second.acquire() is True
        second.release()

    def test_hold_releases_on_exit(self, tmp_path):
        lock = SyncLock(str(tmp_path))

        with lock.hold() as acquired:
            assert acquired
            with SyncLock(str(tmp_path)).hold() as nested:
                assert nested is False

        with SyncLock(str(tmp_path)).hold() as again:
            assert again

    def test_hold_releases_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with SyncLock(str(tmp_path)).hold():
                raise RuntimeError("boom")

        with SyncLock(str(tmp_path)).hold() as acquired:
            assert acquired

    def test_different_directories_are_independent(self, tmp_path):
        with SyncLock(str(tmp_path / "a")).hold() as a, SyncLock(str(tmp_path / "b")).hold() as b:
            assert a and b

    def test_without_fcntl_thread_lock_still_applies(self, tmp_path):
        with patch.object(sync_lock, "HAS_FCNTL", False):
            first = SyncLock(str(tmp_path))
            assert first.acquire()
            assert SyncLock(str(tmp_path)).acquire() is False
            first.release()
