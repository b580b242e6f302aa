"""Mutual exclusion for sync passes.

At most one pass may run against a vault at a time. Within a process a
threading.Lock guards the entry point; across processes an advisory fcntl
lock on .notion-mirror/sync.lock does the same. Both are non-blocking: a
second pass is told the vault is busy and does no work.
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

# Import fcntl for POSIX file locking (not available on Windows)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = "sync.lock"

# One in-process lock per lock file path
_process_locks = {}
_process_locks_guard = threading.Lock()


def _process_lock(lock_path: Path) -> threading.Lock:
    with _process_locks_guard:
        return _process_locks.setdefault(str(lock_path), threading.Lock())


class SyncLock:
    """Non-blocking exclusive lock for one state directory.

    Example:
        >>> with SyncLock(".notion-mirror").hold() as acquired:
        ...     if not acquired:
        ...         return SyncStatus.ALREADY_RUNNING
        ...     engine.run()
    """

    def __init__(self, state_dir: str):
        self.lock_path = Path(state_dir) / LOCK_FILE_NAME
        self._thread_lock = _process_lock(self.lock_path.resolve())
        self._lock_file = None

    def acquire(self) -> bool:
        """Try to take the lock without waiting.

        Returns:
            True if the lock is now held, False if another pass holds it
        """
        if not self._thread_lock.acquire(blocking=False):
            logger.debug("Sync lock is held by another thread")
            return False

        if not HAS_FCNTL:
            logger.warning(
                "File locking not available on this platform. "
                "Concurrent sync passes from other processes are not detected."
            )
            return True

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            self._lock_file = open(self.lock_path, 'w')
        except OSError:
            self._thread_lock.release()
            raise

        try:
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            logger.debug(f"Sync lock {self.lock_path} is held by another process")
            self._lock_file.close()
            self._lock_file = None
            self._thread_lock.release()
            return False

        logger.debug(f"Sync lock acquired: {self.lock_path}")
        return True

    def release(self) -> None:
        if self._lock_file is not None:
            try:
                fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            except OSError as e:
                logger.warning(f"Failed to release sync lock: {e}")
            self._lock_file.close()
            self._lock_file = None
        self._thread_lock.release()
        logger.debug("Sync lock released")

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Context manager yielding whether the lock was acquired."""
        acquired = self.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
