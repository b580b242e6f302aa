"""Local file store rooted at the vault directory.

All paths handled by the sync engine are vault-relative and '/'-separated.
This module maps them onto the real filesystem, rejects paths that would
escape the vault and writes files atomically (temp file + replace) so a
crash never leaves a half-written document behind.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Set

from .errors import FilesystemError

logger = logging.getLogger(__name__)


def _ancestors(path: str, include_self: bool = False) -> List[str]:
    """Ancestor folders of a vault path, e.g. "a/b/c.md" -> ["a", "a/b"]."""
    parts = [part for part in path.split('/') if part]
    end = len(parts) + 1 if include_self else len(parts)
    return ['/'.join(parts[:i]) for i in range(1, end)]


class Vault:
    """File operations on vault-relative paths.

    Every method raises FilesystemError on failure so callers can log the
    failing item and continue with the rest of the batch.

    Example:
        >>> vault = Vault("./notes")
        >>> vault.write_text("Projects/Plan.md", "# Plan\\n")
        >>> vault.exists("Projects/Plan.md")
        True
    """

    def __init__(self, root: str):
        """Initialize the vault.

        Args:
            root: Directory that holds the mirrored tree (created if missing)
        """
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def absolute(self, rel_path: str) -> Path:
        """Map a vault-relative path to an absolute path inside the vault.

        Raises:
            FilesystemError: If the path escapes the vault or cannot be resolved
        """
        try:
            candidate = (self.root / rel_path).resolve()
        except OSError as e:
            raise FilesystemError(rel_path, 'resolve', str(e))
        if candidate != self.root and self.root not in candidate.parents:
            raise FilesystemError(
                rel_path,
                'validate',
                f'Path traversal detected: {rel_path} is outside vault {self.root}'
            )
        return candidate

    def exists(self, rel_path: str) -> bool:
        return self._stat(rel_path, Path.exists)

    def is_file(self, rel_path: str) -> bool:
        return self._stat(rel_path, Path.is_file)

    def is_folder(self, rel_path: str) -> bool:
        return self._stat(rel_path, Path.is_dir)

    def list_children(self, rel_path: str) -> List[str]:
        """Return the names of a folder's direct children (sorted)."""
        path = self.absolute(rel_path)
        try:
            return sorted(child.name for child in path.iterdir())
        except OSError as e:
            raise FilesystemError(rel_path, 'list', str(e))

    def is_empty_folder(self, rel_path: str) -> bool:
        return self._stat(rel_path, lambda path: path.is_dir() and not any(path.iterdir()))

    def ensure_folder(self, rel_path: str) -> bool:
        """Create a folder (and parents) if missing.

        Returns:
            True if the folder was created, False if it already existed
        """
        if not rel_path:
            return False
        if self.is_folder(rel_path):
            return False
        try:
            self.absolute(rel_path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(rel_path, 'create_directory', str(e))
        logger.debug(f"Created folder: {rel_path}")
        return True

    def read_text(self, rel_path: str) -> str:
        path = self.absolute(rel_path)
        try:
            return path.read_text(encoding='utf-8')
        except OSError as e:
            raise FilesystemError(rel_path, 'read', str(e))
        except UnicodeDecodeError as e:
            raise FilesystemError(rel_path, 'read', f"Not valid UTF-8: {e}")

    def write_text(self, rel_path: str, content: str) -> None:
        self._write_atomic(rel_path, content.encode('utf-8'))

    def write_bytes(self, rel_path: str, data: bytes) -> None:
        self._write_atomic(rel_path, data)

    def delete(self, rel_path: str) -> bool:
        """Delete a file or an (empty) folder.

        Returns:
            True if something was deleted, False if the path did not exist
        """
        path = self.absolute(rel_path)
        if path == self.root:
            raise FilesystemError(rel_path, 'delete', 'Refusing to delete the vault root')
        try:
            if path.is_dir():
                path.rmdir()
            elif path.exists():
                path.unlink()
            else:
                return False
        except OSError as e:
            raise FilesystemError(rel_path, 'delete', str(e))
        return True

    def rename(self, old_path: str, new_path: str) -> None:
        """Move a file, creating the destination folder if needed.

        Raises:
            FilesystemError: If the source is missing, the target exists or
                             the move fails
        """
        source = self.absolute(old_path)
        target = self.absolute(new_path)
        if not self.exists(old_path):
            raise FilesystemError(old_path, 'rename', 'Source does not exist')
        if self.exists(new_path):
            raise FilesystemError(new_path, 'rename', 'Target already exists')
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(target))
        except OSError as e:
            raise FilesystemError(old_path, 'rename', f"{e} (target {new_path})")

    def remove_empty_ancestors(self, paths: Iterable[str], protected: Iterable[str] = ()) -> List[str]:
        """Remove empty folders above the given paths, deepest first.

        A folder emptied by removing its last subfolder is removed too,
        since parents are visited after their children. Protected folders
        (and their ancestors) and the vault root are never removed.

        Returns:
            Removed folder paths
        """
        keep: Set[str] = set()
        for folder in protected:
            keep.update(_ancestors(folder.strip('/'), include_self=True))

        candidates: Set[str] = set()
        for path in paths:
            candidates.update(_ancestors(path))
        candidates -= keep

        removed: List[str] = []
        for folder in sorted(candidates, key=lambda p: (-p.count('/'), p)):
            try:
                if self.is_empty_folder(folder):
                    self.delete(folder)
                    removed.append(folder)
                    logger.info(f"Removed empty folder: {folder}")
            except FilesystemError as e:
                logger.warning(f"Failed to remove empty folder {folder}: {e}")
        return removed

    def _stat(self, rel_path: str, check: Callable[[Path], bool]) -> bool:
        """Run a stat-based check; an OSError such as ENAMETOOLONG becomes FilesystemError."""
        path = self.absolute(rel_path)
        try:
            return check(path)
        except OSError as e:
            raise FilesystemError(rel_path, 'stat', str(e))

    def _write_atomic(self, rel_path: str, data: bytes) -> None:
        """Write via a temp file in the target folder, then replace."""
        path = self.absolute(rel_path)
        temp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=str(path.parent), prefix='.notion-mirror-', suffix='.tmp')
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(temp_path, path)
            temp_path = None
        except OSError as e:
            raise FilesystemError(rel_path, 'write', str(e))
        finally:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError as e:
                    logger.warning(f"Failed to remove temp file {temp_path}: {e}")
