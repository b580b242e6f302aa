"""Move handler for the one-way mirror.

A page that was moved or renamed in Notion resolves to a new canonical
path. Its local document is renamed to that path (instead of deleted and
re-rendered) so anything that links to the file by path keeps working
until the next render. Folders left empty by a move are cleaned up.
"""

import logging
from typing import List

from ..file_mapper.errors import FilesystemError
from ..file_mapper.vault import Vault
from .config import SyncStore
from .models import MoveInfo

logger = logging.getLogger(__name__)


class MoveHandler:
    """Handles local moves for relocated pages.

    Example:
        >>> handler = MoveHandler(vault, store)
        >>> moved = handler.move_local_files(moves)
        >>> print(f"Moved {len(moved)} files")
    """

    def __init__(self, vault: Vault, store: SyncStore):
        self.vault = vault
        self.store = store
        self.failed_count = 0
        self.skipped_count = 0

    def move_local_files(self, moves: List[MoveInfo]) -> List[str]:
        """Rename documents to their new paths and update the records.

        A move whose target already exists is skipped; the record keeps its
        old path and the move is retried next pass. A move whose source is
        gone only updates the record, and the document is rendered again at
        the new path.

        Returns:
            List of page IDs whose records now point to the new path
        """
        logger.info(f"Processing {len(moves)} local move(s)")
        if not moves:
            return []

        moved_page_ids = []
        records = self.store.state.synced_pages

        for move in moves:
            record = records.get(move.page_id)
            if record is None:
                logger.warning(f"Page {move.page_id} ({move.title}): no sync record, skipping move")
                continue

            try:
                if self.vault.exists(move.new_path):
                    logger.warning(
                        f"Cannot move {move.old_path} -> {move.new_path} "
                        f"(page {move.page_id}): target already exists, skipping"
                    )
                    self.skipped_count += 1
                    continue

                if self.vault.exists(move.old_path):
                    self.vault.rename(move.old_path, move.new_path)
                    logger.info(f"Moved: {move.old_path} -> {move.new_path}")
                else:
                    logger.info(f"Source {move.old_path} is gone, recording new path {move.new_path}")
            except FilesystemError as e:
                logger.error(f"Failed to move {move.old_path} (page {move.page_id}): {e}")
                self.failed_count += 1
                continue

            record.local_path = move.new_path
            self.store.checkpoint()
            moved_page_ids.append(move.page_id)

        logger.info(
            f"Local move complete: {len(moved_page_ids)} moved, "
            f"{self.skipped_count} skipped, {self.failed_count} failed"
        )
        return moved_page_ids

    def cleanup_empty_folders(self, old_paths: List[str], protected: List[str]) -> List[str]:
        """Remove folders left empty by moves."""
        return self.vault.remove_empty_ancestors(old_paths, protected)
