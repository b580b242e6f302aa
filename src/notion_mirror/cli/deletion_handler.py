"""Deletion handler for the one-way mirror.

This module removes local documents whose Notion pages are gone (deleted,
excluded or no longer reachable). Remote is authoritative, so deletions are
executed without confirmation prompts (use --dry-run to preview).
"""

import logging
from typing import Iterable, List

from ..file_mapper.errors import FilesystemError
from ..file_mapper.vault import Vault
from .config import SyncStore
from .models import DeletionInfo

logger = logging.getLogger(__name__)


class DeletionHandler:
    """Handles local deletions for stale sync records.

    - Each deletion is handled independently
    - A file that is already gone still has its record dropped
    - Errors are logged and the operation continues with remaining files
    - The store is checkpointed after every dropped record

    Example:
        >>> handler = DeletionHandler(vault, store)
        >>> deleted = handler.delete_local_files(deletions)
        >>> print(f"Deleted {len(deleted)} local files")
    """

    def __init__(self, vault: Vault, store: SyncStore):
        self.vault = vault
        self.store = store
        self.failed_count = 0
        logger.debug("DeletionHandler initialized")

    def delete_local_files(self, deletions: List[DeletionInfo]) -> List[str]:
        """Delete documents and drop their records.

        Returns:
            List of page IDs whose records were dropped
        """
        logger.info(f"Processing {len(deletions)} local file deletion(s)")
        if not deletions:
            logger.debug("No deletions to process")
            return []

        deleted_page_ids = []
        records = self.store.state.synced_pages

        for deletion in deletions:
            try:
                if self.vault.delete(deletion.local_path):
                    logger.info(
                        f"Deleted local file: {deletion.local_path} "
                        f"(page {deletion.page_id}: {deletion.reason})"
                    )
                else:
                    logger.debug(f"File {deletion.local_path} already gone, dropping record")
            except FilesystemError as e:
                logger.error(f"Failed to delete {deletion.local_path} (page {deletion.page_id}): {e}")
                self.failed_count += 1
                continue

            records.pop(deletion.page_id, None)
            self.store.checkpoint()
            deleted_page_ids.append(deletion.page_id)

        logger.info(
            f"Local file deletion complete: "
            f"{len(deleted_page_ids)} deleted, "
            f"{len(deletions) - len(deleted_page_ids)} failed"
        )
        return deleted_page_ids

    def cleanup_empty_folders(self, paths: Iterable[str], protected: Iterable[str]) -> List[str]:
        """Remove folders left empty above the given document paths."""
        return self.vault.remove_empty_ancestors(paths, protected)
