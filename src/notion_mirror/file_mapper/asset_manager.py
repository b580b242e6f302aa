"""Download, deduplication and garbage collection of binary assets.

Images and files referenced by Notion blocks are downloaded into the asset
folder once per source URL. Documents embed the vault-relative asset path,
which is also what garbage collection searches for: an asset whose path no
longer appears in any synced document is removed.
"""

import logging
import re
import time
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import urlsplit

import requests

from ..notion_api.errors import NotionError
from .errors import FilesystemError
from .filesafe_converter import FilesafeConverter
from .models import AssetRecord, SyncRecord
from .path_resolver import join_path
from .vault import Vault

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".png"
DEFAULT_ASSET_NAME = "image"
FINGERPRINT_PREFIX_BYTES = 10
EXTENSION_PATTERN = re.compile(r'\.([a-zA-Z0-9]+)$')


def infer_extension(url: str) -> str:
    """Return the extension of a URL's path (query dropped), default .png.

    Examples:
        >>> infer_extension("https://s3.example.com/a/photo.JPG?X-Amz=1")
        '.JPG'
        >>> infer_extension("https://example.com/render")
        '.png'
    """
    match = EXTENSION_PATTERN.search(url.split('?')[0])
    if match:
        return f".{match.group(1)}"
    return DEFAULT_EXTENSION


def fingerprint(data: bytes) -> str:
    """Byte length followed by the hex of the first few bytes.

    Good enough to tell two downloads apart; not an integrity check.
    """
    prefix = ''.join(format(byte, 'x') for byte in data[:FINGERPRINT_PREFIX_BYTES])
    return f"{len(data)}{prefix}"


class AssetManager:
    """Materializes remote assets into the vault.

    The manager mutates the asset records it is given (the state's
    ``synced_assets`` mapping) and calls ``checkpoint`` after every change
    so a crash never loses track of a downloaded file.

    Example:
        >>> manager = AssetManager(vault, api.download_file, state.synced_assets,
        ...                        asset_folder="attachments", checkpoint=store.checkpoint)
        >>> manager.materialize("https://example.com/diagram.png", "Diagram")
        'attachments/Diagram_1718000000000.png'
    """

    def __init__(
        self,
        vault: Vault,
        download: Callable[[str], bytes],
        records: Dict[str, AssetRecord],
        asset_folder: str = "attachments",
        checkpoint: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the asset manager.

        Args:
            vault: Local file store
            download: Callable returning the bytes behind a URL
            records: Mutable mapping source URL -> AssetRecord
            asset_folder: Vault-relative asset folder ("" = vault root)
            checkpoint: Called after each record change to persist state
            clock: Wall clock in seconds (used for filename suffixes)
        """
        self._vault = vault
        self._download = download
        self.records = records
        self._asset_folder = (asset_folder or '').strip().strip('/')
        self._checkpoint = checkpoint or (lambda: None)
        self._clock = clock
        self.downloaded_count = 0
        self.removed_count = 0

    @property
    def asset_folder(self) -> str:
        return self._asset_folder

    def materialize(self, source_locator: str, caption: str = "") -> Optional[str]:
        """Return a vault path for the asset, downloading it if needed.

        Args:
            source_locator: Remote URL of the asset (dedup key)
            caption: Caption or file name used to name the local file

        Returns:
            Vault-relative path, or None if the download failed
        """
        existing = self.records.get(source_locator)
        if existing is not None:
            try:
                present = self._vault.is_file(existing.local_path)
            except FilesystemError as e:
                logger.warning(f"Cannot check asset {existing.local_path}: {e}")
                present = False
            if present:
                logger.debug(f"Asset already present: {existing.local_path}")
                return existing.local_path
            logger.info(f"Asset {existing.local_path} was removed locally, downloading again")
            del self.records[source_locator]
            self._checkpoint()

        try:
            data = self._download(source_locator)
        except (requests.RequestException, NotionError) as e:
            logger.error(f"Failed to download asset from {self._describe(source_locator)}: {e}")
            return None

        local_path = None
        try:
            local_path = self._allocate_path(source_locator, caption)
            self._vault.ensure_folder(self._asset_folder)
            self._vault.write_bytes(local_path, data)
        except FilesystemError as e:
            logger.error(f"Failed to save asset {local_path or self._describe(source_locator)}: {e}")
            return None

        self.records[source_locator] = AssetRecord(
            source_id=source_locator,
            local_path=local_path,
            content_hash=fingerprint(data),
        )
        self.downloaded_count += 1
        self._checkpoint()
        logger.info(f"Downloaded asset: {local_path}")
        return local_path

    def collect_garbage(self, sync_records: Iterable[SyncRecord]) -> List[str]:
        """Delete assets no synced document refers to any more.

        Every recorded document is read once and searched for each asset's
        path. Unreadable documents are skipped, which can only keep assets
        alive, never delete a referenced one.

        Returns:
            Vault paths of the removed assets
        """
        if not self.records:
            return []

        contents = []
        for record in sync_records:
            try:
                if self._vault.is_file(record.local_path):
                    contents.append(self._vault.read_text(record.local_path))
            except FilesystemError as e:
                logger.error(f"Failed to read {record.local_path} during asset cleanup: {e}")

        removed: List[str] = []
        for source_locator, asset in list(self.records.items()):
            if any(asset.local_path in content for content in contents):
                continue

            try:
                self._vault.delete(asset.local_path)
            except FilesystemError as e:
                logger.error(f"Failed to delete orphaned asset {asset.local_path}: {e}")
                continue

            del self.records[source_locator]
            removed.append(asset.local_path)
            logger.info(f"Deleted orphaned asset: {asset.local_path}")

        if removed:
            self.removed_count += len(removed)
            self._checkpoint()
            logger.info(f"Cleaned up {len(removed)} orphaned asset(s)")
        return removed

    def _allocate_path(self, source_locator: str, caption: str) -> str:
        """Build <name>_<millis><ext>, bumping millis while the name is taken."""
        safe_name = FilesafeConverter.sanitize_name(caption or DEFAULT_ASSET_NAME)
        extension = infer_extension(source_locator)
        stamp = int(self._clock() * 1000)

        while True:
            local_path = join_path(self._asset_folder, f"{safe_name}_{stamp}{extension}")
            if not self._vault.exists(local_path):
                return local_path
            stamp += 1

    @staticmethod
    def _describe(url: str) -> str:
        # Pre-signed URLs carry credentials in the query string
        parts = urlsplit(url)
        return f"{parts.scheme}://{parts.netloc}{parts.path}" if parts.netloc else url
