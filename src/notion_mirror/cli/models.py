"""Data models for CLI operations.

This module defines all data models used by the CLI module.
All models use dataclasses for clean, type-safe data structures,
following the patterns established in notion_mirror/file_mapper/models.py.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional

from ..file_mapper.models import AssetRecord, SyncRecord


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): General error (config issues, validation failures)
    - CONFLICTS (2): Path collisions left some pages unwritten
    - AUTH_ERROR (3): Missing or rejected Notion secret
    - NETWORK_ERROR (4): Network connectivity or API availability issues
    - ALREADY_RUNNING (5): Another sync pass holds the lock

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFLICTS = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
    ALREADY_RUNNING = 5


class SyncPhase(str, Enum):
    """Phases of one reconciliation pass, in order."""
    FETCHING = "fetching"
    DELETING = "deleting"
    MOVING = "moving"
    MATERIALIZING = "materializing"
    PERSISTED = "persisted"
    ABORTED = "aborted"


class SyncStatus(str, Enum):
    """Outcome of a sync request."""
    COMPLETED = "completed"
    ALREADY_RUNNING = "already_running"
    ABORTED = "aborted"


@dataclass
class SyncState:
    """Mirror state tracked in .notion-mirror/state.yaml.

    Attributes:
        last_synced: ISO 8601 timestamp of the last completed pass (None if never synced)
        synced_pages: Node ID -> SyncRecord for every written document
        synced_assets: Source URL -> AssetRecord for every downloaded asset

    Example:
        >>> state = SyncState(last_synced="2024-01-15T10:30:00Z")
        >>> state = SyncState()  # Never synced
    """
    last_synced: Optional[str] = None
    synced_pages: Dict[str, SyncRecord] = field(default_factory=dict)
    synced_assets: Dict[str, AssetRecord] = field(default_factory=dict)


@dataclass
class DeletionInfo:
    """Represents a pending local deletion.

    Attributes:
        page_id: Notion page ID of the stale record
        local_path: Vault-relative path of the document
        reason: Why the record is stale ("missing", "excluded", ...)
    """
    page_id: str
    local_path: str
    reason: str


@dataclass
class MoveInfo:
    """Represents a pending local move.

    Attributes:
        page_id: Notion page ID
        title: Page title for display purposes
        old_path: Recorded vault path
        new_path: Freshly resolved vault path
    """
    page_id: str
    title: str
    old_path: str
    new_path: str


@dataclass
class WriteInfo:
    """Represents a document that will be (re)rendered.

    Attributes:
        page_id: Notion page ID
        title: Page title for display purposes
        local_path: Vault path the document is written to
        reason: "new", "changed" or "missing"
    """
    page_id: str
    title: str
    local_path: str
    reason: str


@dataclass
class CollisionInfo:
    """Two or more pages that resolve to the same vault path.

    Attributes:
        local_path: The contested vault path
        winner_id: Page that keeps the path
        loser_ids: Pages that are not written this pass
    """
    local_path: str
    winner_id: str
    loser_ids: List[str] = field(default_factory=list)


@dataclass
class SyncPlan:
    """Everything one pass would do, computed without touching the vault.

    Attributes:
        deletions: Stale records to delete (empty when auto-delete is off)
        moves: Records whose resolved path changed
        writes: Documents to render
        unchanged: IDs of documents that are up to date
        collisions: Path collisions found while planning writes
    """
    deletions: List[DeletionInfo] = field(default_factory=list)
    moves: List[MoveInfo] = field(default_factory=list)
    writes: List[WriteInfo] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    collisions: List[CollisionInfo] = field(default_factory=list)


@dataclass
class SyncSummary:
    """Summary of sync operation results for display to user.

    Attributes:
        status: Outcome of the request
        deleted_count: Documents deleted locally
        moved_count: Documents moved locally
        written_count: Documents created or rewritten
        unchanged_count: Documents left untouched
        failed_count: Items skipped because of filesystem errors
        folders_removed: Empty folders cleaned up
        assets_downloaded: Assets downloaded this pass
        assets_removed: Orphaned assets deleted this pass
        conflicts: Collisions that left pages unwritten
        dry_run: True if nothing was changed

    Example:
        >>> summary = SyncSummary(written_count=5, moved_count=1)
        >>> print(f"Wrote {summary.written_count} pages")
    """
    status: SyncStatus = SyncStatus.COMPLETED
    deleted_count: int = 0
    moved_count: int = 0
    written_count: int = 0
    unchanged_count: int = 0
    failed_count: int = 0
    folders_removed: int = 0
    assets_downloaded: int = 0
    assets_removed: int = 0
    conflicts: List[CollisionInfo] = field(default_factory=list)
    dry_run: bool = False
    plan: Optional[SyncPlan] = None
