"""Reconciliation engine for one sync pass.

A pass brings the vault in line with Notion in fixed phases:

    FETCHING → DELETING → MOVING → MATERIALIZING → PERSISTED

A failure while fetching the page list aborts the pass before anything is
changed. Later phases work item by item: a filesystem or rendering error
skips that item and the pass carries on. The store is checkpointed after every change, so a
crash mid-pass loses at most the item that was in flight.
"""

import logging
from typing import List, Optional

from ..content_converter.markdown_renderer import MarkdownRenderer
from ..file_mapper.asset_manager import AssetManager
from ..file_mapper.errors import FilesystemError
from ..file_mapper.hierarchy_builder import HierarchyBuilder
from ..file_mapper.models import Graph, SyncConfig, SyncRecord
from ..file_mapper.path_resolver import PathResolver
from ..file_mapper.vault import Vault
from ..notion_api.api_wrapper import APIWrapper
from .change_detector import ChangeDetector
from .config import SyncStore
from .deletion_handler import DeletionHandler
from .models import SyncPhase, SyncPlan, SyncSummary, WriteInfo
from .move_handler import MoveHandler

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Runs sync passes for one vault.

    Example:
        >>> engine = ReconciliationEngine(config, store, vault, api)
        >>> summary = engine.run()
        >>> print(f"{summary.written_count} written, {summary.moved_count} moved")
    """

    def __init__(
        self,
        config: SyncConfig,
        store: SyncStore,
        vault: Vault,
        api: APIWrapper,
        hierarchy_builder: Optional[HierarchyBuilder] = None,
        asset_manager: Optional[AssetManager] = None,
        renderer: Optional[MarkdownRenderer] = None,
    ):
        """Initialize the engine.

        Args:
            config: Mirror configuration
            store: Persisted state (mutated and checkpointed during a pass)
            vault: Local file store
            api: Notion API wrapper
            hierarchy_builder: Optional builder (defaults to one over api)
            asset_manager: Optional asset manager (defaults to one over api)
            renderer: Optional renderer (defaults to one over api)
        """
        self.config = config
        self.store = store
        self.vault = vault
        self.api = api
        self.hierarchy_builder = hierarchy_builder or HierarchyBuilder(api)
        self.asset_manager = asset_manager or AssetManager(
            vault,
            api.download_file,
            store.state.synced_assets,
            asset_folder=config.asset_folder_path,
            checkpoint=store.checkpoint,
        )
        self.renderer = renderer or MarkdownRenderer(api, self.asset_manager)
        self.phase: Optional[SyncPhase] = None

    @property
    def protected_folders(self) -> List[str]:
        return [folder for folder in (self.config.root_folder_path, self.config.asset_folder_path) if folder]

    def run(self, dry_run: bool = False) -> SyncSummary:
        """Run one pass.

        Args:
            dry_run: Compute and report the plan without changing anything

        Returns:
            SyncSummary with per-phase counts

        Raises:
            NotionError: If the page list cannot be fetched (pass aborted)
        """
        self._enter(SyncPhase.FETCHING)
        try:
            nodes = self.hierarchy_builder.fetch_nodes()
        except Exception:
            self._enter(SyncPhase.ABORTED)
            raise

        graph = self.hierarchy_builder.build_graph(nodes, self.config.filtered_ids)
        resolver = PathResolver(graph, self.config.root_folder_path)
        detector = ChangeDetector(graph, resolver, self.config)

        if dry_run:
            return self._plan_only(detector)

        summary = SyncSummary()
        records = self.store.state.synced_pages
        stale = detector.detect_stale(records)
        stale_ids = {deletion.page_id for deletion in stale}

        self._enter(SyncPhase.DELETING)
        if self.config.auto_delete_missing_pages:
            recorded_paths = [record.local_path for record in records.values()]
            deletion_handler = DeletionHandler(self.vault, self.store)
            summary.deleted_count = len(deletion_handler.delete_local_files(stale))
            summary.failed_count += deletion_handler.failed_count
            summary.folders_removed += len(
                deletion_handler.cleanup_empty_folders(recorded_paths, self.protected_folders)
            )
            summary.assets_removed += len(self.asset_manager.collect_garbage(list(records.values())))
        elif stale:
            logger.info(f"Automatic deletion is off, keeping {len(stale)} stale document(s)")

        self._enter(SyncPhase.MOVING)
        moves = detector.detect_moves(records, stale_ids)
        move_handler = MoveHandler(self.vault, self.store)
        summary.moved_count = len(move_handler.move_local_files(moves))
        summary.failed_count += move_handler.failed_count
        summary.folders_removed += len(
            move_handler.cleanup_empty_folders([move.old_path for move in moves], self.protected_folders)
        )

        self._enter(SyncPhase.MATERIALIZING)
        self._ensure_root_folders(graph, resolver, summary)
        writes, unchanged, collisions = detector.plan_writes(records, self._document_exists)
        summary.unchanged_count = len(unchanged)
        summary.conflicts = collisions
        for write in writes:
            if self._materialize(graph, write):
                summary.written_count += 1
            else:
                summary.failed_count += 1
        if summary.written_count:
            summary.assets_removed += len(self.asset_manager.collect_garbage(list(records.values())))

        summary.assets_downloaded = self.asset_manager.downloaded_count
        self.store.flush()
        self._enter(SyncPhase.PERSISTED)

        logger.info(
            f"Sync complete: {summary.written_count} written, {summary.moved_count} moved, "
            f"{summary.deleted_count} deleted, {summary.unchanged_count} unchanged, "
            f"{len(summary.conflicts)} collision(s), {summary.failed_count} failed"
        )
        return summary

    def _plan_only(self, detector: ChangeDetector) -> SyncSummary:
        records = self.store.state.synced_pages
        stale = detector.detect_stale(records)
        moves = detector.detect_moves(records, {deletion.page_id for deletion in stale})
        writes, unchanged, collisions = detector.plan_writes(records, self._document_exists, moves)

        plan = SyncPlan(
            deletions=stale if self.config.auto_delete_missing_pages else [],
            moves=moves,
            writes=writes,
            unchanged=unchanged,
            collisions=collisions,
        )
        for deletion in plan.deletions:
            logger.info(f"[DRYRUN] Would delete: {deletion.local_path} ({deletion.reason})")
        for move in plan.moves:
            logger.info(f"[DRYRUN] Would move: {move.old_path} -> {move.new_path}")
        for write in plan.writes:
            logger.info(f"[DRYRUN] Would write: {write.local_path} ({write.reason})")

        return SyncSummary(
            deleted_count=len(plan.deletions),
            moved_count=len(plan.moves),
            written_count=len(plan.writes),
            unchanged_count=len(plan.unchanged),
            conflicts=plan.collisions,
            dry_run=True,
            plan=plan,
        )

    def _ensure_root_folders(self, graph: Graph, resolver: PathResolver, summary: SyncSummary) -> None:
        for root in graph.roots:
            folder = resolver.folder_path(root)
            try:
                self.vault.ensure_folder(folder)
            except FilesystemError as e:
                logger.error(f"Failed to create folder {folder} for '{root.title}': {e}")
                summary.failed_count += 1

    def _document_exists(self, local_path: str) -> bool:
        try:
            return self.vault.is_file(local_path)
        except FilesystemError as e:
            logger.warning(f"Cannot check {local_path}, treating it as missing: {e}")
            return False

    def _materialize(self, graph: Graph, write: WriteInfo) -> bool:
        """Render one page and record it. Returns False if it was skipped."""
        records = self.store.state.synced_pages
        record = records.get(write.page_id)
        if record is not None and record.local_path != write.local_path:
            logger.warning(
                f"Page {write.page_id} ({write.title}) is still at {record.local_path} "
                f"because its move was skipped; not writing {write.local_path}"
            )
            return False

        node = graph.get(write.page_id)
        try:
            content = self.renderer.render_node(node)
            self.vault.write_text(write.local_path, content)
        except FilesystemError as e:
            logger.error(f"Failed to write {write.local_path} (page {write.page_id}): {e}")
            return False
        except Exception as e:
            logger.error(f"Failed to render {write.local_path} (page {write.page_id}): {e}")
            return False

        if record is None:
            records[write.page_id] = SyncRecord(
                node_id=write.page_id,
                local_path=write.local_path,
                last_synced_revision=node.revision,
            )
        else:
            record.last_synced_revision = node.revision
        self.store.checkpoint()
        logger.info(f"Wrote {write.local_path} ({write.reason})")
        return True

    def _enter(self, phase: SyncPhase) -> None:
        self.phase = phase
        logger.debug(f"Sync phase: {phase.value}")
