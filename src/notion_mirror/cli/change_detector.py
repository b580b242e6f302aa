"""Change detection for the one-way mirror.

This module compares the freshly built page graph with the persisted sync
records and works out what a pass has to do:
- stale records (page gone, excluded, unreachable or no longer a document)
- moves (the page's canonical path differs from the recorded one)
- writes (new pages, changed revisions, locally removed files)
- path collisions (two pages resolving to the same document path)

Nothing here touches the vault or the state; the same plan drives both a
real pass and a dry run.
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from ..file_mapper.models import Graph, Node, SyncConfig, SyncRecord
from ..file_mapper.path_resolver import PathResolver
from .models import CollisionInfo, DeletionInfo, MoveInfo, WriteInfo

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Plans deletions, moves and writes for one pass.

    Example:
        >>> detector = ChangeDetector(graph, resolver, config)
        >>> stale = detector.detect_stale(records)
        >>> moves = detector.detect_moves(records, {d.page_id for d in stale})
    """

    def __init__(self, graph: Graph, resolver: PathResolver, config: SyncConfig):
        self._graph = graph
        self._resolver = resolver
        self._config = config

    def detect_stale(self, records: Dict[str, SyncRecord]) -> List[DeletionInfo]:
        """Find records whose document should no longer exist locally."""
        stale = []
        for page_id, record in records.items():
            reason = self._stale_reason(page_id)
            if reason is not None:
                logger.debug(f"Stale record {page_id} ({record.local_path}): {reason}")
                stale.append(DeletionInfo(page_id=page_id, local_path=record.local_path, reason=reason))
        return stale

    def detect_moves(self, records: Dict[str, SyncRecord], stale_ids: Set[str]) -> List[MoveInfo]:
        """Find live records whose canonical path changed remotely."""
        moves = []
        for page_id, record in records.items():
            if page_id in stale_ids:
                continue
            node = self._graph.get(page_id)
            new_path = self._resolver.document_path(node)
            if new_path and new_path != record.local_path:
                logger.debug(f"Page {page_id} moved: {record.local_path} -> {new_path}")
                moves.append(MoveInfo(
                    page_id=page_id,
                    title=node.title,
                    old_path=record.local_path,
                    new_path=new_path,
                ))
        return moves

    def plan_writes(
        self,
        records: Dict[str, SyncRecord],
        file_exists: Callable[[str], bool],
        moves: Optional[List[MoveInfo]] = None,
    ) -> Tuple[List[WriteInfo], List[str], List[CollisionInfo]]:
        """Decide which documents to render.

        Pages are visited depth-first from the roots (then from dangling
        nodes) in fetch order. When several pages resolve to the same path,
        the page already recorded at that path keeps it; otherwise the
        first one visited does. The others are reported as collisions and
        not written.

        Args:
            records: Current sync records
            file_exists: Checks whether a recorded document is on disk
            moves: Pending (not yet applied) moves, for dry-run planning

        Returns:
            (writes, unchanged page IDs, collisions)
        """
        pending = {move.page_id: move.new_path for move in moves or []}
        owners = {
            pending.get(page_id, record.local_path): page_id
            for page_id, record in records.items()
        }

        writes: List[WriteInfo] = []
        unchanged: List[str] = []
        collisions: Dict[str, CollisionInfo] = {}
        claimed: Dict[str, str] = {}

        for node in self.walk():
            path = self._resolver.document_path(node)
            if path is None:
                continue

            winner = claimed.get(path)
            if winner is None:
                recorded_owner = owners.get(path)
                if recorded_owner and recorded_owner != node.node_id and self._will_claim(recorded_owner, path):
                    winner = recorded_owner
                else:
                    claimed[path] = node.node_id
            if winner is not None and winner != node.node_id:
                collision = collisions.setdefault(path, CollisionInfo(local_path=path, winner_id=winner))
                collision.loser_ids.append(node.node_id)
                logger.warning(
                    f"Path collision: '{node.title}' ({node.node_id}) resolves to {path}, "
                    f"which belongs to {winner}; skipping"
                )
                continue

            record = records.get(node.node_id)
            reason = self._write_reason(node, record, file_exists)
            if reason is None:
                unchanged.append(node.node_id)
            else:
                writes.append(WriteInfo(page_id=node.node_id, title=node.title, local_path=path, reason=reason))

        return writes, unchanged, list(collisions.values())

    def walk(self) -> Iterator[Node]:
        """Yield reachable nodes depth-first: roots first, then dangling nodes."""
        visited: Set[str] = set()
        stack: List[Node] = list(reversed(self._graph.roots + self._graph.dangling))
        # Dangling nodes are pushed below the roots, so all root trees come first
        while stack:
            node = stack.pop()
            if node.node_id in visited:
                continue
            visited.add(node.node_id)
            yield node
            stack.extend(reversed(self._graph.children_of(node.node_id)))

    def _will_claim(self, page_id: str, path: str) -> bool:
        """True if the recorded owner of a path still resolves to it."""
        node = self._graph.get(page_id)
        return (
            node is not None
            and self._graph.is_reachable(page_id)
            and self._resolver.document_path(node) == path
        )

    def _stale_reason(self, page_id: str) -> Optional[str]:
        node = self._graph.get(page_id)
        if node is None:
            if page_id in self._graph.excluded_ids or self._config.is_filtered(page_id):
                return "excluded"
            return "missing"
        if not self._graph.is_reachable(page_id):
            return "unreachable"
        if self._resolver.document_path(node) is None:
            return "not_a_document"
        return None

    @staticmethod
    def _write_reason(
        node: Node,
        record: Optional[SyncRecord],
        file_exists: Callable[[str], bool],
    ) -> Optional[str]:
        if record is None:
            return "new"
        if record.last_synced_revision != node.revision:
            return "changed"
        if not file_exists(record.local_path):
            return "missing"
        return None
