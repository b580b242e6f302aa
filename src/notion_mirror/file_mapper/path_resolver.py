"""Canonical vault paths for graph nodes.

Every node maps to exactly one vault-relative path that depends only on its
own title, the titles of its ancestors and the configured root folder. The
sync engine relies on this to detect moves: a stored path that differs from
the freshly resolved one means the node was moved or renamed remotely.
"""

import logging
from typing import List, Optional

from .filesafe_converter import FilesafeConverter
from .models import Graph, Node, NodeKind

logger = logging.getLogger(__name__)

# Maximum ancestor chain length before the walk is truncated
MAX_DEPTH = 50


def join_path(*parts: str) -> str:
    """Join vault path segments with '/', skipping empty ones."""
    return '/'.join(part.strip('/') for part in parts if part and part.strip('/'))


class PathResolver:
    """Resolves the canonical vault path of nodes in one graph.

    Layout rules:
    - A root node is a folder named after its title
    - Every ancestor of a node (container, root page or intermediate page)
      is a folder segment
    - A non-root page is a document: <ancestor folders>/<title>.md
    - The whole path is prefixed with the configured root folder

    Example:
        >>> resolver = PathResolver(graph, root_prefix="Notion")
        >>> resolver.resolve_path(task_page)
        'Notion/Projects/Tasks/Write docs.md'
    """

    def __init__(self, graph: Graph, root_prefix: str = ""):
        """Initialize the resolver.

        Args:
            graph: Graph of the current pass
            root_prefix: Configured root folder ("" for none)
        """
        self._graph = graph
        self._root_prefix = (root_prefix or '').strip().strip('/')

    @property
    def root_prefix(self) -> str:
        return self._root_prefix

    def resolve_path(self, node: Node) -> str:
        """Return the canonical vault path for a node.

        Roots resolve to their folder; every other node resolves to
        <ancestor folders>/<title>.md. A parent that cannot be resolved
        truncates the chain there (logged, never raised).
        """
        if node.is_root:
            return join_path(self._root_prefix, FilesafeConverter.sanitize_name(node.title))

        segments = self._ancestor_segments(node)
        segments.append(FilesafeConverter.title_to_filename(node.title))
        return join_path(self._root_prefix, *segments)

    def document_path(self, node: Node) -> Optional[str]:
        """Return the document path if the node is written as a file.

        Roots and containers only ever become folders, so they have no
        document path.
        """
        if node.is_root or node.kind is NodeKind.CONTAINER:
            return None
        return self.resolve_path(node)

    def folder_path(self, node: Node) -> str:
        """Return the folder that holds a node's children."""
        if node.is_root:
            return self.resolve_path(node)
        segments = self._ancestor_segments(node)
        segments.append(FilesafeConverter.sanitize_name(node.title))
        return join_path(self._root_prefix, *segments)

    def _ancestor_segments(self, node: Node) -> List[str]:
        """Sanitized ancestor titles from the topmost resolved ancestor down."""
        segments: List[str] = []
        visited = {node.node_id}
        parent_id = node.parent_id

        while parent_id:
            parent = self._graph.get(parent_id)
            if parent is None:
                # HierarchyBuilder already warned about the dangling reference
                logger.debug(
                    f"Parent {parent_id} of '{node.title}' ({node.node_id}) "
                    f"not found, truncating path"
                )
                break
            if parent.node_id in visited or len(segments) >= MAX_DEPTH:
                logger.warning(
                    f"Ancestor chain of '{node.title}' ({node.node_id}) is cyclic "
                    f"or deeper than {MAX_DEPTH}, truncating path"
                )
                break

            visited.add(parent.node_id)
            segments.insert(0, FilesafeConverter.sanitize_name(parent.title))
            if parent.is_root:
                break
            parent_id = parent.parent_id

        return segments
