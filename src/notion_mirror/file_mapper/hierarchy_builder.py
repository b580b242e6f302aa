"""Hierarchy builder for reconstructing the Notion page graph.

Notion's search endpoint returns every shared page and database as a flat
list where each item only knows its parent. This module turns that list into
Node objects and indexes them into a Graph of parent → children with an
explicit set of roots, applying the exclusion filter along the way.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..notion_api.api_wrapper import APIWrapper
from .models import Graph, Node, NodeKind, WORKSPACE_PARENT, canonical_id

logger = logging.getLogger(__name__)


class HierarchyBuilder:
    """Builds the page graph for one sync pass.

    The builder fetches all pages, then all databases, converts them to
    immutable Node objects and indexes them with a single pass over the
    list. Excluded nodes are dropped (and logged, never raised).

    Example:
        >>> builder = HierarchyBuilder(api)
        >>> nodes = builder.fetch_nodes()
        >>> graph = builder.build_graph(nodes, config.filtered_ids)
        >>> print(f"{len(graph.roots)} root(s)")
    """

    def __init__(self, api: Optional[APIWrapper] = None):
        """Initialize the hierarchy builder.

        Args:
            api: APIWrapper used by fetch_nodes (not needed for build_graph)
        """
        self._api = api

    def fetch_nodes(self) -> List[Node]:
        """Fetch every page and database visible to the integration.

        Returns:
            Pages first, then databases, each in API order

        Raises:
            MissingCredentialsError: If no secret is configured
            InvalidCredentialsError: If the secret is rejected
            APIUnreachableError: If the API is unreachable
            APIAccessError: If API access fails after retries
        """
        nodes: List[Node] = []

        for page_data in self._api.search_objects("page"):
            node = self._create_node(page_data, NodeKind.PAGE)
            if node is not None:
                nodes.append(node)

        for database_data in self._api.search_objects("database"):
            node = self._create_node(database_data, NodeKind.CONTAINER)
            if node is not None:
                nodes.append(node)

        logger.info(f"Fetched {len(nodes)} node(s) from Notion")
        return nodes

    def build_graph(self, nodes: Iterable[Node], filtered_ids: Iterable[str] = ()) -> Graph:
        """Index a flat node list into a Graph.

        Args:
            nodes: Nodes from fetch_nodes (or any source)
            filtered_ids: Exclusion list; hyphens are ignored when matching

        Returns:
            Graph with children index, roots, excluded IDs and dangling nodes
        """
        excluded = {canonical_id(node_id) for node_id in filtered_ids}
        graph = Graph()

        for node in nodes:
            if canonical_id(node.node_id) in excluded:
                logger.info(f"Skipping filtered {node.kind.value}: {node.title} ({node.node_id})")
                graph.excluded_ids.add(node.node_id)
                continue

            if node.node_id in graph.nodes:
                logger.debug(f"Duplicate node {node.node_id} in fetch, keeping first")
                continue

            graph.nodes[node.node_id] = node
            if node.is_root:
                graph.roots.append(node)
            else:
                graph.children.setdefault(node.parent_id, []).append(node)

        for node in graph.nodes.values():
            if node.is_root or node.parent_id in graph.nodes:
                continue
            if node.parent_id in graph.excluded_ids:
                continue
            logger.warning(
                f"Node '{node.title}' ({node.node_id}) references unknown parent "
                f"{node.parent_id}; it will be placed under a truncated path"
            )
            graph.dangling.append(node)

        logger.debug(
            f"Built graph: {len(graph.nodes)} node(s), {len(graph.roots)} root(s), "
            f"{len(graph.excluded_ids)} excluded, {len(graph.dangling)} dangling"
        )
        return graph

    def _create_node(self, data: Dict[str, Any], kind: NodeKind) -> Optional[Node]:
        """Create a Node from a Notion page or database object.

        Returns None (and logs) for objects without an ID or revision, which
        the API only returns for partial objects.
        """
        node_id = data.get('id')
        revision = data.get('last_edited_time')
        if not node_id or not revision:
            logger.warning(f"Skipping partial {kind.value} object: {data.get('id')!r}")
            return None

        if kind is NodeKind.PAGE:
            title = self._extract_page_title(data.get('properties') or {})
        else:
            title = self._plain_text(data.get('title') or [])

        node = Node(
            node_id=node_id,
            title=title or "Untitled",
            kind=kind,
            parent_id=self._extract_parent_id(data.get('parent') or {}),
            revision=revision,
        )
        logger.debug(
            f"Created Node: id={node.node_id}, title='{node.title}', "
            f"kind={kind.value}, parent={node.parent_id}"
        )
        return node

    @staticmethod
    def _extract_parent_id(parent: Dict[str, Any]) -> Optional[str]:
        parent_type = parent.get('type')
        if parent_type == 'workspace':
            return WORKSPACE_PARENT
        if parent_type in ('page_id', 'database_id', 'block_id'):
            return parent.get(parent_type)
        return None

    def _extract_page_title(self, properties: Dict[str, Any]) -> str:
        for prop in properties.values():
            if isinstance(prop, dict) and prop.get('type') == 'title':
                return self._plain_text(prop.get('title') or [])
        return ""

    @staticmethod
    def _plain_text(rich_text: List[Dict[str, Any]]) -> str:
        return ''.join(run.get('plain_text', '') for run in rich_text)
