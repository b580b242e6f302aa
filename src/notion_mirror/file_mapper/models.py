"""Data models for file mapper.

This module defines all data models used by the file mapper library.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

# Parent reference Notion uses for top-level pages
WORKSPACE_PARENT = "workspace"


class NodeKind(str, Enum):
    """Kind of remote node.

    PAGE nodes become markdown documents (and folders when they have
    children); CONTAINER nodes (Notion databases) only ever become folders.
    """
    PAGE = "page"
    CONTAINER = "database"


@dataclass(frozen=True)
class Node:
    """Represents one remote page or database from a single fetch.

    Attributes:
        node_id: Opaque Notion identifier
        title: Display title (plain text)
        kind: PAGE or CONTAINER
        parent_id: Parent node ID (None or "workspace" for roots)
        revision: Opaque change token (Notion last_edited_time), compared
                  for equality only
    """
    node_id: str
    title: str
    kind: NodeKind
    parent_id: Optional[str] = None
    revision: str = ""

    @property
    def is_root(self) -> bool:
        return not self.parent_id or self.parent_id == WORKSPACE_PARENT


def canonical_id(node_id: str) -> str:
    """Canonicalize a node ID for exclusion matching.

    Notion accepts IDs with or without hyphens, so "aaaa-bbbb" and
    "aaaabbbb" denote the same node.
    """
    return node_id.replace('-', '')


@dataclass
class Graph:
    """Parent/child index built once per sync pass.

    Attributes:
        nodes: Included nodes by ID
        children: Parent ID -> child nodes, in fetch order
        roots: Nodes without a parent (or with the workspace parent)
        excluded_ids: IDs of fetched nodes removed by the exclusion filter
        dangling: Non-root nodes whose parent is neither fetched nor excluded
    """
    nodes: Dict[str, Node] = field(default_factory=dict)
    children: Dict[str, List[Node]] = field(default_factory=dict)
    roots: List[Node] = field(default_factory=list)
    excluded_ids: Set[str] = field(default_factory=set)
    dangling: List[Node] = field(default_factory=list)

    def get(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def children_of(self, node_id: str) -> List[Node]:
        return self.children.get(node_id, [])

    def is_reachable(self, node_id: str) -> bool:
        """Return True if the node is included and has no excluded ancestor.

        A chain that ends at an unknown parent still counts as reachable;
        only an excluded ancestor makes a node unreachable.
        """
        node = self.nodes.get(node_id)
        seen = set()
        while node is not None and not node.is_root:
            if node.node_id in seen:
                return True
            seen.add(node.node_id)
            if node.parent_id in self.excluded_ids:
                return False
            node = self.nodes.get(node.parent_id)
        return node_id in self.nodes


@dataclass
class SyncConfig:
    """Overall sync configuration stored in .notion-mirror/config.yaml.

    Attributes:
        vault_path: Local directory that receives the mirrored tree
        sync_interval_minutes: Interval for an external scheduler (0 = manual only)
        auto_delete_missing_pages: Delete local files whose pages are gone remotely
        root_folder_path: Vault-relative folder for all documents ("" = vault root)
        asset_folder_path: Vault-relative folder for downloaded assets,
                           independent of root_folder_path ("" = vault root)
        filtered_ids: Node IDs excluded from sync (hyphens optional)
    """
    vault_path: str = "."
    sync_interval_minutes: int = 30
    auto_delete_missing_pages: bool = True
    root_folder_path: str = ""
    asset_folder_path: str = "attachments"
    filtered_ids: List[str] = field(default_factory=list)

    def is_filtered(self, node_id: str) -> bool:
        canonical = canonical_id(node_id)
        return any(canonical_id(filtered) == canonical for filtered in self.filtered_ids)


@dataclass
class SyncRecord:
    """Persisted record of one synced document.

    Attributes:
        node_id: Notion page ID
        local_path: Vault-relative path of the document
        last_synced_revision: Node revision that was rendered into the file
    """
    node_id: str
    local_path: str
    last_synced_revision: str


@dataclass
class AssetRecord:
    """Persisted record of one downloaded binary asset.

    Attributes:
        source_id: Remote URL the asset was downloaded from (dedup key)
        local_path: Vault-relative path of the downloaded file
        content_hash: Lightweight fingerprint (byte length + leading bytes)
    """
    source_id: str
    local_path: str
    content_hash: str
