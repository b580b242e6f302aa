"""File mapper library for the Notion mirror.

This package maps the Notion page graph onto a local markdown vault:
hierarchy reconstruction, canonical paths, filesafe names, atomic file
operations, configuration and binary asset handling.
"""

from .models import (
    Node,
    NodeKind,
    Graph,
    SyncConfig,
    SyncRecord,
    AssetRecord,
    canonical_id,
)
from .errors import (
    FileMapperError,
    FilesystemError,
    ConfigError,
)
from .asset_manager import AssetManager
from .config_loader import ConfigLoader
from .filesafe_converter import FilesafeConverter
from .hierarchy_builder import HierarchyBuilder
from .path_resolver import PathResolver, join_path
from .vault import Vault

__all__ = [
    'Node',
    'NodeKind',
    'Graph',
    'SyncConfig',
    'SyncRecord',
    'AssetRecord',
    'canonical_id',
    'FileMapperError',
    'FilesystemError',
    'ConfigError',
    'AssetManager',
    'ConfigLoader',
    'FilesafeConverter',
    'HierarchyBuilder',
    'PathResolver',
    'join_path',
    'Vault',
]
