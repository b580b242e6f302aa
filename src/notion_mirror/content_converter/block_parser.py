"""Block tree fetching for Notion pages.

Notion returns the content of a page as a flat list of top-level blocks;
blocks with ``has_children`` need one more request per level. This module
fetches the whole tree into Block objects the renderer can walk offline.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import requests

from ..notion_api.api_wrapper import APIWrapper
from ..notion_api.errors import NotionError

logger = logging.getLogger(__name__)

# Nested blocks deeper than this are not fetched
MAX_BLOCK_DEPTH = 20


@dataclass
class Block:
    """One Notion block with its already-fetched children.

    Attributes:
        block_id: Notion block ID
        block_type: Notion block type ("paragraph", "image", ...)
        data: Type-specific payload (the value under ``block[block_type]``)
        children: Child blocks, empty when the block has none
    """
    block_id: str
    block_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    children: List['Block'] = field(default_factory=list)

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> 'Block':
        block_type = raw.get('type', 'unsupported')
        payload = raw.get(block_type)
        return cls(
            block_id=raw.get('id', ''),
            block_type=block_type,
            data=payload if isinstance(payload, dict) else {},
        )


class BlockParser:
    """Fetches the block tree of a page.

    The top-level listing propagates errors so the caller can fall back to
    a stub document. A failing child listing only loses that subtree: it is
    logged and the block is kept without children.

    Example:
        >>> parser = BlockParser(api)
        >>> blocks = parser.fetch_tree(page.node_id)
        >>> [block.block_type for block in blocks]
        ['heading_1', 'paragraph', 'bulleted_list_item']
    """

    def __init__(self, api: APIWrapper):
        self._api = api

    def fetch_tree(self, page_id: str) -> List[Block]:
        """Fetch all blocks of a page, children included.

        Raises:
            NotionError: If the top-level listing fails
            requests.RequestException: On transport failure
        """
        return self._fetch_children(page_id, depth=0)

    def _fetch_children(self, block_id: str, depth: int) -> List[Block]:
        blocks = []
        for raw in self._api.list_block_children(block_id):
            block = Block.from_api(raw)
            if raw.get('has_children'):
                block.children = self._fetch_nested(block, depth + 1)
            blocks.append(block)
        return blocks

    def _fetch_nested(self, block: Block, depth: int) -> List[Block]:
        if depth > MAX_BLOCK_DEPTH:
            logger.warning(f"Block {block.block_id} is nested deeper than {MAX_BLOCK_DEPTH}, skipping children")
            return []
        try:
            return self._fetch_children(block.block_id, depth)
        except (NotionError, requests.RequestException) as e:
            logger.warning(f"Failed to get child blocks for {block.block_id}: {e}")
            return []
