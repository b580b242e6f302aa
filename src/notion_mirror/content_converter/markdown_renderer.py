"""Markdown rendering of Notion pages.

This module turns a page's block tree and properties into the markdown
document written to the vault. Blocks are first converted to a tree of
Fragments (one per block, children attached) and then flattened, which is
where nested blocks get their indentation.

Document layout:
    # <title>

    #tag1 #tag2

    > Synced from Notion on <ISO-8601 UTC>

    <blocks separated by blank lines>
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlsplit

import requests

from ..file_mapper.asset_manager import AssetManager
from ..file_mapper.filesafe_converter import FilesafeConverter
from ..file_mapper.models import Node
from ..notion_api.api_wrapper import APIWrapper
from ..notion_api.errors import NotionError
from .block_parser import Block, BlockParser

logger = logging.getLogger(__name__)

INDENT = "  "
IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.bmp', '.svg', '.webp')
DEFAULT_IMAGE_ALT = "Image"
DEFAULT_FILE_NAME = "file"

TEXT_PREFIXES = {
    'paragraph': '',
    'heading_1': '# ',
    'heading_2': '## ',
    'heading_3': '### ',
    'bulleted_list_item': '- ',
    'numbered_list_item': '1. ',
    'quote': '> ',
}


def is_image_url(url: str) -> bool:
    """Return True if the URL path ends with a common image extension.

    Examples:
        >>> is_image_url("https://files.example.com/scan.PNG?X-Amz-Signature=1")
        True
        >>> is_image_url("https://files.example.com/report.pdf")
        False
    """
    return urlsplit(url).path.lower().endswith(IMAGE_EXTENSIONS)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class Fragment:
    """Rendered text of one block plus the fragments of its children."""
    text: str
    children: List['Fragment'] = field(default_factory=list)

    def flatten(self) -> str:
        if not self.children:
            return self.text
        nested = join_fragments(self.children)
        indented = '\n'.join(INDENT + line for line in nested.split('\n'))
        return f"{self.text}\n{indented}"


def join_fragments(fragments: List[Fragment]) -> str:
    return '\n\n'.join(fragment.flatten() for fragment in fragments)


class MarkdownRenderer:
    """Renders Notion pages to markdown documents.

    Images (and image-like file attachments) are handed to the
    AssetManager and embedded by their vault path; when a download fails
    the remote URL is embedded instead.

    Example:
        >>> renderer = MarkdownRenderer(api, asset_manager)
        >>> content = renderer.render_node(node)
        >>> content.splitlines()[0]
        '# Meeting notes'
    """

    def __init__(
        self,
        api: Optional[APIWrapper],
        asset_manager: Optional[AssetManager] = None,
        timestamp: Callable[[], str] = utc_timestamp,
    ):
        """Initialize the renderer.

        Args:
            api: APIWrapper used by render_node (not needed for render)
            asset_manager: Downloads images; None embeds remote URLs
            timestamp: Returns the "Synced from Notion on" timestamp
        """
        self._api = api
        self._parser = BlockParser(api) if api is not None else None
        self._asset_manager = asset_manager
        self._timestamp = timestamp

    def render_node(self, node: Node) -> str:
        """Fetch a page's content and render it.

        Any failure to list the page's blocks yields a stub document, so the
        page still exists locally and is retried on the next revision.
        """
        try:
            blocks = self._parser.fetch_tree(node.node_id)
        except (NotionError, requests.RequestException) as e:
            logger.error(f"Failed to get content for page {node.title}: {e}")
            return self.render_fallback(node)

        properties = self._fetch_properties(node)
        return self.render(node, blocks, properties)

    def render(self, node: Node, blocks: List[Block], properties: Optional[Dict[str, Any]] = None) -> str:
        """Render a document from already fetched blocks and properties."""
        content = f"# {node.title}\n\n"

        tags = self.extract_tags(properties or {})
        if tags:
            content += ' '.join(f"#{tag}" for tag in tags) + '\n\n'

        content += f"> Synced from Notion on {self._timestamp()}\n\n"
        content += join_fragments([self._to_fragment(block) for block in blocks])
        return content

    @staticmethod
    def render_fallback(node: Node) -> str:
        return f"# {node.title}\n\n> Failed to sync content from Notion\n"

    @staticmethod
    def extract_tags(properties: Dict[str, Any]) -> List[str]:
        """Collect tags from select and multi-select properties, in order."""
        names: List[str] = []
        for prop in properties.values():
            if not isinstance(prop, dict):
                continue
            if prop.get('type') == 'select' and prop.get('select'):
                names.append(prop['select'].get('name') or '')
            elif prop.get('type') == 'multi_select':
                names.extend(option.get('name') or '' for option in prop.get('multi_select') or [])

        tags = [FilesafeConverter.to_tag(name) for name in names]
        return [tag for tag in tags if tag]

    @staticmethod
    def render_rich_text(runs: List[Dict[str, Any]]) -> str:
        """Render rich text runs with inline markdown annotations.

        Wrapping order per run is bold, italic, code, strikethrough, then
        the link, so "**x**" ends up inside the link text.
        """
        parts = []
        for run in runs or []:
            text = run.get('plain_text', '')
            annotations = run.get('annotations') or {}
            if annotations.get('bold'):
                text = f"**{text}**"
            if annotations.get('italic'):
                text = f"*{text}*"
            if annotations.get('code'):
                text = f"`{text}`"
            if annotations.get('strikethrough'):
                text = f"~~{text}~~"
            if run.get('href'):
                text = f"[{text}]({run['href']})"
            parts.append(text)
        return ''.join(parts)

    def _fetch_properties(self, node: Node) -> Dict[str, Any]:
        try:
            return self._api.get_page(node.node_id).get('properties') or {}
        except (NotionError, requests.RequestException) as e:
            logger.warning(f"Failed to get properties for page {node.node_id}: {e}")
            return {}

    def _to_fragment(self, block: Block) -> Fragment:
        return Fragment(
            text=self._render_block(block),
            children=[self._to_fragment(child) for child in block.children],
        )

    def _render_block(self, block: Block) -> str:
        if block.block_type in TEXT_PREFIXES:
            text = self.render_rich_text(block.data.get('rich_text') or [])
            return TEXT_PREFIXES[block.block_type] + text
        if block.block_type == 'code':
            language = block.data.get('language') or ''
            code = self.render_rich_text(block.data.get('rich_text') or [])
            return f"```{language}\n{code}\n```"
        if block.block_type in ('image', 'file'):
            return self._render_asset_block(block)
        return f"<!-- Unsupported block type: {block.block_type} -->"

    def _render_asset_block(self, block: Block) -> str:
        """Render an image or file block; any failure becomes an inert comment."""
        try:
            if block.block_type == 'image':
                return self._render_image(block.data)
            return self._render_file(block.data)
        except Exception as e:
            logger.error(f"Failed to process {block.block_type} block {block.block_id}: {e}")
            return f"<!-- Failed to process {block.block_type} -->"

    def _render_image(self, data: Dict[str, Any]) -> str:
        url = self._source_url(data)
        if url is None:
            return f"<!-- Unsupported image type: {data.get('type')} -->"

        caption = self.render_rich_text(data.get('caption') or [])
        local_path = self._materialize(url, caption)
        return f"![{caption or DEFAULT_IMAGE_ALT}]({local_path or url})"

    def _render_file(self, data: Dict[str, Any]) -> str:
        url = self._source_url(data)
        if url is None:
            return f"<!-- Unsupported file type: {data.get('type')} -->"

        name = self.render_rich_text(data.get('caption') or []) or self._name_from_url(url)
        if is_image_url(url):
            local_path = self._materialize(url, name)
            if local_path:
                return f"![{name}]({local_path})"
        return f"[{name}]({url})"

    def _materialize(self, url: str, caption: str) -> Optional[str]:
        if self._asset_manager is None:
            return None
        return self._asset_manager.materialize(url, caption)

    @staticmethod
    def _source_url(data: Dict[str, Any]) -> Optional[str]:
        source_type = data.get('type')
        if source_type not in ('external', 'file'):
            return None
        return (data.get(source_type) or {}).get('url') or None

    @staticmethod
    def _name_from_url(url: str) -> str:
        last_segment = url.split('?')[0].rstrip('/').split('/')[-1]
        return last_segment if '.' in last_segment else DEFAULT_FILE_NAME
