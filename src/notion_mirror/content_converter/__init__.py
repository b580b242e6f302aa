"""Content conversion module for Notion blocks → markdown.

This module provides the BlockParser, which fetches a page's block tree, and
the MarkdownRenderer, which turns it into the document written to the vault.
"""

from .block_parser import Block, BlockParser
from .markdown_renderer import Fragment, MarkdownRenderer, is_image_url

__all__ = ['Block', 'BlockParser', 'Fragment', 'MarkdownRenderer', 'is_image_url']
