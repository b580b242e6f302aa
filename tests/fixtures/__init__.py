"""Test fixtures for the Notion mirror tests.

This module provides an in-memory Notion API and builders for raw Notion
objects (pages, databases, blocks, rich text).
"""

from .fake_notion import (
    FakeNotionAPI,
    PNG_BYTES,
    database_object,
    file_block,
    image_block,
    page_object,
    paragraph,
    rich_text,
    text_block,
)

__all__ = [
    "FakeNotionAPI",
    "PNG_BYTES",
    "database_object",
    "file_block",
    "image_block",
    "page_object",
    "paragraph",
    "rich_text",
    "text_block",
]
