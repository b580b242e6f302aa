"""Notion client library for the mirror.

This package provides thin Python abstractions over the Notion public API,
enabling clean and type-safe reads of pages, databases and blocks.
"""

from .errors import (
    SyncError,
    NotionError,
    MissingCredentialsError,
    InvalidCredentialsError,
    NodeNotFoundError,
    APIUnreachableError,
    APIAccessError,
)

__all__ = [
    "SyncError",
    "NotionError",
    "MissingCredentialsError",
    "InvalidCredentialsError",
    "NodeNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
]
