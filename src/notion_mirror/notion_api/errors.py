"""Typed exception hierarchy for Notion-related errors.

This module defines all custom exceptions used by the Notion client library.
All exceptions inherit from NotionError base class for easy catching and
include descriptive messages with context to help with debugging.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all notion-mirror errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class NotionError(SyncError):
    """Base exception for all Notion-related errors."""
    pass


class MissingCredentialsError(NotionError):
    """Raised when no Notion integration secret is configured."""

    def __init__(self, variable: str = "NOTION_TOKEN"):
        super().__init__(
            f"Notion secret is not configured (set {variable} in the environment or .env)"
        )
        self.variable = variable


class InvalidCredentialsError(NotionError):
    """Raised when the Notion integration secret is rejected."""

    def __init__(self, endpoint: str):
        super().__init__(f"Notion secret is invalid (endpoint: {endpoint})")
        self.endpoint = endpoint


class NodeNotFoundError(NotionError):
    """Raised when a requested page, database or block does not exist."""

    def __init__(self, node_id: str):
        super().__init__(f"Node {node_id} not found")
        self.node_id = node_id


class APIUnreachableError(NotionError):
    """Raised when the Notion API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(NotionError):
    """Raised when API access fails after retries or due to access restrictions."""

    def __init__(self, message: str = "Notion API failure (after 3 retries)", status: Optional[int] = None):
        super().__init__(message)
        self.status = status
