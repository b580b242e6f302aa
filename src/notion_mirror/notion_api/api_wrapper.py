"""API wrapper for the Notion public API.

This module wraps the notion-client SDK and provides error translation from
HTTP exceptions to our typed exception hierarchy. It integrates with the
retry logic for handling rate limits and drains cursor-paginated endpoints.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional

import httpx
import requests
from notion_client import Client
from notion_client.errors import HTTPResponseError, RequestTimeoutError

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    NodeNotFoundError,
)
from .retry_logic import retry_on_rate_limit

logger = logging.getLogger(__name__)

NOTION_API_ENDPOINT = "https://api.notion.com/v1"
NOTION_API_VERSION = "2022-06-28"
PAGE_SIZE = 100
REQUEST_TIMEOUT_SECONDS = 30


class APIWrapper:
    """Wrapper around the notion-client SDK with error translation.

    This class provides a thin wrapper over the Notion client that:
    1. Handles authentication using the Authenticator
    2. Translates HTTP errors to typed exceptions
    3. Integrates retry logic for 429 rate limits
    4. Follows ``next_cursor`` until every page of results is collected

    Example:
        >>> api = APIWrapper(Authenticator())
        >>> pages = api.search_objects("page")
    """

    def __init__(self, authenticator: Authenticator, session: Optional[requests.Session] = None):
        """Initialize the API wrapper with authentication credentials.

        Args:
            authenticator: Authenticator instance for loading the secret
            session: Optional requests session used for asset downloads
        """
        self._authenticator = authenticator
        self._client: Optional[Client] = None
        self._session = session or requests.Session()

    def _get_client(self) -> Client:
        """Get or create the Notion client.

        Raises:
            MissingCredentialsError: If no secret is configured
        """
        if self._client is None:
            self._client = Client(
                auth=self._authenticator.get_token(),
                notion_version=NOTION_API_VERSION,
                timeout_ms=REQUEST_TIMEOUT_SECONDS * 1000,
            )
        return self._client

    def _sanitize_credentials(self, text: str) -> str:
        """Mask bearer headers and integration secrets in error text.

        Example:
            >>> api._sanitize_credentials("Bearer secret_abc123 rejected")
            'Bearer ***REDACTED*** rejected'
        """
        if not text:
            return text

        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'\b(secret|ntn)_[A-Za-z0-9]{8,}\b',
            '***REDACTED***',
            sanitized
        )
        return sanitized

    def _translate_error(self, exception: Exception, operation: str) -> Exception:
        """Translate SDK and transport exceptions to typed Notion exceptions.

        Args:
            exception: The original exception from the API client
            operation: Description of the operation that failed (for logging)

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, (RequestTimeoutError, httpx.TransportError)):
            return APIUnreachableError(endpoint=NOTION_API_ENDPOINT)

        if isinstance(exception, HTTPResponseError):
            if exception.status == 401:
                return InvalidCredentialsError(endpoint=NOTION_API_ENDPOINT)
            if exception.status == 404:
                node_id = "unknown"
                match = re.search(r'\(([^)]+)\)', operation)
                if match:
                    node_id = match.group(1)
                return NodeNotFoundError(node_id=node_id)

        safe_error_msg = self._sanitize_credentials(str(exception))
        logger.error(f"API operation failed: {operation} - {safe_error_msg}")
        return APIAccessError(
            f"Notion API failure during {operation}",
            status=getattr(exception, 'status', None),
        )

    def _call(self, operation: str, func: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        """Run one SDK call with error translation and rate-limit retries."""
        def _fetch():
            try:
                return func()
            except HTTPResponseError as e:
                if e.status == 429:
                    raise
                raise self._translate_error(e, operation) from e
            except (RequestTimeoutError, httpx.TransportError) as e:
                raise self._translate_error(e, operation) from e

        return retry_on_rate_limit(_fetch)

    def _paginate(self, operation: str, func: Callable[..., Dict[str, Any]], **kwargs) -> List[Dict[str, Any]]:
        """Collect all results of a cursor-paginated endpoint.

        Args:
            operation: Description used in logs and errors
            func: SDK endpoint method
            **kwargs: Arguments for every request (cursor is added per page)

        Returns:
            Concatenated ``results`` of all pages
        """
        results: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        while True:
            params = dict(kwargs, page_size=PAGE_SIZE)
            if cursor:
                params['start_cursor'] = cursor

            response = self._call(operation, lambda: func(**params))
            results.extend(response.get('results', []))

            cursor = response.get('next_cursor') if response.get('has_more', True) else None
            if not cursor:
                break

        logger.debug(f"{operation}: collected {len(results)} result(s)")
        return results

    def search_objects(self, object_type: str) -> List[Dict[str, Any]]:
        """List every page or database shared with the integration.

        Args:
            object_type: ``"page"`` or ``"database"``

        Returns:
            Raw page or database objects

        Raises:
            MissingCredentialsError: If no secret is configured
            InvalidCredentialsError: If the secret is rejected
            APIUnreachableError: If the API is unreachable
            APIAccessError: If API access fails after retries
        """
        client = self._get_client()
        logger.info(f"Notion API: POST /search (object={object_type})")
        return self._paginate(
            f"search({object_type})",
            client.search,
            filter={'property': 'object', 'value': object_type},
        )

    def list_block_children(self, block_id: str) -> List[Dict[str, Any]]:
        """List the direct child blocks of a page or block.

        Raises:
            NodeNotFoundError: If the block does not exist
            APIUnreachableError: If the API is unreachable
            APIAccessError: If API access fails after retries
        """
        client = self._get_client()
        logger.debug(f"Notion API: GET /blocks/{block_id}/children")
        return self._paginate(
            f"list_block_children({block_id})",
            client.blocks.children.list,
            block_id=block_id,
        )

    def get_page(self, page_id: str) -> Dict[str, Any]:
        """Fetch a page object (including its properties).

        Raises:
            NodeNotFoundError: If the page does not exist
            APIUnreachableError: If the API is unreachable
            APIAccessError: If API access fails after retries
        """
        client = self._get_client()
        logger.debug(f"Notion API: GET /pages/{page_id}")
        return self._call(
            f"get_page({page_id})",
            lambda: client.pages.retrieve(page_id=page_id),
        )

    def download_file(self, url: str) -> bytes:
        """Download a binary asset.

        Notion-hosted file URLs are pre-signed, so no secret is sent.

        Raises:
            requests.RequestException: On transport or HTTP status failure
        """
        def _fetch():
            response = self._session.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            return response.content

        return retry_on_rate_limit(_fetch)
