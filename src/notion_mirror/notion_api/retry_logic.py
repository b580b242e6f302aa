"""Retry logic with exponential backoff for Notion API rate limits.

This module provides retry functionality specifically for handling 429 rate limit
responses from the Notion API. It implements exponential backoff (1s, 2s, 4s)
and fails fast for non-rate-limit errors.
"""

import time
import logging
from typing import Callable, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Retry function on 429 rate limit with exponential backoff.

    Executes the given function with the provided arguments, retrying up to 3 times
    with exponential backoff (1s, 2s, 4s) when a rate limit error is encountered.
    Fails fast for all other errors.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If rate limit persists after 3 retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> result = retry_on_rate_limit(api.list_block_children, "abc123")
    """
    for retry_num in range(MAX_RETRIES + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Rate limit persisted after {MAX_RETRIES} retries, giving up"
                )
                raise APIAccessError(status=429)

            wait_time = 2 ** retry_num
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES})"
            )
            time.sleep(wait_time)

    raise APIAccessError(status=429)


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a rate limit (429) error.

    Recognizes notion-client's APIResponseError (``status``/``code``),
    requests' HTTPError (``response.status_code``) and plain messages.

    Args:
        exception: The exception to check

    Returns:
        True if this appears to be a rate limit error, False otherwise
    """
    if getattr(exception, 'status', None) == 429:
        return True

    code = getattr(exception, 'code', None)
    if code is not None and str(getattr(code, 'value', code)) == 'rate_limited':
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    error_msg = str(exception).lower()
    return any(pattern in error_msg for pattern in ('too many requests', 'rate limited', 'rate_limited'))
