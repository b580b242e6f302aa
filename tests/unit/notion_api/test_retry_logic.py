"""Unit tests for notion_api.retry_logic module."""

from unittest.mock import Mock, patch

import pytest
import requests

from notion_mirror.notion_api.errors import APIAccessError
from notion_mirror.notion_api.retry_logic import _is_rate_limit_error, retry_on_rate_limit


class RateLimited(Exception):
    status = 429


class TestRetryOnRateLimit:
    """Test cases for retry_on_rate_limit function."""

    @patch("notion_mirror.notion_api.retry_logic.time.sleep")
    def test_success_on_first_attempt(self, mock_sleep):
        func = Mock(return_value="ok")

        assert retry_on_rate_limit(func, "a", key="b") == "ok"

        func.assert_called_once_with("a", key="b")
        mock_sleep.assert_not_called()

    @patch("notion_mirror.notion_api.retry_logic.time.sleep")
    def test_retries_with_exponential_backoff(self, mock_sleep):
        """Test 1s, 2s waits before the third attempt succeeds."""
        func = Mock(side_effect=[RateLimited(), RateLimited(), "ok"])

        assert retry_on_rate_limit(func) == "ok"

        assert func.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @patch("notion_mirror.notion_api.retry_logic.time.sleep")
    def test_gives_up_after_three_retries(self, mock_sleep):
        func = Mock(side_effect=RateLimited())

        with pytest.raises(APIAccessError) as exc_info:
            retry_on_rate_limit(func)

        assert exc_info.value.status == 429
        assert func.call_count == 4
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2, 4]

    @patch("notion_mirror.notion_api.retry_logic.time.sleep")
    def test_other_errors_fail_fast(self, mock_sleep):
        func = Mock(side_effect=ValueError("nope"))

        with pytest.raises(ValueError):
            retry_on_rate_limit(func)

        func.assert_called_once()
        mock_sleep.assert_not_called()


class TestIsRateLimitError:
    """Test cases for _is_rate_limit_error."""

    def test_status_attribute(self):
        assert _is_rate_limit_error(RateLimited())

    def test_notion_error_code(self):
        error = Exception("slow down")
        error.code = "rate_limited"
        assert _is_rate_limit_error(error)

    def test_requests_http_error(self):
        response = requests.Response()
        response.status_code = 429
        assert _is_rate_limit_error(requests.HTTPError("429", response=response))

    def test_message_pattern(self):
        assert _is_rate_limit_error(Exception("Too Many Requests"))

    def test_other_status(self):
        response = requests.Response()
        response.status_code = 500
        assert not _is_rate_limit_error(requests.HTTPError("500", response=response))
