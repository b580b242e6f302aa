"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

# notion-client logs every request at INFO and httpx logs connection details;
# neither is useful in test output.
logging.getLogger("notion_client").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def _no_notion_token(monkeypatch):
    """Keep a developer's real NOTION_TOKEN (or .env) out of tests."""
    monkeypatch.delenv("NOTION_TOKEN", raising=False)
    monkeypatch.setattr("notion_mirror.notion_api.auth.load_dotenv", lambda *args, **kwargs: False)
