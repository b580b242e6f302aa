"""Unit tests for notion_api.auth module."""

import pytest

from notion_mirror.notion_api.auth import Authenticator
from notion_mirror.notion_api.errors import MissingCredentialsError


class TestAuthenticator:
    """Test cases for Authenticator."""

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("NOTION_TOKEN", "  secret_abc  ")

        auth = Authenticator()

        assert auth.has_token()
        assert auth.get_token() == "secret_abc"

    def test_explicit_token_wins(self, monkeypatch):
        monkeypatch.setenv("NOTION_TOKEN", "secret_env")
        assert Authenticator(token="secret_arg").get_token() == "secret_arg"

    def test_missing_token(self):
        auth = Authenticator()

        assert not auth.has_token()
        with pytest.raises(MissingCredentialsError) as exc_info:
            auth.get_token()
        assert exc_info.value.variable == "NOTION_TOKEN"
        assert "NOTION_TOKEN" in str(exc_info.value)

    def test_blank_token_is_missing(self, monkeypatch):
        monkeypatch.setenv("NOTION_TOKEN", "   ")
        assert not Authenticator().has_token()
