"""Authentication module for loading the Notion integration secret.

This module handles loading the Notion secret from environment variables
using python-dotenv. It validates that the secret is present before any
network call is made.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from .errors import MissingCredentialsError


class Authenticator:
    """Loads and validates the Notion integration secret.

    The secret is loaded from a .env file using python-dotenv and is never
    cached or logged.

    Required environment variables:
        NOTION_TOKEN: Notion internal integration secret

    Example:
        >>> auth = Authenticator()
        >>> token = auth.get_token()
    """

    TOKEN_VARIABLE = 'NOTION_TOKEN'

    def __init__(self, token: Optional[str] = None):
        """Initialize the authenticator.

        Args:
            token: Explicit secret; when omitted NOTION_TOKEN is read from
                   the environment after loading .env
        """
        self._token = token
        load_dotenv()

    def has_token(self) -> bool:
        """Return True if a non-empty secret is available."""
        return bool((self._token or os.getenv(self.TOKEN_VARIABLE) or '').strip())

    def get_token(self) -> str:
        """Get the Notion secret.

        Returns:
            The integration secret

        Raises:
            MissingCredentialsError: If no secret is configured
        """
        token = (self._token or os.getenv(self.TOKEN_VARIABLE) or '').strip()
        if not token:
            raise MissingCredentialsError(self.TOKEN_VARIABLE)
        return token
