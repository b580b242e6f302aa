"""InitCommand for configuration initialization.

This module implements the --init command that creates the mirror
configuration in .notion-mirror/config.yaml and the vault directory.
"""

import logging
import os
from typing import Optional

from ..file_mapper.config_loader import ConfigLoader
from ..file_mapper.errors import FileMapperError
from ..file_mapper.models import SyncConfig
from ..notion_api.auth import Authenticator
from .errors import InitError

logger = logging.getLogger(__name__)


class InitCommand:
    """Handles initialization of the mirror configuration.

    Example:
        >>> init = InitCommand()
        >>> init.run(vault_path="./notes", root_folder="Notion")
    """

    DEFAULT_CONFIG_PATH = ".notion-mirror/config.yaml"

    def __init__(
        self,
        config_path: Optional[str] = None,
        authenticator: Optional[Authenticator] = None,
    ):
        """Initialize the init command.

        Args:
            config_path: Optional config file path (defaults to .notion-mirror/config.yaml)
            authenticator: Optional Authenticator used to check the secret
        """
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self.authenticator = authenticator
        self.token_configured = False

    def run(
        self,
        vault_path: str,
        root_folder: str = "",
        asset_folder: str = "attachments",
    ) -> SyncConfig:
        """Create the configuration file and vault directory.

        No Notion request is made: the secret is only checked for presence
        so the user can be told to set it before the first sync.

        Args:
            vault_path: Local directory that receives the mirrored tree
            root_folder: Vault-relative folder for documents ("" = vault root)
            asset_folder: Vault-relative folder for downloaded assets

        Returns:
            The saved configuration

        Raises:
            InitError: If initialization fails at any step
        """
        if os.path.exists(self.config_path):
            raise InitError(
                f"Configuration file already exists at {self.config_path}\n"
                "Please delete it first if you want to reinitialize."
            )

        if not vault_path or not vault_path.strip():
            raise InitError("Vault path cannot be empty")
        vault_path = os.path.normpath(vault_path)

        for label, folder in (("Root folder", root_folder), ("Asset folder", asset_folder)):
            if '..' in (folder or '').replace('\\', '/').split('/') or os.path.isabs(folder or ''):
                raise InitError(f"{label} must be a path inside the vault: {folder}")

        try:
            os.makedirs(vault_path, exist_ok=True)
            logger.info(f"Vault directory ready: {vault_path}")
        except OSError as e:
            raise InitError(f"Failed to create vault directory {vault_path}: {str(e)}")

        sync_config = SyncConfig(
            vault_path=vault_path,
            root_folder_path=(root_folder or '').strip().strip('/'),
            asset_folder_path=(asset_folder or '').strip().strip('/'),
        )

        try:
            ConfigLoader.save(self.config_path, sync_config)
            logger.info(f"Configuration saved to {self.config_path}")
        except FileMapperError as e:
            raise InitError(f"Failed to save configuration: {str(e)}")

        authenticator = self.authenticator or Authenticator()
        self.token_configured = authenticator.has_token()
        if not self.token_configured:
            logger.warning(f"{Authenticator.TOKEN_VARIABLE} is not set; sync will be refused until it is")

        return sync_config
