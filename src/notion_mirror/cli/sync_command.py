"""Sync command orchestration for CLI.

This module provides the SyncCommand class that wires configuration, state,
the Notion API and the vault together, runs one reconciliation pass under
the sync lock and translates the outcome into an exit code.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import requests

from ..file_mapper.config_loader import ConfigLoader
from ..file_mapper.errors import ConfigError, FileMapperError
from ..file_mapper.vault import Vault
from ..notion_api.api_wrapper import APIWrapper
from ..notion_api.auth import Authenticator
from ..notion_api.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    MissingCredentialsError,
    NotionError,
)
from .config import SyncStore
from .errors import CLIError, ConfigNotFoundError
from .models import ExitCode, SyncStatus, SyncSummary
from .output import OutputHandler
from .reconciliation_engine import ReconciliationEngine
from .sync_lock import SyncLock

logger = logging.getLogger(__name__)


class SyncCommand:
    """Orchestrates one sync pass for the CLI.

    The sync workflow:
        1. Load configuration
        2. Refuse to start without a Notion secret (no request is made)
        3. Take the sync lock (a concurrent pass reports ALREADY_RUNNING)
        4. Load state and run the ReconciliationEngine (or a dry run)
        5. Display the summary and return an exit code

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> sync_cmd = SyncCommand(output_handler=output)
        >>> exit_code = sync_cmd.run(dry_run=False)
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        config_path: str = ".notion-mirror/config.yaml",
        state_path: str = ".notion-mirror/state.yaml",
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        api_wrapper: Optional[APIWrapper] = None,
    ):
        """Initialize sync command with dependencies.

        Args:
            config_path: Path to configuration YAML file
            state_path: Path to state YAML file
            output_handler: OutputHandler for terminal output (optional)
            authenticator: Authenticator for the Notion secret (optional)
            api_wrapper: APIWrapper for Notion requests (optional)
        """
        self.config_path = config_path
        self.state_path = state_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.api_wrapper = api_wrapper
        self.last_summary: Optional[SyncSummary] = None

    def run(self, dry_run: bool = False) -> ExitCode:
        """Execute one sync pass.

        Args:
            dry_run: If True, preview changes without applying them

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            config = self._load_config()

            if not self.authenticator:
                self.authenticator = Authenticator()
            if not self.authenticator.has_token():
                # Refused before any network call
                raise MissingCredentialsError(Authenticator.TOKEN_VARIABLE)

            state_dir = os.path.dirname(self.state_path) or '.'
            with SyncLock(state_dir).hold() as acquired:
                if not acquired:
                    logger.warning("Another sync pass is running, skipping")
                    self.output_handler.warning("Sync already in progress")
                    self.last_summary = SyncSummary(status=SyncStatus.ALREADY_RUNNING)
                    return ExitCode.ALREADY_RUNNING

                store = SyncStore.open(self.state_path)
                logger.info(f"Last synced: {store.state.last_synced or 'never'}")

                vault = Vault(config.vault_path)
                api = self.api_wrapper or APIWrapper(self.authenticator)
                engine = ReconciliationEngine(config, store, vault, api)

                try:
                    with self.output_handler.spinner("Syncing from Notion..."):
                        summary = engine.run(dry_run=dry_run)
                except Exception:
                    self.last_summary = SyncSummary(status=SyncStatus.ABORTED)
                    raise

            self.last_summary = summary
            if summary.dry_run:
                self.output_handler.print_dryrun_summary(summary.plan)
            else:
                self.output_handler.print_summary(summary)

            if summary.conflicts:
                return ExitCode.CONFLICTS
            return ExitCode.SUCCESS

        except (MissingCredentialsError, InvalidCredentialsError) as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info(
                f"Set {Authenticator.TOKEN_VARIABLE} in the environment or in a .env file"
            )
            return ExitCode.AUTH_ERROR

        except (APIUnreachableError, APIAccessError, requests.RequestException) as e:
            logger.error(f"API error: {e}")
            self.output_handler.error(f"API error: {e}")
            self.output_handler.info("Check your internet connection and try again")
            return ExitCode.NETWORK_ERROR

        except NotionError as e:
            logger.error(f"Notion error: {e}")
            self.output_handler.error(f"Notion error: {e}")
            return ExitCode.NETWORK_ERROR

        except ConfigNotFoundError as e:
            logger.error(str(e))
            self._print_getting_started()
            return ExitCode.GENERAL_ERROR

        except ConfigError as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except (CLIError, FileMapperError) as e:
            logger.error(f"Sync error: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error during sync")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    def status(self) -> ExitCode:
        """Display last sync time, record counts and settings."""
        try:
            config = self._load_config()
            store = SyncStore.open(self.state_path)
        except ConfigNotFoundError as e:
            logger.error(str(e))
            self._print_getting_started()
            return ExitCode.GENERAL_ERROR
        except (CLIError, FileMapperError) as e:
            logger.error(f"Failed to read status: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        self.output_handler.print_status(config, store.state)
        return ExitCode.SUCCESS

    def _load_config(self):
        """Load the config.

        Raises:
            ConfigNotFoundError: If the config file does not exist
            ConfigError: If the config file is invalid
        """
        logger.info(f"Loading configuration from {self.config_path}")
        if not Path(self.config_path).exists():
            raise ConfigNotFoundError(self.config_path)
        return ConfigLoader.load(self.config_path)

    def _print_getting_started(self) -> None:
        self.output_handler.print("No mirror configuration found.\n")
        self.output_handler.print("To get started, initialize with your vault directory:\n")
        self.output_handler.print("  notion-mirror --init --vault ./notes\n")
        self.output_handler.print("Required environment variables:")
        self.output_handler.print(f"  {Authenticator.TOKEN_VARIABLE}    - Notion internal integration secret\n")
        self.output_handler.print("Run 'notion-mirror --help' for more options.")
