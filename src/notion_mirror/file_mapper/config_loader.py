"""YAML configuration loading and validation.

This module handles loading and saving the mirror configuration from
.notion-mirror/config.yaml. The Notion secret is never stored here; it is
read from the NOTION_TOKEN environment variable (or .env) by Authenticator.
"""

import os
from typing import Any, Dict, List

import yaml

from .errors import ConfigError, FilesystemError
from .models import SyncConfig


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        vault_path: "./notes"
        sync_interval_minutes: 30
        auto_delete_missing_pages: true
        root_folder_path: "Notion"
        asset_folder_path: "attachments"
        filtered_ids: ["8a3e...", "c41f..."]

    Every field is optional; missing fields take the defaults below.
    """

    # Default values for optional fields
    DEFAULTS = {
        'vault_path': '.',
        'sync_interval_minutes': 30,
        'auto_delete_missing_pages': True,
        'root_folder_path': '',
        'asset_folder_path': 'attachments',
    }

    @classmethod
    def load(cls, config_path: str) -> SyncConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncConfig object with parsed configuration

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(config_path, 'read', 'Configuration file not found')
        except PermissionError:
            raise FilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            raise ConfigError("Configuration file is empty")

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, sync_config: SyncConfig) -> None:
        """Save configuration to a YAML file.

        Args:
            config_path: Path to the YAML configuration file
            sync_config: SyncConfig object to save

        Raises:
            FilesystemError: If file cannot be written
        """
        config_dict = {
            'vault_path': sync_config.vault_path,
            'sync_interval_minutes': sync_config.sync_interval_minutes,
            'auto_delete_missing_pages': sync_config.auto_delete_missing_pages,
            'root_folder_path': sync_config.root_folder_path,
            'asset_folder_path': sync_config.asset_folder_path,
            'filtered_ids': list(sync_config.filtered_ids),
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(config_dir, 'create_directory', str(e))

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'write', str(e))

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> SyncConfig:
        """Parse and validate configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        values = dict(cls.DEFAULTS)
        values.update({k: v for k, v in config_dict.items() if k in cls.DEFAULTS and v is not None})

        vault_path = str(values['vault_path'])
        if not vault_path.strip():
            raise ConfigError("Field 'vault_path' cannot be empty", 'vault_path')

        interval = values['sync_interval_minutes']
        if isinstance(interval, bool):
            raise ConfigError("Field must be an integer, got a boolean", 'sync_interval_minutes')
        try:
            interval = int(interval)
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid integer: {str(e)}", 'sync_interval_minutes')
        if interval < 0:
            raise ConfigError(f"Field must be at least 0, got {interval}", 'sync_interval_minutes')

        auto_delete = values['auto_delete_missing_pages']
        if not isinstance(auto_delete, bool):
            raise ConfigError(
                f"Field must be true or false, got {auto_delete!r}",
                'auto_delete_missing_pages'
            )

        for folder_field in ('root_folder_path', 'asset_folder_path'):
            if not isinstance(values[folder_field], str):
                raise ConfigError("Field must be a string", folder_field)
            if '..' in values[folder_field].replace('\\', '/').split('/'):
                raise ConfigError("Folder must stay inside the vault", folder_field)

        return SyncConfig(
            vault_path=vault_path,
            sync_interval_minutes=interval,
            auto_delete_missing_pages=auto_delete,
            root_folder_path=values['root_folder_path'].strip().strip('/'),
            asset_folder_path=values['asset_folder_path'].strip().strip('/'),
            filtered_ids=cls._parse_filtered_ids(config_dict.get('filtered_ids')),
        )

    @staticmethod
    def _parse_filtered_ids(raw: Any) -> List[str]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ConfigError("Field 'filtered_ids' must be a list", 'filtered_ids')

        filtered_ids: List[str] = []
        for node_id in raw:
            node_id = str(node_id).strip()
            if node_id and node_id not in filtered_ids:
                filtered_ids.append(node_id)
        return filtered_ids
