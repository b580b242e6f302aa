"""State file loading and validation.

This module handles loading and saving mirror state from YAML files. The
state records which document was written for which Notion page (and from
which revision) and which asset was downloaded from which URL. It is what
makes a pass incremental: anything not recorded here is new.
"""

import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict

import yaml

from ..file_mapper.models import AssetRecord, SyncRecord
from .errors import StateError, StateFilesystemError
from .models import SyncState

logger = logging.getLogger(__name__)


class StateManager:
    """Handles state file loading, validation, and saving.

    State file structure:
        last_synced: "2024-01-15T10:30:00.000Z"
        synced_pages:
          "8a3e...":
            local_path: "Notion/Projects/Plan.md"
            last_synced_revision: "2024-01-15T10:12:00.000Z"
        synced_assets:
          "https://files.example.com/diagram.png":
            local_path: "attachments/Diagram_1705313520000.png"
            content_hash: "2048894e47da1a0"

    If the file is missing or empty, it's treated as a fresh state (never
    synced). A malformed file raises StateError rather than silently
    dropping the records, which would re-download everything.
    """

    DEFAULT_STATE_DIR = '.notion-mirror'
    DEFAULT_STATE_FILE = 'state.yaml'

    @classmethod
    def load(cls, state_path: str) -> SyncState:
        """Load and parse state from a YAML file.

        Raises:
            StateFilesystemError: If file cannot be read (except FileNotFoundError)
            StateError: If state file is invalid or malformed
        """
        try:
            with open(state_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            # Missing state file is normal for first sync
            return SyncState()
        except PermissionError:
            raise StateFilesystemError(state_path, 'read', 'Permission denied')
        except OSError as e:
            raise StateFilesystemError(state_path, 'read', str(e))

        if not content.strip():
            return SyncState()

        try:
            state_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise StateError(f"Invalid YAML syntax: {str(e)}")

        if state_dict is None:
            return SyncState()

        if not isinstance(state_dict, dict):
            raise StateError(
                f"State must be a YAML dictionary, got {type(state_dict).__name__}"
            )

        return cls._parse_state(state_dict)

    @classmethod
    def save(cls, state_path: str, sync_state: SyncState) -> None:
        """Save state to a YAML file atomically.

        The YAML is written to a temp file next to the state file and then
        moved into place, so readers never see a partial file.

        Raises:
            StateFilesystemError: If file cannot be written
        """
        state_dict = {
            'last_synced': sync_state.last_synced,
            'synced_pages': {
                page_id: {
                    'local_path': record.local_path,
                    'last_synced_revision': record.last_synced_revision,
                }
                for page_id, record in sync_state.synced_pages.items()
            },
            'synced_assets': {
                source_id: {
                    'local_path': asset.local_path,
                    'content_hash': asset.content_hash,
                }
                for source_id, asset in sync_state.synced_assets.items()
            },
        }

        yaml_str = yaml.safe_dump(
            state_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        state_dir = os.path.dirname(state_path) or '.'
        try:
            os.makedirs(state_dir, exist_ok=True)
        except OSError as e:
            raise StateFilesystemError(state_dir, 'create_directory', str(e))

        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(dir=state_dir, prefix='.state-', suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
            os.replace(temp_path, state_path)
            temp_path = None
        except PermissionError:
            raise StateFilesystemError(state_path, 'write', 'Permission denied')
        except OSError as e:
            raise StateFilesystemError(state_path, 'write', str(e))
        finally:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError as e:
                    logger.warning(f"Failed to remove temp state file {temp_path}: {e}")

    @classmethod
    def _parse_state(cls, state_dict: Dict[str, Any]) -> SyncState:
        """Parse and validate state dictionary.

        Raises:
            StateError: If state is invalid
        """
        last_synced = state_dict.get('last_synced')
        if last_synced is not None:
            if not isinstance(last_synced, str):
                raise StateError(
                    f"Field 'last_synced' must be a string (ISO 8601 timestamp), got {type(last_synced).__name__}",
                    'last_synced'
                )
            if not last_synced.strip():
                raise StateError("Field 'last_synced' cannot be empty", 'last_synced')
            last_synced = last_synced.strip()

        synced_pages = {
            page_id: SyncRecord(
                node_id=page_id,
                local_path=entry['local_path'],
                last_synced_revision=entry.get('last_synced_revision') or '',
            )
            for page_id, entry in cls._parse_records(state_dict, 'synced_pages').items()
        }
        synced_assets = {
            source_id: AssetRecord(
                source_id=source_id,
                local_path=entry['local_path'],
                content_hash=entry.get('content_hash') or '',
            )
            for source_id, entry in cls._parse_records(state_dict, 'synced_assets').items()
        }

        return SyncState(
            last_synced=last_synced,
            synced_pages=synced_pages,
            synced_assets=synced_assets,
        )

    @staticmethod
    def _parse_records(state_dict: Dict[str, Any], field_name: str) -> Dict[str, Dict[str, Any]]:
        """Validate a mapping of key -> {local_path: str, ...}."""
        raw = state_dict.get(field_name)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise StateError(
                f"Field '{field_name}' must be a dictionary, got {type(raw).__name__}",
                field_name
            )

        for key, entry in raw.items():
            if not isinstance(key, str):
                raise StateError(
                    f"Field '{field_name}' keys must be strings, got {type(key).__name__}",
                    field_name
                )
            if not isinstance(entry, dict) or not isinstance(entry.get('local_path'), str):
                raise StateError(
                    f"Entry '{key}' must be a dictionary with a string 'local_path'",
                    field_name
                )
            for value in entry.values():
                if value is not None and not isinstance(value, str):
                    raise StateError(
                        f"Entry '{key}' values must be strings, got {type(value).__name__}",
                        field_name
                    )
        return raw


class SyncStore:
    """The persisted store of one vault: a state file plus its loaded state.

    The engine mutates ``state`` in place and calls ``checkpoint()`` after
    every change, so an interrupted pass resumes from the last completed
    step instead of redoing (or forgetting) work.

    Example:
        >>> store = SyncStore.open(".notion-mirror/state.yaml")
        >>> store.state.synced_pages[page_id] = record
        >>> store.checkpoint()
    """

    def __init__(self, state_path: str, state: SyncState):
        self.state_path = state_path
        self.state = state

    @classmethod
    def open(cls, state_path: str) -> 'SyncStore':
        return cls(state_path, StateManager.load(state_path))

    def checkpoint(self) -> None:
        StateManager.save(self.state_path, self.state)

    def flush(self) -> None:
        """Mark the pass complete and persist."""
        self.state.last_synced = (
            datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        )
        self.checkpoint()
