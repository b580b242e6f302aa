"""Exceptions raised while mapping the Notion graph onto the vault.

Vault and config failures share the FileMapperError base so the CLI can
report them together. Per-item filesystem failures are caught by the sync
engine, which skips the affected page and carries on.
"""

from typing import Optional

from ..notion_api.errors import SyncError


class FileMapperError(SyncError):
    """Base exception for vault and config errors."""


class FilesystemError(FileMapperError):
    """A vault path could not be read, written, listed or checked."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Vault {operation} failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation


class ConfigError(FileMapperError):
    """The mirror configuration file is malformed or has an invalid field."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        prefix = f"Invalid '{config_field}'" if config_field else "Invalid configuration"
        super().__init__(f"{prefix}: {message}")
        self.config_field = config_field
