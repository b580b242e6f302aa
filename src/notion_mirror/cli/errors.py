"""Exceptions raised by the notion-mirror command line.

CLIError covers problems with the mirror's own files under .notion-mirror/
(config lookup, init and the state file), as opposed to Notion or vault
failures.
"""

from typing import Optional

from ..notion_api.errors import SyncError


class CLIError(SyncError):
    """Base exception for command line errors."""


class ConfigNotFoundError(CLIError):
    """No mirror config exists yet; the user has to run --init first."""

    def __init__(self, config_path: str):
        super().__init__(
            f"No mirror config at {config_path}. "
            f"Run 'notion-mirror --init --vault <dir>' first"
        )
        self.config_path = config_path


class InitError(CLIError):
    """--init was refused (config already present or folders invalid)."""


class StateError(CLIError):
    """The state file is malformed or holds an invalid record."""

    def __init__(self, message: str, state_field: Optional[str] = None):
        prefix = f"Invalid state '{state_field}'" if state_field else "Invalid state file"
        super().__init__(f"{prefix}: {message}")
        self.state_field = state_field


class StateFilesystemError(CLIError):
    """The state file could not be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"State file {operation} failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
