"""Command-line interface for the Notion mirror.

This package provides the `notion-mirror` CLI tool and the reconciliation
engine behind it: change detection against the persisted sync state, local
deletions and moves, document rendering, and progress and summary output.
"""

from .sync_command import SyncCommand
from .init_command import InitCommand
from .reconciliation_engine import ReconciliationEngine
from .models import ExitCode, SyncState, SyncStatus, SyncSummary, SyncPlan
from .errors import (
    CLIError,
    ConfigNotFoundError,
    InitError,
    StateError,
    StateFilesystemError,
)

__all__ = [
    'SyncCommand',
    'InitCommand',
    'ReconciliationEngine',
    'ExitCode',
    'SyncState',
    'SyncStatus',
    'SyncSummary',
    'SyncPlan',
    'CLIError',
    'ConfigNotFoundError',
    'InitError',
    'StateError',
    'StateFilesystemError',
]
