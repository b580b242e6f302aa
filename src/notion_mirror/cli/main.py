"""Main CLI entry point for the notion-mirror command.

This module provides the Typer application that serves as the entry point
for the notion-mirror command-line tool. It uses options on the main command
rather than subcommands for a simpler user experience.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .. import __version__
from ..file_mapper.config_loader import ConfigLoader
from ..file_mapper.errors import FileMapperError
from ..file_mapper.models import canonical_id
from .errors import InitError
from .init_command import InitCommand
from .models import ExitCode
from .output import OutputHandler
from .sync_command import SyncCommand

CONFIG_PATH = ".notion-mirror/config.yaml"
STATE_PATH = ".notion-mirror/state.yaml"

app = typer.Typer(
    name="notion-mirror",
    help="""One-way mirror of a Notion workspace into a local Markdown vault.

QUICK START:
  notion-mirror --init --vault <folder>     # Initialize
  notion-mirror                             # Run a sync pass
  notion-mirror --dry-run                   # Preview changes
  notion-mirror --status                    # Show last sync and counts

The integration secret is read from NOTION_TOKEN (environment or .env).""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

logger = logging.getLogger(__name__)

GETTING_STARTED_MESSAGE = """notion-mirror                                         # Run a sync pass

--init --vault <folder> [--root <path>] [--assets <path>]  # Initialize
--dry-run                                             # Preview changes
--status                                              # Show last sync and counts
--exclude <page_id> / --include <page_id>            # Edit the filter list
--help                                                # Show all options

Example:
  NOTION_TOKEN=secret_... notion-mirror --init --vault ./notes --root Notion"""


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'notion_mirror' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged, and the
    notion_client logger (which logs every request at INFO) is kept at
    WARNING.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("notion_mirror")
    app_logger.setLevel(level)
    app_logger.handlers.clear()
    logging.getLogger("notion_client").setLevel(logging.WARNING)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"notion-mirror_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _run_init(
    vault: str,
    root_folder: str,
    asset_folder: str,
    verbosity: int,
    no_color: bool
) -> None:
    """Run initialization command."""
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        output.info("Initializing mirror configuration...")
        output.info(f"  Vault: {vault}")

        init_cmd = InitCommand(config_path=CONFIG_PATH)
        init_cmd.run(vault_path=vault, root_folder=root_folder, asset_folder=asset_folder)

        output.success("Configuration initialized successfully")
        output.info(f"  Config file: {init_cmd.config_path}")
        if not init_cmd.token_configured:
            output.warning("NOTION_TOKEN is not set. Add it to the environment or a .env file before syncing.")
        output.info("")
        output.info("Next steps:")
        output.info("  1. Review .notion-mirror/config.yaml")
        output.info("  2. Run 'notion-mirror' to start syncing")

        raise typer.Exit(ExitCode.SUCCESS)

    except InitError as e:
        logger.error(f"Initialization failed: {e}")
        output.error(f"Initialization failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    except typer.Exit:
        raise

    except Exception as e:
        logger.exception("Unexpected error during initialization")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def _apply_filter_changes(
    exclude_ids: Optional[List[str]],
    include_ids: Optional[List[str]],
    output: OutputHandler,
) -> None:
    """Add/remove page IDs from the filter list and persist the config.

    Runs before the sync pass so the pass already honors the new list.
    """
    try:
        config = ConfigLoader.load(CONFIG_PATH)
    except FileMapperError as e:
        output.error(f"Failed to load config: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    added = []
    for page_id in exclude_ids or []:
        page_id = page_id.strip()
        if page_id and not config.is_filtered(page_id):
            config.filtered_ids.append(page_id)
            added.append(page_id)

    removed = []
    for page_id in include_ids or []:
        remaining = [f for f in config.filtered_ids if canonical_id(f) != canonical_id(page_id.strip())]
        if len(remaining) != len(config.filtered_ids):
            removed.append(page_id)
        config.filtered_ids = remaining

    if not added and not removed:
        output.info("Filter list unchanged")
        return

    try:
        ConfigLoader.save(CONFIG_PATH, config)
    except FileMapperError as e:
        output.error(f"Failed to save config: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if added:
        output.success(f"Excluded {len(added)} page(s): {', '.join(added)}")
    if removed:
        output.success(f"Included {len(removed)} page(s) again: {', '.join(removed)}")


@app.command()
def main_command(
    init: bool = typer.Option(
        False,
        "--init",
        help="Initialize mirror configuration (requires --vault)",
    ),
    vault: Optional[str] = typer.Option(
        None,
        "--vault",
        help="Local vault folder for mirrored files (used with --init)",
        metavar="FOLDER",
    ),
    root_folder: str = typer.Option(
        "",
        "--root",
        help="With --init: vault folder that receives all documents",
        metavar="PATH",
    ),
    asset_folder: str = typer.Option(
        "attachments",
        "--assets",
        help="With --init: vault folder for downloaded images and files",
        metavar="PATH",
    ),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        help="Notion page or database ID to exclude from sync (can be used multiple times)",
        metavar="ID",
    ),
    include: Optional[List[str]] = typer.Option(
        None,
        "--include",
        help="Remove an ID from the exclusion list (can be used multiple times)",
        metavar="ID",
    ),
    status: bool = typer.Option(
        False,
        "--status",
        help="Show last sync time, synced page and asset counts, and exit",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "--dryrun",
        help="Preview changes without applying them",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """One-way mirror of a Notion workspace into a local Markdown vault.

    \b
    QUICK START:
      notion-mirror --init --vault ./notes      # Initialize
      notion-mirror                             # Run a sync pass
      notion-mirror --dry-run                   # Preview changes

    \b
    FILTERING:
      notion-mirror --exclude 8a3e0c2b4d6f4a1e9b7c5d3f1e2a4b6c
      notion-mirror --include 8a3e0c2b4d6f4a1e9b7c5d3f1e2a4b6c

    NOTE:
      - Excluded pages (and everything below them) are removed from the vault
        on the next pass when auto_delete_missing_pages is on
    """
    if version:
        typer.echo(f"notion-mirror version {__version__}")
        raise typer.Exit()

    if init or vault is not None:
        if not init or vault is None:
            typer.echo("Error: --init and --vault must be used together", err=True)
            typer.echo("")
            typer.echo("Example:")
            typer.echo("  notion-mirror --init --vault ./notes")
            raise typer.Exit(ExitCode.GENERAL_ERROR)

        _run_init(vault, root_folder, asset_folder, verbosity, no_color)
        return

    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    if status:
        raise typer.Exit(SyncCommand(CONFIG_PATH, STATE_PATH, output_handler=output).status())

    has_options = dry_run or logdir is not None or exclude or include
    if not has_options and verbosity == 0 and not Path(CONFIG_PATH).exists():
        typer.echo(GETTING_STARTED_MESSAGE)
        raise typer.Exit()

    if exclude or include:
        _apply_filter_changes(exclude, include, output)

    sync_cmd = SyncCommand(CONFIG_PATH, STATE_PATH, output_handler=output)
    raise typer.Exit(sync_cmd.run(dry_run=dry_run))


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m notion_mirror.cli.main
if __name__ == "__main__":
    main()
