"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
Uses Rich library for spinners, tables and colored output. Supports
verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table

from ..file_mapper.models import SyncConfig
from .models import SyncPlan, SyncState, SyncSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Operation completed")
        >>> with handler.spinner("Fetching pages..."):
        ...     engine.run()
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False, console: Optional[Console] = None):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
            console: Console to print to (tests pass a recording console)
        """
        self.verbosity = verbosity
        self.console = console or Console(no_color=no_color, highlight=False)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a single long operation runs.

        The spinner is skipped when log output goes to the terminal, since
        the two would overwrite each other.
        """
        if self.verbosity >= 1 or not self.console.is_terminal:
            yield
            return
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_summary(self, summary: SyncSummary) -> None:
        """Display sync summary as a table with an overall status line."""
        table = Table(title="Sync Summary", show_header=False, box=None)
        table.add_column("Result")
        table.add_column("Count", justify="right")

        rows = [
            ("[green]+[/green] Written", summary.written_count),
            ("[blue]↔[/blue] Moved", summary.moved_count),
            ("[red]✗[/red] Deleted", summary.deleted_count),
            ("[dim]─[/dim] Unchanged", summary.unchanged_count),
            ("[cyan]↓[/cyan] Assets downloaded", summary.assets_downloaded),
            ("[cyan]✗[/cyan] Assets removed", summary.assets_removed),
            ("[dim]✗[/dim] Empty folders removed", summary.folders_removed),
            ("[red]⚡[/red] Collisions", len(summary.conflicts)),
            ("[yellow]⊘[/yellow] Failed", summary.failed_count),
        ]
        for label, count in rows:
            if count:
                table.add_row(label, str(count))

        self.console.print()
        self.console.print(table)

        for collision in summary.conflicts:
            self.console.print(
                f"  [red]⚡[/red] {collision.local_path}: kept {collision.winner_id}, "
                f"skipped {', '.join(collision.loser_ids)}"
            )

        changed = summary.written_count + summary.moved_count + summary.deleted_count
        if summary.conflicts:
            self.console.print("\n[red]Sync completed with path collisions[/red]")
        elif summary.failed_count:
            self.console.print("\n[yellow]Sync completed with errors (see log)[/yellow]")
        elif changed == 0:
            self.console.print("\n[green]Already in sync. No changes detected.[/green]")
        else:
            self.console.print("\n[green]Sync completed successfully[/green]")

    def print_dryrun_summary(self, plan: SyncPlan) -> None:
        """Display dry run preview of changes."""
        self.console.print("\n[bold]Dry Run - Changes Preview:[/bold]")

        if plan.deletions:
            self.console.print(f"\n[red]Would delete ({len(plan.deletions)} file(s)):[/red]")
            for deletion in plan.deletions:
                self.console.print(f"  • {deletion.local_path} ({deletion.reason})")

        if plan.moves:
            self.console.print(f"\n[blue]Would move ({len(plan.moves)} file(s)):[/blue]")
            for move in plan.moves:
                self.console.print(f"  • {move.old_path} → {move.new_path}")

        if plan.writes:
            self.console.print(f"\n[green]Would write ({len(plan.writes)} file(s)):[/green]")
            for write in plan.writes:
                self.console.print(f"  • {write.local_path} ({write.reason})")

        if plan.collisions:
            self.console.print(f"\n[red]Path collisions ({len(plan.collisions)}):[/red]")
            for collision in plan.collisions:
                self.console.print(f"  • {collision.local_path}: {', '.join(collision.loser_ids)} skipped")

        if not (plan.deletions or plan.moves or plan.writes or plan.collisions):
            self.console.print("\n[green]Already in sync. No changes to apply.[/green]")

    def print_status(self, config: SyncConfig, state: SyncState) -> None:
        """Display the mirror status report."""
        table = Table(title="Notion Mirror Status", show_header=False)
        table.add_column("Setting", style="bold")
        table.add_column("Value")

        table.add_row("Vault", config.vault_path)
        table.add_row("Last sync", state.last_synced or "never")
        table.add_row("Synced pages", str(len(state.synced_pages)))
        table.add_row("Synced assets", str(len(state.synced_assets)))
        table.add_row("Filtered pages", str(len(config.filtered_ids)))
        interval = config.sync_interval_minutes
        table.add_row("Sync interval", f"{interval} min" if interval else "manual only")
        table.add_row("Auto-delete", "on" if config.auto_delete_missing_pages else "off")

        self.console.print(table)
