"""Console output and logging setup."""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.table import Table

from copytool.stats import StatsSnapshot

HANDLER_NAME = "copytool.stderr"


def configure_logging(verbose: bool = False) -> None:
    """Route log records to stderr, one plain line per record.

    Per-entry copy errors are logged, so each lands on stderr as a single
    ``<path>: <reason>`` line with no prefix and no wrapping.

    Args:
        verbose: Also show debug records (retries, skipped entries).
    """
    package_logger = logging.getLogger("copytool")
    for existing in list(package_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            package_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


class TUI:
    """Text output for copytool."""

    def __init__(
        self, console: Console | None = None, err_console: Console | None = None
    ) -> None:
        """Initialize TUI.

        Args:
            console: Console for regular output (stdout if not provided).
            err_console: Console for errors (stderr if not provided).
        """
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def show_summary(self, stats: StatsSnapshot) -> None:
        """Show the counters of a finished run.

        Args:
            stats: Final counter values.
        """
        table = Table(title="Copy Summary")
        table.add_column("Directories", justify="right")
        table.add_column("Files", justify="right")
        table.add_column("Bytes", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Errors", justify="right")

        errors = f"[red]{stats.errors}[/red]" if stats.errors else "0"
        table.add_row(
            str(stats.directories),
            str(stats.files),
            str(stats.bytes),
            str(stats.skipped),
            errors,
        )
        self.console.print(table)

    def show_error(self, message: str) -> None:
        """Show error message.

        Args:
            message: Error message.
        """
        self.err_console.print(f"[red]✗[/red] {message}")
