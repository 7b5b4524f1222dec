"""CLI command using Typer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from copytool.context import AppContext

import typer
from pydantic import ValidationError

from copytool import __version__
from copytool.config import CopySettings
from copytool.console import TUI, configure_logging
from copytool.context import create_context

app = typer.Typer(
    name="copytool",
    help="Copy a directory tree concurrently, one task per entry",
    add_completion=False,
)

tui = TUI()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        tui.console.print(f"copytool v{__version__}")
        raise typer.Exit()


def _load_settings(
    retry_interval: float | None,
    chunk_size: int | None,
    max_tasks: int | None,
    wait: bool,
) -> CopySettings:
    """Merge command-line options over environment settings.

    Raises:
        typer.Exit: If the resulting settings are invalid.
    """
    try:
        return CopySettings.from_env(
            retry_interval=retry_interval,
            chunk_size=chunk_size,
            max_tasks=max_tasks,
            wait=wait,
        )
    except ValidationError as e:
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "settings"
            tui.show_error(f"Invalid {location}: {error['msg']}")
        raise typer.Exit(1) from e


@app.command()
def copy(
    source: Annotated[str, typer.Argument(help="Directory or file to copy")],
    destination: Annotated[str, typer.Argument(help="Path to create the copy at")],
    retry_interval: Annotated[
        float | None,
        typer.Option(
            "--retry-interval",
            help="Seconds to wait when descriptors or threads run out [default: 5]",
        ),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", help="Bytes per read when copying files [default: 4096]"),
    ] = None,
    max_tasks: Annotated[
        int | None,
        typer.Option("--max-tasks", "-j", help="Run on a pool of at most N threads"),
    ] = None,
    wait: Annotated[
        bool,
        typer.Option("--wait/--no-wait", help="Wait for every copy task before returning"),
    ] = True,
    summary: Annotated[
        bool, typer.Option("--summary/--no-summary", help="Print counters after the copy")
    ] = True,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log retries and skips")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    _context=None,
) -> None:
    """Copy SOURCE to DESTINATION.

    Per-entry failures are logged to stderr and do not change the exit
    status. Only failing to start the copy of SOURCE itself is fatal.
    """
    configure_logging(verbose)
    if _context is None:
        settings = _load_settings(retry_interval, chunk_size, max_tasks, wait)
        ctx = create_context(settings)
    else:
        ctx = _context

    _run_copy(ctx, source, destination, summary)


def _run_copy(ctx: AppContext, source: str, destination: str, summary: bool) -> None:
    """Run the engine and report the outcome.

    Raises:
        typer.Exit: If the root pair could not be built.
    """
    stats = ctx.engine.run(source, destination)
    if stats is None:
        tui.show_error("Unable to build source and destination paths")
        raise typer.Exit(1)

    if summary and ctx.settings.wait:
        tui.show_summary(stats)


if __name__ == "__main__":
    app()
