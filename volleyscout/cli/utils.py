"""CLI utilities for VolleyScout."""

import functools
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, TypeVar

import typer
from rich.console import Console

from volleyscout.core.errors import VolleyScoutError

console = Console()

F = TypeVar("F", bound=Callable[..., Any])


class OutputError(VolleyScoutError):
    """Error related to writing report output."""
    pass


def handle_errors(func: F) -> F:
    """Decorator to handle common errors in CLI commands."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except VolleyScoutError as e:
            console.print(f"\n[red]Error:[/red] {e.message}")
            if e.hint:
                console.print(f"[dim]Hint: {e.hint}[/dim]")
            raise typer.Exit(1)
        except PermissionError as e:
            console.print(f"\n[red]Error:[/red] Permission denied: {e.filename}")
            console.print("[dim]Hint: Check file permissions or try a different output path[/dim]")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            raise typer.Exit(130)
        except Exception as e:
            logging.getLogger(__name__).debug("Unhandled CLI error", exc_info=True)
            console.print(f"\n[red]Unexpected error:[/red] {type(e).__name__}: {e}")
            raise typer.Exit(1)

    return wrapper  # type: ignore[return-value]


def validate_output_path(path: Path) -> None:
    """Validate that output path is writable."""
    if not path.parent.exists():
        raise OutputError(
            f"Output directory does not exist: {path.parent}",
            hint="Create the directory first or use a different path"
        )
    if path.is_dir():
        raise OutputError(
            f"Output path is a directory: {path}",
            hint="Provide a file path such as report.json"
        )


def format_duration(seconds: Optional[float]) -> str:
    """Set duration as M:SS, or H:MM:SS for marathon sets.

    Durations come from event timestamps and are rounded to whole seconds.
    Unknown or negative durations (clock reset mid-set) render as a dash.
    """
    if seconds is None or seconds < 0:
        return "-"
    minutes, secs = divmod(round(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def configure_logging(verbose: bool, level: str = "WARNING") -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
    )
