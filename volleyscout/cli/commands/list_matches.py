"""List command - show matches in the match store."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from volleyscout.cli.utils import handle_errors
from volleyscout.core.errors import VolleyScoutError
from volleyscout.core.models import EventType, TeamSide
from volleyscout.storage.match_store import MatchStore, read_match_file

console = Console()


@handle_errors
def list_matches(
    directory: Optional[Path] = typer.Option(
        None,
        "--dir", "-d",
        help="Match store directory (default: configured data_dir)",
        file_okay=False,
    ),
):
    """List stored match files without replaying them."""
    store = MatchStore(directory)
    match_ids = store.list_matches()

    if not match_ids:
        console.print(f"[dim]No matches in {store.root}[/dim]")
        return

    table = Table(title=f"Matches in {store.root}")
    table.add_column("Match", style="cyan")
    table.add_column("Name")
    table.add_column("Teams")
    table.add_column("Sets", justify="right")
    table.add_column("Events", justify="right")

    for match_id in match_ids:
        try:
            document = read_match_file(store.path_for(match_id))
        except VolleyScoutError as e:
            table.add_row(match_id, f"[red]{e.message}[/red]", "", "", "")
            continue

        teams = " vs ".join(
            document.rosters[t].name for t in TeamSide if t in document.rosters
        )
        sets = sum(1 for e in document.events if e.event_type is EventType.SET_START)
        table.add_row(
            match_id,
            document.name or "",
            teams,
            str(sets),
            str(len(document.events)),
        )

    console.print(table)
