"""Validate command - replay a match file and show the resulting state."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from volleyscout.cli.utils import handle_errors
from volleyscout.core.models import TeamSide
from volleyscout.storage.match_store import load_match

console = Console()


@handle_errors
def validate(
    match_file: Path = typer.Argument(
        ...,
        help="Path to match JSON file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
):
    """
    Replay every event of a match file from an empty state.

    Exits with status 1 and names the first bad event when the log cannot
    be replayed.
    """
    ledger = load_match(match_file)
    state = ledger.state
    match = ledger.match

    console.print(f"\n[bold green]Valid[/bold green] - {match.name or match.match_id}")
    console.print(f"Events: [cyan]{len(ledger)}[/cyan]")
    console.print(f"Phase: [yellow]{state.phase.value}[/yellow]")

    table = Table(title="State")
    table.add_column("Team", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Rotation", justify="right")
    table.add_column("Server")

    for team in TeamSide:
        rotation = state.rotations.get(team)
        serving = state.set_open and state.serving is team
        table.add_row(
            match.roster(team).name,
            str(state.sets_won(team)),
            str(state.score.for_team(team)) if state.set_open else "-",
            str(rotation.number) if rotation else "-",
            match.player_name(rotation.server) if rotation and serving else "",
        )
    console.print(table)

    if state.winner is not None:
        console.print(f"Winner: [green]{match.roster(state.winner).name}[/green]")
