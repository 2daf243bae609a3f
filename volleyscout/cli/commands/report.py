"""Report command - set scores and player statistics for a match file."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from volleyscout.cli.utils import format_duration, handle_errors, validate_output_path
from volleyscout.core.config import get_config
from volleyscout.core.models import TeamSide
from volleyscout.reporting.query import ReportFilter
from volleyscout.reporting.report import MatchReport, build_report
from volleyscout.storage.match_store import load_match

console = Console()


def _team_label(report: MatchReport, team: Optional[TeamSide]) -> str:
    if team is None:
        return "-"
    return report.team_names.get(team, team.value)


def print_sets(report: MatchReport) -> None:
    table = Table(title="Sets")
    table.add_column("Set", style="cyan", justify="right")
    table.add_column(report.team_names[TeamSide.A], justify="right")
    table.add_column(report.team_names[TeamSide.B], justify="right")
    table.add_column("Rallies", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Winner", style="green")

    for s in report.sets:
        winner = _team_label(report, s.winner) if s.closed else "[yellow]in play[/yellow]"
        table.add_row(
            str(s.set_number),
            str(s.score.a),
            str(s.score.b),
            str(s.rallies),
            format_duration(s.duration),
            winner,
        )
    console.print(table)


def print_players(report: MatchReport, digits: int) -> None:
    table = Table(title="Players")
    table.add_column("Player", style="cyan")
    table.add_column("Team")
    table.add_column("Pts", style="green", justify="right")
    table.add_column("Err", style="red", justify="right")
    table.add_column("Eff", justify="right")
    table.add_column("Sub In", justify="right")
    table.add_column("Sub Out", justify="right")

    for row in report.players:
        table.add_row(
            row.name,
            _team_label(report, row.team),
            str(row.line.points),
            str(row.line.errors),
            f"{row.line.efficiency:+.{digits}f}",
            str(row.line.substitutions_in),
            str(row.line.substitutions_out),
        )
    console.print(table)


def print_events(report: MatchReport) -> None:
    table = Table(title=f"Events ({len(report.events)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Set", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Team")
    table.add_column("Player")
    table.add_column("Action")
    table.add_column("Phase")
    table.add_column("Rot", justify="right")

    for e in report.events:
        table.add_row(
            str(e.sequence),
            str(e.set_number),
            e.event_type.value,
            _team_label(report, e.team),
            e.player or "",
            e.action.value if e.action else "",
            e.phase or "",
            str(e.rotation) if e.rotation is not None else "",
        )
    console.print(table)


@handle_errors
def report(
    match_file: Path = typer.Argument(
        ...,
        help="Path to match JSON file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    player: Optional[list[str]] = typer.Option(
        None,
        "--player", "-p",
        help="Only events involving this player id (repeatable)",
    ),
    event_type: Optional[list[str]] = typer.Option(
        None,
        "--type", "-t",
        help="Only events of this type: point, error, substitution, side_out, set_start, set_end",
    ),
    set_number: Optional[list[int]] = typer.Option(
        None,
        "--set", "-s",
        help="Only events of this set (repeatable)",
    ),
    phase: Optional[list[str]] = typer.Option(
        None,
        "--phase",
        help="Only events with this phase tag, e.g. break or side_out",
    ),
    rotation: Optional[list[int]] = typer.Option(
        None,
        "--rotation", "-r",
        help="Only events played in this rotation (1-6)",
    ),
    team: Optional[list[str]] = typer.Option(
        None,
        "--team",
        help="Only events attributed to this team (a or b)",
    ),
    show_events: bool = typer.Option(
        True,
        "--events/--no-events",
        help="Include the event listing",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write the report as JSON to this file",
    ),
):
    """
    Show set scores and player statistics for a recorded match.

    Filters intersect: only events matching every given option are counted.

    Examples:
        volleyscout report final.json
        volleyscout report final.json -p a7 --phase break
        volleyscout report final.json -s 1 -s 2 -t point -o report.json
    """
    config = get_config()
    digits = config.report.efficiency_digits

    report_filter = ReportFilter.build(
        players=player or None,
        event_types=event_type or None,
        sets=set_number or None,
        phases=phase or None,
        rotations=rotation or None,
        teams=team or None,
    )

    ledger = load_match(match_file)
    result = build_report(ledger, report_filter)

    title = result.match_name or result.match_id
    console.print(f"\n[bold]VolleyScout[/bold] - {title}")
    console.print(
        f"{result.team_names[TeamSide.A]} [bold]{result.sets_won[TeamSide.A]}[/bold]"
        f" - [bold]{result.sets_won[TeamSide.B]}[/bold] {result.team_names[TeamSide.B]}"
    )
    if result.winner is not None:
        console.print(f"Winner: [green]{_team_label(result, result.winner)}[/green]")
    described = result.report_filter.describe()
    if described:
        parts = ", ".join(f"{k}={','.join(str(v) for v in vals)}" for k, vals in described.items())
        console.print(f"Filter: [yellow]{parts}[/yellow]")
    console.print()

    print_sets(result)
    console.print()

    if result.players:
        print_players(result, digits)
    else:
        console.print("[dim]No player events match the filter[/dim]")

    if show_events and result.events:
        console.print()
        print_events(result)

    if output:
        validate_output_path(output)
        with open(output, "w") as f:
            json.dump(result.to_dict(digits), f, indent=2)
        console.print(f"\nReport saved to: [cyan]{output}[/cyan]")
