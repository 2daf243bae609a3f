"""Main CLI entry point for VolleyScout."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from volleyscout.cli.commands.list_matches import list_matches as list_command
from volleyscout.cli.commands.report import report as report_command
from volleyscout.cli.commands.validate import validate as validate_command
from volleyscout.cli.utils import configure_logging, handle_errors
from volleyscout.core.config import VolleyScoutConfig, get_config, set_config

app = typer.Typer(
    name="volleyscout",
    help="Volleyball match event log - validation, statistics and reports",
    no_args_is_help=True,
)

console = Console()

# Register commands
app.command(name="report")(report_command)
app.command(name="validate")(validate_command)
app.command(name="list")(list_command)


@app.callback()
@handle_errors
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Load configuration from this YAML file",
        exists=True,
        dir_okay=False,
    ),
):
    """VolleyScout - volleyball match statistics CLI."""
    if config_file is not None:
        set_config(VolleyScoutConfig.from_yaml(config_file))
    configure_logging(verbose, get_config().log_level)
    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")


if __name__ == "__main__":
    app()
