"""Olimpus CLI entry point."""

import typer
from rich.console import Console

from . import __version__
from .agents import agents_command, graph_command
from .route_command import route_command
from .validate_command import validate_command

app = typer.Typer(
    name="olimpus",
    help="Olimpus - rule-based routing between meta-agents and agents",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"olimpus version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Olimpus - rule-based routing between meta-agents and agents."""
    pass


app.command(name="validate")(validate_command)
app.command(name="route")(route_command)
app.command(name="agents")(agents_command)
app.command(name="graph")(graph_command)


if __name__ == "__main__":
    app()
