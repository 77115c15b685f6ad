"""Inspection commands: registered meta-agents and the delegation graph."""

from pathlib import Path

import typer
from rich.markup import escape

from olimpus.definitions import BUILTIN_META_AGENTS

from .console import console, create_table, print_info, print_table
from .loader import load_cli_config, load_cli_registry

_CONFIG_OPTION_HELP = "Config file (default: ./olimpus.yaml)"


def agents_command(
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help=_CONFIG_OPTION_HELP
    ),
) -> None:
    """List registered meta-agents with their delegates and rule counts."""
    registry = load_cli_registry(load_cli_config(config_path, None), validate=False)

    table = create_table("Meta-agents")
    table.add_column("Name", style="cyan")
    table.add_column("Source", style="dim")
    table.add_column("Rules", justify="right")
    table.add_column("Delegates to", style="green")

    for name, definition in sorted(registry.get_all().items()):
        source = "built-in" if BUILTIN_META_AGENTS.get(name) is definition else "config"
        table.add_row(
            escape(name),
            source,
            str(len(definition.routing_rules)),
            escape(", ".join(definition.delegates_to)),
        )

    print_table(table)


def graph_command(
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help=_CONFIG_OPTION_HELP
    ),
) -> None:
    """Show delegation edges (delegates_to and rule targets)."""
    registry = load_cli_registry(load_cli_config(config_path, None), validate=False)
    graph = registry.delegation_graph()

    edges = graph.edges()
    if not edges:
        console.print("[dim]No delegation edges.[/dim]")
        return

    table = create_table("Delegation graph")
    table.add_column("From", style="cyan")
    table.add_column("To", style="green")
    table.add_column("Count", justify="right")

    for source, target in edges:
        table.add_row(
            escape(source),
            escape(target),
            str(graph.delegation_count(source, target)),
        )

    print_table(table)
    print_info(
        f"{len(edges)} edges, longest tracked chain {graph.max_tracked_depth()}, "
        f"cycle search depth {registry.max_depth}"
    )
