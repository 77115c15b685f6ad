"""The olimpus route command implementation."""

from pathlib import Path

import typer
from rich.markup import escape

from olimpus.errors import AgentNotRegisteredError
from olimpus.models import MatcherEvaluation, ResolvedRoute
from olimpus.project_context import build_routing_context
from olimpus.routing import build_agent_config

from .console import (
    console,
    create_table,
    print_error,
    print_info,
    print_panel,
    print_success,
    print_table,
)
from .loader import load_cli_config, load_cli_registry

EXIT_NO_ROUTE = 1
EXIT_UNKNOWN_AGENT = 2


def route_command(
    agent: str = typer.Argument(..., help="Meta-agent to resolve, e.g. olimpus:hefesto"),
    prompt: str = typer.Argument(..., help="User prompt to route"),
    project_dir: Path | None = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="Project directory used for project_context rules",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: <project-dir>/olimpus.yaml)",
    ),
    trace: bool = typer.Option(
        False,
        "--trace",
        "-t",
        help="Show how every routing rule evaluated",
    ),
) -> None:
    """Resolve a meta-agent for a prompt and show the delegation."""
    directory = project_dir or Path.cwd()
    config = load_cli_config(config_path, directory)
    registry = load_cli_registry(config)

    definition = registry.get(agent)
    if definition is None:
        print_error(str(AgentNotRegisteredError(agent)))
        print_info(f"Registered meta-agents: {', '.join(sorted(registry.names()))}")
        raise typer.Exit(EXIT_UNKNOWN_AGENT)

    context = build_routing_context(prompt, directory)
    if trace:
        outcome = registry.resolve_route(agent, context, capture_evaluations=True)
        route = outcome.route
        _print_trace(outcome.evaluations, outcome.route)
    else:
        route = registry.resolve_route(agent, context)
    registry.record_route(agent, route, prompt)

    if route is None:
        print_error(f"No routing rule matched for {agent}")
        raise typer.Exit(EXIT_NO_ROUTE)

    agent_config = build_agent_config(definition, route, agent, prompt)

    print_success(f"{agent} -> {route.target_agent} ({route.matcher_type})")
    console.print(f"  [dim]Matched:[/dim] {escape(route.matched_content)}")
    if agent_config.model:
        console.print(f"  [dim]Model:[/dim] {escape(agent_config.model)}")
    if agent_config.temperature is not None:
        console.print(f"  [dim]Temperature:[/dim] {agent_config.temperature}")
    if agent_config.variant:
        console.print(f"  [dim]Variant:[/dim] {escape(agent_config.variant)}")
    console.print()
    print_panel("Delegation prompt", agent_config.prompt)


def _print_trace(
    evaluations: list[MatcherEvaluation], route: ResolvedRoute | None
) -> None:
    table = create_table("Rule evaluation")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Matcher", style="magenta")
    table.add_column("Result")

    winner_found = False
    for index, evaluation in enumerate(evaluations):
        if evaluation.matched and not winner_found and route is not None:
            result = "[green]selected[/green]"
            winner_found = True
        elif evaluation.matched:
            result = "[dim]matched (shadowed)[/dim]"
        else:
            result = "[red]no match[/red]"
        table.add_row(str(index), evaluation.matcher_type, result)

    print_table(table)
    console.print()
