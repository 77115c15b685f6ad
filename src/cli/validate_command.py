"""The olimpus validate command implementation."""

import json
from pathlib import Path

import typer

from olimpus.config import get_max_delegation_depth, get_validation_options
from olimpus.errors import ConfigurationError
from olimpus.registry import collect_definitions
from olimpus.validator import validate_meta_agents

from .console import console, print_error, print_success, print_warning
from .loader import load_cli_config


def validate_command(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: <project-dir>/olimpus.yaml)",
    ),
    project_dir: Path | None = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="Project directory (default: current directory)",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the validation result as JSON",
    ),
) -> None:
    """Validate meta-agent delegation topology, references and regex rules.

    Exits with status 1 when any error is found. Warnings never fail
    validation.
    """
    config = load_cli_config(config_path, project_dir)

    try:
        definitions = collect_definitions(config)
    except ConfigurationError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    result = validate_meta_agents(
        definitions,
        max_depth=get_max_delegation_depth(config),
        options=get_validation_options(config),
    )

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        for line in result.format_errors():
            print_error(line)
        for line in result.format_warnings():
            print_warning(line)
        if result.errors or result.warnings:
            console.print()

        if result.valid:
            print_success(result.summary())
        else:
            print_error(result.summary())

    if not result.valid:
        raise typer.Exit(1)
