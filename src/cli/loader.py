"""Configuration and registry loading shared by the CLI commands."""

import logging
from pathlib import Path

import typer

from olimpus.config import get_analytics_db_path, get_log_level, load_config
from olimpus.errors import ConfigurationError
from olimpus.event_capture import sqlite_event_sink
from olimpus.registry import MetaAgentRegistry, build_registry

from .console import print_error

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level_name: str) -> None:
    """Configure root logging at the configured level (unknown names fall back to INFO)."""
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def load_cli_config(config_path: Path | None, project_dir: Path | None) -> dict:
    """Load configuration, exiting with status 1 on a configuration error."""
    try:
        config = load_config(
            config_path=str(config_path) if config_path else None,
            project_dir=project_dir,
        )
    except ConfigurationError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    configure_logging(get_log_level(config))
    return config


def load_cli_registry(config: dict, validate: bool = True) -> MetaAgentRegistry:
    """
    Build the registry (with analytics capture when enabled).

    validate=False lets inspection commands show a configuration that
    would be refused for routing.
    """
    db_path = get_analytics_db_path(config)
    event_sink = sqlite_event_sink(db_path) if db_path else None
    try:
        return build_registry(config, event_sink=event_sink, validate=validate)
    except ConfigurationError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)
