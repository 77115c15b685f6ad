"""Olimpus Configuration

Configuration loading with environment variable support and sensible defaults.

Environment Variables:
    OLIMPUS_CONFIG_PATH: Path to config file (replaces the project olimpus.yaml lookup)
    OLIMPUS_USER_CONFIG_DIR: Directory holding the user-level olimpus.yaml
    OLIMPUS_MAX_DELEGATION_DEPTH: Override settings.max_delegation_depth
    OLIMPUS_LOG_LEVEL: Override settings.log_level

Configuration Schema (only the fields routing and validation consume):
    meta_agents:
        <name>:
            base_model: str
            delegates_to: list[str]
            routing_rules: list of {matcher, target_agent, config_overrides}
            prompt_template: str (optional)
            temperature: float (optional)
    settings:
        max_delegation_depth: int - Hop budget for cycle detection (default: 3)
        log_level: str - Logging level (default: "INFO")
        routing_logger: {enabled, output, log_file, debug_mode}
        validation: {check_circular_dependencies, check_agent_references,
                     check_regex_flags, check_regex_performance}
        analytics: {enabled, db_path}
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from olimpus.delegation_graph import DEFAULT_MAX_DEPTH
from olimpus.errors import ConfigurationError
from olimpus.event_capture import DEFAULT_DB_PATH
from olimpus.models import MetaAgentDefinition, meta_agent_from_dict
from olimpus.routing_logger import VALID_OUTPUTS, RoutingLoggerConfig
from olimpus.validator import ValidationOptions

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "olimpus.yaml"

DEFAULT_USER_CONFIG_DIR = Path.home() / ".config" / "olimpus"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "meta_agents": {},
    "settings": {
        "max_delegation_depth": DEFAULT_MAX_DEPTH,
        "log_level": "INFO",
        "routing_logger": {
            "enabled": True,
            "output": "console",
            "log_file": "routing.log",
            "debug_mode": False,
        },
        "validation": {
            "check_circular_dependencies": True,
            "check_agent_references": True,
            "check_regex_flags": True,
            "check_regex_performance": True,
        },
        "analytics": {
            "enabled": False,
            "db_path": None,  # Use default ~/.olimpus/events.db
        },
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Args:
        base: Base dictionary (defaults)
        override: Override dictionary (user config)

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_path(path: Optional[str], base_dir: Path) -> Optional[Path]:
    """
    Resolve a path, making relative paths absolute from base_dir.

    Args:
        path: Path string (absolute or relative) or None
        base_dir: Base directory for relative path resolution

    Returns:
        Resolved absolute Path or None if path was None
    """
    if path is None:
        return None

    path_obj = Path(path).expanduser()
    if path_obj.is_absolute():
        return path_obj
    return (base_dir / path_obj).resolve()


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML (or JSON) config file; raises yaml.YAMLError / OSError."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(f"top level of {path} must be a mapping")
    return data


def _merge_optional_file(config: Dict[str, Any], path: Path) -> Dict[str, Any]:
    """Merge a config file that may be absent or broken (logged, never fatal)."""
    if not path.exists():
        return config
    try:
        config = _deep_merge(config, _read_yaml(path))
        logger.info(f"Loaded configuration from: {path}")
    except yaml.YAMLError as e:
        logger.warning(f"Invalid YAML in {path} (ignoring): {e}")
    except IOError as e:
        logger.warning(f"Cannot read {path} (ignoring): {e}")
    return config


def get_user_config_path() -> Path:
    """Path of the user-level olimpus.yaml."""
    config_dir = os.environ.get("OLIMPUS_USER_CONFIG_DIR")
    base = Path(config_dir) if config_dir else DEFAULT_USER_CONFIG_DIR
    return base / CONFIG_FILENAME


def load_config(
    config_path: Optional[str] = None,
    project_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Load configuration from YAML files with environment variable overrides.

    Configuration Loading Order (later overrides earlier):
    1. Default values (DEFAULT_CONFIG)
    2. User config (~/.config/olimpus/olimpus.yaml), optional
    3. Project config: explicit config_path / OLIMPUS_CONFIG_PATH, or
       <project_dir>/olimpus.yaml when neither is given
    4. Environment variable overrides

    Args:
        config_path: Explicit config file path (overrides OLIMPUS_CONFIG_PATH)
        project_dir: Project directory for default lookup and relative paths

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigurationError: If an explicit config file is invalid or unreadable,
            or an override value is malformed

    Examples:
        # Load with defaults (no config file required)
        config = load_config()

        # Load from specific file
        config = load_config("/path/to/olimpus.yaml")
    """
    if project_dir is None:
        project_dir = Path.cwd()

    config = copy.deepcopy(DEFAULT_CONFIG)
    config = _merge_optional_file(config, get_user_config_path())

    file_path = config_path or os.environ.get("OLIMPUS_CONFIG_PATH")

    if file_path:
        # Explicit config path - must be valid if it exists
        resolved_path = _resolve_path(file_path, project_dir)
        if resolved_path and resolved_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(resolved_path))
                logger.info(f"Loaded configuration from: {resolved_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file: {e}")
            except IOError as e:
                raise ConfigurationError(f"Cannot read config file: {e}")
        else:
            logger.warning(f"Config file not found (using defaults): {file_path}")
    else:
        project_config_path = project_dir / CONFIG_FILENAME
        if project_config_path.exists():
            config = _merge_optional_file(config, project_config_path)
        else:
            logger.debug("No project config file found, using defaults")

    _apply_env_overrides(config)
    _check_settings(config)
    return config


def _apply_env_overrides(config: Dict[str, Any]) -> None:
    settings = config.setdefault("settings", {})

    depth_override = os.environ.get("OLIMPUS_MAX_DELEGATION_DEPTH")
    if depth_override:
        try:
            settings["max_delegation_depth"] = int(depth_override)
        except ValueError:
            raise ConfigurationError(
                f"OLIMPUS_MAX_DELEGATION_DEPTH must be an integer, got '{depth_override}'"
            )
        logger.info(f"Max delegation depth override from env: {depth_override}")

    level_override = os.environ.get("OLIMPUS_LOG_LEVEL")
    if level_override:
        settings["log_level"] = level_override.upper()


def _check_settings(config: Dict[str, Any]) -> None:
    settings = config.get("settings") or {}

    depth = settings.get("max_delegation_depth", DEFAULT_MAX_DEPTH)
    if isinstance(depth, bool) or not isinstance(depth, int) or depth <= 0:
        raise ConfigurationError(
            f"settings.max_delegation_depth must be a positive integer, got {depth!r}"
        )

    output = (settings.get("routing_logger") or {}).get("output")
    if output is not None and output not in VALID_OUTPUTS:
        raise ConfigurationError(
            f"settings.routing_logger.output must be one of {list(VALID_OUTPUTS)}, got '{output}'"
        )

    meta_agents = config.get("meta_agents")
    if meta_agents is not None and not isinstance(meta_agents, dict):
        raise ConfigurationError("meta_agents must be a mapping of name to definition")


def get_max_delegation_depth(config: Dict[str, Any]) -> int:
    """Hop budget for delegation cycle detection."""
    settings = config.get("settings") or {}
    return settings.get("max_delegation_depth") or DEFAULT_MAX_DEPTH


def get_log_level(config: Dict[str, Any]) -> str:
    return (config.get("settings") or {}).get("log_level") or "INFO"


def get_validation_options(config: Dict[str, Any]) -> ValidationOptions:
    """Per-check switches from settings.validation."""
    return ValidationOptions.from_dict((config.get("settings") or {}).get("validation"))


def get_routing_logger_config(config: Dict[str, Any]) -> RoutingLoggerConfig:
    """Routing logger settings from settings.routing_logger."""
    return RoutingLoggerConfig.from_dict((config.get("settings") or {}).get("routing_logger"))


def get_analytics_db_path(config: Dict[str, Any]) -> Optional[Path]:
    """
    Events database path when analytics capture is enabled.

    Returns:
        Configured path, or None when analytics is disabled. An enabled
        section without db_path yields the default location.
    """
    analytics = (config.get("settings") or {}).get("analytics") or {}
    if not analytics.get("enabled"):
        return None
    db_path = analytics.get("db_path")
    return Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH


def get_meta_agents(config: Dict[str, Any]) -> Dict[str, MetaAgentDefinition]:
    """
    Parse the meta_agents section into definitions.

    Raises:
        ConfigurationError: If a definition is missing required fields
    """
    return {
        name: definition
        if isinstance(definition, MetaAgentDefinition)
        else meta_agent_from_dict(definition, name)
        for name, definition in (config.get("meta_agents") or {}).items()
    }
