"""Shared pytest fixtures for olimpus-router tests.

Unit tests run against tmp_path project directories; nothing touches the
real home directory.
"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from olimpus.models import (
    AlwaysMatcher,
    KeywordMatcher,
    MetaAgentDefinition,
    RoutingContext,
    RoutingRule,
)


# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user-level config and env overrides out of every test."""
    monkeypatch.setenv("OLIMPUS_USER_CONFIG_DIR", str(tmp_path / "user-config"))
    monkeypatch.delenv("OLIMPUS_CONFIG_PATH", raising=False)
    monkeypatch.delenv("OLIMPUS_MAX_DELEGATION_DEPTH", raising=False)
    monkeypatch.delenv("OLIMPUS_LOG_LEVEL", raising=False)


# =============================================================================
# Project Fixtures
# =============================================================================


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Return an empty project directory."""
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture
def node_project(project_dir: Path) -> Path:
    """Return a project with a package.json declaring vitest."""
    (project_dir / "package.json").write_text(
        json.dumps(
            {
                "name": "web-app",
                "dependencies": {"react": "^18.0.0"},
                "devDependencies": {"vitest": "^1.0.0"},
            }
        )
    )
    return project_dir


@pytest.fixture
def write_config(project_dir: Path) -> Callable[[dict], Path]:
    """Return a helper writing olimpus.yaml into the project directory."""

    def _write(data: dict) -> Path:
        path = project_dir / "olimpus.yaml"
        path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path

    return _write


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def make_context(project_dir: Path) -> Callable[..., RoutingContext]:
    """Return a helper building a RoutingContext rooted at project_dir."""

    def _make(prompt: str, **kwargs) -> RoutingContext:
        return RoutingContext(prompt=prompt, project_dir=str(project_dir), **kwargs)

    return _make


@pytest.fixture
def simple_definition() -> MetaAgentDefinition:
    """Return a definition with one keyword rule and an always fallback."""
    return MetaAgentDefinition(
        base_model="base-model",
        delegates_to=["oracle", "sisyphus"],
        routing_rules=[
            RoutingRule(
                matcher=KeywordMatcher(keywords=["debug", "bug"]),
                target_agent="oracle",
            ),
            RoutingRule(matcher=AlwaysMatcher(), target_agent="sisyphus"),
        ],
    )


@pytest.fixture
def cyclic_config() -> dict:
    """Return config data where A delegates to B and B routes back to A."""
    return {
        "meta_agents": {
            "A": {"base_model": "m", "delegates_to": ["B"], "routing_rules": []},
            "B": {
                "base_model": "m",
                "delegates_to": [],
                "routing_rules": [{"matcher": {"type": "always"}, "target_agent": "A"}],
            },
        }
    }
