"""
Project context probe.

Builds a RoutingContext for a prompt from what is visible in the project
directory: top-level entries and declared dependencies.

Dependency sources:
    package.json      dependencies, devDependencies
    requirements.txt  one requirement per line
    pyproject.toml    [project].dependencies and optional-dependencies
"""

import json
import logging
import re
import tomllib
from pathlib import Path

from olimpus.models import RoutingContext

logger = logging.getLogger(__name__)

# Leading distribution name of a PEP 508 requirement string
_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _requirement_name(requirement: str) -> str | None:
    match = _REQUIREMENT_NAME.match(requirement)
    return match.group(1) if match else None


def list_project_files(project_dir: Path) -> list[str]:
    """Top-level entry names of the project directory (sorted)."""
    try:
        return sorted(entry.name for entry in project_dir.iterdir())
    except OSError as e:
        logger.warning(f"Cannot list project directory {project_dir}: {e}")
        return []


def read_package_json_deps(path: Path) -> list[str]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    deps: list[str] = []
    for section in ("dependencies", "devDependencies"):
        deps.extend((data.get(section) or {}).keys())
    return deps


def read_requirements_deps(path: Path) -> list[str]:
    deps = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        name = _requirement_name(line)
        if name:
            deps.append(name)
    return deps


def read_pyproject_deps(path: Path) -> list[str]:
    with open(path, "rb") as f:
        data = tomllib.load(f)
    project = data.get("project") or {}
    requirements = list(project.get("dependencies") or [])
    for extra in (project.get("optional-dependencies") or {}).values():
        requirements.extend(extra)
    return [name for name in map(_requirement_name, requirements) if name]


DEPENDENCY_READERS = {
    "package.json": read_package_json_deps,
    "requirements.txt": read_requirements_deps,
    "pyproject.toml": read_pyproject_deps,
}


def collect_project_deps(project_dir: Path) -> list[str]:
    """
    Declared dependency names found in the project's manifests.

    A manifest that cannot be read or parsed is logged and skipped.
    Duplicates across manifests are removed, first occurrence wins.
    """
    deps: list[str] = []
    for filename, reader in DEPENDENCY_READERS.items():
        path = project_dir / filename
        if not path.is_file():
            continue
        try:
            found = reader(path)
        except (OSError, ValueError, AttributeError) as e:
            # json.JSONDecodeError and tomllib.TOMLDecodeError are ValueErrors
            logger.warning(f"Skipping unparsable {path}: {e}")
            continue
        logger.debug(f"{len(found)} dependencies declared in {filename}")
        deps.extend(found)
    return list(dict.fromkeys(deps))


def build_routing_context(prompt: str, project_dir: str | Path) -> RoutingContext:
    """Build a RoutingContext from the prompt and the project directory contents."""
    directory = Path(project_dir)
    return RoutingContext(
        prompt=prompt,
        project_dir=str(directory),
        project_files=list_project_files(directory),
        project_deps=collect_project_deps(directory),
    )
