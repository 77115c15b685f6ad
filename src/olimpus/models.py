"""
Olimpus Models - Data classes for meta-agents, routing rules and matchers.

Matchers form a closed set of variants. Every consumer (evaluation, match
descriptions, validation) dispatches with an isinstance chain over
MATCHER_TYPES, so adding a variant means touching each of those places.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

from olimpus.errors import ConfigurationError


class MatcherType(str, Enum):
    """Discriminator values used in configuration files."""

    KEYWORD = "keyword"
    COMPLEXITY = "complexity"
    REGEX = "regex"
    PROJECT_CONTEXT = "project_context"
    ALWAYS = "always"


class KeywordMode(str, Enum):
    """How a keyword matcher combines its keywords."""

    ANY = "any"  # At least one keyword present
    ALL = "all"  # Every keyword present


class ComplexityThreshold(str, Enum):
    """Named bounds for the prompt complexity heuristic."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _freeze(obj: Any, name: str, value: Any) -> None:
    object.__setattr__(obj, name, tuple(value) if value is not None else None)


@dataclass(frozen=True)
class KeywordMatcher:
    """Case-insensitive substring match on the prompt."""

    keywords: tuple[str, ...]
    mode: KeywordMode = KeywordMode.ANY

    type: ClassVar[MatcherType] = MatcherType.KEYWORD

    def __post_init__(self):
        _freeze(self, "keywords", self.keywords)
        object.__setattr__(self, "mode", KeywordMode(self.mode))

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "keywords": list(self.keywords),
            "mode": self.mode.value,
        }


@dataclass(frozen=True)
class ComplexityMatcher:
    """Heuristic prompt complexity threshold."""

    threshold: ComplexityThreshold

    type: ClassVar[MatcherType] = MatcherType.COMPLEXITY

    def __post_init__(self):
        object.__setattr__(self, "threshold", ComplexityThreshold(self.threshold))

    def to_dict(self) -> dict:
        return {"type": self.type.value, "threshold": self.threshold.value}


@dataclass(frozen=True)
class RegexMatcher:
    """Regular expression searched in the prompt."""

    pattern: str
    flags: str | None = None

    type: ClassVar[MatcherType] = MatcherType.REGEX

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"type": self.type.value, "pattern": self.pattern}
        if self.flags is not None:
            result["flags"] = self.flags
        return result


@dataclass(frozen=True)
class ProjectContextMatcher:
    """Required files and dependencies of the current project."""

    has_files: tuple[str, ...] | None = None
    has_deps: tuple[str, ...] | None = None

    type: ClassVar[MatcherType] = MatcherType.PROJECT_CONTEXT

    def __post_init__(self):
        _freeze(self, "has_files", self.has_files)
        _freeze(self, "has_deps", self.has_deps)

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"type": self.type.value}
        if self.has_files is not None:
            result["has_files"] = list(self.has_files)
        if self.has_deps is not None:
            result["has_deps"] = list(self.has_deps)
        return result


@dataclass(frozen=True)
class AlwaysMatcher:
    """Unconditional match, used as the terminal fallback rule."""

    type: ClassVar[MatcherType] = MatcherType.ALWAYS

    def to_dict(self) -> dict:
        return {"type": self.type.value}


Matcher = Union[
    KeywordMatcher,
    ComplexityMatcher,
    RegexMatcher,
    ProjectContextMatcher,
    AlwaysMatcher,
]

MATCHER_TYPES = (
    KeywordMatcher,
    ComplexityMatcher,
    RegexMatcher,
    ProjectContextMatcher,
    AlwaysMatcher,
)


@dataclass(frozen=True)
class ConfigOverrides:
    """Per-rule overrides applied to the delegated agent."""

    model: str | None = None
    temperature: float | None = None
    prompt: str | None = None
    variant: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary, dropping unset fields."""
        return {
            key: value
            for key, value in (
                ("model", self.model),
                ("temperature", self.temperature),
                ("prompt", self.prompt),
                ("variant", self.variant),
            )
            if value is not None
        }


@dataclass(frozen=True)
class RoutingRule:
    """One conditional rule. Position in the owning list is its priority."""

    matcher: Matcher
    target_agent: str
    config_overrides: ConfigOverrides | None = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {
            "matcher": self.matcher.to_dict(),
            "target_agent": self.target_agent,
        }
        if self.config_overrides is not None:
            result["config_overrides"] = self.config_overrides.to_dict()
        return result


@dataclass(frozen=True)
class MetaAgentDefinition:
    """A named routing identity with its delegation list and ordered rules.

    Definitions are immutable once built; re-registering a name replaces the
    whole definition.
    """

    base_model: str
    delegates_to: tuple[str, ...]
    routing_rules: tuple[RoutingRule, ...]
    prompt_template: str | None = None
    temperature: float | None = None
    description: str | None = None

    def __post_init__(self):
        _freeze(self, "delegates_to", self.delegates_to)
        _freeze(self, "routing_rules", self.routing_rules)

    def to_dict(self) -> dict:
        result: dict[str, Any] = {
            "base_model": self.base_model,
            "delegates_to": list(self.delegates_to),
            "routing_rules": [rule.to_dict() for rule in self.routing_rules],
        }
        if self.prompt_template is not None:
            result["prompt_template"] = self.prompt_template
        if self.temperature is not None:
            result["temperature"] = self.temperature
        if self.description is not None:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class RoutingContext:
    """Per-request input to rule evaluation."""

    prompt: str
    project_dir: str
    project_files: tuple[str, ...] = ()
    project_deps: tuple[str, ...] = ()

    def __post_init__(self):
        _freeze(self, "project_files", self.project_files or ())
        _freeze(self, "project_deps", self.project_deps or ())


@dataclass(frozen=True)
class ResolvedRoute:
    """Outcome of a successful resolution."""

    target_agent: str
    matcher_type: str
    matched_content: str
    config_overrides: ConfigOverrides | None = None

    def to_dict(self) -> dict:
        return {
            "target_agent": self.target_agent,
            "matcher_type": self.matcher_type,
            "matched_content": self.matched_content,
            "config_overrides": self.config_overrides.to_dict()
            if self.config_overrides
            else None,
        }


@dataclass(frozen=True)
class MatcherEvaluation:
    """One entry of a full evaluation trace."""

    matcher_type: str
    matcher: Matcher
    matched: bool

    def to_dict(self) -> dict:
        return {
            "matcher_type": self.matcher_type,
            "matcher": self.matcher.to_dict(),
            "matched": self.matched,
        }


@dataclass
class AgentConfig:
    """Agent configuration handed to the host for the chosen delegation."""

    model: str
    prompt: str
    temperature: float | None = None
    variant: str | None = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"model": self.model, "prompt": self.prompt}
        if self.temperature is not None:
            result["temperature"] = self.temperature
        if self.variant is not None:
            result["variant"] = self.variant
        return result


# =============================================================================
# Parsing from loaded configuration mappings
# =============================================================================


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise ConfigurationError(f"{where}: missing required field '{key}'")
    return data[key]


def _string(value: Any, key: str, where: str) -> Any:
    """Pass through None or a string; anything else is a configuration error."""
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(
            f"{where}: '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _string_list(value: Any, key: str, where: str) -> Any:
    """Pass through None or a list of strings; a bare scalar is rejected."""
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(
            f"{where}: '{key}' must be a list, got {type(value).__name__}"
        )
    for index, item in enumerate(value):
        if not isinstance(item, str):
            raise ConfigurationError(
                f"{where}: '{key}[{index}]' must be a string, got {type(item).__name__}"
            )
    return value


def matcher_from_dict(data: Mapping[str, Any], where: str = "matcher") -> Matcher:
    """
    Build a matcher variant from its configuration mapping.

    Args:
        data: Mapping with a 'type' discriminator and variant fields
        where: Location used in error messages

    Returns:
        The concrete matcher

    Raises:
        ConfigurationError: If the type is unknown or a field is missing
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(data).__name__}")

    raw_type = _require(data, "type", where)
    try:
        matcher_type = MatcherType(raw_type)
    except ValueError:
        valid = ", ".join(t.value for t in MatcherType)
        raise ConfigurationError(
            f"{where}: unknown matcher type '{raw_type}'. Valid types: {valid}"
        )

    try:
        if matcher_type is MatcherType.KEYWORD:
            return KeywordMatcher(
                keywords=_string_list(_require(data, "keywords", where), "keywords", where),
                mode=data.get("mode", KeywordMode.ANY.value),
            )
        if matcher_type is MatcherType.COMPLEXITY:
            return ComplexityMatcher(threshold=_require(data, "threshold", where))
        if matcher_type is MatcherType.REGEX:
            return RegexMatcher(
                pattern=_string(_require(data, "pattern", where), "pattern", where),
                flags=_string(data.get("flags"), "flags", where),
            )
        if matcher_type is MatcherType.PROJECT_CONTEXT:
            return ProjectContextMatcher(
                has_files=_string_list(data.get("has_files"), "has_files", where),
                has_deps=_string_list(data.get("has_deps"), "has_deps", where),
            )
        return AlwaysMatcher()
    except ValueError as e:
        raise ConfigurationError(f"{where}: {e}")


def overrides_from_dict(data: Mapping[str, Any] | None) -> ConfigOverrides | None:
    """Build ConfigOverrides, or None when the mapping is absent."""
    if data is None:
        return None
    return ConfigOverrides(
        model=data.get("model"),
        temperature=data.get("temperature"),
        prompt=data.get("prompt"),
        variant=data.get("variant"),
    )


def rule_from_dict(data: Mapping[str, Any], where: str = "rule") -> RoutingRule:
    """Build a RoutingRule from its configuration mapping."""
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(data).__name__}")
    return RoutingRule(
        matcher=matcher_from_dict(_require(data, "matcher", where), f"{where}.matcher"),
        target_agent=_string(_require(data, "target_agent", where), "target_agent", where),
        config_overrides=overrides_from_dict(data.get("config_overrides")),
    )


def meta_agent_from_dict(
    data: Mapping[str, Any], name: str = "meta_agent"
) -> MetaAgentDefinition:
    """
    Build a MetaAgentDefinition from its configuration mapping.

    Only the fields routing and validation consume are read; anything else
    in the mapping is ignored.

    Raises:
        ConfigurationError: If a required field is missing or malformed
    """
    where = f"meta_agents.{name}"
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(data).__name__}")

    rules = data.get("routing_rules") or []
    return MetaAgentDefinition(
        base_model=data.get("base_model", ""),
        delegates_to=_string_list(
            _require(data, "delegates_to", where), "delegates_to", where
        ),
        routing_rules=[
            rule_from_dict(rule, f"{where}.routing_rules.{index}")
            for index, rule in enumerate(rules)
        ],
        prompt_template=data.get("prompt_template"),
        temperature=data.get("temperature"),
        description=data.get("description"),
    )
