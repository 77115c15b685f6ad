"""
Semantic configuration validator.

Runs independent checks over the meta-agent definitions of a loaded
configuration and aggregates every finding:

    circular_dependency   delegation chains that route back to their origin
    agent_reference       delegation/rule targets that name no known agent
    regex_flags           regex matcher flags outside the modifier alphabet
    regex_performance     heuristic pattern smells (warnings only)

Schema validation (types, required fields) happens before this layer.
Validation never raises for a semantic problem and never stops at the first
finding, so an operator can fix a configuration in one pass.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

from olimpus.delegation_graph import DEFAULT_MAX_DEPTH, build_delegation_graph
from olimpus.models import MetaAgentDefinition, RegexMatcher, meta_agent_from_dict

logger = logging.getLogger(__name__)

# Agents provided by the host that any meta-agent may delegate to
BUILTIN_AGENT_NAMES = (
    "sisyphus",
    "hephaestus",
    "oracle",
    "librarian",
    "explore",
    "multimodal-looker",
    "metis",
    "momus",
    "atlas",
    "prometheus",
)

# Conventional regex modifier letters; repeats of an allowed letter are fine
ALLOWED_REGEX_FLAGS = frozenset("dgimsuvy")

# More "|" than this counts as excessive branching
MAX_ALTERNATIONS = 8

# Pattern heuristics, checked in order; the first hit is reported
REGEX_PERFORMANCE_HEURISTICS: tuple[tuple[re.Pattern, str], ...] = (
    (
        re.compile(r"\(\?[=!][^)]*[+*?]\)|\(\?<[=!][^)]*[+*?]\)"),
        "Complex lookaheads/lookbehinds with quantifiers can be slow",
    ),
    (
        re.compile(r"(\([^)]*[+*?][^)]*\)[+*?]|([+*?][+*?]))"),
        "Nested quantifiers can cause catastrophic backtracking",
    ),
    (
        re.compile(r"(\w+)\|\1"),
        "Overlapping alternation can cause inefficient backtracking",
    ),
    (
        re.compile(r"\^\.\*|\.\*\$|\.\*$|\.\*\.\*"),
        "Unbounded .* patterns can match excessively and cause performance issues",
    ),
    (
        re.compile(r"\[[^\]]+\][+*?]*\{\d{2,}"),
        "Large repetition quantifiers can cause excessive backtracking",
    ),
    (
        re.compile(r"\\\d"),
        "Backreferences prevent efficient regex compilation and can be slow",
    ),
)

EXCESSIVE_ALTERNATION_REASON = "Many alternations can cause the regex engine to try many paths"


class CheckType(str, Enum):
    """Individually switchable validation checks."""

    CIRCULAR_DEPENDENCY = "circular_dependency"
    AGENT_REFERENCE = "agent_reference"
    REGEX_FLAGS = "regex_flags"
    REGEX_PERFORMANCE = "regex_performance"
    RULE_COVERAGE = "rule_coverage"


# =============================================================================
# Errors and warnings
# =============================================================================


@dataclass(frozen=True)
class CircularDependencyError:
    message: str
    path: tuple[str, ...]
    meta_agents: tuple[str, ...]

    type: ClassVar[str] = "circular_dependency"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "path": list(self.path),
            "meta_agents": list(self.meta_agents),
        }


@dataclass(frozen=True)
class InvalidAgentReferenceError:
    message: str
    path: tuple[str, ...]
    reference: str

    type: ClassVar[str] = "invalid_agent_reference"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "path": list(self.path),
            "reference": self.reference,
        }


@dataclass(frozen=True)
class InvalidRegexFlagsError:
    message: str
    path: tuple[str, ...]
    flags: str

    type: ClassVar[str] = "invalid_regex_flags"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "path": list(self.path),
            "flags": self.flags,
        }


@dataclass(frozen=True)
class RegexPerformanceWarning:
    message: str
    path: tuple[str, ...]
    pattern: str
    reason: str

    type: ClassVar[str] = "regex_performance"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "path": list(self.path),
            "pattern": self.pattern,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class EmptyRoutingRulesWarning:
    message: str
    path: tuple[str, ...]
    meta_agent: str

    type: ClassVar[str] = "empty_routing_rules"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "path": list(self.path),
            "meta_agent": self.meta_agent,
        }


ValidationError = Union[
    CircularDependencyError,
    InvalidAgentReferenceError,
    InvalidRegexFlagsError,
]

ValidationWarning = Union[RegexPerformanceWarning, EmptyRoutingRulesWarning]


def _format_path(path: tuple[str, ...]) -> str:
    return ".".join(path) if path else "root"


@dataclass
class CheckResult:
    """Outcome of one validation check."""

    check_type: CheckType
    passed: bool = False
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Aggregate of every enabled check. Warnings never affect validity."""

    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def merge(self, check: CheckResult) -> None:
        self.errors.extend(check.errors)
        self.warnings.extend(check.warnings)

    def summary(self) -> str:
        """Human-readable one-line summary."""
        error_count = len(self.errors)
        warning_count = len(self.warnings)

        if error_count == 0 and warning_count == 0:
            return "Configuration is valid. No errors or warnings found."

        parts = []
        if error_count:
            parts.append(f"{error_count} error{'' if error_count == 1 else 's'}")
        if warning_count:
            parts.append(f"{warning_count} warning{'' if warning_count == 1 else 's'}")
        return ", ".join(parts) + " found."

    def format_errors(self) -> list[str]:
        return [f"[ERROR] {_format_path(e.path)}: {e.message}" for e in self.errors]

    def format_warnings(self) -> list[str]:
        return [f"[WARNING] {_format_path(w.path)}: {w.message}" for w in self.warnings]

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class ValidationOptions:
    """Per-check switches (settings.validation in olimpus.yaml)."""

    check_circular_dependencies: bool = True
    check_agent_references: bool = True
    check_regex_flags: bool = True
    check_regex_performance: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ValidationOptions":
        data = data or {}
        return cls(
            check_circular_dependencies=bool(data.get("check_circular_dependencies", True)),
            check_agent_references=bool(data.get("check_agent_references", True)),
            check_regex_flags=bool(data.get("check_regex_flags", True)),
            check_regex_performance=bool(data.get("check_regex_performance", True)),
        )


# =============================================================================
# Circular dependencies
# =============================================================================


def check_circular_dependencies(
    meta_agents: Mapping[str, MetaAgentDefinition],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[CircularDependencyError]:
    """
    Find delegations that can route back to their origin within max_depth.

    For every meta-agent N and each distinct delegate or rule target X, ask
    whether X reaches N within max_depth hops.

    Returns:
        One CircularDependencyError per offending (N, X) pair
    """
    errors: list[CircularDependencyError] = []
    if not meta_agents:
        return errors

    graph = build_delegation_graph(meta_agents, max_depth)

    for name, definition in meta_agents.items():
        delegates = set(definition.delegates_to)
        targets = list(dict.fromkeys(
            list(definition.delegates_to)
            + [rule.target_agent for rule in definition.routing_rules]
        ))

        for target in targets:
            found = graph.find_circular_path(target, name, max_depth)
            if found is None:
                continue

            if target in delegates:
                message = (
                    f'Circular dependency detected: "{name}" delegates to "{target}" '
                    f'which can route back to "{name}"'
                )
            else:
                message = (
                    f'Circular dependency detected: "{name}" can route to "{target}" '
                    f'which can route back to "{name}"'
                )
            errors.append(
                CircularDependencyError(
                    message=message,
                    path=tuple([name] + found),
                    meta_agents=(name, target),
                )
            )

    return errors


def check_circular_dependencies_in_config(
    meta_agents: Mapping[str, MetaAgentDefinition],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> CheckResult:
    result = CheckResult(CheckType.CIRCULAR_DEPENDENCY)
    result.errors.extend(check_circular_dependencies(meta_agents, max_depth))
    result.passed = not result.errors
    return result


# =============================================================================
# Agent references
# =============================================================================


def _invalid_reference_message(reference: str) -> str:
    return (
        f'Invalid agent reference: "{reference}" is not a recognized agent. '
        f"Valid agents are: {', '.join(BUILTIN_AGENT_NAMES)}"
    )


def check_agent_references(
    meta_agents: Mapping[str, MetaAgentDefinition],
) -> list[InvalidAgentReferenceError]:
    """
    Flag delegation and rule targets naming neither a built-in agent nor a
    declared meta-agent. One error per offending reference.
    """
    errors: list[InvalidAgentReferenceError] = []
    if not meta_agents:
        return errors

    valid_agents = set(BUILTIN_AGENT_NAMES) | set(meta_agents)

    for agent_name, definition in meta_agents.items():
        for index, delegate in enumerate(definition.delegates_to):
            if delegate not in valid_agents:
                errors.append(
                    InvalidAgentReferenceError(
                        message=_invalid_reference_message(delegate),
                        path=("meta_agents", agent_name, "delegates_to", str(index)),
                        reference=delegate,
                    )
                )

        for index, rule in enumerate(definition.routing_rules):
            if rule.target_agent not in valid_agents:
                errors.append(
                    InvalidAgentReferenceError(
                        message=_invalid_reference_message(rule.target_agent),
                        path=(
                            "meta_agents",
                            agent_name,
                            "routing_rules",
                            str(index),
                            "target_agent",
                        ),
                        reference=rule.target_agent,
                    )
                )

    return errors


def check_agent_references_in_config(
    meta_agents: Mapping[str, MetaAgentDefinition],
) -> CheckResult:
    result = CheckResult(CheckType.AGENT_REFERENCE)
    result.errors.extend(check_agent_references(meta_agents))
    result.passed = not result.errors
    return result


# =============================================================================
# Regex matchers
# =============================================================================


def _regex_rules(meta_agents: Mapping[str, MetaAgentDefinition]):
    """Yield (agent_name, rule_index, matcher) for every regex matcher."""
    for agent_name, definition in meta_agents.items():
        for index, rule in enumerate(definition.routing_rules):
            if isinstance(rule.matcher, RegexMatcher):
                yield agent_name, index, rule.matcher


def check_regex_flags(
    meta_agents: Mapping[str, MetaAgentDefinition],
) -> list[InvalidRegexFlagsError]:
    """One error per regex matcher whose flags contain a disallowed letter."""
    errors: list[InvalidRegexFlagsError] = []

    for agent_name, index, matcher in _regex_rules(meta_agents):
        flags = matcher.flags
        if flags is None:
            continue
        invalid = sorted(set(flags) - ALLOWED_REGEX_FLAGS)
        if invalid:
            errors.append(
                InvalidRegexFlagsError(
                    message=(
                        f'Invalid regex flags "{flags}": unsupported '
                        f"{', '.join(repr(c) for c in invalid)}. "
                        f"Allowed flags are: {''.join(sorted(ALLOWED_REGEX_FLAGS))}"
                    ),
                    path=(
                        "meta_agents",
                        agent_name,
                        "routing_rules",
                        str(index),
                        "matcher",
                        "flags",
                    ),
                    flags=flags,
                )
            )

    return errors


def check_regex_flags_in_config(
    meta_agents: Mapping[str, MetaAgentDefinition],
) -> CheckResult:
    result = CheckResult(CheckType.REGEX_FLAGS)
    result.errors.extend(check_regex_flags(meta_agents))
    result.passed = not result.errors
    return result


def analyze_regex_pattern(pattern: str) -> tuple[bool, str]:
    """
    Run the performance heuristics against a pattern.

    Advisory only: false positives and false negatives are both possible.

    Returns:
        (has_issue, reason) for the first heuristic that fires
    """
    for heuristic, reason in REGEX_PERFORMANCE_HEURISTICS:
        if heuristic.search(pattern):
            return True, reason

    if pattern.count("|") > MAX_ALTERNATIONS:
        return True, EXCESSIVE_ALTERNATION_REASON

    return False, ""


def check_regex_performance(
    meta_agents: Mapping[str, MetaAgentDefinition],
) -> list[RegexPerformanceWarning]:
    """At most one warning per regex matcher pattern."""
    warnings: list[RegexPerformanceWarning] = []

    for agent_name, index, matcher in _regex_rules(meta_agents):
        has_issue, reason = analyze_regex_pattern(matcher.pattern)
        if has_issue:
            warnings.append(
                RegexPerformanceWarning(
                    message=f"Regex pattern may cause performance issues: {reason}",
                    path=(
                        "meta_agents",
                        agent_name,
                        "routing_rules",
                        str(index),
                        "matcher",
                        "pattern",
                    ),
                    pattern=matcher.pattern,
                    reason=reason,
                )
            )

    return warnings


def check_regex_performance_in_config(
    meta_agents: Mapping[str, MetaAgentDefinition],
) -> CheckResult:
    # Warnings never fail the check
    result = CheckResult(CheckType.REGEX_PERFORMANCE, passed=True)
    result.warnings.extend(check_regex_performance(meta_agents))
    return result


def check_rule_coverage(
    meta_agents: Mapping[str, MetaAgentDefinition],
) -> CheckResult:
    """Warn about meta-agents that have no routing rules at all."""
    result = CheckResult(CheckType.RULE_COVERAGE, passed=True)
    for agent_name, definition in meta_agents.items():
        if not definition.routing_rules:
            result.warnings.append(
                EmptyRoutingRulesWarning(
                    message=(
                        f'Meta-agent "{agent_name}" has no routing rules; '
                        f"every request to it will go unmatched"
                    ),
                    path=("meta_agents", agent_name, "routing_rules"),
                    meta_agent=agent_name,
                )
            )
    return result


# =============================================================================
# Entry points
# =============================================================================


def validate_meta_agents(
    meta_agents: Mapping[str, MetaAgentDefinition],
    max_depth: int = DEFAULT_MAX_DEPTH,
    options: ValidationOptions | None = None,
) -> ValidationResult:
    """
    Run every enabled check over parsed meta-agent definitions.

    Args:
        meta_agents: Mapping of meta-agent name to definition
        max_depth: Hop budget for the circular dependency search
        options: Per-check switches (all enabled by default)

    Returns:
        ValidationResult with every error and warning found
    """
    options = options or ValidationOptions()
    result = ValidationResult()

    if options.check_circular_dependencies:
        result.merge(check_circular_dependencies_in_config(meta_agents, max_depth))
    if options.check_agent_references:
        result.merge(check_agent_references_in_config(meta_agents))
    if options.check_regex_flags:
        result.merge(check_regex_flags_in_config(meta_agents))
    if options.check_regex_performance:
        result.merge(check_regex_performance_in_config(meta_agents))
    result.merge(check_rule_coverage(meta_agents))

    logger.debug(f"Validation finished: {result.summary()}")
    return result


def validate_config(
    config: Mapping[str, Any],
    options: ValidationOptions | None = None,
) -> ValidationResult:
    """
    Validate a loaded configuration mapping.

    meta_agents entries may be raw mappings (parsed here) or already-built
    MetaAgentDefinition objects. Depth and check switches come from
    config["settings"] unless options is given.

    Raises:
        ConfigurationError: If a meta-agent mapping cannot be parsed at all
    """
    settings = config.get("settings") or {}
    max_depth = settings.get("max_delegation_depth") or DEFAULT_MAX_DEPTH
    if options is None:
        options = ValidationOptions.from_dict(settings.get("validation"))

    meta_agents = {
        name: definition
        if isinstance(definition, MetaAgentDefinition)
        else meta_agent_from_dict(definition, name)
        for name, definition in (config.get("meta_agents") or {}).items()
    }

    return validate_meta_agents(meta_agents, max_depth, options)
