"""
Meta-agent registry.

Owns the name -> MetaAgentDefinition map for the lifetime of a host
process. Registration publishes by replacement: a new dict is built and
swapped in under a lock, so concurrent resolve() calls only ever see fully
constructed definitions and never a map in the middle of an update.
"""

import logging
import threading
from types import MappingProxyType
from typing import Any, Mapping

from olimpus.config import (
    get_max_delegation_depth,
    get_meta_agents,
    get_routing_logger_config,
    get_validation_options,
)
from olimpus.definitions import BUILTIN_META_AGENTS
from olimpus.delegation_graph import DEFAULT_MAX_DEPTH, DelegationGraph, build_delegation_graph
from olimpus.errors import AgentNotRegisteredError, ConfigurationError
from olimpus.matchers import FileExists, path_exists
from olimpus.models import AgentConfig, MetaAgentDefinition, ResolvedRoute, RoutingContext
from olimpus.routing import (
    EventSink,
    RoutingOutcome,
    create_meta_agent_config,
    emit_routing_event,
    evaluate_routing_rules,
)
from olimpus.routing_logger import RoutingLogger, RoutingLoggerConfig
from olimpus.validator import ValidationOptions, ValidationResult, validate_meta_agents

logger = logging.getLogger(__name__)


class MetaAgentRegistry:
    """
    Registry of meta-agents with routing resolution and delegation checks.

    Attributes:
        max_depth: Hop budget for circular delegation checks
        routing_logger: Logger for routing decisions, None when not configured
        event_sink: Optional analytics sink fed one event per resolution
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        logger_config: RoutingLoggerConfig | None = None,
        event_sink: EventSink | None = None,
        definitions: Mapping[str, MetaAgentDefinition] | None = None,
        file_exists: FileExists = path_exists,
    ):
        self.max_depth = max_depth
        self.routing_logger = RoutingLogger(logger_config) if logger_config else None
        self.event_sink = event_sink
        self._file_exists = file_exists
        self._lock = threading.Lock()
        self._definitions: Mapping[str, MetaAgentDefinition] = MappingProxyType(
            dict(definitions or {})
        )

    def register(self, name: str, definition: MetaAgentDefinition) -> None:
        """Register (or replace) a meta-agent definition."""
        with self._lock:
            updated = dict(self._definitions)
            replaced = name in updated
            updated[name] = definition
            self._definitions = MappingProxyType(updated)
        logger.debug(f"{'Replaced' if replaced else 'Registered'} meta-agent '{name}'")

    def unregister(self, name: str) -> None:
        """Remove a meta-agent definition."""
        with self._lock:
            if name not in self._definitions:
                raise AgentNotRegisteredError(name)
            updated = dict(self._definitions)
            del updated[name]
            self._definitions = MappingProxyType(updated)

    def get(self, name: str) -> MetaAgentDefinition | None:
        return self._definitions.get(name)

    def get_all(self) -> dict[str, MetaAgentDefinition]:
        """Snapshot copy of every registered definition."""
        return dict(self._definitions)

    def names(self) -> list[str]:
        return list(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def _require(self, name: str) -> MetaAgentDefinition:
        definition = self._definitions.get(name)
        if definition is None:
            raise AgentNotRegisteredError(name)
        return definition

    def resolve(self, name: str, context: RoutingContext) -> AgentConfig | None:
        """
        Resolve a meta-agent to its AgentConfig by evaluating routing rules.

        Returns:
            AgentConfig, or None if no route matches

        Raises:
            AgentNotRegisteredError: If name has no definition
        """
        definition = self._require(name)
        return create_meta_agent_config(
            definition,
            context,
            name,
            self.routing_logger,
            self.event_sink,
            self._file_exists,
        )

    def resolve_route(
        self,
        name: str,
        context: RoutingContext,
        capture_evaluations: bool = False,
    ) -> ResolvedRoute | RoutingOutcome | None:
        """Resolve to the raw route (or route plus trace) for diagnostics."""
        definition = self._require(name)
        return evaluate_routing_rules(
            definition.routing_rules,
            context,
            self.routing_logger,
            capture_evaluations=capture_evaluations,
            file_exists=self._file_exists,
        )

    def record_route(
        self, name: str, route: ResolvedRoute | None, prompt: str
    ) -> None:
        """Report a route obtained through resolve_route to the event sink."""
        emit_routing_event(self.event_sink, name, route, prompt)

    def delegation_graph(self) -> DelegationGraph:
        """Build a delegation graph from the current definitions."""
        return build_delegation_graph(self._definitions, self.max_depth)

    def check_circular(
        self, source: str, target: str, max_depth: int | None = None
    ) -> bool:
        """Check whether source can delegate back to target within the depth bound."""
        return self.delegation_graph().check_circular(source, target, max_depth)


def collect_definitions(
    config: Mapping[str, Any], include_builtins: bool = True
) -> dict[str, MetaAgentDefinition]:
    """
    Parsed config meta-agents plus built-ins.

    Built-in meta-agents fill in only the names the configuration does not
    define.
    """
    definitions = dict(get_meta_agents(config))
    if include_builtins:
        for name, definition in BUILTIN_META_AGENTS.items():
            definitions.setdefault(name, definition)
    return definitions


def ensure_valid_definitions(
    definitions: Mapping[str, MetaAgentDefinition],
    max_depth: int = DEFAULT_MAX_DEPTH,
    options: ValidationOptions | None = None,
) -> ValidationResult:
    """
    Validate definitions before they are activated for routing.

    Warnings are logged and never block activation.

    Raises:
        ConfigurationError: Listing every validation error, if any
    """
    result = validate_meta_agents(definitions, max_depth, options)
    for line in result.format_warnings():
        logger.warning(line)
    if not result.valid:
        raise ConfigurationError(
            f"Invalid meta-agent configuration ({result.summary()})\n"
            + "\n".join(result.format_errors())
        )
    return result


def build_registry(
    config: Mapping[str, Any],
    event_sink: EventSink | None = None,
    include_builtins: bool = True,
    validate: bool = True,
) -> MetaAgentRegistry:
    """
    Build a registry from a loaded configuration.

    With validate set (the default) a configuration that fails validation
    is refused, so routing is never activated for it.

    Raises:
        ConfigurationError: If a meta-agent definition cannot be parsed or
            the definitions fail validation
    """
    definitions = collect_definitions(config, include_builtins)
    max_depth = get_max_delegation_depth(config)
    if validate:
        ensure_valid_definitions(definitions, max_depth, get_validation_options(config))

    return MetaAgentRegistry(
        max_depth=max_depth,
        logger_config=get_routing_logger_config(config),
        event_sink=event_sink,
        definitions=definitions,
    )
