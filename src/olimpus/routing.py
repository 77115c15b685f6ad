"""
Routing Resolver

First-match-wins evaluation of an ordered rule list.

Algorithm:
1. Walk rules in declared order
2. Evaluate each matcher against the context
3. The first satisfied rule determines the route; later rules never change it
4. With a trace requested (explicitly or by a debug-mode logger), keep
   evaluating to the end purely to record every rule's outcome
5. Report the winner to the routing logger exactly once

A rule list with a broad rule (e.g. always) ahead of a narrower one makes
the narrower rule unreachable. That is a configuration smell, not an error,
and is not detected here.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from olimpus.matchers import (
    FileExists,
    describe_match,
    evaluate_matcher,
    matcher_type_name,
    path_exists,
)
from olimpus.models import (
    AgentConfig,
    MatcherEvaluation,
    MetaAgentDefinition,
    ResolvedRoute,
    RoutingContext,
    RoutingRule,
)
from olimpus.routing_logger import RoutingLogger

logger = logging.getLogger(__name__)

EventSink = Callable[[dict[str, Any]], Any]


@dataclass
class RoutingOutcome:
    """Route plus the full evaluation trace, returned when capture is requested."""

    route: ResolvedRoute | None
    evaluations: list[MatcherEvaluation] = field(default_factory=list)


def _safe_call(description: str, func: Callable[..., Any], *args: Any) -> None:
    """Invoke a diagnostics or analytics collaborator without letting it fail routing."""
    try:
        func(*args)
    except Exception as e:
        logger.warning(f"{description} failed (routing continues): {e}")


def evaluate_routing_rules(
    rules: Sequence[RoutingRule],
    context: RoutingContext,
    routing_logger: RoutingLogger | None = None,
    capture_evaluations: bool = False,
    file_exists: FileExists = path_exists,
) -> ResolvedRoute | RoutingOutcome | None:
    """
    Evaluate routing rules in order and return the first matching route.

    Args:
        rules: Ordered rules; position encodes priority
        context: Prompt and project information for this request
        routing_logger: Optional routing logger for the winning decision
        capture_evaluations: Return a RoutingOutcome with the full trace
        file_exists: Filesystem probe for project_context matchers

    Returns:
        RoutingOutcome when capture_evaluations is set, otherwise the
        ResolvedRoute, or None when no rule matched.
    """
    is_debug_mode = routing_logger.is_debug_mode() if routing_logger is not None else False
    should_capture = capture_evaluations or is_debug_mode
    log_enabled = routing_logger is not None and routing_logger.is_enabled()

    evaluations: list[MatcherEvaluation] = []
    first_match: ResolvedRoute | None = None

    for rule in rules:
        matched = evaluate_matcher(rule.matcher, context, file_exists)
        if should_capture:
            evaluations.append(
                MatcherEvaluation(
                    matcher_type=matcher_type_name(rule.matcher),
                    matcher=rule.matcher,
                    matched=matched,
                )
            )

        if matched and first_match is None:
            first_match = ResolvedRoute(
                target_agent=rule.target_agent,
                matcher_type=matcher_type_name(rule.matcher),
                matched_content=describe_match(rule.matcher, context),
                config_overrides=rule.config_overrides,
            )
            if not should_capture:
                break

    if first_match is not None and log_enabled:
        _safe_call(
            "Routing logger",
            routing_logger.log_routing_decision,
            first_match.target_agent,
            first_match.matcher_type,
            first_match.matched_content,
            first_match.config_overrides,
            evaluations if is_debug_mode else None,
        )

    if capture_evaluations:
        return RoutingOutcome(route=first_match, evaluations=evaluations)
    return first_match


def build_delegation_prompt(
    meta_agent_name: str, target_agent: str, original_prompt: str
) -> str:
    """Build the instruction telling a meta-agent to delegate to target_agent."""
    return f"""You are {meta_agent_name}, a meta-agent coordinator for the Olimpus plugin system.

Your role is to analyze the user's request and delegate it to the appropriate specialized agent.

Based on the user's request, you have determined that this task should be handled by the "{target_agent}" agent.

**User Request:**
{original_prompt}

**Your Task:**
1. Understand the user's request above
2. Use the `task` tool to delegate this work to the "{target_agent}" agent
3. Include the full user request in the task delegation
4. Return the result from the {target_agent} agent to the user

The task tool accepts:
- agent: "{target_agent}"
- prompt: The user's request (pass it through as-is)

Delegate this task now using the available task tool."""


def routing_decision_event(meta_agent: str, route: ResolvedRoute) -> dict[str, Any]:
    """Analytics event for a successful resolution."""
    return {
        "type": "routing_decision",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "meta_agent": meta_agent,
        "target_agent": route.target_agent,
        "matcher_type": route.matcher_type,
        "matched_content": route.matched_content,
        "config_overrides": route.config_overrides.to_dict()
        if route.config_overrides
        else None,
    }


def unmatched_request_event(meta_agent: str, prompt: str) -> dict[str, Any]:
    """Analytics event for a request no rule matched."""
    return {
        "type": "unmatched_request",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "meta_agent": meta_agent,
        "user_request": prompt,
    }


def emit_routing_event(
    event_sink: EventSink | None,
    meta_agent_name: str,
    route: ResolvedRoute | None,
    prompt: str,
) -> None:
    """Send a routing_decision (or unmatched_request when route is None) event."""
    if event_sink is None:
        return
    if route is None:
        event = unmatched_request_event(meta_agent_name, prompt)
    else:
        event = routing_decision_event(meta_agent_name, route)
    _safe_call("Analytics sink", event_sink, event)


def create_meta_agent_config(
    definition: MetaAgentDefinition,
    context: RoutingContext,
    meta_agent_name: str,
    routing_logger: RoutingLogger | None = None,
    event_sink: EventSink | None = None,
    file_exists: FileExists = path_exists,
) -> AgentConfig | None:
    """
    Resolve a meta-agent into the AgentConfig the host should run.

    The model and temperature come from the winning rule's overrides when
    set, otherwise from the definition. The prompt is always the delegation
    instruction wrapping the original prompt.

    Returns:
        AgentConfig, or None when no rule matched
    """
    route = evaluate_routing_rules(
        definition.routing_rules, context, routing_logger, file_exists=file_exists
    )

    emit_routing_event(event_sink, meta_agent_name, route, context.prompt)

    if route is None:
        logger.debug(f"No routing rule matched for meta-agent '{meta_agent_name}'")
        return None

    return build_agent_config(definition, route, meta_agent_name, context.prompt)


def build_agent_config(
    definition: MetaAgentDefinition,
    route: ResolvedRoute,
    meta_agent_name: str,
    original_prompt: str,
) -> AgentConfig:
    """Apply the winning rule's overrides on top of the definition."""
    overrides = route.config_overrides
    model = (overrides.model if overrides else None) or definition.base_model
    temperature = definition.temperature
    if overrides is not None and overrides.temperature is not None:
        temperature = overrides.temperature

    return AgentConfig(
        model=model,
        prompt=build_delegation_prompt(meta_agent_name, route.target_agent, original_prompt),
        temperature=temperature,
        variant=overrides.variant if overrides else None,
    )
