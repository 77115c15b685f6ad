"""Unit tests for the routing resolver."""

from unittest.mock import MagicMock

from olimpus.models import (
    AlwaysMatcher,
    ConfigOverrides,
    KeywordMatcher,
    MetaAgentDefinition,
    ProjectContextMatcher,
    RegexMatcher,
    RoutingRule,
)
from olimpus.routing import (
    RoutingOutcome,
    build_delegation_prompt,
    create_meta_agent_config,
    evaluate_routing_rules,
)
from olimpus.routing_logger import RoutingLogger, RoutingLoggerConfig


def _rules():
    return [
        RoutingRule(matcher=KeywordMatcher(keywords=["debug"]), target_agent="oracle"),
        RoutingRule(matcher=KeywordMatcher(keywords=["bug"]), target_agent="explore"),
        RoutingRule(matcher=AlwaysMatcher(), target_agent="sisyphus"),
    ]


class TestEvaluateRoutingRules:
    """Tests for first-match-wins evaluation."""

    def test_first_match_wins(self, make_context):
        """The earliest satisfied rule determines the route."""
        route = evaluate_routing_rules(_rules(), make_context("debug this bug"))
        assert route.target_agent == "oracle"
        assert route.matcher_type == "keyword"

    def test_later_rule_when_earlier_fails(self, make_context):
        """Evaluation proceeds past failing rules."""
        route = evaluate_routing_rules(_rules(), make_context("a bug"))
        assert route.target_agent == "explore"

    def test_always_fallback(self, make_context):
        """A trailing always rule catches everything else."""
        route = evaluate_routing_rules(_rules(), make_context("write docs"))
        assert route.target_agent == "sisyphus"
        assert route.matched_content == "always match"

    def test_no_rules_returns_none(self, make_context):
        """An empty rule list never matches."""
        assert evaluate_routing_rules([], make_context("anything")) is None

    def test_no_match_returns_none(self, make_context):
        """No satisfied rule yields None."""
        rules = [RoutingRule(matcher=KeywordMatcher(keywords=["x-ray"]), target_agent="oracle")]
        assert evaluate_routing_rules(rules, make_context("hello")) is None

    def test_always_first_shadows_rest(self, make_context):
        """A leading always rule makes later rules unreachable."""
        rules = [RoutingRule(matcher=AlwaysMatcher(), target_agent="sisyphus")] + _rules()
        route = evaluate_routing_rules(rules, make_context("debug"))
        assert route.target_agent == "sisyphus"

    def test_overrides_carried(self, make_context):
        """The winning rule's overrides are attached to the route."""
        overrides = ConfigOverrides(model="fast-model", variant="tdd")
        rules = [RoutingRule(AlwaysMatcher(), "sisyphus", overrides)]
        route = evaluate_routing_rules(rules, make_context("x"))
        assert route.config_overrides == overrides

    def test_invalid_regex_rule_is_skipped(self, make_context):
        """A broken regex rule falls through to later rules."""
        rules = [
            RoutingRule(RegexMatcher(pattern="(broken"), "oracle"),
            RoutingRule(AlwaysMatcher(), "sisyphus"),
        ]
        route = evaluate_routing_rules(rules, make_context("(broken"))
        assert route.target_agent == "sisyphus"

    def test_malformed_matchers_fall_through(self, make_context):
        """Matchers holding non-string values do not abort later rules."""
        rules = [
            RoutingRule(RegexMatcher(pattern=123), "oracle"),
            RoutingRule(KeywordMatcher(keywords=[404]), "explore"),
            RoutingRule(AlwaysMatcher(), "sisyphus"),
        ]
        route = evaluate_routing_rules(rules, make_context("404 123"))
        assert route.target_agent == "sisyphus"

    def test_stops_at_first_match_without_capture(self, make_context):
        """Later matchers are not evaluated once a rule matched."""
        probe = MagicMock(return_value=True)
        rules = [
            RoutingRule(AlwaysMatcher(), "sisyphus"),
            RoutingRule(ProjectContextMatcher(has_files=["package.json"]), "oracle"),
        ]
        route = evaluate_routing_rules(rules, make_context("x"), file_exists=probe)
        assert route.target_agent == "sisyphus"
        probe.assert_not_called()


class TestCaptureEvaluations:
    """Tests for the evaluation trace."""

    def test_trace_covers_every_rule(self, make_context):
        """Capture evaluates all rules but keeps the first match."""
        outcome = evaluate_routing_rules(
            _rules(), make_context("debug this bug"), capture_evaluations=True
        )
        assert isinstance(outcome, RoutingOutcome)
        assert outcome.route.target_agent == "oracle"
        assert [e.matched for e in outcome.evaluations] == [True, True, True]

    def test_trace_with_no_match(self, make_context):
        """Capture returns an outcome with route None when nothing matched."""
        rules = [RoutingRule(KeywordMatcher(keywords=["zzz"]), "oracle")]
        outcome = evaluate_routing_rules(rules, make_context("x"), capture_evaluations=True)
        assert outcome.route is None
        assert len(outcome.evaluations) == 1
        assert outcome.evaluations[0].matched is False

    def test_capture_does_not_change_route(self, make_context):
        """Tracing never changes the chosen target."""
        context = make_context("a bug")
        plain = evaluate_routing_rules(_rules(), context)
        traced = evaluate_routing_rules(_rules(), context, capture_evaluations=True)
        assert traced.route == plain


class TestRoutingLoggerIntegration:
    """Tests for how the resolver reports to the routing logger."""

    def _logger(self, **kwargs):
        routing_logger = RoutingLogger(RoutingLoggerConfig(**kwargs))
        routing_logger.log_routing_decision = MagicMock()
        return routing_logger

    def test_logged_once_per_resolution(self, make_context):
        """The logger is called exactly once with the winner."""
        routing_logger = self._logger()
        evaluate_routing_rules(_rules(), make_context("debug bug"), routing_logger)
        routing_logger.log_routing_decision.assert_called_once()
        args = routing_logger.log_routing_decision.call_args.args
        assert args[0] == "oracle"
        assert args[4] is None

    def test_debug_mode_attaches_trace(self, make_context):
        """Debug mode passes the full evaluation trace."""
        routing_logger = self._logger(debug_mode=True)
        route = evaluate_routing_rules(_rules(), make_context("debug bug"), routing_logger)
        assert route.target_agent == "oracle"
        evaluations = routing_logger.log_routing_decision.call_args.args[4]
        assert len(evaluations) == 3

    def test_not_logged_when_unmatched(self, make_context):
        """No decision is logged when nothing matched."""
        routing_logger = self._logger()
        evaluate_routing_rules([], make_context("x"), routing_logger)
        routing_logger.log_routing_decision.assert_not_called()

    def test_not_logged_when_disabled(self, make_context):
        """A disabled logger is never called."""
        routing_logger = self._logger(enabled=False)
        evaluate_routing_rules(_rules(), make_context("x"), routing_logger)
        routing_logger.log_routing_decision.assert_not_called()

    def test_logger_failure_does_not_fail_routing(self, make_context):
        """An exception from the logger is swallowed."""
        routing_logger = self._logger()
        routing_logger.log_routing_decision.side_effect = RuntimeError("boom")
        route = evaluate_routing_rules(_rules(), make_context("debug"), routing_logger)
        assert route.target_agent == "oracle"


class TestBuildDelegationPrompt:
    """Tests for the delegation prompt text."""

    def test_contains_names_and_prompt(self):
        """Prompt names the meta-agent, target and original request."""
        prompt = build_delegation_prompt("olimpus:hefesto", "sisyphus", "Fix the login bug")
        assert prompt.startswith("You are olimpus:hefesto, a meta-agent coordinator")
        assert 'handled by the "sisyphus" agent' in prompt
        assert "**User Request:**\nFix the login bug" in prompt
        assert '- agent: "sisyphus"' in prompt
        assert prompt.endswith("Delegate this task now using the available task tool.")


class TestCreateMetaAgentConfig:
    """Tests for AgentConfig construction."""

    def test_base_model_without_override(self, simple_definition, make_context):
        """The definition's base model is used when no override is set."""
        config = create_meta_agent_config(simple_definition, make_context("debug"), "meta")
        assert config.model == "base-model"
        assert 'the "oracle" agent' in config.prompt

    def test_override_model_and_variant(self, make_context):
        """Override model and variant win over the definition."""
        definition = MetaAgentDefinition(
            base_model="base-model",
            delegates_to=["sisyphus"],
            routing_rules=[
                RoutingRule(
                    AlwaysMatcher(),
                    "sisyphus",
                    ConfigOverrides(model="override-model", variant="tdd"),
                )
            ],
            temperature=0.7,
        )
        config = create_meta_agent_config(definition, make_context("x"), "meta")
        assert config.model == "override-model"
        assert config.variant == "tdd"
        assert config.temperature == 0.7

    def test_zero_temperature_override(self, make_context):
        """A 0.0 temperature override is honored."""
        definition = MetaAgentDefinition(
            base_model="m",
            delegates_to=["sisyphus"],
            routing_rules=[
                RoutingRule(AlwaysMatcher(), "sisyphus", ConfigOverrides(temperature=0.0))
            ],
            temperature=0.7,
        )
        config = create_meta_agent_config(definition, make_context("x"), "meta")
        assert config.temperature == 0.0

    def test_no_match_returns_none(self, make_context):
        """No matching rule yields None."""
        definition = MetaAgentDefinition(base_model="m", delegates_to=[], routing_rules=[])
        assert create_meta_agent_config(definition, make_context("x"), "meta") is None

    def test_event_sink_receives_decision(self, simple_definition, make_context):
        """A routing_decision event is emitted on success."""
        events = []
        create_meta_agent_config(
            simple_definition, make_context("debug"), "meta", event_sink=events.append
        )
        assert len(events) == 1
        assert events[0]["type"] == "routing_decision"
        assert events[0]["meta_agent"] == "meta"
        assert events[0]["target_agent"] == "oracle"

    def test_event_sink_receives_unmatched(self, make_context):
        """An unmatched_request event is emitted when nothing matched."""
        events = []
        definition = MetaAgentDefinition(base_model="m", delegates_to=[], routing_rules=[])
        create_meta_agent_config(
            definition, make_context("hello"), "meta", event_sink=events.append
        )
        assert events[0]["type"] == "unmatched_request"
        assert events[0]["user_request"] == "hello"

    def test_event_sink_failure_does_not_fail_routing(self, simple_definition, make_context):
        """A failing sink is swallowed."""

        def sink(event):
            raise RuntimeError("sink down")

        config = create_meta_agent_config(
            simple_definition, make_context("debug"), "meta", event_sink=sink
        )
        assert config is not None
