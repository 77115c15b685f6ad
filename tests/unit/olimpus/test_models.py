"""Unit tests for Olimpus data models and config parsing."""

import dataclasses

import pytest

from olimpus.errors import ConfigurationError
from olimpus.models import (
    AlwaysMatcher,
    ComplexityMatcher,
    ComplexityThreshold,
    ConfigOverrides,
    KeywordMatcher,
    KeywordMode,
    MetaAgentDefinition,
    ProjectContextMatcher,
    RegexMatcher,
    RoutingContext,
    matcher_from_dict,
    meta_agent_from_dict,
    rule_from_dict,
)


class TestMatcherFromDict:
    """Tests for matcher parsing."""

    def test_keyword(self):
        """Keyword matchers default to ANY mode."""
        matcher = matcher_from_dict({"type": "keyword", "keywords": ["a", "b"]})
        assert matcher == KeywordMatcher(keywords=("a", "b"), mode=KeywordMode.ANY)

    def test_complexity(self):
        """Complexity thresholds parse to the enum."""
        matcher = matcher_from_dict({"type": "complexity", "threshold": "medium"})
        assert matcher.threshold is ComplexityThreshold.MEDIUM

    def test_regex(self):
        """Regex flags are optional."""
        assert matcher_from_dict({"type": "regex", "pattern": "x"}) == RegexMatcher("x")
        assert matcher_from_dict({"type": "regex", "pattern": "x", "flags": "g"}).flags == "g"

    def test_project_context(self):
        """Project context lists are frozen to tuples."""
        matcher = matcher_from_dict(
            {"type": "project_context", "has_files": ["package.json"], "has_deps": ["jest"]}
        )
        assert matcher == ProjectContextMatcher(("package.json",), ("jest",))

    def test_always(self):
        """Always needs no fields."""
        assert matcher_from_dict({"type": "always"}) == AlwaysMatcher()

    def test_unknown_type(self):
        """Unknown discriminators are rejected with the valid list."""
        with pytest.raises(ConfigurationError, match="unknown matcher type 'semantic'"):
            matcher_from_dict({"type": "semantic"})

    def test_missing_field(self):
        """Missing required fields are named."""
        with pytest.raises(ConfigurationError, match="'keywords'"):
            matcher_from_dict({"type": "keyword"})

    def test_bad_enum_value(self):
        """Invalid enum values become ConfigurationError."""
        with pytest.raises(ConfigurationError):
            matcher_from_dict({"type": "complexity", "threshold": "extreme"})

    def test_not_a_mapping(self):
        """Non-mapping matchers are rejected."""
        with pytest.raises(ConfigurationError):
            matcher_from_dict(["keyword"])

    @pytest.mark.parametrize(
        "data, field",
        [
            ({"type": "regex", "pattern": 123}, "pattern"),
            ({"type": "regex", "pattern": "a", "flags": 1}, "flags"),
            ({"type": "keyword", "keywords": [404]}, "keywords"),
            ({"type": "project_context", "has_deps": [1]}, "has_deps"),
        ],
    )
    def test_wrong_value_type(self, data, field):
        """Non-string values are rejected with the field name."""
        with pytest.raises(ConfigurationError, match=f"'{field}"):
            matcher_from_dict(data)

    @pytest.mark.parametrize(
        "data, field",
        [
            ({"type": "keyword", "keywords": "bug"}, "keywords"),
            ({"type": "project_context", "has_files": "package.json"}, "has_files"),
        ],
    )
    def test_scalar_instead_of_list(self, data, field):
        """A bare string is not split into characters."""
        with pytest.raises(ConfigurationError, match=f"'{field}' must be a list"):
            matcher_from_dict(data)


class TestRuleAndDefinition:
    """Tests for rule and meta-agent parsing."""

    def test_rule_with_overrides(self):
        """config_overrides parse into ConfigOverrides."""
        rule = rule_from_dict(
            {
                "matcher": {"type": "always"},
                "target_agent": "sisyphus",
                "config_overrides": {"model": "m", "temperature": 0.2},
            }
        )
        assert rule.config_overrides == ConfigOverrides(model="m", temperature=0.2)

    def test_rule_missing_target(self):
        """A rule without target_agent is rejected."""
        with pytest.raises(ConfigurationError, match="target_agent"):
            rule_from_dict({"matcher": {"type": "always"}})

    def test_definition(self):
        """Definitions keep rule order and ignore unknown keys."""
        definition = meta_agent_from_dict(
            {
                "base_model": "m",
                "delegates_to": ["oracle"],
                "routing_rules": [
                    {"matcher": {"type": "keyword", "keywords": ["x"]}, "target_agent": "oracle"},
                    {"matcher": {"type": "always"}, "target_agent": "sisyphus"},
                ],
                "temperature": 0.3,
                "ui_color": "blue",
            },
            "router",
        )
        assert [r.target_agent for r in definition.routing_rules] == ["oracle", "sisyphus"]
        assert definition.temperature == 0.3

    def test_definition_requires_delegates(self):
        """delegates_to is required."""
        with pytest.raises(ConfigurationError, match="meta_agents.router"):
            meta_agent_from_dict({"base_model": "m"}, "router")

    def test_delegates_to_scalar_rejected(self):
        """A single delegate written as a string is rejected."""
        with pytest.raises(ConfigurationError, match="'delegates_to' must be a list"):
            meta_agent_from_dict({"delegates_to": "oracle"}, "router")

    def test_nested_error_location(self):
        """Errors inside rules cite the rule index."""
        with pytest.raises(ConfigurationError, match="routing_rules.1"):
            meta_agent_from_dict(
                {
                    "delegates_to": [],
                    "routing_rules": [
                        {"matcher": {"type": "always"}, "target_agent": "a"},
                        {"matcher": {"type": "bogus"}, "target_agent": "b"},
                    ],
                },
                "router",
            )


class TestImmutability:
    """Tests for frozen models."""

    def test_definition_is_frozen(self):
        """Definitions cannot be mutated in place."""
        definition = MetaAgentDefinition(base_model="m", delegates_to=["a"], routing_rules=[])
        with pytest.raises(dataclasses.FrozenInstanceError):
            definition.base_model = "other"
        assert isinstance(definition.delegates_to, tuple)

    def test_context_lists_frozen(self):
        """Context lists become tuples."""
        context = RoutingContext(prompt="p", project_dir=".", project_files=["a"])
        assert context.project_files == ("a",)
        assert context.project_deps == ()


class TestToDict:
    """Tests for serialization helpers."""

    def test_overrides_drop_unset(self):
        """Unset override fields are omitted."""
        assert ConfigOverrides(variant="tdd").to_dict() == {"variant": "tdd"}

    def test_definition_round_trip(self):
        """to_dict output parses back to an equal definition."""
        definition = MetaAgentDefinition(
            base_model="m",
            delegates_to=["oracle"],
            routing_rules=[],
            prompt_template="t",
        )
        assert meta_agent_from_dict(definition.to_dict(), "x") == definition

    def test_matcher_to_dict(self):
        """Matchers serialize with their discriminator."""
        assert ComplexityMatcher("low").to_dict() == {"type": "complexity", "threshold": "low"}
        assert KeywordMatcher(["a"], "all").to_dict() == {
            "type": "keyword",
            "keywords": ["a"],
            "mode": "all",
        }
