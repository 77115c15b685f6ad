"""Unit tests for the routing decision logger."""

import json
import logging

from olimpus.models import AlwaysMatcher, ConfigOverrides, MatcherEvaluation
from olimpus.routing_logger import RoutingLogger, RoutingLoggerConfig


def _evaluations():
    return [MatcherEvaluation(matcher_type="always", matcher=AlwaysMatcher(), matched=True)]


class TestRoutingLoggerConfig:
    """Tests for RoutingLoggerConfig.from_dict."""

    def test_defaults(self):
        """Missing keys fall back to defaults."""
        config = RoutingLoggerConfig.from_dict(None)
        assert config == RoutingLoggerConfig()
        assert config.output == "console"

    def test_values_read(self):
        """Given keys are used."""
        config = RoutingLoggerConfig.from_dict(
            {"enabled": False, "output": "file", "log_file": "x.log", "debug_mode": True}
        )
        assert config == RoutingLoggerConfig(False, "file", "x.log", True)


class TestEnabled:
    """Tests for enablement."""

    def test_disabled_output(self):
        """output=disabled turns the logger off even when enabled."""
        assert RoutingLogger(RoutingLoggerConfig(output="disabled")).is_enabled() is False

    def test_enabled_flag(self):
        """enabled=False turns the logger off."""
        assert RoutingLogger(RoutingLoggerConfig(enabled=False)).is_enabled() is False

    def test_default_enabled(self):
        """A default logger is enabled."""
        assert RoutingLogger().is_enabled() is True


class TestBuildEntry:
    """Tests for log entry construction."""

    def test_basic_fields(self):
        """Entries carry target, matcher type, content and timestamp."""
        entry = RoutingLogger().build_entry(
            "oracle", "keyword", "matched keywords: bug", ConfigOverrides(model="m")
        )
        assert entry["target_agent"] == "oracle"
        assert entry["matcher_type"] == "keyword"
        assert entry["matched_content"] == "matched keywords: bug"
        assert entry["config_overrides"] == {"model": "m"}
        assert "timestamp" in entry
        assert "debug_info" not in entry

    def test_debug_info_only_in_debug_mode(self):
        """The evaluation trace is included only in debug mode."""
        plain = RoutingLogger().build_entry("a", "always", "", None, _evaluations())
        debug = RoutingLogger(RoutingLoggerConfig(debug_mode=True)).build_entry(
            "a", "always", "", None, _evaluations()
        )
        assert "debug_info" not in plain
        assert debug["debug_info"]["total_evaluated"] == 1
        assert debug["debug_info"]["all_evaluated"][0]["matcher"] == {"type": "always"}


class TestLogRoutingDecision:
    """Tests for emitting decisions."""

    def test_console_output(self, caplog):
        """Console output goes through the decisions logger as JSON."""
        with caplog.at_level(logging.INFO, logger="olimpus.routing.decisions"):
            RoutingLogger().log_routing_decision("oracle", "keyword", "matched keywords: bug")

        records = [r for r in caplog.records if r.name == "olimpus.routing.decisions"]
        assert len(records) == 1
        assert json.loads(records[0].getMessage())["target_agent"] == "oracle"

    def test_file_output_appends(self, tmp_path):
        """File output appends one JSON line per decision."""
        log_file = tmp_path / "nested" / "routing.log"
        routing_logger = RoutingLogger(
            RoutingLoggerConfig(output="file", log_file=str(log_file))
        )
        routing_logger.log_routing_decision("oracle", "keyword", "x")
        routing_logger.log_routing_decision("sisyphus", "always", "always match")

        lines = log_file.read_text().splitlines()
        assert [json.loads(line)["target_agent"] for line in lines] == ["oracle", "sisyphus"]

    def test_disabled_writes_nothing(self, tmp_path):
        """A disabled logger does not create the file."""
        log_file = tmp_path / "routing.log"
        RoutingLogger(
            RoutingLoggerConfig(enabled=False, output="file", log_file=str(log_file))
        ).log_routing_decision("oracle", "keyword", "x")
        assert not log_file.exists()

    def test_write_failure_is_swallowed(self, tmp_path):
        """An unwritable log path never raises."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        routing_logger = RoutingLogger(
            RoutingLoggerConfig(output="file", log_file=str(blocker / "routing.log"))
        )
        routing_logger.log_routing_decision("oracle", "keyword", "x")
