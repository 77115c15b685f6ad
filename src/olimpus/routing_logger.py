"""
Routing decision logger.

Writes one JSON line per routing decision to the console (through the
logging module) or appends it to a file. In debug mode the line also
carries the full per-rule evaluation trace.

Logging is never on the critical path: any failure while emitting is
logged at DEBUG and swallowed so routing proceeds.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Mapping, Sequence

from olimpus.models import ConfigOverrides, MatcherEvaluation

logger = logging.getLogger(__name__)

# Routing decisions go to their own logger so hosts can route them separately
decision_logger = logging.getLogger("olimpus.routing.decisions")

LogOutput = Literal["console", "file", "disabled"]

VALID_OUTPUTS = ("console", "file", "disabled")


@dataclass(frozen=True)
class RoutingLoggerConfig:
    """Settings for RoutingLogger (settings.routing_logger in olimpus.yaml)."""

    enabled: bool = True
    output: LogOutput = "console"
    log_file: str = "routing.log"
    debug_mode: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "RoutingLoggerConfig":
        """Build from a config mapping, filling unset keys with defaults."""
        data = data or {}
        defaults = cls()
        return cls(
            enabled=data.get("enabled", defaults.enabled),
            output=data.get("output") or defaults.output,
            log_file=data.get("log_file") or defaults.log_file,
            debug_mode=data.get("debug_mode", defaults.debug_mode),
        )


class RoutingLogger:
    """Structured logger for routing decisions."""

    def __init__(self, config: RoutingLoggerConfig | None = None):
        self.config = config or RoutingLoggerConfig()
        self._enabled = bool(self.config.enabled) and self.config.output != "disabled"

    def is_enabled(self) -> bool:
        return self._enabled

    def is_debug_mode(self) -> bool:
        return bool(self.config.debug_mode)

    def build_entry(
        self,
        target_agent: str,
        matcher_type: str,
        matched_content: str,
        config_overrides: ConfigOverrides | None = None,
        all_evaluations: Sequence[MatcherEvaluation] | None = None,
    ) -> dict[str, Any]:
        """Build the JSON-serializable log entry for one decision."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "target_agent": target_agent,
            "matcher_type": matcher_type,
            "matched_content": matched_content,
        }
        if config_overrides is not None:
            entry["config_overrides"] = config_overrides.to_dict()

        if self.is_debug_mode() and all_evaluations is not None:
            entry["debug_info"] = {
                "all_evaluated": [e.to_dict() for e in all_evaluations],
                "total_evaluated": len(all_evaluations),
            }
        return entry

    def log_routing_decision(
        self,
        target_agent: str,
        matcher_type: str,
        matched_content: str,
        config_overrides: ConfigOverrides | None = None,
        all_evaluations: Sequence[MatcherEvaluation] | None = None,
    ) -> None:
        """
        Log a routing decision.

        Args:
            target_agent: Agent the request was routed to
            matcher_type: Discriminator of the winning matcher
            matched_content: Human-readable match description
            config_overrides: Overrides attached to the winning rule
            all_evaluations: Full trace; only written in debug mode
        """
        if not self._enabled:
            return

        try:
            entry = self.build_entry(
                target_agent,
                matcher_type,
                matched_content,
                config_overrides,
                all_evaluations,
            )
            line = json.dumps(entry)

            if self.config.output == "console":
                decision_logger.info(line)
            elif self.config.output == "file":
                self._write_to_file(line)
        except (OSError, TypeError, ValueError) as e:
            # Non-blocking - routing must not fail because logging did
            logger.debug(f"Failed to log routing decision: {e}")

    def _write_to_file(self, line: str) -> None:
        log_path = Path(self.config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
