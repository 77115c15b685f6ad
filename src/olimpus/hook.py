#!/usr/bin/env python3
"""
Hook entry point for Olimpus routing.

The olimpus-route command is called by a host prompt hook: it resolves the
requested meta-agent for the user's prompt and prints the delegation
prompt the host should run.
"""

import json
import sys
from pathlib import Path

from olimpus.config import get_analytics_db_path, load_config
from olimpus.event_capture import sqlite_event_sink
from olimpus.project_context import build_routing_context
from olimpus.registry import build_registry


def _read_request(argv: list[str], stdin_data: str) -> dict:
    """Request fields from args (direct CLI) or stdin JSON (hook)."""
    if len(argv) > 2:
        # Direct CLI usage: olimpus-route AGENT "message"
        return {"agent": argv[1], "prompt": " ".join(argv[2:])}

    if not stdin_data:
        return {}
    try:
        data = json.loads(stdin_data)
    except json.JSONDecodeError:
        raise ValueError("hook input must be a JSON object")
    if not isinstance(data, dict):
        raise ValueError("hook input must be a JSON object")
    if len(argv) == 2:
        data.setdefault("agent", argv[1])
    return data


def route_hook() -> None:
    """
    CLI entry point for hook-based routing.

    Hook sends JSON on stdin:
        {"prompt": "user message", "agent": "olimpus:hefesto", "cwd": "..."}

    Usage:
        # Via hook (JSON on stdin)
        echo '{"prompt": "message", "agent": "olimpus:atenea"}' | olimpus-route

        # Direct CLI usage (args)
        olimpus-route olimpus:atenea "user message here"

    Exit codes:
        0: Success, or nothing to route (no output)
        1: Error during routing, or a configuration that fails validation
    """
    try:
        stdin_data = "" if len(sys.argv) > 2 else sys.stdin.read().strip()
        request = _read_request(sys.argv, stdin_data)

        prompt = request.get("prompt") or ""
        if not prompt:
            # No message, no output - exit cleanly
            sys.exit(0)

        agent = request.get("agent")
        if not agent:
            raise ValueError("no meta-agent given (pass 'agent' in the hook input)")

        project_dir = Path(request.get("cwd") or Path.cwd())
        config = load_config(project_dir=project_dir)

        db_path = get_analytics_db_path(config)
        event_sink = sqlite_event_sink(db_path) if db_path else None
        registry = build_registry(config, event_sink=event_sink)

        agent_config = registry.resolve(agent, build_routing_context(prompt, project_dir))
        if agent_config is not None:
            print(agent_config.prompt)

    except Exception as e:
        # Log error to stderr, don't pollute stdout
        print(f"Olimpus routing error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    route_hook()
