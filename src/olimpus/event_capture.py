"""
Routing event capture for Olimpus.

Captures routing decisions and unmatched requests to a local SQLite
database for later analysis of which rules actually fire.

Storage: ~/.olimpus/events.db

Capture is a side channel: every failure is logged and reported through
the return value, never raised into routing. Retention and pruning of old
events are left to external tooling.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Default database location (user's home directory)
DEFAULT_EVENTS_DIR = Path.home() / ".olimpus"
DEFAULT_DB_PATH = DEFAULT_EVENTS_DIR / "events.db"

# Database schema
SCHEMA = """
CREATE TABLE IF NOT EXISTS routing_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,      -- routing_decision | unmatched_request
    timestamp TEXT NOT NULL,
    meta_agent TEXT,
    target_agent TEXT,
    matcher_type TEXT,
    matched_content TEXT,
    config_overrides TEXT,         -- JSON object
    user_request TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_routing_events_timestamp
ON routing_events(timestamp);

CREATE INDEX IF NOT EXISTS idx_routing_events_meta_agent
ON routing_events(meta_agent);
"""


def get_events_db_path(db_path: Path | None = None) -> Path:
    """Get the path to the events database.

    Returns:
        Path to events.db, creating parent directories if needed.
    """
    path = db_path or DEFAULT_DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Ensure database schema exists.

    Args:
        conn: SQLite connection
    """
    conn.executescript(SCHEMA)
    conn.commit()


def store_routing_event(event: dict[str, Any], db_path: Path | None = None) -> bool:
    """Store a routing event to the local database.

    Args:
        event: routing_decision or unmatched_request event (see olimpus.routing)
        db_path: Database path (default ~/.olimpus/events.db)

    Returns:
        True if event was stored successfully, False otherwise
    """
    try:
        path = get_events_db_path(db_path)
        conn = sqlite3.connect(path, timeout=5.0)
        try:
            # Ensure schema exists (idempotent)
            ensure_schema(conn)

            overrides = event.get("config_overrides")
            conn.execute(
                """
                INSERT INTO routing_events
                (event_type, timestamp, meta_agent, target_agent, matcher_type,
                 matched_content, config_overrides, user_request)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event["type"],
                    event["timestamp"],
                    event.get("meta_agent"),
                    event.get("target_agent"),
                    event.get("matcher_type"),
                    event.get("matched_content"),
                    json.dumps(overrides) if overrides else None,
                    event.get("user_request"),
                ),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug(f"Routing event captured: {event['type']}")
        return True

    except Exception as e:
        # Non-blocking - log warning but don't fail the routing request
        logger.warning(f"Failed to store routing event: {e}")
        return False


def sqlite_event_sink(db_path: Path | None = None) -> Callable[[dict[str, Any]], bool]:
    """Event sink for MetaAgentRegistry that writes into the events database."""

    def sink(event: dict[str, Any]) -> bool:
        return store_routing_event(event, db_path)

    return sink


def get_event_stats(db_path: Path | None = None) -> dict:
    """Get statistics about captured routing events.

    Returns:
        Dictionary with event statistics:
        - total_count: Total number of events
        - decision_count: routing_decision events
        - unmatched_count: unmatched_request events
        - by_target: decision counts per target agent
        - database_path: Path to the database file
        - database_exists: Whether the database file exists
    """
    path = db_path or DEFAULT_DB_PATH
    empty = {
        "total_count": 0,
        "decision_count": 0,
        "unmatched_count": 0,
        "by_target": {},
        "database_path": str(path),
        "database_exists": path.exists(),
    }

    if not path.exists():
        return empty

    try:
        conn = sqlite3.connect(path, timeout=5.0)
        try:
            counts = dict(
                conn.execute(
                    "SELECT event_type, COUNT(*) FROM routing_events GROUP BY event_type"
                ).fetchall()
            )
            by_target = dict(
                conn.execute(
                    """
                    SELECT target_agent, COUNT(*) FROM routing_events
                    WHERE event_type = 'routing_decision'
                    GROUP BY target_agent ORDER BY COUNT(*) DESC
                    """
                ).fetchall()
            )
        finally:
            conn.close()

        return {
            "total_count": sum(counts.values()),
            "decision_count": counts.get("routing_decision", 0),
            "unmatched_count": counts.get("unmatched_request", 0),
            "by_target": by_target,
            "database_path": str(path),
            "database_exists": True,
        }

    except sqlite3.OperationalError as e:
        logger.warning(f"Database error getting stats: {e}")
        return {**empty, "error": str(e)}
