"""SQLite database management for the MindMatters wellness store.

One connection per process, opened lazily, with a versioned schema.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# Current schema version
SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
-- One mood per calendar day; re-logging a day replaces it
CREATE TABLE IF NOT EXISTS mood_entries (
    id              TEXT PRIMARY KEY,
    entry_date      TEXT NOT NULL UNIQUE,
    mood_value      TEXT NOT NULL,
    notes_enc       TEXT,
    activities_json TEXT,
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS journal_entries (
    id          TEXT PRIMARY KEY,
    content_enc TEXT NOT NULL,
    mood        TEXT NOT NULL,
    tags_json   TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS activity_completions (
    id           TEXT PRIMARY KEY,
    activity_id  TEXT NOT NULL,
    notes_enc    TEXT,
    completed_at TEXT NOT NULL
);

-- Responses are encrypted; scores and risk stay queryable
CREATE TABLE IF NOT EXISTS assessment_results (
    id                TEXT PRIMARY KEY,
    assessment_type   TEXT NOT NULL,
    responses_enc     TEXT NOT NULL,
    scores_json       TEXT NOT NULL,
    risk_level        TEXT NOT NULL,
    requires_followup INTEGER NOT NULL DEFAULT 0,
    completed_at      TEXT NOT NULL
);

-- One row per completed focus phase
CREATE TABLE IF NOT EXISTS focus_sessions (
    id               TEXT PRIMARY KEY,
    session_key      TEXT NOT NULL,
    phase            TEXT NOT NULL,
    duration_seconds INTEGER NOT NULL,
    completed_at     TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_mood_date          ON mood_entries(entry_date);
CREATE INDEX IF NOT EXISTS idx_journal_created    ON journal_entries(created_at);
CREATE INDEX IF NOT EXISTS idx_activity_completed ON activity_completions(completed_at);
CREATE INDEX IF NOT EXISTS idx_assessment_type    ON assessment_results(assessment_type);
CREATE INDEX IF NOT EXISTS idx_assessment_ts      ON assessment_results(completed_at);
CREATE INDEX IF NOT EXISTS idx_focus_completed    ON focus_sessions(completed_at);
"""


class DatabaseError(Exception):
    """Raised when the wellness store is used before it is opened."""


class WellnessDatabase:
    """Owns the single SQLite connection behind the wellness store.

    ``db_path`` may be a file path (``~`` is expanded and missing parent
    directories are created) or ``":memory:"``, which tests use.

    Usage::

        with WellnessDatabase("~/.mindmatters/wellness.db") as db:
            repo = WellnessRepository(db, encryptor)
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseError(
                f"Wellness database {self._db_path!r} not initialized; call initialize()"
            )
        return self._conn

    def initialize(self) -> None:
        """Open the connection and create missing tables. No-op when already open."""
        if self._conn is not None:
            return

        target = self._db_path
        if target != ":memory:":
            path = Path(target).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)

        # Tools run on the event loop's worker threads.
        conn = sqlite3.connect(target, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        self._conn = conn

        self._ensure_schema()
        logger.info("Opened wellness database %s (schema v%d)", self._db_path, SCHEMA_VERSION)

    def _ensure_schema(self) -> None:
        conn = self.connection
        conn.executescript(_SCHEMA_V1)

        found = self.get_schema_version()
        if found >= SCHEMA_VERSION:
            return
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        conn.commit()
        logger.info("Wellness schema migrated: v%d -> v%d", found, SCHEMA_VERSION)

    def get_schema_version(self) -> int:
        """Highest applied schema version, or 0 for a fresh file."""
        (version,) = self.connection.execute(
            "SELECT MAX(version) FROM schema_version"
        ).fetchone()
        return version or 0

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Closed wellness database %s", self._db_path)

    def __enter__(self) -> WellnessDatabase:
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
