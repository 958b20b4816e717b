"""Tests for WellnessDatabase: connection lifecycle and schema."""

from __future__ import annotations

import pytest

from mindmatters.core.storage.database import SCHEMA_VERSION, DatabaseError, WellnessDatabase

EXPECTED_TABLES = {
    "mood_entries",
    "journal_entries",
    "activity_completions",
    "assessment_results",
    "focus_sessions",
    "schema_version",
}


def _tables(db: WellnessDatabase) -> set[str]:
    rows = db.connection.execute(
        "SELECT name FROM sqlite_master WHERE type='table'"
    ).fetchall()
    return {row[0] for row in rows}


class TestLifecycle:
    def test_connection_before_initialize_raises(self):
        db = WellnessDatabase(":memory:")
        with pytest.raises(DatabaseError, match="not initialized"):
            _ = db.connection

    def test_initialize_is_idempotent(self):
        db = WellnessDatabase(":memory:")
        db.initialize()
        conn = db.connection
        db.initialize()
        assert db.connection is conn
        db.close()

    def test_close_then_access_raises(self):
        db = WellnessDatabase(":memory:")
        db.initialize()
        db.close()
        with pytest.raises(DatabaseError):
            _ = db.connection

    def test_context_manager(self):
        with WellnessDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION


class TestSchema:
    def test_tables_created(self, wellness_db):
        assert EXPECTED_TABLES <= _tables(wellness_db)

    def test_schema_version_recorded(self, wellness_db):
        assert wellness_db.get_schema_version() == SCHEMA_VERSION

    def test_file_database_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "wellness.db"
        db = WellnessDatabase(str(path))
        db.initialize()
        assert path.exists()
        db.close()

    def test_reopen_does_not_duplicate_version(self, tmp_path):
        path = str(tmp_path / "wellness.db")
        with WellnessDatabase(path):
            pass
        with WellnessDatabase(path) as db:
            rows = db.connection.execute("SELECT COUNT(*) FROM schema_version").fetchone()
            assert rows[0] == 1
