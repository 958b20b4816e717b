"""Wellness repository: CRUD operations for the encrypted wellness store.

The repository mediates between domain records (MoodEntry, JournalEntry, etc.)
and the SQLite database, using FieldEncryptor for free text and responses.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from mindmatters.core.storage.database import WellnessDatabase
from mindmatters.core.storage.encryption import FieldEncryptor
from mindmatters.core.storage.models import (
    MOOD_LABELS,
    ActivityCompletion,
    FocusSessionRecord,
    JournalEntry,
    MoodEntry,
    StoredAssessment,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


def _check_mood(value: str) -> None:
    if value not in MOOD_LABELS:
        raise RepositoryError(f"Invalid mood value: {value!r}. Valid: {list(MOOD_LABELS)}")


class WellnessRepository:
    """CRUD repository for moods, journal entries, activities, assessments, focus sessions.

    Usage::

        db = WellnessDatabase(":memory:")
        db.initialize()
        repo = WellnessRepository(db, FieldEncryptor(key))

        repo.save_mood_entry(MoodEntry(id="", date="2026-02-01", mood_value="good"))
        recent = repo.get_mood_entries(limit=7)
    """

    def __init__(self, database: WellnessDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Mood entries
    # ------------------------------------------------------------------

    def save_mood_entry(self, entry: MoodEntry) -> str:
        """Save the mood for ``entry.date``, replacing any earlier entry that day.

        Returns:
            The entry ID (the existing one when a day is re-logged).

        Raises:
            RepositoryError: If the mood value is not a known label.
        """
        _check_mood(entry.mood_value)
        conn = self._db.connection
        eid = entry.id or self._new_id()

        conn.execute(
            """INSERT INTO mood_entries
               (id, entry_date, mood_value, notes_enc, activities_json, created_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(entry_date) DO UPDATE SET
                   mood_value = excluded.mood_value,
                   notes_enc = excluded.notes_enc,
                   activities_json = excluded.activities_json,
                   created_at = excluded.created_at""",
            (
                eid,
                entry.date,
                entry.mood_value,
                self._enc.encrypt(entry.notes or None),
                json.dumps(entry.activities),
                entry.created_at or self._now_iso(),
            ),
        )
        conn.commit()
        row = conn.execute(
            "SELECT id FROM mood_entries WHERE entry_date = ?", (entry.date,)
        ).fetchone()
        logger.info("Saved mood entry for %s (%s)", entry.date, entry.mood_value)
        return row[0]

    def get_mood_entries(self, *, since: str | None = None, limit: int = 100) -> list[MoodEntry]:
        """Mood entries, newest date first.

        Args:
            since: Optional YYYY-MM-DD lower bound (inclusive).
            limit: Maximum results.
        """
        query = "SELECT * FROM mood_entries"
        params: list[Any] = []
        if since:
            query += " WHERE entry_date >= ?"
            params.append(since)
        query += " ORDER BY entry_date DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_mood(row) for row in rows]

    def get_mood_entry(self, date: str) -> MoodEntry | None:
        row = self._db.connection.execute(
            "SELECT * FROM mood_entries WHERE entry_date = ?", (date,)
        ).fetchone()
        return self._row_to_mood(row) if row is not None else None

    # ------------------------------------------------------------------
    # Journal entries
    # ------------------------------------------------------------------

    def save_journal_entry(self, entry: JournalEntry) -> str:
        """Persist a new journal entry and return its ID."""
        _check_mood(entry.mood)
        conn = self._db.connection
        eid = entry.id or self._new_id()
        created = entry.created_at or self._now_iso()

        conn.execute(
            """INSERT INTO journal_entries
               (id, content_enc, mood, tags_json, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                eid,
                self._enc.encrypt(entry.content),
                entry.mood,
                json.dumps(entry.tags),
                created,
                entry.updated_at or created,
            ),
        )
        conn.commit()
        logger.info("Saved journal entry %s", eid)
        return eid

    def update_journal_entry(
        self,
        entry_id: str,
        *,
        content: str | None = None,
        mood: str | None = None,
        tags: list[str] | None = None,
    ) -> JournalEntry | None:
        """Update fields of an existing entry.

        Returns:
            The updated entry, or None if no entry has that ID.
        """
        existing = self.get_journal_entry(entry_id)
        if existing is None:
            return None
        if mood is not None:
            _check_mood(mood)

        existing.content = content if content is not None else existing.content
        existing.mood = mood if mood is not None else existing.mood
        existing.tags = tags if tags is not None else existing.tags
        existing.updated_at = self._now_iso()

        conn = self._db.connection
        conn.execute(
            """UPDATE journal_entries
               SET content_enc = ?, mood = ?, tags_json = ?, updated_at = ?
               WHERE id = ?""",
            (
                self._enc.encrypt(existing.content),
                existing.mood,
                json.dumps(existing.tags),
                existing.updated_at,
                entry_id,
            ),
        )
        conn.commit()
        logger.info("Updated journal entry %s", entry_id)
        return existing

    def delete_journal_entry(self, entry_id: str) -> bool:
        """Delete a journal entry. Returns True if one was deleted."""
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM journal_entries WHERE id = ?", (entry_id,))
        conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted journal entry %s", entry_id)
        return deleted

    def get_journal_entry(self, entry_id: str) -> JournalEntry | None:
        row = self._db.connection.execute(
            "SELECT * FROM journal_entries WHERE id = ?", (entry_id,)
        ).fetchone()
        return self._row_to_journal(row) if row is not None else None

    def get_journal_entries(
        self,
        *,
        since: str | None = None,
        on_date: str | None = None,
        limit: int = 100,
    ) -> list[JournalEntry]:
        """Journal entries, newest first.

        Args:
            since: Optional ISO 8601 lower bound (inclusive).
            on_date: Optional YYYY-MM-DD day the entry was written.
            limit: Maximum results.
        """
        conditions: list[str] = []
        params: list[Any] = []
        if since:
            conditions.append("created_at >= ?")
            params.append(since)
        if on_date:
            conditions.append("substr(created_at, 1, 10) = ?")
            params.append(on_date)

        query = "SELECT * FROM journal_entries"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_journal(row) for row in rows]

    # ------------------------------------------------------------------
    # Activity completions
    # ------------------------------------------------------------------

    def save_activity_completion(self, completion: ActivityCompletion) -> str:
        conn = self._db.connection
        cid = completion.id or self._new_id()
        conn.execute(
            """INSERT INTO activity_completions (id, activity_id, notes_enc, completed_at)
               VALUES (?, ?, ?, ?)""",
            (
                cid,
                completion.activity_id,
                self._enc.encrypt(completion.notes or None),
                completion.completed_at or self._now_iso(),
            ),
        )
        conn.commit()
        logger.info("Saved activity completion %s (%s)", cid, completion.activity_id)
        return cid

    def get_activity_completions(
        self, *, since: str | None = None, limit: int = 500
    ) -> list[ActivityCompletion]:
        """Activity completions, newest first."""
        query = "SELECT * FROM activity_completions"
        params: list[Any] = []
        if since:
            query += " WHERE completed_at >= ?"
            params.append(since)
        query += " ORDER BY completed_at DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [
            ActivityCompletion(
                id=row["id"],
                activity_id=row["activity_id"],
                notes=self._enc.decrypt(row["notes_enc"] or "") or "",
                completed_at=row["completed_at"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    def save_assessment(self, assessment: StoredAssessment) -> str:
        """Persist a scored assessment with encrypted responses."""
        conn = self._db.connection
        aid = assessment.id or self._new_id()
        conn.execute(
            """INSERT INTO assessment_results
               (id, assessment_type, responses_enc, scores_json, risk_level,
                requires_followup, completed_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                aid,
                assessment.assessment_type,
                self._enc.encrypt(assessment.responses),
                json.dumps(assessment.scores, separators=(",", ":")),
                assessment.risk_level,
                int(assessment.requires_followup),
                assessment.completed_at or self._now_iso(),
            ),
        )
        conn.commit()
        logger.info(
            "Saved assessment %s (type=%s, risk=%s)",
            aid,
            assessment.assessment_type,
            assessment.risk_level,
        )
        return aid

    def get_assessments(
        self, *, assessment_type: str | None = None, limit: int = 50
    ) -> list[StoredAssessment]:
        """Stored assessments, newest first, optionally of one type."""
        query = "SELECT * FROM assessment_results"
        params: list[Any] = []
        if assessment_type:
            query += " WHERE assessment_type = ?"
            params.append(assessment_type)
        query += " ORDER BY completed_at DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [
            StoredAssessment(
                id=row["id"],
                assessment_type=row["assessment_type"],
                responses=self._enc.decrypt(row["responses_enc"]) or {},
                scores=json.loads(row["scores_json"]),
                risk_level=row["risk_level"],
                requires_followup=bool(row["requires_followup"]),
                completed_at=row["completed_at"],
            )
            for row in rows
        ]

    def get_latest_assessment(self) -> StoredAssessment | None:
        results = self.get_assessments(limit=1)
        return results[0] if results else None

    # ------------------------------------------------------------------
    # Focus sessions
    # ------------------------------------------------------------------

    def save_focus_session(self, record: FocusSessionRecord) -> str:
        conn = self._db.connection
        rid = record.id or self._new_id()
        conn.execute(
            """INSERT INTO focus_sessions
               (id, session_key, phase, duration_seconds, completed_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                rid,
                record.session_key,
                record.phase,
                record.duration_seconds,
                record.completed_at or self._now_iso(),
            ),
        )
        conn.commit()
        logger.info("Saved focus session %s (%s, %ds)", rid, record.phase, record.duration_seconds)
        return rid

    def get_focus_sessions(
        self,
        *,
        phase: str | None = None,
        since: str | None = None,
        limit: int = 1000,
    ) -> list[FocusSessionRecord]:
        """Completed focus phases, newest first."""
        conditions: list[str] = []
        params: list[Any] = []
        if phase:
            conditions.append("phase = ?")
            params.append(phase)
        if since:
            conditions.append("completed_at >= ?")
            params.append(since)

        query = "SELECT * FROM focus_sessions"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY completed_at DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [
            FocusSessionRecord(
                id=row["id"],
                session_key=row["session_key"],
                phase=row["phase"],
                duration_seconds=row["duration_seconds"],
                completed_at=row["completed_at"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Counts / deletion
    # ------------------------------------------------------------------

    def count_records(self) -> dict[str, int]:
        """Row counts per record type."""
        conn = self._db.connection
        tables = {
            "mood_entries": "mood_entries",
            "journal_entries": "journal_entries",
            "activity_completions": "activity_completions",
            "assessments": "assessment_results",
            "focus_sessions": "focus_sessions",
        }
        return {
            name: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for name, table in tables.items()
        }

    def delete_all_data(self) -> int:
        """Delete every stored record. Returns the number of rows removed."""
        conn = self._db.connection
        total = sum(self.count_records().values())
        for table in (
            "mood_entries",
            "journal_entries",
            "activity_completions",
            "assessment_results",
            "focus_sessions",
        ):
            conn.execute(f"DELETE FROM {table}")
        conn.commit()
        logger.warning("Deleted ALL wellness data: %d records removed", total)
        return total

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _row_to_mood(self, row: Any) -> MoodEntry:
        return MoodEntry(
            id=row["id"],
            date=row["entry_date"],
            mood_value=row["mood_value"],
            notes=self._enc.decrypt(row["notes_enc"] or "") or "",
            activities=json.loads(row["activities_json"] or "[]"),
            created_at=row["created_at"],
        )

    def _row_to_journal(self, row: Any) -> JournalEntry:
        return JournalEntry(
            id=row["id"],
            content=self._enc.decrypt(row["content_enc"]) or "",
            mood=row["mood"],
            tags=json.loads(row["tags_json"] or "[]"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
