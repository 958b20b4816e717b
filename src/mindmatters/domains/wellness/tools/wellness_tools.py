"""MCP tools for mood check-ins, journaling, wellness activities and dashboards.

All tools here read or write the wellness store, so they are only
registered when storage is enabled.
"""

from __future__ import annotations

import json
import logging
from datetime import date as dt_date
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from mindmatters.core.storage.repository import WellnessRepository
    from mindmatters.domains.wellness.domain_logic.wellness_analytics import WellnessAnalyzer

from mindmatters.core.storage.models import (
    MOOD_LABELS,
    ActivityCompletion,
    JournalEntry,
    MoodEntry,
)

logger = logging.getLogger(__name__)


def _invalid_mood(mood: str) -> str | None:
    if mood in MOOD_LABELS:
        return None
    return json.dumps({
        "status": "error",
        "message": f"mood must be one of: {' | '.join(MOOD_LABELS)}",
    })


def register_wellness_tools(
    mcp: FastMCP,
    repository: WellnessRepository,
    analyzer: WellnessAnalyzer,
) -> None:
    """Register mood, journal, activity and dashboard tools on the MCP server."""

    # --- Mood ---------------------------------------------------------------

    @mcp.tool
    async def log_mood(
        ctx: Context,
        mood: str,
        notes: str = "",
        activities: list[str] | None = None,
        date: str = "",
    ) -> str:
        """Record how you feel today. Logging the same day again replaces it.

        Args:
            mood: One of 'terrible', 'bad', 'neutral', 'good', 'great'.
            notes: Optional free-text notes (stored encrypted).
            activities: Optional list of things you did (e.g. 'study', 'exercise').
            date: Day of the check-in (YYYY-MM-DD). Defaults to today.
        """
        error = _invalid_mood(mood)
        if error:
            return error
        if not date:
            date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        try:
            date = dt_date.fromisoformat(date).isoformat()
        except ValueError:
            return json.dumps({
                "status": "error",
                "message": f"date must be YYYY-MM-DD, got {date!r}",
            })

        eid = repository.save_mood_entry(
            MoodEntry(id="", date=date, mood_value=mood, notes=notes, activities=activities or [])
        )
        return json.dumps({"status": "saved", "entry_id": eid, "date": date, "mood": mood})

    @mcp.tool
    async def mood_summary(ctx: Context, days: int = 7) -> str:
        """Average mood, trend and streak over your most recent check-ins.

        Args:
            days: Number of most recent check-ins to average.
        """
        return json.dumps(analyzer.mood_summary(days=days), indent=2)

    # --- Journal ------------------------------------------------------------

    @mcp.tool
    async def write_journal_entry(
        ctx: Context,
        content: str,
        mood: str = "neutral",
        tags: list[str] | None = None,
    ) -> str:
        """Write a journal entry (stored encrypted).

        Args:
            content: The entry text.
            mood: How you felt while writing.
            tags: Optional tags.
        """
        error = _invalid_mood(mood)
        if error:
            return error
        if not content.strip():
            return json.dumps({"status": "error", "message": "content must not be empty"})

        eid = repository.save_journal_entry(
            JournalEntry(id="", content=content, mood=mood, tags=tags or [])
        )
        return json.dumps({"status": "saved", "entry_id": eid})

    @mcp.tool
    async def update_journal_entry(
        ctx: Context,
        entry_id: str,
        content: str | None = None,
        mood: str | None = None,
        tags: list[str] | None = None,
    ) -> str:
        """Edit an existing journal entry.

        Args:
            entry_id: The entry to edit.
            content: New text, if changing.
            mood: New mood, if changing.
            tags: New tags, if changing.
        """
        if mood is not None:
            error = _invalid_mood(mood)
            if error:
                return error
        updated = repository.update_journal_entry(entry_id, content=content, mood=mood, tags=tags)
        if updated is None:
            return json.dumps({"status": "not_found", "entry_id": entry_id})
        return json.dumps({"status": "updated", "entry_id": entry_id, "updated_at": updated.updated_at})

    @mcp.tool
    async def delete_journal_entry(ctx: Context, entry_id: str) -> str:
        """Permanently delete a journal entry.

        Args:
            entry_id: The entry to delete.
        """
        deleted = repository.delete_journal_entry(entry_id)
        return json.dumps({"status": "deleted" if deleted else "not_found", "entry_id": entry_id})

    @mcp.tool
    async def list_journal_entries(ctx: Context, date: str = "", limit: int = 10) -> str:
        """List journal entries, newest first.

        Args:
            date: Optional day filter (YYYY-MM-DD).
            limit: Maximum number of entries.
        """
        entries = repository.get_journal_entries(on_date=date or None, limit=limit)
        return json.dumps({
            "status": "ok",
            "count": len(entries),
            "entries": [
                {
                    "entry_id": e.id,
                    "content": e.content,
                    "mood": e.mood,
                    "tags": e.tags,
                    "created_at": e.created_at,
                }
                for e in entries
            ],
        }, indent=2)

    @mcp.tool
    async def journal_summary(ctx: Context) -> str:
        """Total entries, entries this week and your current writing streak."""
        return json.dumps(analyzer.journal_summary())

    # --- Activities ---------------------------------------------------------

    @mcp.tool
    async def complete_activity(ctx: Context, activity_id: str, notes: str = "") -> str:
        """Mark a wellness activity (breathing, walk, gratitude list...) as done.

        Args:
            activity_id: Identifier of the activity.
            notes: Optional reflection (stored encrypted).
        """
        if not activity_id.strip():
            return json.dumps({"status": "error", "message": "activity_id must not be empty"})
        cid = repository.save_activity_completion(
            ActivityCompletion(id="", activity_id=activity_id, notes=notes)
        )
        return json.dumps({"status": "saved", "completion_id": cid, "activity_id": activity_id})

    @mcp.tool
    async def activity_summary(ctx: Context) -> str:
        """Activities completed today, this week, in total, and your day streak."""
        return json.dumps(analyzer.activity_summary())

    # --- Focus / dashboard --------------------------------------------------

    @mcp.tool
    async def focus_summary(ctx: Context) -> str:
        """Completed pomodoros today and overall, focus minutes and day streak."""
        return json.dumps(analyzer.focus_summary())

    @mcp.tool
    async def wellness_dashboard(ctx: Context) -> str:
        """Everything at a glance: mood, journal, activities, focus and assessments."""
        return json.dumps(analyzer.dashboard(), indent=2)

    @mcp.tool
    async def delete_all_wellness_data(ctx: Context, confirm: bool = False) -> str:
        """Delete every stored record. Requires confirm=true.

        Args:
            confirm: Must be true to proceed.
        """
        if not confirm:
            return json.dumps({
                "status": "confirmation_required",
                "message": "Call again with confirm=true to delete all stored data.",
            })
        removed = repository.delete_all_data()
        return json.dumps({"status": "deleted", "records_removed": removed})
