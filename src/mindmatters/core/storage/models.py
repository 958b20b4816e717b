"""Data models for the wellness persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MOOD_LABELS = ("terrible", "bad", "neutral", "good", "great")


@dataclass
class MoodEntry:
    """A single day's mood check-in. Notes are stored encrypted."""

    id: str
    date: str  # YYYY-MM-DD
    mood_value: str  # one of MOOD_LABELS
    notes: str = ""
    activities: list[str] = field(default_factory=list)
    created_at: str = ""


@dataclass
class JournalEntry:
    """A free-text journal entry. Content is stored encrypted."""

    id: str
    content: str
    mood: str  # one of MOOD_LABELS
    tags: list[str] = field(default_factory=list)
    created_at: str = ""  # ISO 8601
    updated_at: str = ""


@dataclass
class ActivityCompletion:
    """A completed wellness activity (breathing exercise, walk, etc.)."""

    id: str
    activity_id: str
    notes: str = ""
    completed_at: str = ""  # ISO 8601


@dataclass
class StoredAssessment:
    """A scored questionnaire. Raw responses are stored encrypted."""

    id: str
    assessment_type: str  # instrument id or 'combined'
    responses: dict[str, int]
    scores: list[dict[str, Any]]
    risk_level: str  # 'low' | 'medium' | 'high'
    requires_followup: bool = False
    completed_at: str = ""


@dataclass
class FocusSessionRecord:
    """A completed focus-cycle phase."""

    id: str
    session_key: str
    phase: str  # 'work' | 'short_break' | 'long_break'
    duration_seconds: int
    completed_at: str = ""

    @property
    def date(self) -> str:
        return self.completed_at[:10]
