"""Derived wellness analytics: mood averages, trends, day streaks, activity counts.

The pure functions take explicit record lists (newest first) and an explicit
``today``. :class:`WellnessAnalyzer` feeds them from the repository.
"""

from __future__ import annotations

import logging
import statistics
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Sequence

from mindmatters.core.storage.models import (
    ActivityCompletion,
    FocusSessionRecord,
    JournalEntry,
    MoodEntry,
    StoredAssessment,
)
from mindmatters.core.storage.repository import WellnessRepository
from mindmatters.domains.wellness.domain_logic.assessment_models import RiskLevel

logger = logging.getLogger(__name__)

MOOD_VALUES = {
    "terrible": 1,
    "bad": 2,
    "neutral": 3,
    "good": 4,
    "great": 5,
}

# Difference in mean mood score (1-5 scale) that counts as a real change
MOOD_TREND_THRESHOLD = 0.25


def week_start(today: date) -> date:
    """First day of the seven-day window that ends today."""
    return today - timedelta(days=6)


def _to_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


# ---------------------------------------------------------------------------
# Mood
# ---------------------------------------------------------------------------

def mood_average(entries: Sequence[MoodEntry], days: int = 7) -> float:
    """Mean mood score of the newest ``days`` entries; 0.0 when there are none."""
    recent = entries[:days]
    if not recent:
        return 0.0
    return round(statistics.mean(MOOD_VALUES[e.mood_value] for e in recent), 2)


def mood_trend(entries: Sequence[MoodEntry]) -> str:
    """Compare the mean of the newer half of the scores with the older half.

    With an odd count the older half holds the extra entry.
    """
    values = [MOOD_VALUES[e.mood_value] for e in entries]
    if len(values) < 2:
        return "insufficient_data"

    mid = len(values) // 2
    diff = statistics.mean(values[:mid]) - statistics.mean(values[mid:])

    if diff > MOOD_TREND_THRESHOLD:
        return "improving"
    if diff < -MOOD_TREND_THRESHOLD:
        return "declining"
    return "stable"


def mood_distribution(entries: Iterable[MoodEntry]) -> dict[str, int]:
    counts = {label: 0 for label in MOOD_VALUES}
    for entry in entries:
        counts[entry.mood_value] += 1
    return counts


# ---------------------------------------------------------------------------
# Streaks and counts
# ---------------------------------------------------------------------------

def day_streak(dates: Iterable[str | date], today: date) -> int:
    """Consecutive calendar days with activity, counting back from today.

    A day without activity yet does not break the streak: when ``today`` is
    empty, counting starts from yesterday. Any other gap ends the streak.
    """
    active = {_to_date(d) for d in dates}
    cursor = today if today in active else today - timedelta(days=1)
    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _count_since(dates: Iterable[date], start: date) -> int:
    return sum(1 for d in dates if d >= start)


def activity_stats(completions: Sequence[ActivityCompletion], today: date) -> dict[str, Any]:
    dates = [_to_date(c.completed_at) for c in completions]
    return {
        "today_count": dates.count(today),
        "week_count": _count_since(dates, week_start(today)),
        "streak": day_streak(dates, today),
        "total_activities": len(dates),
    }


def journal_stats(entries: Sequence[JournalEntry], today: date) -> dict[str, Any]:
    dates = [_to_date(e.created_at) for e in entries]
    return {
        "total_entries": len(dates),
        "this_week_entries": _count_since(dates, week_start(today)),
        "current_streak": day_streak(dates, today),
    }


def focus_stats(sessions: Sequence[FocusSessionRecord], today: date) -> dict[str, Any]:
    """Statistics over completed work phases (break records are ignored)."""
    work = [s for s in sessions if s.phase == "work"]
    dates = [_to_date(s.completed_at) for s in work]
    return {
        "today_pomodoros": dates.count(today),
        "total_pomodoros": len(work),
        "total_focus_minutes": sum(s.duration_seconds for s in work) // 60,
        "day_streak": day_streak(dates, today),
    }


# ---------------------------------------------------------------------------
# Assessments
# ---------------------------------------------------------------------------

def assessment_trend(assessments: Sequence[StoredAssessment]) -> dict[str, Any] | None:
    """Compare the risk level of the two newest assessments.

    Returns None when fewer than two assessments exist.
    """
    if len(assessments) < 2:
        return None

    latest = RiskLevel(assessments[0].risk_level).rank
    previous = RiskLevel(assessments[1].risk_level).rank
    if latest < previous:
        direction = "improving"
    elif latest > previous:
        direction = "declining"
    else:
        direction = "stable"
    return {
        "direction": direction,
        "latest_risk": assessments[0].risk_level,
        "previous_risk": assessments[1].risk_level,
        "risk_change": latest - previous,
    }


# ---------------------------------------------------------------------------
# Repository-backed analyzer
# ---------------------------------------------------------------------------

def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class WellnessAnalyzer:
    """Computes dashboard summaries from the wellness store.

    Usage::

        analyzer = WellnessAnalyzer(repository)
        analyzer.mood_summary(days=7)
        analyzer.dashboard()
    """

    def __init__(
        self,
        repository: WellnessRepository,
        *,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self._repo = repository
        self._today = today

    def mood_summary(self, *, days: int = 7) -> dict[str, Any]:
        entries = self._repo.get_mood_entries(limit=max(days, 30))
        if not entries:
            return {"data_points": 0, "status": "no_data"}

        today = self._today()
        todays = next((e for e in entries if e.date == today.isoformat()), None)
        week_from = week_start(today).isoformat()
        return {
            "data_points": len(entries),
            "average": mood_average(entries, days=days),
            "trend": mood_trend(entries[:days]),
            "distribution": mood_distribution(entries[:days]),
            "today": todays.mood_value if todays else None,
            "this_week": [
                {"date": e.date, "mood": e.mood_value, "score": MOOD_VALUES[e.mood_value]}
                for e in entries
                if e.date >= week_from
            ][:7],
            "streak": day_streak([e.date for e in entries], today),
        }

    def journal_summary(self) -> dict[str, Any]:
        return journal_stats(self._repo.get_journal_entries(limit=1000), self._today())

    def activity_summary(self) -> dict[str, Any]:
        return activity_stats(self._repo.get_activity_completions(limit=1000), self._today())

    def focus_summary(self) -> dict[str, Any]:
        return focus_stats(self._repo.get_focus_sessions(phase="work"), self._today())

    def assessment_summary(self) -> dict[str, Any]:
        assessments = self._repo.get_assessments(limit=5)
        if not assessments:
            return {"assessments_available": 0, "status": "no_history"}
        latest = assessments[0]
        return {
            "assessments_available": len(assessments),
            "latest": {
                "assessment_type": latest.assessment_type,
                "risk_level": latest.risk_level,
                "requires_followup": latest.requires_followup,
                "completed_at": latest.completed_at,
            },
            "trend": assessment_trend(assessments),
        }

    def dashboard(self) -> dict[str, Any]:
        return {
            "date": self._today().isoformat(),
            "mood": self.mood_summary(),
            "journal": self.journal_summary(),
            "activities": self.activity_summary(),
            "focus": self.focus_summary(),
            "assessments": self.assessment_summary(),
        }
