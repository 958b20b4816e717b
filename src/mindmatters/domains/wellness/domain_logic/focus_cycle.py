"""Focus cycle engine: a work / short break / long break countdown.

The engine never owns a timer. The host delivers ``tick()`` calls on its own
cadence (normally once per second) and reads back immutable state snapshots
and completion events. Persistence and notifications stay with the host.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Phases of the focus cycle."""

    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @classmethod
    def parse(cls, value: Phase | str) -> Phase:
        """Validate a phase coming from outside the engine.

        Raises:
            ValueError: If ``value`` is not one of the known phases.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown phase {value!r}. Valid: {valid}") from None


@dataclass(frozen=True)
class FocusDurations:
    """Phase lengths in seconds and how often a long break comes around."""

    work: int = 25 * 60
    short_break: int = 5 * 60
    long_break: int = 15 * 60
    long_break_interval: int = 4

    def __post_init__(self) -> None:
        for name in ("work", "short_break", "long_break", "long_break_interval"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    def for_phase(self, phase: Phase) -> int:
        if phase is Phase.WORK:
            return self.work
        if phase is Phase.SHORT_BREAK:
            return self.short_break
        return self.long_break


@dataclass(frozen=True)
class FocusCycleState:
    """Serializable snapshot of the engine."""

    phase: Phase
    remaining_seconds: int
    is_running: bool
    completed_work_sessions: int
    current_streak: int
    longest_streak: int
    phase_duration: int

    @property
    def progress_percent(self) -> float:
        """Share of the current phase already elapsed, 0-100."""
        elapsed = self.phase_duration - self.remaining_seconds
        return round(elapsed / self.phase_duration * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["phase"] = self.phase.value
        data["progress_percent"] = self.progress_percent
        data["clock"] = format_clock(self.remaining_seconds)
        return data


@dataclass(frozen=True)
class PhaseCompleted:
    """Emitted when a running phase counts down to zero."""

    phase: Phase
    next_phase: Phase
    completed_work_sessions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "next_phase": self.next_phase.value,
            "completed_work_sessions": self.completed_work_sessions,
        }


@dataclass(frozen=True)
class TickResult:
    state: FocusCycleState
    completion: PhaseCompleted | None = None


CompletionHook = Callable[[PhaseCompleted], None]


class FocusCycleEngine:
    """Deterministic pomodoro state machine driven by external ticks.

    Usage::

        engine = FocusCycleEngine(FocusDurations(), on_complete=play_chime)
        engine.start()
        result = engine.tick()
        if result.completion is not None:
            save(result.completion)
    """

    def __init__(
        self,
        durations: FocusDurations | None = None,
        *,
        on_complete: CompletionHook | None = None,
        completed_work_sessions: int = 0,
        current_streak: int = 0,
        longest_streak: int = 0,
    ) -> None:
        """Create an engine at the start of a work phase, stopped.

        Counters may be restored from a previous session by the host.

        Raises:
            ValueError: If a restored counter is negative.
        """
        for name, value in (
            ("completed_work_sessions", completed_work_sessions),
            ("current_streak", current_streak),
            ("longest_streak", longest_streak),
        ):
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value!r}")

        self._durations = durations or FocusDurations()
        self._on_complete = on_complete
        self._phase = Phase.WORK
        self._remaining = self._durations.work
        self._running = False
        self._completed_work = completed_work_sessions
        self._current_streak = current_streak
        self._longest_streak = max(longest_streak, current_streak)

    @property
    def durations(self) -> FocusDurations:
        return self._durations

    @property
    def state(self) -> FocusCycleState:
        return self.snapshot()

    def snapshot(self) -> FocusCycleState:
        return FocusCycleState(
            phase=self._phase,
            remaining_seconds=self._remaining,
            is_running=self._running,
            completed_work_sessions=self._completed_work,
            current_streak=self._current_streak,
            longest_streak=self._longest_streak,
            phase_duration=self._durations.for_phase(self._phase),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> FocusCycleState:
        self._running = True
        return self.snapshot()

    def pause(self) -> FocusCycleState:
        self._running = False
        return self.snapshot()

    def toggle(self) -> FocusCycleState:
        self._running = not self._running
        return self.snapshot()

    def reset(self) -> FocusCycleState:
        """Reload the full duration of the current phase and stop."""
        self._remaining = self._durations.for_phase(self._phase)
        self._running = False
        return self.snapshot()

    def switch_phase(self, phase: Phase | str) -> FocusCycleState:
        """Jump to ``phase`` with its full duration. Not a completion."""
        self._phase = Phase.parse(phase)
        self._remaining = self._durations.for_phase(self._phase)
        self._running = False
        return self.snapshot()

    def tick(self) -> TickResult:
        """Advance the countdown by one second."""
        if not self._running:
            return TickResult(state=self.snapshot())

        if self._remaining > 0:
            self._remaining -= 1

        if self._remaining > 0:
            return TickResult(state=self.snapshot())

        completion = self._complete_phase()
        if self._on_complete is not None:
            self._on_complete(completion)
        return TickResult(state=self.snapshot(), completion=completion)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _complete_phase(self) -> PhaseCompleted:
        finished = self._phase
        if finished is Phase.WORK:
            self._completed_work += 1
            self._current_streak += 1
            self._longest_streak = max(self._longest_streak, self._current_streak)
            if self._completed_work % self._durations.long_break_interval == 0:
                next_phase = Phase.LONG_BREAK
            else:
                next_phase = Phase.SHORT_BREAK
        else:
            next_phase = Phase.WORK

        self._phase = next_phase
        self._remaining = self._durations.for_phase(next_phase)
        self._running = False
        logger.debug(
            "Focus phase %s completed; next %s (work sessions=%d)",
            finished.value,
            next_phase.value,
            self._completed_work,
        )
        return PhaseCompleted(
            phase=finished,
            next_phase=next_phase,
            completed_work_sessions=self._completed_work,
        )


def format_clock(seconds: int) -> str:
    """Render a second count as ``MM:SS``."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{secs:02d}"
