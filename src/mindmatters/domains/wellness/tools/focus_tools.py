"""MCP tools for the focus (pomodoro) timer.

The server hosts one FocusCycleEngine per ``session_id``. The client owns the
clock: it calls ``focus_tick`` once per elapsed second (``seconds`` lets it
batch several). Completed phases are recorded when storage is enabled.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from mindmatters.core.storage.repository import WellnessRepository

from mindmatters.core.storage.models import FocusSessionRecord
from mindmatters.domains.wellness.domain_logic.focus_cycle import (
    FocusCycleEngine,
    FocusDurations,
    Phase,
    PhaseCompleted,
    TickResult,
)

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"

# Upper bound for one batched focus_tick call (one full long work phase)
MAX_TICKS_PER_CALL = 3600

# Live timers kept per process; the least recently used one is dropped first
MAX_SESSIONS = 64


class FocusSessions:
    """Per-session engines owned by the host process.

    At most ``max_sessions`` engines are kept; creating one more evicts the
    session used least recently.
    """

    def __init__(
        self,
        durations: FocusDurations,
        repository: WellnessRepository | None = None,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._durations = durations
        self._repo = repository
        self._max_sessions = max_sessions
        self._engines: dict[str, FocusCycleEngine] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._engines

    def get(self, session_id: str) -> FocusCycleEngine:
        engine = self._engines.pop(session_id, None)
        if engine is not None:
            self._engines[session_id] = engine
        else:
            while len(self._engines) >= self._max_sessions:
                evicted = next(iter(self._engines))
                del self._engines[evicted]
                logger.warning("Evicted least recently used focus session %r", evicted)
            engine = FocusCycleEngine(
                self._durations,
                on_complete=lambda event: self._record(session_id, event),
            )
            self._engines[session_id] = engine
            logger.info("Created focus session %r", session_id)
        return engine

    def end(self, session_id: str) -> bool:
        """Discard a session's timer. Returns False if it did not exist."""
        if self._engines.pop(session_id, None) is None:
            return False
        logger.info("Ended focus session %r", session_id)
        return True

    def _record(self, session_id: str, event: PhaseCompleted) -> None:
        logger.info(
            "Focus session %r completed %s (work sessions=%d)",
            session_id,
            event.phase.value,
            event.completed_work_sessions,
        )
        if self._repo is None:
            return
        self._repo.save_focus_session(
            FocusSessionRecord(
                id="",
                session_key=session_id,
                phase=event.phase.value,
                duration_seconds=self._durations.for_phase(event.phase),
                completed_at=datetime.now(timezone.utc).isoformat(),
            )
        )


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def register_focus_tools(
    mcp: FastMCP,
    durations: FocusDurations,
    repository: WellnessRepository | None = None,
) -> FocusSessions:
    """Register focus timer tools on the MCP server."""
    sessions = FocusSessions(durations, repository)

    @mcp.tool
    async def focus_status(ctx: Context, session_id: str = DEFAULT_SESSION) -> str:
        """Show the current phase, remaining time and completed work sessions.

        Args:
            session_id: Timer session identifier (one timer per id).
        """
        state = sessions.get(session_id).snapshot()
        return json.dumps({"status": "ok", "session_id": session_id, "state": state.to_dict()})

    @mcp.tool
    async def focus_start(ctx: Context, session_id: str = DEFAULT_SESSION) -> str:
        """Start (or keep running) the countdown of the current phase.

        Args:
            session_id: Timer session identifier.
        """
        state = sessions.get(session_id).start()
        return json.dumps({"status": "ok", "session_id": session_id, "state": state.to_dict()})

    @mcp.tool
    async def focus_pause(ctx: Context, session_id: str = DEFAULT_SESSION) -> str:
        """Pause the countdown without losing the remaining time.

        Args:
            session_id: Timer session identifier.
        """
        state = sessions.get(session_id).pause()
        return json.dumps({"status": "ok", "session_id": session_id, "state": state.to_dict()})

    @mcp.tool
    async def focus_reset(ctx: Context, session_id: str = DEFAULT_SESSION) -> str:
        """Restart the current phase from its full duration (stopped).

        Args:
            session_id: Timer session identifier.
        """
        state = sessions.get(session_id).reset()
        return json.dumps({"status": "ok", "session_id": session_id, "state": state.to_dict()})

    @mcp.tool
    async def focus_end_session(ctx: Context, session_id: str = DEFAULT_SESSION) -> str:
        """Discard a timer session. Stored focus history is kept.

        Args:
            session_id: Timer session identifier.
        """
        ended = sessions.end(session_id)
        return json.dumps({"status": "ended" if ended else "not_found", "session_id": session_id})

    @mcp.tool
    async def focus_switch_phase(
        ctx: Context,
        phase: str,
        session_id: str = DEFAULT_SESSION,
    ) -> str:
        """Jump to a phase with its full duration. Does not count as a completion.

        Args:
            phase: One of 'work', 'short_break', 'long_break'.
            session_id: Timer session identifier.
        """
        try:
            target = Phase.parse(phase)
        except ValueError as exc:
            return _error(str(exc))
        state = sessions.get(session_id).switch_phase(target)
        return json.dumps({"status": "ok", "session_id": session_id, "state": state.to_dict()})

    @mcp.tool
    async def focus_tick(
        ctx: Context,
        seconds: int = 1,
        session_id: str = DEFAULT_SESSION,
    ) -> str:
        """Advance a running timer by elapsed seconds.

        Ticking stops at the first phase completion, since the timer halts
        there until it is started again. A paused timer applies no ticks.

        Args:
            seconds: Number of one-second ticks to apply (1-3600).
            session_id: Timer session identifier.
        """
        if not 1 <= seconds <= MAX_TICKS_PER_CALL:
            return _error(f"seconds must be between 1 and {MAX_TICKS_PER_CALL}")

        engine = sessions.get(session_id)
        result = TickResult(state=engine.snapshot())
        applied = 0
        while applied < seconds and result.state.is_running and result.completion is None:
            result = engine.tick()
            applied += 1

        return json.dumps({
            "status": "ok",
            "session_id": session_id,
            "ticks_applied": applied,
            "state": result.state.to_dict(),
            "completed": result.completion.to_dict() if result.completion else None,
        })

    return sessions
