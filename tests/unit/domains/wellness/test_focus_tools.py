"""Unit tests for the focus timer MCP tools."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from mindmatters.core.server.app import create_app
from mindmatters.domains.wellness.domain_logic.focus_cycle import FocusDurations
from mindmatters.domains.wellness.tools.focus_tools import FocusSessions


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    content = result.content if hasattr(result, "content") else result
    return json.loads(content[0].text)


@pytest.fixture
def short_cycle_env(monkeypatch):
    """Three-second work phases, two-second short breaks."""
    monkeypatch.setenv("FOCUS_WORK_SECONDS", "3")
    monkeypatch.setenv("FOCUS_SHORT_BREAK_SECONDS", "2")
    monkeypatch.setenv("FOCUS_LONG_BREAK_SECONDS", "4")
    monkeypatch.setenv("FOCUS_LONG_BREAK_INTERVAL", "2")


@pytest.fixture
def client(short_cycle_env):
    return Client(create_app())


@pytest.fixture
def stored_client(short_cycle_env, wellness_repository):
    return Client(create_app(repository_override=wellness_repository))


def test_initial_status(client):
    """A new session starts stopped at the full work duration."""
    async def _check():
        async with client:
            data = _payload(await client.call_tool("focus_status", {}))
            assert data["session_id"] == "default"
            assert data["state"]["phase"] == "work"
            assert data["state"]["remaining_seconds"] == 3
            assert data["state"]["is_running"] is False
    _run(_check())


def test_tick_while_paused_applies_nothing(client):
    async def _check():
        async with client:
            data = _payload(await client.call_tool("focus_tick", {"seconds": 2}))
            assert data["ticks_applied"] == 0
            assert data["state"]["remaining_seconds"] == 3
            assert data["completed"] is None
    _run(_check())


def test_batched_ticks_stop_at_completion(client):
    """Ticking past the end of a phase halts at the completion."""
    async def _check():
        async with client:
            await client.call_tool("focus_start", {})
            data = _payload(await client.call_tool("focus_tick", {"seconds": 10}))
            assert data["ticks_applied"] == 3
            assert data["completed"]["phase"] == "work"
            assert data["completed"]["next_phase"] == "short_break"
            assert data["state"]["phase"] == "short_break"
            assert data["state"]["remaining_seconds"] == 2
            assert data["state"]["is_running"] is False
            assert data["state"]["completed_work_sessions"] == 1
    _run(_check())


def test_long_break_after_interval(client):
    async def _check():
        async with client:
            next_phases = []
            for _ in range(2):
                await client.call_tool("focus_start", {})
                work = _payload(await client.call_tool("focus_tick", {"seconds": 10}))
                next_phases.append(work["completed"]["next_phase"])
                await client.call_tool("focus_start", {})
                await client.call_tool("focus_tick", {"seconds": 10})
            assert next_phases == ["short_break", "long_break"]
    _run(_check())


def test_pause_and_reset(client):
    async def _check():
        async with client:
            await client.call_tool("focus_start", {})
            await client.call_tool("focus_tick", {"seconds": 1})
            paused = _payload(await client.call_tool("focus_pause", {}))
            assert paused["state"]["is_running"] is False
            assert paused["state"]["remaining_seconds"] == 2
            reset = _payload(await client.call_tool("focus_reset", {}))
            assert reset["state"]["remaining_seconds"] == 3
    _run(_check())


def test_sessions_are_independent(client):
    async def _check():
        async with client:
            await client.call_tool("focus_start", {"session_id": "a"})
            await client.call_tool("focus_tick", {"seconds": 2, "session_id": "a"})
            b = _payload(await client.call_tool("focus_status", {"session_id": "b"}))
            a = _payload(await client.call_tool("focus_status", {"session_id": "a"}))
            assert a["state"]["remaining_seconds"] == 1
            assert b["state"]["remaining_seconds"] == 3
    _run(_check())


def test_switch_phase(client):
    async def _check():
        async with client:
            data = _payload(await client.call_tool("focus_switch_phase", {"phase": "long_break"}))
            assert data["state"]["phase"] == "long_break"
            assert data["state"]["remaining_seconds"] == 4
            assert data["state"]["completed_work_sessions"] == 0
    _run(_check())


def test_switch_phase_rejects_unknown(client):
    async def _check():
        async with client:
            data = _payload(await client.call_tool("focus_switch_phase", {"phase": "nap"}))
            assert data["status"] == "error"
            assert "Unknown phase" in data["message"]
    _run(_check())


@pytest.mark.parametrize("seconds", [0, 3601])
def test_tick_bounds(client, seconds):
    async def _check():
        async with client:
            data = _payload(await client.call_tool("focus_tick", {"seconds": seconds}))
            assert data["status"] == "error"
    _run(_check())


def test_completions_recorded_with_storage(stored_client, wellness_repository):
    async def _check():
        async with stored_client:
            await stored_client.call_tool("focus_start", {"session_id": "study"})
            await stored_client.call_tool("focus_tick", {"seconds": 5, "session_id": "study"})
    _run(_check())

    sessions = wellness_repository.get_focus_sessions()
    assert len(sessions) == 1
    assert sessions[0].phase == "work"
    assert sessions[0].session_key == "study"
    assert sessions[0].duration_seconds == 3


def test_end_session_discards_timer(client):
    async def _check():
        async with client:
            await client.call_tool("focus_start", {"session_id": "exam"})
            await client.call_tool("focus_tick", {"seconds": 2, "session_id": "exam"})
            ended = _payload(await client.call_tool("focus_end_session", {"session_id": "exam"}))
            assert ended["status"] == "ended"
            again = _payload(await client.call_tool("focus_end_session", {"session_id": "exam"}))
            assert again["status"] == "not_found"
            fresh = _payload(await client.call_tool("focus_status", {"session_id": "exam"}))
            assert fresh["state"]["remaining_seconds"] == 3
            assert fresh["state"]["is_running"] is False
    _run(_check())


class TestFocusSessions:
    def test_size_is_capped(self):
        sessions = FocusSessions(FocusDurations(), max_sessions=3)
        for n in range(10):
            sessions.get(f"s{n}")
        assert len(sessions) == 3
        assert "s9" in sessions
        assert "s0" not in sessions

    def test_least_recently_used_evicted_first(self):
        sessions = FocusSessions(FocusDurations(), max_sessions=2)
        kept = sessions.get("a")
        sessions.get("b")
        assert sessions.get("a") is kept
        sessions.get("c")
        assert "a" in sessions
        assert "b" not in sessions

    def test_end(self):
        sessions = FocusSessions(FocusDurations())
        sessions.get("a")
        assert sessions.end("a") is True
        assert sessions.end("a") is False
        assert len(sessions) == 0
