from __future__ import annotations

import threading
import time
from typing import List

import pytest

from regatta_core import IllegalStateTransition, RaceSession
from regatta_core.clock import ClockPhase, ClockState, DisplayTicker


def test_clock_phases(clock) -> None:
    state = ClockState(now=clock)
    assert state.is_cleared and not state.is_running

    state.start()
    clock.advance(75.25)
    assert state.is_running
    assert state.elapsed().total_seconds() == pytest.approx(75.25)

    state.stop()
    assert state.phase is ClockPhase.STOPPED
    assert state.display == "01:15.2"

    state.clear()
    assert state.is_cleared
    assert state.display == "00:00.0"
    assert state.started_at is None


def test_illegal_transitions_leave_state_alone(clock) -> None:
    state = ClockState(now=clock)
    with pytest.raises(IllegalStateTransition):
        state.stop()

    state.start()
    with pytest.raises(IllegalStateTransition):
        state.start()
    with pytest.raises(IllegalStateTransition):
        state.clear()
    assert state.is_running

    state.stop()
    with pytest.raises(IllegalStateTransition):
        state.start()
    assert state.phase is ClockPhase.STOPPED


def test_ticker_posts_formatted_elapsed_time() -> None:
    posted: List[str] = []
    delivered = threading.Event()

    def post(text: str) -> None:
        posted.append(text)
        delivered.set()

    ticker = DisplayTicker(started_at=100.0, post=post, interval=0.01, now=lambda: 165.4)
    ticker.start()
    try:
        assert delivered.wait(2.0)
    finally:
        ticker.stop()

    assert not ticker.running
    assert posted[0] == "01:05.4"


def test_ticker_stops_when_hand_off_is_closed() -> None:
    calls: List[str] = []

    def post(text: str) -> None:
        calls.append(text)
        raise RuntimeError("Event loop is closed")

    ticker = DisplayTicker(started_at=0.0, post=post, interval=0.01, now=lambda: 1.0)
    ticker.start()
    deadline = time.monotonic() + 2.0
    while ticker.running and time.monotonic() < deadline:
        time.sleep(0.01)

    assert not ticker.running
    assert calls == ["00:01.0"]


def test_session_display_is_applied_on_owner_thread(clock) -> None:
    session = RaceSession(now=clock, tick_interval=0.01)
    session.start()
    clock.now = 12.34

    deadline = time.monotonic() + 2.0
    while session.pump_display() != "00:12.3" and time.monotonic() < deadline:
        time.sleep(0.01)
    assert session.clock.display == "00:12.3"
    assert [record.sequence for record in session.records] == [1]

    session.stop()
    session.show_display("09:59.9")
    assert session.clock.display == "00:12.3"

    session.clear()
    assert session.pump_display() == "00:00.0"
