from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import openpyxl
import pytest

from regatta_core import RaceSession


class FakeClock:
    """Monotonic time source driven by the test."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_session(clock: FakeClock) -> Callable[..., RaceSession]:
    """Build a stopped session with one split per elapsed value (seconds).

    Split 1 is the start marker at 00:00.0, as the clock creates it.
    """

    def _make(elapsed: Sequence[float] = (), stop: bool = True) -> RaceSession:
        session = RaceSession(now=clock, tick_interval=None)
        session.start()
        for value in elapsed:
            clock.now = value
            session.lap()
        if stop:
            session.stop()
        return session

    return _make


def write_regatta_workbook(path: Path) -> Path:
    workbook = openpyxl.Workbook()
    sheet = workbook.active

    sheet["A1"] = "Spring Sprints      12 April 2025"
    sheet.merge_cells("A1:I2")

    sheet["A3"] = 1
    sheet.merge_cells("A3:A7")
    sheet["B3"] = "Men's Novice 4+"
    sheet["B4"] = "Heat 1"
    sheet["D3"] = "Riverside RC"
    sheet["D4"] = "Crew A"
    sheet["E3"] = "Lakeside BC"
    sheet["G3"] = "Harbour School"
    sheet["G4"] = "Bow 12"

    sheet["A8"] = 2
    sheet.merge_cells("A8:A12")
    sheet["C8"] = "Women's 2x"

    sheet["A13"] = "3"
    sheet.merge_cells("A13:A17")
    sheet["B13"] = "Girls' 8+"
    sheet["B14"] = "Final"
    sheet["I13"] = "Quarry Academy"

    workbook.save(path)
    return path


@pytest.fixture
def regatta_workbook(tmp_path: Path) -> Path:
    return write_regatta_workbook(tmp_path / "regatta.xlsx")
