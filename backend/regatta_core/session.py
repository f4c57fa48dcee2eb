from __future__ import annotations

import html
import logging
import queue
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .adjust import TimeAdjuster
from .clock import TICK_INTERVAL, ClockState, DisplayTicker, Now
from .errors import IllegalStateTransition, RaceNotFound
from .grid import LANES, ResultsGrid
from .lanes import LaneAssignment
from .laps import LapRecord, LapRecorder
from .places import PlaceResolver, PlaceStatus, is_unranked, numeric_place
from .regatta import RaceData, RegattaData

logger = logging.getLogger(__name__)


@dataclass
class ApprovalRow:
    lane: str
    place: str
    split: str
    time: str
    school: str


class RaceSession:
    """Timing engine for one race.

    All commands must be issued from a single owner thread. The display
    ticker runs elsewhere and only ever hands text back through ``post``.
    """

    def __init__(
        self,
        regatta: Optional[RegattaData] = None,
        now: Now = time.monotonic,
        tick_interval: Optional[float] = TICK_INTERVAL,
    ) -> None:
        self.regatta = regatta
        self.race: Optional[RaceData] = None
        self.clock = ClockState(now)
        self.recorder = LapRecorder()
        self.grid = ResultsGrid()
        self.lanes = LaneAssignment(self.recorder, self.grid)
        self.places = PlaceResolver(self.recorder, self.grid)
        self.adjuster = TimeAdjuster(self.recorder, self.grid)
        self.inputs_locked = False
        self.approved = False
        self._now = now
        self._tick_interval = tick_interval
        self._ticker: Optional[DisplayTicker] = None
        self._mailbox: "queue.SimpleQueue[str]" = queue.SimpleQueue()

    # ------------------------------------------------------------------
    # Clock commands

    @property
    def records(self) -> List[LapRecord]:
        return list(self.recorder)

    def start(self, post: Optional[Callable[[str], None]] = None) -> LapRecord:
        started_at = self.clock.start()
        record = self.recorder.start()
        self.adjuster.recompute()
        self.inputs_locked = True
        self._withdraw_approval()
        if self._tick_interval:
            self._ticker = DisplayTicker(
                started_at,
                post or self._mailbox.put,
                interval=self._tick_interval,
                now=self._now,
            )
            self._ticker.start()
        logger.info("Clock started for %s", self.title)
        return record

    def lap(self) -> LapRecord:
        if not self.clock.is_running:
            raise IllegalStateTransition("splits can only be taken while the clock is running")
        record = self.recorder.lap(self.clock.elapsed())
        self.adjuster.recompute()
        return record

    def stop(self) -> None:
        self.clock.stop()
        self._stop_ticker()
        self.inputs_locked = False
        logger.info("Clock stopped at %s with %d splits", self.clock.display, len(self.recorder))

    def clear(self) -> None:
        self.clock.clear()
        self._stop_ticker()
        self._drain()
        self.recorder.clear()
        self.grid.clear_results()
        self.adjuster.reset()
        self.inputs_locked = False
        self._withdraw_approval()
        logger.debug("Session cleared")

    # ------------------------------------------------------------------
    # Result commands

    def assign_lane(self, sequence: int, text: str | None) -> Optional[int]:
        self._require_idle("assign lanes")
        record = self.recorder.get(sequence)
        self._withdraw_approval()
        return self.lanes.assign(record, text)

    def next_focus(self, sequence: int) -> Optional[int]:
        """Sequence of the split whose lane field follows ``sequence``."""

        following = self.recorder.next_after(self.recorder.get(sequence))
        return following.sequence if following else None

    def set_place_status(self, lane: int, status: "str | PlaceStatus") -> None:
        self._require_idle("change places")
        self.places.set_place_status(lane, status)
        self._withdraw_approval()

    def set_winning_time(self, text: str | None) -> None:
        if self.inputs_locked:
            raise IllegalStateTransition("winning time cannot be changed while the clock is running")
        self.adjuster.set_winning_time(text)
        self._withdraw_approval()

    def edit_split(self, sequence: int, text: str | None) -> LapRecord:
        self._require_idle("edit splits")
        record = self.recorder.get(sequence)
        self.adjuster.edit_split(record, text)
        self._withdraw_approval()
        return record

    # ------------------------------------------------------------------
    # Race data

    def load_regatta_data(self, regatta: Optional[RegattaData]) -> None:
        self.regatta = regatta

    def load_race(self, race_number: int) -> RaceData:
        if self.inputs_locked:
            raise IllegalStateTransition("race cannot be changed while the clock is running")
        if self.regatta is None:
            raise RaceNotFound("No regatta data available - please import a regatta table first")
        race = self.regatta.find_race(race_number)
        if not race.lanes:
            raise RaceNotFound(f"No boats found in Race {race_number}")

        labels = [row[0] if row else "" for row in race.raw_data[:2]]
        metadata = {
            lane: (entry.school_name, entry.additional_info)
            for lane, entry in race.lanes.items()
            if lane in LANES
        }
        # statuses on lanes without a split live only in the grid
        unheld = {
            lane: self.grid[lane].place
            for lane in LANES
            if is_unranked(self.grid[lane].place) and self.recorder.holder_of(lane) is None
        }
        self.grid.seed(labels, metadata)
        for record in self.recorder.assigned():
            self.lanes.publish(record)
        for lane, place in unheld.items():
            self.grid.write_lane(lane, place, "", "")
        self.race = race
        self._withdraw_approval()
        logger.info("Loaded %s", race.describe())
        return race

    @property
    def title(self) -> str:
        return self.race.describe() if self.race else "Regatta Clock"

    # ------------------------------------------------------------------
    # Referee approval

    def approval_rows(self) -> List[ApprovalRow]:
        rows: List[ApprovalRow] = []
        ranked = sorted(
            (numeric_place(self.grid[lane].place), lane)
            for lane in LANES
            if numeric_place(self.grid[lane].place) is not None
        )
        for _, lane in ranked:
            cells = self.grid[lane]
            rows.append(ApprovalRow(str(lane), cells.place, cells.split, cells.time, cells.school_name))
        for lane in LANES:
            cells = self.grid[lane]
            if is_unranked(cells.place):
                rows.append(ApprovalRow(f"Lane {lane}", cells.place, cells.split, cells.time, cells.school_name))
        return rows

    def approve(self) -> None:
        if self.clock.is_running:
            raise IllegalStateTransition("stop the clock before referee approval")
        if not self.recorder:
            raise IllegalStateTransition("no splits have been taken for this race")
        if self.adjuster.winning_time is None:
            raise IllegalStateTransition("a winning time is required before referee approval")
        self.approved = True
        if self.race is not None:
            self.race.approved = True
        logger.info("%s approved", self.title)

    def approval_html(self) -> str:
        def td(value: str) -> str:
            return f"<td>{html.escape(value)}</td>"

        table = [
            "<table id='approval'>",
            "<tr>" + "".join(f"<th>{header}</th>" for header in ["OOF", "Place", "Split", "Time", "School"]) + "</tr>",
        ]
        for row in self.approval_rows():
            table.append(
                "<tr>" + td(row.lane) + td(row.place) + td(row.split) + td(row.time) + td(row.school) + "</tr>"
            )
        table.append("</table>")

        style = """<style>
            th, td {
                font-size: 14px;
                border: 1px solid black;
                text-align: center;
                padding: 2px;
            }
            table {border-collapse: collapse;}
            table#approval td:nth-child(5) {text-align: left;}
            table#approval td:nth-child(even) {background-color: #d9d9d9;}
        </style>"""

        status = "Approved" if self.approved else "Awaiting approval"
        title = html.escape(self.title)
        return (
            f"<html><head><title>{title}</title>{style}</head><body>"
            f"<h2>{title}</h2><p>{status}</p>" + "".join(table) + "</body></html>"
        )

    # ------------------------------------------------------------------
    # Display hand-off

    def show_display(self, text: str) -> None:
        """Owner-thread sink for ticker output."""

        if self.clock.is_running:
            self.clock.display = text

    def pump_display(self) -> str:
        """Apply ticks queued by the default hand-off; returns the display."""

        for text in self._drain():
            self.show_display(text)
        return self.clock.display

    def close(self) -> None:
        self._stop_ticker()

    def snapshot(self) -> dict:
        return {
            "title": self.title,
            "raceNumber": self.race.race_number if self.race else None,
            "clock": {
                "phase": self.clock.phase.value,
                "isRunning": self.clock.is_running,
                "isCleared": self.clock.is_cleared,
                "display": self.clock.display,
            },
            "inputsLocked": self.inputs_locked,
            "winningTime": self.adjuster.winning_text,
            "records": [record.to_dict() for record in self.recorder],
            "grid": self.grid.matrix(),
            "approved": self.approved,
        }

    # ------------------------------------------------------------------

    def _require_idle(self, action: str) -> None:
        if self.clock.is_running:
            raise IllegalStateTransition(f"cannot {action} while the clock is running")

    def _withdraw_approval(self) -> None:
        if self.approved:
            logger.info("Approval of %s withdrawn after edit", self.title)
        self.approved = False
        if self.race is not None:
            self.race.approved = False

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    def _drain(self) -> List[str]:
        items: List[str] = []
        while True:
            try:
                items.append(self._mailbox.get_nowait())
            except queue.Empty:
                return items
