"""Finishing places per lane.

A lane's place starts out as the capture sequence of the split assigned to
it. The operator can override it with a status:

   DQ, DNF, DNS    no rank; split and time are blanked. A DQ also closes the
                   gap it leaves by moving every worse numeric place up one.
   Next Place      puts the lane back into the ranking and renumbers every
                   ranked lane 1, 2, ... in capture order.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from .errors import UnassignedLane
from .grid import LANES, ResultsGrid, check_lane
from .laps import LapRecorder

logger = logging.getLogger(__name__)


class PlaceStatus(str, enum.Enum):
    DQ = "DQ"
    DNF = "DNF"
    DNS = "DNS"
    NEXT_PLACE = "Next Place"

    @classmethod
    def parse(cls, value: "str | PlaceStatus") -> "PlaceStatus":
        if isinstance(value, PlaceStatus):
            return value
        key = (value or "").strip().upper().replace(" ", "").replace("_", "")
        for status in cls:
            if key == status.value.upper().replace(" ", ""):
                return status
        raise ValueError(f"unknown place status '{value}'")


UNRANKED = frozenset({PlaceStatus.DQ.value, PlaceStatus.DNF.value, PlaceStatus.DNS.value})


def is_unranked(place: str) -> bool:
    return place in UNRANKED


def numeric_place(place: str) -> Optional[int]:
    try:
        return int(place)
    except (TypeError, ValueError):
        return None


class PlaceResolver:
    def __init__(self, recorder: LapRecorder, grid: ResultsGrid) -> None:
        self.recorder = recorder
        self.grid = grid

    def set_place_status(self, lane: int, status: "str | PlaceStatus") -> None:
        check_lane(lane)
        status = PlaceStatus.parse(status)
        holder = self.recorder.holder_of(lane)

        if status is PlaceStatus.NEXT_PLACE:
            if holder is None:
                raise UnassignedLane(f"lane {lane} has no split to place")
            cells = self.grid[lane]
            cells.place = status.value
            cells.split = holder.split
            cells.time = holder.adjusted_time
            holder.place = status.value
            self.rescan()
            return

        cells = self.grid[lane]
        old_place = numeric_place(cells.place)
        cells.place = status.value
        cells.split = ""
        cells.time = ""
        if holder is not None:
            holder.place = status.value
        logger.debug("Lane %d marked %s", lane, status.value)

        if status is PlaceStatus.DQ and old_place is not None:
            self._close_gap(lane, old_place)

    def _close_gap(self, dq_lane: int, old_place: int) -> None:
        for lane in LANES:
            if lane == dq_lane:
                continue
            place = numeric_place(self.grid[lane].place)
            if place is None or place <= old_place:
                continue
            self.grid[lane].place = str(place - 1)
            holder = self.recorder.holder_of(lane)
            if holder is not None:
                holder.place = self.grid[lane].place

    def rescan(self) -> None:
        """Renumber ranked lanes 1, 2, ... following capture order."""

        next_place = 1
        for record in self.recorder.assigned():
            cells = self.grid[record.lane]
            if not cells.place or is_unranked(cells.place):
                continue
            cells.place = str(next_place)
            record.place = cells.place
            next_place += 1
