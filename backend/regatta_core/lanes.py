from __future__ import annotations

import logging
import re
from typing import Optional

from .errors import DuplicateLaneAssignment, OutOfRangeLane
from .grid import LANES, ResultsGrid
from .laps import LapRecord, LapRecorder
from .places import is_unranked

logger = logging.getLogger(__name__)

LANE_TEXT_RE = re.compile(r"^[0-9]+$")


class LaneAssignment:
    """Binds splits to lanes, at most one split per lane."""

    def __init__(self, recorder: LapRecorder, grid: ResultsGrid) -> None:
        self.recorder = recorder
        self.grid = grid

    def assign(self, record: LapRecord, text: str | None) -> Optional[int]:
        """Assign the lane typed for ``record``; returns the committed lane.

        Empty text unassigns. A lane held by another split, or text that is
        not a lane number, leaves ``record`` unassigned and raises.
        """

        previous = record.lane
        value = (text or "").strip()

        if not value:
            self._release(record, previous, lane_input="")
            return None

        lane = int(value) if LANE_TEXT_RE.match(value) else None
        if lane is None or lane not in LANES:
            self._release(record, previous, lane_input=value)
            logger.warning("Split %d: '%s' is not a lane number", record.sequence, value)
            raise OutOfRangeLane(f"'{value}' is not a lane between {LANES[0]} and {LANES[-1]}")

        holder = self.recorder.holder_of(lane)
        if holder is not None and holder is not record:
            self._release(record, previous, lane_input="")
            logger.warning("Split %d: lane %d already taken by split %d", record.sequence, lane, holder.sequence)
            raise DuplicateLaneAssignment(lane, holder.sequence)

        record.lane = lane
        record.lane_input = str(lane)
        self.publish(record)
        if previous is not None and previous != lane:
            self.grid.clear_lane(previous)
        logger.debug("Split %d assigned to lane %d", record.sequence, lane)
        return lane

    def publish(self, record: LapRecord) -> None:
        """Write the record's place, split and time into its lane."""

        if record.lane is None:
            return
        if is_unranked(record.place):
            self.grid.write_lane(record.lane, record.place, "", "")
        else:
            self.grid.write_lane(record.lane, record.place, record.split, record.adjusted_time)

    def _release(self, record: LapRecord, previous: Optional[int], lane_input: str) -> None:
        record.lane = None
        record.lane_input = lane_input
        self.grid.clear_lane(previous)
