from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional, Tuple

from .errors import NegativeAdjustedTime
from .grid import ResultsGrid
from .laps import LapRecord, LapRecorder
from .places import is_unranked
from .timecodec import format_time, parse_time

logger = logging.getLogger(__name__)


class TimeAdjuster:
    """Shifts every split so the first one matches the certified winning time.

    The offset is never stored: it is ``winning_time - first split`` at the
    moment of each recomputation.
    """

    def __init__(self, recorder: LapRecorder, grid: ResultsGrid) -> None:
        self.recorder = recorder
        self.grid = grid
        self.winning_text = ""
        self.winning_time: Optional[dt.timedelta] = None

    def offset(self, winning_time: Optional[dt.timedelta] = None) -> dt.timedelta:
        winning = self.winning_time if winning_time is None else winning_time
        first = self.recorder.first
        if winning is None or first is None:
            return dt.timedelta(0)
        return winning - first.raw_time

    def set_winning_time(self, text: str | None) -> dt.timedelta:
        value = (text or "").strip()
        if not value:
            self.winning_text = ""
            self.winning_time = None
            self._apply(self._adjusted(None))
            return dt.timedelta(0)

        winning = parse_time(value)
        adjusted = self._adjusted(winning)
        self.winning_text = value
        self.winning_time = winning
        self._apply(adjusted)
        logger.debug("Winning time %s applied with offset %s", value, self.offset())
        return self.offset()

    def reset(self) -> None:
        self.winning_text = ""
        self.winning_time = None

    def recompute(self) -> None:
        self._apply(self._adjusted(self.winning_time))

    def edit_split(self, record: LapRecord, text: str | None) -> None:
        raw = parse_time(text)
        previous = record.raw_time
        record.raw_time = raw
        try:
            adjusted = self._adjusted(self.winning_time)
        except NegativeAdjustedTime:
            record.raw_time = previous
            raise
        self._apply(adjusted)
        logger.debug("Split %d edited to %s", record.sequence, record.split)

    def _adjusted(self, winning: Optional[dt.timedelta]) -> List[Tuple[LapRecord, dt.timedelta]]:
        shift = self.offset(winning) if winning is not None else dt.timedelta(0)
        adjusted = [(record, record.raw_time + shift) for record in self.recorder]
        for record, value in adjusted:
            if value < dt.timedelta(0):
                raise NegativeAdjustedTime(
                    f"winning time offset {shift} would make split {record.sequence} negative"
                )
        return adjusted

    def _apply(self, adjusted: List[Tuple[LapRecord, dt.timedelta]]) -> None:
        for record, value in adjusted:
            record.adjusted_time = format_time(value)
            if record.lane is None or is_unranked(record.place):
                continue
            cells = self.grid[record.lane]
            cells.split = record.split
            cells.time = record.adjusted_time
