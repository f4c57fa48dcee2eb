from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .errors import UnknownRecord
from .timecodec import format_time

logger = logging.getLogger(__name__)


@dataclass
class LapRecord:
    """A split captured while the clock was running.

    ``place`` mirrors what the operator sees next to the split: the sequence
    number until a place status or renumbering changes it.
    """

    sequence: int
    raw_time: dt.timedelta
    adjusted_time: str = ""
    lane: Optional[int] = None
    lane_input: str = ""
    place: str = ""

    def __post_init__(self) -> None:
        if not self.adjusted_time:
            self.adjusted_time = self.split
        if not self.place:
            self.place = str(self.sequence)

    @property
    def split(self) -> str:
        return format_time(self.raw_time)

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "split": self.split,
            "time": self.adjusted_time,
            "lane": self.lane,
            "laneInput": self.lane_input,
            "place": self.place,
        }


class LapRecorder:
    """Ordered capture of lap records for one race."""

    def __init__(self) -> None:
        self.records: List[LapRecord] = []

    def __iter__(self) -> Iterator[LapRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def first(self) -> Optional[LapRecord]:
        return self.records[0] if self.records else None

    def start(self) -> LapRecord:
        self.records = []
        return self.lap(dt.timedelta(0))

    def lap(self, elapsed: dt.timedelta) -> LapRecord:
        record = LapRecord(sequence=len(self.records) + 1, raw_time=elapsed)
        self.records.append(record)
        logger.debug("Captured split %d at %s", record.sequence, record.split)
        return record

    def clear(self) -> None:
        self.records = []

    def get(self, sequence: int) -> LapRecord:
        if 1 <= sequence <= len(self.records):
            return self.records[sequence - 1]
        raise UnknownRecord(f"no split with sequence {sequence}")

    def holder_of(self, lane: int) -> Optional[LapRecord]:
        for record in self.records:
            if record.lane == lane:
                return record
        return None

    def assigned(self) -> Iterator[LapRecord]:
        return (record for record in self.records if record.lane is not None)

    def next_after(self, record: LapRecord) -> Optional[LapRecord]:
        if record.sequence < len(self.records):
            return self.records[record.sequence]
        return None
