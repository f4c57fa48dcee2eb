from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .errors import OutOfRangeLane

LANES = range(1, 7)


def check_lane(lane: int) -> int:
    if lane not in LANES:
        raise OutOfRangeLane(f"lane must be between {LANES[0]} and {LANES[-1]}, got {lane}")
    return lane


@dataclass
class LaneCells:
    school_name: str = ""
    additional_info: str = ""
    place: str = ""
    split: str = ""
    time: str = ""

    def clear_results(self) -> None:
        self.place = ""
        self.split = ""
        self.time = ""

    @property
    def has_results(self) -> bool:
        return bool(self.place or self.split or self.time)


@dataclass
class ResultsGrid:
    """The per-lane results table shown to the operator and the referee.

    School and info rows are seeded from the regatta table; the result rows
    are written by the timing engine only.
    """

    lanes: Dict[int, LaneCells] = field(default_factory=lambda: {lane: LaneCells() for lane in LANES})
    class_label: str = ""
    flight_label: str = ""

    def __getitem__(self, lane: int) -> LaneCells:
        return self.lanes[check_lane(lane)]

    def write_lane(self, lane: int, place: str, split: str, time: str) -> None:
        cells = self[lane]
        cells.place = place
        cells.split = split
        cells.time = time

    def clear_lane(self, lane: Optional[int]) -> None:
        if lane is None:
            return
        self[lane].clear_results()

    def clear_results(self) -> None:
        for cells in self.lanes.values():
            cells.clear_results()

    def seed(self, labels: Sequence[str], metadata: Dict[int, tuple[str, str]]) -> None:
        """Replace the label column and school/info rows, clearing results."""

        self.class_label = labels[0] if len(labels) > 0 else ""
        self.flight_label = labels[1] if len(labels) > 1 else ""
        for lane, cells in self.lanes.items():
            school, info = metadata.get(lane, ("", ""))
            cells.school_name = school
            cells.additional_info = info
            cells.clear_results()

    @staticmethod
    def headers() -> List[str]:
        return [""] + [f"Lane {lane}" for lane in LANES]

    def matrix(self) -> List[List[str]]:
        rows = [
            [self.class_label] + [self.lanes[lane].school_name for lane in LANES],
            [self.flight_label] + [self.lanes[lane].additional_info for lane in LANES],
            ["Place"] + [self.lanes[lane].place for lane in LANES],
            ["Split"] + [self.lanes[lane].split for lane in LANES],
            ["Time"] + [self.lanes[lane].time for lane in LANES],
        ]
        return [self.headers()] + rows

