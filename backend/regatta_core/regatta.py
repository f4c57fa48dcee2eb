from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .errors import RaceNotFound


@dataclass
class LaneEntry:
    """One crew on the draw sheet, as read from the regatta table."""

    school_name: str = ""
    additional_info: str = ""
    place: str = ""
    split: str = ""
    time: str = ""

    @property
    def is_scheduled(self) -> bool:
        return bool(self.school_name or self.additional_info)


@dataclass
class RaceData:
    race_number: int
    lanes: Dict[int, LaneEntry] = field(default_factory=dict)
    # label column first, then lanes 1..6; rows follow the results grid
    raw_data: List[List[str]] = field(default_factory=list)
    approved: bool = False

    @property
    def boat_count(self) -> int:
        return sum(1 for entry in self.lanes.values() if entry.school_name)

    def _label(self, row: int) -> str:
        if len(self.raw_data) > row and self.raw_data[row]:
            return self.raw_data[row][0]
        return ""

    @property
    def boat_class(self) -> str:
        return self._label(0)

    @property
    def flight(self) -> str:
        return self._label(1)

    def describe(self) -> str:
        text = f"Race {self.race_number} ({self.boat_count} Boats)"
        if self.boat_class:
            text = f"{text} - {self.boat_class}"
        if self.flight:
            text = f"{text} - {self.flight}"
        return text

    def to_dict(self) -> dict:
        return {
            "raceNumber": self.race_number,
            "description": self.describe(),
            "boatCount": self.boat_count,
            "boatClass": self.boat_class,
            "flight": self.flight,
            "approved": self.approved,
            "lanes": {
                str(lane): {"schoolName": entry.school_name, "additionalInfo": entry.additional_info}
                for lane, entry in sorted(self.lanes.items())
            },
        }


@dataclass
class RegattaData:
    regatta_name: str = ""
    date: str = ""
    races: List[RaceData] = field(default_factory=list)

    @property
    def scheduled_races(self) -> int:
        return sum(1 for race in self.races if race.lanes)

    def find_race(self, race_number: int) -> RaceData:
        for race in self.races:
            if race.race_number == race_number:
                return race
        raise RaceNotFound(f"Race number {race_number} not found")

    def to_dict(self) -> dict:
        return {
            "regattaName": self.regatta_name,
            "date": self.date,
            "scheduledRaces": self.scheduled_races,
            "races": [race.to_dict() for race in sorted(self.races, key=lambda r: r.race_number)],
        }
