"""Race timing engine for regatta finish lines."""

from .errors import (
    DuplicateLaneAssignment,
    IllegalStateTransition,
    InvalidTimeFormat,
    NegativeAdjustedTime,
    OutOfRangeLane,
    RaceNotFound,
    RegattaClockError,
    UnassignedLane,
    UnknownRecord,
)
from .laps import LapRecord
from .loader import RegattaStore
from .places import PlaceStatus
from .regatta import LaneEntry, RaceData, RegattaData
from .session import RaceSession
from .timecodec import format_time, parse_time

__all__ = [
    "DuplicateLaneAssignment",
    "IllegalStateTransition",
    "InvalidTimeFormat",
    "LaneEntry",
    "LapRecord",
    "NegativeAdjustedTime",
    "OutOfRangeLane",
    "PlaceStatus",
    "RaceData",
    "RaceNotFound",
    "RaceSession",
    "RegattaClockError",
    "RegattaData",
    "RegattaStore",
    "UnassignedLane",
    "UnknownRecord",
    "format_time",
    "parse_time",
]
