"""Error taxonomy raised by the race timing engine.

Every condition here is recoverable: the engine resets the offending input to
a safe value before raising, so callers can report the message and carry on.
"""

from __future__ import annotations


class RegattaClockError(Exception):
    """Base class for all engine errors."""


class InvalidTimeFormat(RegattaClockError, ValueError):
    pass


class DuplicateLaneAssignment(RegattaClockError, ValueError):
    def __init__(self, lane: int, holder: int) -> None:
        super().__init__(f"lane {lane} is already assigned to split {holder}")
        self.lane = lane
        self.holder = holder


class OutOfRangeLane(RegattaClockError, ValueError):
    pass


class NegativeAdjustedTime(RegattaClockError, ValueError):
    pass


class UnknownRecord(RegattaClockError, LookupError):
    pass


class UnassignedLane(RegattaClockError, LookupError):
    pass


class RaceNotFound(RegattaClockError, LookupError):
    pass


class IllegalStateTransition(RegattaClockError, RuntimeError):
    pass
