"""Conversion between split time text and durations.

Two literal shapes are understood:

   mm:ss.t          split and winning times (one tenth digit)
   hh:mm:ss.mmm     long clock form (three millisecond digits)

Formatting always produces the short ``mm:ss.t`` shape. Durations of an hour
or more wrap around on the minutes field; races are never that long.
"""

from __future__ import annotations

import datetime as dt
import re

from .errors import InvalidTimeFormat

ZERO_TIME = "00:00.0"

SPLIT_RE = re.compile(r"^(\d{1,2}):(\d{2})\.(\d)$")
CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})\.(\d{3})$")


def parse_time(text: str | None) -> dt.timedelta:
    """Return the duration for ``text``; an empty string is zero."""

    value = (text or "").strip()
    if not value:
        return dt.timedelta(0)

    match = SPLIT_RE.match(value)
    if match:
        minutes, seconds, tenths = (int(part) for part in match.groups())
        _check_sexagesimal(value, minutes, seconds)
        return dt.timedelta(minutes=minutes, seconds=seconds, milliseconds=tenths * 100)

    match = CLOCK_RE.match(value)
    if match:
        hours, minutes, seconds, millis = (int(part) for part in match.groups())
        _check_sexagesimal(value, minutes, seconds)
        return dt.timedelta(hours=hours, minutes=minutes, seconds=seconds, milliseconds=millis)

    raise InvalidTimeFormat(f"invalid time format '{value}' (expected mm:ss.t or hh:mm:ss.mmm)")


def _check_sexagesimal(value: str, minutes: int, seconds: int) -> None:
    if minutes > 59:
        raise InvalidTimeFormat(f"invalid minutes in '{value}'")
    if seconds > 59:
        raise InvalidTimeFormat(f"invalid seconds in '{value}'")


def _total_millis(duration: dt.timedelta) -> int:
    if duration < dt.timedelta(0):
        raise ValueError(f"cannot format negative duration {duration}")
    return duration // dt.timedelta(milliseconds=1)


def format_time(duration: dt.timedelta) -> str:
    millis = _total_millis(duration)
    minutes = (millis // 60000) % 60
    seconds = (millis // 1000) % 60
    tenths = (millis // 100) % 10
    return f"{minutes:02d}:{seconds:02d}.{tenths}"

