import datetime as dt

import pytest

from regatta_core import InvalidTimeFormat, format_time, parse_time


def test_split_text_round_trips() -> None:
    assert format_time(parse_time("05:23.4")) == "05:23.4"
    assert parse_time("05:23.4") == dt.timedelta(minutes=5, seconds=23, milliseconds=400)


def test_parse_format_inverse_at_tenth_granularity() -> None:
    for tenths in (0, 1, 9, 599, 6000, 35999):
        duration = dt.timedelta(milliseconds=tenths * 100)
        assert parse_time(format_time(duration)) == duration


def test_parse_long_clock_form() -> None:
    assert parse_time("01:02:03.456") == dt.timedelta(hours=1, minutes=2, seconds=3, milliseconds=456)
    assert parse_time(" 00:07:01.900 ") == dt.timedelta(minutes=7, seconds=1, milliseconds=900)


def test_empty_text_is_zero() -> None:
    assert parse_time("") == dt.timedelta(0)
    assert parse_time(None) == dt.timedelta(0)


@pytest.mark.parametrize(
    "text",
    ["5", "5:23", "05:23.45", "05:60.0", "61:00.0", "aa:bb.c", "1:2:3.4", "00:00:00.0000", "-1:00.0"],
)
def test_rejects_malformed_text(text: str) -> None:
    with pytest.raises(InvalidTimeFormat):
        parse_time(text)


def test_invalid_format_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_time("later")


def test_format_truncates_and_wraps_hours() -> None:
    assert format_time(dt.timedelta(seconds=83, milliseconds=999)) == "01:23.9"
    assert format_time(dt.timedelta(hours=1, minutes=2, seconds=3)) == "02:03.0"


def test_format_rejects_negative() -> None:
    with pytest.raises(ValueError):
        format_time(dt.timedelta(seconds=-1))

