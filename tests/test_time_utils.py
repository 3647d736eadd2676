from datetime import date, time, timedelta

import pytest

from errors import ParseError
from time_utils import add_minutes, format_countdown, minutes_since_midnight, parse_time


@pytest.mark.parametrize(
    "value, expected",
    [("00:00", 0), ("05:20", 320), ("12:30", 750), ("19:30", 1170), ("21:30", 1290), ("23:59", 1439)],
)
def test_minutes_since_midnight(value, expected):
    assert minutes_since_midnight(value) == expected


def test_add_zero_minutes_is_lossless():
    for minutes in range(0, 1440, 7):
        value = f"{minutes // 60:02d}:{minutes % 60:02d}"
        assert minutes_since_midnight(add_minutes(value, 0)) == minutes


def test_add_minutes_within_day():
    assert add_minutes("12:50", 15) == "13:05"
    assert add_minutes("05:00", 20, date(2025, 6, 10)) == "05:20"


def test_add_minutes_wraps_past_midnight():
    assert add_minutes("23:50", 20) == "00:10"
    assert add_minutes("00:05", -10) == "23:55"


@pytest.mark.parametrize("value", ["", None])
def test_add_minutes_propagates_missing_time(value):
    assert add_minutes(value, 10) == value


def test_parse_time_ignores_seconds():
    assert parse_time("20:26:59") == time(20, 26)


@pytest.mark.parametrize(
    "value",
    ["abc", "12", "24:00", "12:60", "-1:30", "ab:cd", "\u00b2:30", "\u0661\u0662:30", "12:30:xx", "12:30:15:00"],
)
def test_parse_time_rejects_malformed(value):
    with pytest.raises(ParseError):
        parse_time(value)


def test_malformed_time_is_a_value_error():
    with pytest.raises(ValueError):
        minutes_since_midnight("nope")


def test_format_countdown():
    assert format_countdown(timedelta(hours=1, minutes=2, seconds=3)) == "1:02:03"
    assert format_countdown(timedelta(minutes=5), with_hours=False) == "05:00"
    assert format_countdown(timedelta(minutes=75, seconds=9), with_hours=False) == "75:09"
    assert format_countdown(timedelta(seconds=-5)) == "0:00:00"
