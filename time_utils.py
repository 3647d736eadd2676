"""Helpers for "HH:MM" time strings and minute-of-day arithmetic."""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from errors import ParseError

MINUTES_PER_DAY = 24 * 60
TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?", re.ASCII)

TimeLike = Union[str, time, datetime]


def parse_time(value: TimeLike) -> time:
    """Parse an "HH:MM" string (seconds are ignored) into a :class:`time`."""
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    match = TIME_PATTERN.fullmatch(str(value).strip())
    if match is None:
        raise ParseError(f"Malformed time string: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ParseError(f"Time out of range: {value!r}")
    return time(hour=hour, minute=minute)


def minutes_since_midnight(value: Optional[TimeLike]) -> int:
    if not value:
        return 0
    parsed = parse_time(value)
    return parsed.hour * 60 + parsed.minute


def add_minutes(value: Optional[str], delta: int, on_date: Optional[date] = None) -> Optional[str]:
    """Return *value* shifted by *delta* minutes, wrapped into a 24-hour clock.

    The date part is discarded, so "23:50" + 20 gives "00:10". An empty or
    missing value is returned unchanged.
    """
    if not value:
        return value
    base = datetime.combine(on_date or date.today(), parse_time(value))
    return (base + timedelta(minutes=delta)).strftime("%H:%M")


def moment_on(day: date, value: TimeLike) -> datetime:
    """Combine *day* with an "HH:MM" value into a naive local datetime."""
    return datetime.combine(day, parse_time(value))


def format_countdown(delta: timedelta, with_hours: bool = True) -> str:
    """Render a countdown as "H:MM:SS" or, without hours, "MM:SS"."""
    seconds = max(0, int(delta.total_seconds()))
    if with_hours:
        hours, remainder = divmod(seconds, 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours}:{minutes:02d}:{secs:02d}"
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"
