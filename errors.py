"""Error types raised while loading the daily prayer schedule."""
from __future__ import annotations


class ScheduleError(Exception):
    """Base class for every failure that leaves the board without a schedule."""


class TransportError(ScheduleError):
    """The schedule resource could not be reached or was not found."""


class ParseError(ScheduleError, ValueError):
    """The schedule resource, or a time inside it, is malformed."""


class MissingDateError(ScheduleError):
    """The schedule loaded fine but has no entry for the requested date."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Date key not found: {key}")
        self.key = key
