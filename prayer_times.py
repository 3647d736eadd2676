"""Schedule data types and loading of the mosque's yearly prayer timetable."""
from __future__ import annotations

import csv
import io
import logging
import time as time_module
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Mapping, Optional

import requests

from errors import MissingDateError, ParseError, TransportError
from time_utils import add_minutes, parse_time

LOGGER = logging.getLogger(__name__)

DEFAULT_SCHEDULE_URL = (
    "https://raw.githubusercontent.com/himo-tech/cmam-prayer-time/refs/heads/main/"
    "prayer-time/{year}-prayer-time.csv"
)
DATE_KEY_FORMAT = "%d-%m-%Y"
ISHA_ADHAN_CORRECTION = 4


class PrayerName(Enum):
    FAJR = "fajr"
    ZUHR = "zuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"

    @property
    def label(self) -> str:
        return self.value.capitalize()


PRAYER_ORDER = list(PrayerName)
PRAYER_FIELDS = [name.value for name in PRAYER_ORDER]


@dataclass(frozen=True)
class DailySchedule:
    """Adhan times ("HH:MM") of the five prayers for one calendar date."""

    date: date
    adhan: Mapping[PrayerName, str]

    def adhan_for(self, name: PrayerName) -> str:
        return self.adhan[name]


def date_key(day: date) -> str:
    return day.strftime(DATE_KEY_FORMAT)


class CsvScheduleProvider:
    """Fetches a yearly CSV timetable (one row per "DD-MM-YYYY" date)."""

    def __init__(self, url_template: str = DEFAULT_SCHEDULE_URL, timeout: int = 10) -> None:
        self.url_template = url_template
        self.timeout = timeout

    def fetch_year(self, year: int) -> Dict[str, Dict[str, str]]:
        url = self.url_template.format(year=year)
        # cache-busting timestamp
        params = {"t": int(time_module.time() * 1000)}
        LOGGER.debug("Requesting prayer schedule for %s from %s", year, url)
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Unable to reach schedule at {url}: {exc}") from exc
        LOGGER.debug("Prayer schedule response status: %s", response.status_code)
        if not response.ok:
            raise TransportError(f"File not found (Status: {response.status_code})")

        try:
            content = response.content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Schedule is not valid UTF-8: {exc}") from exc
        return self._parse_csv(content)

    @staticmethod
    def _parse_csv(content: str) -> Dict[str, Dict[str, str]]:
        reader = csv.DictReader(io.StringIO(content))
        header = [field.strip().lower() for field in (reader.fieldnames or [])]
        missing = [field for field in ["date", *PRAYER_FIELDS] if field not in header]
        if missing:
            raise ParseError(f"Schedule CSV is missing columns: {', '.join(missing)}")
        reader.fieldnames = header

        rows: Dict[str, Dict[str, str]] = {}
        try:
            for record in reader:
                key = (record.get("date") or "").strip()
                if not key:
                    continue
                rows[key] = {field: (record.get(field) or "").strip() for field in PRAYER_FIELDS}
        except csv.Error as exc:
            raise ParseError(f"Malformed schedule CSV: {exc}") from exc
        LOGGER.debug("Parsed %d schedule rows", len(rows))
        return rows


def load_daily_schedule(
    provider: CsvScheduleProvider,
    day: Optional[date] = None,
    isha_correction: int = ISHA_ADHAN_CORRECTION,
) -> DailySchedule:
    """Fetch *day*'s Adhan times and normalize them into a :class:`DailySchedule`.

    Every time is validated, and Isha's Adhan gets its fixed correction here,
    exactly once.
    """
    day = day or date.today()
    key = date_key(day)
    rows = provider.fetch_year(day.year)
    record = rows.get(key)
    if not record:
        raise MissingDateError(key)

    adhan: Dict[PrayerName, str] = {}
    for name in PRAYER_ORDER:
        raw = record.get(name.value)
        if not raw:
            raise ParseError(f"No {name.label} time for {key}")
        adhan[name] = parse_time(raw).strftime("%H:%M")

    if isha_correction:
        adhan[PrayerName.ISHA] = add_minutes(adhan[PrayerName.ISHA], isha_correction, day)

    LOGGER.debug("Loaded schedule for %s: %s", key, {name.label: value for name, value in adhan.items()})
    return DailySchedule(date=day, adhan=adhan)
