"""Iqamah time resolution, including the Zuhr and Isha special cases."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from errors import ParseError
from prayer_times import PRAYER_ORDER, DailySchedule, PrayerName
from time_utils import add_minutes, minutes_since_midnight, parse_time

LOGGER = logging.getLogger(__name__)

DEFAULT_OFFSETS: Dict[PrayerName, int] = {
    PrayerName.FAJR: 20,
    PrayerName.ZUHR: 15,
    PrayerName.ASR: 15,
    PrayerName.MAGHRIB: 5,
    PrayerName.ISHA: 10,
}


@dataclass(frozen=True)
class SeasonalWindow:
    """Inclusive (month, day) range evaluated against every year."""

    start: Tuple[int, int] = (2, 17)
    end: Tuple[int, int] = (3, 20)

    def contains(self, day: date) -> bool:
        key = (day.month, day.day)
        if self.start <= self.end:
            return self.start <= key <= self.end
        # window spanning new year, e.g. Dec 20 -> Jan 10
        return key >= self.start or key <= self.end


@dataclass(frozen=True)
class IqamahRules:
    offsets: Mapping[PrayerName, int] = field(default_factory=lambda: dict(DEFAULT_OFFSETS))
    zuhr_floor: str = "12:30"
    zuhr_threshold: str = "13:15"
    isha_earliest: str = "19:30"
    isha_latest: str = "21:30"
    isha_window: Optional[SeasonalWindow] = field(default_factory=SeasonalWindow)
    isha_window_weekend: str = "20:45"
    isha_window_weekday: str = "21:00"

    def offset_for(self, name: PrayerName) -> int:
        return self.offsets.get(name, 0)


DEFAULT_RULES = IqamahRules()


@dataclass(frozen=True)
class ResolvedPrayer:
    name: PrayerName
    adhan: str
    iqamah: str


def zuhr_iqamah(candidate: str, rules: IqamahRules = DEFAULT_RULES) -> str:
    if minutes_since_midnight(candidate) < minutes_since_midnight(rules.zuhr_threshold):
        return rules.zuhr_floor
    return candidate


def isha_iqamah(adhan: str, candidate: str, on_date: date, rules: IqamahRules = DEFAULT_RULES) -> str:
    if rules.isha_window is not None and rules.isha_window.contains(on_date):
        # Saturday/Sunday
        if on_date.weekday() >= 5:
            return rules.isha_window_weekend
        return rules.isha_window_weekday

    adhan_minutes = minutes_since_midnight(adhan)
    candidate_minutes = minutes_since_midnight(candidate)
    earliest = minutes_since_midnight(rules.isha_earliest)
    latest = minutes_since_midnight(rules.isha_latest)

    if adhan_minutes < earliest and candidate_minutes <= earliest:
        return rules.isha_earliest
    if adhan_minutes < latest and candidate_minutes > latest:
        return rules.isha_latest
    if adhan_minutes >= latest:
        return adhan
    return candidate


def resolve_iqamah(
    name: PrayerName,
    adhan: str,
    offset: Optional[int] = None,
    on_date: Optional[date] = None,
    rules: IqamahRules = DEFAULT_RULES,
) -> str:
    """Return the Iqamah "HH:MM" of prayer *name* whose Adhan is at *adhan*.

    *offset* defaults to the rules' offset table and *on_date* to today; the
    date only matters for Isha's seasonal window.
    """
    on_date = on_date or date.today()
    if offset is None:
        offset = rules.offset_for(name)
    candidate = add_minutes(adhan, offset, on_date)

    if name is PrayerName.ZUHR:
        return zuhr_iqamah(candidate, rules)
    if name is PrayerName.ISHA:
        return isha_iqamah(adhan, candidate, on_date, rules)
    return candidate


def resolve_prayers(
    schedule: DailySchedule,
    on_date: Optional[date] = None,
    rules: IqamahRules = DEFAULT_RULES,
) -> List[ResolvedPrayer]:
    on_date = on_date or schedule.date
    return [
        ResolvedPrayer(
            name=name,
            adhan=schedule.adhan_for(name),
            iqamah=resolve_iqamah(name, schedule.adhan_for(name), on_date=on_date, rules=rules),
        )
        for name in PRAYER_ORDER
    ]


def build_rules_from_config(config: Dict[str, Any]) -> IqamahRules:
    """Create IqamahRules from the optional "iqamah" section of the config."""
    section = config.get("iqamah") if isinstance(config, dict) else None
    if not isinstance(section, dict):
        return DEFAULT_RULES

    rules = DEFAULT_RULES
    offsets = dict(DEFAULT_OFFSETS)
    configured_offsets = section.get("offsets") or {}
    if not isinstance(configured_offsets, dict):
        LOGGER.warning("Ignoring invalid Iqamah offsets %r", configured_offsets)
        configured_offsets = {}
    for key, value in configured_offsets.items():
        try:
            offsets[PrayerName(str(key).lower())] = int(value)
        except (TypeError, ValueError):
            LOGGER.warning("Ignoring invalid Iqamah offset %s=%r", key, value)
    rules = replace(rules, offsets=offsets)

    overrides: Dict[str, Any] = {}
    for key in (
        "zuhr_floor",
        "zuhr_threshold",
        "isha_earliest",
        "isha_latest",
        "isha_window_weekend",
        "isha_window_weekday",
    ):
        value = section.get(key)
        if value is None:
            continue
        try:
            overrides[key] = parse_time(value).strftime("%H:%M")
        except ParseError:
            LOGGER.warning("Ignoring invalid Iqamah setting %s=%r", key, value)

    if "isha_window" in section:
        overrides["isha_window"] = _window_from_config(section["isha_window"])

    LOGGER.debug("Iqamah overrides from config: %s", overrides)
    return replace(rules, **overrides)


def _window_from_config(value: Any) -> Optional[SeasonalWindow]:
    if not value:
        return None
    try:
        start_month, start_day = (int(part) for part in str(value["start"]).split("-"))
        end_month, end_day = (int(part) for part in str(value["end"]).split("-"))
        # validate against a leap year so 02-29 is accepted
        date(2024, start_month, start_day)
        date(2024, end_month, end_day)
    except (KeyError, TypeError, ValueError):
        LOGGER.warning("Invalid Isha seasonal window %r; keeping default", value)
        return SeasonalWindow()
    return SeasonalWindow(start=(start_month, start_day), end=(end_month, end_day))
