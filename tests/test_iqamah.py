from datetime import date

import pytest

from iqamah import (
    DEFAULT_RULES,
    IqamahRules,
    SeasonalWindow,
    build_rules_from_config,
    resolve_iqamah,
    resolve_prayers,
)
from prayer_times import DailySchedule, PrayerName

# Tuesday, outside the seasonal Isha window
REGULAR_DAY = date(2025, 6, 10)


@pytest.mark.parametrize(
    "name, adhan, expected",
    [
        (PrayerName.FAJR, "05:00", "05:20"),
        (PrayerName.FAJR, "23:55", "00:15"),
        (PrayerName.ASR, "16:30", "16:45"),
        (PrayerName.ASR, "23:59", "00:14"),
        (PrayerName.MAGHRIB, "19:00", "19:05"),
        (PrayerName.MAGHRIB, "00:00", "00:05"),
    ],
)
def test_default_rule_adds_offset(name, adhan, expected):
    assert resolve_iqamah(name, adhan, on_date=REGULAR_DAY) == expected


@pytest.mark.parametrize(
    "adhan, expected",
    [
        ("12:50", "12:30"),
        ("12:59", "12:30"),
        ("13:00", "13:15"),
        ("13:05", "13:20"),
        ("14:10", "14:25"),
    ],
)
def test_zuhr_floor(adhan, expected):
    assert resolve_iqamah(PrayerName.ZUHR, adhan, 15, REGULAR_DAY) == expected


@pytest.mark.parametrize(
    "adhan, expected",
    [
        ("19:00", "19:30"),
        ("19:20", "19:30"),
        ("19:25", "19:35"),
        ("20:50", "21:00"),
        ("21:10", "21:20"),
        ("21:20", "21:30"),
        ("21:25", "21:30"),
        ("21:29", "21:30"),
        ("21:30", "21:30"),
        ("21:35", "21:35"),
        ("22:10", "22:10"),
    ],
)
def test_isha_standard_rule(adhan, expected):
    assert resolve_iqamah(PrayerName.ISHA, adhan, 10, REGULAR_DAY) == expected


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2026, 2, 17), "21:00"),  # Tuesday, first day of window
        (date(2026, 3, 3), "21:00"),  # Tuesday
        (date(2026, 3, 7), "20:45"),  # Saturday
        (date(2026, 3, 8), "20:45"),  # Sunday
        (date(2026, 3, 20), "21:00"),  # Friday, last day of window
        (date(2027, 3, 6), "20:45"),  # Saturday, following year
    ],
)
@pytest.mark.parametrize("adhan", ["18:40", "20:30", "21:45"])
def test_isha_seasonal_override_ignores_adhan(day, expected, adhan):
    assert resolve_iqamah(PrayerName.ISHA, adhan, 10, day) == expected


def test_isha_outside_window_uses_standard_rule():
    assert resolve_iqamah(PrayerName.ISHA, "19:00", 10, date(2026, 2, 16)) == "19:30"
    assert resolve_iqamah(PrayerName.ISHA, "21:35", 10, date(2026, 3, 21)) == "21:35"


def test_isha_window_can_be_disabled():
    rules = IqamahRules(isha_window=None)
    assert resolve_iqamah(PrayerName.ISHA, "20:30", 10, date(2026, 3, 3), rules) == "20:40"


def test_window_spanning_new_year():
    window = SeasonalWindow(start=(12, 20), end=(1, 10))
    assert window.contains(date(2025, 12, 25))
    assert window.contains(date(2026, 1, 10))
    assert not window.contains(date(2026, 1, 11))


def test_offset_defaults_to_table():
    assert resolve_iqamah(PrayerName.FAJR, "05:00", on_date=REGULAR_DAY) == "05:20"
    assert DEFAULT_RULES.offset_for(PrayerName.MAGHRIB) == 5


def test_resolve_prayers_in_order():
    schedule = DailySchedule(
        date=REGULAR_DAY,
        adhan={
            PrayerName.FAJR: "05:00",
            PrayerName.ZUHR: "13:00",
            PrayerName.ASR: "16:30",
            PrayerName.MAGHRIB: "19:00",
            PrayerName.ISHA: "20:30",
        },
    )
    resolved = resolve_prayers(schedule)
    assert [info.name for info in resolved] == list(PrayerName)
    assert [info.iqamah for info in resolved] == ["05:20", "13:15", "16:45", "19:05", "20:40"]


def test_build_rules_from_config():
    rules = build_rules_from_config(
        {
            "iqamah": {
                "offsets": {"fajr": 25, "bogus": 3, "asr": "x"},
                "zuhr_floor": "13:00",
                "zuhr_threshold": "not a time",
                "isha_window": {"start": "11-01", "end": "11-30"},
            }
        }
    )
    assert rules.offset_for(PrayerName.FAJR) == 25
    assert rules.offset_for(PrayerName.ASR) == 15
    assert rules.zuhr_floor == "13:00"
    assert rules.zuhr_threshold == "13:15"
    assert rules.isha_window == SeasonalWindow(start=(11, 1), end=(11, 30))


def test_build_rules_without_section_returns_defaults():
    assert build_rules_from_config({}) is DEFAULT_RULES


def test_build_rules_can_disable_window():
    rules = build_rules_from_config({"iqamah": {"isha_window": None}})
    assert rules.isha_window is None


def test_build_rules_keeps_defaults_for_unreadable_times():
    rules = build_rules_from_config({"iqamah": {"zuhr_floor": "\u00b2:30", "isha_latest": "21:30:xx"}})
    assert rules.zuhr_floor == DEFAULT_RULES.zuhr_floor
    assert rules.isha_latest == DEFAULT_RULES.isha_latest


@pytest.mark.parametrize("offsets", [[25, 10], "fajr=25"])
def test_build_rules_ignores_offsets_that_are_not_a_mapping(offsets):
    rules = build_rules_from_config({"iqamah": {"offsets": offsets}})
    for name in PrayerName:
        assert rules.offset_for(name) == DEFAULT_RULES.offset_for(name)
