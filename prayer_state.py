"""Determine the current/next prayer and what the countdown should show."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from iqamah import DEFAULT_RULES, IqamahRules, ResolvedPrayer, resolve_iqamah
from prayer_times import PRAYER_ORDER, DailySchedule, PrayerName
from time_utils import minutes_since_midnight, moment_on

IN_PROGRESS_WINDOW = timedelta(minutes=30)


@dataclass(frozen=True)
class AwaitingIqamah:
    prayer: ResolvedPrayer
    remaining: timedelta


@dataclass(frozen=True)
class InProgress:
    prayer: ResolvedPrayer


@dataclass(frozen=True)
class AwaitingNextAdhan:
    prayer: PrayerName
    adhan: str
    remaining: timedelta


DisplayState = Union[AwaitingIqamah, InProgress, AwaitingNextAdhan]


@dataclass(frozen=True)
class PrayerState:
    current: Optional[ResolvedPrayer]
    next: PrayerName
    active: PrayerName
    display: DisplayState


def compute_prayer_state(
    schedule: DailySchedule,
    now: datetime,
    rules: IqamahRules = DEFAULT_RULES,
) -> PrayerState:
    """Work out the prayer state of *schedule* at instant *now*.

    The current prayer is the last one whose Adhan has passed; after Isha the
    next prayer wraps to tomorrow's Fajr.
    """
    today = now.date()
    now_minutes = minutes_since_midnight(now)

    current: Optional[ResolvedPrayer] = None
    next_name: Optional[PrayerName] = None
    for index, name in enumerate(PRAYER_ORDER):
        if now_minutes < minutes_since_midnight(schedule.adhan_for(name)):
            next_name = name
            if index > 0:
                current = _resolve(schedule, PRAYER_ORDER[index - 1], today, rules)
            break

    if next_name is None:
        current = _resolve(schedule, PRAYER_ORDER[-1], today, rules)
        next_name = PRAYER_ORDER[0]

    next_adhan = schedule.adhan_for(next_name)

    if current is None:
        remaining = moment_on(today, next_adhan) - now
        display: DisplayState = AwaitingNextAdhan(next_name, next_adhan, remaining)
        return PrayerState(current=None, next=next_name, active=next_name, display=display)

    iqamah_moment = moment_on(today, current.iqamah)
    before_iqamah = now_minutes < minutes_since_midnight(current.iqamah)
    within_window = now - iqamah_moment <= IN_PROGRESS_WINDOW
    first_adhan_minutes = minutes_since_midnight(schedule.adhan_for(PRAYER_ORDER[0]))

    active = current.name if before_iqamah or within_window else next_name

    if before_iqamah:
        display = AwaitingIqamah(current, iqamah_moment - now)
    elif within_window or (current.name is PrayerName.ISHA and now_minutes >= first_adhan_minutes):
        display = InProgress(current)
    else:
        target = moment_on(today, next_adhan)
        if target <= now:
            target += timedelta(days=1)
        display = AwaitingNextAdhan(next_name, next_adhan, target - now)

    return PrayerState(current=current, next=next_name, active=active, display=display)


def _resolve(schedule: DailySchedule, name: PrayerName, today: date, rules: IqamahRules) -> ResolvedPrayer:
    adhan = schedule.adhan_for(name)
    return ResolvedPrayer(name=name, adhan=adhan, iqamah=resolve_iqamah(name, adhan, on_date=today, rules=rules))
