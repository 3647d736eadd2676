"""Board controller: owns the day's schedule and drives the display every tick."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from functools import partial
from typing import Any, Callable, Dict, Optional, Protocol, Sequence

from errors import ScheduleError
from iqamah import DEFAULT_RULES, IqamahRules, ResolvedPrayer, resolve_prayers
from prayer_state import AwaitingIqamah, AwaitingNextAdhan, DisplayState, InProgress, PrayerState, compute_prayer_state
from prayer_times import ISHA_ADHAN_CORRECTION, PRAYER_ORDER, CsvScheduleProvider, DailySchedule, PrayerName, load_daily_schedule
from time_utils import format_countdown

LOGGER = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 60

DEFAULT_STRINGS: Dict[str, Any] = {
    "timer_iqamah": "Iqamah {prayer}: {countdown}",
    "timer_in_progress": "Salat {prayer}",
    "timer_next": "Prochaine: {prayer} dans {countdown}",
    "reconnecting": "Reconnexion aux horaires...",
    "load_error": "Horaires indisponibles. Nouvelle tentative en cours.",
    "date_format": "{weekday} {day:02d} {month} {year}",
    "weekdays": ["Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi", "Dimanche"],
    "months": [
        "Janvier",
        "Février",
        "Mars",
        "Avril",
        "Mai",
        "Juin",
        "Juillet",
        "Août",
        "Septembre",
        "Octobre",
        "Novembre",
        "Décembre",
    ],
    "prayers": {},
}


class DisplaySink(Protocol):
    def set_text(self, slot: str, text: str) -> None:
        ...

    def set_highlight(self, prayer: PrayerName, active: bool) -> None:
        ...

    def show_prayers(self, prayers: Sequence[ResolvedPrayer]) -> None:
        ...


class SupportsRetry(Protocol):
    def schedule_retry(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        ...


AsyncRunner = Callable[[Callable[[], Any], Callable[[Any], None], Callable[[Exception], None]], None]


def run_inline(func: Callable[[], Any], on_success: Callable[[Any], None], on_error: Callable[[Exception], None]) -> None:
    """Run *func* synchronously and route its outcome to the callbacks."""
    try:
        result = func()
    except Exception as exc:
        on_error(exc)
    else:
        on_success(result)


class PrayerBoard:
    """Keeps one :class:`DailySchedule` per calendar day and renders it each tick.

    Loads are tagged with the date they were requested for; a result arriving
    after the date moved on is dropped. While no schedule is loaded the board
    shows the reconnecting message and keeps at most one retry scheduled.
    """

    def __init__(
        self,
        provider: CsvScheduleProvider,
        display: DisplaySink,
        retry_scheduler: SupportsRetry,
        clock: Callable[[], datetime] = datetime.now,
        run_async: AsyncRunner = run_inline,
        rules: IqamahRules = DEFAULT_RULES,
        strings: Optional[Dict[str, Any]] = None,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        isha_adhan_correction: int = ISHA_ADHAN_CORRECTION,
    ) -> None:
        self._provider = provider
        self._display = display
        self._retry_scheduler = retry_scheduler
        self._clock = clock
        self._run_async = run_async
        self._rules = rules
        self._strings: Dict[str, Any] = {}
        self._retry_delay = retry_delay
        self._isha_correction = isha_adhan_correction

        self._schedule: Optional[DailySchedule] = None
        self._current_date: Optional[date] = None
        self._retry_pending = False
        self._loads_in_flight: Counter = Counter()
        self._last_active: Optional[PrayerName] = None

        self.set_strings(strings or {})

    @property
    def schedule(self) -> Optional[DailySchedule]:
        return self._schedule

    @property
    def current_date(self) -> Optional[date]:
        return self._current_date

    @property
    def retry_pending(self) -> bool:
        return self._retry_pending

    def set_strings(self, strings: Dict[str, Any]) -> None:
        merged = dict(DEFAULT_STRINGS)
        merged.update({key: value for key, value in strings.items() if value})
        self._strings = merged
        if self._schedule is not None:
            self._render_cards(self._schedule)

    # ------------------------------------------------------------------
    def start(self) -> None:
        self._current_date = self._clock().date()
        LOGGER.info("Starting prayer board for %s", self._current_date)
        self.request_load()

    def tick(self) -> Optional[PrayerState]:
        now = self._clock()
        self._display.set_text("clock", now.strftime("%H:%M:%S"))

        today = now.date()
        if today != self._current_date:
            if self._current_date is not None:
                LOGGER.info("Day rollover %s -> %s; reloading schedule", self._current_date, today)
            self._current_date = today
            self._schedule = None
            self.request_load()

        if self._schedule is None:
            self._display.set_text("timer", self._strings["reconnecting"])
            self._ensure_retry()
            return None

        self._display.set_text("date", self.format_date(today))
        state = compute_prayer_state(self._schedule, now, self._rules)
        if state.active is not self._last_active:
            LOGGER.info("Active prayer is now %s (next %s)", state.active.label, state.next.label)
            self._last_active = state.active
        for name in PRAYER_ORDER:
            self._display.set_highlight(name, name is state.active)
        self._display.set_text("timer", self.format_timer(state.display))
        return state

    def request_load(self, from_retry: bool = False) -> None:
        if self._current_date is None:
            self._current_date = self._clock().date()
        requested = self._current_date
        self._loads_in_flight[requested] += 1
        LOGGER.debug("Requesting schedule load for %s (retry=%s)", requested, from_retry)

        def task() -> DailySchedule:
            return load_daily_schedule(self._provider, requested, self._isha_correction)

        self._run_async(
            task,
            partial(self._handle_load_success, requested, from_retry),
            partial(self._handle_load_error, requested, from_retry),
        )

    # ------------------------------------------------------------------
    def _handle_load_success(self, requested: date, from_retry: bool, schedule: DailySchedule) -> None:
        self._finish_load(requested, from_retry)
        if requested != self._current_date:
            LOGGER.info("Discarding stale schedule for %s (current date %s)", requested, self._current_date)
            return

        self._schedule = schedule
        LOGGER.info("Prayer schedule loaded for %s", requested)
        self._display.set_text("error", "")
        self._display.set_text("date", self.format_date(requested))
        self._render_cards(schedule)

    def _handle_load_error(self, requested: date, from_retry: bool, error: Exception) -> None:
        self._finish_load(requested, from_retry)
        if requested != self._current_date:
            LOGGER.info("Ignoring failed stale load for %s: %s", requested, error)
            return

        if isinstance(error, ScheduleError):
            LOGGER.error("Failed to load prayer schedule for %s: %s", requested, error)
        else:
            LOGGER.error("Unexpected error loading prayer schedule for %s", requested, exc_info=error)
        self._schedule = None
        self._display.set_text("error", self._strings["load_error"])

    def _finish_load(self, requested: date, from_retry: bool) -> None:
        self._loads_in_flight[requested] -= 1
        if self._loads_in_flight[requested] <= 0:
            del self._loads_in_flight[requested]
        if from_retry:
            self._retry_pending = False

    def _ensure_retry(self) -> None:
        if self._retry_pending or self._loads_in_flight.get(self._current_date):
            return
        self._retry_pending = True
        LOGGER.info("Scheduling schedule reload in %s seconds", self._retry_delay)
        self._retry_scheduler.schedule_retry(self._retry_delay, self._retry)

    def _retry(self) -> None:
        LOGGER.info("Retrying prayer schedule load")
        self.request_load(from_retry=True)

    def _render_cards(self, schedule: DailySchedule) -> None:
        self._display.show_prayers(resolve_prayers(schedule, rules=self._rules))

    # ------------------------------------------------------------------
    def prayer_label(self, name: PrayerName) -> str:
        prayers = self._strings.get("prayers") or {}
        return str(prayers.get(name.value, name.label)).upper()

    def format_timer(self, display: DisplayState) -> str:
        if isinstance(display, AwaitingIqamah):
            return self._strings["timer_iqamah"].format(
                prayer=self.prayer_label(display.prayer.name),
                countdown=format_countdown(display.remaining, with_hours=False),
            )
        if isinstance(display, InProgress):
            return self._strings["timer_in_progress"].format(prayer=self.prayer_label(display.prayer.name))
        if isinstance(display, AwaitingNextAdhan):
            return self._strings["timer_next"].format(
                prayer=self.prayer_label(display.prayer),
                countdown=format_countdown(display.remaining),
            )
        raise TypeError(f"Unknown display state: {display!r}")

    def format_date(self, day: date) -> str:
        weekdays = self._strings["weekdays"]
        months = self._strings["months"]
        return self._strings["date_format"].format(
            weekday=weekdays[day.weekday()],
            day=day.day,
            month=months[day.month - 1],
            year=day.year,
        )
