"""Entry point for the mosque prayer board desktop application."""
from __future__ import annotations

import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Set

import pytz
from tzlocal import get_localzone_name

try:  # Prefer PyQt5, fall back to Qt for Python if available
    from PyQt5 import QtCore, QtGui, QtWidgets  # type: ignore
except Exception:  # pragma: no cover - fallback only used when PyQt5 missing
    try:
        from PySide2 import QtCore, QtGui, QtWidgets  # type: ignore
    except Exception:
        from PySide6 import QtCore, QtGui, QtWidgets  # type: ignore

try:  # Compatibility alias for Qt signal and slot decorators
    Signal = QtCore.pyqtSignal  # type: ignore[attr-defined]
    Slot = QtCore.pyqtSlot  # type: ignore[attr-defined]
except AttributeError:  # pragma: no cover - PySide compatibility
    Signal = QtCore.Signal  # type: ignore[attr-defined]
    Slot = QtCore.Slot  # type: ignore[attr-defined]

from iqamah import build_rules_from_config
from prayer_board import DEFAULT_RETRY_DELAY, PrayerBoard
from prayer_times import DEFAULT_SCHEDULE_URL, ISHA_ADHAN_CORRECTION, CsvScheduleProvider
from scheduler import RetryScheduler
from ui import PrayerBoardWindow

APP_ROOT = Path(__file__).parent
CONFIG_PATH = APP_ROOT / "config.json"
TRANSLATIONS_PATH = APP_ROOT / "translations.json"
DEFAULT_LANGUAGE = "fr"
TICK_INTERVAL_MS = 1000

logging.basicConfig(level=logging.DEBUG, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
LOGGER = logging.getLogger(__name__)


class _AsyncDispatcher(QtCore.QObject):
    """Provide main-thread delivery for background task callbacks."""

    success = Signal(object)
    error = Signal(object)

    def __init__(
        self,
        owner: "PrayerApp",
        on_success: Callable[[Any], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        super().__init__()
        self._owner = owner
        self._on_success = on_success
        self._on_error = on_error
        self.success.connect(self._handle_success)  # type: ignore[attr-defined]
        self.error.connect(self._handle_error)  # type: ignore[attr-defined]

    @Slot(object)
    def _handle_success(self, result: Any) -> None:
        LOGGER.debug("Dispatcher invoking success handler %s", getattr(self._on_success, "__name__", self._on_success))
        try:
            self._on_success(result)
        finally:
            self._owner._async_dispatchers.discard(self)
            self.deleteLater()

    @Slot(object)
    def _handle_error(self, exc: Exception) -> None:
        LOGGER.debug("Dispatcher invoking error handler %s", getattr(self._on_error, "__name__", self._on_error))
        try:
            self._on_error(exc)
        finally:
            self._owner._async_dispatchers.discard(self)
            self.deleteLater()


class _MainThreadInvoker(QtCore.QObject):
    """Run callables emitted from scheduler threads on the Qt main thread."""

    invoke = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self.invoke.connect(self._run)  # type: ignore[attr-defined]

    @Slot(object)
    def _run(self, callback: Callable[[], None]) -> None:
        callback()


class _MainThreadRetryScheduler:
    """Retry scheduler whose callbacks land on the Qt main thread."""

    def __init__(self, scheduler: RetryScheduler, invoker: _MainThreadInvoker) -> None:
        self._scheduler = scheduler
        self._invoker = invoker

    def schedule_retry(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        self._scheduler.schedule_retry(delay_seconds, lambda: self._invoker.invoke.emit(callback))


class PrayerApp(QtWidgets.QApplication):
    """Coordinates the window, the board controller and background loading."""

    def __init__(self, argv: list[str]) -> None:
        super().__init__(argv)
        self.setApplicationName("Prayer Times")
        self.setFont(QtGui.QFont("Ubuntu", 10))

        self._executor = ThreadPoolExecutor(max_workers=2)
        self._config = self._load_json(CONFIG_PATH, default={})
        self._translations = self._load_json(TRANSLATIONS_PATH, default={})
        self._async_dispatchers: Set[_AsyncDispatcher] = set()

        LOGGER.debug("Loaded config keys: %s", list(self._config.keys()))
        LOGGER.debug("Languages available: %s", list(self._translations.keys()))

        self.current_language = str(self._config.get("language", DEFAULT_LANGUAGE))

        provider = CsvScheduleProvider(str(self._config.get("schedule_url", DEFAULT_SCHEDULE_URL)))
        rules = build_rules_from_config(self._config)

        self.scheduler = RetryScheduler(self._system_timezone())
        self.scheduler.start()
        self._invoker = _MainThreadInvoker()

        self.window = PrayerBoardWindow()
        self.window.apply_theme(str(self._config.get("theme", "light")).lower())
        self.window.on_refresh(self.refresh_prayer_times)
        self.window.on_language_toggle(self.toggle_language)

        self.board = PrayerBoard(
            provider,
            self.window,
            _MainThreadRetryScheduler(self.scheduler, self._invoker),
            run_async=self._run_async,
            rules=rules,
            retry_delay=float(self._config.get("retry_delay_seconds", DEFAULT_RETRY_DELAY)),
            isha_adhan_correction=int(self._config.get("isha_adhan_correction", ISHA_ADHAN_CORRECTION)),
        )
        self._apply_language(self.current_language)
        self.window.show()

        self.tick_timer = QtCore.QTimer(self)
        self.tick_timer.timeout.connect(self.board.tick)  # type: ignore
        self.tick_timer.start(int(self._config.get("tick_interval_ms", TICK_INTERVAL_MS)))

        self.aboutToQuit.connect(self._cleanup)  # type: ignore

        self.board.start()
        self.board.tick()

    # ------------------------------------------------------------------
    def refresh_prayer_times(self) -> None:
        LOGGER.info("Manual refresh of prayer times requested")
        self.board.request_load()

    def toggle_language(self) -> None:
        languages = list(self._translations.keys()) or [DEFAULT_LANGUAGE]
        if len(languages) < 2:
            return
        current_index = languages.index(self.current_language) if self.current_language in languages else 0
        next_language = languages[(current_index + 1) % len(languages)]
        self.current_language = next_language
        self._apply_language(next_language)
        self.board.tick()

    def _apply_language(self, language_code: str) -> None:
        strings = self._strings_for_language(language_code)
        self.window.apply_translations(strings, language_code)
        self.board.set_strings(strings)

    def _strings_for_language(self, language_code: str) -> Dict[str, Any]:
        LOGGER.debug("Fetching translations for language %s", language_code)
        return self._translations.get(language_code, self._translations.get(DEFAULT_LANGUAGE, {}))

    def _system_timezone(self) -> str:
        try:
            tz_name = get_localzone_name()
            pytz.timezone(tz_name)
            LOGGER.debug("Resolved system timezone: %s", tz_name)
            return tz_name
        except Exception:
            LOGGER.warning("Falling back to UTC for system timezone resolution")
            return "UTC"

    def _run_async(self, func, on_success, on_error) -> None:
        LOGGER.debug("Submitting background task %s", getattr(func, "__name__", func))
        dispatcher = _AsyncDispatcher(self, on_success, on_error)
        self._async_dispatchers.add(dispatcher)
        future = self._executor.submit(func)

        def _done(future_result) -> None:
            try:
                result = future_result.result()
                LOGGER.debug("Background task %s completed successfully", getattr(func, "__name__", func))
            except Exception as exc:  # pragma: no cover - UI glue
                LOGGER.exception("Background task %s raised %s", getattr(func, "__name__", func), exc)
                dispatcher.error.emit(exc)
            else:
                dispatcher.success.emit(result)

        future.add_done_callback(_done)

    @staticmethod
    def _load_json(path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        if not path.exists():
            return default
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def _cleanup(self) -> None:
        self.tick_timer.stop()
        self.scheduler.shutdown()
        self._executor.shutdown(wait=False)


def main() -> int:
    app = PrayerApp(sys.argv)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
