"""Main window for the prayer board application."""
from __future__ import annotations

import textwrap
from typing import Any, Callable, Dict, Optional, Sequence

ACCENT_COLOR_HEX = "#15803d"

try:  # Prefer PyQt5, fall back to Qt for Python
    from PyQt5 import QtCore, QtGui, QtWidgets  # type: ignore
except Exception:  # pragma: no cover - fallback path
    try:
        from PySide2 import QtCore, QtGui, QtWidgets  # type: ignore
    except Exception:
        from PySide6 import QtCore, QtGui, QtWidgets  # type: ignore

from iqamah import ResolvedPrayer
from prayer_times import PRAYER_ORDER, PrayerName


class PrayerBoardWindow(QtWidgets.QMainWindow):
    """Window showing the clock, today's date, the countdown and one card per prayer.

    Implements the display sink used by :class:`prayer_board.PrayerBoard`:
    text slots ``clock``, ``date``, ``timer`` and ``error``, plus a highlight
    toggle per prayer. Unknown slots are ignored.
    """

    def __init__(self) -> None:
        super().__init__()
        self.translations: Dict[str, Any] = {}
        self.prayer_name_map: Dict[str, str] = {}
        self._active: Dict[PrayerName, bool] = {}
        self._theme: str = "light"

        self.setObjectName("PrayerWindow")
        self.setWindowTitle("Prayer Times")
        self.setAttribute(QtCore.Qt.WA_StyledBackground, True)
        self.resize(1024, 640)

        central = QtWidgets.QWidget()
        self.setCentralWidget(central)

        root_layout = QtWidgets.QVBoxLayout(central)
        root_layout.setContentsMargins(24, 24, 24, 24)
        root_layout.setSpacing(16)

        header = QtWidgets.QHBoxLayout()
        header.setSpacing(12)

        self.clock_label = QtWidgets.QLabel("--:--:--")
        self.clock_label.setObjectName("clockLabel")
        clock_font = QtGui.QFont()
        clock_font.setPointSize(36)
        clock_font.setBold(True)
        self.clock_label.setFont(clock_font)
        header.addWidget(self.clock_label)
        header.addStretch(1)

        self.refresh_button = QtWidgets.QToolButton()
        self.refresh_button.setObjectName("ActionButton")
        self.refresh_button.setText("↻")
        self.language_button = QtWidgets.QToolButton()
        self.language_button.setObjectName("ActionButton")
        self.language_button.setText("FR")
        header.addWidget(self.refresh_button)
        header.addWidget(self.language_button)
        root_layout.addLayout(header)

        self.date_label = QtWidgets.QLabel()
        self.date_label.setObjectName("dateLabel")
        self.date_label.setWordWrap(True)
        root_layout.addWidget(self.date_label)

        self.timer_label = QtWidgets.QLabel()
        self.timer_label.setObjectName("timerLabel")
        timer_font = QtGui.QFont()
        timer_font.setPointSize(20)
        timer_font.setBold(True)
        self.timer_label.setFont(timer_font)
        self.timer_label.setWordWrap(True)
        root_layout.addWidget(self.timer_label)

        self.prayer_container = QtWidgets.QWidget()
        self.prayer_container.setObjectName("prayerContainer")
        self.prayer_layout = QtWidgets.QHBoxLayout(self.prayer_container)
        self.prayer_layout.setContentsMargins(0, 0, 0, 0)
        self.prayer_layout.setSpacing(16)
        root_layout.addWidget(self.prayer_container)

        self.error_label = QtWidgets.QLabel()
        self.error_label.setObjectName("errorLabel")
        self.error_label.setWordWrap(True)
        root_layout.addWidget(self.error_label)
        root_layout.addStretch(1)

        self.prayer_cards: Dict[PrayerName, Dict[str, QtWidgets.QWidget]] = {}
        for name in PRAYER_ORDER:
            card = self._build_prayer_card(name)
            self.prayer_layout.addWidget(card["frame"])

        self._slots: Dict[str, QtWidgets.QLabel] = {
            "clock": self.clock_label,
            "date": self.date_label,
            "timer": self.timer_label,
            "error": self.error_label,
        }

        self._refresh_handler: Optional[Callable[[], None]] = None
        self._language_handler: Optional[Callable[[], None]] = None
        self.refresh_button.clicked.connect(self._emit_refresh)  # type: ignore
        self.language_button.clicked.connect(self._emit_language_toggle)  # type: ignore

        self.apply_theme("light")

    # -- Display sink ---------------------------------------------------------
    def set_text(self, slot: str, text: str) -> None:
        label = self._slots.get(slot)
        if label is None:
            return
        if label.text() != text:
            label.setText(text)

    def set_highlight(self, prayer: PrayerName, active: bool) -> None:
        card = self.prayer_cards.get(prayer)
        if card is None or self._active.get(prayer) == active:
            return
        self._active[prayer] = active

        frame = card["frame"]
        frame.setProperty("state", "active" if active else "default")
        frame.style().unpolish(frame)
        frame.style().polish(frame)

        name_label = card["name"]
        name_label.setProperty("active", active)
        name_label.style().unpolish(name_label)
        name_label.style().polish(name_label)

    def show_prayers(self, prayers: Sequence[ResolvedPrayer]) -> None:
        adhan_text = self.translations.get("adhan_label", "Adhan")
        iqamah_text = self.translations.get("iqamah_label", "Iqamah")
        for info in prayers:
            card = self.prayer_cards.get(info.name)
            if card is None:
                continue
            card["name"].setText(self._localized_name(info.name).upper())
            card["adhan"].setText(f"{adhan_text}: {info.adhan}")
            card["iqamah"].setText(f"{iqamah_text}: {info.iqamah}")

    def is_highlighted(self, prayer: PrayerName) -> bool:
        return bool(self._active.get(prayer))

    # -- Wiring ---------------------------------------------------------------
    def on_refresh(self, handler: Callable[[], None]) -> None:
        self._refresh_handler = handler

    def on_language_toggle(self, handler: Callable[[], None]) -> None:
        self._language_handler = handler

    def _emit_refresh(self) -> None:
        if self._refresh_handler:
            self._refresh_handler()

    def _emit_language_toggle(self) -> None:
        if self._language_handler:
            self._language_handler()

    def apply_translations(self, translations: Dict[str, Any], language_code: str) -> None:
        self.translations = translations or {}
        self.prayer_name_map = dict(self.translations.get("prayers", {}) or {})
        self.setWindowTitle(self.translations.get("app_title", "Prayer Times"))
        self.refresh_button.setToolTip(self.translations.get("refresh_tooltip", "Reload prayer times"))
        self.language_button.setText(language_code.upper())
        for name, card in self.prayer_cards.items():
            card["name"].setText(self._localized_name(name).upper())

    # -- Builders -------------------------------------------------------------
    def _build_prayer_card(self, prayer_name: PrayerName) -> Dict[str, QtWidgets.QWidget]:
        frame = QtWidgets.QFrame()
        frame.setObjectName("prayerCard")
        frame.setProperty("state", "default")
        frame.setSizePolicy(QtWidgets.QSizePolicy.Preferred, QtWidgets.QSizePolicy.Fixed)

        layout = QtWidgets.QVBoxLayout(frame)
        layout.setContentsMargins(18, 18, 18, 18)
        layout.setSpacing(6)

        name_label = QtWidgets.QLabel(prayer_name.label.upper())
        name_label.setObjectName("prayerName")
        name_label.setProperty("active", False)

        adhan_label = QtWidgets.QLabel("--:--")
        adhan_label.setObjectName("prayerTime")

        iqamah_label = QtWidgets.QLabel("--:--")
        iqamah_label.setObjectName("prayerTime")

        layout.addWidget(name_label)
        layout.addWidget(adhan_label)
        layout.addWidget(iqamah_label)
        layout.addStretch()

        card = {
            "frame": frame,
            "name": name_label,
            "adhan": adhan_label,
            "iqamah": iqamah_label,
        }
        self.prayer_cards[prayer_name] = card
        return card

    def _localized_name(self, name: PrayerName) -> str:
        return str(self.prayer_name_map.get(name.value, name.label))

    # -- Theme ----------------------------------------------------------------
    def apply_theme(self, theme: str) -> None:
        """Apply the selected theme stylesheet."""
        if theme not in {"light", "dark"}:
            theme = "light"
        self._theme = theme
        self.setStyleSheet(self._stylesheet_for_theme(theme))

    def _stylesheet_for_theme(self, theme: str) -> str:
        if theme == "dark":
            background, card, border, text, muted = "#0b1628", "#13243d", "#1f3452", "#f1f5ff", "#b7c3df"
        else:
            background, card, border, text, muted = "#f4f7f5", "#ffffff", "#dbe7df", "#0f172a", "#475569"
        return textwrap.dedent(
            f"""
            QWidget {{
                font-family: 'Ubuntu', 'Segoe UI', sans-serif;
                color: {text};
            }}

            #PrayerWindow {{
                background-color: {background};
            }}

            QLabel#dateLabel {{
                color: {muted};
                font-size: 16px;
            }}

            QLabel#timerLabel {{
                color: {ACCENT_COLOR_HEX};
            }}

            QLabel#errorLabel {{
                color: #dc2626;
                font-size: 13px;
            }}

            QFrame#prayerCard {{
                background-color: {card};
                border-radius: 18px;
                border: 1px solid {border};
            }}

            QFrame#prayerCard[state="active"] {{
                background-color: {ACCENT_COLOR_HEX};
                border: 1px solid {ACCENT_COLOR_HEX};
            }}

            QLabel#prayerName {{
                font-size: 18px;
                font-weight: 600;
            }}

            QLabel#prayerName[active="true"], QFrame#prayerCard[state="active"] QLabel {{
                color: #ffffff;
            }}

            QLabel#prayerTime {{
                font-size: 15px;
            }}

            QToolButton#ActionButton {{
                font-size: 16px;
                padding: 6px 10px;
                border-radius: 12px;
                border: 1px solid {border};
                background-color: {card};
            }}
            """
        )
