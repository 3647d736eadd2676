"""UI components for the prayer board application."""

from .window import PrayerBoardWindow

__all__ = ["PrayerBoardWindow"]
