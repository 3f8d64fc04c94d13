"""Configuration management for Daily Agenda."""

from .settings import (
    AgendaSettings,
    CalendarSourceSettings,
    LoggingSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "AgendaSettings",
    "CalendarSourceSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
]
