"""Execution modes for the Daily Agenda CLI."""

from .agenda import run_agenda_mode, run_once_mode

__all__ = ["run_agenda_mode", "run_once_mode"]
