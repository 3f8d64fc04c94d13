"""Display layer for Daily Agenda."""

from .console_renderer import ConsoleRenderer

__all__ = ["ConsoleRenderer"]
