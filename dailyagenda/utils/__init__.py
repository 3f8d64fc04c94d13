"""Utility helpers for Daily Agenda."""

from .logging import (
    VERBOSE,
    AutoColoredFormatter,
    TimestampedFileHandler,
    apply_command_line_overrides,
    get_log_level,
    setup_logging,
    stream_supports_color,
)

__all__ = [
    "VERBOSE",
    "AutoColoredFormatter",
    "TimestampedFileHandler",
    "apply_command_line_overrides",
    "get_log_level",
    "setup_logging",
    "stream_supports_color",
]
