"""Command-line overrides for agenda settings."""

import logging
from typing import Any

from ..config.settings import CalendarSourceSettings

logger = logging.getLogger(__name__)


def apply_cli_overrides(settings: Any, args: Any) -> Any:
    """Apply agenda-related command-line overrides to settings.

    Args:
        settings: Current settings object
        args: Parsed command line arguments

    Returns:
        Updated settings object
    """
    if getattr(args, "days", None):
        settings.number_of_days = args.days
        logger.debug(f"Window length overridden: {args.days} days")

    if getattr(args, "calendars", None):
        settings.calendars = [CalendarSourceSettings(url=url) for url in args.calendars]
        logger.debug(f"Calendars overridden: {len(args.calendars)} from command line")

    if getattr(args, "timezone", None):
        settings.timezone = args.timezone

    return settings
