"""CLI module for Daily Agenda.

Parses arguments, builds settings (YAML, environment, command line), configures
logging and the display timezone, then runs the selected mode.
"""

from pathlib import Path
from typing import List, Optional

from ..config.settings import AgendaSettings
from ..timezone import TimezoneError, configure_timezone_service
from ..utils.logging import apply_command_line_overrides, setup_logging
from .config import apply_cli_overrides
from .modes import run_agenda_mode, run_once_mode
from .parser import create_parser, positive_int


def build_settings(args) -> AgendaSettings:
    """Settings with command-line overrides applied."""
    if args.config:
        settings = AgendaSettings(config_file=Path(args.config))
    else:
        settings = AgendaSettings()

    apply_command_line_overrides(settings, args)
    apply_cli_overrides(settings, args)
    return settings


async def main_entry(argv: Optional[List[str]] = None) -> int:
    """Main entry point with argument parsing.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = build_settings(args)
    logger = setup_logging(settings)

    try:
        timezone_service = configure_timezone_service(settings.timezone)
    except TimezoneError as e:
        logger.error(str(e))
        return 1

    if not settings.calendars:
        logger.warning("No calendars configured; use --calendar URL or the calendars setting")

    if args.once:
        return await run_once_mode(settings, timezone_service)
    return await run_agenda_mode(settings, timezone_service)


__all__ = [
    "apply_cli_overrides",
    "build_settings",
    "create_parser",
    "main_entry",
    "positive_int",
    "run_agenda_mode",
    "run_once_mode",
]
