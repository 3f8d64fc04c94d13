"""Command-line argument parsing for Daily Agenda."""

import argparse

from .. import __version__


def positive_int(value: str) -> int:
    """argparse type accepting integers greater than zero.

    Raises:
        argparse.ArgumentTypeError: If the value is not a positive integer
    """
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not an integer") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"'{value}' must be greater than zero")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser.

    Returns:
        Configured ArgumentParser instance

    Example:
        >>> parser = create_parser()
        >>> args = parser.parse_args(["--days", "5", "--once"])
    """
    parser = argparse.ArgumentParser(
        prog="dailyagenda",
        description="Daily Agenda - merged multi-day view of ICS calendars",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                   # Refresh and redraw every fetch_interval
  %(prog)s --once                            # Print the agenda once and exit
  %(prog)s --days 7 --calendar URL --calendar URL2
  %(prog)s --timezone Europe/Berlin --verbose
        """,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}", help="Show version information"
    )

    parser.add_argument("--config", metavar="PATH", help="Path to a YAML configuration file")

    agenda_group = parser.add_argument_group("agenda", "Agenda window and calendar options")

    agenda_group.add_argument(
        "--days", type=positive_int, metavar="N", help="Number of days to display"
    )

    agenda_group.add_argument(
        "--calendar",
        dest="calendars",
        action="append",
        metavar="URL",
        help="ICS calendar URL (repeatable; replaces configured calendars)",
    )

    agenda_group.add_argument(
        "--timezone", metavar="ZONE", help="IANA display timezone (default: system zone)"
    )

    agenda_group.add_argument(
        "--once", action="store_true", help="Fetch all calendars once, print the agenda and exit"
    )

    logging_group = parser.add_argument_group("logging", "Logging configuration options")

    logging_group.add_argument(
        "--log-level",
        choices=["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set console and file log level",
    )

    logging_group.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging (VERBOSE level)"
    )

    logging_group.add_argument(
        "--quiet", "-q", action="store_true", help="Only log errors to the console"
    )

    logging_group.add_argument(
        "--log-dir", metavar="PATH", help="Write log files to this directory"
    )

    logging_group.add_argument(
        "--no-log-colors", action="store_true", help="Disable colored console logging"
    )

    return parser
