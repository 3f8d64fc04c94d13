"""Logging setup for Daily Agenda.

Everything logs through ``logging.getLogger(__name__)``; ``setup_logging``
attaches the handlers to the ``dailyagenda`` package logger once at startup.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, TextIO, Union

if TYPE_CHECKING:
    from ..config.settings import AgendaSettings

PACKAGE_LOGGER = "dailyagenda"

# Sits between DEBUG (10) and INFO (20)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

THIRD_PARTY_LOGGERS = ("httpx", "httpcore", "asyncio")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
FILE_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
FILE_FORMAT_WITH_FUNCTIONS = "%(asctime)s %(name)s %(levelname)s %(funcName)s:%(lineno)d %(message)s"


def _log_verbose(self: logging.Logger, message: Any, *args: Any, **kwargs: Any) -> None:
    """``logger.verbose(...)``: more detail than INFO, less noise than DEBUG."""
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


logging.Logger.verbose = _log_verbose  # type: ignore[attr-defined]


def get_log_level(level_name: str) -> int:
    """Numeric level for a name such as ``"info"`` or ``"VERBOSE"``.

    Raises:
        ValueError: If the name is not a known level
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    return level


def stream_supports_color(stream: TextIO) -> bool:
    """Whether ANSI colors should be written to ``stream``."""
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    return os.environ.get("TERM", "").lower() != "dumb"


class AutoColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when the output is a color terminal."""

    LEVEL_COLORS = {
        "DEBUG": "35",
        "VERBOSE": "32",
        "INFO": "34",
        "WARNING": "33",
        "ERROR": "31",
        "CRITICAL": "1;31",
    }

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        enable_colors: bool = True,
        stream: Optional[TextIO] = None,
    ) -> None:
        super().__init__(fmt, datefmt)
        self.use_colors = enable_colors and stream_supports_color(stream or sys.stderr)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelname)
        if not self.use_colors or color is None:
            return text
        return text.replace(record.levelname, f"\033[{color}m{record.levelname}\033[0m", 1)


class TimestampedFileHandler(logging.FileHandler):
    """Writes each run to ``<prefix>_<YYYYmmdd_HHMMSS>.log`` and prunes old runs."""

    def __init__(
        self, log_dir: Union[str, Path], prefix: str = PACKAGE_LOGGER, max_files: int = 5
    ) -> None:
        self.log_dir = Path(log_dir)
        self.prefix = prefix
        self.max_files = max_files

        self.log_dir.mkdir(parents=True, exist_ok=True)
        started = datetime.now().strftime("%Y%m%d_%H%M%S")
        super().__init__(self.log_dir / f"{prefix}_{started}.log", encoding="utf-8")

        self.prune_old_logs()

    def prune_old_logs(self) -> None:
        """Keep only the ``max_files`` most recently modified log files."""
        runs = sorted(
            self.log_dir.glob(f"{self.prefix}_*.log"),
            key=lambda path: path.stat().st_mtime,
            reverse=True,
        )
        for stale in runs[self.max_files :]:
            try:
                stale.unlink()
            except OSError as e:
                sys.stderr.write(f"Could not remove old log file {stale}: {e}\n")


def _console_handler(settings: "AgendaSettings") -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(get_log_level(settings.logging.console_level))
    handler.setFormatter(
        AutoColoredFormatter(
            CONSOLE_FORMAT, datefmt="%H:%M:%S", enable_colors=settings.logging.console_colors
        )
    )
    return handler


def _file_handler(settings: "AgendaSettings") -> TimestampedFileHandler:
    handler = TimestampedFileHandler(
        settings.log_directory,
        prefix=settings.logging.file_prefix,
        max_files=settings.logging.max_log_files,
    )
    handler.setLevel(get_log_level(settings.logging.file_level))
    file_format = (
        FILE_FORMAT_WITH_FUNCTIONS if settings.logging.include_function_names else FILE_FORMAT
    )
    handler.setFormatter(logging.Formatter(file_format, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(settings: "AgendaSettings") -> logging.Logger:
    """Configure the ``dailyagenda`` logger from ``settings.logging``.

    Replaces any handlers from an earlier call, so it is safe to call again
    after the settings change.

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)  # handlers filter
    logger.propagate = False

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    if settings.logging.console_enabled:
        logger.addHandler(_console_handler(settings))

    if settings.logging.file_enabled:
        file_handler = _file_handler(settings)
        logger.addHandler(file_handler)
        logger.info(f"Writing log file {file_handler.baseFilename}")

    quiet_level = get_log_level(settings.logging.third_party_level)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    logger.debug(f"Console logging at {settings.logging.console_level}")
    return logger


def apply_command_line_overrides(settings: "AgendaSettings", args: Any) -> "AgendaSettings":
    """Copy ``--log-level``, ``--verbose``, ``--quiet``, ``--log-dir`` and
    ``--no-log-colors`` into ``settings.logging``.

    ``--verbose`` beats ``--log-level``; ``--quiet`` only affects the console.
    """
    log_settings = settings.logging

    level = "VERBOSE" if getattr(args, "verbose", False) else getattr(args, "log_level", None)
    if level:
        log_settings.console_level = level
        log_settings.file_level = level

    if getattr(args, "quiet", False):
        log_settings.console_level = "ERROR"

    log_dir = getattr(args, "log_dir", None)
    if log_dir:
        log_settings.file_directory = log_dir
        log_settings.file_enabled = True

    if getattr(args, "no_log_colors", False):
        log_settings.console_colors = False

    return settings
