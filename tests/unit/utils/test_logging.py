"""Unit tests for logging setup."""

import argparse
import io
import logging
from unittest.mock import Mock, patch

import pytest

from dailyagenda.config.settings import LoggingSettings
from dailyagenda.utils.logging import (
    VERBOSE,
    AutoColoredFormatter,
    TimestampedFileHandler,
    apply_command_line_overrides,
    get_log_level,
    setup_logging,
    stream_supports_color,
)


class TestLogLevels:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("DEBUG", logging.DEBUG),
            ("verbose", VERBOSE),
            ("Info", logging.INFO),
            ("ERROR", logging.ERROR),
        ],
    )
    def test_get_log_level(self, name, expected):
        assert get_log_level(name) == expected

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            get_log_level("LOUD")

    def test_verbose_method(self, caplog):
        logger = logging.getLogger("dailyagenda.tests")

        with caplog.at_level(VERBOSE, logger="dailyagenda"):
            logger.verbose("merged %d occurrences", 3)

        assert caplog.records[-1].levelname == "VERBOSE"
        assert caplog.records[-1].getMessage() == "merged 3 occurrences"


class TestAutoColoredFormatter:
    def test_colors_disabled(self):
        formatter = AutoColoredFormatter("%(levelname)s %(message)s", enable_colors=False)
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)

        assert formatter.format(record) == "ERROR boom"

    def test_colors_applied_to_level_name(self):
        with patch("dailyagenda.utils.logging.stream_supports_color", return_value=True):
            formatter = AutoColoredFormatter("%(levelname)s %(message)s")
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)

        assert formatter.format(record) == "\033[31mERROR\033[0m boom"

    def test_no_colors_for_non_tty(self):
        assert stream_supports_color(io.StringIO()) is False

    def test_no_color_environment(self, monkeypatch):
        tty = Mock()
        tty.isatty.return_value = True
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert stream_supports_color(tty) is True

        monkeypatch.setenv("NO_COLOR", "1")
        assert stream_supports_color(tty) is False


class TestTimestampedFileHandler:
    def test_creates_log_file(self, tmp_path):
        handler = TimestampedFileHandler(tmp_path / "logs", prefix="agenda")
        handler.close()

        files = list((tmp_path / "logs").glob("agenda_*.log"))
        assert len(files) == 1

    def test_old_files_are_removed(self, tmp_path):
        for index in range(4):
            (tmp_path / f"agenda_2024010{index}_000000.log").write_text("old")

        handler = TimestampedFileHandler(tmp_path, prefix="agenda", max_files=2)
        handler.close()

        assert len(list(tmp_path.glob("agenda_*.log"))) == 2


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_console_handler(self, test_settings):
        logger = setup_logging(test_settings)

        assert logger.name == "dailyagenda"
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.ERROR
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_repeated_setup_does_not_duplicate_handlers(self, test_settings):
        setup_logging(test_settings)
        logger = setup_logging(test_settings)

        assert len(logger.handlers) == 1

    def test_file_handler(self, test_settings, tmp_path):
        test_settings.logging = LoggingSettings(
            console_enabled=False, file_enabled=True, file_level="INFO"
        )
        test_settings.log_directory = tmp_path

        logger = setup_logging(test_settings)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], TimestampedFileHandler)
        assert logger.handlers[0].level == logging.INFO
        assert list(tmp_path.glob("dailyagenda_*.log"))


class TestCommandLineOverrides:
    """Tests for apply_command_line_overrides()."""

    def test_log_level(self, test_settings):
        args = argparse.Namespace(log_level="DEBUG")

        apply_command_line_overrides(test_settings, args)

        assert test_settings.logging.console_level == "DEBUG"
        assert test_settings.logging.file_level == "DEBUG"

    def test_verbose_and_quiet(self, test_settings):
        apply_command_line_overrides(test_settings, argparse.Namespace(verbose=True))
        assert test_settings.logging.console_level == "VERBOSE"

        apply_command_line_overrides(test_settings, argparse.Namespace(quiet=True))
        assert test_settings.logging.console_level == "ERROR"

    def test_log_dir_enables_file_logging(self, test_settings, tmp_path):
        apply_command_line_overrides(test_settings, argparse.Namespace(log_dir=str(tmp_path)))

        assert test_settings.logging.file_enabled is True
        assert test_settings.logging.file_directory == str(tmp_path)

    def test_no_log_colors(self, test_settings):
        apply_command_line_overrides(test_settings, argparse.Namespace(no_log_colors=True))

        assert test_settings.logging.console_colors is False
