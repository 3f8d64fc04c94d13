"""Shared test configuration with lightweight fixtures."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

import pytest

from dailyagenda.agenda.models import Occurrence, Window
from dailyagenda.config.settings import CalendarSourceSettings, LoggingSettings
from dailyagenda.ics.models import RawCalendarEntry, ValueType
from dailyagenda.timezone import TimezoneService, reset_timezone_service

UTC = timezone.utc


@pytest.fixture
def test_settings() -> Any:
    """Create lightweight test settings without file I/O."""

    class MockSettings:
        def __init__(self) -> None:
            # Calendars and window
            self.calendars: list = []
            self.number_of_days = 3
            self.fetch_interval = 300
            self.timezone = None
            self.rrule_max_occurrences = 10000

            # Display settings
            self.show_all_day_events = True
            self.show_event_count = True
            self.display_time_format = "%H:%M"
            self.display_date_format = "%Y-%m-%d"
            self.all_day_event_text = "All Day"

            # Network
            self.app_name = "DailyAgenda-Test"
            self.request_timeout = 5
            self.max_retries = 2
            self.retry_backoff_factor = 1.0

            # Logging
            self.logging = LoggingSettings(console_level="ERROR")

    return MockSettings()


@pytest.fixture
def calendar_settings() -> Callable[..., CalendarSourceSettings]:
    """Factory for configured calendar entries."""

    def _make(url: str, **kwargs: Any) -> CalendarSourceSettings:
        return CalendarSourceSettings(url=url, **kwargs)

    return _make


@pytest.fixture
def utc_service() -> TimezoneService:
    """Timezone service displaying UTC with a fixed clock."""
    return TimezoneService(
        display_tz=UTC, time_provider=lambda: datetime(2025, 6, 2, 8, 0, tzinfo=UTC)
    )


@pytest.fixture(autouse=True)
def _reset_global_timezone_service():
    """Keep the global timezone service from leaking between tests."""
    reset_timezone_service()
    yield
    reset_timezone_service()


@pytest.fixture(autouse=True)
def _isolate_package_logger():
    """Let caplog see package records and drop handlers installed by setup_logging()."""
    package_logger = logging.getLogger("dailyagenda")
    propagate = package_logger.propagate
    handlers = list(package_logger.handlers)
    package_logger.propagate = True
    yield
    for handler in list(package_logger.handlers):
        if handler not in handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.propagate = propagate


@pytest.fixture
def make_window() -> Callable[..., Window]:
    """Factory for display windows."""

    def _make(day: date, number_of_days: int = 3, tz: Any = UTC) -> Window:
        return Window.for_day(day, number_of_days, tz)

    return _make


@pytest.fixture
def make_entry() -> Callable[..., RawCalendarEntry]:
    """Factory for raw calendar entries.

    ``date_only=True`` turns ``start``/``end`` dates into local midnights in ``tz``.
    """

    def _make(
        start: Any,
        end: Any = None,
        summary: Optional[str] = "Event",
        uid: str = "uid-1",
        date_only: bool = False,
        rrule: Optional[str] = None,
        exception_dates: Iterable[datetime] = (),
        tz: Any = UTC,
        **kwargs: Any,
    ) -> RawCalendarEntry:
        if date_only:
            start = datetime.combine(start, datetime.min.time(), tzinfo=tz)
            if end is not None:
                end = datetime.combine(end, datetime.min.time(), tzinfo=tz)
        return RawCalendarEntry(
            uid=uid,
            summary=summary,
            start=start,
            start_type=ValueType.DATE if date_only else ValueType.DATE_TIME,
            end=end,
            rrule=rrule,
            exception_dates=list(exception_dates),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_occurrence() -> Callable[..., Occurrence]:
    """Factory for normalized occurrences."""

    def _make(
        title: str,
        start: datetime,
        end: Optional[datetime] = None,
        is_all_day: bool = False,
        source_id: str = "calendar-1",
        **kwargs: Any,
    ) -> Occurrence:
        return Occurrence(
            title=title,
            start=start,
            end=end if end is not None else start + timedelta(hours=1),
            is_all_day=is_all_day,
            source_id=source_id,
            **kwargs,
        )

    return _make


def build_ics(*events: str, extra_headers: str = "") -> str:
    """Wrap VEVENT bodies in a VCALENDAR with CRLF line endings."""
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Daily Agenda//Tests//EN"]
    if extra_headers:
        lines.extend(extra_headers.strip().splitlines())
    for event in events:
        lines.append("BEGIN:VEVENT")
        lines.extend(line.strip() for line in event.strip().splitlines())
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


@pytest.fixture
def ics_builder() -> Callable[..., str]:
    """Build ICS documents from VEVENT bodies."""
    return build_ics
