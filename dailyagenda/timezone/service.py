"""Display timezone service for Daily Agenda.

All day-boundary arithmetic (window start, day buckets, all-day floors) is done
in a single display timezone. Named zones use zoneinfo; when no zone is
configured the system local zone is used through dateutil's tzlocal.
"""

import logging
from datetime import date, datetime, time, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz as dateutil_tz

logger = logging.getLogger(__name__)


class TimezoneError(Exception):
    """Raised when timezone operations fail."""


class TimezoneService:
    """Centralized display timezone handling.

    Every component that needs "local midnight" or "the calendar date of an
    instant" goes through this service so that all of them agree on the zone.
    """

    def __init__(
        self,
        timezone_name: Optional[str] = None,
        display_tz: Optional[tzinfo] = None,
        time_provider: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize timezone service.

        Args:
            timezone_name: IANA timezone name (e.g. "Europe/Berlin"). Ignored when
                display_tz is given. Defaults to the system local zone.
            display_tz: Explicit tzinfo to use as display timezone
            time_provider: Optional callable returning "now" (used by tests)
        """
        self._display_tz = display_tz or self._resolve_timezone(timezone_name)
        self._time_provider = time_provider
        logger.debug(f"Display timezone: {self._display_tz}")

    @staticmethod
    def _resolve_timezone(timezone_name: Optional[str]) -> tzinfo:
        """Resolve a timezone name into a tzinfo object.

        Raises:
            TimezoneError: If the timezone name is unknown
        """
        if not timezone_name:
            return dateutil_tz.tzlocal()

        try:
            return ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise TimezoneError(f"Unknown timezone '{timezone_name}': {e}") from e

    @property
    def display_tz(self) -> tzinfo:
        """Timezone used for day boundaries and display."""
        return self._display_tz

    def ensure_timezone_aware(self, dt: datetime, fallback_tz: Optional[tzinfo] = None) -> datetime:
        """Ensure datetime has timezone information.

        Timezone-naive (floating) datetimes get the fallback timezone, which
        defaults to the display timezone. Aware datetimes are returned unchanged.

        Raises:
            TypeError: If dt is not a datetime object.
        """
        if not isinstance(dt, datetime):
            raise TypeError(f"Expected datetime object, got {type(dt)}")

        if dt.tzinfo is not None:
            return dt

        return dt.replace(tzinfo=fallback_tz or self._display_tz)

    def to_display(self, dt: datetime) -> datetime:
        """Convert an instant to the display timezone."""
        return self.ensure_timezone_aware(dt).astimezone(self._display_tz)

    def start_of_day(self, day: date) -> datetime:
        """Local midnight of the given calendar date."""
        return datetime.combine(day, time(), tzinfo=self._display_tz)

    def day_floor(self, dt: datetime) -> date:
        """Calendar date of an instant in the display timezone."""
        return self.to_display(dt).date()

    def now(self) -> datetime:
        """Current time in the display timezone."""
        if self._time_provider is not None:
            return self.to_display(self._time_provider())
        return datetime.now(self._display_tz)

    def today(self) -> date:
        """Current calendar date in the display timezone."""
        return self.now().date()


# Global service instance (using module-level variable instead of global statement)
_timezone_service: Optional[TimezoneService] = None


def get_timezone_service() -> TimezoneService:
    """Get global timezone service instance.

    Returns:
        Singleton TimezoneService instance.
    """
    if globals()["_timezone_service"] is None:
        globals()["_timezone_service"] = TimezoneService()
    return globals()["_timezone_service"]


def configure_timezone_service(
    timezone_name: Optional[str] = None, display_tz: Optional[tzinfo] = None
) -> TimezoneService:
    """Replace the global timezone service with one for the given zone."""
    service = TimezoneService(timezone_name=timezone_name, display_tz=display_tz)
    globals()["_timezone_service"] = service
    return service


def reset_timezone_service() -> None:
    """Reset the global timezone service (primarily for testing)."""
    globals()["_timezone_service"] = None


def ensure_timezone_aware(dt: datetime, fallback_tz: Optional[tzinfo] = None) -> datetime:
    """Ensure datetime has timezone information."""
    return get_timezone_service().ensure_timezone_aware(dt, fallback_tz)
