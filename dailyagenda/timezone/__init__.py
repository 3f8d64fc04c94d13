"""
Timezone package for Daily Agenda.

Provides the display timezone used to resolve floating and date-only values,
compute day boundaries, and convert occurrences for display.

Example usage:
    >>> from dailyagenda.timezone import get_timezone_service
    >>> service = get_timezone_service()
    >>> midnight = service.start_of_day(service.today())
"""

from .service import (
    TimezoneError,
    TimezoneService,
    configure_timezone_service,
    ensure_timezone_aware,
    get_timezone_service,
    reset_timezone_service,
)

__all__ = [
    "TimezoneError",
    "TimezoneService",
    "configure_timezone_service",
    "ensure_timezone_aware",
    "get_timezone_service",
    "reset_timezone_service",
]
