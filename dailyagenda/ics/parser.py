"""iCalendar parser producing raw calendar entries."""

import logging
import uuid
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, List, Optional, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from icalendar import Calendar, Event as ICalEvent

from ..timezone import TimezoneService, get_timezone_service
from .models import ICSParseResult, RawCalendarEntry, ValueType

logger = logging.getLogger(__name__)

# Size validation constants
MAX_ICS_SIZE_BYTES = 50 * 1024 * 1024  # 50MB limit
MAX_ICS_SIZE_WARNING = 10 * 1024 * 1024  # 10MB warning threshold


class ICSParser:
    """Parses ICS content into RawCalendarEntry records.

    Every date or date-time is resolved here, once, to an aware datetime:

    * bare dates become local midnight in the display timezone;
    * floating date-times get the calendar's X-WR-TIMEZONE, falling back to
      the display timezone;
    * date-times with a TZID or UTC marker are kept as they are.
    """

    def __init__(self, settings: Any = None, timezone_service: Optional[TimezoneService] = None):
        """Initialize ICS parser.

        Args:
            settings: Application settings
            timezone_service: Display timezone service (defaults to the global one)
        """
        self.settings = settings
        self.timezone_service = timezone_service or get_timezone_service()

        logger.debug("ICS parser initialized")

    @property
    def display_tz(self) -> tzinfo:
        """Display timezone used for bare dates."""
        return self.timezone_service.display_tz

    def parse_ics_content(self, ics_content: str) -> ICSParseResult:
        """Parse ICS content into raw calendar entries.

        Individual broken VEVENTs are skipped with a warning; content that is not
        a calendar at all yields a failed result.

        Args:
            ics_content: Raw ICS content string

        Returns:
            ICSParseResult with parsed entries or error information
        """
        try:
            self._validate_ics_size(ics_content)

            calendar = cast("Calendar", Calendar.from_ical(ics_content))

            calendar_name = self._get_calendar_property(calendar, "X-WR-CALNAME")
            timezone_str = self._get_calendar_property(calendar, "X-WR-TIMEZONE")
            prodid = self._get_calendar_property(calendar, "PRODID")
            default_tz = self._resolve_calendar_timezone(timezone_str)

            entries: list[RawCalendarEntry] = []
            total_components = 0
            warnings: list[str] = []

            for component in calendar.walk():
                total_components += 1

                if component.name != "VEVENT":
                    continue

                try:
                    entry = self._parse_event_component(cast("ICalEvent", component), default_tz)
                except Exception as e:
                    warning = f"Failed to parse event: {e}"
                    warnings.append(warning)
                    logger.warning(warning)
                    continue

                if entry is None:
                    warnings.append("Skipped event without DTSTART")
                    continue

                entries.append(entry)

            entries = self._apply_recurrence_overrides(entries)

            logger.debug(f"Parsed {len(entries)} events from ICS content")

            return ICSParseResult(
                success=True,
                entries=entries,
                calendar_name=calendar_name,
                timezone=timezone_str,
                total_components=total_components,
                event_count=len(entries),
                recurring_event_count=sum(1 for entry in entries if entry.is_recurring),
                warnings=warnings,
                prodid=prodid,
            )

        except Exception as e:
            logger.exception("Failed to parse ICS content")
            return ICSParseResult(success=False, error_message=str(e))

    def _validate_ics_size(self, ics_content: str) -> None:
        """Reject oversized content before handing it to icalendar.

        Raises:
            ValueError: If content exceeds the maximum size
        """
        size_bytes = len(ics_content.encode("utf-8"))

        if size_bytes > MAX_ICS_SIZE_BYTES:
            raise ValueError(
                f"ICS content too large: {size_bytes} bytes exceeds {MAX_ICS_SIZE_BYTES} limit"
            )
        if size_bytes > MAX_ICS_SIZE_WARNING:
            logger.warning(f"Large ICS content detected: {size_bytes} bytes")

    def _parse_event_component(
        self, component: ICalEvent, default_tz: tzinfo
    ) -> Optional[RawCalendarEntry]:
        """Parse a single VEVENT component.

        Args:
            component: iCalendar VEVENT component
            default_tz: Timezone for floating date-times

        Returns:
            Parsed entry, or None if the event has no usable DTSTART
        """
        uid = str(component.get("UID", str(uuid.uuid4())))

        raw_start = self._property_value(component.get("DTSTART"))
        if raw_start is None:
            logger.warning(f"Event {uid} missing DTSTART, skipping")
            return None

        date_only = not isinstance(raw_start, datetime)
        start = self._resolve_value(raw_start, default_tz)

        end: Optional[datetime] = None
        raw_end = self._property_value(component.get("DTEND"))
        if raw_end is not None:
            end = self._resolve_value(raw_end, default_tz)
        else:
            duration = component.get("DURATION")
            duration_value = getattr(duration, "dt", None)
            if isinstance(duration_value, timedelta):
                end = start + duration_value
            elif date_only:
                # A bare-date event without DTEND or DURATION lasts one day
                end = start + timedelta(days=1)

        rrule_text = self._rrule_text(component.get("RRULE"))

        exception_dates = [
            self._resolve_value(value, default_tz)
            for value in self._exdate_values(component.get("EXDATE"))
        ]

        recurrence_id = None
        raw_recurrence_id = self._property_value(component.get("RECURRENCE-ID"))
        if raw_recurrence_id is not None:
            recurrence_id = self._resolve_value(raw_recurrence_id, default_tz)

        return RawCalendarEntry(
            uid=uid,
            summary=self._text(component.get("SUMMARY")),
            location=self._text(component.get("LOCATION")),
            description=self._text(component.get("DESCRIPTION")),
            start=start,
            start_type=ValueType.DATE if date_only else ValueType.DATE_TIME,
            end=end,
            rrule=rrule_text,
            exception_dates=exception_dates,
            recurrence_id=recurrence_id,
        )

    def _apply_recurrence_overrides(
        self, entries: list[RawCalendarEntry]
    ) -> list[RawCalendarEntry]:
        """Exclude the original slot of every moved or modified recurring instance.

        A VEVENT with RECURRENCE-ID replaces one instance of the series with the
        same UID. The override is kept as a standalone entry and its original
        slot is added to the master's exception dates.
        """
        overrides: Dict[str, List[datetime]] = {}
        for entry in entries:
            if entry.recurrence_id is not None:
                overrides.setdefault(entry.uid, []).append(entry.recurrence_id)

        if not overrides:
            return entries

        result = []
        for entry in entries:
            if entry.is_recurring and entry.recurrence_id is None and entry.uid in overrides:
                entry = entry.model_copy(
                    update={"exception_dates": [*entry.exception_dates, *overrides[entry.uid]]}
                )
                logger.debug(
                    f"RECURRENCE-ID override: excluding {len(overrides[entry.uid])} "
                    f"instances of {entry.uid}"
                )
            result.append(entry)
        return result

    def _resolve_value(self, value: Any, default_tz: tzinfo) -> datetime:
        """Resolve a date or date-time value to an aware datetime."""
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=default_tz)
            return value
        if isinstance(value, date):
            return self.timezone_service.start_of_day(value)
        raise TypeError(f"Unsupported date value: {value!r}")

    def _resolve_calendar_timezone(self, timezone_str: Optional[str]) -> tzinfo:
        """Timezone for floating times: X-WR-TIMEZONE when valid, else display."""
        if timezone_str:
            try:
                return ZoneInfo(timezone_str)
            except (ZoneInfoNotFoundError, ValueError):
                logger.warning(f"Unknown X-WR-TIMEZONE '{timezone_str}', using display timezone")
        return self.display_tz

    @staticmethod
    def _property_value(prop: Any) -> Any:
        """Python value of a date/date-time property, None when missing or broken."""
        if prop is None:
            return None
        value = getattr(prop, "dt", None)
        if isinstance(value, (date, datetime)):
            return value
        return None

    @staticmethod
    def _exdate_values(prop: Any) -> list[Any]:
        """Flatten one or many EXDATE properties into their date values."""
        if prop is None:
            return []

        props = prop if isinstance(prop, list) else [prop]
        values = []
        for exdate in props:
            for item in getattr(exdate, "dts", []):
                value = getattr(item, "dt", None)
                if isinstance(value, (date, datetime)):
                    values.append(value)
        return values

    @staticmethod
    def _rrule_text(prop: Any) -> Optional[str]:
        """RRULE property as text; several RRULEs become one multi-line rule."""
        if prop is None:
            return None

        props = prop if isinstance(prop, list) else [prop]
        rules = [rule.to_ical().decode("utf-8") for rule in props]
        if len(rules) == 1:
            return rules[0]
        return "\n".join(f"RRULE:{rule}" for rule in rules)

    @staticmethod
    def _text(prop: Any) -> Optional[str]:
        """Text property as a stripped string, None when empty."""
        if prop is None:
            return None
        text = str(prop).strip()
        return text or None

    def _get_calendar_property(self, calendar: Calendar, prop_name: str) -> Optional[str]:
        """Get calendar-level property safely.

        Args:
            calendar: iCalendar Calendar object
            prop_name: Property name

        Returns:
            Property value or None
        """
        try:
            prop = calendar.get(prop_name)
            return str(prop) if prop else None
        except Exception:
            return None
