"""RRULE expansion for recurring calendar entries."""

import logging
import re
from datetime import datetime, time, timedelta, timezone
from itertools import islice, takewhile
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

from dateutil.rrule import rruleset, rrulestr

from .models import RawCalendarEntry

if TYPE_CHECKING:
    from ..agenda.models import Window

UTC = timezone.utc

logger = logging.getLogger(__name__)

DEFAULT_MAX_OCCURRENCES = 10000

_UNTIL_PATTERN = re.compile(r"UNTIL=([0-9]{8}(?:T[0-9]{6}Z?)?)", re.IGNORECASE)


class RRuleExpansionError(Exception):
    """Base exception for RRULE expansion errors."""

    def __init__(self, message: str, uid: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.uid = uid


class RecurrenceRuleError(RRuleExpansionError):
    """A single entry's recurrence rule cannot be evaluated."""


class RRuleExpander:
    """Expands RRULE patterns into occurrence start instants for a window.

    Rule evaluation is delegated to python-dateutil so every standard RRULE
    part (FREQ, INTERVAL, COUNT, UNTIL, BYDAY, BYMONTHDAY, ...) is honored.
    EXDATE suppression is done here at day granularity.
    """

    def __init__(self, settings: Any = None):
        """Initialize RRuleExpander with settings.

        Args:
            settings: Application settings (reads ``rrule_max_occurrences``)
        """
        self.settings = settings
        self.max_occurrences = getattr(settings, "rrule_max_occurrences", DEFAULT_MAX_OCCURRENCES)

    def expand(self, entry: RawCalendarEntry, window: "Window") -> list[datetime]:
        """Compute the start instants of ``entry`` that fall inside ``window``.

        Args:
            entry: Template entry carrying an RRULE
            window: Display window; both bounds are inclusive for rule matches

        Returns:
            Occurrence starts in ascending order, exception dates removed

        Raises:
            RecurrenceRuleError: If the rule cannot be parsed or evaluated, or has
                more than ``max_occurrences`` starts inside the window
        """
        if not entry.rrule:
            raise RecurrenceRuleError("Entry has no recurrence rule", uid=entry.uid)

        try:
            rule_set = self.build_rule(entry)
            # One past the cap is enough to tell that the cap was exceeded
            candidates = list(
                islice(self._starts_in_window(rule_set, window), self.max_occurrences + 1)
            )
        except Exception as e:
            raise RecurrenceRuleError(
                f"Failed to expand RRULE '{entry.rrule}': {e}", uid=entry.uid
            ) from e

        if len(candidates) > self.max_occurrences:
            raise RecurrenceRuleError(
                f"RRULE '{entry.rrule}' has more than {self.max_occurrences} "
                "occurrences in the window",
                uid=entry.uid,
            )

        logger.debug(
            "RRULE expansion: uid=%s dtstart=%s rrule=%s window=%s..%s candidates=%d",
            entry.uid,
            entry.start.isoformat(),
            entry.rrule,
            window.start.isoformat(),
            window.end.isoformat(),
            len(candidates),
        )

        occurrences = self.apply_exdates(candidates, entry.exception_dates, window)

        if not entry.is_date_only:
            occurrences = [self._align_time_of_day(occ, entry.start) for occ in occurrences]

        return occurrences

    def build_rule(self, entry: RawCalendarEntry) -> rruleset:
        """Parse the entry's RRULE text into a dateutil rruleset anchored at DTSTART."""
        rule_text = self._normalize_until(entry.rrule or "", entry.start)
        return rrulestr(rule_text, dtstart=entry.start, forceset=True)

    def _starts_in_window(self, rule_set: rruleset, window: "Window") -> Iterator[datetime]:
        """Lazily yield rule starts from window.start through window.end, both inclusive."""
        return takewhile(
            lambda start: start <= window.end, rule_set.xafter(window.start, inc=True)
        )

    def apply_exdates(
        self,
        occurrences: list[datetime],
        exdates: Optional[Iterable[datetime]],
        window: "Window",
    ) -> list[datetime]:
        """Remove occurrences whose calendar date matches an exception date.

        Args:
            occurrences: Candidate occurrence starts
            exdates: Excluded instants; only their calendar date matters
            window: Window whose timezone defines calendar dates

        Returns:
            Filtered list of occurrences with excluded dates removed
        """
        if not exdates:
            return occurrences

        excluded_dates = {window.day_floor(exdate) for exdate in exdates}
        filtered_occurrences = [
            occurrence
            for occurrence in occurrences
            if window.day_floor(occurrence) not in excluded_dates
        ]

        logger.debug(f"Filtered {len(occurrences) - len(filtered_occurrences)} excluded dates")
        return filtered_occurrences

    def _align_time_of_day(self, occurrence: datetime, template_start: datetime) -> datetime:
        """Give an occurrence the template's wall-clock time in the template's zone."""
        local = occurrence.astimezone(template_start.tzinfo)
        return local.replace(
            hour=template_start.hour,
            minute=template_start.minute,
            second=template_start.second,
            microsecond=0,
        )

    def _normalize_until(self, rule_text: str, dtstart: datetime) -> str:
        """Rewrite UNTIL values as UTC date-times.

        dateutil refuses a floating or date-valued UNTIL together with an aware
        DTSTART. A date-valued UNTIL includes the whole day; a floating one is
        read in the DTSTART zone.
        """

        def _to_utc(match: "re.Match[str]") -> str:
            value = match.group(1)
            if value.upper().endswith("Z"):
                return match.group(0)

            until = self._parse_datetime(value)
            if len(value) == 8:
                until = datetime.combine(until.date() + timedelta(days=1), time()) - timedelta(
                    seconds=1
                )
            until = until.replace(tzinfo=dtstart.tzinfo).astimezone(UTC)
            return f"UNTIL={until.strftime('%Y%m%dT%H%M%SZ')}"

        return _UNTIL_PATTERN.sub(_to_utc, rule_text)

    def _parse_datetime(self, datetime_str: str) -> datetime:
        """Parse datetime string in various formats.

        Args:
            datetime_str: Datetime string (ISO format or RRULE format)

        Returns:
            Parsed datetime object

        Raises:
            ValueError: If datetime format is invalid
        """
        dt_str = datetime_str.rstrip("Zz")

        formats = [
            "%Y%m%dT%H%M%S",  # 20250623T083000
            "%Y-%m-%dT%H:%M:%S",  # 2025-06-23T08:30:00
            "%Y%m%d",  # 20250623
            "%Y-%m-%d",  # 2025-06-23
        ]

        for fmt in formats:
            try:
                dt = datetime.strptime(dt_str, fmt)
                if datetime_str.upper().endswith("Z"):
                    dt = dt.replace(tzinfo=UTC)
                return dt
            except ValueError:  # noqa: PERF203
                continue

        raise ValueError(f"Unable to parse datetime: {datetime_str}")
