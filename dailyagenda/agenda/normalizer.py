"""Turns raw calendar entries into display-ready occurrences."""

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from ..ics.models import RawCalendarEntry
from ..ics.rrule_expander import RecurrenceRuleError, RRuleExpander
from .classifier import is_all_day
from .models import NO_TITLE, Occurrence, Window

logger = logging.getLogger(__name__)


def overlaps_window(start: datetime, end: datetime, window: Window) -> bool:
    """Strict overlap of ``[start, end)`` with the window."""
    return start < window.end and end > window.start


class EventNormalizer:
    """Produces Occurrence records for single and recurring entries."""

    def __init__(self, settings: Any = None, expander: Optional[RRuleExpander] = None) -> None:
        """Initialize normalizer.

        Args:
            settings: Application settings, passed on to the default expander
            expander: Recurrence expander to use instead of the default one
        """
        self.settings = settings
        self.expander = expander or RRuleExpander(settings)

    def normalize(
        self,
        entry: RawCalendarEntry,
        window: Window,
        source_id: str,
        color: Optional[str] = None,
    ) -> list[Occurrence]:
        """Normalize one entry into the occurrences that intersect ``window``.

        The all-day flag and the duration are taken from the template entry once
        and applied to every emitted occurrence. A missing end, or an end before
        the start, becomes a zero-duration event.

        Args:
            entry: Raw entry, recurring or not
            window: Display window
            source_id: Identifier of the originating calendar
            color: Color of the originating calendar

        Returns:
            Occurrences in ascending start order

        Raises:
            RecurrenceRuleError: If the entry's recurrence rule cannot be evaluated
        """
        display_tz = window.start.tzinfo
        all_day = is_all_day(entry, display_tz)
        duration = self._template_duration(entry)

        if entry.is_recurring:
            starts = self.expander.expand(entry, window)
        else:
            starts = [entry.start]

        occurrences = []
        for start in starts:
            end = start + duration
            if not overlaps_window(start, end, window):
                continue

            occurrences.append(
                Occurrence(
                    title=entry.summary or NO_TITLE,
                    start=start.astimezone(display_tz),
                    end=end.astimezone(display_tz),
                    is_all_day=all_day,
                    location=entry.location or None,
                    description=entry.description or None,
                    source_id=source_id,
                    color=color,
                )
            )

        return occurrences

    def normalize_all(
        self,
        entries: Iterable[RawCalendarEntry],
        window: Window,
        source_id: str,
        color: Optional[str] = None,
    ) -> list[Occurrence]:
        """Normalize every entry of one source, isolating per-entry failures.

        An entry whose recurrence rule cannot be evaluated is logged and skipped;
        the remaining entries are still processed.

        Returns:
            Occurrences of all entries sorted by start (stable)
        """
        occurrences: list[Occurrence] = []
        skipped = 0

        for entry in entries:
            try:
                occurrences.extend(self.normalize(entry, window, source_id, color))
            except RecurrenceRuleError as e:
                skipped += 1
                logger.warning(
                    f"Skipping event '{entry.summary or NO_TITLE}' ({entry.uid}) "
                    f"from {source_id}: {e.message}"
                )
            except Exception:
                skipped += 1
                logger.exception(f"Failed to normalize event {entry.uid} from {source_id}")

        occurrences.sort(key=lambda occurrence: occurrence.start)

        logger.debug(
            f"Normalized {len(occurrences)} occurrences from {source_id} ({skipped} entries skipped)"
        )
        return occurrences

    @staticmethod
    def _template_duration(entry: RawCalendarEntry) -> timedelta:
        """Duration of the template entry, zero when the end is missing or invalid."""
        if entry.end is None or entry.end < entry.start:
            return timedelta(0)
        return entry.end - entry.start
