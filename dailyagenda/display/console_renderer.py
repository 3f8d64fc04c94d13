"""Console-based agenda renderer."""

import logging
import sys
from datetime import datetime
from typing import Any, List, Optional

from ..agenda.models import AgendaSnapshot, AgendaStatus, DayBucket, Occurrence

logger = logging.getLogger(__name__)

NO_EVENTS_TEXT = "No events scheduled."
LOADING_TEXT = "Loading..."


class ConsoleRenderer:
    """Renders day buckets as plain text.

    Everything here is presentation only: hiding all-day events, time and date
    formats and the all-day label never change the underlying agenda.
    """

    def __init__(self, settings: Any) -> None:
        """Initialize console renderer.

        Args:
            settings: Application settings (display options)
        """
        self.settings = settings
        self.width = 60  # Console display width

        logger.debug("Console renderer initialized")

    def render(
        self,
        snapshot: AgendaSnapshot,
        buckets: List[DayBucket],
        now: Optional[datetime] = None,
    ) -> str:
        """Render the agenda to a string.

        Args:
            snapshot: Published agenda state
            buckets: Day buckets derived from the snapshot's events
            now: Current instant; occurrences ending before it are marked as over

        Returns:
            Formatted string for console display
        """
        status = snapshot.status

        if status == AgendaStatus.LOADING:
            return LOADING_TEXT

        if status == AgendaStatus.ERROR and snapshot.error is not None:
            return f"Error: {snapshot.error.message}"

        lines = ["=" * self.width]
        for day_bucket in buckets:
            lines.extend(self._render_day(day_bucket, now))
            lines.append("-" * self.width)

        if lines[-1].startswith("-"):
            lines[-1] = "=" * self.width
        else:
            lines.append("=" * self.width)

        return "\n".join(lines)

    def _render_day(self, day_bucket: DayBucket, now: Optional[datetime]) -> List[str]:
        lines = [day_bucket.date.strftime(self.settings.display_date_format)]

        count = len(day_bucket.occurrences)
        if self.settings.show_event_count and count:
            lines.append(f"  {count} event{'' if count == 1 else 's'}")

        if day_bucket.is_empty:
            lines.append(f"  {NO_EVENTS_TEXT}")
            return lines

        for occurrence in day_bucket.occurrences:
            if occurrence.is_all_day and not self.settings.show_all_day_events:
                continue
            lines.extend(self._format_occurrence(occurrence, now))

        return lines

    def _format_occurrence(self, occurrence: Occurrence, now: Optional[datetime]) -> List[str]:
        """Format one occurrence as a title line and a time line."""
        marker = f"[{occurrence.color}] " if occurrence.color else ""
        over = now is not None and occurrence.is_over(now)
        title = self._truncate_text(occurrence.title, 50)

        lines = [f"  {marker}{title}{' (over)' if over else ''}"]
        lines.append(f"    {self.format_time(occurrence)}")
        if occurrence.location:
            lines.append(f"    @ {self._truncate_text(occurrence.location, 45)}")
        return lines

    def format_time(self, occurrence: Occurrence) -> str:
        """Time label: the all-day text, ``start - end``, or just the start for point events."""
        if occurrence.is_all_day:
            return self.settings.all_day_event_text

        time_format = self.settings.display_time_format
        start = occurrence.start.strftime(time_format)
        if occurrence.start == occurrence.end:
            return start
        return f"{start} - {occurrence.end.strftime(time_format)}"

    def _truncate_text(self, text: str, max_length: int) -> str:
        """Truncate text to fit within specified length."""
        if len(text) <= max_length:
            return text

        return text[: max_length - 3] + "..."

    def display(self, content: str, clear: bool = False) -> None:
        """Write rendered content to stdout, optionally clearing the terminal first."""
        if clear and sys.stdout.isatty():
            sys.stdout.write("\033[2J\033[H")
        print(content)
        sys.stdout.flush()
