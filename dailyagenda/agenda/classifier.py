"""All-day detection for raw calendar entries."""

from datetime import timedelta, timezone, tzinfo
from typing import Optional

from ..ics.models import RawCalendarEntry

DAY = timedelta(hours=24)


def is_all_day(entry: RawCalendarEntry, display_tz: Optional[tzinfo] = None) -> bool:
    """Decide whether an entry is a full-day event rather than a timed one.

    A bare-date DTSTART is always all-day. Otherwise the entry counts as all-day
    when it starts exactly at midnight and lasts a whole, non-zero number of
    24-hour days. A missing end means zero duration, so such entries are timed.

    Args:
        entry: Template entry (not an expanded instance)
        display_tz: Zone in which "midnight" is judged; defaults to the start's zone

    Returns:
        True for all-day entries
    """
    if entry.is_date_only:
        return True

    if entry.end is None:
        return False

    duration = entry.end.astimezone(timezone.utc) - entry.start.astimezone(timezone.utc)
    if duration <= timedelta(0) or duration % DAY:
        return False

    local_start = entry.start.astimezone(display_tz) if display_tz else entry.start
    return local_start.hour == 0 and local_start.minute == 0 and local_start.second == 0
