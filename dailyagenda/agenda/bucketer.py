"""Partitioning of merged occurrences into per-day buckets."""

from datetime import date, timedelta
from typing import Iterable

from .models import DayBucket, Occurrence, Window

ONE_DAY = timedelta(days=1)


def overlaps_day(occurrence: Occurrence, day: date, window: Window) -> bool:
    """Check whether an occurrence belongs on the given calendar day.

    All-day occurrences use calendar dates with an exclusive end date (an event
    ending on day D stops at the start of D). Timed occurrences use strict
    interval overlap with the day; a zero-duration one belongs to the day that
    contains its start.
    """
    if occurrence.is_all_day:
        first_day = window.day_floor(occurrence.start)
        end_day = max(window.day_floor(occurrence.end), first_day + ONE_DAY)
        return first_day <= day < end_day

    day_start = window.day_start(day)
    day_end = window.day_start(day + ONE_DAY)

    if occurrence.start == occurrence.end:
        return day_start <= occurrence.start < day_end
    return occurrence.start < day_end and occurrence.end > day_start


def bucket(occurrences: Iterable[Occurrence], window: Window) -> list[DayBucket]:
    """Split a sorted occurrence list into one bucket per window day.

    Days without occurrences still get an (empty) bucket. Each bucket keeps the
    input order and holds the same Occurrence objects as the input list.

    Args:
        occurrences: Merged occurrences sorted by start
        window: Display window

    Returns:
        One DayBucket per day of the window, in date order
    """
    items = list(occurrences)
    return [
        DayBucket(
            date=day,
            occurrences=[occurrence for occurrence in items if overlaps_day(occurrence, day, window)],
        )
        for day in window.days()
    ]
