"""Event normalization engine: classify, expand, merge and bucket occurrences."""

from .bucketer import bucket, overlaps_day
from .classifier import is_all_day
from .merger import merge
from .models import (
    NO_TITLE,
    AgendaSnapshot,
    AgendaStatus,
    DayBucket,
    Occurrence,
    SourceFailure,
    Window,
)
from .normalizer import EventNormalizer, overlaps_window

__all__ = [
    "NO_TITLE",
    "AgendaSnapshot",
    "AgendaStatus",
    "DayBucket",
    "EventNormalizer",
    "Occurrence",
    "SourceFailure",
    "Window",
    "bucket",
    "is_all_day",
    "merge",
    "overlaps_day",
    "overlaps_window",
]
