"""Data models for normalized agenda occurrences."""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_TITLE = "No Title"

DedupKey = Tuple[str, datetime, datetime]
CalendarDate = date


class Occurrence(BaseModel):
    """One concrete instance of an event, ready for display.

    ``start`` and ``end`` are absolute instants expressed in the display
    timezone. ``end`` is never before ``start``.
    """

    title: str = Field(default=NO_TITLE, description="Event title")
    start: datetime = Field(..., description="Start instant")
    end: datetime = Field(..., description="End instant (exclusive for all-day events)")
    is_all_day: bool = Field(default=False, description="All-day event flag")
    location: Optional[str] = Field(default=None, description="Event location")
    description: Optional[str] = Field(default=None, description="Event description")
    source_id: str = Field(..., description="Originating calendar source")
    color: Optional[str] = Field(default=None, description="Color inherited from the source")

    model_config = ConfigDict(frozen=True)

    @property
    def dedup_key(self) -> DedupKey:
        """Key used to collapse the same event reported by several sources."""
        return (self.title, self.start, self.end)

    @property
    def duration(self) -> timedelta:
        """Elapsed time between start and end."""
        return self.end - self.start

    def is_over(self, now: datetime) -> bool:
        """Check whether the occurrence has already ended."""
        return self.end < now


class Window(BaseModel):
    """Contiguous span of calendar days being displayed.

    ``start`` is local midnight of the first day (inclusive); ``end`` is local
    midnight after the last day (exclusive).
    """

    start: datetime = Field(..., description="Local midnight of the first day")
    number_of_days: int = Field(..., gt=0, description="Number of days in the window")

    model_config = ConfigDict(frozen=True)

    @field_validator("start")
    @classmethod
    def _validate_start(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("window start must be timezone-aware")
        return value.replace(hour=0, minute=0, second=0, microsecond=0)

    @classmethod
    def for_day(cls, day: date, number_of_days: int, tz) -> "Window":
        """Build a window starting at local midnight of ``day``."""
        return cls(start=datetime.combine(day, time(), tzinfo=tz), number_of_days=number_of_days)

    @property
    def first_day(self) -> date:
        """Calendar date of the first day."""
        return self.start.date()

    @property
    def end(self) -> datetime:
        """Exclusive end of the window (local midnight after the last day)."""
        return self.day_start(self.first_day + timedelta(days=self.number_of_days))

    def day_start(self, day: date) -> datetime:
        """Local midnight of ``day`` in the window's timezone."""
        return datetime.combine(day, time(), tzinfo=self.start.tzinfo)

    def day_floor(self, dt: datetime) -> date:
        """Calendar date of an instant in the window's timezone."""
        return dt.astimezone(self.start.tzinfo).date()

    def days(self) -> Iterator[date]:
        """Yield each calendar date of the window in order."""
        for offset in range(self.number_of_days):
            yield self.first_day + timedelta(days=offset)


class DayBucket(BaseModel):
    """A calendar day and the occurrences that overlap it, in display order."""

    date: CalendarDate
    occurrences: List[Occurrence] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether no occurrence overlaps this day."""
        return not self.occurrences


class SourceFailure(BaseModel):
    """Structured error reported when a source cannot be fetched or parsed."""

    source_id: str
    message: str

    model_config = ConfigDict(frozen=True)


class AgendaStatus(str, Enum):
    """What the display layer should show."""

    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


class AgendaSnapshot(BaseModel):
    """Published state consumed by the display layer."""

    events: List[Occurrence] = Field(default_factory=list)
    loaded: bool = False
    error: Optional[SourceFailure] = None
    window: Optional[Window] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @property
    def status(self) -> AgendaStatus:
        """Loading and error are distinct states and never reported together."""
        if not self.loaded:
            return AgendaStatus.LOADING
        if self.error is not None:
            return AgendaStatus.ERROR
        return AgendaStatus.READY
