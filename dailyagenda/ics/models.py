"""Data models for ICS calendar fetching and parsing."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ICSSource(BaseModel):
    """What the fetcher needs to download one feed."""

    name: str = Field(..., description="Source identifier used in log messages")
    url: str = Field(..., description="Feed URL (http or https)")
    timeout: int = Field(default=30, description="Per-request timeout in seconds")


class ICSResponse(BaseModel):
    """Outcome of one feed download; ``content`` is set only on success."""

    success: bool
    content: Optional[str] = None
    status_code: Optional[int] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    error_message: Optional[str] = None
    fetched_at: datetime = Field(default_factory=datetime.now)


class ValueType(str, Enum):
    """iCalendar value type of a raw DTSTART."""

    DATE = "DATE"
    DATE_TIME = "DATE-TIME"


class RawCalendarEntry(BaseModel):
    """One VEVENT resolved at ingestion.

    ``start`` and ``end`` are always timezone-aware. Date-only values become local
    midnight and carry ``start_type == ValueType.DATE``; nothing downstream looks
    at the original iCalendar encoding again.
    """

    uid: str = Field(..., description="Event UID")
    summary: Optional[str] = Field(default=None, description="Event summary/title")
    location: Optional[str] = Field(default=None, description="Event location")
    description: Optional[str] = Field(default=None, description="Event description")

    start: datetime = Field(..., description="Start instant")
    start_type: ValueType = Field(default=ValueType.DATE_TIME, description="DTSTART value type")
    end: Optional[datetime] = Field(default=None, description="End instant, None if missing")

    rrule: Optional[str] = Field(default=None, description="RRULE text")
    exception_dates: List[datetime] = Field(
        default_factory=list, description="EXDATE instants excluded from the rule"
    )
    recurrence_id: Optional[datetime] = Field(
        default=None, description="RECURRENCE-ID of an overridden instance"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_recurring(self) -> bool:
        """Whether the entry carries a recurrence rule."""
        return bool(self.rrule)

    @property
    def is_date_only(self) -> bool:
        """Whether DTSTART was a bare date."""
        return self.start_type == ValueType.DATE


class ICSParseResult(BaseModel):
    """Entries parsed from one feed plus calendar-level metadata and warnings."""

    success: bool
    entries: List[RawCalendarEntry] = Field(default_factory=list, description="Parsed entries")
    calendar_name: Optional[str] = None
    timezone: Optional[str] = None
    prodid: Optional[str] = None

    total_components: int = 0
    event_count: int = 0
    recurring_event_count: int = 0

    error_message: Optional[str] = None
    warnings: List[str] = Field(default_factory=list, description="Skipped or broken VEVENTs")
