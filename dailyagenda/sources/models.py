"""Data models for calendar source management."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..ics.models import ICSSource


class SourceConfig(BaseModel):
    """Configuration for one calendar feed."""

    source_id: str = Field(..., description="Identifier carried by every occurrence of the feed")
    url: str = Field(..., description="ICS calendar URL")
    color: Optional[str] = Field(default=None, description="Display color for the feed's events")
    timeout: int = Field(default=30, description="Connection timeout in seconds")
    enabled: bool = Field(default=True, description="Whether source is fetched")

    model_config = ConfigDict(frozen=True)

    def to_ics_source(self) -> ICSSource:
        """Connection settings for the ICS fetcher."""
        return ICSSource(name=self.source_id, url=self.url, timeout=self.timeout)


def sources_from_settings(settings: Any) -> List[SourceConfig]:
    """Build source configurations from the ``calendars`` setting.

    Unnamed calendars get a positional identifier (``calendar-1``, ...). The
    per-calendar timeout falls back to ``request_timeout``.
    """
    default_timeout = getattr(settings, "request_timeout", 30)

    return [
        SourceConfig(
            source_id=calendar.name or f"calendar-{index}",
            url=calendar.url,
            color=calendar.color,
            timeout=calendar.timeout or default_timeout,
            enabled=calendar.enabled,
        )
        for index, calendar in enumerate(settings.calendars, start=1)
    ]
