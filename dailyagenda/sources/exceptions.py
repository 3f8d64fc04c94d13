"""Source-specific exceptions."""

from typing import Optional


class SourceError(Exception):
    """Base exception for source-related errors."""

    def __init__(self, message: str, source_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source_name = source_name


class SourceFetchError(SourceError):
    """A source could not be fetched or parsed during a refresh cycle."""
