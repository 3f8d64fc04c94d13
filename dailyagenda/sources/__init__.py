"""Calendar source management."""

from .exceptions import SourceError, SourceFetchError
from .manager import SourceManager
from .models import SourceConfig, sources_from_settings

__all__ = [
    "SourceConfig",
    "SourceError",
    "SourceFetchError",
    "SourceManager",
    "sources_from_settings",
]
