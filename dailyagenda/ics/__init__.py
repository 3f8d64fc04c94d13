"""ICS calendar downloading, parsing and recurrence expansion."""

from .exceptions import (
    ICSAuthError,
    ICSError,
    ICSFetchError,
    ICSNetworkError,
)
from .fetcher import ICSFetcher
from .models import ICSParseResult, ICSResponse, ICSSource, RawCalendarEntry, ValueType
from .parser import ICSParser
from .rrule_expander import RecurrenceRuleError, RRuleExpander, RRuleExpansionError

__all__ = [
    "ICSAuthError",
    "ICSError",
    "ICSFetchError",
    "ICSFetcher",
    "ICSNetworkError",
    "ICSParseResult",
    "ICSParser",
    "ICSResponse",
    "ICSSource",
    "RRuleExpander",
    "RRuleExpansionError",
    "RawCalendarEntry",
    "RecurrenceRuleError",
    "ValueType",
]
