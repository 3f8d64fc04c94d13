"""Daily Agenda - rolling N-day agenda built from iCalendar feeds."""

__version__ = "1.0.0"
__author__ = "Daily Agenda Team"
__email__ = "support@dailyagenda.local"
__description__ = "Rolling multi-day agenda from ICS calendar feeds with recurrence expansion"

__all__ = [
    "__author__",
    "__description__",
    "__email__",
    "__version__",
]
