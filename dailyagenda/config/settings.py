"""Application settings: defaults, YAML file, ``DAILYAGENDA_*`` environment and keyword overrides."""

import logging
import os
from pathlib import Path
from typing import Any, Iterator, List, Optional

import yaml
from pydantic import BaseModel, Field, PrivateAttr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "DAILYAGENDA_"

# Top-level YAML keys copied onto AgendaSettings as they are
YAML_SCALAR_SETTINGS = (
    "number_of_days",
    "fetch_interval",
    "timezone",
    "rrule_max_occurrences",
    "show_all_day_events",
    "show_event_count",
    "display_time_format",
    "display_date_format",
    "all_day_event_text",
    "app_name",
    "request_timeout",
    "max_retries",
    "retry_backoff_factor",
)


class CalendarSourceSettings(BaseModel):
    """One configured calendar feed."""

    url: str = Field(..., description="ICS calendar URL")
    name: Optional[str] = Field(default=None, description="Source identifier shown in logs")
    color: Optional[str] = Field(default=None, description="Color for this calendar's events")
    timeout: Optional[int] = Field(
        default=None, description="HTTP timeout override in seconds (defaults to request_timeout)"
    )
    enabled: bool = Field(default=True, description="Fetch this calendar")


class LoggingSettings(BaseModel):
    """Where log records go and how much of them."""

    console_enabled: bool = Field(default=True, description="Log to stderr")
    console_level: str = Field(default="INFO", description="Console threshold (VERBOSE allowed)")
    console_colors: bool = Field(default=True, description="Color level names on terminals")

    file_enabled: bool = Field(default=False, description="Also write a log file per run")
    file_level: str = Field(default="DEBUG", description="Log file threshold (VERBOSE allowed)")
    file_directory: Optional[str] = Field(
        default=None, description="Log file directory; data_dir/logs when unset"
    )
    file_prefix: str = Field(default="dailyagenda", description="Log file name prefix")
    max_log_files: int = Field(default=5, description="Runs whose log files are kept")
    include_function_names: bool = Field(
        default=True, description="Add function name and line number to file records"
    )

    third_party_level: str = Field(
        default="WARNING", description="Threshold for httpx, httpcore and asyncio loggers"
    )


class AgendaSettings(BaseSettings):
    """Application settings with environment variable and YAML support.

    Precedence, highest first: keyword arguments, ``DAILYAGENDA_*`` environment
    variables, the YAML config file, field defaults.
    """

    # Names set by keyword argument or environment; YAML never overrides them
    _pinned: set = PrivateAttr(default_factory=set)

    # Calendars
    calendars: List[CalendarSourceSettings] = Field(
        default_factory=list, description="Calendar feeds to merge"
    )

    # Window and refresh
    number_of_days: int = Field(default=3, gt=0, description="How many days to display")
    fetch_interval: int = Field(default=300, gt=0, description="Seconds between refreshes")
    timezone: Optional[str] = Field(
        default=None, description="IANA display timezone (defaults to the system zone)"
    )
    rrule_max_occurrences: int = Field(
        default=10000, gt=0, description="Most in-window instances a recurring event may have"
    )

    # Render-only options
    show_all_day_events: bool = Field(default=True, description="Show all-day events")
    show_event_count: bool = Field(default=True, description="Show per-day event count")
    display_time_format: str = Field(
        default="%I:%M %p", description="strftime format for event times (e.g. 09:30 AM)"
    )
    display_date_format: str = Field(
        default="%A, %b %d", description="strftime format for day headers (e.g. Friday, Jul 28)"
    )
    all_day_event_text: str = Field(default="All Day", description="Label for all-day events")

    app_name: str = Field(default="DailyAgenda", description="Name sent in the User-Agent")
    config_file: Optional[Path] = Field(default=None, description="Explicit YAML config path")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "dailyagenda")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local" / "share" / "dailyagenda")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # HTTP
    request_timeout: int = Field(default=30, description="HTTP request timeout in seconds")
    max_retries: int = Field(default=3, description="Retries after a timeout or connection error")
    retry_backoff_factor: float = Field(
        default=1.5, description="Retry n waits retry_backoff_factor ** n seconds"
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    def __init__(self, **kwargs: Any) -> None:
        # Snapshot before pydantic-settings reads the environment
        from_environment = {
            name[len(ENV_PREFIX) :].lower() for name in os.environ if name.startswith(ENV_PREFIX)
        }

        super().__init__(**kwargs)

        self._pinned = set(kwargs) | from_environment
        self._apply_yaml_file()

    def _config_candidates(self) -> Iterator[Path]:
        """Config files in lookup order: explicit, project ``config/``, user config dir."""
        if self.config_file is not None:
            yield self.config_file
            return

        package_root = Path(__file__).resolve().parent.parent
        yield package_root.parent / "config" / "config.yaml"
        yield self.config_dir / "config.yaml"

    def _locate_config_file(self) -> Optional[Path]:
        return next((path for path in self._config_candidates() if path.exists()), None)

    def _apply_yaml_file(self) -> None:
        """Merge the first existing YAML config file into unpinned settings."""
        path = self._locate_config_file()
        if path is None:
            return

        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            self._apply_yaml(data)
        except Exception as e:
            # A broken config file leaves defaults and environment values in place
            logging.warning(f"Ignoring config file {path}: {e}")

    def _apply_yaml(self, data: dict) -> None:
        for name in YAML_SCALAR_SETTINGS:
            if name in data and name not in self._pinned:
                try:
                    setattr(self, name, data[name])
                except ValidationError as e:
                    logging.warning(f"Ignoring invalid {name} in config file: {e}")

        if "calendars" in data and "calendars" not in self._pinned:
            self.calendars = [
                CalendarSourceSettings(**({"url": item} if isinstance(item, str) else item))
                for item in data["calendars"] or []
            ]

        if "logging" in data and "logging" not in self._pinned:
            overrides = {
                key: value
                for key, value in (data["logging"] or {}).items()
                if key in LoggingSettings.model_fields
            }
            self.logging = self.logging.model_copy(update=overrides)

    @property
    def log_directory(self) -> Path:
        """Directory for log files."""
        if self.logging.file_directory:
            return Path(self.logging.file_directory)
        return self.data_dir / "logs"


_settings_instance: Optional[AgendaSettings] = None


def get_settings() -> AgendaSettings:
    """Process-wide settings, created on first use."""
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = AgendaSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Drop the process-wide settings (tests use this)."""
    globals()["_settings_instance"] = None
