"""Source manager coordinating concurrent calendar fetching and merging."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple

from ..agenda.bucketer import bucket
from ..agenda.merger import merge
from ..agenda.models import AgendaSnapshot, DayBucket, Occurrence, SourceFailure, Window
from ..agenda.normalizer import EventNormalizer
from ..ics.exceptions import ICSError
from ..ics.fetcher import ICSFetcher
from ..ics.parser import ICSParser
from ..timezone import TimezoneService, get_timezone_service
from .exceptions import SourceError, SourceFetchError
from .models import SourceConfig, sources_from_settings

logger = logging.getLogger(__name__)

SourceResult = Tuple[SourceConfig, List[Occurrence], Optional[SourceFailure]]


class SourceManager:
    """Fetches every configured calendar and publishes the merged agenda.

    Each refresh cycle fetches all enabled sources concurrently and merges
    their occurrences one source at a time, in completion order, into a fresh
    accumulator. After every merge the published snapshot is replaced, so the
    display never sees a partially merged list.

    Reconfiguration bumps a generation counter and cancels in-flight fetches;
    results from an older generation are dropped.
    """

    def __init__(
        self,
        settings: Any,
        fetcher: Optional[ICSFetcher] = None,
        parser: Optional[ICSParser] = None,
        normalizer: Optional[EventNormalizer] = None,
        timezone_service: Optional[TimezoneService] = None,
        on_update: Optional[Callable[[AgendaSnapshot], None]] = None,
        on_error: Optional[Callable[[SourceFailure], None]] = None,
    ):
        """Initialize source manager.

        Args:
            settings: Application settings (calendars, number_of_days, fetch_interval)
            fetcher: ICS fetcher (created from settings when omitted)
            parser: ICS parser (created from settings when omitted)
            normalizer: Event normalizer (created from settings when omitted)
            timezone_service: Display timezone service (defaults to the global one)
            on_update: Called with every newly published snapshot
            on_error: Called with every source failure
        """
        self.settings = settings
        self.timezone_service = timezone_service or get_timezone_service()
        self.fetcher = fetcher or ICSFetcher(settings)
        self.parser = parser or ICSParser(settings, self.timezone_service)
        self.normalizer = normalizer or EventNormalizer(settings)
        self.on_update = on_update
        self.on_error = on_error

        self._sources: List[SourceConfig] = sources_from_settings(settings)
        self._number_of_days: int = settings.number_of_days
        self._generation = 0
        self._pending: Set["asyncio.Task[SourceResult]"] = set()
        self._snapshot = AgendaSnapshot()
        self._stop_event: Optional[asyncio.Event] = None

        logger.info(f"Source manager initialized with {len(self._sources)} calendars")

    async def __aenter__(self) -> "SourceManager":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def sources(self) -> List[SourceConfig]:
        """Currently configured sources."""
        return list(self._sources)

    @property
    def generation(self) -> int:
        """Configuration generation; bumped by every configure() call."""
        return self._generation

    @property
    def snapshot(self) -> AgendaSnapshot:
        """Most recently published agenda state."""
        return self._snapshot

    def current_window(self) -> Window:
        """Window starting at today's local midnight."""
        return Window.for_day(
            self.timezone_service.today(),
            self._number_of_days,
            self.timezone_service.display_tz,
        )

    def configure(
        self, sources: Iterable[SourceConfig], number_of_days: Optional[int] = None
    ) -> None:
        """Replace the source set and window length.

        In-flight fetches of the previous configuration are cancelled and any
        result they still deliver is discarded.
        """
        self._generation += 1
        self._cancel_pending()

        self._sources = list(sources)
        if number_of_days is not None:
            if number_of_days <= 0:
                raise ValueError("number_of_days must be positive")
            self._number_of_days = number_of_days

        logger.info(
            f"Reconfigured with {len(self._sources)} calendars, "
            f"{self._number_of_days} days (generation {self._generation})"
        )

    async def fetch_source(self, source: SourceConfig, window: Window) -> List[Occurrence]:
        """Fetch, parse and normalize one calendar.

        Returns:
            The source's occurrences within the window, sorted by start

        Raises:
            SourceFetchError: If the feed cannot be downloaded or parsed
        """
        logger.debug(f"Fetching calendar {source.source_id}: {source.url}")

        try:
            response = await self.fetcher.fetch_ics(source.to_ics_source())
        except ICSError as e:
            raise SourceFetchError(
                f"Error fetching {source.url}: {e.message}", source.source_id
            ) from e

        if not response.success or not response.content:
            raise SourceFetchError(
                f"Error fetching {source.url}: {response.error_message or 'No data received'}",
                source.source_id,
            )

        result = self.parser.parse_ics_content(response.content)
        if not result.success:
            raise SourceFetchError(
                f"Error parsing {source.url}: {result.error_message}", source.source_id
            )

        occurrences = self.normalizer.normalize_all(
            result.entries, window, source.source_id, source.color
        )
        logger.info(f"Fetched {len(occurrences)} occurrences from {source.source_id}")
        return occurrences

    async def _fetch_isolated(self, source: SourceConfig, window: Window) -> SourceResult:
        """Run fetch_source, turning any failure into a SourceFailure."""
        try:
            return source, await self.fetch_source(source, window), None
        except SourceError as e:
            logger.error(f"Calendar error for {source.source_id}: {e.message}")
            return source, [], SourceFailure(source_id=source.source_id, message=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error processing calendar {source.source_id}")
            return source, [], SourceFailure(
                source_id=source.source_id, message=f"Error fetching {source.url}: {e}"
            )

    async def refresh(self) -> AgendaSnapshot:
        """Run one refresh cycle over all enabled sources.

        Returns:
            The snapshot published last in this cycle
        """
        generation = self._generation
        window = self.current_window()
        sources = [source for source in self._sources if source.enabled]

        if not sources:
            logger.warning("No calendars configured")
            self._publish(AgendaSnapshot(loaded=True, window=window, updated_at=self._now()))
            return self._snapshot

        logger.debug(
            f"Refreshing {len(sources)} calendars for {window.first_day} "
            f"(+{window.number_of_days} days, generation {generation})"
        )

        tasks = [asyncio.create_task(self._fetch_isolated(source, window)) for source in sources]
        self._pending.update(tasks)

        accumulated: List[Occurrence] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                try:
                    source, occurrences, failure = await next_done
                except asyncio.CancelledError:
                    if generation != self._generation:
                        logger.debug("Refresh cancelled by reconfiguration")
                        break
                    raise

                if generation != self._generation:
                    logger.debug(f"Discarding stale result from {source.source_id}")
                    break

                if failure is not None:
                    self._report_failure(failure, accumulated, window)
                    continue

                accumulated = merge(accumulated, occurrences)
                self._publish(
                    AgendaSnapshot(
                        events=accumulated, loaded=True, window=window, updated_at=self._now()
                    )
                )
        finally:
            # No fetch outlives its refresh cycle
            for task in tasks:
                if not task.done():
                    task.cancel()
            self._pending.difference_update(tasks)

        return self._snapshot

    async def run(self, interval: Optional[float] = None) -> None:
        """Refresh now and then every ``interval`` seconds until stop() is called."""
        interval = interval or self.settings.fetch_interval
        self._stop_event = asyncio.Event()

        logger.info(f"Starting refresh loop (interval: {interval}s)")

        try:
            while not self._stop_event.is_set():
                await self.refresh()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            self._cancel_pending()
            logger.info("Refresh loop stopped")

    def stop(self) -> None:
        """Stop the refresh loop started by run()."""
        if self._stop_event is not None:
            self._stop_event.set()

    async def close(self) -> None:
        """Stop refreshing and release the HTTP client."""
        self.stop()
        self._cancel_pending()
        await self.fetcher.close()

    def buckets(self) -> List[DayBucket]:
        """Group the published occurrences into day buckets of their window."""
        window = self._snapshot.window or self.current_window()
        return bucket(self._snapshot.events, window)

    def _report_failure(
        self, failure: SourceFailure, accumulated: List[Occurrence], window: Window
    ) -> None:
        self._publish(
            AgendaSnapshot(
                events=accumulated,
                loaded=True,
                error=failure,
                window=window,
                updated_at=self._now(),
            )
        )
        if self.on_error is not None:
            self.on_error(failure)

    def _publish(self, snapshot: AgendaSnapshot) -> None:
        self._snapshot = snapshot
        if self.on_update is not None:
            self.on_update(snapshot)

    def _cancel_pending(self) -> None:
        for task in self._pending:
            if not task.done():
                task.cancel()
        self._pending.clear()

    def _now(self) -> datetime:
        return self.timezone_service.now()
