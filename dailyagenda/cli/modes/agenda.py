"""Console agenda modes: single shot and continuous refresh."""

import logging
import signal
from typing import Any

from ...agenda.models import AgendaSnapshot, AgendaStatus
from ...display import ConsoleRenderer
from ...sources import SourceManager
from ...timezone import TimezoneService

logger = logging.getLogger(__name__)


async def run_once_mode(settings: Any, timezone_service: TimezoneService) -> int:
    """Fetch every calendar once and print the agenda.

    Returns:
        Exit code (0 for success, 1 if a calendar failed)
    """
    renderer = ConsoleRenderer(settings)

    async with SourceManager(settings, timezone_service=timezone_service) as manager:
        snapshot = await manager.refresh()
        renderer.display(renderer.render(snapshot, manager.buckets(), timezone_service.now()))

    return 1 if snapshot.status == AgendaStatus.ERROR else 0


async def run_agenda_mode(settings: Any, timezone_service: TimezoneService) -> int:
    """Redraw the agenda whenever it changes, refreshing every ``fetch_interval`` seconds.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    renderer = ConsoleRenderer(settings)
    manager: SourceManager

    def on_update(snapshot: AgendaSnapshot) -> None:
        content = renderer.render(snapshot, manager.buckets(), timezone_service.now())
        renderer.display(content, clear=True)

    manager = SourceManager(settings, timezone_service=timezone_service, on_update=on_update)

    def signal_handler(signum: int, _frame: Any) -> None:
        """Handle shutdown signals gracefully."""
        logger.info(f"Received signal {signum}, shutting down...")
        manager.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        renderer.display(renderer.render(manager.snapshot, []), clear=True)
        await manager.run(settings.fetch_interval)
    except Exception:
        logger.exception("Agenda mode failed")
        return 1
    finally:
        await manager.close()

    return 0
