import asyncio
import logging

from flight_tracker.config import get_settings
from flight_tracker.services.flight_search import get_flight_source
from flight_tracker.services.notification import NtfyNotifier
from flight_tracker.services.persistence import PersistenceAdapter
from flight_tracker.services.tracker import (
    FlightTracker,
    SearchPriceSource,
    SimulatedPriceSource,
)

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_tracker() -> FlightTracker:
    settings = get_settings()
    return FlightTracker(
        persistence=PersistenceAdapter(),
        flight_source=get_flight_source(settings),
        notifier=NtfyNotifier(),
        settings=settings,
    )


async def run_once() -> None:
    """Refresh every watched price and send any due departure reminders."""
    settings = get_settings()
    tracker = build_tracker()
    logger.info(f"🚀 Refreshing {len(tracker.watchlist)} watchlist entries ({settings.flight_source} source)")

    if settings.flight_source == "sample":
        price_source = SimulatedPriceSource()
    else:
        price_source = SearchPriceSource(tracker.flight_source)

    try:
        summary = await tracker.refresh_all(price_source)
        reminders = await tracker.send_departure_reminders()
        logger.info(
            f"✅ Done: {summary.refreshed} refreshed, {len(summary.failed)} failed, "
            f"{len(summary.alerts)} alerts, {len(reminders)} reminders"
        )
    finally:
        await tracker.close()


def main() -> None:
    configure_logging()
    asyncio.run(run_once())


if __name__ == "__main__":
    main()
