"""
FlightTracker: the in-process owner of the signed-in user's state.

Every mutation is applied to the in-memory state and then persisted with one
explicit save. A bulk price refresh saves once at the end. Persistence
failures are logged by the adapter and never interrupt the caller; the next
successful save catches the store up.
"""
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from flight_tracker.config import Settings, get_settings
from flight_tracker.exceptions import FlightSourceError
from flight_tracker.schemas import (
    FlightOffer,
    NotificationPreferences,
    RoutePriceHistory,
    SearchQuery,
    UserProfile,
    WatchlistEntry,
)
from flight_tracker.services.alerts import AlertEvaluator, PriceAlert, departure_reminder_due
from flight_tracker.services.flight_search import FlightSource, validate_query
from flight_tracker.services.persistence import PersistenceAdapter
from flight_tracker.services.price_history import RoutePriceHistoryStore
from flight_tracker.services.search_history import RecentSearches
from flight_tracker.services.watchlist import UNSET, WatchlistSort, WatchlistStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceQuoteSource(ABC):
    """Where a bulk refresh gets the latest price for a watched offer."""

    @abstractmethod
    async def current_price(self, entry: WatchlistEntry) -> Decimal:
        pass


class SimulatedPriceSource(PriceQuoteSource):
    """Random walk of up to ±20 around the current price, never below 50."""

    def __init__(self, seed: Optional[int] = None, max_variation: float = 20.0, floor: Decimal = Decimal(50)):
        self._random = random.Random(seed)
        self.max_variation = max_variation
        self.floor = floor

    async def current_price(self, entry: WatchlistEntry) -> Decimal:
        variation = Decimal(str(round(self._random.uniform(-self.max_variation, self.max_variation), 2)))
        return max(entry.current_price + variation, self.floor)


class SearchPriceSource(PriceQuoteSource):
    """Re-runs the offer's search and picks up the same flight's new price."""

    def __init__(self, flight_source: FlightSource):
        self.flight_source = flight_source

    async def current_price(self, entry: WatchlistEntry) -> Decimal:
        offer = entry.offer
        query = SearchQuery(
            origin=offer.origin.code,
            destination=offer.destination.code,
            departure_date=offer.departure_at.date(),
            cabin_class=offer.cabin_class,
        )
        for candidate in await self.flight_source.search(query):
            if candidate.id == offer.id or (
                candidate.flight_number == offer.flight_number
                and candidate.departure_at == offer.departure_at
            ):
                return candidate.price
        raise FlightSourceError(f"{offer.flight_number} is no longer offered")


@dataclass
class RefreshSummary:
    refreshed: int = 0
    failed: List[str] = field(default_factory=list)  # entry ids
    alerts: List[PriceAlert] = field(default_factory=list)


class FlightTracker:
    def __init__(
        self,
        persistence: PersistenceAdapter,
        flight_source: Optional[FlightSource] = None,
        notifier=None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or get_settings()
        self.persistence = persistence
        self.flight_source = flight_source
        self._clock = clock

        self.state = persistence.load()
        self.watchlist = WatchlistStore(self.state.watchlist, clock=clock)
        self.price_history = RoutePriceHistoryStore(self.state.route_histories, clock=clock)
        self.recent_searches = RecentSearches(
            self.state.recent_searches, limit=self.settings.recent_search_limit
        )
        self.alerts = AlertEvaluator(notifier)

    def save(self) -> bool:
        return self.persistence.save(self.state)

    # Profile

    @property
    def profile(self) -> Optional[UserProfile]:
        return self.state.profile

    def create_user(
        self,
        id: str,
        username: str,
        email: str,
        first_name: str,
        last_name: str,
    ) -> UserProfile:
        now = self._clock()
        self.state.profile = UserProfile(
            id=id,
            username=username,
            email=email,
            first_name=first_name,
            last_name=last_name,
            preferred_currency=self.settings.default_currency,
            created_at=now,
            last_login=now,
        )
        logger.info(f"Created profile for {username}")
        self.save()
        return self.state.profile

    def update_user(self, profile: UserProfile) -> UserProfile:
        self.state.profile = profile
        self.save()
        return profile

    def update_last_login(self) -> None:
        if self.state.profile is None:
            return
        self.state.profile.last_login = self._clock()
        self.save()

    def _preferences(self) -> NotificationPreferences:
        if self.state.profile is None:
            return NotificationPreferences()
        return self.state.profile.notification_preferences

    # Search

    async def search(self, query: SearchQuery) -> List[FlightOffer]:
        """
        Run a search and remember what it returned.

        Validation errors and data-source failures propagate to the caller
        and leave the state untouched.
        """
        if self.flight_source is None:
            raise FlightSourceError("No flight source configured")
        query = validate_query(query)

        offers = await self.flight_source.search(query)

        for offer in offers:
            self.price_history.record(offer)
        self.recent_searches.add(query)
        logger.info(f"Search {query.origin}→{query.destination} returned {len(offers)} offers")
        self.save()
        return offers

    def clear_search_history(self) -> None:
        self.recent_searches.clear()
        self.save()

    def price_history_for(
        self, origin: str, destination: str, departure: date
    ) -> Optional[RoutePriceHistory]:
        return self.price_history.query(origin, destination, departure)

    # Watchlist

    def add_to_watchlist(
        self,
        offer: FlightOffer,
        target_price: Optional[Decimal] = None,
        note: Optional[str] = None,
    ) -> WatchlistEntry:
        user_id = self.state.profile.id if self.state.profile else ""
        entry = self.watchlist.add(offer, target_price=target_price, note=note, user_id=user_id)
        self.save()
        return entry

    def remove_from_watchlist(self, entry_id: str) -> WatchlistEntry:
        entry = self.watchlist.remove(entry_id)
        self.save()
        return entry

    def update_watchlist_entry(
        self,
        entry_id: str,
        target_price=UNSET,
        note=UNSET,
        alert_enabled=UNSET,
    ) -> WatchlistEntry:
        entry = self.watchlist.update(
            entry_id, target_price=target_price, note=note, alert_enabled=alert_enabled
        )
        self.save()
        return entry

    def is_in_watchlist(self, offer: FlightOffer) -> bool:
        return self.watchlist.contains_offer(offer.id)

    def sorted_watchlist(self, by: WatchlistSort = WatchlistSort.ADDED) -> List[WatchlistEntry]:
        return self.watchlist.sorted(by)

    # Prices and alerts

    async def _apply_price(self, entry_id: str, new_price: Decimal) -> List[PriceAlert]:
        entry, previous_price = self.watchlist.refresh_price(entry_id, new_price)
        return await self.alerts.process(entry, self._preferences(), previous_price)

    async def refresh_price(self, entry_id: str, new_price: Decimal) -> List[PriceAlert]:
        alerts = await self._apply_price(entry_id, new_price)
        self.save()
        return alerts

    async def refresh_all(self, price_source: PriceQuoteSource) -> RefreshSummary:
        """
        Refresh every watched offer, one at a time.

        A failed fetch or update is logged and that entry skipped; the rest carry on.
        State is saved once after the last entry.
        """
        summary = RefreshSummary()
        for entry in list(self.watchlist):
            try:
                new_price = await price_source.current_price(entry)
            except Exception as e:
                logger.warning(f"Error updating price for {entry.offer.flight_number}: {e}")
                summary.failed.append(entry.id)
                continue
            try:
                summary.alerts.extend(await self._apply_price(entry.id, new_price))
            except Exception as e:
                logger.warning(f"Error applying price for {entry.offer.flight_number}: {e}")
                summary.failed.append(entry.id)
                continue
            summary.refreshed += 1

        self.save()
        logger.info(
            f"Refreshed {summary.refreshed}/{len(self.watchlist)} watchlist prices, "
            f"{len(summary.alerts)} alerts"
        )
        return summary

    async def send_departure_reminders(self, now: Optional[datetime] = None) -> List[PriceAlert]:
        now = now or self._clock()
        prefs = self._preferences()
        sent = []
        for entry in self.watchlist:
            if not departure_reminder_due(entry, prefs, now):
                continue
            sent.append(await self.alerts.remind(entry))
            self.watchlist.mark_reminder_sent(entry.id, now)
        if sent:
            self.save()
        return sent

    async def close(self):
        if self.flight_source is not None:
            await self.flight_source.close()
        notifier = self.alerts.notifier
        if notifier is not None and hasattr(notifier, "close"):
            await notifier.close()
