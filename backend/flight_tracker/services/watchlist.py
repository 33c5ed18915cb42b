import enum
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from flight_tracker.exceptions import WatchlistEntryNotFound
from flight_tracker.schemas import FlightOffer, PriceSnapshot, WatchlistEntry

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks an update() argument the caller did not pass, so None can mean "clear".
UNSET = _Unset()


class WatchlistSort(str, enum.Enum):
    ADDED = "added"                 # newest first
    PRICE_CHANGE = "price_change"   # biggest drop first
    DEPARTURE = "departure"         # soonest first
    PRICE = "price"                 # cheapest first


_SORT_KEYS = {
    WatchlistSort.ADDED: (lambda e: e.added_at, True),
    WatchlistSort.PRICE_CHANGE: (lambda e: e.price_change_percentage, False),
    WatchlistSort.DEPARTURE: (lambda e: e.offer.departure_at, False),
    WatchlistSort.PRICE: (lambda e: e.current_price, False),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WatchlistStore:
    """
    The user's tracked offers.

    Entries are kept in insertion order. The store owns the list it is
    given, so the tracker can hand it the list from the loaded state.
    """

    def __init__(
        self,
        entries: Optional[List[WatchlistEntry]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._entries: List[WatchlistEntry] = entries if entries is not None else []
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> List[WatchlistEntry]:
        return self._entries

    def add(
        self,
        offer: FlightOffer,
        target_price: Optional[Decimal] = None,
        note: Optional[str] = None,
        user_id: str = "",
    ) -> WatchlistEntry:
        now = self._clock()
        entry = WatchlistEntry(
            user_id=user_id,
            offer=offer,
            initial_price=offer.price,
            target_price=target_price,
            alert_enabled=True,
            added_at=now,
            last_checked=now,
            price_history=[PriceSnapshot(price=offer.price, timestamp=now)],
            note=note,
        )
        self._entries.append(entry)
        logger.info(
            f"Added {offer.flight_number} {offer.origin.code}→{offer.destination.code} "
            f"to watchlist at {offer.formatted_price}"
        )
        return entry

    def get(self, entry_id: str) -> WatchlistEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise WatchlistEntryNotFound(entry_id)

    def remove(self, entry_id: str) -> WatchlistEntry:
        entry = self.get(entry_id)
        self._entries.remove(entry)
        logger.info(f"Removed watchlist entry {entry_id}")
        return entry

    def contains_offer(self, offer_id: str) -> bool:
        return any(e.offer.id == offer_id for e in self._entries)

    def update(
        self,
        entry_id: str,
        target_price=UNSET,
        note=UNSET,
        alert_enabled=UNSET,
    ) -> WatchlistEntry:
        """Apply user edits. Pass ``None`` to clear the target price or note."""
        entry = self.get(entry_id)
        if target_price is not UNSET:
            entry.target_price = target_price
        if note is not UNSET:
            entry.note = note
        if alert_enabled is not UNSET:
            entry.alert_enabled = bool(alert_enabled)
        return entry

    def refresh_price(self, entry_id: str, new_price: Decimal) -> Tuple[WatchlistEntry, Decimal]:
        """
        Record a newly observed price for an entry.

        Appends a snapshot, swaps the tracked offer for a copy at the new
        price and advances last_checked. Returns the entry and the price it
        had before the refresh.
        """
        entry = self.get(entry_id)
        # floats would mix with Decimal arithmetic later
        new_price = Decimal(str(new_price))
        previous_price = entry.current_price
        now = max(self._clock(), entry.last_checked)

        entry.offer = entry.offer.with_price(new_price)
        entry.add_snapshot(PriceSnapshot(price=new_price, timestamp=now))

        logger.info(
            f"Price for {entry.offer.flight_number}: {previous_price} → {new_price} "
            f"({entry.price_change_percentage:+.1f}% since added)"
        )
        return entry, previous_price

    def mark_reminder_sent(self, entry_id: str, when: Optional[datetime] = None) -> WatchlistEntry:
        entry = self.get(entry_id)
        entry.reminder_sent_at = when or self._clock()
        return entry

    def sorted(self, by: WatchlistSort = WatchlistSort.ADDED) -> List[WatchlistEntry]:
        key, reverse = _SORT_KEYS[WatchlistSort(by)]
        return sorted(self._entries, key=key, reverse=reverse)
