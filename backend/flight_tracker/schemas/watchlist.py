import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from flight_tracker.schemas.flight import FlightOffer


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceTrend(str, enum.Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


def price_change_percentage(initial: Optional[Decimal], current: Decimal) -> float:
    """
    Percentage move from ``initial`` to ``current``.

    The initial price is always the denominator. A missing or non-positive
    initial price is treated as no change.
    """
    if initial is None or initial <= 0:
        return 0.0
    return float((current - initial) / initial * 100)


def classify_trend(prices: Sequence[Decimal], window: int = 3) -> PriceTrend:
    """Classify the last ``window`` prices as strictly rising, falling or stable."""
    if len(prices) < 2:
        return PriceTrend.STABLE

    recent = list(prices)[-window:]
    pairs = list(zip(recent, recent[1:]))
    if all(a < b for a, b in pairs):
        return PriceTrend.INCREASING
    if all(a > b for a, b in pairs):
        return PriceTrend.DECREASING
    return PriceTrend.STABLE


class PriceSnapshot(BaseModel):
    id: str = Field(default_factory=_new_id)
    price: Decimal
    timestamp: datetime = Field(default_factory=_utcnow)


class WatchlistEntry(BaseModel):
    """A tracked offer together with its price history and alert settings."""

    id: str = Field(default_factory=_new_id)
    user_id: str = ""
    offer: FlightOffer
    initial_price: Decimal
    target_price: Optional[Decimal] = None
    alert_enabled: bool = True
    added_at: datetime = Field(default_factory=_utcnow)
    last_checked: datetime = Field(default_factory=_utcnow)
    price_history: List[PriceSnapshot] = Field(default_factory=list)
    note: Optional[str] = None
    reminder_sent_at: Optional[datetime] = None

    @property
    def current_price(self) -> Decimal:
        return self.offer.price

    @property
    def price_difference(self) -> Decimal:
        return self.current_price - self.initial_price

    @property
    def price_change_percentage(self) -> float:
        return price_change_percentage(self.initial_price, self.current_price)

    @property
    def below_target_price(self) -> bool:
        if self.target_price is None:
            return False
        return self.current_price <= self.target_price

    @property
    def price_trend(self) -> PriceTrend:
        return classify_trend([s.price for s in self.price_history])

    def add_snapshot(self, snapshot: PriceSnapshot) -> None:
        self.price_history.append(snapshot)
        # last_checked only moves forward
        if snapshot.timestamp > self.last_checked:
            self.last_checked = snapshot.timestamp
