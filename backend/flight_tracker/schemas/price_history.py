import statistics
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from flight_tracker.schemas.flight import Airport, CabinClass


def make_route_id(origin: str, destination: str, departure: date) -> str:
    """Bucket key for a route on a given departure day, e.g. ``LAX-JFK-2025-01-15``."""
    if isinstance(departure, datetime):
        departure = departure.date()
    return f"{origin.upper()}-{destination.upper()}-{departure.isoformat()}"


class PricePoint(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    price: Decimal
    currency: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    airline: Optional[str] = None
    cabin_class: Optional[CabinClass] = None


class RoutePriceHistory(BaseModel):
    """Every price seen for one origin/destination/departure-date route."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    route_id: str
    origin: Airport
    destination: Airport
    departure_date: date
    price_points: List[PricePoint] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def prices(self) -> List[Decimal]:
        return [p.price for p in self.price_points]

    @property
    def current_price(self) -> Optional[Decimal]:
        return self.price_points[-1].price if self.price_points else None

    @property
    def lowest_price(self) -> Optional[Decimal]:
        return min(self.prices) if self.price_points else None

    @property
    def highest_price(self) -> Optional[Decimal]:
        return max(self.prices) if self.price_points else None

    @property
    def average_price(self) -> Decimal:
        if not self.price_points:
            return Decimal(0)
        return statistics.mean(self.prices)

    @property
    def price_change_percentage(self) -> Optional[float]:
        if not self.price_points:
            return None
        first = self.price_points[0].price
        last = self.price_points[-1].price
        if first <= 0:
            return None
        return float((last - first) / first * 100)

    def add_point(self, point: PricePoint) -> None:
        self.price_points.append(point)
        if point.timestamp > self.last_updated:
            self.last_updated = point.timestamp

    def points_between(self, start: datetime, end: datetime) -> List[PricePoint]:
        return [p for p in self.price_points if start <= p.timestamp <= end]
