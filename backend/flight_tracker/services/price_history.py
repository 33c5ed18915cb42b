import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from flight_tracker.exceptions import RouteHistoryNotFound
from flight_tracker.schemas import FlightOffer, PricePoint, RoutePriceHistory, make_route_id

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoutePriceHistoryStore:
    """
    Price history bucketed by origin, destination and departure day.

    Every offer seen in a search adds one point to its route's bucket, so the
    history spans all searches, not only watched offers.
    """

    def __init__(
        self,
        histories: Optional[List[RoutePriceHistory]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._histories: List[RoutePriceHistory] = histories if histories is not None else []
        self._clock = clock

    def __len__(self) -> int:
        return len(self._histories)

    def all(self) -> List[RoutePriceHistory]:
        return list(self._histories)

    def _find(self, route_id: str) -> Optional[RoutePriceHistory]:
        for history in self._histories:
            if history.route_id == route_id:
                return history
        return None

    def record(self, offer: FlightOffer) -> RoutePriceHistory:
        departure_day = offer.departure_at.date()
        route_id = make_route_id(offer.origin.code, offer.destination.code, departure_day)
        now = self._clock()
        point = PricePoint(
            price=offer.price,
            currency=offer.currency,
            timestamp=now,
            airline=offer.airline,
            cabin_class=offer.cabin_class,
        )

        history = self._find(route_id)
        if history is None:
            history = RoutePriceHistory(
                route_id=route_id,
                origin=offer.origin,
                destination=offer.destination,
                departure_date=departure_day,
                price_points=[point],
                created_at=now,
                last_updated=now,
            )
            self._histories.append(history)
            logger.info(f"Started price history for {route_id}")
        else:
            history.add_point(point)
        return history

    def query(self, origin: str, destination: str, departure: date) -> Optional[RoutePriceHistory]:
        return self._find(make_route_id(origin, destination, departure))

    def get(self, origin: str, destination: str, departure: date) -> RoutePriceHistory:
        route_id = make_route_id(origin, destination, departure)
        history = self._find(route_id)
        if history is None:
            raise RouteHistoryNotFound(route_id)
        return history
