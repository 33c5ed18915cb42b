from flight_tracker.schemas.flight import Airport, CabinClass, FlightLeg, FlightOffer, format_price
from flight_tracker.schemas.watchlist import (
    PriceSnapshot,
    PriceTrend,
    WatchlistEntry,
    classify_trend,
    price_change_percentage,
)
from flight_tracker.schemas.price_history import PricePoint, RoutePriceHistory, make_route_id
from flight_tracker.schemas.user import (
    LuggagePreference,
    NotificationPreferences,
    UserProfile,
    WeightUnit,
)
from flight_tracker.schemas.search import SearchQuery
from flight_tracker.schemas.state import TrackerState

__all__ = [
    "Airport",
    "CabinClass",
    "FlightLeg",
    "FlightOffer",
    "format_price",
    "PriceSnapshot",
    "PriceTrend",
    "WatchlistEntry",
    "classify_trend",
    "price_change_percentage",
    "PricePoint",
    "RoutePriceHistory",
    "make_route_id",
    "LuggagePreference",
    "NotificationPreferences",
    "UserProfile",
    "WeightUnit",
    "SearchQuery",
    "TrackerState",
]
