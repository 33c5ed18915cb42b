import enum
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "NZD": "NZ$",
    "AUD": "A$",
    "CAD": "CA$",
}


def format_price(price: Decimal, currency: str) -> str:
    """Render a price with its currency symbol, e.g. ``$299.99``."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol:
        return f"{symbol}{price:,.2f}"
    return f"{currency.upper()} {price:,.2f}"


class CabinClass(str, enum.Enum):
    ECONOMY = "economy"
    PREMIUM_ECONOMY = "premium_economy"
    BUSINESS = "business"
    FIRST = "first"

    @property
    def label(self) -> str:
        return {
            CabinClass.ECONOMY: "Economy",
            CabinClass.PREMIUM_ECONOMY: "Premium Economy",
            CabinClass.BUSINESS: "Business",
            CabinClass.FIRST: "First Class",
        }[self]


class Airport(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str  # IATA code
    name: str = ""
    city: str = ""
    country: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def display_name(self) -> str:
        return f"{self.city} ({self.code})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Airport):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)


class FlightLeg(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    origin: Airport
    destination: Airport
    departure_at: datetime
    arrival_at: datetime
    airline: str
    flight_number: str
    duration_seconds: int


class FlightOffer(BaseModel):
    """
    One priced itinerary as returned by a flight search.

    Offers are immutable. A watchlist entry tracks price changes by holding
    a copy made with ``with_price``.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    origin: Airport
    destination: Airport
    departure_at: datetime
    arrival_at: datetime
    price: Decimal
    currency: str
    airline: str
    flight_number: str
    available_seats: int = 0
    cabin_class: CabinClass = CabinClass.ECONOMY
    duration_seconds: int = 0
    stops: int = 0
    legs: Optional[List[FlightLeg]] = None

    @property
    def is_multi_leg(self) -> bool:
        return bool(self.legs) and len(self.legs) > 1

    @property
    def formatted_price(self) -> str:
        return format_price(self.price, self.currency)

    @property
    def formatted_duration(self) -> str:
        hours = self.duration_seconds // 3600
        minutes = (self.duration_seconds % 3600) // 60
        return f"{hours}h {minutes}m"

    def with_price(self, price: Decimal) -> "FlightOffer":
        return FlightOffer.model_validate({**self.model_dump(), "price": price})
