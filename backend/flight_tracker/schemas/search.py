import uuid
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, Field

from flight_tracker.schemas.flight import CabinClass


class SearchQuery(BaseModel):
    """One flight search, as kept in the recent-search list."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    origin: str
    destination: str
    departure_date: date
    return_date: Optional[date] = None
    passengers: int = 1
    cabin_class: CabinClass = CabinClass.ECONOMY
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def route_key(self) -> Tuple[str, str]:
        return (self.origin.upper(), self.destination.upper())
