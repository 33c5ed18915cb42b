from typing import List, Optional

from pydantic import BaseModel, Field

from flight_tracker.schemas.price_history import RoutePriceHistory
from flight_tracker.schemas.search import SearchQuery
from flight_tracker.schemas.user import UserProfile
from flight_tracker.schemas.watchlist import WatchlistEntry


class TrackerState(BaseModel):
    """The whole persisted document for the signed-in user."""

    profile: Optional[UserProfile] = None
    watchlist: List[WatchlistEntry] = Field(default_factory=list)
    route_histories: List[RoutePriceHistory] = Field(default_factory=list)
    recent_searches: List[SearchQuery] = Field(default_factory=list)

    @classmethod
    def default(cls, currency: str = "USD") -> "TrackerState":
        return cls(profile=UserProfile.default(currency))
