import logging
from typing import List, Optional

from flight_tracker.schemas import SearchQuery

logger = logging.getLogger(__name__)


class RecentSearches:
    """Most-recent-first list of past searches, one per origin/destination pair."""

    def __init__(self, searches: Optional[List[SearchQuery]] = None, limit: int = 10):
        self._searches: List[SearchQuery] = searches if searches is not None else []
        self.limit = limit
        # stored state may predate a smaller limit
        del self._searches[limit:]

    def __len__(self) -> int:
        return len(self._searches)

    def __iter__(self):
        return iter(self._searches)

    @property
    def searches(self) -> List[SearchQuery]:
        return self._searches

    def add(self, query: SearchQuery) -> None:
        self._searches[:] = [s for s in self._searches if s.route_key != query.route_key]
        self._searches.insert(0, query)
        del self._searches[self.limit:]

    def clear(self) -> None:
        self._searches.clear()
        logger.info("Cleared search history")
