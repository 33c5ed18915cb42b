"""Tests for the recent-search list."""
from datetime import date

from flight_tracker.schemas import SearchQuery
from flight_tracker.services.search_history import RecentSearches


AIRPORTS = ["LAX", "JFK", "SFO", "ORD", "ATL", "DFW", "DEN", "SEA", "MIA", "BOS", "LHR", "CDG"]


def _query(origin, destination):
    return SearchQuery(origin=origin, destination=destination, departure_date=date(2025, 3, 1))


class TestRecentSearches:
    def test_newest_first(self):
        recent = RecentSearches()
        recent.add(_query("LAX", "JFK"))
        recent.add(_query("SFO", "ORD"))
        assert [s.route_key for s in recent] == [("SFO", "ORD"), ("LAX", "JFK")]

    def test_never_more_than_limit(self):
        recent = RecentSearches()
        for destination in AIRPORTS[1:]:
            recent.add(_query("LAX", destination))

        assert len(recent) == 10
        assert recent.searches[0].destination == "CDG"

    def test_same_route_is_moved_to_front(self):
        recent = RecentSearches()
        first = _query("LAX", "JFK")
        recent.add(first)
        recent.add(_query("SFO", "ORD"))
        repeat = _query("lax", "jfk")
        recent.add(repeat)

        assert len(recent) == 2
        assert recent.searches[0] is repeat
        assert first not in recent.searches

    def test_return_leg_is_a_different_route(self):
        recent = RecentSearches()
        recent.add(_query("LAX", "JFK"))
        recent.add(_query("JFK", "LAX"))
        assert len(recent) == 2

    def test_backing_list_is_shared(self):
        backing = []
        recent = RecentSearches(backing, limit=3)
        recent.add(_query("LAX", "JFK"))
        assert len(backing) == 1

    def test_oversized_list_is_truncated(self):
        backing = [_query("LAX", code) for code in AIRPORTS[1:6]]
        recent = RecentSearches(backing, limit=3)
        assert len(recent) == 3

    def test_clear(self):
        recent = RecentSearches()
        recent.add(_query("LAX", "JFK"))
        recent.clear()
        assert len(recent) == 0
