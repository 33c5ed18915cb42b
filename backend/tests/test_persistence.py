"""Tests for saving and loading the tracker state document."""
from decimal import Decimal
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from flight_tracker.models import StateRecord
from flight_tracker.schemas import SearchQuery, TrackerState, UserProfile
from flight_tracker.services.persistence import PersistenceAdapter
from flight_tracker.services.price_history import RoutePriceHistoryStore
from flight_tracker.services.watchlist import WatchlistStore

from conftest import BASE_TIME


def _populated_state(make_offer, clock) -> TrackerState:
    state = TrackerState(profile=UserProfile(username="traveler", first_name="Ada", last_name="Byron"))
    watchlist = WatchlistStore(state.watchlist, clock=clock)
    entry = watchlist.add(make_offer(), target_price=Decimal("250.00"), note="Winter")
    clock.advance(hours=3)
    watchlist.refresh_price(entry.id, Decimal("279.50"))
    RoutePriceHistoryStore(state.route_histories, clock=clock).record(make_offer())
    state.recent_searches.append(
        SearchQuery(origin="LAX", destination="JFK", departure_date=BASE_TIME.date(), timestamp=BASE_TIME)
    )
    return state


class TestLoad:
    def test_absent_store_gives_default_state(self, persistence):
        state = persistence.load()

        assert state.watchlist == []
        assert state.route_histories == []
        assert state.recent_searches == []
        assert state.profile is not None
        assert state.profile.preferred_currency == "USD"

    def test_corrupt_payload_gives_default_state(self, persistence, session_factory):
        with session_factory() as session, session.begin():
            session.add(StateRecord(key="TestState", payload="{not json", updated_at=BASE_TIME))

        state = persistence.load()

        assert state.watchlist == []
        assert state.profile is not None

    def test_unreadable_store_gives_default_state(self):
        factory = MagicMock(side_effect=OperationalError("SELECT", {}, Exception("disk I/O error")))
        adapter = PersistenceAdapter(session_factory=factory, state_key="TestState")

        state = adapter.load()

        assert state.watchlist == []


class TestSave:
    def test_round_trip(self, persistence, make_offer, clock):
        state = _populated_state(make_offer, clock)

        assert persistence.save(state) is True
        loaded = persistence.load()

        assert loaded == state
        assert loaded.watchlist[0].current_price == Decimal("279.50")
        assert loaded.watchlist[0].last_checked.tzinfo is not None

    def test_save_replaces_previous_snapshot(self, persistence, make_offer, clock, session_factory):
        persistence.save(_populated_state(make_offer, clock))
        persistence.save(TrackerState.default())

        with session_factory() as session:
            assert session.query(StateRecord).count() == 1
        assert persistence.load().watchlist == []

    def test_keys_are_independent(self, persistence, session_factory, make_offer, clock):
        other = PersistenceAdapter(session_factory=session_factory, state_key="OtherState")
        persistence.save(_populated_state(make_offer, clock))

        assert other.load().watchlist == []
        assert len(persistence.load().watchlist) == 1

    def test_save_failure_returns_false(self):
        factory = MagicMock(side_effect=OperationalError("INSERT", {}, Exception("database is locked")))
        adapter = PersistenceAdapter(session_factory=factory, state_key="TestState")

        assert adapter.save(TrackerState.default()) is False


class TestDelete:
    def test_delete_then_load_is_default(self, persistence, make_offer, clock):
        persistence.save(_populated_state(make_offer, clock))

        assert persistence.delete() is True
        assert persistence.load().watchlist == []

    def test_delete_when_empty(self, persistence):
        assert persistence.delete() is True


class TestConstruction:
    def test_explicit_arguments_do_not_read_settings(self, session_factory):
        with patch(
            "flight_tracker.services.persistence.get_settings",
            side_effect=ValueError("FLIGHT_SOURCE=duffel requires DUFFEL_API_KEY"),
        ) as get_settings:
            adapter = PersistenceAdapter(
                session_factory=session_factory, state_key="TestState", default_currency="EUR"
            )

        get_settings.assert_not_called()
        assert adapter.load().profile.preferred_currency == "EUR"

    def test_missing_arguments_come_from_settings(self, session_factory):
        adapter = PersistenceAdapter(session_factory=session_factory)
        assert adapter.state_key == "FlightTrackerData"
        assert adapter.default_currency == "USD"
