"""
Test fixtures for the flight tracker tests.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from flight_tracker.database import Base
from flight_tracker.models import StateRecord  # noqa: F401
from flight_tracker.schemas import Airport, CabinClass, FlightOffer
from flight_tracker.services.persistence import PersistenceAdapter


LAX = Airport(code="LAX", name="Los Angeles International Airport", city="Los Angeles", country="United States")
JFK = Airport(code="JFK", name="John F. Kennedy International Airport", city="New York", country="United States")

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that tests move by hand."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.closed = False

    async def send(self, message) -> bool:
        self.sent.append(message)
        return True

    async def close(self):
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def make_offer():
    def _make_offer(
        id="off_1",
        price="299.99",
        currency="USD",
        origin=LAX,
        destination=JFK,
        departure_at=None,
        flight_number="DL1234",
        cabin_class=CabinClass.ECONOMY,
    ) -> FlightOffer:
        departure_at = departure_at or BASE_TIME + timedelta(days=14)
        return FlightOffer(
            id=id,
            origin=origin,
            destination=destination,
            departure_at=departure_at,
            arrival_at=departure_at + timedelta(hours=5, minutes=30),
            price=Decimal(price),
            currency=currency,
            airline="Delta Airlines",
            flight_number=flight_number,
            available_seats=12,
            cabin_class=cabin_class,
            duration_seconds=19800,
            stops=0,
        )

    return _make_offer


@pytest.fixture
def session_factory(tmp_path):
    """
    Session factory bound to a fresh SQLite file per test.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'state.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def persistence(session_factory):
    return PersistenceAdapter(session_factory=session_factory, state_key="TestState")
