"""
Flight offer sources.

A source turns a search query into an ordered list of FlightOffer records.
Two implementations:

- DuffelFlightSource: the Duffel offers API (create an offer request, then
  list its offers).
- SampleFlightSource: an offline generator with plausible prices, used in
  development and tests.

Failures surface as FlightSourceError subclasses so callers can tell bad
input, bad credentials, network trouble and unparseable responses apart.
"""
import logging
import random
import re
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import httpx

from flight_tracker.config import Settings, get_settings
from flight_tracker.exceptions import (
    DecodeError,
    InvalidRequestError,
    SearchValidationError,
    TransportError,
    UnauthorizedError,
)
from flight_tracker.schemas import Airport, CabinClass, FlightLeg, FlightOffer, SearchQuery
from flight_tracker.services.airports import AIRPORTS, AirportService

logger = logging.getLogger(__name__)

# Duffel does not report seat availability on offers
DEFAULT_AVAILABLE_SEATS = 9

_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


def parse_iso_duration(value: Optional[str]) -> int:
    """Convert an ISO-8601 duration such as ``PT5H30M`` to seconds (0 if unparseable)."""
    if not value:
        return 0
    match = _DURATION_RE.match(value.strip())
    if not match:
        return 0
    parts = {k: int(v) for k, v in match.groupdict().items() if v}
    return (
        parts.get("days", 0) * 86400
        + parts.get("hours", 0) * 3600
        + parts.get("minutes", 0) * 60
        + parts.get("seconds", 0)
    )


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_query(query: SearchQuery) -> SearchQuery:
    """
    Check a search before it goes to a source.

    Returns the query with upper-cased airport codes; raises
    SearchValidationError with a user-facing message otherwise.
    """
    ok, error = AirportService.validate(query.origin, "Origin")
    if not ok:
        raise SearchValidationError(error)
    ok, error = AirportService.validate(query.destination, "Destination")
    if not ok:
        raise SearchValidationError(error)

    origin = query.origin.strip().upper()
    destination = query.destination.strip().upper()
    if origin == destination:
        raise SearchValidationError("Origin and destination must be different")
    if query.passengers < 1:
        raise SearchValidationError("At least one passenger is required")
    if query.return_date is not None and query.return_date < query.departure_date:
        raise SearchValidationError("Return date cannot be before departure date")

    return query.model_copy(update={"origin": origin, "destination": destination})


class FlightSource(ABC):
    name: str = "base"

    @abstractmethod
    async def search(self, query: SearchQuery) -> List[FlightOffer]:
        pass

    async def close(self):
        pass


class DuffelFlightSource(FlightSource):
    """
    Duffel offers API client.

    Usage:
        source = DuffelFlightSource(api_key="duffel_test_...")
        offers = await source.search(SearchQuery(origin="LAX", destination="JFK", departure_date=...))
    """
    name = "duffel"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.duffel.com",
        version: str = "v2",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.version = version
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url)
            self._owns_client = True
        return self._client

    async def close(self):
        if self._client and self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Duffel-Version": self.version,
        }

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        client = await self._get_client()
        try:
            response = await client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Duffel request failed: {e}")
            raise TransportError(f"Network error: {e}") from e

        if response.status_code == 401:
            raise UnauthorizedError("Unauthorized: invalid API key")
        if response.status_code >= 500:
            logger.error(f"Duffel API error: {response.status_code} - {response.text[:200]}")
            raise TransportError(f"Server error {response.status_code}")
        if response.status_code >= 400:
            logger.warning(f"Duffel rejected request: {response.status_code} - {response.text[:200]}")
            raise InvalidRequestError(f"API error {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as e:
            raise DecodeError(f"Failed to decode response: {e}") from e
        if not isinstance(body, dict):
            raise DecodeError("Unexpected response shape")
        return body

    def _offer_request_body(self, query: SearchQuery) -> dict:
        slices = [{
            "origin": query.origin,
            "destination": query.destination,
            "departure_date": query.departure_date.isoformat(),
        }]
        if query.return_date:
            slices.append({
                "origin": query.destination,
                "destination": query.origin,
                "departure_date": query.return_date.isoformat(),
            })
        return {
            "data": {
                "slices": slices,
                "passengers": [{"type": "adult"} for _ in range(query.passengers)],
                "cabin_class": query.cabin_class.value,
            }
        }

    async def search(self, query: SearchQuery) -> List[FlightOffer]:
        created = await self._request(
            "POST", "/air/offer_requests", json=self._offer_request_body(query)
        )
        offer_request_id = (created.get("data") or {}).get("id")
        if not offer_request_id:
            raise DecodeError("Offer request response has no id")

        listing = await self._request(
            "GET", "/air/offers", params={"offer_request_id": offer_request_id}
        )
        offers = self.parse_offers(listing, query.cabin_class)
        logger.info(
            f"Duffel returned {len(offers)} offers for {query.origin}→{query.destination} "
            f"on {query.departure_date}"
        )
        return offers

    @staticmethod
    def _parse_airport(data: dict) -> Airport:
        city = data.get("city") or {}
        return AirportService.resolve(
            data.get("iata_code", ""),
            name=data.get("name", ""),
            city=city.get("name", "") if isinstance(city, dict) else "",
        )

    @classmethod
    def _parse_leg(cls, segment: dict) -> FlightLeg:
        carrier = segment.get("operating_carrier") or {}
        return FlightLeg(
            id=segment["id"],
            origin=cls._parse_airport(segment["origin"]),
            destination=cls._parse_airport(segment["destination"]),
            departure_at=_parse_timestamp(segment["departing_at"]),
            arrival_at=_parse_timestamp(segment["arriving_at"]),
            airline=carrier.get("name", "Unknown"),
            flight_number=f"{carrier.get('iata_code', '')}{segment.get('operating_carrier_flight_number', '')}",
            duration_seconds=parse_iso_duration(segment.get("duration")),
        )

    @classmethod
    def parse_offers(cls, body: dict, cabin_class: CabinClass = CabinClass.ECONOMY) -> List[FlightOffer]:
        """Map a Duffel offers listing to FlightOffer records, skipping malformed offers."""
        items = body.get("data")
        if not isinstance(items, list):
            raise DecodeError("Offers response has no data list")

        offers = []
        for item in items:
            try:
                slices = item["slices"]
                first_slice = slices[0]
                segments = first_slice["segments"]
                first, last = segments[0], segments[-1]
                carrier = first.get("operating_carrier") or {}
                price = Decimal(str(item["total_amount"]))

                legs = [cls._parse_leg(s) for s in segments] if len(segments) > 1 else None

                offers.append(FlightOffer(
                    id=item["id"],
                    origin=cls._parse_airport(first["origin"]),
                    destination=cls._parse_airport(last["destination"]),
                    departure_at=_parse_timestamp(first["departing_at"]),
                    arrival_at=_parse_timestamp(last["arriving_at"]),
                    price=price,
                    currency=item["total_currency"],
                    airline=carrier.get("name", "Unknown"),
                    flight_number=f"{carrier.get('iata_code', '')}{first.get('operating_carrier_flight_number', '')}",
                    available_seats=DEFAULT_AVAILABLE_SEATS,
                    cabin_class=cabin_class,
                    duration_seconds=parse_iso_duration(first_slice.get("duration")),
                    stops=len(segments) - 1,
                    legs=legs,
                ))
            except (KeyError, IndexError, TypeError, ValueError, InvalidOperation) as e:
                logger.debug(f"Skipping malformed offer {item.get('id') if isinstance(item, dict) else '?'}: {e}")
                continue
        return offers


class SampleFlightSource(FlightSource):
    """Offline offers with randomised prices; pass a seed for repeatable output."""
    name = "sample"

    AIRLINES = ["Delta Airlines", "United Airlines", "American Airlines", "Southwest Airlines", "JetBlue"]
    LEG_CARRIERS = [("Delta", "DL"), ("United", "UA"), ("American", "AA")]

    def __init__(self, seed: Optional[int] = None, currency: str = "USD"):
        self._random = random.Random(seed)
        self.currency = currency

    def _airport(self, code: str) -> Airport:
        return AirportService.resolve(code, city=code)

    def _legs(
        self,
        origin: Airport,
        destination: Airport,
        departure: datetime,
        arrival: datetime,
        stops: int,
    ) -> List[FlightLeg]:
        layover = timedelta(hours=1)
        segment = (arrival - departure - layover * stops) / (stops + 1)
        hubs = [a for a in AIRPORTS.values() if a.code not in (origin.code, destination.code)]

        legs = []
        current_origin, current_time = origin, departure
        for i in range(stops + 1):
            next_stop = destination if i == stops else self._random.choice(hubs)
            carrier, code = self._random.choice(self.LEG_CARRIERS)
            legs.append(FlightLeg(
                id=f"leg_{i}_{uuid.uuid4()}",
                origin=current_origin,
                destination=next_stop,
                departure_at=current_time,
                arrival_at=current_time + segment,
                airline=carrier,
                flight_number=f"{code}{self._random.randint(100, 999)}",
                duration_seconds=int(segment.total_seconds()),
            ))
            current_origin = next_stop
            current_time = current_time + segment + layover
        return legs

    async def search(self, query: SearchQuery) -> List[FlightOffer]:
        origin = self._airport(query.origin)
        destination = self._airport(query.destination)
        day_start = datetime.combine(query.departure_date, time(6, 0), tzinfo=timezone.utc)

        base_price = self._random.uniform(200, 500)
        offers = []
        for i in range(self._random.randint(5, 8)):
            price = base_price + self._random.uniform(-50, 150) + i * 20
            departure = day_start + timedelta(hours=2 * i)
            duration = timedelta(seconds=self._random.randint(10800, 25200))
            arrival = departure + duration
            stops = 0 if i % 3 == 0 else (1 if i % 2 == 0 else 2)
            airline = self.AIRLINES[i % len(self.AIRLINES)]

            offers.append(FlightOffer(
                id=f"test_flight_{uuid.uuid4()}",
                origin=origin,
                destination=destination,
                departure_at=departure,
                arrival_at=arrival,
                price=Decimal(str(round(price, 2))),
                currency=self.currency,
                airline=airline,
                flight_number=f"{airline[:2].upper()}{self._random.randint(100, 999)}",
                available_seats=self._random.randint(3, 20),
                cabin_class=query.cabin_class,
                duration_seconds=int(duration.total_seconds()),
                stops=stops,
                legs=self._legs(origin, destination, departure, arrival, stops) if stops else None,
            ))

        return sorted(offers, key=lambda o: o.price)


def get_flight_source(settings: Optional[Settings] = None) -> FlightSource:
    settings = settings or get_settings()
    if settings.flight_source == "duffel":
        return DuffelFlightSource(
            api_key=settings.duffel_api_key,
            base_url=settings.duffel_base_url,
            version=settings.duffel_version,
        )
    return SampleFlightSource(currency=settings.default_currency)
