from typing import Optional
import logging

from flight_tracker.schemas import Airport

logger = logging.getLogger(__name__)


AIRPORTS: dict[str, Airport] = {}
CITY_TO_CODES: dict[str, list[str]] = {}

KNOWN_AIRPORTS = [
    ('LAX', 'Los Angeles International Airport', 'Los Angeles', 'United States', 33.9416, -118.4085),
    ('JFK', 'John F. Kennedy International Airport', 'New York', 'United States', 40.6413, -73.7781),
    ('SFO', 'San Francisco International Airport', 'San Francisco', 'United States', 37.6213, -122.3790),
    ('ORD', "O'Hare International Airport", 'Chicago', 'United States', 41.9742, -87.9073),
    ('SEA', 'Seattle-Tacoma International Airport', 'Seattle', 'United States', 47.4502, -122.3088),
    ('BOS', 'Logan International Airport', 'Boston', 'United States', 42.3656, -71.0096),
    ('ATL', 'Hartsfield-Jackson Atlanta International Airport', 'Atlanta', 'United States', 33.6407, -84.4277),
    ('MIA', 'Miami International Airport', 'Miami', 'United States', 25.7959, -80.2870),
    ('DEN', 'Denver International Airport', 'Denver', 'United States', 39.8561, -104.6737),
    ('LHR', 'London Heathrow Airport', 'London', 'United Kingdom', 51.4700, -0.4543),
    ('CDG', 'Charles de Gaulle Airport', 'Paris', 'France', 49.0097, 2.5479),
    ('AMS', 'Amsterdam Airport Schiphol', 'Amsterdam', 'Netherlands', 52.3105, 4.7683),
    ('FRA', 'Frankfurt Airport', 'Frankfurt', 'Germany', 50.0379, 8.5622),
    ('MAD', 'Adolfo Suárez Madrid-Barajas Airport', 'Madrid', 'Spain', 40.4983, -3.5676),
    ('DXB', 'Dubai International Airport', 'Dubai', 'United Arab Emirates', 25.2532, 55.3657),
    ('SIN', 'Singapore Changi Airport', 'Singapore', 'Singapore', 1.3644, 103.9915),
    ('HKG', 'Hong Kong International Airport', 'Hong Kong', 'Hong Kong', 22.3080, 113.9185),
    ('NRT', 'Narita International Airport', 'Tokyo', 'Japan', 35.7720, 140.3929),
    ('SYD', 'Sydney Kingsford Smith Airport', 'Sydney', 'Australia', -33.9399, 151.1753),
    ('AKL', 'Auckland Airport', 'Auckland', 'New Zealand', -37.0082, 174.7850),
]


def _load_known():
    for code, name, city, country, lat, lon in KNOWN_AIRPORTS:
        AIRPORTS[code] = Airport(
            code=code,
            name=name,
            city=city,
            country=country,
            latitude=lat,
            longitude=lon,
        )
        CITY_TO_CODES.setdefault(city.lower(), []).append(code)
    logger.debug(f"Loaded {len(AIRPORTS)} airports")


_load_known()


class AirportService:

    @staticmethod
    def is_valid_code(code: str) -> bool:
        """Shape check only: three letters. Unknown airports are allowed."""
        return bool(code) and len(code.strip()) == 3 and code.strip().isalpha()

    @staticmethod
    def validate(code: Optional[str], field_name: str = "Airport") -> tuple[bool, Optional[str]]:
        if not code or not code.strip():
            return False, f"{field_name} code is required"

        code = code.strip().upper()

        if len(code) != 3:
            return False, f"{field_name} code must be 3 characters, got '{code}'"

        if not code.isalpha():
            return False, f"{field_name} code must contain only letters, got '{code}'"

        return True, None

    @staticmethod
    def get(code: str) -> Optional[Airport]:
        return AIRPORTS.get(code.upper())

    @staticmethod
    def resolve(code: str, name: str = "", city: str = "") -> Airport:
        """
        Catalog entry for ``code``, or a bare Airport built from what the
        caller knows about it.
        """
        known = AIRPORTS.get(code.upper())
        if known:
            return known
        return Airport(code=code.upper(), name=name, city=city)

    @staticmethod
    def code_for_city(city: str) -> Optional[str]:
        codes = CITY_TO_CODES.get(city.lower().strip())
        return codes[0] if codes else None
