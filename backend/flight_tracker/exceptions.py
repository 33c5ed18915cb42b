"""Error hierarchy shared by the tracker services."""


class FlightTrackerError(Exception):
    """Base class for all flight tracker errors."""


class SearchValidationError(FlightTrackerError, ValueError):
    """Raised when a search request is missing or has malformed fields."""


class NotFoundError(FlightTrackerError, LookupError):
    """Raised when a lookup by identifier has no match."""


class WatchlistEntryNotFound(NotFoundError):
    def __init__(self, entry_id: str):
        super().__init__(f"Watchlist entry '{entry_id}' not found")
        self.entry_id = entry_id


class RouteHistoryNotFound(NotFoundError):
    def __init__(self, route_id: str):
        super().__init__(f"No price history for route '{route_id}'")
        self.route_id = route_id


class FlightSourceError(FlightTrackerError):
    """Raised when the flight data source cannot produce offers."""


class InvalidRequestError(FlightSourceError):
    """The data source rejected the request."""


class UnauthorizedError(FlightSourceError):
    """The data source rejected our credentials."""


class TransportError(FlightSourceError):
    """Network failure or server-side error talking to the data source."""


class DecodeError(FlightSourceError):
    """The data source answered with a body we could not parse."""


class PersistenceError(FlightTrackerError):
    """Raised when state cannot be serialized, deserialized or stored."""
