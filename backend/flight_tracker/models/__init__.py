# SQLAlchemy models
from flight_tracker.models.state_record import StateRecord

__all__ = [
    "StateRecord",
]
