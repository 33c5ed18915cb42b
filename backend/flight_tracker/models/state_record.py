from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from flight_tracker.database import Base


class StateRecord(Base):
    """
    One value in the flat key-value store.

    The tracker keeps its whole state as a single JSON document under one
    key; saving replaces the row's payload in a single transaction.
    """
    __tablename__ = "state_records"

    key = Column(String(100), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<StateRecord {self.key}: {len(self.payload or '')} bytes>"
