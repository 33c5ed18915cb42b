"""
Persistence adapter: the whole tracker state as one JSON document.

The document is stored under a single key in the ``state_records`` table.
Saving replaces the previous snapshot inside one transaction, so readers see
either the old document or the new one, never a partial write.

Failure policy:
- load() never raises; an absent, unreadable or corrupt snapshot yields a
  fresh default state.
- save() never raises; failures are logged and the next successful save
  reconciles the store with memory.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from flight_tracker.config import get_settings
from flight_tracker.exceptions import PersistenceError
from flight_tracker.models import StateRecord
from flight_tracker.schemas import TrackerState

logger = logging.getLogger(__name__)


class PersistenceAdapter:
    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        state_key: Optional[str] = None,
        default_currency: Optional[str] = None,
    ):
        if session_factory is None:
            from flight_tracker.database import SessionLocal, init_db

            init_db()
            session_factory = SessionLocal
        if state_key is None or default_currency is None:
            settings = get_settings()
            state_key = state_key or settings.state_key
            default_currency = default_currency or settings.default_currency
        self._session_factory = session_factory
        self.state_key = state_key
        self.default_currency = default_currency

    def _default_state(self) -> TrackerState:
        return TrackerState.default(self.default_currency)

    def load(self) -> TrackerState:
        """Return the last saved state, or a fresh default state."""
        try:
            payload = self._read_payload()
        except PersistenceError as e:
            logger.warning(f"Could not read saved state, starting fresh: {e}")
            return self._default_state()

        if payload is None:
            logger.info("No saved state found, starting with default profile")
            return self._default_state()

        try:
            state = TrackerState.model_validate_json(payload)
        except ValidationError as e:
            logger.error(f"Saved state is corrupt ({e.error_count()} errors), starting fresh")
            return self._default_state()

        logger.info(
            f"Loaded state: {len(state.watchlist)} watchlist entries, "
            f"{len(state.route_histories)} route histories, "
            f"{len(state.recent_searches)} recent searches"
        )
        return state

    def save(self, state: TrackerState) -> bool:
        """Replace the stored snapshot with ``state``. Returns False on failure."""
        try:
            payload = state.model_dump_json()
        except (ValueError, TypeError) as e:
            logger.error(f"Failed to serialize state: {e}")
            return False

        try:
            self._write_payload(payload)
        except PersistenceError as e:
            logger.error(f"Failed to save state: {e}")
            return False

        logger.debug(f"Saved state ({len(payload):,} bytes)")
        return True

    def delete(self) -> bool:
        """Drop the stored snapshot, so the next load starts fresh."""
        try:
            with self._session_factory() as session, session.begin():
                record = session.get(StateRecord, self.state_key)
                if record is not None:
                    session.delete(record)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete saved state: {e}")
            return False
        return True

    def _read_payload(self) -> Optional[str]:
        try:
            with self._session_factory() as session:
                record = session.get(StateRecord, self.state_key)
                return record.payload if record is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e

    def _write_payload(self, payload: str) -> None:
        try:
            with self._session_factory() as session, session.begin():
                record = session.get(StateRecord, self.state_key)
                now = datetime.now(timezone.utc)
                if record is None:
                    session.add(StateRecord(key=self.state_key, payload=payload, updated_at=now))
                else:
                    record.payload = payload
                    record.updated_at = now
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e
