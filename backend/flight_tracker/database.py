from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from flight_tracker.config import get_settings
import logging

logger = logging.getLogger(__name__)
settings = get_settings()

Base = declarative_base()


def make_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False})
    return create_engine(db_url)


engine = make_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _ensure_sqlite_dir(db_url: str) -> None:
    # sqlite:///./data/flight_tracker.db -> ./data
    if not db_url.startswith("sqlite:///") or db_url.endswith(":memory:"):
        return
    db_path = db_url.replace("sqlite:///", "")
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def init_db(bind: Engine = engine) -> None:
    """Create the data directory and any missing tables."""
    from flight_tracker.models import StateRecord  # noqa: F401  registers the table

    _ensure_sqlite_dir(str(bind.url))
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database ready at {bind.url}")
