"""
Database engine and session management.

The engine is created lazily on first use and shared by every request in the
process. Initialization is guarded by a lock so concurrent first callers wait
for the same attempt; a failed attempt is not cached, the next call retries.
"""

import logging
import threading
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from devevents.core.config import settings
from devevents.core.exceptions import ConfigurationError, StoreUnavailableError

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None
_lock = threading.Lock()


def get_engine() -> Engine:
    """Return the process-wide engine, connecting on first call."""
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    with _lock:
        if _engine is not None:
            return _engine

        url = settings.DATABASE_URL
        if not url:
            raise ConfigurationError("Please define the DATABASE_URL environment variable")

        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        try:
            engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        except SQLAlchemyError as e:
            raise ConfigurationError(f"Invalid DATABASE_URL: {e}") from e

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error(f"Database connection failed: {e}")
            raise StoreUnavailableError() from e

        _engine = engine
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"Connected to database ({engine.url.get_backend_name()})")
        return _engine


def get_session_factory() -> sessionmaker:
    get_engine()
    return _session_factory


def init_db() -> None:
    """Create tables and unique indexes for all models"""
    # Registers the models on Base.metadata
    import devevents.models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def dispose_engine() -> None:
    """Close the pooled connections and forget the cached engine"""
    global _engine, _session_factory

    with _lock:
        if _engine is not None:
            _engine.dispose()
            logger.info("Database connection closed")
        _engine = None
        _session_factory = None


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a database session"""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
