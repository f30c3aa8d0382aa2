"""
Tests for the database connection manager
"""

import threading
import time

import pytest

from devevents.core import db
from devevents.core.config import settings
from devevents.core.exceptions import ConfigurationError, StoreUnavailableError

@pytest.fixture(autouse=True)
def fresh_engine():
    """Start and end every test without a cached engine"""
    db.dispose_engine()
    yield
    db.dispose_engine()

def test_missing_database_url(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", None)

    with pytest.raises(ConfigurationError):
        db.get_engine()

def test_engine_is_memoized(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", "sqlite:///./test_connection.db")

    first = db.get_engine()
    second = db.get_engine()

    assert first is second

def test_failed_connection_is_not_cached(monkeypatch, tmp_path):
    """Test a failed connection attempt can be retried"""
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path}/missing/dir/app.db")
    with pytest.raises(StoreUnavailableError):
        db.get_engine()

    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path}/app.db")
    engine = db.get_engine()
    assert engine is db.get_engine()

def test_init_db_creates_tables(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path}/app.db")
    db.init_db()

    from sqlalchemy import inspect
    tables = inspect(db.get_engine()).get_table_names()
    assert "events" in tables
    assert "bookings" in tables

def test_get_db_yields_session(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path}/app.db")

    sessions = db.get_db()
    session = next(sessions)
    assert session.bind is db.get_engine()
    sessions.close()

def test_concurrent_first_calls_share_one_engine(monkeypatch, tmp_path):
    """Test threads racing on first use create a single engine"""
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path}/app.db")

    calls = []
    real_create_engine = db.create_engine

    def counting_create_engine(*args, **kwargs):
        calls.append(args)
        time.sleep(0.05)
        return real_create_engine(*args, **kwargs)

    monkeypatch.setattr(db, "create_engine", counting_create_engine)

    workers = 8
    barrier = threading.Barrier(workers)
    engines = []

    def worker():
        barrier.wait()
        engines.append(db.get_engine())

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len(engines) == workers
    assert all(e is engines[0] for e in engines)
