"""
Shared fixtures: every test gets its own file-backed SQLite database and a
freshly wired TrackingService around it.
"""
import os

os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient

from src.DB.base import Base
from src.DB.session import build_engine, build_session_factory
from src.Models.location import LocationSample
from src.Services.tracking import TrackingService


@pytest.fixture
def session_factory(tmp_path):
    """sessionmaker bound to a throwaway SQLite file with the schema created."""
    engine = build_engine(f"sqlite:///{tmp_path / 'tracking.db'}")
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def tracking(session_factory):
    return TrackingService.from_session_factory(
        session_factory, queue_size=10, max_history_limit=50
    )


@pytest.fixture
def count_samples(session_factory):
    """count_samples(device_id) -> number of stored rows for that device."""
    def _count(device_id: str) -> int:
        with session_factory() as db:
            return (
                db.query(LocationSample)
                .filter(LocationSample.device_id == device_id)
                .count()
            )
    return _count


@pytest.fixture
def registry(tracking):
    return tracking.registry


@pytest.fixture
def store(tracking):
    return tracking.store


@pytest.fixture
def client(tracking):
    """TestClient whose app uses the per-test TrackingService."""
    from src.main import app

    app.state.tracking = tracking
    yield TestClient(app)
    del app.state.tracking


@pytest.fixture
def base_time():
    return datetime(2025, 10, 11, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def at(base_time):
    """at(minutes) -> base_time shifted by that many minutes."""
    def _at(minutes: float) -> datetime:
        return base_time + timedelta(minutes=minutes)
    return _at
