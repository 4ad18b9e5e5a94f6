"""
Shared pytest fixtures for all test modules.

The database is an in-memory SQLite engine shared across connections
(StaticPool). It is bound both through the FastAPI dependency override and
on the integration module, since /api/health reads `database.SessionLocal`
directly.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dashboard.integrations import database
from dashboard.integrations.database import get_session
from dashboard.main import app
from dashboard.models import Base, DailyStat, Detection
from tests.mocks.redis_mock import MockRedis


# ---------------------------------------------------------------------------
# Core infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Every test starts with an empty in-memory rate-limit map."""
    from dashboard.core.rate_limiter import _rate_limits

    _rate_limits.clear()
    yield
    _rate_limits.clear()


@pytest.fixture
def engine():
    eng = database.build_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mock_redis(monkeypatch):
    """Replace redis_client.client with an in-memory MockRedis."""
    from dashboard.integrations import redis_client as rc

    mock_rc = MockRedis()
    monkeypatch.setattr(rc, "client", mock_rc)
    return mock_rc


@pytest.fixture
def no_redis(monkeypatch):
    from dashboard.integrations import redis_client as rc

    monkeypatch.setattr(rc, "client", None)


@pytest.fixture
def client(engine, session_factory, no_redis, monkeypatch):
    """
    FastAPI TestClient over the in-memory database, rate limiting in memory.

    initialize()/dispose() are patched to no-ops so the lifespan can't
    replace the test engine or attempt real network connections.
    """
    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(database, "SessionLocal", session_factory)

    def override_get_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session
    with (
        patch("dashboard.integrations.database.initialize"),
        patch("dashboard.integrations.database.dispose"),
        patch("dashboard.integrations.redis_client.initialize"),
    ):
        with TestClient(app, raise_server_exceptions=False) as c:
            yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Shared test-data helpers
# ---------------------------------------------------------------------------


_DEFAULTS = {
    "media_type": "photo",
    "media_url": "https://cdn.example.com/media.jpg",
    "title": "Sample detection",
    "confidence_score": 0.8,
    "source_platform": "Twitter",
    "detected_date": datetime(2024, 1, 15, 12, 0, 0),
    "is_verified": False,
}


def make_detection(db, **overrides) -> Detection:
    """Insert one detection row and return it (committed, refreshed)."""
    row = Detection(**{**_DEFAULTS, **overrides})
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def make_daily_stat(db, **fields) -> DailyStat:
    row = DailyStat(**fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
