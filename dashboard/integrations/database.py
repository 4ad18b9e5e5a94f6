"""
Relational store integration (SQLAlchemy).

`engine` and `SessionLocal` start as None. Call `initialize()` inside the
FastAPI lifespan context manager. Consuming modules reference
`database.SessionLocal` at call time rather than importing the variable
directly, so tests can swap in their own engine.
"""

import json
import logging

from fastapi import HTTPException
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from dashboard.config import settings

logger = logging.getLogger(__name__)

# Set by initialize(). None until the lifespan has run.
engine = None  # Engine | None
SessionLocal = None  # sessionmaker | None


def _json_dumps(value) -> str:
    # Keyword search matches the stored JSON text; non-ASCII must stay literal
    return json.dumps(value, ensure_ascii=False)


def build_engine(url: str = None, **overrides) -> Engine:
    """
    Engine with a fixed-size pool: requests beyond pool capacity queue for
    up to `db_pool_timeout_sec` instead of opening extra connections.

    `overrides` are passed straight to `create_engine` (tests use them for
    an in-memory StaticPool).
    """
    url = url or settings.database_url
    kwargs = {"echo": settings.sql_echo, "pool_pre_ping": True, "json_serializer": _json_dumps}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout_sec,
            pool_recycle=settings.db_pool_recycle_sec,
        )
    kwargs.update(overrides)
    return create_engine(url, **kwargs)


def initialize(url: str = None) -> None:
    """Create the engine and session factory and bind them to the module."""
    global engine, SessionLocal

    try:
        engine = build_engine(url)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"[STARTUP] Database engine created ({engine.url.get_backend_name()})")
    except Exception as e:
        logger.error(f"[STARTUP] Failed to create database engine: {e}")
        engine = None
        SessionLocal = None


def dispose() -> None:
    global engine, SessionLocal
    if engine is not None:
        engine.dispose()
        logger.info("[SHUTDOWN] Database engine disposed")
    engine = None
    SessionLocal = None


def get_session():
    """
    FastAPI dependency: one session per request, closed on every path.
    """
    if SessionLocal is None:
        raise HTTPException(status_code=503, detail="Database service unavailable.")
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(db: Session) -> bool:
    """Round-trips `SELECT 1`. Returns False instead of raising."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"[HEALTH] Database ping failed: {e}")
        return False
