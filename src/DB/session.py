"""
src/DB/session.py
======================================
Database Session Configuration Module
======================================

This module establishes the SQLAlchemy engine and session factory used by the
GPS tracking server.

Architecture:
------------
- build_engine(): Creates an engine for any URL (SQLite gets thread-safe args)
- engine: Engine bound to settings.DATABASE_URL
- SessionLocal: Factory for creating database sessions

Usage Example:
-------------
    from src.DB.session import SessionLocal

    with SessionLocal() as db:
        devices = db.query(Device).all()

Session Configuration:
---------------------
- autocommit=False: Transactions must be explicitly committed
- autoflush=False: Changes are not flushed before queries
- expire_on_commit=False: Committed rows stay readable after the session closes

Note:
    SessionLocal is the store handle injected into LocationStore and
    DeviceRegistry at startup. Nothing in the core opens sessions from a
    global on its own.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from src.Core.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections are shared between FastAPI's worker threads, so the
    same-thread check of the sqlite3 driver is disabled.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
engine = build_engine(settings.DATABASE_URL)


# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
SessionLocal = build_session_factory(engine)
