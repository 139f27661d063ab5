# src/DB/database.py

"""
Database Utilities Module

Session generator and connectivity helpers shared by startup code and the
health endpoint.

Key Features:
- get_db(): exception-safe session generator (creation, usage, cleanup)
- init_db(): creates missing tables for every registered model
- test_db_connection(): SELECT 1 probe used by /api/health

Usage Examples:
    from src.DB.database import get_db

    db = next(get_db())
    try:
        ...
    finally:
        db.close()
"""

from typing import Generator
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from src.DB.session import SessionLocal, engine


# ============================================================
# Primary Database Session Generator
# ============================================================

def get_db(session_factory: sessionmaker = SessionLocal) -> Generator[Session, None, None]:
    """
    Database session generator.

    The session is NOT committed automatically; callers commit their own
    writes. The session is always closed, even when the caller raises.

    Yields:
        Session: SQLAlchemy database session
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


# ============================================================
# Schema Bootstrap
# ============================================================

def init_db(bind: Engine = engine) -> None:
    """
    Create all tables that do not exist yet (CREATE TABLE IF NOT EXISTS).

    Importing src.DB.base registers every model with the metadata.
    """
    from src.DB.base import Base

    Base.metadata.create_all(bind=bind)
    print("[DB] ✅ Database tables initialized")


# ============================================================
# Database Health Check Utilities
# ============================================================

def test_db_connection(session_factory: sessionmaker = SessionLocal) -> bool:
    """
    Test database connectivity with a simple query.

    Returns:
        bool: True if database is reachable and responsive, False otherwise

    Notes:
        - Does not raise; connection errors are reported as False
        - Logs error details to console for debugging
    """
    db = None
    try:
        db = next(get_db(session_factory))
        value = db.execute(text("SELECT 1")).scalar()
        return value == 1
    except Exception as e:
        print(f"[DB] ❌ Connection test failed: {e}")
        return False
    finally:
        if db:
            db.close()
