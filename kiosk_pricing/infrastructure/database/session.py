"""Database session management with connection pooling"""

from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from kiosk_pricing.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool sizing for server databases; SQLite (local runs, tests) only needs thread sharing"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; endpoints commit explicitly"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
