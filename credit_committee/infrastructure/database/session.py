"""Database session management with connection pooling"""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from credit_committee.config import settings


def _engine_kwargs(database_url: str) -> dict:
    # SQLite uses a single-file pool and must be shareable across the threadpool
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Server databases: max 20 connections, recycle after 1 hour to avoid stale connections
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
