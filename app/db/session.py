# ============================================================================
# FILE: app/db/session.py
# ============================================================================
from typing import Generator, Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from app.config import settings

def unicode_lower(value: Optional[str]) -> Optional[str]:
    """SQL lower() using Python's Unicode case mapping"""
    if value is None:
        return None
    return str(value).lower()

def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine, enabling foreign keys and Unicode lower() on SQLite"""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    new_engine = create_engine(url, pool_pre_ping=True, **kwargs)

    if new_engine.dialect.name == "sqlite":
        @event.listens_for(new_engine, "connect")
        def _configure_sqlite(dbapi_connection, connection_record):
            # Built-in lower() only folds ASCII
            dbapi_connection.create_function("lower", 1, unicode_lower, deterministic=True)
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine

engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session that is always closed"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
