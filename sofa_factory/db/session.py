from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

DB_URL = settings.database_url


def _sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def build_engine(url: str = DB_URL) -> Engine:
    """Create an engine; SQLite connections may be shared across worker threads."""

    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(sqlite_engine, "connect", _sqlite_pragmas)
    return sqlite_engine


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency: one session per request, always closed."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
