"""Database connection and session management for Resolution AI.

The whole task collection for an owner is rewritten on every mutation, so the
engine is tuned for a single local process: SQLite by default, any other
SQLAlchemy URL via `DATABASE_URL`.
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./resolutionai.db")


def _is_sqlite_url(database_url: str) -> bool:
    return (database_url or "").startswith("sqlite")


def _is_memory_url(database_url: str) -> bool:
    return _is_sqlite_url(database_url) and ":memory:" in database_url


def get_engine_kwargs(database_url: str) -> dict:
    """Return create_engine kwargs for a DB URL without connecting."""
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }
    if _is_sqlite_url(database_url):
        # Requests run in FastAPI's threadpool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    built = create_engine(database_url, **get_engine_kwargs(database_url))

    if _is_sqlite_url(database_url) and not _is_memory_url(database_url):
        @event.listens_for(built, "connect")
        def _enable_wal(dbapi_conn, connection_record):
            # Readers keep working while save_all rewrites the list
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return built


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Session:
    """Get database session (dependency for FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the tasks table if it does not exist yet."""
    from resolutionai.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
