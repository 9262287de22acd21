"""Engine, sessions and schema setup for the task store.

`DATABASE_URL` picks the backend: a SQLite file next to the app when unset, or a
hosted PostgreSQL instance. Schema is created from the declarative models on
startup; there is no migration history.
"""

import os
from typing import Any, Dict

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dayplanner.db")


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def _is_in_memory(database_url: str) -> bool:
    return _is_sqlite_url(database_url) and ":memory:" in database_url


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def get_engine_kwargs(database_url: str) -> Dict[str, Any]:
    """create_engine keyword arguments for a URL, computed without connecting."""
    kwargs: Dict[str, Any] = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # Request handlers run on a threadpool, so connections cross threads.
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_in_memory(database_url):
            # One shared connection, otherwise every checkout sees an empty database.
            kwargs["poolclass"] = StaticPool
        return kwargs

    kwargs["pool_size"] = _env_int("DB_POOL_SIZE", 5)
    kwargs["max_overflow"] = _env_int("DB_MAX_OVERFLOW", 5)
    kwargs["pool_timeout"] = _env_int("DB_POOL_TIMEOUT_SEC", 30)
    return kwargs


def _enable_wal(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    """Engine for database_url; file-backed SQLite gets WAL so reads don't wait on writes."""
    built = create_engine(database_url, **get_engine_kwargs(database_url))
    if _is_sqlite_url(database_url) and not _is_in_memory(database_url):
        event.listen(built, "connect", _enable_wal)
    return built


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Session:
    """Request-scoped session (FastAPI dependency)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create any missing tables on the current engine."""
    # Table classes must be imported so they are registered on Base.metadata.
    from dayplanner.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
