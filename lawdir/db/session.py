"""
Engine and session handling.

The engine is built on first use from DATABASE_URL and rebuilt whenever
that variable changes, which lets tests point the service at a fresh
SQLite file per test.
"""

import os
from contextlib import contextmanager
from typing import Dict, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .models import Base

DEFAULT_DATABASE_URL = "sqlite:///./lawdir.db"

SessionLocal = sessionmaker(autocommit=False, autoflush=False)

_state: Dict[str, Optional[object]] = {"engine": None, "url": None}


def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves ON DELETE unenforced without this pragma
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str) -> Engine:
    echo = os.environ.get("SQL_ECHO", "").lower() in ("1", "true", "yes")
    if url.startswith("sqlite"):
        engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_foreign_keys)
        return engine

    timeout = int(os.environ.get("DB_CONNECT_TIMEOUT", "5"))
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
        max_overflow=int(os.environ.get("DB_MAX_OVERFLOW", "10")),
        connect_args={"connect_timeout": timeout},
    )


def get_engine() -> Engine:
    url = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)
    if _state["engine"] is None or _state["url"] != url:
        if _state["engine"] is not None:
            _state["engine"].dispose()
        _state["engine"] = _build_engine(url)
        _state["url"] = url
        SessionLocal.configure(bind=_state["engine"])
    return _state["engine"]


def reset_engine():
    """Forget the current engine so the next use rebuilds it"""
    if _state["engine"] is not None:
        _state["engine"].dispose()
    _state["engine"] = None
    _state["url"] = None
    SessionLocal.configure(bind=None)


def init_db():
    """Create any missing tables"""
    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    Service functions commit their own unit of work; whatever is still
    pending when the request ends is discarded on close.
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session for scripts and startup hooks: commits on success, rolls back on error"""
    get_engine()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
