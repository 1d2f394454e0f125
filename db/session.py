from __future__ import annotations

import os
from typing import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.pool import NullPool
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker, Session
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

DEFAULT_DB_URL = "sqlite:///./data/admin_hierarchy.db"


def _normalize_sqlite_url(db_url: str) -> str:
    """Ensure sqlite file URLs are absolute and anchored at repo root when relative.

    This prevents mismatched files when different processes have different CWDs.
    """
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return db_url
    db_path = url.database or ""
    # skip in-memory URLs
    if db_path in ("", ":memory:"):
        return db_url
    p = Path(db_path)
    if not p.is_absolute():
        abs_p = (ROOT / p).resolve()
        return url.set(database=str(abs_p)).render_as_string(hide_password=False)
    return db_url


def make_engine(db_url: str, *, enforce_foreign_keys: bool = True) -> Engine:
    """Build an engine for ``db_url``.

    NullPool releases SQLite file handles as soon as a session closes. SQLite
    only enforces foreign keys when asked to, per connection.
    """
    eng = create_engine(db_url, future=True, poolclass=NullPool)
    if eng.url.get_backend_name() == "sqlite" and enforce_foreign_keys:
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[override]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return eng


# Default store; can be overridden by ADMINREC_DB_URL or per-script reconfiguration
DB_URL = _normalize_sqlite_url(os.environ.get("ADMINREC_DB_URL", DEFAULT_DB_URL))

engine = make_engine(DB_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    # If the environment requests a different DB URL, switch before creating a session
    env_url = os.environ.get("ADMINREC_DB_URL")
    if env_url:
        target_url = _normalize_sqlite_url(env_url)
        if target_url != DB_URL:
            reconfigure(target_url)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Release SQLite file handles between operator scripts
        engine.dispose()


def reconfigure(db_url: str) -> None:
    """Rebuild the SQLAlchemy engine/session for a new DB URL."""
    global DB_URL, engine, SessionLocal
    engine.dispose()
    DB_URL = _normalize_sqlite_url(db_url)
    engine = make_engine(DB_URL)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)
