from __future__ import annotations

from typing import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.pool import NullPool
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session
from pathlib import Path

from namebank.config import load_settings

ROOT = Path(__file__).resolve().parents[1]


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
    if p.is_absolute():
        return db_url
    return url.set(database=str((ROOT / p).resolve())).render_as_string(hide_password=False)


def sqlite_on_connect(dbapi_connection, connection_record) -> None:
    """Per-connection SQLite setup: enforce foreign keys and make lower() Unicode-aware.

    SQLite's built-in lower() folds ASCII only, which would make ILIKE miss
    accented capitals such as "Élodie".
    """
    dbapi_connection.create_function(
        "lower", 1, lambda s: s.lower() if isinstance(s, str) else s, deterministic=True
    )
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(db_url: str, pool_max: int = 20, connect_timeout: int = 5, echo: bool = False) -> Engine:
    """Create an engine for the given URL.

    SQLite files get NullPool so handles are released immediately, and every
    connection runs :func:`sqlite_on_connect`. Server databases share a sized QueuePool.
    """
    if db_url.startswith("sqlite"):
        eng = create_engine(db_url, future=True, echo=echo, poolclass=NullPool)
        event.listen(eng, "connect", sqlite_on_connect)
        return eng
    connect_args = {}
    if make_url(db_url).get_backend_name() == "postgresql":
        connect_args["connect_timeout"] = connect_timeout
    return create_engine(
        db_url,
        future=True,
        echo=echo,
        pool_size=pool_max,
        max_overflow=0,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


_settings = load_settings()
DB_URL = _normalize_sqlite_url(_settings.database_url)
engine = build_engine(DB_URL, _settings.pool_max, _settings.connect_timeout)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def reconfigure(db_url: str) -> None:
    """Rebuild the SQLAlchemy engine/session for a new DB URL.

    Used by scripts that accept --db-url after this module was imported.
    """
    global DB_URL, engine, SessionLocal
    engine.dispose()
    settings = load_settings()
    DB_URL = _normalize_sqlite_url(db_url)
    engine = build_engine(DB_URL, settings.pool_max, settings.connect_timeout)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)
