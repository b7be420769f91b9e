#!/usr/bin/env python3
"""Project database bootstrapper

Creates or upgrades the database schema to the latest Alembic revision and makes
sure the three required languages (en, ta, fr) exist.

Defaults are safe:
- Uses Alembic migrations by default (no destructive operations)
- Accepts --db-url to override target DB (preferred over env var on Windows)
- Language seeding is idempotent; existing rows are left untouched

Examples:
  python scripts/00_bootstrap/bootstrap_db.py --db-url sqlite:///./data/namebank.db

Optional:
  --use-metadata      Use SQLAlchemy Base.metadata.create_all instead of Alembic
  --echo              Enable SQL echo for troubleshooting
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import create_engine, select  # noqa: E402
from sqlalchemy.engine import make_url  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from db.models import Base, Language  # noqa: E402
from namebank.config import DEFAULT_DB_URL  # noqa: E402

LANGUAGE_LABELS = {"en": "English", "ta": "Tamil", "fr": "French"}


def _ensure_sqlite_dir(db_url: str, project_root: Path) -> None:
    # Create parent directory for SQLite files if needed
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        db_path = Path(url.database)
        if not db_path.is_absolute():
            db_path = (project_root / db_path).resolve()
        db_path.parent.mkdir(parents=True, exist_ok=True)


def _absolute_sqlite_url(db_url: str, project_root: Path) -> str:
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return db_url
    p = Path(url.database)
    if p.is_absolute():
        return db_url
    return url.set(database=str((project_root / p).resolve())).render_as_string(hide_password=False)


def _run_alembic_upgrade_head(db_url: str, project_root: Path) -> int:
    from alembic import command
    from alembic.config import Config

    ini_path = project_root / "alembic.ini"
    if not ini_path.is_file():
        print(f"[error] alembic.ini not found at {ini_path}")
        return 2

    cfg = Config(str(ini_path))
    # Ensure script location and URL are set correctly
    cfg.set_main_option("script_location", str(project_root / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    print("Running Alembic upgrade to head...")
    command.upgrade(cfg, "head")
    print("Alembic upgrade complete.")
    return 0


def _create_with_metadata(db_url: str, echo: bool = False) -> int:
    print("Creating tables via SQLAlchemy metadata (create_all)...")
    engine = create_engine(db_url, echo=echo, future=True)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    print("Metadata create_all complete.")
    return 0


def seed_languages(session: Session) -> list[str]:
    """Insert any missing required language rows; return the codes added."""
    existing = set(session.execute(select(Language.code)).scalars())
    added = []
    for code, label in LANGUAGE_LABELS.items():
        if code not in existing:
            session.add(Language(code=code, label=label))
            added.append(code)
    session.commit()
    return added


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Bootstrap/upgrade the project database schema")
    ap.add_argument("--db-url", dest="db_url", default=os.environ.get("NAMEBANK_DB_URL", DEFAULT_DB_URL),
                    help="Target database URL (overrides env var NAMEBANK_DB_URL)")
    ap.add_argument("--use-metadata", action="store_true",
                    help="Use SQLAlchemy Base.metadata.create_all instead of Alembic")
    ap.add_argument("--echo", action="store_true", help="Echo SQL statements (metadata mode)")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    db_url = _absolute_sqlite_url(args.db_url, ROOT)
    print(f"Target DB URL: {db_url}")
    _ensure_sqlite_dir(db_url, ROOT)

    if args.use_metadata:
        rc = _create_with_metadata(db_url, echo=args.echo)
    else:
        rc = _run_alembic_upgrade_head(db_url, ROOT)
    if rc != 0:
        return rc

    engine = create_engine(db_url, future=True)
    try:
        with Session(engine) as session:
            added = seed_languages(session)
    finally:
        engine.dispose()
    print(f"Languages seeded: {', '.join(added) if added else 'none (already present)'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
