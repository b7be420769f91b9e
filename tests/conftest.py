"""Shared fixtures: an in-memory SQLite database seeded with the three languages.

StaticPool keeps every session (and the FastAPI TestClient thread) on the same
connection, so the in-memory schema survives across sessions.
"""
from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

REPO = Path(__file__).resolve().parents[1]
if str(REPO) not in sys.path:
    sys.path.insert(0, str(REPO))

from db.models import Base, Language  # noqa: E402
from db.session import sqlite_on_connect  # noqa: E402
from namebank.languages import LanguageDirectory  # noqa: E402
from namebank.publish import BulkPublisher, LocalizedValue, NameRow  # noqa: E402


def load_script(rel_path: str, module_name: str):
    """Import a script that lives under a numeric-prefix directory."""
    spec = importlib.util.spec_from_file_location(module_name, str(REPO / rel_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = mod
    spec.loader.exec_module(mod)
    return mod


def make_row(
    variants: Iterable[Tuple[str, str]],
    meanings: Sequence[Tuple[str, str]] = (),
    key: Optional[str] = None,
) -> NameRow:
    return NameRow(
        variants=[LocalizedValue(loc, val) for loc, val in variants],
        meanings=[LocalizedValue(loc, val) for loc, val in meanings],
        canonical_key=key,
    )


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    event.listen(eng, "connect", sqlite_on_connect)

    Base.metadata.create_all(eng)
    with Session(eng) as s:
        s.add_all([Language(code="en", label="English"), Language(code="ta", label="Tamil"), Language(code="fr", label="French")])
        s.commit()
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


@pytest.fixture
def session(session_factory):
    with session_factory() as s:
        yield s


@pytest.fixture
def languages() -> LanguageDirectory:
    return LanguageDirectory(ttl_seconds=300)


@pytest.fixture
def publisher(languages) -> BulkPublisher:
    return BulkPublisher(languages)


@pytest.fixture
def refresh_module():
    return load_script("scripts/40_read_model/refresh_name_search.py", "refresh_name_search")


@pytest.fixture
def catalog(session_factory, publisher, refresh_module):
    """Four published names plus a refreshed read model.

    For the English text "mar": maria, mark and omar match, anand does not.
    """
    rows = [
        make_row(
            [("en", "Maria"), ("en", "Mariya"), ("ta", "மரியா"), ("fr", "Marie")],
            meanings=[("en", "beloved"), ("ta", "அன்புக்குரியவள்")],
            key="maria",
        ),
        make_row([("en", "Mark"), ("fr", "Marc")], meanings=[("en", "warlike")], key="mark"),
        make_row([("en", "Anand"), ("ta", "ஆனந்த்")], meanings=[("ta", "joy")], key="anand"),
        make_row([("en", "Omar")], key="omar"),
    ]
    with session_factory() as s:
        result = publisher.publish(s, rows)
    with session_factory() as s:
        refresh_module.refresh(s)
    return {r.canonical_key: r.name_id for r in result.rows}
