"""Tests for the cached locale directory (namebank/languages.py)."""
from __future__ import annotations

import pytest
from sqlalchemy import delete, select, update

from db.models import Language
from namebank.errors import ConfigurationError, UnsupportedLocale
from namebank.languages import LanguageDirectory, LanguageMap


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _ids(session):
    return dict(session.execute(select(Language.code, Language.id)).all())


def _swap_fr(session) -> int:
    """Retire the current 'fr' row and provision a new one; return the new id."""
    session.execute(update(Language).where(Language.code == "fr").values(code="fr_old"))
    session.add(Language(code="fr", label="French"))
    session.commit()
    return _ids(session)["fr"]


def test_snapshot_maps_all_locales(session):
    ids = _ids(session)
    langs = LanguageDirectory().snapshot(session)
    assert isinstance(langs, LanguageMap)
    assert langs.as_dict() == {"en": ids["en"], "ta": ids["ta"], "fr": ids["fr"]}
    assert langs.code_for(ids["ta"]) == "ta"


def test_resolve_returns_only_requested_codes(session):
    ids = _ids(session)
    resolved = LanguageDirectory().resolve(session, {"en", "fr"})
    assert resolved == {"en": ids["en"], "fr": ids["fr"]}


def test_resolve_rejects_unknown_code(session):
    with pytest.raises(UnsupportedLocale):
        LanguageDirectory().resolve(session, {"en", "de"})


def test_snapshot_is_cached_until_ttl_expires(session):
    clock = FakeClock()
    directory = LanguageDirectory(ttl_seconds=60, clock=clock)
    first = directory.snapshot(session)
    new_fr = _swap_fr(session)

    clock.now += 59
    assert directory.snapshot(session) is first

    clock.now += 2
    refreshed = directory.snapshot(session)
    assert refreshed.fr == new_fr
    assert refreshed is not first


def test_invalidate_forces_reload(session):
    directory = LanguageDirectory(ttl_seconds=3600)
    first = directory.snapshot(session)
    new_fr = _swap_fr(session)
    assert directory.snapshot(session).fr == first.fr
    directory.invalidate()
    assert directory.snapshot(session).fr == new_fr


def test_set_ttl(session):
    clock = FakeClock()
    directory = LanguageDirectory(ttl_seconds=3600, clock=clock)
    directory.snapshot(session)
    new_fr = _swap_fr(session)
    directory.set_ttl(10)
    assert directory.ttl == 10
    clock.now += 11
    assert directory.snapshot(session).fr == new_fr
    with pytest.raises(ValueError):
        directory.set_ttl(-1)


def test_missing_locale_fails_closed_and_is_not_cached(session):
    session.execute(delete(Language).where(Language.code == "ta"))
    session.commit()
    directory = LanguageDirectory()
    with pytest.raises(ConfigurationError, match="ta"):
        directory.snapshot(session)

    session.add(Language(code="ta", label="Tamil"))
    session.commit()
    assert directory.snapshot(session).ta == _ids(session)["ta"]


def test_language_map_rejects_unknown_code():
    langs = LanguageMap(en=1, ta=2, fr=3)
    assert langs.id_for("fr") == 3
    with pytest.raises(UnsupportedLocale):
        langs.id_for("de")
    with pytest.raises(KeyError):
        langs.code_for(99)
