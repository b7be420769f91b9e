"""Locale code -> language id directory with a time-based cache.

The directory holds one immutable :class:`LanguageMap` snapshot. Readers grab the
current reference without locking; an expired snapshot is replaced wholesale by a
single query, so a reload never exposes a half-built mapping.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import Language
from namebank.errors import ConfigurationError, UnsupportedLocale

_log = logging.getLogger(__name__)

SUPPORTED_LOCALES: Tuple[str, ...] = ("en", "ta", "fr")
# Single representative value per result
PRIMARY_DISPLAY_LOCALE = "ta"
# Description fallback and preferred source for derived canonical keys
DEFAULT_LOCALE = "en"


@dataclass(frozen=True)
class LanguageMap:
    en: int
    ta: int
    fr: int

    def id_for(self, code: str) -> int:
        if code not in SUPPORTED_LOCALES:
            raise UnsupportedLocale(code)
        return getattr(self, code)

    def code_for(self, language_id: int) -> str:
        for code in SUPPORTED_LOCALES:
            if getattr(self, code) == language_id:
                return code
        raise KeyError(language_id)

    def as_dict(self) -> Dict[str, int]:
        return {code: getattr(self, code) for code in SUPPORTED_LOCALES}


def load_language_map(session: Session) -> LanguageMap:
    rows = session.execute(
        select(Language.code, Language.id).where(Language.code.in_(SUPPORTED_LOCALES))
    ).all()
    found = {code: lid for code, lid in rows}
    missing = [c for c in SUPPORTED_LOCALES if c not in found]
    if missing:
        raise ConfigurationError(f"language table missing required locales: {', '.join(missing)}")
    return LanguageMap(**found)


class LanguageDirectory:
    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self._ttl = float(ttl_seconds)
        self._clock = clock
        # (snapshot, loaded_at); replaced as a whole, never mutated
        self._entry: Optional[Tuple[LanguageMap, float]] = None

    @property
    def ttl(self) -> float:
        return self._ttl

    def set_ttl(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("ttl must be >= 0")
        self._ttl = float(seconds)

    def invalidate(self) -> None:
        self._entry = None

    def snapshot(self, session: Session) -> LanguageMap:
        entry = self._entry
        now = self._clock()
        if entry is not None and now - entry[1] < self._ttl:
            return entry[0]
        langs = load_language_map(session)
        _log.debug("language map reloaded: %s", langs.as_dict())
        self._entry = (langs, now)
        return langs

    def resolve(self, session: Session, codes: Iterable[str]) -> Dict[str, int]:
        wanted = set(codes)
        for code in wanted:
            if code not in SUPPORTED_LOCALES:
                raise UnsupportedLocale(code)
        langs = self.snapshot(session)
        return {code: langs.id_for(code) for code in wanted}
