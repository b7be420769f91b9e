"""The two physical layouts a search can be served from.

Both implementations answer the same three questions for the orchestrator
(how many names match, which id sits just before a given offset, and what does
the next keyset page look like) and return identical :class:`NameResult` rows.

* :class:`NormalizedReadPath` joins over name_variant / name_meaning.
* :class:`DenormalizedReadPath` reads the pre-aggregated name_search table.
"""
from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from db.models import NameMeaning, NameSearchRow, NameVariant
from namebank.languages import DEFAULT_LOCALE, LanguageMap

_log = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


@dataclass
class NameResult:
    tamil: str = ""
    english: List[str] = field(default_factory=list)
    french: List[str] = field(default_factory=list)
    description: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "tamil": self.tamil,
            "english": list(self.english),
            "french": list(self.french),
            "description": self.description,
        }


def like_pattern(text: str) -> str:
    """Substring LIKE pattern with the user's own wildcards taken literally."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class ReadPath(abc.ABC):
    name: str = ""

    @abc.abstractmethod
    def count(self, session: Session, langs: LanguageMap, locale: str, text: str) -> int:
        """Number of names matching ``text``, independent of any page window."""

    @abc.abstractmethod
    def cursor_for_offset(
        self, session: Session, langs: LanguageMap, locale: str, text: str, offset: int
    ) -> Optional[int]:
        """Id of the match just before ``offset`` (so ``id > result`` starts there)."""

    @abc.abstractmethod
    def fetch_page(
        self,
        session: Session,
        langs: LanguageMap,
        locale: str,
        text: str,
        cursor_id: Optional[int],
        limit: int,
    ) -> List[Tuple[int, NameResult]]:
        """Up to ``limit`` matches with id > cursor_id, ascending by id."""


class NormalizedReadPath(ReadPath):
    name = "normalized"

    @staticmethod
    def _match_clause(language_id: int, text: str):
        return (
            NameVariant.language_id == language_id,
            NameVariant.variant_name.ilike(like_pattern(text), escape=LIKE_ESCAPE),
        )

    def _matching_ids(self, language_id: int, text: str):
        return select(NameVariant.name_id).where(*self._match_clause(language_id, text)).distinct()

    def count_matches(self, session: Session, language_id: int, text: str) -> int:
        stmt = select(func.count(distinct(NameVariant.name_id))).where(*self._match_clause(language_id, text))
        return int(session.execute(stmt).scalar_one() or 0)

    def page_ids(
        self, session: Session, language_id: int, text: str, cursor_id: Optional[int], limit: int
    ) -> List[int]:
        stmt = self._matching_ids(language_id, text)
        if cursor_id is not None:
            stmt = stmt.where(NameVariant.name_id > cursor_id)
        stmt = stmt.order_by(NameVariant.name_id).limit(limit)
        return list(session.execute(stmt).scalars())

    def id_at_offset(self, session: Session, language_id: int, text: str, offset: int) -> Optional[int]:
        if offset <= 0:
            return None
        stmt = self._matching_ids(language_id, text).order_by(NameVariant.name_id).offset(offset - 1).limit(1)
        return session.execute(stmt).scalar_one_or_none()

    def aggregate_by_ids(
        self,
        session: Session,
        ids: Sequence[int],
        ta_id: int,
        en_id: int,
        fr_id: int,
        requested_id: int,
    ) -> List[Tuple[int, NameResult]]:
        """Build one display row per id, in the order ``ids`` were given.

        Tamil gets a single representative value (first in sorted order); English
        and French get every distinct value, sorted. The description is the first
        meaning stored in the requested locale, falling back to English.
        """
        if not ids:
            return []
        buckets: Dict[int, Dict[int, Set[str]]] = {
            i: {ta_id: set(), en_id: set(), fr_id: set()} for i in ids
        }
        variant_rows = session.execute(
            select(NameVariant.name_id, NameVariant.language_id, NameVariant.variant_name).where(
                NameVariant.name_id.in_(list(ids)),
                NameVariant.language_id.in_([ta_id, en_id, fr_id]),
            )
        ).all()
        for name_id, language_id, value in variant_rows:
            buckets[name_id][language_id].add(value)

        meanings: Dict[Tuple[int, int], str] = {}
        meaning_rows = session.execute(
            select(NameMeaning.name_id, NameMeaning.language_id, NameMeaning.meaning)
            .where(
                NameMeaning.name_id.in_(list(ids)),
                NameMeaning.language_id.in_([requested_id, en_id]),
            )
            .order_by(NameMeaning.id)
        ).all()
        for name_id, language_id, meaning in meaning_rows:
            meanings.setdefault((name_id, language_id), meaning)

        out: List[Tuple[int, NameResult]] = []
        for i in ids:
            tamil = sorted(buckets[i][ta_id])
            description = meanings.get((i, requested_id)) or meanings.get((i, en_id)) or ""
            out.append(
                (
                    i,
                    NameResult(
                        tamil=tamil[0] if tamil else "",
                        english=sorted(buckets[i][en_id]),
                        french=sorted(buckets[i][fr_id]),
                        description=description,
                    ),
                )
            )
        return out

    # ReadPath interface

    def count(self, session, langs, locale, text):
        return self.count_matches(session, langs.id_for(locale), text)

    def cursor_for_offset(self, session, langs, locale, text, offset):
        return self.id_at_offset(session, langs.id_for(locale), text, offset)

    def fetch_page(self, session, langs, locale, text, cursor_id, limit):
        requested_id = langs.id_for(locale)
        ids = self.page_ids(session, requested_id, text, cursor_id, limit)
        _log.debug("normalized page: locale=%s cursor=%s ids=%s", locale, cursor_id, ids)
        return self.aggregate_by_ids(session, ids, langs.ta, langs.en, langs.fr, requested_id)


class DenormalizedReadPath(ReadPath):
    name = "denormalized"

    @staticmethod
    def _match_clause(text: str):
        # search_blob is stored lowercase
        return NameSearchRow.search_blob.ilike(like_pattern(text.lower()), escape=LIKE_ESCAPE)

    def count_matches(self, session: Session, text: str) -> int:
        stmt = select(func.count()).select_from(NameSearchRow).where(self._match_clause(text))
        return int(session.execute(stmt).scalar_one() or 0)

    def id_at_offset(self, session: Session, text: str, offset: int) -> Optional[int]:
        if offset <= 0:
            return None
        stmt = (
            select(NameSearchRow.name_id)
            .where(self._match_clause(text))
            .order_by(NameSearchRow.name_id)
            .offset(offset - 1)
            .limit(1)
        )
        return session.execute(stmt).scalar_one_or_none()

    def page_rows(
        self, session: Session, locale: str, text: str, cursor_id: Optional[int], limit: int
    ) -> List[Tuple[int, NameResult]]:
        stmt = select(NameSearchRow).where(self._match_clause(text))
        if cursor_id is not None:
            stmt = stmt.where(NameSearchRow.name_id > cursor_id)
        stmt = stmt.order_by(NameSearchRow.name_id).limit(limit)
        out: List[Tuple[int, NameResult]] = []
        for row in session.execute(stmt).scalars():
            by_lang = row.meaning_by_lang or {}
            out.append(
                (
                    row.name_id,
                    NameResult(
                        tamil=row.tamil or "",
                        english=[v for v in (row.english or []) if v],
                        french=[v for v in (row.french or []) if v],
                        description=by_lang.get(locale) or by_lang.get(DEFAULT_LOCALE) or "",
                    ),
                )
            )
        return out

    # ReadPath interface

    def count(self, session, langs, locale, text):
        return self.count_matches(session, text)

    def cursor_for_offset(self, session, langs, locale, text, offset):
        return self.id_at_offset(session, text, offset)

    def fetch_page(self, session, langs, locale, text, cursor_id, limit):
        return self.page_rows(session, locale, text, cursor_id, limit)


def build_read_path(use_search_model: bool) -> ReadPath:
    return DenormalizedReadPath() if use_search_model else NormalizedReadPath()
