"""Search orchestration: cursor handling, counting and response shaping.

The orchestrator is configured once with a read path and never inspects which
one it got. Paging is keyset-based (``id > cursor``); offset-style ``page``
requests are translated into a cursor with one extra lookup.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from namebank.cursor import decode_cursor, encode_cursor
from namebank.languages import LanguageDirectory
from namebank.read_paths import NameResult, ReadPath

_log = logging.getLogger(__name__)


@dataclass
class SearchPage:
    results: List[NameResult] = field(default_factory=list)
    total_count: int = 0
    next_cursor: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "totalCount": self.total_count,
            "nextCursor": self.next_cursor,
        }


class NameSearch:
    def __init__(self, read_path: ReadPath, languages: LanguageDirectory):
        self.read_path = read_path
        self.languages = languages

    def search(
        self,
        session: Session,
        text: str,
        locale: str,
        page_size: int,
        page: int = 1,
        cursor: Optional[str] = None,
    ) -> SearchPage:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if page < 1:
            raise ValueError("page must be >= 1")
        langs = self.languages.snapshot(session)
        # Validates the locale before any query runs
        langs.id_for(locale)

        total = self.read_path.count(session, langs, locale, text)
        if total == 0:
            return SearchPage(results=[], total_count=0, next_cursor=None)

        cursor_id = decode_cursor(cursor)
        if cursor_id is None and page > 1:
            offset = (page - 1) * page_size
            if offset >= total:
                _log.debug("page %d beyond %d matches for %r", page, total, text)
                return SearchPage(results=[], total_count=total, next_cursor=None)
            cursor_id = self.read_path.cursor_for_offset(session, langs, locale, text, offset)
            if cursor_id is None:
                # Matches shrank between the count and the lookup
                _log.warning("no cursor at offset %d for %r (total=%d)", offset, text, total)
                return SearchPage(results=[], total_count=total, next_cursor=None)

        # One extra row tells us whether another page exists
        rows = self.read_path.fetch_page(session, langs, locale, text, cursor_id, page_size + 1)
        has_more = len(rows) > page_size
        rows = rows[:page_size]
        next_cursor = encode_cursor(rows[-1][0]) if rows and has_more else None
        _log.debug(
            "search %r path=%s locale=%s total=%d returned=%d more=%s",
            text, self.read_path.name, locale, total, len(rows), has_more,
        )
        return SearchPage(results=[r for _, r in rows], total_count=total, next_cursor=next_cursor)
