#!/usr/bin/env python3
"""
Rebuild the denormalized name_search read model from the normalized tables.

Every name gets one row: a representative Tamil value, sorted English and French
variant lists, a {locale: meaning} map (first meaning stored per locale) and a
lowercase search blob of all variants. The table is replaced wholesale inside one
transaction, so searches never see a half-refreshed model.

Usage:
  python scripts/40_read_model/refresh_name_search.py [--db-url sqlite:///./data/namebank.db] [--out report.json]
"""
from __future__ import annotations

import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Set

# Ensure project root on sys.path for db imports regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models import Language, Name, NameMeaning, NameSearchRow, NameVariant, utcnow
from db.session import get_session, reconfigure


def build_rows(session: Session) -> List[dict]:
    codes = dict(session.execute(select(Language.id, Language.code)).all())
    variants: Dict[int, Dict[str, Set[str]]] = defaultdict(lambda: defaultdict(set))
    for name_id, lang_id, value in session.execute(
        select(NameVariant.name_id, NameVariant.language_id, NameVariant.variant_name)
    ):
        variants[name_id][codes[lang_id]].add(value)
    meanings: Dict[int, Dict[str, str]] = defaultdict(dict)
    for name_id, lang_id, meaning in session.execute(
        select(NameMeaning.name_id, NameMeaning.language_id, NameMeaning.meaning).order_by(NameMeaning.id)
    ):
        meanings[name_id].setdefault(codes[lang_id], meaning)

    now = utcnow()
    rows = []
    for name_id in session.execute(select(Name.id).order_by(Name.id)).scalars():
        by_lang = variants.get(name_id, {})
        tamil = sorted(by_lang.get("ta", ()))
        blob_parts = [v for code in sorted(by_lang) for v in sorted(by_lang[code])]
        rows.append({
            "name_id": name_id,
            "tamil": tamil[0] if tamil else None,
            "english": sorted(by_lang.get("en", ())),
            "french": sorted(by_lang.get("fr", ())),
            "meaning_by_lang": dict(meanings.get(name_id, {})),
            "search_blob": " ".join(blob_parts).lower(),
            "refreshed_at": now,
        })
    return rows


def refresh(session: Session) -> dict:
    rows = build_rows(session)
    session.execute(delete(NameSearchRow))
    if rows:
        session.execute(NameSearchRow.__table__.insert(), rows)
    session.commit()
    return {"rows": len(rows)}


def main(argv: list[str] | None = None) -> int:
    import argparse

    p = argparse.ArgumentParser(description="Rebuild the name_search read model")
    p.add_argument("--db-url", dest="db_url", default=None, help="Database URL (overrides NAMEBANK_DB_URL)")
    p.add_argument("--out", default=None, help="Write a JSON summary to this path")
    args = p.parse_args(argv)

    if args.db_url:
        reconfigure(args.db_url)

    with get_session() as session:
        summary = refresh(session)
    print(f"name_search refreshed: rows={summary['rows']}")
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(summary, indent=2), encoding="utf8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
