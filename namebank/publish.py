"""Transactional bulk publishing of names, variants and meanings.

A whole batch runs inside one database transaction:

1. every locale code used anywhere in the batch is resolved once;
2. each row (in input order) gets a canonical key, an insert-or-fetch of its
   ``name`` row, and one set-based ``INSERT ... ON CONFLICT DO NOTHING RETURNING``
   for its variants and another for its meanings. Whatever the database did not
   return was already there and is reported as a duplicate;
3. the transaction is committed, or rolled back when ``dry_run`` is set, in which
   case the caller still receives the fully computed result.

Duplicates are never errors. Any storage error rolls the batch back and surfaces
as :class:`~namebank.errors.TransactionFailure`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Name, NameMeaning, NameVariant, utcnow
from namebank.errors import ConfigurationError, TransactionFailure
from namebank.keys import slugify_key, synthetic_key
from namebank.languages import DEFAULT_LOCALE, LanguageDirectory

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalizedValue:
    locale: str
    value: str


@dataclass
class NameRow:
    variants: List[LocalizedValue]
    meanings: List[LocalizedValue] = field(default_factory=list)
    canonical_key: Optional[str] = None


@dataclass
class UpsertOutcome:
    inserted: int = 0
    duplicates: List[LocalizedValue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inserted": self.inserted,
            "duplicates": [{"locale": d.locale, "value": d.value} for d in self.duplicates],
        }


@dataclass
class RowOutcome:
    index: int
    canonical_key: str
    name_id: int
    variants: UpsertOutcome
    meanings: UpsertOutcome

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "canonicalKey": self.canonical_key,
            "nameId": self.name_id,
            "variants": self.variants.to_dict(),
            "meanings": self.meanings.to_dict(),
        }


@dataclass
class PublishTotals:
    rows: int = 0
    names_ensured: int = 0
    variants_inserted: int = 0
    variants_duplicates: int = 0
    meanings_inserted: int = 0
    meanings_duplicates: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "rows": self.rows,
            "namesEnsured": self.names_ensured,
            "variantsInserted": self.variants_inserted,
            "variantsDuplicates": self.variants_duplicates,
            "meaningsInserted": self.meanings_inserted,
            "meaningsDuplicates": self.meanings_duplicates,
        }


@dataclass
class PublishResult:
    totals: PublishTotals
    rows: List[RowOutcome] = field(default_factory=list)
    dry_run: bool = False
    source: Optional[str] = None

    @property
    def inserted(self) -> int:
        return self.totals.variants_inserted + self.totals.meanings_inserted

    @property
    def duplicates(self) -> int:
        return self.totals.variants_duplicates + self.totals.meanings_duplicates

    def duplicate_details(self) -> List[Dict[str, Any]]:
        details: List[Dict[str, Any]] = []
        for row in self.rows:
            for kind, outcome in (("variant", row.variants), ("meaning", row.meanings)):
                for dup in outcome.duplicates:
                    details.append({
                        "rowIndex": row.index,
                        "canonicalKey": row.canonical_key,
                        "nameId": row.name_id,
                        "kind": kind,
                        "locale": dup.locale,
                        "value": dup.value,
                    })
        return details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inserted": self.inserted,
            "duplicates": self.duplicates,
            "duplicateDetails": self.duplicate_details(),
            "dryRun": self.dry_run,
            "source": self.source,
            "totals": self.totals.to_dict(),
            "rows": [r.to_dict() for r in self.rows],
        }


def canonical_key_for(row: NameRow, index: int = 0, primary_locale: str = DEFAULT_LOCALE) -> str:
    """Provided key if non-blank, else a slug of the preferred variant, else a synthetic key."""
    if row.canonical_key and row.canonical_key.strip():
        return row.canonical_key.strip()
    pick = next((v for v in row.variants if v.locale == primary_locale), row.variants[0])
    return slugify_key(pick.value) or synthetic_key(index)


def _insert_for(session: Session) -> Callable:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise ConfigurationError(f"bulk publish needs INSERT ... ON CONFLICT support; got dialect {dialect!r}")


class BulkPublisher:
    def __init__(self, languages: LanguageDirectory, primary_locale: str = DEFAULT_LOCALE):
        self.languages = languages
        self.primary_locale = primary_locale

    def publish(
        self,
        session: Session,
        rows: Sequence[NameRow],
        dry_run: bool = False,
        source: Optional[str] = None,
        before_commit: Optional[Callable[[Session, PublishResult], Any]] = None,
    ) -> PublishResult:
        """Publish ``rows`` in one transaction.

        ``before_commit`` runs inside the same transaction once every row is
        written (never on a dry run), so whatever it adds, such as an audit row,
        is committed or rolled back together with the batch.
        """
        for i, row in enumerate(rows):
            if not row.variants:
                raise ValueError(f"row {i}: at least one variant is required")

        result = PublishResult(totals=PublishTotals(rows=len(rows)), dry_run=dry_run, source=source)
        current: Optional[int] = -1
        try:
            insert = _insert_for(session)
            codes = {v.locale for r in rows for v in r.variants}
            codes.update(m.locale for r in rows for m in r.meanings)
            lang_ids = self.languages.resolve(session, codes)
            codes_by_id = {lid: code for code, lid in lang_ids.items()}

            for current, row in enumerate(rows):
                result.rows.append(self._publish_row(session, insert, current, row, lang_ids, codes_by_id))
                outcome = result.rows[-1]
                result.totals.names_ensured += 1
                result.totals.variants_inserted += outcome.variants.inserted
                result.totals.variants_duplicates += len(outcome.variants.duplicates)
                result.totals.meanings_inserted += outcome.meanings.inserted
                result.totals.meanings_duplicates += len(outcome.meanings.duplicates)
            if before_commit is not None and not dry_run:
                current = None
                before_commit(session, result)
        except SQLAlchemyError as exc:
            session.rollback()
            where = "before commit" if current is None else f"at row {current}"
            _log.error("bulk publish rolled back %s: %s", where, exc)
            raise TransactionFailure(f"bulk publish failed {where}: {exc}", row_index=current) from exc
        except Exception:
            session.rollback()
            raise

        if dry_run:
            session.rollback()
            _log.info(
                "dry run rolled back: rows=%d inserted=%d duplicates=%d source=%s",
                len(rows), result.inserted, result.duplicates, source,
            )
            return result

        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise TransactionFailure(f"bulk publish commit failed: {exc}") from exc
        _log.info(
            "bulk publish committed: rows=%d inserted=%d duplicates=%d source=%s",
            len(rows), result.inserted, result.duplicates, source,
        )
        return result

    def _publish_row(
        self,
        session: Session,
        insert: Callable,
        index: int,
        row: NameRow,
        lang_ids: Dict[str, int],
        codes_by_id: Dict[int, str],
    ) -> RowOutcome:
        key = canonical_key_for(row, index, self.primary_locale)
        name_id = self._ensure_name(session, insert, key)
        variants = self._upsert_values(
            session, insert, NameVariant, "variant_name", name_id,
            [(lang_ids[v.locale], v.value) for v in row.variants], codes_by_id,
        )
        meanings = self._upsert_values(
            session, insert, NameMeaning, "meaning", name_id,
            [(lang_ids[m.locale], m.value) for m in row.meanings], codes_by_id,
        )
        return RowOutcome(index=index, canonical_key=key, name_id=name_id, variants=variants, meanings=meanings)

    @staticmethod
    def _ensure_name(session: Session, insert: Callable, key: str) -> int:
        # Conflicting publishers converge on the same row via the unique key
        now = utcnow()
        stmt = (
            insert(Name)
            .values(canonical_key=key, created_at=now, updated_at=now)
            .on_conflict_do_update(index_elements=["canonical_key"], set_={"updated_at": now})
            .returning(Name.id)
        )
        return session.execute(stmt).scalar_one()

    @staticmethod
    def _upsert_values(
        session: Session,
        insert: Callable,
        model,
        value_column: str,
        name_id: int,
        items: List[Tuple[int, str]],
        codes_by_id: Dict[int, str],
    ) -> UpsertOutcome:
        outcome = UpsertOutcome()
        if not items:
            return outcome
        unique_items = list(dict.fromkeys(items))
        now = utcnow()
        stmt = (
            insert(model)
            .values([
                {"name_id": name_id, "language_id": lid, value_column: value, "created_at": now}
                for lid, value in unique_items
            ])
            .on_conflict_do_nothing(index_elements=["name_id", "language_id", value_column])
            .returning(model.language_id, getattr(model, value_column))
        )
        inserted = {(lid, value) for lid, value in session.execute(stmt).all()}

        claimed = set()
        for item in items:
            if item in inserted and item not in claimed:
                claimed.add(item)
                outcome.inserted += 1
            else:
                outcome.duplicates.append(LocalizedValue(codes_by_id[item[0]], item[1]))
        return outcome
