from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    JSON,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def utcnow() -> datetime:
    # Naive UTC so SQLite and PostgreSQL TIMESTAMP columns compare the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Language(Base):
    """A supported locale. Rows are provisioned by bootstrap/migrations, never by the core.

    code examples: 'en', 'ta', 'fr'.
    """

    __tablename__ = "language"

    id = Column(Integer, primary_key=True)
    code = Column(String(8), unique=True, nullable=False, index=True)
    label = Column(String(64), nullable=True)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Language {self.code} id={self.id}>"


class Name(Base):
    """Canonical name entity; variants and meanings hang off it per locale."""

    __tablename__ = "name"

    id = Column(Integer, primary_key=True)
    canonical_key = Column(String(100), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    variants = relationship("NameVariant", back_populates="name", cascade="all, delete-orphan")
    meanings = relationship("NameMeaning", back_populates="name", cascade="all, delete-orphan")

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Name id={self.id} key={self.canonical_key}>"


class NameVariant(Base):
    """A spelling/alias of a Name in one locale, e.g. ('en', 'Maria')."""

    __tablename__ = "name_variant"
    __table_args__ = (
        UniqueConstraint("name_id", "language_id", "variant_name", name="uq_name_variant_name_lang_value"),
    )

    id = Column(Integer, primary_key=True)
    name_id = Column(Integer, ForeignKey("name.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id = Column(Integer, ForeignKey("language.id", ondelete="RESTRICT"), nullable=False, index=True)
    variant_name = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    name = relationship("Name", back_populates="variants")
    language = relationship("Language")

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<NameVariant name={self.name_id} lang={self.language_id} value={self.variant_name}>"


class NameMeaning(Base):
    __tablename__ = "name_meaning"
    __table_args__ = (
        UniqueConstraint("name_id", "language_id", "meaning", name="uq_name_meaning_name_lang_value"),
    )

    id = Column(Integer, primary_key=True)
    name_id = Column(Integer, ForeignKey("name.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id = Column(Integer, ForeignKey("language.id", ondelete="RESTRICT"), nullable=False, index=True)
    meaning = Column(String(1000), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    name = relationship("Name", back_populates="meanings")
    language = relationship("Language")

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<NameMeaning name={self.name_id} lang={self.language_id}>"


class NameSearchRow(Base):
    """Denormalized read model: one pre-joined row per Name.

    Populated by scripts/40_read_model/refresh_name_search.py; the search code
    only ever reads it.
    """

    __tablename__ = "name_search"

    name_id = Column(Integer, ForeignKey("name.id", ondelete="CASCADE"), primary_key=True)
    tamil = Column(String(255), nullable=True)
    english = Column(JSON, default=list)
    french = Column(JSON, default=list)
    # e.g. {"en": "beloved", "ta": "..."}
    meaning_by_lang = Column(JSON, default=dict)
    # lowercase concatenation of every variant in every locale
    search_blob = Column(Text, nullable=False, default="")
    refreshed_at = Column(DateTime, default=utcnow)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<NameSearchRow name={self.name_id}>"


class PublishAudit(Base):
    __tablename__ = "publish_audit"

    id = Column(Integer, primary_key=True)
    actor = Column(String(128), nullable=True, index=True)
    source = Column(String(100), nullable=True)
    total_rows = Column(Integer, nullable=False)
    inserted = Column(Integer, nullable=False)
    duplicates = Column(Integer, nullable=False)
    # {"canonicalKeys": [...], "source": ..., "totals": {...}}
    sample_keys = Column(JSON, default=dict)
    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<PublishAudit id={self.id} rows={self.total_rows} inserted={self.inserted}>"
