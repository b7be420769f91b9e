"""Request/response models for the HTTP API and the file loader.

Field names follow the JSON wire format (camelCase); python code reads them
through the snake_case attributes.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from namebank.publish import LocalizedValue, NameRow

Locale = Literal["en", "ta", "fr"]

CANONICAL_KEY_PATTERN = r"^[A-Za-z0-9_\-.]+$"


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class SearchRequest(_Wire):
    search_text: str = Field(alias="searchText", min_length=1, max_length=100)
    locale: Locale
    page_size: int = Field(alias="pageSize", ge=1, le=100)
    page: int = Field(1, ge=1)
    cursor: Optional[str] = None


class NameResultOut(BaseModel):
    tamil: str
    english: List[str]
    french: List[str]
    description: str


class SearchResponse(_Wire):
    results: List[NameResultOut]
    total_count: int = Field(alias="totalCount")
    next_cursor: Optional[str] = Field(None, alias="nextCursor")


class VariantIn(_Wire):
    locale: Locale
    value: str = Field(min_length=1, max_length=255)


class MeaningIn(_Wire):
    locale: Locale
    value: str = Field(min_length=1, max_length=1000)


def _reject_repeats(items: List[VariantIn] | List[MeaningIn], what: str) -> None:
    seen = set()
    for item in items:
        key = (item.locale, item.value.lower())
        if key in seen:
            raise ValueError(f"duplicate {what} for {item.locale}: {item.value!r}")
        seen.add(key)


class NameRowIn(_Wire):
    canonical_key: Optional[str] = Field(
        None, alias="canonicalKey", min_length=1, max_length=100, pattern=CANONICAL_KEY_PATTERN
    )
    variants: List[VariantIn] = Field(min_length=1)
    meanings: List[MeaningIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_pairs(self) -> "NameRowIn":
        _reject_repeats(self.variants, "variant")
        _reject_repeats(self.meanings, "meaning")
        return self

    def to_row(self) -> NameRow:
        return NameRow(
            variants=[LocalizedValue(v.locale, v.value) for v in self.variants],
            meanings=[LocalizedValue(m.locale, m.value) for m in self.meanings],
            canonical_key=self.canonical_key,
        )


class BulkPublishRequest(_Wire):
    rows: List[NameRowIn] = Field(min_length=1, max_length=2000)
    dry_run: bool = Field(False, alias="dryRun")
    source: Optional[str] = Field(None, max_length=100)

    @field_validator("source")
    @classmethod
    def _blank_source_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def to_rows(self) -> List[NameRow]:
        return [r.to_row() for r in self.rows]
