"""Multilingual name search and bulk publishing over SQLAlchemy.

Typical wiring (done once at startup)::

    languages = LanguageDirectory(ttl_seconds=settings.language_cache_ttl)
    search = NameSearch(build_read_path(settings.use_search_model), languages)
    publisher = BulkPublisher(languages)
"""
from .cursor import decode_cursor, encode_cursor  # noqa: F401
from .errors import ConfigurationError, NamebankError, TransactionFailure, UnsupportedLocale  # noqa: F401
from .languages import LanguageDirectory, LanguageMap, SUPPORTED_LOCALES  # noqa: F401
from .publish import BulkPublisher, LocalizedValue, NameRow, PublishResult  # noqa: F401
from .read_paths import DenormalizedReadPath, NameResult, NormalizedReadPath, ReadPath, build_read_path  # noqa: F401
from .search import NameSearch, SearchPage  # noqa: F401

__all__ = [
    "BulkPublisher",
    "ConfigurationError",
    "DenormalizedReadPath",
    "LanguageDirectory",
    "LanguageMap",
    "LocalizedValue",
    "NameResult",
    "NameRow",
    "NameSearch",
    "NamebankError",
    "NormalizedReadPath",
    "PublishResult",
    "ReadPath",
    "SUPPORTED_LOCALES",
    "SearchPage",
    "TransactionFailure",
    "UnsupportedLocale",
    "build_read_path",
    "decode_cursor",
    "encode_cursor",
]
