"""Runtime settings read from the process environment.

Every knob has a default so scripts and tests run without any environment set.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

DEFAULT_DB_URL = "sqlite:///./data/namebank.db"

_TRUTHY = {"1", "true", "yes", "on"}


def _as_bool(raw: Optional[str], default: bool = False) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _as_int(raw: Optional[str], default: int, name: str) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _as_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [s.strip() for s in raw.split(",") if s.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DB_URL
    pool_max: int = 20
    connect_timeout: int = 5
    # Serve searches from the denormalized name_search table instead of joins
    use_search_model: bool = False
    language_cache_ttl: int = 300
    cors_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    settings = Settings(
        database_url=env.get("NAMEBANK_DB_URL") or DEFAULT_DB_URL,
        pool_max=_as_int(env.get("NAMEBANK_DB_POOL_MAX"), 20, "NAMEBANK_DB_POOL_MAX"),
        connect_timeout=_as_int(env.get("NAMEBANK_DB_CONNECT_TIMEOUT"), 5, "NAMEBANK_DB_CONNECT_TIMEOUT"),
        use_search_model=_as_bool(env.get("NAMEBANK_USE_SEARCH_MODEL")),
        language_cache_ttl=_as_int(env.get("NAMEBANK_LANG_CACHE_TTL"), 300, "NAMEBANK_LANG_CACHE_TTL"),
        cors_origins=_as_csv(env.get("NAMEBANK_CORS_ORIGINS")),
        log_level=(env.get("NAMEBANK_LOG_LEVEL") or "INFO").upper(),
    )
    if settings.pool_max < 1:
        raise ValueError("NAMEBANK_DB_POOL_MAX must be >= 1")
    if settings.language_cache_ttl < 0:
        raise ValueError("NAMEBANK_LANG_CACHE_TTL must be >= 0")
    return settings
