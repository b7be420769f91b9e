"""Storage layer: declarative models for the name catalog plus engine/session helpers.

Scripts usually only need ``from db import get_session, Name``.
"""
from .models import Base, Language, Name, NameMeaning, NameSearchRow, NameVariant, PublishAudit  # noqa: F401
from .session import get_session, reconfigure  # noqa: F401

__all__ = [
    "Base",
    "Language",
    "Name",
    "NameMeaning",
    "NameSearchRow",
    "NameVariant",
    "PublishAudit",
    "get_session",
    "reconfigure",
]
