"""Opaque keyset-pagination tokens.

A token is the URL-safe base64 of the decimal name id. It carries no ordering of
its own; queries order by id and filter ``id > cursor``.
"""
from __future__ import annotations

import base64
import binascii
import re
from typing import Optional

_DECIMAL = re.compile(r"[0-9]+")


def encode_cursor(name_id: int) -> str:
    if isinstance(name_id, bool) or not isinstance(name_id, int) or name_id <= 0:
        raise ValueError(f"cursor id must be a positive integer, got {name_id!r}")
    return base64.urlsafe_b64encode(str(name_id).encode("ascii")).decode("ascii")


def decode_cursor(token: Optional[str]) -> Optional[int]:
    """Return the id inside ``token``, or None when it is missing or malformed."""
    if not token or not token.strip():
        return None
    try:
        raw = base64.b64decode(token.strip(), altchars=b"-_", validate=True)
        text = raw.decode("ascii")
    except (binascii.Error, ValueError):
        return None
    if not _DECIMAL.fullmatch(text):
        return None
    value = int(text)
    return value if value > 0 else None
