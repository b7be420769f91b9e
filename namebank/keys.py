from __future__ import annotations

import re
import secrets
import time
import unicodedata
from typing import Optional

MAX_KEY_LENGTH = 100
SEPARATOR = "_"

_SEP_RUN = re.compile(r"_{2,}")


def _fold_char(ch: str) -> str:
    # Accents split off a precomposed letter are dropped; standalone marks
    # (e.g. the Tamil virama) belong to the spelling and are kept
    decomposed = unicodedata.normalize("NFKD", ch)
    if decomposed == ch:
        return ch
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def slugify_key(text: str) -> str:
    """Fold a display value into a canonical-key slug.

    Case-folded, accents stripped from precomposed letters, every run of
    characters that are not letters, digits or marks becomes a single
    underscore, leading/trailing underscores are trimmed and the result is capped
    at MAX_KEY_LENGTH. Non-Latin scripts are kept as-is.
    """
    if not text:
        return ""
    s = "".join(_fold_char(ch) for ch in unicodedata.normalize("NFC", text)).casefold()
    out_chars = []
    for ch in s:
        cat = unicodedata.category(ch)
        out_chars.append(ch if ch.isalnum() or cat.startswith("M") else SEPARATOR)
    s = _SEP_RUN.sub(SEPARATOR, "".join(out_chars)).strip(SEPARATOR)
    return s[:MAX_KEY_LENGTH].rstrip(SEPARATOR)


def synthetic_key(index: int = 0, now: Optional[float] = None) -> str:
    # Random suffix keeps keys from separate batches in the same millisecond apart
    ms = int((time.time() if now is None else now) * 1000)
    return f"name_{ms}_{index}_{secrets.token_hex(4)}"
