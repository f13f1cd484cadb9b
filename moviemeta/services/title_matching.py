from __future__ import annotations

import re
import unicodedata
from difflib import SequenceMatcher

_NON_SEARCH_CHARS_RE = re.compile(r"[^\w\s]+|_+")
_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_YEAR_RE = re.compile(r"\s\d{4}$")
_IMDB_ID_RE = re.compile(r"tt\d{7,9}")


def search_safe(text: str | None) -> str:
    """Return `text` with punctuation and separators replaced by single spaces."""
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKC", text)
    normalized = _NON_SEARCH_CHARS_RE.sub(" ", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized)
    return normalized.strip()


def strip_trailing_year(text: str) -> str | None:
    """Drop a trailing ` 1999`-style token, or return None when there is none."""
    if _TRAILING_YEAR_RE.search(text) is None:
        return None
    stripped = _TRAILING_YEAR_RE.sub("", text).strip()
    return stripped or None


def title_similarity(query: str, title: str | None) -> float:
    if title is None:
        return 0.0
    left = search_safe(query).casefold()
    right = search_safe(title).casefold()
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0
    ratio = SequenceMatcher(None, left, right).ratio()
    return min(1.0, max(0.0, ratio))


def is_valid_imdb_id(value: str | None) -> bool:
    if not value:
        return False
    return _IMDB_ID_RE.fullmatch(value.strip()) is not None
