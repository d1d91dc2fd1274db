"""
Name helpers for face ingestion.

- normalize_name: display name from an ImageKit file name
- sentence_clamp: single-line, length-bounded summary text
- canonicalize: comparison key for matching names against article titles
"""

from __future__ import annotations

import re
import unicodedata
from urllib.parse import unquote

UNKNOWN_NAME = "Unknown"
ELLIPSIS = "…"
DEFAULT_CLAMP_LENGTH = 120

_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_SEPARATOR_RE = re.compile(r"[_-]+")
_WHITESPACE_RE = re.compile(r"\s+")
# ImageKit appends a random token to duplicate uploads (jane_doe_9f3a2b1c.jpg).
# Only tokens containing a digit are stripped, so surnames survive; the cost
# is that an all-letter token (jane_doe_abcDEFgh.jpg) stays in the name.
_HASH_SUFFIX_RE = re.compile(r"\s+(?=[A-Za-z0-9]*[0-9])[A-Za-z0-9]{6,}$")
_HANGUL_RANGES = (
    (0x1100, 0x11FF),  # Jamo
    (0x3130, 0x318F),  # Compatibility Jamo
    (0xAC00, 0xD7A3),  # Syllables
)


def _strip_hash_suffix(value: str) -> str:
    stripped = _HASH_SUFFIX_RE.sub("", value)
    while stripped != value:
        value = stripped
        stripped = _HASH_SUFFIX_RE.sub("", value)
    return value


def normalize_name(raw: str, strip_hash_suffix: bool = False) -> str:
    """
    Derive a display name from a raw file name.

    Steps: drop the extension, percent-decode, turn runs of ``_``/``-`` into
    spaces, optionally drop trailing upload-hash tokens, collapse whitespace.

    >>> normalize_name("jane_doe-01.png")
    'jane doe 01'
    >>> normalize_name("jane_doe_9f3a2b1c.png", strip_hash_suffix=True)
    'jane doe'
    """
    value = _EXTENSION_RE.sub("", raw or "")
    value = unquote(value)
    value = _SEPARATOR_RE.sub(" ", value)
    if strip_hash_suffix:
        value = _strip_hash_suffix(value)
    value = _WHITESPACE_RE.sub(" ", value).strip()
    return value or UNKNOWN_NAME


def sentence_clamp(text: str, max_length: int = DEFAULT_CLAMP_LENGTH) -> str:
    """Collapse whitespace and cut to ``max_length`` characters, ellipsis included."""
    single_line = _WHITESPACE_RE.sub(" ", text or "").strip()
    if len(single_line) <= max_length:
        return single_line
    return f"{single_line[: max_length - 1].rstrip()}{ELLIPSIS}"


def _is_hangul(char: str) -> bool:
    code = ord(char)
    return any(start <= code <= end for start, end in _HANGUL_RANGES)


def canonicalize(name: str) -> str:
    """
    Comparison key: diacritics stripped, case folded, only ASCII
    alphanumerics and Hangul kept.

    NFD splits Hangul syllables into jamo, so the string is recomposed
    before filtering.
    """
    decomposed = unicodedata.normalize("NFD", name or "")
    without_marks = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    folded = unicodedata.normalize("NFC", without_marks).casefold()
    return "".join(
        ch for ch in folded if (ch.isascii() and ch.isalnum()) or _is_hangul(ch)
    )


def last_path_segment(value: str | None) -> str | None:
    """Final ``/``-separated segment of a path or URL, or None when empty."""
    if not value:
        return None
    return value.rstrip("/").split("/")[-1] or None


def strip_query(url: str | None) -> str | None:
    """Drop the query string (transformation parameters) from a delivery URL."""
    if not url:
        return None
    base = url.split("?", 1)[0]
    return base or None
