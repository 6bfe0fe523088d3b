"""Studio name cleaning and identity keys.

Two levels of cleaning exist:

- the *display* name drops legal suffixes (``Inc.``, ``LLC`` ...) and a leading
  ``The`` but keeps descriptive words such as ``Games``;
- the *comparison* name additionally drops descriptor suffixes (``Studios``,
  ``Games``, ``Entertainment``, ``Interactive``) so that "Riot Games, Inc." and
  "Riot" compare equal.

The identity key is the comparison name folded to ASCII, casefolded and
stripped of punctuation. Catalog storage enforces uniqueness on it.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Final

_WHITESPACE_RE: Final = re.compile(r"\s+")
_LEGAL_SUFFIX_RE: Final = re.compile(
    r"(?:,\s*|\s+)(?:inc|llc|ltd|limited|corp|corporation|co|gmbh|plc)\.?$",
    re.IGNORECASE,
)
_DESCRIPTOR_SUFFIX_RE: Final = re.compile(
    r"(?:,\s*|\s+)(?:games?|studios?|entertainment|interactive)$",
    re.IGNORECASE,
)
_LEADING_ARTICLE_RE: Final = re.compile(r"^the\s+", re.IGNORECASE)
_PUNCTUATION_RE: Final = re.compile(r"[^\w\s]")


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def _strip_repeatedly(value: str, pattern: re.Pattern[str]) -> str:
    current = value
    while True:
        stripped = pattern.sub("", current).rstrip(" ,")
        if stripped == current or not stripped:
            return current
        current = stripped


def clean_display_name(name: str) -> str:
    """Drop legal suffixes and a leading article: ``"The Riot Games, Inc."`` -> ``"Riot Games"``."""

    cleaned = _strip_repeatedly(collapse_whitespace(name), _LEGAL_SUFFIX_RE)
    without_article = _LEADING_ARTICLE_RE.sub("", cleaned)
    return without_article or cleaned


def clean_studio_name(name: str) -> str:
    """Display name without descriptor suffixes.

    Never returns an empty string for non-blank input.
    """

    display = clean_display_name(name)
    current = display
    while True:
        stripped = _strip_repeatedly(current, _DESCRIPTOR_SUFFIX_RE)
        stripped = _strip_repeatedly(stripped, _LEGAL_SUFFIX_RE)
        if stripped == current:
            return current
        current = stripped


def normalize_text(value: str) -> str:
    """Accent-fold, casefold and strip punctuation for comparisons."""

    decomposed = unicodedata.normalize("NFKD", value)
    without_marks = "".join(char for char in decomposed if not unicodedata.combining(char))
    folded = without_marks.casefold()
    return collapse_whitespace(_PUNCTUATION_RE.sub(" ", folded).replace("_", " "))


def identity_key_for(name: str) -> str:
    key = normalize_text(clean_studio_name(name))
    return key or normalize_text(name)


BLOCK_PREFIX_LENGTH = 4


def block_key_for(identity_key: str) -> str:
    """Leading characters of the first token, used to narrow catalog lookups.

    Typo variants past the prefix, such as "supercel" and "supercell",
    share a block.
    """

    head, _, _ = identity_key.partition(" ")
    return head[:BLOCK_PREFIX_LENGTH]
