"""String comparison helpers for studio matching."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from rapidfuzz.distance import Levenshtein

from studiocat.domain.model.naming import clean_studio_name, collapse_whitespace, normalize_text

if TYPE_CHECKING:
    from collections.abc import Iterable

_ABBREVIATIONS = (
    ("games", "game"),
    ("studios", "studio"),
    ("entertainment", "ent"),
    ("interactive", "int"),
)


def levenshtein_distance(left: str, right: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""

    return Levenshtein.distance(left, right)


def levenshtein_similarity(left: str, right: str) -> float:
    """Similarity on a 0..100 scale derived from the edit distance."""

    return Levenshtein.normalized_similarity(left, right) * 100


def name_variants(name: str) -> frozenset[str]:
    """Normalized spellings of ``name`` considered interchangeable."""

    base = normalize_text(name)
    cleaned = normalize_text(clean_studio_name(name))
    variants = {base, cleaned}
    for long_form, short_form in _ABBREVIATIONS:
        for variant in (base, cleaned):
            tokens = variant.split(" ")
            if long_form in tokens:
                variants.add(" ".join(short_form if t == long_form else t for t in tokens))
            if short_form in tokens:
                variants.add(" ".join(long_form if t == short_form else t for t in tokens))
    variants.discard("")
    return frozenset(variants)


def hostname(url: str) -> str | None:
    """Lower-cased host without ``www.``; tolerates missing schemes."""

    candidate = url.strip()
    if not candidate:
        return None
    if "://" not in candidate:
        candidate = f"http://{candidate}"
    host = urlsplit(candidate).hostname
    if not host:
        return None
    return host.removeprefix("www.")


def website_key(url: str) -> str:
    """Comparison key used to de-duplicate websites."""

    return url.strip().lower().rstrip("/")


def location_tokens(location: str) -> list[str]:
    return normalize_text(location).split()


def ordered_union(*groups: Iterable[str], key: str = "casefold") -> tuple[str, ...]:
    """Union preserving first-seen order and spelling.

    ``key`` selects the comparison: ``"casefold"`` for free text,
    ``"website"`` for URLs.
    """

    seen: set[str] = set()
    result: list[str] = []
    for group in groups:
        for value in group:
            stripped = collapse_whitespace(value)
            if not stripped:
                continue
            marker = website_key(stripped) if key == "website" else stripped.casefold()
            if marker in seen:
                continue
            seen.add(marker)
            result.append(stripped)
    return tuple(result)
