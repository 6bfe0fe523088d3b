"""Normalization of raw provider records into catalog candidates.

Responsibilities of this stage:
- reject records without the minimum identity (source ids and a name)
- clean the studio name and canonicalize the location
- derive category, technologies and founded year from the declared games
- de-duplicate websites and catalog items
- split provider metadata into typed fields and an opaque pass-through bag

The pipeline performs no I/O and never mutates its input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from studiocat.domain.model import (
    CandidateEntity,
    EntityMetadata,
    ErrorSeverity,
    IngestionError,
    RawGame,
    StudioCategory,
    clean_display_name,
)
from studiocat.domain.model.naming import collapse_whitespace
from studiocat.domain.reconciliation.text import ordered_union

if TYPE_CHECKING:
    from collections.abc import Iterable

    from studiocat.domain.model import RawEntity

log = logging.getLogger(__name__)

PAYLOAD_ERRORS_KEY: Final = "payload_errors"
_TYPED_METADATA_KEYS: Final = frozenset({"founded", "founded_date", "sources", PAYLOAD_ERRORS_KEY})
_YEAR_RE: Final = re.compile(r"\b(1[89]\d{2}|2\d{3})\b")
_EARLIEST_PLAUSIBLE_YEAR: Final = 1950

_MOBILE_PLATFORMS: Final = frozenset({"ios", "android", "mobile", "iphone", "ipad"})
_VR_PLATFORMS: Final = frozenset({"vr", "ar", "oculus", "quest", "psvr", "steamvr", "vive"})
_CONSOLE_PLATFORMS: Final = frozenset(
    {"playstation", "ps4", "ps5", "xbox", "switch", "nintendo", "console", "wii"}
)
_PC_PLATFORMS: Final = frozenset({"pc", "windows", "mac", "macos", "linux", "steam"})

_MOBILE_TECH: Final = ("Unity", "Swift", "Kotlin")
_PC_TECH: Final = ("C++", "DirectX")
_CONSOLE_TECH: Final = ("C++", "PlayStation SDK", "Xbox SDK")


class NormalizationError(ValueError):
    """Raised when a raw record cannot become a catalog candidate."""

    def __init__(self, message: str, *, raw: RawEntity | None = None) -> None:
        super().__init__(message)
        self.entity_id = raw.source_entity_id if raw is not None else None
        self.entity_name = raw.name if raw is not None and isinstance(raw.name, str) else None


def canonical_location(location: str | None) -> str:
    """Best-effort locality: first comma-separated part, title cased."""

    if not location:
        return ""
    head = collapse_whitespace(location.split(",", 1)[0])
    return head.title()


def platform_tokens(games: Iterable[RawGame]) -> set[str]:
    tokens: set[str] = set()
    for game in games:
        for platform in game.platforms:
            tokens.update(re.split(r"[\s/_-]+", platform.lower()))
    tokens.discard("")
    return tokens


def infer_category(name: str, games: Iterable[RawGame]) -> StudioCategory:
    lowered = name.lower()
    platforms = platform_tokens(games)
    if "mobile" in lowered or platforms & _MOBILE_PLATFORMS:
        return StudioCategory.MOBILE
    if re.search(r"\b(vr|ar|xr)\b", lowered) or platforms & _VR_PLATFORMS:
        return StudioCategory.VR_AR
    return StudioCategory.INDIE


def infer_technologies(games: Iterable[RawGame]) -> tuple[str, ...]:
    platforms = platform_tokens(games)
    groups: list[tuple[str, ...]] = []
    if platforms & _PC_PLATFORMS:
        groups.append(_PC_TECH)
    if platforms & _CONSOLE_PLATFORMS:
        groups.append(_CONSOLE_TECH)
    if platforms & _MOBILE_PLATFORMS:
        groups.append(_MOBILE_TECH)
    return ordered_union(*groups)


def parse_year(value: object, *, latest: int) -> int | None:
    """Extract a plausible four-digit year from an int or a free-form date string."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        year = value
    elif isinstance(value, str) and (found := _YEAR_RE.search(value)):
        year = int(found.group(1))
    else:
        return None
    if _EARLIEST_PLAUSIBLE_YEAR <= year <= latest:
        return year
    return None


def infer_founded_year(raw: RawEntity, *, latest: int) -> int | None:
    for key in ("founded", "founded_date"):
        if (year := parse_year(raw.metadata.get(key), latest=latest)) is not None:
            return year
    years = [
        year
        for game in raw.games
        if (year := parse_year(game.release_date, latest=latest)) is not None
    ]
    return min(years) if years else None


@dataclass(slots=True)
class NormalizationPipeline:
    source_quality: Mapping[str, float] = field(default_factory=dict)
    default_confidence: float = 0.5
    today: date | None = None

    def normalize(self, raw: RawEntity) -> CandidateEntity:
        _validate(raw)
        latest_year = (self.today or date.today()).year + 1

        name = clean_display_name(raw.name)
        founded_year = infer_founded_year(raw, latest=latest_year)
        founded_date = raw.metadata.get("founded_date")

        extra_sources = raw.metadata.get("sources", ())
        sources = {raw.source_id}
        if isinstance(extra_sources, list | tuple | set | frozenset):
            sources.update(str(source) for source in extra_sources)

        metadata = EntityMetadata(
            sources=frozenset(sources),
            source_entity_ids=MappingProxyType({raw.source_id: raw.source_entity_id}),
            founded_date=founded_date if isinstance(founded_date, str) else None,
            last_updated=raw.last_updated,
            extra=MappingProxyType(
                {k: v for k, v in raw.metadata.items() if k not in _TYPED_METADATA_KEYS}
            ),
        )

        return CandidateEntity(
            name=name,
            description=collapse_whitespace(raw.description or ""),
            location=canonical_location(raw.location),
            websites=ordered_union(raw.websites, key="website"),
            catalog_items=ordered_union(game.name for game in raw.games),
            founded_year=founded_year,
            confidence=self.source_quality.get(raw.source_id, self.default_confidence),
            metadata=metadata,
            category=infer_category(name, raw.games),
            technologies=infer_technologies(raw.games),
            logo=raw.logo or None,
        )

    def normalize_batch(
        self, raws: Iterable[RawEntity]
    ) -> tuple[list[CandidateEntity], list[IngestionError]]:
        """Normalize every record, turning failures into warnings."""

        candidates: list[CandidateEntity] = []
        errors: list[IngestionError] = []
        for raw in raws:
            try:
                candidates.append(self.normalize(raw))
            except NormalizationError as exc:
                log.warning("Skipping %s/%s: %s", raw.source_id, raw.source_entity_id, exc)
                errors.append(
                    IngestionError(
                        message=str(exc),
                        severity=ErrorSeverity.WARNING,
                        entity_id=exc.entity_id,
                        entity_name=exc.entity_name,
                    )
                )
        return candidates, errors


def _validate(raw: RawEntity) -> None:
    if not isinstance(raw.metadata, Mapping):
        raise NormalizationError("Metadata must be a mapping", raw=raw)
    payload_errors = raw.metadata.get(PAYLOAD_ERRORS_KEY)
    if payload_errors:
        raise NormalizationError(f"Invalid provider payload: {payload_errors}", raw=raw)
    if not isinstance(raw.source_id, str) or not raw.source_id.strip():
        raise NormalizationError("Record has no source id", raw=raw)
    if not isinstance(raw.source_entity_id, str) or not raw.source_entity_id.strip():
        raise NormalizationError("Record has no source entity id", raw=raw)
    if not isinstance(raw.name, str) or not raw.name.strip():
        raise NormalizationError("Record has no studio name", raw=raw)
    for field_name in ("description", "location", "logo"):
        value = getattr(raw, field_name)
        if value is not None and not isinstance(value, str):
            raise NormalizationError(f"Field {field_name!r} must be text", raw=raw)
    if not _is_text_sequence(raw.websites):
        raise NormalizationError("Websites must be a sequence of strings", raw=raw)
    if not isinstance(raw.games, list | tuple):
        raise NormalizationError("Games must be a sequence", raw=raw)
    for game in raw.games:
        if not isinstance(game, RawGame):
            raise NormalizationError("Declared game is not a game record", raw=raw)
        if not isinstance(game.name, str) or not game.name.strip():
            raise NormalizationError("Declared game has no name", raw=raw)
        if game.release_date is not None and not isinstance(game.release_date, str):
            raise NormalizationError(f"Release date of {game.name!r} must be text", raw=raw)
        if not _is_text_sequence(game.platforms) or not _is_text_sequence(game.genres):
            raise NormalizationError(
                f"Platforms and genres of {game.name!r} must be strings", raw=raw
            )


def _is_text_sequence(values: object) -> bool:
    return isinstance(values, list | tuple) and all(isinstance(value, str) for value in values)
