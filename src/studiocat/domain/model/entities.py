"""Raw provider payloads and canonical studio records."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from .enums import MergeAction, StudioCategory
from .naming import block_key_for, identity_key_for

if TYPE_CHECKING:
    from collections.abc import Mapping


def utcnow() -> datetime:
    return datetime.now(UTC)


def _empty_mapping() -> Mapping[str, object]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True, kw_only=True)
class RawGame:
    name: str
    release_date: str | None = None
    platforms: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class RawEntity:
    """Provider record as fetched; nothing here is trusted yet."""

    source_id: str
    source_entity_id: str
    name: str
    description: str | None = None
    websites: tuple[str, ...] = ()
    games: tuple[RawGame, ...] = ()
    location: str | None = None
    logo: str | None = None
    metadata: Mapping[str, object] = field(default_factory=_empty_mapping)
    last_updated: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True, kw_only=True)
class EntityMetadata:
    """Typed provenance bag; ``extra`` carries provider keys through untouched."""

    sources: frozenset[str] = frozenset()
    source_entity_ids: Mapping[str, str] = field(default_factory=_empty_mapping)
    founded_date: str | None = None
    last_updated: datetime | None = None
    extra: Mapping[str, object] = field(default_factory=_empty_mapping)

    def combine(self, other: EntityMetadata) -> EntityMetadata:
        """Union of both bags; values already present on ``self`` win."""

        source_entity_ids = {**other.source_entity_ids, **self.source_entity_ids}
        extra = {**other.extra, **self.extra}
        timestamps = [stamp for stamp in (self.last_updated, other.last_updated) if stamp]
        return EntityMetadata(
            sources=self.sources | other.sources,
            source_entity_ids=MappingProxyType(source_entity_ids),
            founded_date=self.founded_date or other.founded_date,
            last_updated=max(timestamps) if timestamps else None,
            extra=MappingProxyType(extra),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class MergeHistoryEntry:
    source_id: str
    merged_from: UUID
    merged_at: datetime
    conflict_count: int
    strategy: MergeAction = MergeAction.MERGE


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateEntity:
    """Canonical studio record, either freshly normalized or stored in the catalog.

    Instances are immutable; merges produce new values through ``evolve``.
    ``websites`` keeps insertion order with the primary website first.
    """

    name: str
    description: str = ""
    location: str = ""
    websites: tuple[str, ...] = ()
    catalog_items: tuple[str, ...] = ()
    founded_year: int | None = None
    confidence: float = 0.5
    metadata: EntityMetadata = field(default_factory=EntityMetadata)
    category: StudioCategory = StudioCategory.INDIE
    technologies: tuple[str, ...] = ()
    logo: str | None = None
    id: UUID = field(default_factory=uuid4)
    merge_history: tuple[MergeHistoryEntry, ...] = ()

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Studio name must not be blank")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")

    @property
    def identity_key(self) -> str:
        return identity_key_for(self.name)

    @property
    def block_key(self) -> str:
        return block_key_for(self.identity_key)

    @property
    def primary_website(self) -> str | None:
        return self.websites[0] if self.websites else None

    @property
    def sources(self) -> frozenset[str]:
        return self.metadata.sources

    def evolve(self, **changes: object) -> CandidateEntity:
        return replace(self, **changes)  # type: ignore[arg-type]
