"""SQLAlchemy Core tables for the studio catalog and row translation helpers.

Domain records are frozen dataclasses, so persistence goes through Core
tables and explicit row <-> entity conversion instead of mapped classes.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)

from studiocat.domain.model import (
    CandidateEntity,
    EntityMetadata,
    MergeAction,
    MergeHistoryEntry,
    StudioCategory,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlalchemy.engine import RowMapping

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

studio_table = Table(
    "studio",
    metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("identity_key", String(255), nullable=False),
    Column("block_key", String(255), nullable=False),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("location", String(255), nullable=False, default=""),
    Column("category", String(32), nullable=False, default=StudioCategory.INDIE.value),
    Column("founded_year", Integer, nullable=True),
    Column("confidence", Float, nullable=False),
    Column("logo", String(1024), nullable=True),
    Column("websites", JSON, nullable=False, default=list),
    Column("catalog_items", JSON, nullable=False, default=list),
    Column("technologies", JSON, nullable=False, default=list),
    Column("sources", JSON, nullable=False, default=list),
    Column("source_entity_ids", JSON, nullable=False, default=dict),
    Column("founded_date", String(32), nullable=True),
    Column("metadata_extra", JSON, nullable=False, default=dict),
    Column("last_updated", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("identity_key"),
    Index("ix_studio_block_key", "block_key"),
)

merge_history_table = Table(
    "studio_merge_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "studio_id",
        UUIDColumnType,
        ForeignKey("studio.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("position", Integer, nullable=False),
    Column("source_id", String(64), nullable=False),
    Column("merged_from", UUIDColumnType, nullable=False),
    Column("merged_at", UTCDateTime(), nullable=False),
    Column("conflict_count", Integer, nullable=False),
    Column("strategy", String(32), nullable=False),
    UniqueConstraint("studio_id", "position"),
)


def studio_values(entity: CandidateEntity, *, now: datetime) -> dict[str, Any]:
    meta = entity.metadata
    return {
        "id": entity.id,
        "identity_key": entity.identity_key,
        "block_key": entity.block_key,
        "name": entity.name,
        "description": entity.description,
        "location": entity.location,
        "category": entity.category.value,
        "founded_year": entity.founded_year,
        "confidence": entity.confidence,
        "logo": entity.logo,
        "websites": list(entity.websites),
        "catalog_items": list(entity.catalog_items),
        "technologies": list(entity.technologies),
        "sources": sorted(meta.sources),
        "source_entity_ids": dict(meta.source_entity_ids),
        "founded_date": meta.founded_date,
        "metadata_extra": _json_safe(meta.extra),
        "last_updated": meta.last_updated,
        "updated_at": now,
    }


def history_values(
    entity: CandidateEntity, *, start: int = 0
) -> list[dict[str, Any]]:
    return [
        {
            "studio_id": entity.id,
            "position": position,
            "source_id": entry.source_id,
            "merged_from": entry.merged_from,
            "merged_at": entry.merged_at,
            "conflict_count": entry.conflict_count,
            "strategy": entry.strategy.value,
        }
        for position, entry in enumerate(entity.merge_history)
        if position >= start
    ]


def entity_from_row(row: RowMapping, history: Iterable[RowMapping] = ()) -> CandidateEntity:
    return CandidateEntity(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        location=row["location"] or "",
        category=StudioCategory(row["category"]),
        founded_year=row["founded_year"],
        confidence=row["confidence"],
        logo=row["logo"],
        websites=tuple(row["websites"] or ()),
        catalog_items=tuple(row["catalog_items"] or ()),
        technologies=tuple(row["technologies"] or ()),
        metadata=EntityMetadata(
            sources=frozenset(row["sources"] or ()),
            source_entity_ids=MappingProxyType(dict(row["source_entity_ids"] or {})),
            founded_date=row["founded_date"],
            last_updated=row["last_updated"],
            extra=MappingProxyType(dict(row["metadata_extra"] or {})),
        ),
        merge_history=tuple(
            MergeHistoryEntry(
                source_id=item["source_id"],
                merged_from=item["merged_from"],
                merged_at=item["merged_at"],
                conflict_count=item["conflict_count"],
                strategy=MergeAction(item["strategy"]),
            )
            for item in sorted(history, key=lambda item: item["position"])
        ),
    )


def _json_safe(values: Mapping[str, object]) -> dict[str, Any]:
    """Keep JSON-representable extras; anything else is stored as its string form."""

    safe: dict[str, Any] = {}
    for key, value in values.items():
        if value is None or isinstance(value, str | int | float | bool | list | dict):
            safe[key] = value
        else:
            safe[key] = str(value)
    return cast("dict[str, Any]", safe)
