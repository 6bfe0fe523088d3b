"""Data quality assessment for catalog entries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from studiocat.domain.model import utcnow

from .similarity import CONFLICT_FIELDS

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from studiocat.domain.model import CandidateEntity

EXPECTED_FIELDS: Final = (
    "name",
    "location",
    "founded_year",
    "description",
    "catalog_items",
    "technologies",
)
FRESHNESS_HORIZON_DAYS: Final = 365
_DEFAULT_SOURCE_QUALITY: Final = 0.5


class QualityBucket(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class QualityMetrics:
    completeness: float
    consistency: float
    freshness: float
    accuracy: float
    overall: float

    @property
    def bucket(self) -> QualityBucket:
        if self.overall >= 0.8:
            return QualityBucket.HIGH
        if self.overall >= 0.5:
            return QualityBucket.MEDIUM
        return QualityBucket.LOW


def assess_quality(
    entity: CandidateEntity,
    *,
    source_quality: Mapping[str, float],
    now: datetime | None = None,
) -> QualityMetrics:
    """Score an entry on completeness, consistency, freshness and source accuracy."""

    filled = sum(1 for name in EXPECTED_FIELDS if getattr(entity, name) not in (None, "", ()))
    completeness = filled / len(EXPECTED_FIELDS)

    merges = len(entity.merge_history)
    if merges:
        conflicts = sum(entry.conflict_count for entry in entity.merge_history)
        consistency = max(0.0, 1 - conflicts / (merges * len(CONFLICT_FIELDS)))
    else:
        consistency = 1.0

    reference = now or utcnow()
    last_updated = entity.metadata.last_updated
    if last_updated is None:
        freshness = 0.5
    else:
        age_days = max(0.0, (reference - last_updated).total_seconds() / 86_400)
        freshness = max(0.0, 1 - age_days / FRESHNESS_HORIZON_DAYS)

    qualities = [
        source_quality.get(source, _DEFAULT_SOURCE_QUALITY) for source in entity.sources
    ]
    accuracy = sum(qualities) / len(qualities) if qualities else _DEFAULT_SOURCE_QUALITY

    overall = 0.3 * completeness + 0.25 * consistency + 0.2 * freshness + 0.25 * accuracy
    return QualityMetrics(
        completeness=round(completeness, 4),
        consistency=round(consistency, 4),
        freshness=round(freshness, 4),
        accuracy=round(accuracy, 4),
        overall=round(overall, 4),
    )


def quality_distribution(
    entities: Iterable[CandidateEntity],
    *,
    source_quality: Mapping[str, float],
    now: datetime | None = None,
) -> dict[QualityBucket, int]:
    counts = Counter(
        assess_quality(entity, source_quality=source_quality, now=now).bucket
        for entity in entities
    )
    return {bucket: counts.get(bucket, 0) for bucket in QualityBucket}
