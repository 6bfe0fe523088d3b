"""Public domain model surface."""

from __future__ import annotations

from studiocat.domain.model.entities import (
    CandidateEntity,
    EntityMetadata,
    MergeHistoryEntry,
    RawEntity,
    RawGame,
    utcnow,
)
from studiocat.domain.model.enums import (
    ErrorSeverity,
    JobStatus,
    JobType,
    MatchType,
    MergeAction,
    Resolution,
    StudioCategory,
)
from studiocat.domain.model.jobs import (
    IngestionError,
    IngestionJob,
    JobCounters,
    JobOptions,
    ReviewItem,
)
from studiocat.domain.model.matching import FieldConflict, MatchCandidate, MergeStrategy
from studiocat.domain.model.naming import (
    block_key_for,
    clean_display_name,
    clean_studio_name,
    identity_key_for,
    normalize_text,
)

__all__ = [
    "CandidateEntity",
    "EntityMetadata",
    "ErrorSeverity",
    "FieldConflict",
    "IngestionError",
    "IngestionJob",
    "JobCounters",
    "JobOptions",
    "JobStatus",
    "JobType",
    "MatchCandidate",
    "MatchType",
    "MergeAction",
    "MergeHistoryEntry",
    "MergeStrategy",
    "RawEntity",
    "RawGame",
    "Resolution",
    "ReviewItem",
    "StudioCategory",
    "block_key_for",
    "clean_display_name",
    "clean_studio_name",
    "identity_key_for",
    "normalize_text",
    "utcnow",
]
