"""Enumerations shared across the studio catalog model."""

from __future__ import annotations

from enum import StrEnum


class StudioCategory(StrEnum):
    INDIE = "indie"
    MOBILE = "mobile"
    VR_AR = "vr_ar"


class MatchType(StrEnum):
    """Signal that contributed to a pairwise match."""

    EXACT_NAME = "exact_name"
    FUZZY_NAME = "fuzzy_name"
    WEBSITE = "website_match"
    CATALOG_OVERLAP = "game_overlap"
    LOCATION = "location_match"


class Resolution(StrEnum):
    """Per-field decision for a conflicting value."""

    KEEP_EXISTING = "keep_existing"
    USE_CANDIDATE = "use_candidate"
    MERGE = "merge"
    MANUAL_REVIEW = "manual_review"


class MergeAction(StrEnum):
    SKIP = "skip"
    MERGE = "merge"
    CREATE_NEW = "create_new"
    MANUAL_REVIEW = "manual_review"


class JobType(StrEnum):
    FULL_SYNC = "full_sync"
    INCREMENTAL = "incremental"
    SINGLE_ENTITY = "single_entity"


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}


class ErrorSeverity(StrEnum):
    """``warning``: record skipped; ``error``: record failed; ``critical``: job failed."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
