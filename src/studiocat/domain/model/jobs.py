"""Ingestion job bookkeeping.

A job is written only by the scheduler task that runs it; readers get the
live object and must treat it as read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from .entities import utcnow
from .enums import ErrorSeverity, JobStatus, JobType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .matching import MatchCandidate, MergeStrategy


@dataclass(frozen=True, slots=True, kw_only=True)
class JobOptions:
    entity_ids: tuple[str, ...] = ()
    limit: int | None = None
    metadata: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit <= 0:
            raise ValueError("Job limit must be positive")


@dataclass(slots=True, kw_only=True)
class IngestionError:
    message: str
    severity: ErrorSeverity
    entity_id: str | None = None
    entity_name: str | None = None
    id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=utcnow)
    retry_count: int = 0
    resolved: bool = False


@dataclass(slots=True, kw_only=True)
class ReviewItem:
    """Match held back for a human decision; the catalog was not touched."""

    match: MatchCandidate
    strategy: MergeStrategy
    queued_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class JobCounters:
    created: int = 0
    merged: int = 0
    manual_review: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass(slots=True, kw_only=True)
class IngestionJob:
    source_id: str
    job_type: JobType = JobType.FULL_SYNC
    options: JobOptions = field(default_factory=JobOptions)
    id: UUID = field(default_factory=uuid4)
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    total_items: int | None = None
    processed_items: int = 0
    failed_items: int = 0
    counters: JobCounters = field(default_factory=JobCounters)
    errors: list[IngestionError] = field(default_factory=list)
    review_queue: list[ReviewItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def record_error(
        self,
        message: str,
        *,
        severity: ErrorSeverity,
        entity_id: str | None = None,
        entity_name: str | None = None,
    ) -> IngestionError:
        error = IngestionError(
            message=message,
            severity=severity,
            entity_id=entity_id,
            entity_name=entity_name,
        )
        self.errors.append(error)
        return error

    def mark_processed(self) -> None:
        self.processed_items += 1
        self._update_progress()

    def mark_failed(self) -> None:
        self.failed_items += 1
        self.counters.failed += 1
        self._update_progress()

    def _update_progress(self) -> None:
        if not self.total_items:
            self.progress = 0
            return
        done = self.processed_items + self.failed_items
        self.progress = min(100, done * 100 // self.total_items)
