"""Ingestion job scheduler.

Each job runs in its own ``asyncio.Task`` owned by the scheduler. Per record:
normalize, look up candidates, score, decide, persist, report progress, then
wait on the source's rate limit. Failure handling follows the error severities:

- ``critical``: connection test or fetch failed, the job ends as ``failed``;
- ``error``: scoring, merging or persisting one record failed, the job goes on;
- ``warning``: the record could not be normalized or was skipped, the job goes on.

Cancellation is cooperative and takes effect between records.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from studiocat.config.matching import MatchingConfig
from studiocat.domain.model import (
    ErrorSeverity,
    IngestionJob,
    JobOptions,
    JobStatus,
    JobType,
    MergeAction,
    ReviewItem,
    utcnow,
)
from studiocat.domain.ports import SourceUnavailableError
from studiocat.domain.reconciliation import MergeEngine, SimilarityScorer
from studiocat.domain.reconciliation.policy import FieldResolutionPolicy

from .normalization import NormalizationError, NormalizationPipeline

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from studiocat.domain.model import CandidateEntity, RawEntity
    from studiocat.domain.ports import CatalogRepository, DataSource, SourceInfo
    from studiocat.domain.reconciliation import MergeOutcome

    from .registry import IngestionRegistry

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _JobHandle:
    job: IngestionJob
    cancel_requested: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task[IngestionJob] | None = None


class IngestionJobScheduler:
    def __init__(
        self,
        registry: IngestionRegistry,
        repository: CatalogRepository,
        *,
        matching: MatchingConfig | None = None,
        normalizer: NormalizationPipeline | None = None,
        scorer: SimilarityScorer | None = None,
        engine: MergeEngine | None = None,
    ) -> None:
        self._registry = registry
        self._repository = repository
        self._normalizer = normalizer or NormalizationPipeline(
            source_quality=registry.source_quality
        )
        config = matching or MatchingConfig()
        self._scorer = scorer or SimilarityScorer(
            config=config,
            policy=FieldResolutionPolicy(
                source_priorities=registry.source_priorities,
                founded_year_policy=config.founded_year_policy,
            ),
        )
        self._engine = engine or MergeEngine(config=self._scorer.config)
        self._jobs: dict[UUID, _JobHandle] = {}

    # Public API -------------------------------------------------------------

    def start_job(
        self,
        source_id: str,
        job_type: JobType = JobType.FULL_SYNC,
        options: JobOptions | None = None,
    ) -> UUID:
        """Create a job and schedule it on the running event loop.

        Raises ``UnknownSourceError`` or ``SourceDisabledError`` before any job
        is created.
        """

        self._registry.source_for(source_id)
        job = IngestionJob(source_id=source_id, job_type=job_type, options=options or JobOptions())
        handle = _JobHandle(job=job)
        self._jobs[job.id] = handle
        handle.task = asyncio.create_task(self._run(handle), name=f"ingest-{source_id}-{job.id}")
        log.info("Queued %s job %s for %s", job_type, job.id, source_id)
        return job.id

    def get_job(self, job_id: UUID) -> IngestionJob | None:
        handle = self._jobs.get(job_id)
        return handle.job if handle else None

    def list_jobs(self) -> list[IngestionJob]:
        return sorted(
            (handle.job for handle in self._jobs.values()), key=lambda job: job.created_at
        )

    def list_sources(self) -> list[SourceInfo]:
        return self._registry.list_sources()

    def cancel_job(self, job_id: UUID) -> bool:
        """Request cancellation; only pending or running jobs can be cancelled."""

        handle = self._jobs.get(job_id)
        if handle is None or handle.job.is_terminal:
            return False
        handle.cancel_requested.set()
        log.info("Cancellation requested for job %s", job_id)
        return True

    async def wait(self, job_id: UUID) -> IngestionJob:
        handle = self._jobs[job_id]
        if handle.task is not None:
            await asyncio.shield(handle.task)
        return handle.job

    async def wait_all(self) -> list[IngestionJob]:
        tasks = [handle.task for handle in self._jobs.values() if handle.task is not None]
        await asyncio.gather(*tasks, return_exceptions=True)
        return self.list_jobs()

    async def shutdown(self) -> None:
        """Cancel every unfinished job and wait for the tasks to settle."""

        for handle in self._jobs.values():
            if not handle.job.is_terminal:
                handle.cancel_requested.set()
        await self.wait_all()

    # Job execution ----------------------------------------------------------

    async def _run(self, handle: _JobHandle) -> IngestionJob:
        job = handle.job
        if handle.cancel_requested.is_set():
            self._finish(job, JobStatus.CANCELLED)
            return job

        job.status = JobStatus.RUNNING
        job.started_at = utcnow()
        log.info("Starting %s job %s for %s", job.job_type, job.id, job.source_id)

        try:
            source = self._registry.source_for(job.source_id)
            records = await self._fetch(source, job)
            job.total_items = len(records)

            for raw in records:
                if handle.cancel_requested.is_set():
                    break
                await self._process_record(job, raw)
                await self._registry.rate_limiter.wait(job.source_id)
        except asyncio.CancelledError:
            self._finish(job, JobStatus.CANCELLED)
            raise
        except Exception as exc:
            log.exception("Job %s for %s failed", job.id, job.source_id)
            job.record_error(str(exc) or type(exc).__name__, severity=ErrorSeverity.CRITICAL)
            self._finish(job, JobStatus.FAILED)
            return job

        status = JobStatus.CANCELLED if handle.cancel_requested.is_set() else JobStatus.COMPLETED
        self._finish(job, status)
        return job

    async def _fetch(self, source: DataSource, job: IngestionJob) -> list[RawEntity]:
        if not await source.test_connection():
            raise SourceUnavailableError(f"Connection test failed for {job.source_id}")
        records: Sequence[RawEntity] = await source.fetch_data(job)
        selected = list(records)
        if job.job_type is JobType.SINGLE_ENTITY and job.options.entity_ids:
            wanted = set(job.options.entity_ids)
            selected = [raw for raw in selected if raw.source_entity_id in wanted]
        if job.options.limit is not None:
            selected = selected[: job.options.limit]
        log.info("Fetched %d records for job %s", len(selected), job.id)
        return selected

    async def _process_record(self, job: IngestionJob, raw: RawEntity) -> None:
        try:
            candidate = self._normalizer.normalize(raw)
        except NormalizationError as exc:
            log.warning("Skipping %s/%s: %s", raw.source_id, raw.source_entity_id, exc)
            job.record_error(
                str(exc),
                severity=ErrorSeverity.WARNING,
                entity_id=exc.entity_id,
                entity_name=exc.entity_name,
            )
            job.mark_failed()
            return
        except Exception as exc:  # noqa: BLE001
            log.warning("Could not normalize %s/%s: %s", raw.source_id, raw.source_entity_id, exc)
            job.record_error(
                f"{type(exc).__name__}: {exc}",
                severity=ErrorSeverity.WARNING,
                entity_id=str(raw.source_entity_id),
            )
            job.mark_failed()
            return

        try:
            outcome = await self._reconcile(job, candidate)
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "Failed to reconcile %s (%s): %s", candidate.name, raw.source_entity_id, exc
            )
            job.record_error(
                f"{type(exc).__name__}: {exc}",
                severity=ErrorSeverity.ERROR,
                entity_id=raw.source_entity_id,
                entity_name=candidate.name,
            )
            job.mark_failed()
            return

        if outcome.action is MergeAction.SKIP:
            job.record_error(
                "Skipped unchanged record",
                severity=ErrorSeverity.WARNING,
                entity_id=raw.source_entity_id,
                entity_name=candidate.name,
            )
        job.mark_processed()

    async def _reconcile(self, job: IngestionJob, candidate: CandidateEntity) -> MergeOutcome:
        existing = await self._repository.find_candidate_matches(candidate.identity_key)
        matches = self._scorer.find_matches(candidate, existing)
        best = matches[0] if matches else None
        outcome = self._engine.resolve(
            candidate, best, incremental=job.job_type is JobType.INCREMENTAL
        )

        action = outcome.action
        if action in {MergeAction.CREATE_NEW, MergeAction.MERGE} and outcome.entity is not None:
            await self._repository.upsert(outcome.entity)
            if action is MergeAction.CREATE_NEW:
                job.counters.created += 1
            else:
                job.counters.merged += 1
        elif action is MergeAction.MANUAL_REVIEW and outcome.match is not None:
            job.review_queue.append(ReviewItem(match=outcome.match, strategy=outcome.strategy))
            job.counters.manual_review += 1
        else:
            job.counters.skipped += 1

        log.debug(
            "%s -> %s (%s)", candidate.name, action, "; ".join(outcome.strategy.reasoning)
        )
        return outcome

    def _finish(self, job: IngestionJob, status: JobStatus) -> None:
        job.status = status
        job.completed_at = utcnow()
        log.info(
            "Job %s for %s %s: processed=%d failed=%d created=%d merged=%d review=%d",
            job.id,
            job.source_id,
            status,
            job.processed_items,
            job.failed_items,
            job.counters.created,
            job.counters.merged,
            job.counters.manual_review,
        )
