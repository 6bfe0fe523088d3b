"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from studiocat.adapters.json_source import JsonFileDataSource
from studiocat.adapters.sqlalchemy import SqlAlchemyCatalogRepository, is_started, startup
from studiocat.adapters.wikidata import WikidataDataSource, should_cache_payload
from studiocat.config import (
    MissingConfigurationError,
    get_matching_config,
    get_source_configs,
    get_wikidata_config,
    load_config_file,
)
from studiocat.domain.ingest_pipeline import (
    IngestionJobScheduler,
    IngestionRegistry,
    NormalizationPipeline,
)
from studiocat.domain.model import IngestionJob, JobOptions, JobType
from studiocat.domain.reconciliation import QualityBucket, quality_distribution

if TYPE_CHECKING:
    from collections.abc import Mapping

    from studiocat.config import MatchingConfig, SourceConfig
    from studiocat.domain.model import IngestionError
    from studiocat.domain.ports import CatalogRepository, DataSource, SourceInfo

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settings:
    sources: dict[str, SourceConfig]
    matching: MatchingConfig


@dataclass(frozen=True, slots=True)
class CatalogReport:
    total: int
    by_source: dict[str, int] = field(default_factory=dict)
    merged_entries: int = 0
    merge_events: int = 0
    quality: dict[QualityBucket, int] = field(default_factory=dict)


def load_settings(config_path: Path | None = None) -> Settings:
    document = load_config_file(config_path)
    return Settings(
        sources=get_source_configs(document),
        matching=get_matching_config(document),
    )


def default_data_sources(
    sources: Mapping[str, SourceConfig],
    *,
    manual_file: Path | None = None,
) -> dict[str, DataSource]:
    """Providers that can be built from configuration alone."""

    providers: dict[str, DataSource] = {}

    manual = sources.get("manual")
    manual_path = manual_file or (manual.options.get("path") if manual else None)
    if manual is not None and manual_path:
        providers["manual"] = JsonFileDataSource(Path(str(manual_path)), source=manual)

    wikidata = sources.get("wikidata")
    if wikidata is not None:
        try:
            wikidata_config = get_wikidata_config(
                rate_limit=wikidata.rate_limit, cache_predicate=should_cache_payload
            )
        except MissingConfigurationError as exc:
            log.info("Wikidata source not registered: %s", exc)
        else:
            providers["wikidata"] = WikidataDataSource(config=wikidata_config, source=wikidata)

    return providers


def build_registry(
    settings: Settings,
    *,
    data_sources: Mapping[str, DataSource] | None = None,
    manual_file: Path | None = None,
) -> IngestionRegistry:
    registry = IngestionRegistry(settings.sources)
    providers = (
        dict(data_sources)
        if data_sources is not None
        else default_data_sources(settings.sources, manual_file=manual_file)
    )
    for source_id, provider in providers.items():
        registry.register(source_id, provider)
    return registry


def default_repository() -> CatalogRepository:
    if not is_started():
        startup()
    return SqlAlchemyCatalogRepository()


def build_scheduler(
    *,
    settings: Settings | None = None,
    registry: IngestionRegistry | None = None,
    repository: CatalogRepository | None = None,
    manual_file: Path | None = None,
) -> IngestionJobScheduler:
    effective_settings = settings or load_settings()
    effective_registry = registry or build_registry(effective_settings, manual_file=manual_file)
    return IngestionJobScheduler(
        effective_registry,
        repository or default_repository(),
        matching=effective_settings.matching,
    )


async def run_ingestion(
    scheduler: IngestionJobScheduler,
    source_id: str,
    *,
    job_type: JobType = JobType.FULL_SYNC,
    options: JobOptions | None = None,
) -> IngestionJob:
    """Start one job and wait for it to reach a terminal state."""

    job_id = scheduler.start_job(source_id, job_type, options)
    try:
        return await scheduler.wait(job_id)
    finally:
        await scheduler.shutdown()


def ingest(
    source_id: str,
    *,
    job_type: JobType = JobType.FULL_SYNC,
    options: JobOptions | None = None,
    manual_file: Path | None = None,
    config_path: Path | None = None,
    repository: CatalogRepository | None = None,
) -> IngestionJob:
    """Synchronous wrapper used by the CLI."""

    settings = load_settings(config_path)
    log.info(
        "Starting ingestion: source=%s, type=%s, limit=%s",
        source_id,
        job_type,
        options.limit if options else None,
    )

    async def _run() -> IngestionJob:
        scheduler = build_scheduler(
            settings=settings, repository=repository, manual_file=manual_file
        )
        return await run_ingestion(scheduler, source_id, job_type=job_type, options=options)

    job = asyncio.run(_run())
    log.info(
        "Finished ingestion: status=%s, processed=%d, failed=%d, review=%d",
        job.status,
        job.processed_items,
        job.failed_items,
        len(job.review_queue),
    )
    return job


def list_sources(
    *,
    config_path: Path | None = None,
    manual_file: Path | None = None,
) -> list[tuple[SourceConfig, SourceInfo | None]]:
    settings = load_settings(config_path)
    registry = build_registry(settings, manual_file=manual_file)
    infos = {info.id: info for info in registry.list_sources()}
    return [(config, infos.get(config.id)) for config in registry.configs]


async def seed_catalog(
    path: Path,
    *,
    source: SourceConfig,
    repository: CatalogRepository,
) -> tuple[int, list[IngestionError]]:
    """Bulk-load curated records without matching; the catalog must not know them yet."""

    provider = JsonFileDataSource(path, source=source)
    raws = await provider.fetch_data(IngestionJob(source_id=source.id))
    pipeline = NormalizationPipeline(source_quality={source.id: source.data_quality})
    candidates, errors = pipeline.normalize_batch(raws)
    stored = await repository.bulk_upsert(candidates)
    log.info("Seeded %d studios from %s (%d rejected)", stored, path, len(errors))
    return stored, errors


async def catalog_report(
    repository: CatalogRepository,
    *,
    source_quality: Mapping[str, float],
) -> CatalogReport:
    entities = await repository.list_all()
    by_source: Counter[str] = Counter()
    for entity in entities:
        by_source.update(entity.sources)
    return CatalogReport(
        total=len(entities),
        by_source=dict(sorted(by_source.items())),
        merged_entries=sum(1 for entity in entities if entity.merge_history),
        merge_events=sum(len(entity.merge_history) for entity in entities),
        quality=quality_distribution(entities, source_quality=source_quality),
    )
