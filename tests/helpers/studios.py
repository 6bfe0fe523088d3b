"""Reusable fakes and builders for studio ingestion tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from studiocat.config import RateLimitConfig, SourceConfig
from studiocat.domain.model import (
    CandidateEntity,
    EntityMetadata,
    RawEntity,
    RawGame,
)
from studiocat.domain.ports import SourceInfo

if TYPE_CHECKING:
    from collections.abc import Sequence

    from studiocat.domain.model import IngestionJob

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def make_source_config(
    source_id: str = "manual",
    *,
    priority: int = 100,
    requests: int = 1000,
    window_ms: int = 1000,
    enabled: bool = True,
    data_quality: float = 0.9,
    api_key_env: str | None = None,
) -> SourceConfig:
    return SourceConfig(
        id=source_id,
        name=source_id.title(),
        priority=priority,
        rate_limit=RateLimitConfig(requests=requests, window_ms=window_ms),
        enabled=enabled,
        data_quality=data_quality,
        api_key_env=api_key_env,
    )


def make_raw(
    name: str = "Riot Games, Inc.",
    *,
    source_id: str = "manual",
    entity_id: str | None = None,
    websites: Sequence[str] = ("https://www.riotgames.com",),
    games: Sequence[str] = ("League of Legends",),
    platforms: Sequence[str] = ("PC",),
    location: str | None = "Los Angeles, CA, USA",
    description: str | None = None,
    metadata: dict[str, object] | None = None,
    last_updated: datetime = FIXED_NOW,
) -> RawEntity:
    return RawEntity(
        source_id=source_id,
        source_entity_id=entity_id or name.lower().replace(" ", "-"),
        name=name,
        description=description,
        websites=tuple(websites),
        games=tuple(RawGame(name=game, platforms=tuple(platforms)) for game in games),
        location=location,
        metadata=MappingProxyType(dict(metadata or {})),
        last_updated=last_updated,
    )


def make_candidate(
    name: str = "Riot Games",
    *,
    source_id: str = "manual",
    entity_id: str | None = None,
    websites: Sequence[str] = ("https://www.riotgames.com",),
    catalog_items: Sequence[str] = ("League of Legends",),
    location: str = "Los Angeles",
    description: str = "",
    founded_year: int | None = None,
    confidence: float = 0.9,
    last_updated: datetime | None = FIXED_NOW,
) -> CandidateEntity:
    return CandidateEntity(
        name=name,
        description=description,
        location=location,
        websites=tuple(websites),
        catalog_items=tuple(catalog_items),
        founded_year=founded_year,
        confidence=confidence,
        metadata=EntityMetadata(
            sources=frozenset({source_id}),
            source_entity_ids=MappingProxyType(
                {source_id: entity_id or name.lower().replace(" ", "-")}
            ),
            last_updated=last_updated,
        ),
    )


@dataclass
class FakeDataSource:
    """In-memory ``DataSource`` returning a fixed list of records."""

    source_id: str
    records: list[RawEntity] = field(default_factory=list)
    connected: bool = True
    fetch_error: Exception | None = None
    fetched_jobs: list[IngestionJob] = field(default_factory=list)

    async def fetch_data(self, job: IngestionJob) -> Sequence[RawEntity]:
        self.fetched_jobs.append(job)
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.records)

    async def test_connection(self) -> bool:
        return self.connected

    def get_source_info(self) -> SourceInfo:
        return SourceInfo(
            id=self.source_id,
            name=self.source_id.title(),
            description="fake source",
            estimated_count=len(self.records),
            data_quality=0.9,
        )


@dataclass
class BlockingDataSource(FakeDataSource):
    """Holds ``fetch_data`` until ``release`` is set."""

    release: asyncio.Event = field(default_factory=asyncio.Event)
    entered: asyncio.Event = field(default_factory=asyncio.Event)

    async def fetch_data(self, job: IngestionJob) -> Sequence[RawEntity]:
        self.entered.set()
        await self.release.wait()
        return await super().fetch_data(job)


@dataclass
class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
