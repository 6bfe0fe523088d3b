from __future__ import annotations

import asyncio
from datetime import timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import inspect, select

from studiocat.adapters.sqlalchemy import (
    SqlAlchemyCatalogRepository,
    StartupError,
    merge_history_table,
    session_factory,
    shutdown,
)
from studiocat.domain.model import (
    EntityMetadata,
    MergeAction,
    MergeHistoryEntry,
    StudioCategory,
)
from studiocat.domain.ports import DuplicateEntityError
from tests.helpers.studios import FIXED_NOW, make_candidate

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def test_migrations_create_catalog_tables(sqlite_engine: Engine) -> None:
    tables = set(inspect(sqlite_engine).get_table_names())

    assert {"studio", "studio_merge_history", "alembic_version"} <= tables


def test_round_trips_every_field(sqlite_repository: SqlAlchemyCatalogRepository) -> None:
    entity = make_candidate(
        "Supercell",
        source_id="wikidata",
        entity_id="Q1056305",
        websites=("https://supercell.com", "https://www.supercell.com/en"),
        catalog_items=("Clash of Clans", "Brawl Stars"),
        location="Helsinki",
        description="Finnish mobile game developer",
        founded_year=2010,
    ).evolve(
        category=StudioCategory.MOBILE,
        technologies=("Unity", "Swift"),
        logo="https://supercell.com/logo.svg",
        metadata=EntityMetadata(
            sources=frozenset({"wikidata", "manual"}),
            source_entity_ids=MappingProxyType({"wikidata": "Q1056305", "manual": "supercell"}),
            founded_date="2010-05-14",
            last_updated=FIXED_NOW,
            extra=MappingProxyType({"employees": 500, "country": "Finland"}),
        ),
    )

    asyncio.run(sqlite_repository.upsert(entity))
    loaded = asyncio.run(sqlite_repository.get(entity.id))

    assert loaded == entity


def test_find_candidate_matches_by_block(sqlite_repository: SqlAlchemyCatalogRepository) -> None:
    riot = make_candidate("Riot Games")
    forge = make_candidate("Riot Forge", websites=(), catalog_items=())
    valve = make_candidate("Valve")
    stored = asyncio.run(sqlite_repository.bulk_upsert([riot, forge, valve]))

    found = asyncio.run(sqlite_repository.find_candidate_matches("riot"))

    assert stored == 3
    assert [entity.name for entity in found] == ["Riot Forge", "Riot Games"]
    assert sqlite_repository.count() == 3


def test_typo_variant_is_a_candidate(sqlite_repository: SqlAlchemyCatalogRepository) -> None:
    supercell = make_candidate("Supercell")
    asyncio.run(sqlite_repository.bulk_upsert([supercell, make_candidate("Valve")]))

    found = asyncio.run(sqlite_repository.find_candidate_matches("supercel games"))

    assert [entity.id for entity in found] == [supercell.id]


def test_merge_history_is_appended(sqlite_repository: SqlAlchemyCatalogRepository) -> None:
    entity = make_candidate("Riot Games")
    first = MergeHistoryEntry(
        source_id="wikidata",
        merged_from=make_candidate().id,
        merged_at=FIXED_NOW,
        conflict_count=1,
    )
    second = MergeHistoryEntry(
        source_id="steam",
        merged_from=make_candidate().id,
        merged_at=FIXED_NOW + timedelta(hours=1),
        conflict_count=0,
        strategy=MergeAction.MERGE,
    )

    async def _run() -> None:
        await sqlite_repository.upsert(entity)
        await sqlite_repository.upsert(entity.evolve(merge_history=(first,)))
        await sqlite_repository.upsert(entity.evolve(merge_history=(first, second)))

    asyncio.run(_run())
    loaded = asyncio.run(sqlite_repository.get(entity.id))

    assert loaded is not None
    assert loaded.merge_history == (first, second)
    with session_factory()() as session:
        positions = session.execute(
            select(merge_history_table.c.position).order_by(merge_history_table.c.position)
        ).scalars().all()
    assert positions == [0, 1]


def test_identity_key_collision_raises(sqlite_repository: SqlAlchemyCatalogRepository) -> None:
    asyncio.run(sqlite_repository.upsert(make_candidate("Riot Games")))

    with pytest.raises(DuplicateEntityError) as excinfo:
        asyncio.run(sqlite_repository.upsert(make_candidate("Riot Games, Inc.")))

    assert excinfo.value.identity_key == "riot"
    assert sqlite_repository.count() == 1


def test_list_all_is_ordered_by_name(sqlite_repository: SqlAlchemyCatalogRepository) -> None:
    asyncio.run(
        sqlite_repository.bulk_upsert([make_candidate("Valve"), make_candidate("Bungie")])
    )

    assert [entity.name for entity in asyncio.run(sqlite_repository.list_all())] == [
        "Bungie",
        "Valve",
    ]


def test_repository_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyCatalogRepository()
