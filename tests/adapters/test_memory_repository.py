from __future__ import annotations

import asyncio

import pytest

from studiocat.adapters.memory import InMemoryCatalogRepository
from studiocat.domain.ports import DuplicateEntityError
from tests.helpers.studios import make_candidate


def test_find_candidate_matches_uses_block_key() -> None:
    riot = make_candidate("Riot Games")
    riot_forge = make_candidate("Riot Forge")
    supercell = make_candidate("Supercell")
    repository = InMemoryCatalogRepository([riot, riot_forge, supercell])

    found = asyncio.run(repository.find_candidate_matches("riot"))

    assert {entity.id for entity in found} == {riot.id, riot_forge.id}


def test_typo_in_first_token_shares_block() -> None:
    supercell = make_candidate("Supercell")
    repository = InMemoryCatalogRepository([supercell, make_candidate("Valve")])

    found = asyncio.run(repository.find_candidate_matches("supercel"))

    assert [entity.id for entity in found] == [supercell.id]


def test_upsert_replaces_entry_and_reindexes() -> None:
    entity = make_candidate("Riot Games")
    repository = InMemoryCatalogRepository([entity])
    renamed = entity.evolve(name="Riot Studios Worldwide")

    async def _run() -> None:
        await repository.upsert(renamed)

    asyncio.run(_run())

    assert len(repository) == 1
    assert asyncio.run(repository.get(entity.id)) is renamed
    assert asyncio.run(repository.find_candidate_matches("riot studios")) == [renamed]


def test_identity_key_is_unique() -> None:
    repository = InMemoryCatalogRepository([make_candidate("Riot Games")])

    with pytest.raises(DuplicateEntityError) as excinfo:
        asyncio.run(repository.upsert(make_candidate("Riot Games, Inc.")))

    assert excinfo.value.identity_key == "riot"


def test_bulk_upsert_and_list_all() -> None:
    repository = InMemoryCatalogRepository()

    stored = asyncio.run(
        repository.bulk_upsert([make_candidate("supercell"), make_candidate("Remedy")])
    )

    assert stored == 2
    names = [entity.name for entity in asyncio.run(repository.list_all())]
    assert names == ["Remedy", "supercell"]
