"""In-process catalog repository, used by tests and dry runs."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import TYPE_CHECKING

from studiocat.domain.model import block_key_for
from studiocat.domain.ports import DuplicateEntityError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from studiocat.domain.model import CandidateEntity


class InMemoryCatalogRepository:
    def __init__(self, entities: Iterable[CandidateEntity] = ()) -> None:
        self._entities: dict[UUID, CandidateEntity] = {}
        self._by_identity: dict[str, UUID] = {}
        self._by_block: defaultdict[str, set[UUID]] = defaultdict(set)
        self._lock = asyncio.Lock()
        for entity in entities:
            self._store(entity)

    async def find_candidate_matches(self, identity_key: str) -> Sequence[CandidateEntity]:
        ids = self._by_block.get(block_key_for(identity_key), set())
        return [self._entities[entity_id] for entity_id in sorted(ids, key=str)]

    async def upsert(self, entity: CandidateEntity) -> CandidateEntity:
        async with self._lock:
            self._store(entity)
        return entity

    async def bulk_upsert(self, entities: Iterable[CandidateEntity]) -> int:
        count = 0
        async with self._lock:
            for entity in entities:
                self._store(entity)
                count += 1
        return count

    async def get(self, entity_id: UUID) -> CandidateEntity | None:
        return self._entities.get(entity_id)

    async def list_all(self) -> Sequence[CandidateEntity]:
        return sorted(self._entities.values(), key=lambda entity: entity.name.casefold())

    def __len__(self) -> int:
        return len(self._entities)

    def _store(self, entity: CandidateEntity) -> None:
        key = entity.identity_key
        owner = self._by_identity.get(key)
        if owner is not None and owner != entity.id:
            raise DuplicateEntityError(key)

        previous = self._entities.get(entity.id)
        if previous is not None:
            self._by_identity.pop(previous.identity_key, None)
            self._by_block[previous.block_key].discard(entity.id)

        self._entities[entity.id] = entity
        self._by_identity[key] = entity.id
        self._by_block[entity.block_key].add(entity.id)
