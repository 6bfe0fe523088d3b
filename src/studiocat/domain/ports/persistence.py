"""Catalog persistence port."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from studiocat.domain.model import CandidateEntity


class DuplicateEntityError(RuntimeError):
    """Raised when a write would give two catalog entries the same identity key."""

    def __init__(self, identity_key: str) -> None:
        super().__init__(f"A catalog entry with identity key {identity_key!r} already exists")
        self.identity_key = identity_key


@runtime_checkable
class CatalogRepository(Protocol):
    async def find_candidate_matches(self, identity_key: str) -> Sequence[CandidateEntity]:
        """Return catalog entries that could describe the studio keyed by ``identity_key``.

        Implementations narrow the catalog by a blocking key derived from the
        identity key; the scorer makes the final call.
        """
        ...

    async def upsert(self, entity: CandidateEntity) -> CandidateEntity:
        """Insert ``entity`` or replace the entry with the same id."""
        ...

    async def bulk_upsert(self, entities: Iterable[CandidateEntity]) -> int: ...

    async def get(self, entity_id: UUID) -> CandidateEntity | None: ...

    async def list_all(self) -> Sequence[CandidateEntity]: ...


__all__ = ["CatalogRepository", "DuplicateEntityError"]
