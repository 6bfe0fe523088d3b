"""SQLAlchemy implementation of the ``CatalogRepository`` port.

Each public coroutine runs one short transaction in a worker thread. The
unique constraint on ``studio.identity_key`` is what serializes conflicting
writes from concurrent jobs: the losing transaction fails with an
``IntegrityError`` and surfaces as ``DuplicateEntityError``.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError

from studiocat.domain.model import block_key_for, utcnow
from studiocat.domain.ports import DuplicateEntityError

from .engine import session_factory as default_session_factory
from .mappings import (
    entity_from_row,
    history_values,
    merge_history_table,
    studio_table,
    studio_values,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.engine import RowMapping
    from sqlalchemy.orm import Session, sessionmaker

    from studiocat.domain.model import CandidateEntity

log = logging.getLogger(__name__)


class SqlAlchemyCatalogRepository:
    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or default_session_factory()

    async def find_candidate_matches(self, identity_key: str) -> Sequence[CandidateEntity]:
        return await asyncio.to_thread(self._find_by_block, block_key_for(identity_key))

    async def upsert(self, entity: CandidateEntity) -> CandidateEntity:
        await asyncio.to_thread(self._upsert_many, [entity])
        return entity

    async def bulk_upsert(self, entities: Iterable[CandidateEntity]) -> int:
        return await asyncio.to_thread(self._upsert_many, list(entities))

    async def get(self, entity_id: UUID) -> CandidateEntity | None:
        return await asyncio.to_thread(self._get, entity_id)

    async def list_all(self) -> Sequence[CandidateEntity]:
        return await asyncio.to_thread(self._list_all)

    def count(self) -> int:
        with self._session_factory() as session:
            return session.execute(select(func.count()).select_from(studio_table)).scalar_one()

    # Synchronous helpers ----------------------------------------------------

    def _find_by_block(self, block_key: str) -> list[CandidateEntity]:
        with self._session_factory() as session:
            rows = session.execute(
                select(studio_table)
                .where(studio_table.c.block_key == block_key)
                .order_by(studio_table.c.name)
            ).mappings().all()
            return self._hydrate(session, rows)

    def _get(self, entity_id: UUID) -> CandidateEntity | None:
        with self._session_factory() as session:
            rows = session.execute(
                select(studio_table).where(studio_table.c.id == entity_id)
            ).mappings().all()
            entities = self._hydrate(session, rows)
            return entities[0] if entities else None

    def _list_all(self) -> list[CandidateEntity]:
        with self._session_factory() as session:
            rows = session.execute(
                select(studio_table).order_by(studio_table.c.name)
            ).mappings().all()
            return self._hydrate(session, rows)

    def _upsert_many(self, entities: list[CandidateEntity]) -> int:
        now = utcnow()
        with self._session_factory() as session:
            try:
                for entity in entities:
                    self._upsert_one(session, entity, now=now)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                key = _colliding_key(session, entities)
                log.debug("Identity key collision while upserting: %s", exc)
                raise DuplicateEntityError(key) from exc
        return len(entities)

    def _upsert_one(self, session: Session, entity: CandidateEntity, *, now: datetime) -> None:
        values = studio_values(entity, now=now)
        exists = session.execute(
            select(studio_table.c.id).where(studio_table.c.id == entity.id)
        ).first()
        if exists is None:
            session.execute(insert(studio_table).values(**values))
            stored_history = 0
        else:
            session.execute(
                update(studio_table).where(studio_table.c.id == entity.id).values(**values)
            )
            stored_history = session.execute(
                select(func.count())
                .select_from(merge_history_table)
                .where(merge_history_table.c.studio_id == entity.id)
            ).scalar_one()
        new_history = history_values(entity, start=stored_history)
        if new_history:
            session.execute(insert(merge_history_table), new_history)
        session.flush()

    def _hydrate(self, session: Session, rows: Sequence[RowMapping]) -> list[CandidateEntity]:
        if not rows:
            return []
        ids = [row["id"] for row in rows]
        history_rows = session.execute(
            select(merge_history_table).where(merge_history_table.c.studio_id.in_(ids))
        ).mappings().all()
        history_by_studio: defaultdict[UUID, list[RowMapping]] = defaultdict(list)
        for item in history_rows:
            history_by_studio[item["studio_id"]].append(item)
        return [entity_from_row(row, history_by_studio.get(row["id"], ())) for row in rows]


def _colliding_key(session: Session, entities: Sequence[CandidateEntity]) -> str:
    """Best guess at which identity key collided, for the error message."""

    for entity in entities:
        owner = session.execute(
            select(studio_table.c.id).where(studio_table.c.identity_key == entity.identity_key)
        ).first()
        if owner is not None and owner[0] != entity.id:
            return entity.identity_key
    return entities[0].identity_key if entities else ""
