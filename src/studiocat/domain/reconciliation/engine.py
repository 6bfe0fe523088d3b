"""Merge engine composing strategy selection and merge application.

The engine is pure: it returns what should be persisted and leaves storage to
the caller. ``manual_review`` and ``skip`` outcomes carry no entity, so the
catalog entry they refer to is never touched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from studiocat.config.matching import MatchingConfig
from studiocat.domain.model import MergeAction, MergeStrategy, utcnow

from .apply import apply_merge
from .policy import select_strategy

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from studiocat.domain.model import CandidateEntity, MatchCandidate


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    strategy: MergeStrategy
    entity: CandidateEntity | None
    match: MatchCandidate | None = None

    @property
    def action(self) -> MergeAction:
        return self.strategy.action


@dataclass(slots=True)
class MergeEngine:
    config: MatchingConfig = field(default_factory=MatchingConfig)
    clock: Callable[[], datetime] = utcnow

    def recommend(self, match: MatchCandidate) -> MergeStrategy:
        return select_strategy(match, self.config)

    def merge(self, match: MatchCandidate) -> CandidateEntity:
        """Unconditionally merge ``match.candidate`` into ``match.existing``."""

        return apply_merge(match, merged_at=self.clock()).entity

    def resolve(
        self,
        candidate: CandidateEntity,
        match: MatchCandidate | None,
        *,
        incremental: bool = False,
    ) -> MergeOutcome:
        """Decide what to do with ``candidate`` given its best catalog match."""

        if match is None:
            strategy = MergeStrategy(
                action=MergeAction.CREATE_NEW,
                confidence=0.8,
                reasoning=("no catalog entry reached the minimum match score",),
            )
            return MergeOutcome(strategy=strategy, entity=candidate)

        if incremental and _is_unchanged(match):
            strategy = MergeStrategy(
                action=MergeAction.SKIP,
                confidence=1.0,
                reasoning=("source record unchanged since it was last merged",),
            )
            return MergeOutcome(strategy=strategy, entity=None, match=match)

        strategy = self.recommend(match)
        if strategy.action is MergeAction.MERGE:
            result = apply_merge(match, merged_at=self.clock(), action=MergeAction.MERGE)
            strategy = MergeStrategy(
                action=strategy.action,
                confidence=strategy.confidence,
                reasoning=(*strategy.reasoning, *result.notes),
            )
            return MergeOutcome(strategy=strategy, entity=result.entity, match=match)
        if strategy.action is MergeAction.CREATE_NEW:
            return MergeOutcome(strategy=strategy, entity=candidate, match=match)
        return MergeOutcome(strategy=strategy, entity=None, match=match)


def _is_unchanged(match: MatchCandidate) -> bool:
    existing = match.existing.metadata
    incoming = match.candidate.metadata
    shared = [
        source
        for source, entity_id in incoming.source_entity_ids.items()
        if existing.source_entity_ids.get(source) == entity_id
    ]
    if not shared or incoming.last_updated is None or existing.last_updated is None:
        return False
    return existing.last_updated >= incoming.last_updated
