"""Value objects produced by scoring and consumed by the merge policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entities import CandidateEntity
    from .enums import MatchType, MergeAction, Resolution


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldConflict:
    field: str
    existing_value: object
    candidate_value: object
    resolution: Resolution
    confidence: float


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchCandidate:
    """Scored pairing of an incoming candidate with one catalog entry."""

    existing: CandidateEntity
    candidate: CandidateEntity
    match_score: float
    match_types: frozenset[MatchType]
    conflicts: tuple[FieldConflict, ...] = ()

    def conflict_for(self, field_name: str) -> FieldConflict | None:
        for conflict in self.conflicts:
            if conflict.field == field_name:
                return conflict
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class MergeStrategy:
    action: MergeAction
    confidence: float
    reasoning: tuple[str, ...] = ()
