"""Conflict resolution policy.

Responsibilities of this stage:
- decide a ``Resolution`` for every conflicting field of a match
- attach a confidence to each field decision
- map a scored match and its conflicts to a ``MergeStrategy``

Field rules, in order:
1) the record backed by the higher-priority source wins;
2) on equal priority: longer name/description wins, founded year follows the
   configured ``FoundedYearPolicy``, ``https://`` and then longer websites win;
3) anything else is left for manual review.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from studiocat.config.matching import FoundedYearPolicy, MatchingConfig
from studiocat.domain.model import MergeAction, MergeStrategy, Resolution, normalize_text

from .text import levenshtein_similarity

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from studiocat.domain.model import CandidateEntity, FieldConflict, MatchCandidate

FIELD_CONFIDENCE_WEIGHTS: Final[Mapping[str, float]] = {
    "name": 0.9,
    "website": 0.85,
    "founded_year": 0.7,
    "location": 0.6,
    "description": 0.5,
    "category": 0.4,
}
CRITICAL_FIELDS: Final = frozenset({"name", "website"})
_DEFAULT_FIELD_WEIGHT: Final = 0.5


def value_similarity(existing_value: object, candidate_value: object) -> float:
    """0..1 closeness of two conflicting values."""

    if isinstance(existing_value, int) and isinstance(candidate_value, int):
        return max(0.0, 1 - abs(existing_value - candidate_value) / 10)
    left = normalize_text(str(existing_value))
    right = normalize_text(str(candidate_value))
    return levenshtein_similarity(left, right) / 100


def field_confidence(field_name: str, existing_value: object, candidate_value: object) -> float:
    """Confidence that the two values describe the same fact, weighted by field."""

    weight = FIELD_CONFIDENCE_WEIGHTS.get(field_name, _DEFAULT_FIELD_WEIGHT)
    return round(weight * value_similarity(existing_value, candidate_value), 4)


@dataclass(slots=True)
class FieldResolutionPolicy:
    source_priorities: Mapping[str, int] = field(default_factory=dict)
    founded_year_policy: FoundedYearPolicy = FoundedYearPolicy.PREFER_CANDIDATE

    def priority_of(self, entity: CandidateEntity) -> int:
        return max(
            (self.source_priorities.get(source, 0) for source in entity.sources),
            default=0,
        )

    def resolve(
        self,
        field_name: str,
        existing_value: object,
        candidate_value: object,
        *,
        existing_priority: int,
        candidate_priority: int,
    ) -> Resolution:
        if candidate_priority > existing_priority:
            return Resolution.USE_CANDIDATE
        if candidate_priority < existing_priority:
            return Resolution.KEEP_EXISTING

        match field_name:
            case "name" | "description":
                if len(str(candidate_value)) > len(str(existing_value)):
                    return Resolution.USE_CANDIDATE
                return Resolution.KEEP_EXISTING
            case "founded_year":
                if self.founded_year_policy is FoundedYearPolicy.PREFER_CANDIDATE:
                    return Resolution.USE_CANDIDATE
                return Resolution.KEEP_EXISTING
            case "website":
                return _prefer_website(str(existing_value), str(candidate_value))
            case _:
                return Resolution.MANUAL_REVIEW


def _prefer_website(existing_value: str, candidate_value: str) -> Resolution:
    existing_secure = existing_value.lower().startswith("https://")
    candidate_secure = candidate_value.lower().startswith("https://")
    if candidate_secure and not existing_secure:
        return Resolution.USE_CANDIDATE
    if existing_secure and not candidate_secure:
        return Resolution.KEEP_EXISTING
    if len(candidate_value) > len(existing_value):
        return Resolution.USE_CANDIDATE
    return Resolution.KEEP_EXISTING


def critical_conflicts(
    conflicts: Sequence[FieldConflict], *, threshold: float
) -> list[FieldConflict]:
    return [
        conflict
        for conflict in conflicts
        if conflict.field in CRITICAL_FIELDS and conflict.confidence < threshold
    ]


def select_strategy(match: MatchCandidate, config: MatchingConfig) -> MergeStrategy:
    """Map a scored match to a merge action."""

    score = match.match_score
    signals = ", ".join(sorted(match.match_types)) or "no strong signal"
    reasoning = [f"match score {score:.3f} ({signals})"]
    review_fields = sorted(
        conflict.field
        for conflict in match.conflicts
        if conflict.resolution is Resolution.MANUAL_REVIEW
    )
    critical = critical_conflicts(
        match.conflicts, threshold=config.critical_conflict_confidence
    )

    if score >= config.auto_merge_score and not critical:
        reasoning.append("very high similarity without critical conflicts")
        if review_fields:
            reasoning.append("existing values kept for: " + ", ".join(review_fields))
        return MergeStrategy(action=MergeAction.MERGE, confidence=0.95, reasoning=tuple(reasoning))

    if critical:
        reasoning.append(
            "critical conflicts on: " + ", ".join(sorted(c.field for c in critical))
        )

    if score >= config.merge_score:
        if not review_fields:
            reasoning.append("high similarity and every conflict resolved by policy")
            return MergeStrategy(
                action=MergeAction.MERGE, confidence=0.85, reasoning=tuple(reasoning)
            )
        reasoning.append("needs review for: " + ", ".join(review_fields))
        return MergeStrategy(
            action=MergeAction.MANUAL_REVIEW, confidence=0.75, reasoning=tuple(reasoning)
        )

    if score >= config.thresholds.overall_minimum:
        reasoning.append("moderate similarity")
        return MergeStrategy(
            action=MergeAction.MANUAL_REVIEW, confidence=0.6, reasoning=tuple(reasoning)
        )

    reasoning.append("below the minimum match score")
    return MergeStrategy(action=MergeAction.CREATE_NEW, confidence=0.8, reasoning=tuple(reasoning))
