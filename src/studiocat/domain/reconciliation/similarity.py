"""Pairwise studio similarity.

Responsibilities of this stage:
- compute per-signal scores (name, website, catalog overlap, location, founded year)
- combine the available signals into one weighted score, renormalizing the
  weights over the signals both records actually carry
- label the match with the signals that cleared their thresholds
- list conflicting fields with a policy resolution for each

``score(a, b)`` is symmetric; conflicts are oriented (existing vs candidate).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from studiocat.config.matching import MatchingConfig
from studiocat.domain.model import (
    FieldConflict,
    MatchCandidate,
    MatchType,
    clean_studio_name,
    normalize_text,
)

from .policy import FieldResolutionPolicy, field_confidence
from .text import hostname, levenshtein_distance, location_tokens, name_variants, website_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from studiocat.domain.model import CandidateEntity

CONFLICT_FIELDS = ("name", "description", "location", "founded_year", "website", "category")


@dataclass(frozen=True, slots=True)
class SimilarityResult:
    score: float
    match_types: frozenset[MatchType]
    signals: Mapping[str, float]


def name_similarity(left: str, right: str) -> float:
    left_clean = normalize_text(clean_studio_name(left))
    right_clean = normalize_text(clean_studio_name(right))
    if left_clean == right_clean:
        return 1.0
    if name_variants(left) & name_variants(right):
        return 0.95
    longest = max(len(left_clean), len(right_clean))
    if longest == 0:
        return 0.0
    return 1 - levenshtein_distance(left_clean, right_clean) / longest


def website_similarity(left: Iterable[str], right: Iterable[str]) -> float | None:
    left_hosts = {host for url in left if (host := hostname(url))}
    right_hosts = {host for url in right if (host := hostname(url))}
    if not left_hosts or not right_hosts:
        return None
    return 1.0 if left_hosts & right_hosts else 0.0


def catalog_overlap(left: Iterable[str], right: Iterable[str]) -> float:
    left_items = {normalize_text(item) for item in left} - {""}
    right_items = {normalize_text(item) for item in right} - {""}
    if not left_items and not right_items:
        return 1.0
    return len(left_items & right_items) / len(left_items | right_items)


def location_similarity(left: str, right: str) -> float | None:
    left_norm = normalize_text(left)
    right_norm = normalize_text(right)
    if not left_norm or not right_norm:
        return None
    if left_norm == right_norm:
        return 1.0
    if left_norm in right_norm or right_norm in left_norm:
        return 0.8
    if location_tokens(left)[0] == location_tokens(right)[0]:
        return 0.7
    return 0.0


def founded_year_similarity(left: int | None, right: int | None) -> float | None:
    if left is None or right is None:
        return None
    return max(0.0, 1 - abs(left - right) / 10)


@dataclass(slots=True)
class SimilarityScorer:
    """Score candidates against catalog entries with configurable weights."""

    config: MatchingConfig = field(default_factory=MatchingConfig)
    policy: FieldResolutionPolicy = field(default_factory=FieldResolutionPolicy)

    def score(self, left: CandidateEntity, right: CandidateEntity) -> SimilarityResult:
        weights = self.config.weights
        thresholds = self.config.thresholds

        signals: dict[str, float] = {
            "name": name_similarity(left.name, right.name),
            "catalog": catalog_overlap(left.catalog_items, right.catalog_items),
        }
        website = website_similarity(left.websites, right.websites)
        if website is not None:
            signals["website"] = website
        location = location_similarity(left.location, right.location)
        if location is not None:
            signals["location"] = location
        founded = founded_year_similarity(left.founded_year, right.founded_year)
        if founded is not None:
            signals["founded_year"] = founded

        weight_by_signal = {
            "name": weights.name,
            "website": weights.website,
            "catalog": weights.catalog,
            "location": weights.location,
            "founded_year": weights.founded_year,
        }
        # fixed signal order keeps the float sum identical for score(a, b) and score(b, a)
        ordered = [name for name in weight_by_signal if name in signals]
        total_weight = sum(weight_by_signal[name] for name in ordered)
        weighted = sum(weight_by_signal[name] * signals[name] for name in ordered)
        score = weighted / total_weight if total_weight else 0.0

        match_types: set[MatchType] = set()
        if signals["name"] >= thresholds.exact_name:
            match_types.add(MatchType.EXACT_NAME)
        elif signals["name"] >= thresholds.fuzzy_name:
            match_types.add(MatchType.FUZZY_NAME)
        if signals.get("website", 0.0) >= thresholds.website:
            match_types.add(MatchType.WEBSITE)
        has_catalogs = bool(left.catalog_items) and bool(right.catalog_items)
        if has_catalogs and signals["catalog"] >= thresholds.catalog_overlap:
            match_types.add(MatchType.CATALOG_OVERLAP)
        if signals.get("location", 0.0) >= thresholds.location:
            match_types.add(MatchType.LOCATION)

        return SimilarityResult(
            score=min(1.0, max(0.0, score)),
            match_types=frozenset(match_types),
            signals=signals,
        )

    def match(self, candidate: CandidateEntity, existing: CandidateEntity) -> MatchCandidate:
        result = self.score(existing, candidate)
        return MatchCandidate(
            existing=existing,
            candidate=candidate,
            match_score=result.score,
            match_types=result.match_types,
            conflicts=self.conflicts(existing, candidate),
        )

    def find_matches(
        self,
        candidate: CandidateEntity,
        existing: Iterable[CandidateEntity],
    ) -> list[MatchCandidate]:
        """Matches at or above the overall minimum, best first."""

        minimum = self.config.thresholds.overall_minimum
        matches = [
            match
            for entry in existing
            if entry.id != candidate.id
            and (match := self.match(candidate, entry)).match_score >= minimum
        ]
        matches.sort(key=lambda match: (-match.match_score, str(match.existing.id)))
        return matches

    def conflicts(
        self, existing: CandidateEntity, candidate: CandidateEntity
    ) -> tuple[FieldConflict, ...]:
        existing_priority = self.policy.priority_of(existing)
        candidate_priority = self.policy.priority_of(candidate)
        conflicts: list[FieldConflict] = []
        for field_name in CONFLICT_FIELDS:
            existing_value = _field_value(existing, field_name)
            candidate_value = _field_value(candidate, field_name)
            if existing_value in (None, "") or candidate_value in (None, ""):
                continue
            if field_name == "website":
                if website_key(str(existing_value)) == website_key(str(candidate_value)):
                    continue
            elif existing_value == candidate_value:
                continue
            conflicts.append(
                FieldConflict(
                    field=field_name,
                    existing_value=existing_value,
                    candidate_value=candidate_value,
                    resolution=self.policy.resolve(
                        field_name,
                        existing_value,
                        candidate_value,
                        existing_priority=existing_priority,
                        candidate_priority=candidate_priority,
                    ),
                    confidence=field_confidence(field_name, existing_value, candidate_value),
                )
            )
        return tuple(conflicts)


def _field_value(entity: CandidateEntity, field_name: str) -> object:
    if field_name == "website":
        return entity.primary_website
    return getattr(entity, field_name)
