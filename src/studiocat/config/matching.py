"""Similarity weights, thresholds and merge policy knobs."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import TYPE_CHECKING

from .errors import ConfigurationError
from .file import read_float, read_str, section

if TYPE_CHECKING:
    from collections.abc import Mapping


class FoundedYearPolicy(StrEnum):
    """How to settle a founded-year conflict between equally ranked sources."""

    PREFER_CANDIDATE = "prefer_candidate"
    PREFER_SOURCE_PRIORITY = "prefer_source_priority"


@dataclass(frozen=True, slots=True)
class MatchWeights:
    name: float = 0.40
    website: float = 0.20
    catalog: float = 0.25
    location: float = 0.10
    founded_year: float = 0.05

    def __post_init__(self) -> None:
        for item in fields(self):
            if getattr(self, item.name) <= 0:
                raise ConfigurationError(f"Match weight {item.name!r} must be positive")


@dataclass(frozen=True, slots=True)
class MatchThresholds:
    exact_name: float = 0.95
    fuzzy_name: float = 0.85
    website: float = 0.90
    catalog_overlap: float = 0.70
    location: float = 0.60
    overall_minimum: float = 0.75

    def __post_init__(self) -> None:
        for item in fields(self):
            if not 0.0 <= getattr(self, item.name) <= 1.0:
                raise ConfigurationError(f"Match threshold {item.name!r} must be within [0, 1]")


@dataclass(frozen=True, slots=True)
class MatchingConfig:
    weights: MatchWeights = field(default_factory=MatchWeights)
    thresholds: MatchThresholds = field(default_factory=MatchThresholds)
    founded_year_policy: FoundedYearPolicy = FoundedYearPolicy.PREFER_CANDIDATE
    auto_merge_score: float = 0.95
    merge_score: float = 0.85
    critical_conflict_confidence: float = 0.7

    def __post_init__(self) -> None:
        minimum = self.thresholds.overall_minimum
        if not minimum <= self.merge_score <= self.auto_merge_score <= 1.0:
            raise ConfigurationError(
                "Expected overall_minimum <= merge_score <= auto_merge_score <= 1"
            )
        if not 0.0 <= self.critical_conflict_confidence <= 1.0:
            raise ConfigurationError("critical_conflict_confidence must be within [0, 1]")


def get_matching_config(document: Mapping[str, object] | None = None) -> MatchingConfig:
    """Build the matching configuration from the ``[matching]`` table of ``document``."""

    table = section(document or {}, "matching")
    if not table:
        return MatchingConfig()

    defaults = MatchingConfig()
    weights_table = section(table, "weights")
    thresholds_table = section(table, "thresholds")
    weights = MatchWeights(
        **{
            item.name: read_float(weights_table, item.name, getattr(defaults.weights, item.name))
            for item in fields(MatchWeights)
        }
    )
    thresholds = MatchThresholds(
        **{
            item.name: read_float(
                thresholds_table, item.name, getattr(defaults.thresholds, item.name)
            )
            for item in fields(MatchThresholds)
        }
    )

    raw_policy = read_str(table, "founded_year_policy", defaults.founded_year_policy.value)
    try:
        policy = FoundedYearPolicy(raw_policy)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown founded_year_policy: {raw_policy!r}") from exc

    return MatchingConfig(
        weights=weights,
        thresholds=thresholds,
        founded_year_policy=policy,
        auto_merge_score=read_float(table, "auto_merge_score", defaults.auto_merge_score),
        merge_score=read_float(table, "merge_score", defaults.merge_score),
        critical_conflict_confidence=read_float(
            table, "critical_conflict_confidence", defaults.critical_conflict_confidence
        ),
    )
