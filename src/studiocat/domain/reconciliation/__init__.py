"""Reconciliation core: score incoming studios against the catalog and merge them.

Flow for one normalized candidate:
1) look up catalog entries sharing its blocking key
2) score each pair (``similarity``)
3) pick the best match above the minimum
4) choose a merge strategy and resolve field conflicts (``policy``)
5) build the merged record (``apply``) or hand the match to a reviewer
"""

from __future__ import annotations

from .apply import MergeResult, apply_merge
from .engine import MergeEngine, MergeOutcome
from .policy import FieldResolutionPolicy, field_confidence, select_strategy
from .quality import QualityBucket, QualityMetrics, assess_quality, quality_distribution
from .similarity import SimilarityResult, SimilarityScorer
from .text import levenshtein_distance, levenshtein_similarity

__all__ = [
    "FieldResolutionPolicy",
    "MergeEngine",
    "MergeOutcome",
    "MergeResult",
    "QualityBucket",
    "QualityMetrics",
    "SimilarityResult",
    "SimilarityScorer",
    "apply_merge",
    "assess_quality",
    "field_confidence",
    "levenshtein_distance",
    "levenshtein_similarity",
    "quality_distribution",
    "select_strategy",
]
