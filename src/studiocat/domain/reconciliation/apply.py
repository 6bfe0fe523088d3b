"""Apply a merge decision to produce the updated catalog record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from studiocat.domain.model import MergeAction, MergeHistoryEntry, Resolution

from .text import ordered_union

if TYPE_CHECKING:
    from datetime import datetime

    from studiocat.domain.model import CandidateEntity, MatchCandidate

_SCALAR_FIELDS = ("name", "description", "location", "founded_year", "category")
_FILLABLE_FIELDS = ("description", "location", "founded_year", "logo")


@dataclass(frozen=True, slots=True)
class MergeResult:
    entity: CandidateEntity
    notes: tuple[str, ...] = ()


def apply_merge(
    match: MatchCandidate,
    *,
    merged_at: datetime,
    action: MergeAction = MergeAction.MERGE,
) -> MergeResult:
    """Merge ``match.candidate`` into ``match.existing``.

    Scalar fields change only through a ``use_candidate`` conflict resolution
    or by filling a value the existing record lacks. Collections are unioned,
    confidence takes the maximum, and one history entry is appended.
    """

    existing = match.existing
    candidate = match.candidate
    changes: dict[str, object] = {}
    notes: list[str] = []

    for conflict in match.conflicts:
        if conflict.resolution is Resolution.USE_CANDIDATE and conflict.field in _SCALAR_FIELDS:
            changes[conflict.field] = conflict.candidate_value
            notes.append(f"{conflict.field}: took candidate value")
        elif conflict.resolution is Resolution.MANUAL_REVIEW:
            notes.append(f"{conflict.field}: kept existing value pending review")

    for field_name in _FILLABLE_FIELDS:
        if getattr(existing, field_name) in (None, "") and getattr(candidate, field_name) not in (
            None,
            "",
        ):
            changes[field_name] = getattr(candidate, field_name)
            notes.append(f"{field_name}: filled from candidate")

    website_conflict = match.conflict_for("website")
    if website_conflict is not None and website_conflict.resolution is Resolution.USE_CANDIDATE:
        websites = ordered_union(candidate.websites, existing.websites, key="website")
        notes.append("website: candidate website is now primary")
    else:
        websites = ordered_union(existing.websites, candidate.websites, key="website")

    source_id = min(candidate.sources) if candidate.sources else "unknown"
    history_entry = MergeHistoryEntry(
        source_id=source_id,
        merged_from=candidate.id,
        merged_at=merged_at,
        conflict_count=len(match.conflicts),
        strategy=action,
    )

    merged = existing.evolve(
        **changes,
        websites=websites,
        catalog_items=ordered_union(existing.catalog_items, candidate.catalog_items),
        technologies=ordered_union(existing.technologies, candidate.technologies),
        metadata=existing.metadata.combine(candidate.metadata),
        confidence=max(existing.confidence, candidate.confidence),
        merge_history=(*existing.merge_history, history_entry),
    )
    return MergeResult(entity=merged, notes=tuple(notes))
