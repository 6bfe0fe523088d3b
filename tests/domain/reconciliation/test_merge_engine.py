from __future__ import annotations

from datetime import timedelta

import pytest

from studiocat.domain.model import MatchCandidate, MergeAction
from studiocat.domain.reconciliation import (
    FieldResolutionPolicy,
    MergeEngine,
    SimilarityScorer,
    apply_merge,
)
from studiocat.domain.reconciliation.text import website_key
from tests.helpers.studios import FIXED_NOW, make_candidate

MERGED_AT = FIXED_NOW + timedelta(days=1)


def _engine() -> MergeEngine:
    return MergeEngine(clock=lambda: MERGED_AT)


def _scorer() -> SimilarityScorer:
    return SimilarityScorer(
        policy=FieldResolutionPolicy(source_priorities={"manual": 100, "wikidata": 80})
    )


def test_no_match_creates_new_entry() -> None:
    candidate = make_candidate("Supercell")

    outcome = _engine().resolve(candidate, None)

    assert outcome.action is MergeAction.CREATE_NEW
    assert outcome.entity is candidate
    assert outcome.strategy.confidence == 0.8


def test_merge_fills_blanks_and_unions_collections() -> None:
    existing = make_candidate("Riot Games", confidence=0.9)
    candidate = make_candidate(
        "Riot Games",
        source_id="wikidata",
        entity_id="Q2157",
        description="American video game developer",
        founded_year=2006,
        catalog_items=("League of Legends", "Valorant"),
        confidence=0.8,
    )
    match = _scorer().match(candidate, existing)

    outcome = _engine().resolve(candidate, match)

    assert outcome.action is MergeAction.MERGE
    assert outcome.strategy.confidence == 0.85
    merged = outcome.entity
    assert merged is not None
    assert merged.id == existing.id
    assert merged.description == "American video game developer"
    assert merged.founded_year == 2006
    assert merged.catalog_items == ("League of Legends", "Valorant")
    assert merged.sources == frozenset({"manual", "wikidata"})
    assert merged.metadata.source_entity_ids["wikidata"] == "Q2157"
    assert merged.confidence == 0.9
    assert "description: filled from candidate" in outcome.strategy.reasoning

    (entry,) = merged.merge_history
    assert entry.source_id == "wikidata"
    assert entry.merged_from == candidate.id
    assert entry.merged_at == MERGED_AT
    assert entry.strategy is MergeAction.MERGE


def test_secure_candidate_website_becomes_primary() -> None:
    existing = make_candidate("Riot Games", websites=("http://riotgames.com",))
    candidate = make_candidate("Riot Games", websites=("https://www.riotgames.com",))
    match = _scorer().match(candidate, existing)

    outcome = _engine().resolve(candidate, match)

    # the website conflict is critical, so the merge is not automatic but still policy-resolved
    assert outcome.action is MergeAction.MERGE
    assert outcome.strategy.confidence == 0.85
    assert outcome.entity is not None
    assert outcome.entity.websites == ("https://www.riotgames.com", "http://riotgames.com")


def test_unresolvable_conflict_goes_to_review_without_entity() -> None:
    existing = make_candidate("Riot Games", location="Los Angeles")
    candidate = make_candidate("Riot Games", location="Santa Monica")
    match = _scorer().match(candidate, existing)

    outcome = _engine().resolve(candidate, match)

    assert outcome.action is MergeAction.MANUAL_REVIEW
    assert outcome.entity is None
    assert outcome.match is match


def test_incremental_skips_unchanged_source_record() -> None:
    existing = make_candidate("Riot Games", entity_id="riot", last_updated=FIXED_NOW)
    candidate = make_candidate("Riot Games", entity_id="riot", last_updated=FIXED_NOW)
    match = _scorer().match(candidate, existing)

    skipped = _engine().resolve(candidate, match, incremental=True)
    merged = _engine().resolve(candidate, match, incremental=False)

    assert skipped.action is MergeAction.SKIP
    assert skipped.entity is None
    assert merged.action is MergeAction.MERGE


def test_incremental_merges_newer_source_record() -> None:
    existing = make_candidate("Riot Games", entity_id="riot", last_updated=FIXED_NOW)
    candidate = make_candidate(
        "Riot Games", entity_id="riot", last_updated=FIXED_NOW + timedelta(hours=1)
    )

    outcome = _engine().resolve(candidate, _scorer().match(candidate, existing), incremental=True)

    assert outcome.action is MergeAction.MERGE


def test_merge_ignores_strategy() -> None:
    existing = make_candidate("Riot Games", location="Los Angeles")
    candidate = make_candidate("Riot Games", location="Santa Monica", description="New text")
    match = MatchCandidate(
        existing=existing,
        candidate=candidate,
        match_score=0.1,
        match_types=frozenset(),
    )

    merged = _engine().merge(match)

    assert merged.location == "Los Angeles"
    assert merged.description == "New text"
    assert len(merged.merge_history) == 1


def test_merging_entry_with_itself_only_appends_history() -> None:
    entity = make_candidate(
        "Riot Games",
        description="American video game developer",
        founded_year=2006,
        confidence=0.9,
    )

    first = apply_merge(_scorer().match(entity, entity), merged_at=MERGED_AT).entity
    second = apply_merge(_scorer().match(entity, first), merged_at=MERGED_AT).entity

    assert first.evolve(merge_history=()) == entity
    assert second.evolve(merge_history=()) == entity
    assert first.confidence == entity.confidence
    (entry,) = first.merge_history
    assert entry.merged_from == entity.id
    assert entry.conflict_count == 0
    assert len(second.merge_history) == 2
    assert _engine().resolve(entity, _scorer().match(entity, entity)).action is MergeAction.MERGE


@pytest.mark.parametrize(
    ("existing_websites", "candidate_websites"),
    [
        ((), ("https://riotgames.com",)),
        (("https://riotgames.com",), ()),
        (("https://riotgames.com", "https://riotforge.com"), ("http://riotgames.com",)),
        (("https://riotgames.com/",), ("https://RIOTGAMES.com", "https://leagueoflegends.com")),
    ],
)
def test_merge_never_shrinks_collections(
    existing_websites: tuple[str, ...], candidate_websites: tuple[str, ...]
) -> None:
    existing = make_candidate("Riot Games", websites=existing_websites)
    candidate = make_candidate(
        "Riot Games",
        source_id="wikidata",
        websites=candidate_websites,
        catalog_items=("Valorant",),
    )

    merged = apply_merge(_scorer().match(candidate, existing), merged_at=MERGED_AT).entity

    assert len(merged.websites) >= max(len(existing.websites), len(candidate.websites))
    assert {website_key(url) for url in merged.websites} == {
        website_key(url) for url in (*existing_websites, *candidate_websites)
    }
    assert len(merged.catalog_items) >= max(
        len(existing.catalog_items), len(candidate.catalog_items)
    )
