from __future__ import annotations

import pytest

from studiocat.domain.model import MatchType, Resolution
from studiocat.domain.reconciliation import FieldResolutionPolicy, SimilarityScorer
from studiocat.domain.reconciliation.similarity import (
    catalog_overlap,
    founded_year_similarity,
    location_similarity,
    name_similarity,
    website_similarity,
)
from tests.helpers.studios import make_candidate


def _scorer() -> SimilarityScorer:
    return SimilarityScorer(
        policy=FieldResolutionPolicy(source_priorities={"manual": 100, "wikidata": 80})
    )


def test_name_similarity_ignores_legal_and_descriptor_suffixes() -> None:
    assert name_similarity("Riot Games, Inc.", "Riot") == 1.0
    assert name_similarity("Bandai Namco Entertainment", "Bandai Namco Ent") == 0.95
    assert name_similarity("Supercell", "Riot Games") < 0.5


def test_signal_helpers() -> None:
    assert catalog_overlap((), ()) == 1.0
    assert catalog_overlap(["Valorant", "League of Legends"], ["valorant"]) == 0.5
    assert website_similarity([], ["https://riotgames.com"]) is None
    assert website_similarity(["https://www.riotgames.com"], ["riotgames.com/en"]) == 1.0
    assert location_similarity("Los Angeles", "Los Angeles, CA") == 0.8
    assert location_similarity("", "Helsinki") is None
    assert founded_year_similarity(2006, 2009) == pytest.approx(0.7)
    assert founded_year_similarity(None, 2009) is None


def test_same_studio_with_partial_catalog_scores_above_merge_threshold() -> None:
    incoming = make_candidate(
        "Riot Games, Inc.", catalog_items=("League of Legends", "Valorant")
    )
    existing = make_candidate("Riot Games")

    result = _scorer().score(incoming, existing)

    # name 0.4 + website 0.2 + catalog 0.25 * 0.5 + location 0.1, over 0.95
    assert result.score == pytest.approx(0.825 / 0.95)
    assert MatchType.EXACT_NAME in result.match_types
    assert MatchType.WEBSITE in result.match_types
    assert MatchType.LOCATION in result.match_types
    assert MatchType.CATALOG_OVERLAP not in result.match_types


def test_score_is_symmetric() -> None:
    left = make_candidate("Riot Games", catalog_items=("League of Legends", "Valorant"))
    right = make_candidate(
        "Riot", websites=("riotgames.com",), location="Los Angeles, CA", founded_year=2006
    )
    scorer = _scorer()

    assert scorer.score(left, right).score == scorer.score(right, left).score


def test_unrelated_studios_score_low() -> None:
    riot = make_candidate("Riot Games")
    supercell = make_candidate(
        "Supercell",
        websites=("https://supercell.com",),
        catalog_items=("Clash of Clans",),
        location="Helsinki",
    )

    assert _scorer().score(riot, supercell).score < 0.3


def test_missing_signals_renormalize_weights() -> None:
    left = make_candidate("Riot Games", websites=(), catalog_items=(), location="")
    right = make_candidate("Riot", websites=(), catalog_items=(), location="")

    # only name and the empty-catalog signal remain
    assert _scorer().score(left, right).score == 1.0


def test_find_matches_filters_and_orders() -> None:
    candidate = make_candidate("Riot Games")
    exact = make_candidate("Riot Games, Inc.")
    partial = make_candidate("Riot Games", catalog_items=("Valorant", "League of Legends"))
    unrelated = make_candidate("Supercell", websites=(), catalog_items=(), location="")

    matches = _scorer().find_matches(candidate, [partial, unrelated, exact, candidate])

    assert [match.existing.id for match in matches] == [exact.id, partial.id]
    assert matches[0].match_score >= matches[1].match_score


def test_conflicts_follow_source_priority() -> None:
    existing = make_candidate("Riot Games", description="Makers of League of Legends")
    candidate = make_candidate(
        "Riot Games", source_id="wikidata", description="American video game developer"
    )

    conflicts = _scorer().conflicts(existing, candidate)

    assert [conflict.field for conflict in conflicts] == ["description"]
    assert conflicts[0].resolution is Resolution.KEEP_EXISTING
    assert 0.0 <= conflicts[0].confidence <= 0.5


def test_conflicts_skip_blank_values_and_equivalent_websites() -> None:
    existing = make_candidate("Riot Games", websites=("https://riotgames.com/",), location="")
    candidate = make_candidate(
        "Riot Games", websites=("HTTPS://RIOTGAMES.COM",), location="Los Angeles"
    )

    assert _scorer().conflicts(existing, candidate) == ()
