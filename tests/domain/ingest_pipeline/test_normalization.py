from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any

import pytest

from studiocat.domain.ingest_pipeline import NormalizationError, NormalizationPipeline
from studiocat.domain.ingest_pipeline.normalization import (
    PAYLOAD_ERRORS_KEY,
    canonical_location,
    parse_year,
)
from studiocat.domain.model import ErrorSeverity, RawEntity, RawGame, StudioCategory
from tests.helpers.studios import FIXED_NOW, make_raw


def _pipeline() -> NormalizationPipeline:
    return NormalizationPipeline(source_quality={"manual": 0.95}, today=date(2024, 5, 1))


def test_normalize_cleans_identity_fields() -> None:
    candidate = _pipeline().normalize(
        make_raw(
            "  The Riot   Games, Inc. ",
            entity_id="riot",
            websites=("https://riotgames.com", "https://RIOTGAMES.com/", "https://riotforge.com"),
            games=("League of Legends", "league of legends", "Valorant"),
            description="  Makers of\nLeague of Legends ",
        )
    )

    assert candidate.name == "Riot Games"
    assert candidate.identity_key == "riot"
    assert candidate.location == "Los Angeles"
    assert candidate.description == "Makers of League of Legends"
    assert candidate.websites == ("https://riotgames.com", "https://riotforge.com")
    assert candidate.primary_website == "https://riotgames.com"
    assert candidate.catalog_items == ("League of Legends", "Valorant")
    assert candidate.confidence == 0.95
    assert candidate.metadata.sources == frozenset({"manual"})
    assert candidate.metadata.source_entity_ids == {"manual": "riot"}
    assert candidate.metadata.last_updated == FIXED_NOW


def test_unknown_source_uses_default_confidence() -> None:
    candidate = _pipeline().normalize(make_raw(source_id="steam"))

    assert candidate.confidence == 0.5


@pytest.mark.parametrize(
    ("name", "platforms", "category", "technologies"),
    [
        ("Riot Games", ("PC",), StudioCategory.INDIE, ("C++", "DirectX")),
        ("Supercell", ("iOS", "Android"), StudioCategory.MOBILE, ("Unity", "Swift", "Kotlin")),
        ("Owlchemy Labs", ("Oculus Quest",), StudioCategory.VR_AR, ()),
        ("Big Mobile Studio", (), StudioCategory.MOBILE, ()),
        (
            "Remedy",
            ("PC", "PS5"),
            StudioCategory.INDIE,
            ("C++", "DirectX", "PlayStation SDK", "Xbox SDK"),
        ),
    ],
)
def test_category_and_technologies_follow_platforms(
    name: str,
    platforms: tuple[str, ...],
    category: StudioCategory,
    technologies: tuple[str, ...],
) -> None:
    candidate = _pipeline().normalize(make_raw(name, platforms=platforms))

    assert candidate.category is category
    assert candidate.technologies == technologies


def test_founded_year_prefers_metadata_then_earliest_release() -> None:
    pipeline = _pipeline()
    from_metadata = make_raw(metadata={"founded": 2009, "employees": 4000})
    from_date = make_raw(metadata={"founded_date": "2006-09-01"})
    implausible = make_raw(metadata={"founded": 2031})
    from_games = RawEntity(
        source_id="manual",
        source_entity_id="remedy",
        name="Remedy Entertainment",
        games=(
            RawGame(name="Control", release_date="2019-08-27"),
            RawGame(name="Max Payne", release_date="July 2001"),
        ),
    )

    assert pipeline.normalize(from_metadata).founded_year == 2009
    assert pipeline.normalize(from_metadata).metadata.extra == {"employees": 4000}
    assert pipeline.normalize(from_date).founded_year == 2006
    assert pipeline.normalize(from_date).metadata.founded_date == "2006-09-01"
    assert pipeline.normalize(implausible).founded_year is None
    assert pipeline.normalize(from_games).founded_year == 2001


def test_parse_year_and_location_helpers() -> None:
    assert parse_year(True, latest=2025) is None
    assert parse_year("circa 1998", latest=2025) == 1998
    assert parse_year(1890, latest=2025) is None
    assert canonical_location("  new york, NY ") == "New York"
    assert canonical_location(None) == ""


@pytest.mark.parametrize(
    "raw",
    [
        make_raw("   "),
        make_raw(entity_id=" "),
        make_raw(metadata={PAYLOAD_ERRORS_KEY: "invalid name"}),
        make_raw(games=("",)),
    ],
)
def test_rejects_records_without_identity(raw: RawEntity) -> None:
    with pytest.raises(NormalizationError):
        _pipeline().normalize(raw)


@pytest.mark.parametrize(
    "changes",
    [
        {"location": 123},
        {"description": ["not", "text"]},
        {"logo": 1},
        {"metadata": "founded=1995"},
        {"websites": "https://riotgames.com"},
        {"games": (RawGame(name="Valorant", platforms=("PC", 5)),)},
        {"games": (RawGame(name="Valorant", release_date=2020),)},
        {"games": ("League of Legends",)},
    ],
)
def test_rejects_wrongly_typed_fields(changes: dict[str, Any]) -> None:
    raw = replace(make_raw(), **changes)

    with pytest.raises(NormalizationError) as excinfo:
        _pipeline().normalize(raw)

    assert excinfo.value.entity_id == raw.source_entity_id


def test_normalize_batch_reports_warnings() -> None:
    raws = [make_raw("Riot Games"), make_raw("", entity_id="broken"), make_raw("Supercell")]

    candidates, errors = _pipeline().normalize_batch(raws)

    assert [candidate.name for candidate in candidates] == ["Riot Games", "Supercell"]
    (error,) = errors
    assert error.severity is ErrorSeverity.WARNING
    assert error.entity_id == "broken"
    assert "no studio name" in error.message
