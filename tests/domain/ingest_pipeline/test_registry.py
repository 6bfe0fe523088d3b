from __future__ import annotations

import pytest

from studiocat.domain.ingest_pipeline import (
    IngestionRegistry,
    SourceDisabledError,
    UnknownSourceError,
)
from tests.helpers.studios import FakeDataSource, make_source_config


def _registry() -> IngestionRegistry:
    return IngestionRegistry(
        [
            make_source_config("manual", priority=100),
            make_source_config("steam", priority=50, enabled=False),
            make_source_config("igdb", priority=70, api_key_env="IGDB_API_KEY"),
            make_source_config("wikidata", priority=80, requests=5),
        ]
    )


def test_source_for_returns_registered_provider() -> None:
    registry = _registry()
    provider = FakeDataSource("manual")
    registry.register("manual", provider)

    assert registry.source_for("manual") is provider
    assert registry.is_registered("manual")


def test_source_for_explains_unavailable_sources() -> None:
    registry = _registry()
    registry.register("steam", FakeDataSource("steam"))
    registry.register("igdb", FakeDataSource("igdb"))

    with pytest.raises(UnknownSourceError):
        registry.source_for("epic")
    with pytest.raises(SourceDisabledError, match="disabled by configuration"):
        registry.source_for("steam")
    with pytest.raises(SourceDisabledError, match="IGDB_API_KEY"):
        registry.source_for("igdb")
    with pytest.raises(SourceDisabledError, match="no provider registered"):
        registry.source_for("wikidata")


def test_register_rejects_unconfigured_source() -> None:
    with pytest.raises(UnknownSourceError):
        _registry().register("epic", FakeDataSource("epic"))


def test_configs_are_ordered_by_priority() -> None:
    registry = _registry()

    assert [config.id for config in registry.configs] == ["manual", "wikidata", "igdb", "steam"]
    assert registry.source_priorities["wikidata"] == 80
    assert registry.source_quality["manual"] == 0.9


def test_list_sources_only_reports_registered_providers() -> None:
    registry = _registry()
    registry.register("wikidata", FakeDataSource("wikidata"))
    registry.register("manual", FakeDataSource("manual"))

    assert [info.id for info in registry.list_sources()] == ["manual", "wikidata"]


def test_rate_limiter_uses_source_limits() -> None:
    limit = _registry().rate_limiter.limit_for("wikidata")

    assert limit is not None
    assert limit.requests == 5
