from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from studiocat.adapters.sqlalchemy import (
    SqlAlchemyCatalogRepository,
    create_catalog_engine,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STUDIOCAT_DATA_DIR", str(tmp_path / "data"))
    for name in ("STUDIOCAT_CONFIG", "WIKIDATA_CONTACT", "IGDB_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = startup(
        engine=create_catalog_engine("sqlite+pysqlite:///:memory:"),
        force=True,
    )
    try:
        yield engine
    finally:
        shutdown()


@pytest.fixture
def sqlite_repository(sqlite_engine: Engine) -> SqlAlchemyCatalogRepository:
    _ = sqlite_engine
    return SqlAlchemyCatalogRepository()
