"""Curated studio records imported from a local JSON file.

The file holds a list of objects::

    [
      {
        "id": "remedy",
        "name": "Remedy Entertainment",
        "websites": ["https://www.remedygames.com"],
        "location": "Espoo, Finland",
        "games": [{"name": "Control", "releaseDate": "2019-08-27", "platforms": ["PC"]}],
        "metadata": {"founded": 1995}
      }
    ]

Entries that fail validation still produce a record so the job can report
them; the validation errors travel in ``metadata["payload_errors"]``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from studiocat.domain.ingest_pipeline.normalization import PAYLOAD_ERRORS_KEY
from studiocat.domain.model import RawEntity, RawGame, utcnow
from studiocat.domain.ports import SourceInfo, SourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from studiocat.config.sources import SourceConfig
    from studiocat.domain.model import IngestionJob

log = logging.getLogger(__name__)

_DOCUMENT_ADAPTER: TypeAdapter[list[dict[str, Any]]] = TypeAdapter(list[dict[str, Any]])


class CuratedModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "Curated %s: unmodeled keys: %s", type(self).__name__, ", ".join(sorted(new_keys))
        )


class CuratedGame(CuratedModel):
    name: str
    release_date: str | None = Field(default=None, alias="releaseDate")
    platforms: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)


class CuratedStudio(CuratedModel):
    id: str
    name: str
    description: str | None = None
    websites: list[str] = Field(default_factory=list)
    website: str | None = None
    location: str | None = None
    logo: str | None = None
    games: list[CuratedGame] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def load_document(path: Path) -> list[dict[str, Any]]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SourceUnavailableError(f"Cannot read {path}: {exc}") from exc
    try:
        return _DOCUMENT_ADAPTER.validate_python(json.loads(text))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise SourceUnavailableError(f"{path} is not a JSON list of objects: {exc}") from exc


def translate_entry(entry: dict[str, Any], *, source_id: str, index: int) -> RawEntity:
    try:
        studio = CuratedStudio.model_validate(entry)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
        name = entry.get("name")
        return RawEntity(
            source_id=source_id,
            source_entity_id=str(entry.get("id") or f"entry-{index}"),
            name=name if isinstance(name, str) else "",
            metadata=MappingProxyType({PAYLOAD_ERRORS_KEY: "invalid " + ", ".join(fields)}),
        )

    websites = [*studio.websites, *([studio.website] if studio.website else [])]
    return RawEntity(
        source_id=source_id,
        source_entity_id=studio.id,
        name=studio.name,
        description=studio.description,
        websites=tuple(websites),
        games=tuple(
            RawGame(
                name=game.name,
                release_date=game.release_date,
                platforms=tuple(game.platforms),
                genres=tuple(game.genres),
            )
            for game in studio.games
        ),
        location=studio.location,
        logo=studio.logo,
        metadata=MappingProxyType(dict(studio.metadata)),
        last_updated=_as_utc(studio.last_updated) if studio.last_updated else utcnow(),
    )


class JsonFileDataSource:
    def __init__(self, path: Path, *, source: SourceConfig) -> None:
        self._path = path
        self._source = source

    async def fetch_data(self, job: IngestionJob) -> Sequence[RawEntity]:
        document = await asyncio.to_thread(load_document, self._path)
        log.info("Loaded %d curated entries from %s for job %s", len(document), self._path, job.id)
        return [
            translate_entry(entry, source_id=self._source.id, index=index)
            for index, entry in enumerate(document)
        ]

    async def test_connection(self) -> bool:
        return self._path.is_file()

    def get_source_info(self) -> SourceInfo:
        estimated: int | None = None
        if self._path.is_file():
            try:
                estimated = len(load_document(self._path))
            except SourceUnavailableError:
                estimated = None
        return SourceInfo(
            id=self._source.id,
            name=self._source.name,
            description=f"{self._source.description} ({self._path})",
            estimated_count=estimated,
            data_quality=self._source.data_quality,
        )
