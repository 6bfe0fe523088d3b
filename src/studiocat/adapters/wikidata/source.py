"""Wikidata implementation of the ``DataSource`` port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from studiocat.domain.model import JobType, utcnow
from studiocat.domain.ports import SourceInfo

from .client import WikidataClient, build_studio_query
from .translator import translate_bindings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from studiocat.config.sources import SourceConfig
    from studiocat.config.wikidata import WikidataConfig
    from studiocat.domain.model import IngestionJob, RawEntity

    from .schema import SparqlResponse

log = getLogger(__name__)


class SparqlClient(Protocol):
    async def query(self, sparql: str) -> SparqlResponse: ...

    async def ping(self) -> bool: ...


class WikidataDataSource:
    def __init__(
        self,
        *,
        config: WikidataConfig,
        source: SourceConfig,
        client: SparqlClient | None = None,
    ) -> None:
        self._config = config
        self._source = source
        self._client = client or WikidataClient(config=config)

    async def fetch_data(self, job: IngestionJob) -> Sequence[RawEntity]:
        limit = job.options.limit or self._config.query_limit
        entity_ids = job.options.entity_ids if job.job_type is JobType.SINGLE_ENTITY else ()
        sparql = build_studio_query(
            limit=limit,
            language=self._config.language,
            entity_ids=entity_ids,
        )
        response = await self._client.query(sparql)
        records = translate_bindings(
            response.bindings, source_id=self._source.id, fetched_at=utcnow()
        )
        log.info("Wikidata returned %d studios (%d rows)", len(records), len(response.bindings))
        return records

    async def test_connection(self) -> bool:
        return await self._client.ping()

    def get_source_info(self) -> SourceInfo:
        return SourceInfo(
            id=self._source.id,
            name=self._source.name,
            description=self._source.description,
            estimated_count=None,
            data_quality=self._source.data_quality,
        )
