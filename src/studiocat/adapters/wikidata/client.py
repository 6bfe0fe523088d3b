"""Wikidata SPARQL client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from studiocat.adapters.http_resilience import ResilientClient
from studiocat.domain.ports import SourceUnavailableError

from .schema import SparqlResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from studiocat.config.http_resilience import ResilienceConfig
    from studiocat.config.wikidata import WikidataConfig

log = getLogger(__name__)

VIDEO_GAME_DEVELOPER: Final = "Q210167"
PING_QUERY: Final = f"ASK {{ wd:{VIDEO_GAME_DEVELOPER} ?p ?o }}"

_STUDIO_QUERY: Final = """\
SELECT ?studio ?studioLabel ?description ?founded ?countryLabel ?headquartersLabel
       ?website ?employees ?logo
WHERE {{
  {selector}
  OPTIONAL {{ ?studio schema:description ?description FILTER(LANG(?description) = "{lang}") }}
  OPTIONAL {{ ?studio wdt:P571 ?founded }}
  OPTIONAL {{ ?studio wdt:P17 ?country }}
  OPTIONAL {{ ?studio wdt:P159 ?headquarters }}
  OPTIONAL {{ ?studio wdt:P856 ?website }}
  OPTIONAL {{ ?studio wdt:P1128 ?employees }}
  OPTIONAL {{ ?studio wdt:P154 ?logo }}
  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "{lang},en" }}
}}
ORDER BY ?studio
LIMIT {limit}
"""


class WikidataAPIError(SourceUnavailableError):
    """Raised when the query service answers with an unusable response."""


def should_cache_payload(payload: object) -> bool:
    """Only SELECT results with rows are stored; ASK answers and empty results are not."""

    try:
        response = SparqlResponse.model_validate(payload)
    except ValidationError:
        return False
    return response.boolean is None and bool(response.bindings)


def build_studio_query(
    *,
    limit: int,
    language: str = "en",
    entity_ids: Sequence[str] = (),
) -> str:
    """SPARQL for studios that are instances of video game developer.

    ``entity_ids`` restricts the query to the given Q-ids.
    """

    if entity_ids:
        values = " ".join(f"wd:{entity_id}" for entity_id in entity_ids)
        selector = f"VALUES ?studio {{ {values} }}"
    else:
        selector = f"?studio wdt:P31/wdt:P279* wd:{VIDEO_GAME_DEVELOPER} ."
    return _STUDIO_QUERY.format(selector=selector, lang=language, limit=limit)


class WikidataClient:
    """Low-level client for the Wikidata query service."""

    def __init__(
        self,
        *,
        config: WikidataConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient

    async def query(self, sparql: str) -> SparqlResponse:
        async with self._client_factory(self._config.resilience) as client:
            try:
                response = await client.post(
                    self._config.endpoint,
                    data={"query": sparql, "format": "json"},
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise WikidataAPIError(f"Wikidata query failed: {exc}") from exc

        payload = response.json()
        if not isinstance(payload, dict):
            raise WikidataAPIError("Unexpected Wikidata response payload")
        return SparqlResponse.model_validate(payload)

    async def ping(self) -> bool:
        try:
            response = await self.query(PING_QUERY)
        except WikidataAPIError as exc:
            log.warning("Wikidata connection test failed: %s", exc)
            return False
        return bool(response.boolean)
