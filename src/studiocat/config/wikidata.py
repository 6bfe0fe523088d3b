"""Wikidata SPARQL endpoint configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .env import optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from .http_resilience import ShouldCacheHook
    from .sources import RateLimitConfig

DEFAULT_WIKIDATA_SPARQL_URL = "https://query.wikidata.org/sparql"
DEFAULT_QUERY_LIMIT = 500


@dataclass(frozen=True, slots=True)
class WikidataConfig:
    resilience: ResilienceConfig
    endpoint: str = DEFAULT_WIKIDATA_SPARQL_URL
    query_limit: int = DEFAULT_QUERY_LIMIT
    language: str = "en"


def get_wikidata_config(
    *,
    rate_limit: RateLimitConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> WikidataConfig:
    """Endpoint settings; ``rate_limit`` defaults to five queries per second."""

    # the query service rejects anonymous clients without a contact in the user agent
    values = require_env_vars(("WIKIDATA_CONTACT",))
    contact = values["WIKIDATA_CONTACT"]
    endpoint = optional_env_var("WIKIDATA_SPARQL_URL") or DEFAULT_WIKIDATA_SPARQL_URL
    language = optional_env_var("WIKIDATA_LANGUAGE") or "en"

    resilience = ResilienceConfig(
        name="wikidata",
        ratelimit=(
            RateLimit.from_source_limit(rate_limit)
            if rate_limit is not None
            else RateLimit(max_calls=5, per_seconds=1.0)
        ),
        retry=RetryPolicy(total=3),
        cache=CacheConfig(backend="memory", should_cache=cache_predicate),
        default_headers={
            "User-Agent": f"studiocat/0.1 ({contact})",
            "Accept": "application/sparql-results+json",
        },
    )
    return WikidataConfig(resilience=resilience, endpoint=endpoint, language=language)
