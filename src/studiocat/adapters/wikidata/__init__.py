"""Wikidata SPARQL adapter."""

from __future__ import annotations

from .client import WikidataAPIError, WikidataClient, build_studio_query, should_cache_payload
from .source import WikidataDataSource
from .translator import translate_bindings

__all__ = [
    "WikidataAPIError",
    "WikidataClient",
    "WikidataDataSource",
    "build_studio_query",
    "should_cache_payload",
    "translate_bindings",
]
