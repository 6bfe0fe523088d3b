"""Ingestion pipeline: rate limiting, normalization and job scheduling.

A job fetches raw records from one registered source, normalizes each record
into a catalog candidate and hands it to the reconciliation core. The
scheduler owns job lifecycle and error accounting; the registry owns source
configuration and the shared rate limiter.
"""

from __future__ import annotations

from .normalization import NormalizationError, NormalizationPipeline
from .rate_limit import RateLimiter
from .registry import IngestionRegistry, SourceDisabledError, UnknownSourceError
from .scheduler import IngestionJobScheduler

__all__ = [
    "IngestionJobScheduler",
    "IngestionRegistry",
    "NormalizationError",
    "NormalizationPipeline",
    "RateLimiter",
    "SourceDisabledError",
    "UnknownSourceError",
]
