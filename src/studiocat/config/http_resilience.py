"""Retry, throttling and caching settings for remote studio providers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import httpx

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .sources import RateLimitConfig

ShouldCacheHook = Callable[[object], bool]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 1.0
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    # SPARQL queries go out as GET or form-encoded POST; both are read-only
    allowed_methods: frozenset[str] = field(default_factory=lambda: frozenset({"GET", "POST"}))
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 0.5

    def __post_init__(self) -> None:
        if self.total < 0:
            raise ConfigurationError("Retry total must not be negative")


@dataclass(slots=True, frozen=True)
class RateLimit:
    """Client-side request budget handed to ``aiolimiter``."""

    max_calls: int
    per_seconds: float

    def __post_init__(self) -> None:
        if self.max_calls <= 0 or self.per_seconds <= 0:
            raise ConfigurationError("HTTP rate limit must be positive")

    @classmethod
    def from_source_limit(cls, limit: RateLimitConfig) -> RateLimit:
        """Same budget as the source's ingestion limit, in aiolimiter terms."""

        return cls(max_calls=limit.requests, per_seconds=limit.window_seconds)


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = 6 * 60 * 60
    refresh_ttl_on_access: bool = False
    # decoded JSON body -> whether the response may be stored
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 60.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = field(default_factory=CacheConfig)
    default_headers: Mapping[str, str] | None = None
