"""Registry of configured sources and their provider implementations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .rate_limit import RateLimiter

if TYPE_CHECKING:
    from collections.abc import Iterable

    from studiocat.config.sources import SourceConfig
    from studiocat.domain.ports import DataSource, SourceInfo

log = logging.getLogger(__name__)


class UnknownSourceError(LookupError):
    """Raised for a source id that is not configured."""

    def __init__(self, source_id: str) -> None:
        super().__init__(f"Unknown data source: {source_id!r}")
        self.source_id = source_id


class SourceDisabledError(RuntimeError):
    """Raised when a configured source is disabled, lacks credentials or has no provider."""

    def __init__(self, source_id: str, reason: str) -> None:
        super().__init__(f"Data source {source_id!r} is not available: {reason}")
        self.source_id = source_id
        self.reason = reason


class IngestionRegistry:
    """Explicit mapping from source id to configuration and provider.

    The registry owns the shared ``RateLimiter`` so every job for one source
    draws from the same budget.
    """

    def __init__(
        self,
        configs: Mapping[str, SourceConfig] | Iterable[SourceConfig],
        *,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        items = configs.values() if isinstance(configs, Mapping) else configs
        self._configs: dict[str, SourceConfig] = {config.id: config for config in items}
        self._sources: dict[str, DataSource] = {}
        self.rate_limiter = rate_limiter or RateLimiter(
            {source_id: config.rate_limit for source_id, config in self._configs.items()}
        )

    def register(self, source_id: str, source: DataSource) -> None:
        if source_id not in self._configs:
            raise UnknownSourceError(source_id)
        if source_id in self._sources:
            log.info("Replacing provider registered for %s", source_id)
        self._sources[source_id] = source

    def config_for(self, source_id: str) -> SourceConfig:
        try:
            return self._configs[source_id]
        except KeyError:
            raise UnknownSourceError(source_id) from None

    def source_for(self, source_id: str) -> DataSource:
        """Return the provider for an available source or raise why it cannot run."""

        config = self.config_for(source_id)
        if not config.enabled:
            raise SourceDisabledError(source_id, "disabled by configuration")
        if not config.available:
            raise SourceDisabledError(source_id, f"missing {config.api_key_env}")
        source = self._sources.get(source_id)
        if source is None:
            raise SourceDisabledError(source_id, "no provider registered")
        return source

    def is_registered(self, source_id: str) -> bool:
        return source_id in self._sources

    @property
    def configs(self) -> list[SourceConfig]:
        return sorted(self._configs.values(), key=lambda config: (-config.priority, config.id))

    @property
    def source_priorities(self) -> dict[str, int]:
        return {source_id: config.priority for source_id, config in self._configs.items()}

    @property
    def source_quality(self) -> dict[str, float]:
        return {source_id: config.data_quality for source_id, config in self._configs.items()}

    def list_sources(self) -> list[SourceInfo]:
        """Info for every source that currently has a provider, highest priority first."""

        return [
            self._sources[config.id].get_source_info()
            for config in self.configs
            if config.id in self._sources
        ]
