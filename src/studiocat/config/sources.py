"""Per-source ingestion settings: priority, rate limits and availability."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from .env import env_flag, optional_env_var
from .errors import ConfigurationError
from .file import read_bool, read_float, read_int, read_str, section

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Sliding-window budget: at most ``requests`` calls per ``window_ms``."""

    requests: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.requests <= 0:
            raise ConfigurationError("Rate limit requests must be positive")
        if self.window_ms <= 0:
            raise ConfigurationError("Rate limit window must be positive")

    @property
    def window_seconds(self) -> float:
        return self.window_ms / 1000


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceConfig:
    id: str
    name: str
    priority: int
    rate_limit: RateLimitConfig
    enabled: bool = True
    data_quality: float = 0.5
    description: str = ""
    api_key_env: str | None = None
    api_key: str | None = None
    options: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not 0.0 <= self.data_quality <= 1.0:
            raise ConfigurationError(
                f"data_quality for source {self.id!r} must be within [0, 1]"
            )

    @property
    def requires_api_key(self) -> bool:
        return self.api_key_env is not None

    @property
    def available(self) -> bool:
        """Enabled and, where an API key is required, configured with one."""

        if not self.enabled:
            return False
        return not self.requires_api_key or bool(self.api_key)


DEFAULT_SOURCES: Final[tuple[SourceConfig, ...]] = (
    SourceConfig(
        id="manual",
        name="Manual curation",
        description="Hand-curated studio records imported from JSON files",
        priority=100,
        rate_limit=RateLimitConfig(requests=1000, window_ms=1000),
        data_quality=0.95,
    ),
    SourceConfig(
        id="wikidata",
        name="Wikidata",
        description="Video game developers from the Wikidata SPARQL endpoint",
        priority=80,
        rate_limit=RateLimitConfig(requests=5, window_ms=1000),
        data_quality=0.85,
    ),
    SourceConfig(
        id="igdb",
        name="IGDB",
        description="Internet Game Database companies",
        priority=70,
        rate_limit=RateLimitConfig(requests=4, window_ms=1000),
        data_quality=0.8,
        api_key_env="IGDB_API_KEY",
    ),
    SourceConfig(
        id="steam",
        name="Steam",
        description="Developers listed on the Steam store",
        priority=50,
        rate_limit=RateLimitConfig(requests=200, window_ms=300_000),
        data_quality=0.7,
    ),
    SourceConfig(
        id="public-apis",
        name="Public game APIs",
        description="Community game listings from free public APIs",
        priority=30,
        rate_limit=RateLimitConfig(requests=60, window_ms=60_000),
        data_quality=0.5,
    ),
)


def env_prefix(source_id: str) -> str:
    return "STUDIOCAT_" + source_id.upper().replace("-", "_")


def get_source_configs(
    document: Mapping[str, object] | None = None,
) -> dict[str, SourceConfig]:
    """Return source settings keyed by id, highest priority first.

    Defaults are overlaid with the ``[sources.<id>]`` tables of ``document``
    and then with ``STUDIOCAT_<ID>_ENABLED`` and API key environment variables.
    """

    overrides = section(document or {}, "sources")
    configs: dict[str, SourceConfig] = {source.id: source for source in DEFAULT_SOURCES}

    for source_id in overrides:
        table = section(overrides, source_id)
        base = configs.get(source_id)
        configs[source_id] = _apply_table(source_id, base, table)

    resolved = [_apply_environment(config) for config in configs.values()]
    resolved.sort(key=lambda config: (-config.priority, config.id))
    return {config.id: config for config in resolved}


def _apply_table(
    source_id: str,
    base: SourceConfig | None,
    table: Mapping[str, object],
) -> SourceConfig:
    if base is None:
        if "priority" not in table:
            raise ConfigurationError(f"New source {source_id!r} must declare a priority")
        base = SourceConfig(
            id=source_id,
            name=source_id,
            priority=0,
            rate_limit=RateLimitConfig(requests=1, window_ms=1000),
        )

    rate_table = section(table, "rate_limit")
    rate_limit = base.rate_limit
    if rate_table:
        rate_limit = RateLimitConfig(
            requests=read_int(rate_table, "requests", base.rate_limit.requests),
            window_ms=read_int(rate_table, "window_ms", base.rate_limit.window_ms),
        )

    options = dict(base.options)
    options.update(section(table, "options"))

    api_key_env = table.get("api_key_env", base.api_key_env)
    if api_key_env is not None and not isinstance(api_key_env, str):
        raise ConfigurationError(f"api_key_env for source {source_id!r} must be a string")

    return replace(
        base,
        name=read_str(table, "name", base.name),
        description=read_str(table, "description", base.description),
        priority=read_int(table, "priority", base.priority),
        enabled=read_bool(table, "enabled", base.enabled),
        data_quality=read_float(table, "data_quality", base.data_quality),
        rate_limit=rate_limit,
        api_key_env=api_key_env,
        options=MappingProxyType(options),
    )


def _apply_environment(config: SourceConfig) -> SourceConfig:
    enabled = env_flag(f"{env_prefix(config.id)}_ENABLED")
    api_key = optional_env_var(config.api_key_env) if config.api_key_env else None
    return replace(
        config,
        enabled=config.enabled if enabled is None else enabled,
        api_key=api_key or config.api_key,
    )
