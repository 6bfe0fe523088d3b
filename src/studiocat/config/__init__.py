"""Application configuration helpers."""

from __future__ import annotations

from studiocat.common.logging import configure_logging

from .env import env_flag, optional_env_var, require_env_vars
from .errors import ConfigurationError, ConfigurationFileError, MissingConfigurationError
from .file import get_config_path, load_config_file
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .matching import (
    FoundedYearPolicy,
    MatchingConfig,
    MatchThresholds,
    MatchWeights,
    get_matching_config,
)
from .sources import DEFAULT_SOURCES, RateLimitConfig, SourceConfig, get_source_configs
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .wikidata import WikidataConfig, get_wikidata_config

__all__ = [
    "DEFAULT_SOURCES",
    "CacheConfig",
    "ConfigurationError",
    "ConfigurationFileError",
    "DatabaseConfig",
    "FoundedYearPolicy",
    "MatchThresholds",
    "MatchWeights",
    "MatchingConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RateLimitConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "SourceConfig",
    "StorageConfig",
    "WikidataConfig",
    "configure_logging",
    "env_flag",
    "get_config_path",
    "get_database_config",
    "get_matching_config",
    "get_source_configs",
    "get_storage_config",
    "get_wikidata_config",
    "load_config_file",
    "optional_env_var",
    "require_env_vars",
]
