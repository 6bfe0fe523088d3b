"""Ports connecting the domain to providers and storage."""

from __future__ import annotations

from .fetching import DataSource, SourceInfo, SourceUnavailableError
from .persistence import CatalogRepository, DuplicateEntityError

__all__ = [
    "CatalogRepository",
    "DataSource",
    "DuplicateEntityError",
    "SourceInfo",
    "SourceUnavailableError",
]
