"""SQLAlchemy persistence adapter for the studio catalog."""

from __future__ import annotations

from .engine import (
    StartupError,
    configured_engine,
    create_catalog_engine,
    is_started,
    session_factory,
    shutdown,
    startup,
)
from .mappings import merge_history_table, metadata, studio_table
from .repositories import SqlAlchemyCatalogRepository

__all__ = [
    "SqlAlchemyCatalogRepository",
    "StartupError",
    "configured_engine",
    "create_catalog_engine",
    "is_started",
    "merge_history_table",
    "metadata",
    "session_factory",
    "shutdown",
    "startup",
    "studio_table",
]
