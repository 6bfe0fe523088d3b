"""Cross-cutting helpers shared by the application and adapters."""

from __future__ import annotations

from .logging import configure_logging, level_from_verbosity

__all__ = ["configure_logging", "level_from_verbosity"]
