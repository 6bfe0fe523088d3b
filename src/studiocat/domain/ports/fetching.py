"""Port for external studio data providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from studiocat.domain.model import IngestionJob, RawEntity


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceInfo:
    id: str
    name: str
    description: str = ""
    estimated_count: int | None = None
    data_quality: float = 0.5


class SourceUnavailableError(RuntimeError):
    """Raised when a provider cannot be reached or refuses the request."""


@runtime_checkable
class DataSource(Protocol):
    """Provider of raw studio records for one source id."""

    async def fetch_data(self, job: IngestionJob) -> Sequence[RawEntity]:
        """Return the records for ``job``; may honour ``job.options``."""
        ...

    async def test_connection(self) -> bool: ...

    def get_source_info(self) -> SourceInfo: ...


__all__ = ["DataSource", "SourceInfo", "SourceUnavailableError"]
