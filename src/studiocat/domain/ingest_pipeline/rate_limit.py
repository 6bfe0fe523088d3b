"""Per-source sliding-window rate limiting for ingestion jobs."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from studiocat.config.sources import RateLimitConfig

    Clock: TypeAlias = Callable[[], float]
    Sleeper: TypeAlias = Callable[[float], Awaitable[None]]

log = logging.getLogger(__name__)


class RateLimiter:
    """Allow at most ``requests`` calls per sliding ``window`` for each source.

    ``wait`` records one call. Waiters for the same source are served one at a
    time, so concurrent jobs against one provider share a single budget.
    Sources without a configured limit are not throttled.
    """

    def __init__(
        self,
        limits: Mapping[str, RateLimitConfig],
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._limits = dict(limits)
        self._clock = clock
        self._sleep = sleep
        self._timestamps: dict[str, deque[float]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def limit_for(self, source_id: str) -> RateLimitConfig | None:
        return self._limits.get(source_id)

    async def wait(self, source_id: str) -> None:
        limit = self._limits.get(source_id)
        if limit is None:
            return

        lock = self._locks.setdefault(source_id, asyncio.Lock())
        async with lock:
            timestamps = self._timestamps.setdefault(source_id, deque())
            window = limit.window_seconds
            now = self._clock()
            _prune(timestamps, now, window)
            while len(timestamps) >= limit.requests:
                # after pruning the oldest entry is younger than the window, so delay > 0
                delay = window - (now - timestamps[0])
                log.debug("Rate limit reached for %s, sleeping %.3fs", source_id, delay)
                await self._sleep(delay)
                now = self._clock()
                _prune(timestamps, now, window)
            timestamps.append(now)

    def in_window(self, source_id: str) -> int:
        """Number of calls currently counted against ``source_id``."""

        timestamps = self._timestamps.get(source_id)
        limit = self._limits.get(source_id)
        if not timestamps or limit is None:
            return 0
        _prune(timestamps, self._clock(), limit.window_seconds)
        return len(timestamps)


def _prune(timestamps: deque[float], now: float, window: float) -> None:
    while timestamps and now - timestamps[0] >= window:
        timestamps.popleft()
