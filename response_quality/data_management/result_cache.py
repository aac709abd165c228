"""Time-bounded cache of pipeline results.

Entries are keyed by ``(response_id, validation_level)`` and are valid for
``ttl_seconds`` after insertion. A background task started by ``start()``
sweeps expired entries every ``cleanup_interval_seconds``; ``sweep()`` can
also be called directly. The clock is injectable so expiry can be driven
deterministically.

Usage:
    from response_quality.data_management.result_cache import ResultCache

    cache = ResultCache(ttl_seconds=600)
    await cache.start()
    cache.set(("resp-1", ValidationLevel.STANDARD), result)
    hit = cache.get(("resp-1", ValidationLevel.STANDARD))
    await cache.stop()
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

from response_quality.utils.logging import get_structured_logger

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    timestamp: float


class ResultCache(Generic[T]):
    """In-memory TTL cache with an optional periodic sweeper.

    Concurrent writers to the same key race; the last write wins.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        cleanup_interval_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize ResultCache.

        Args:
            ttl_seconds: Lifetime of an entry.
            cleanup_interval_seconds: Period of the background sweep.
            clock: Returns the current time in seconds.
        """
        self.ttl_seconds = ttl_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[T]] = {}
        self._cleanup_task: Optional[asyncio.Task] = None
        self._logger = get_structured_logger("ResultCache")

    def get(self, key: Hashable) -> Optional[T]:
        """Return the cached value if present and within its TTL window."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            return None
        return entry.value

    def set(self, key: Hashable, value: T) -> None:
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())

    def invalidate(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            self._logger.debug("cache_swept", removed=len(expired), remaining=len(self._entries))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._expired(entry, self._clock())

    @property
    def running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    async def start(self) -> None:
        """Start the periodic sweep task."""
        if self.running:
            self._logger.warning("cache_cleanup_already_running")
            return

        async def cleanup() -> None:
            while True:
                try:
                    await asyncio.sleep(self.cleanup_interval_seconds)
                    self.sweep()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    self._logger.error("cache_cleanup_failed", error=str(e))

        self._cleanup_task = asyncio.create_task(cleanup())
        self._logger.info(
            "cache_cleanup_started",
            ttl_seconds=self.ttl_seconds,
            interval_seconds=self.cleanup_interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel the sweep task."""
        if self._cleanup_task and not self._cleanup_task.done():
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._logger.info("cache_cleanup_stopped")
        self._cleanup_task = None

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return entry.timestamp + self.ttl_seconds < now
