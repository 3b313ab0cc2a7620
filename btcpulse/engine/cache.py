"""
TTL cache with stale-serve-on-error for slow-changing market metadata.
"""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar, Union

from ..utils.logger import get_logger, log_event

T = TypeVar("T")

TTL = Union[float, timedelta]


def cache_key(source: str, parameter: str) -> str:
    """Key for one (source, parameter) pair, e.g. ``coinlore:btc-market-usd``."""
    return f"{source}:{parameter}"


def _seconds(ttl: TTL) -> float:
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and when it was fetched (clock seconds)."""

    value: T
    fetched_at: float
    ttl: float
    stale: bool = False

    def is_fresh(self, now: float, ttl: Optional[float] = None) -> bool:
        return now - self.fetched_at < (self.ttl if ttl is None else ttl)


class MarketDataCache:
    """
    Async TTL cache that prefers a stale value over a failure.

    Entries are replaced on a successful refresh and kept (marked stale) when
    a refresh fails. Overlapping refreshes of the same key are not
    deduplicated; the last one to finish wins.
    """

    def __init__(
        self,
        default_ttl: TTL = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            default_ttl: TTL used when ``get`` is called without one (seconds or timedelta)
            clock: Monotonic time source in seconds
        """
        self.default_ttl = _seconds(default_ttl)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.logger = get_logger("engine.cache")
        self._hits = 0
        self._misses = 0
        self._stale_serves = 0

    async def get(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl: Optional[TTL] = None,
        force_refresh: bool = False,
    ) -> T:
        """
        Return the cached value for ``key``, refreshing it through ``fetch`` when due.

        Args:
            key: Cache key, see ``cache_key``
            fetch: Zero-argument coroutine function producing a fresh value
            ttl: Staleness threshold for this lookup (defaults to ``default_ttl``)
            force_refresh: Bypass a fresh entry and fetch anyway

        Returns:
            The fresh value, or the previous value if the refresh failed

        Raises:
            Exception: Whatever ``fetch`` raised, when no previous entry exists
        """
        ttl_seconds = self.default_ttl if ttl is None else _seconds(ttl)
        entry = self._entries.get(key)

        if entry is not None and not force_refresh and entry.is_fresh(self._clock(), ttl_seconds):
            self._hits += 1
            log_event(self.logger, "cache.hit", logging.DEBUG, key=key)
            return entry.value

        self._misses += 1
        try:
            value = await fetch()
        except Exception as e:
            # Re-read: another refresh may have landed while this one was in flight
            previous = self._entries.get(key)
            if previous is None:
                log_event(self.logger, "cache.refresh_failed", logging.ERROR, key=key, error=e)
                raise
            previous.stale = True
            self._stale_serves += 1
            log_event(
                self.logger, "cache.stale_served", logging.WARNING,
                key=key, age=round(self._clock() - previous.fetched_at, 1), error=e,
            )
            return previous.value

        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock(), ttl=ttl_seconds)
        log_event(self.logger, "cache.refreshed", logging.DEBUG, key=key)
        return value

    def peek(self, key: str) -> Optional[CacheEntry]:
        """The current entry for ``key`` without fetching, or None."""
        return self._entries.get(key)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        return {
            "total_entries": len(self._entries),
            "stale_entries": sum(1 for e in self._entries.values() if e.stale),
            "hits": self._hits,
            "misses": self._misses,
            "stale_serves": self._stale_serves,
            "default_ttl_seconds": self.default_ttl,
        }
