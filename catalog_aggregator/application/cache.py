"""Result cache for aggregation payloads.

Provides:
- Process-wide memoization keyed by normalized request shape
- Fixed time-to-live checked at read time
- Last-writer-wins replacement for concurrent writes

There is no invalidation on upstream writes; staleness up to the TTL is
accepted.
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from catalog_aggregator.domain.models import CacheEntry

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


class ResultCache:
    """In-memory TTL cache for aggregation results.

    Entries are immutable and replaced on every put. Expired entries are
    evicted lazily when read; there is no background sweep.
    """

    def __init__(self, ttl_seconds: float = 60.0, clock: Clock = utc_now) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Time-to-live for entries in seconds.
            clock: Source of the current time.
        """
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        """Get a live entry.

        Args:
            key: Cache key.

        Returns:
            Entry if present and not older than the TTL, None otherwise.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._clock() - entry.created_at > self.ttl:
                # Only evict the entry we judged stale.
                if self._entries.get(key) is entry:
                    del self._entries[key]
                logger.debug("Cache entry expired", cache_key=key)
                return None

            return entry

    def put(self, key: str, payload: Any) -> CacheEntry:
        """Store a payload, replacing any existing entry.

        Args:
            key: Cache key.
            payload: Aggregation payload.

        Returns:
            The new entry.
        """
        entry = CacheEntry(key=key, payload=payload, created_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Get number of stored entries, including stale ones."""
        with self._lock:
            return len(self._entries)


# Global cache instance
_result_cache: ResultCache | None = None
_result_cache_lock = threading.Lock()


def get_result_cache(ttl_seconds: float | None = None) -> ResultCache:
    """Get the process-wide result cache.

    Args:
        ttl_seconds: TTL used when the cache is first created.

    Returns:
        ResultCache instance.
    """
    global _result_cache
    if _result_cache is None:
        with _result_cache_lock:
            if _result_cache is None:
                if ttl_seconds is None:
                    from catalog_aggregator.infrastructure.config import settings

                    ttl_seconds = settings.cache_ttl_seconds
                _result_cache = ResultCache(ttl_seconds=ttl_seconds)
    return _result_cache
