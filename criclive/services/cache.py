"""In-memory caching service with per-entry TTL."""

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from cachetools import Cache, LRUCache

from criclive import config
from criclive.types import CacheStatsDict


@dataclass(frozen=True)
class CacheEntry:
    """A cached value with the time it was stored and the time it expires."""

    key: str
    value: Any
    cached_at: float
    expires_at: float

    @property
    def cached_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.cached_at, tz=timezone.utc)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheService:
    """Thread-safe in-memory cache where every key carries its own TTL.

    Expired entries read as absent and are evicted by the read that finds
    them expired. Until then they stay resident and count towards
    stats()["total"]. Entries are plain snapshots: a set() always overwrites.
    """

    def __init__(
        self,
        maxsize: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache store.

        Args:
            maxsize: Maximum resident entries, least recently used evicted first
            clock: Returns the current time in seconds (injectable for tests)
        """
        self._clock = clock
        self._store: LRUCache = LRUCache(maxsize=maxsize or config.CACHE_MAX_ENTRIES)
        # Lock for thread safety
        self._lock = threading.RLock()

    def set(self, key: str, value: Any, ttl_seconds: float) -> CacheEntry:
        """Store a value, replacing whatever was under the key.

        Args:
            key: The cache key
            value: The value to cache
            ttl_seconds: Seconds until the value expires, must be positive

        Returns:
            The stored entry
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            now = self._clock()
            entry = CacheEntry(key=key, value=value, cached_at=now, expires_at=now + ttl_seconds)
            self._store[key] = entry
            return entry

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Get the entry for a key, or None if never set or expired.

        An expired entry is evicted as a side effect.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._store[key]
                return None
            return entry

    def get(self, key: str) -> Optional[tuple[Any, datetime]]:
        """Get a value and the time it was cached.

        Args:
            key: The cache key

        Returns:
            (value, cached_at) or None if not found/expired
        """
        entry = self.get_entry(key)
        if entry is None:
            return None
        return entry.value, entry.cached_at_datetime

    def age(self, key: str) -> Optional[int]:
        """Seconds since the key was last set, or None if not found/expired."""
        entry = self.get_entry(key)
        if entry is None:
            return None
        return int(self._clock() - entry.cached_at)

    def delete(self, key: str) -> bool:
        """Delete a value from the cache.

        Returns:
            True if key was deleted, False if not found
        """
        with self._lock:
            if key in self._store:
                del self._store[key]
                return True
            return False

    def flush(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._store.clear()

    def stats(self) -> CacheStatsDict:
        """Count resident entries and those still unexpired.

        Read-only: nothing is evicted and recency order is left alone.
        """
        with self._lock:
            now = self._clock()
            # Cache.__getitem__ reads without touching LRU order
            entries = [Cache.__getitem__(self._store, key) for key in list(self._store)]
            active = sum(1 for entry in entries if not entry.is_expired(now))
            return {"total": len(entries), "active": active}
