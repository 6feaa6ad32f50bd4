"""
medterm - Result Cache
======================

Bounded, time-expiring memo store shared by the text-annotation and
structured-data schema layers.

- Entries expire ``ttl_seconds`` after insertion and are never returned stale.
- Before inserting, a cache filled past ``sweep_threshold`` sweeps expired
  entries, then evicts oldest-inserted entries until there is room.
- Reads and writes go through ``copy.deepcopy`` so callers never share
  state with the stored value.

Usage:
    from medterm.core.cache import ResultCache, make_cache_key

    cache = ResultCache("schema", ttl_seconds=600, max_size=500)
    key = make_cache_key("schema", title, locale)
    schema = cache.get_or_compute(key, lambda: build_schema(...))
"""

import copy
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class CacheEntry(Generic[T]):
    """Cache entry stamped with its insertion time."""
    value: T
    created_at: float


def make_cache_key(*parts: Any) -> Optional[str]:
    """
    Build a stable key from the semantic inputs of a computation.

    Returns None when the parts cannot be serialized; callers treat that
    as a forced cache miss.
    """
    try:
        payload = json.dumps(parts, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        logger.warning(f"Unserializable cache key parts, bypassing cache: {e}")
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ResultCache(Generic[T]):
    """
    TTL cache with a hard entry limit and oldest-first eviction.

    Eviction order is insertion time, not last access.
    """

    def __init__(self,
                 name: str,
                 ttl_seconds: float,
                 max_size: int,
                 sweep_threshold: float = 0.8,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize result cache.

        Args:
            name: Label used in logs and stats
            ttl_seconds: Time to live of each entry
            max_size: Maximum number of entries
            sweep_threshold: Occupancy ratio that triggers an expired sweep
            clock: Monotonic time source in seconds
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.sweep_threshold = sweep_threshold
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _is_fresh(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.created_at < self.ttl_seconds

    def get(self, key: Optional[str]) -> Optional[T]:
        """Get a copy of a fresh value, or None."""
        if key is None:
            return None

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if self._is_fresh(entry, self._clock()):
                    self._hits += 1
                    return copy.deepcopy(entry.value)

                # Expired - remove
                del self._entries[key]
                self._expirations += 1

            self._misses += 1
            return None

    def put(self, key: Optional[str], value: T) -> None:
        """Store a copy of value under key, making room first."""
        if key is None:
            return

        with self._lock:
            now = self._clock()
            # Re-insert at the end so dict order tracks insertion time
            self._entries.pop(key, None)

            if len(self._entries) > self.max_size * self.sweep_threshold:
                self._sweep_expired(now)

            overflow = len(self._entries) - self.max_size + 1
            if overflow > 0:
                self._evict_oldest(overflow)

            self._entries[key] = CacheEntry(value=copy.deepcopy(value), created_at=now)

    def get_or_compute(self, key: Optional[str], compute_fn: Callable[[], T]) -> T:
        """
        Return the cached value for key, computing and storing it on miss.

        A None key (malformed inputs) always recomputes without caching.
        """
        if key is None:
            logger.warning(f"[{self.name}] no cache key, computing without cache")
            return compute_fn()

        cached = self.get(key)
        if cached is not None:
            logger.debug(f"[{self.name}] cache hit")
            return cached

        value = compute_fn()
        self.put(key, value)
        return value

    def _sweep_expired(self, now: float) -> int:
        expired = [k for k, entry in self._entries.items() if not self._is_fresh(entry, now)]
        for k in expired:
            del self._entries[k]
        self._expirations += len(expired)
        if expired:
            logger.debug(f"[{self.name}] swept {len(expired)} expired entries")
        return len(expired)

    def _evict_oldest(self, count: int) -> None:
        oldest = sorted(self._entries.items(), key=lambda item: item[1].created_at)[:count]
        for k, _ in oldest:
            del self._entries[k]
        self._evictions += len(oldest)
        logger.debug(f"[{self.name}] evicted {len(oldest)} oldest entries")

    def evict_expired(self) -> int:
        """Remove expired entries. Returns count of evicted."""
        with self._lock:
            return self._sweep_expired(self._clock())

    def clear(self) -> None:
        """Clear all cached items."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._expirations = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._is_fresh(entry, self._clock())

    @property
    def hit_rate(self) -> float:
        """Cache hit rate."""
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0

    def stats(self) -> Dict[str, Any]:
        """Return cache statistics."""
        return {
            "name": self.name,
            "size": len(self._entries),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "expirations": self._expirations,
            "hit_rate": self.hit_rate,
        }
