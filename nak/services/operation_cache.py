"""Operation cache for expensive check calls.

Memoizes results of tool-presence checks, update checks and similar checks
for a short TTL so menus can redraw without re-running subprocesses.
Failed operations are never cached.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from nak.core.lib_logger import get_logger

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """Single cache entry: when the value was stored, and the value."""

    key: str
    timestamp: int
    value: Any

    def is_live(self, now: int, ttl: int) -> bool:
        """An entry is valid while ``now - timestamp < ttl``."""
        return now - self.timestamp < ttl


class OperationCache:
    """Time-boxed memoization keyed by operation name.

    Entry presence is tracked by dict membership, so cached empty or falsy
    results still count as hits.
    """

    def __init__(self, default_ttl: int = 300, clock: Optional[Callable[[], float]] = None):
        """Initialize operation cache.

        Args:
            default_ttl: TTL in seconds used when a lookup does not pass one
            clock: Time source returning seconds, injectable for tests
        """
        self.default_ttl = default_ttl
        self._clock = clock or time.time
        self._cache: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._failures = 0

    def now(self) -> int:
        """Current time in whole seconds."""
        return int(self._clock())

    def lookup(self, key: str, ttl: Optional[int] = None) -> Tuple[Any, bool]:
        """Return ``(value, True)`` for a live entry, else ``(None, False)``."""
        ttl = self.default_ttl if ttl is None else ttl
        entry = self._cache.get(key)
        if entry is not None and entry.is_live(self.now(), ttl):
            return entry.value, True
        return None, False

    def get_or_execute(
        self,
        key: str,
        ttl: Optional[int],
        operation: Callable[..., Any],
        *args: Any,
        **kwargs: Any
    ) -> Tuple[Any, bool]:
        """Return a cached result or run ``operation`` and cache it.

        Args:
            key: Cache key
            ttl: Seconds an entry stays valid; None uses the default TTL
            operation: Callable invoked on a miss; raising means failure
            *args: Positional arguments for ``operation``

        Returns:
            ``(result, True)`` on hit or successful execution,
            ``(None, False)`` when the operation failed
        """
        value, found = self.lookup(key, ttl)
        if found:
            self._hits += 1
            logger.debug(f"Cache hit for {key}")
            return value, True

        self._misses += 1
        logger.debug(f"Cache miss for {key}, executing operation")

        try:
            result = operation(*args, **kwargs)
        except Exception as e:
            self._failures += 1
            logger.warning(f"Cached operation '{key}' failed: {e}")
            return None, False

        self.set(key, result)
        return result, True

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` with the current timestamp."""
        self._cache[key] = CacheEntry(key=key, timestamp=self.now(), value=value)

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it existed."""
        return self._cache.pop(key, None) is not None

    def clear(self) -> int:
        """Drop all entries and return how many were removed."""
        count = len(self._cache)
        self._cache.clear()
        logger.info(f"Operation cache cleared ({count} entries)")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache performance statistics."""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

        return {
            "entries": len(self._cache),
            "hits": self._hits,
            "misses": self._misses,
            "failures": self._failures,
            "hit_rate_percent": round(hit_rate, 1),
            "default_ttl": self.default_ttl
        }

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache
