"""
In-process TTL cache.

Design:
- TTL support with expiration checked on read
- Thread-safe operations (FastAPI runs sync handlers in a thread pool)
- Maximum entry limit with oldest-first eviction
- Injectable clock so expiry can be exercised without sleeping
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from files_manager.cache.base import KeyValueCache

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    """Cache entry with TTL support."""
    key: str
    value: str
    created_at: float
    expires_at: float = 0.0  # 0 = never expires

    def is_expired(self, now: float) -> bool:
        if self.expires_at == 0:
            return False
        return now >= self.expires_at


class MemoryCache(KeyValueCache):
    """
    Single-process cache backend.

    Only suitable when the API and the worker share one process (development,
    tests); multi-process deployments must use the Redis backend.

    When max_size is reached and no entry has expired, the oldest live entry
    is evicted. For session tokens this logs that user out before the TTL.
    """

    def __init__(
        self,
        max_size: int = 100000,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize TTL cache.

        Args:
            max_size: Maximum number of entries
            clock: Returns the current time in seconds
        """
        self._max_size = max_size
        self._clock = clock
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._clock()):
                del self._cache[key]
                return None

            return entry.value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            if len(self._cache) >= self._max_size and key not in self._cache:
                self.cleanup_expired()
                if len(self._cache) >= self._max_size:
                    self._evict_oldest()

            now = self._clock()
            self._cache[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                expires_at=now + ttl_seconds if ttl_seconds > 0 else 0,
            )

    def delete(self, key: str) -> bool:
        with self._lock:
            entry = self._cache.pop(key, None)
            if entry is None:
                return False
            return not entry.is_expired(self._clock())

    def is_alive(self) -> bool:
        return True

    def clear(self) -> None:
        """Clear all entries from cache."""
        with self._lock:
            self._cache.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired entries, returns count of removed entries."""
        with self._lock:
            now = self._clock()
            expired_keys = [k for k, v in self._cache.items() if v.is_expired(now)]
            for k in expired_keys:
                del self._cache[k]
            return len(expired_keys)

    def _evict_oldest(self) -> None:
        if not self._cache:
            return

        oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k].created_at)
        del self._cache[oldest_key]
        logger.warning(f"缓存已满 (max_size={self._max_size})，淘汰最早写入的未过期条目")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            now = self._clock()
            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "expired_count": sum(1 for e in self._cache.values() if e.is_expired(now)),
            }
