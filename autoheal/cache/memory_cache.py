"""
Memory Cache - bounded in-process LRU store

Entries expire a fixed time after they were written and the least
recently used entry is evicted once the store is at capacity. Nothing
survives the process.
"""

import logging
import threading
from collections import OrderedDict
from typing import Optional

from ..models import CacheMetrics, CachedSelector, now_ms
from .base import SelectorCache, hit_rate

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


class MemoryCache(SelectorCache):
    """Thread-safe LRU cache of healed selectors"""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, ttl_ms: int = DEFAULT_TTL_MS):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_ms = ttl_ms

        self._entries: "OrderedDict[str, CachedSelector]" = OrderedDict()
        self._lock = threading.RLock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[CachedSelector]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"[MEMORY-CACHE] Cache MISS: {key}")
                return None

            if entry.is_expired(self.ttl_ms):
                del self._entries[key]
                self._evictions += 1
                self._misses += 1
                logger.debug(f"[MEMORY-CACHE] Cache EXPIRED: {key}")
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            logger.debug(f"[MEMORY-CACHE] Cache HIT: {key}")
            return entry

    def put(self, key: str, entry: CachedSelector):
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self.max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"[MEMORY-CACHE] Evicted least recently used: {evicted_key}")
            self._entries[key] = entry

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear_all(self):
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def update_success(self, key: str, success: bool):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return
            entry.update_success(success)
            self._entries.move_to_end(key)

    def evict_expired(self) -> int:
        now = now_ms()
        with self._lock:
            expired = [k for k, v in self._entries.items() if v.is_expired(self.ttl_ms, now)]
            for key in expired:
                del self._entries[key]
            self._evictions += len(expired)

        if expired:
            logger.info(f"[MEMORY-CACHE] Evicted {len(expired)} expired cache entries")
        return len(expired)

    def get_metrics(self) -> CacheMetrics:
        with self._lock:
            return CacheMetrics(
                hit_count=self._hits,
                miss_count=self._misses,
                hit_rate=hit_rate(self._hits, self._misses),
                total_entries=len(self._entries),
                eviction_count=self._evictions,
            )
