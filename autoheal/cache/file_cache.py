"""
File Cache - persistent JSON store

The whole cache lives in a single JSON document (`selectors.json`)
mapping cache key -> {selector, timestamp, success_count, failure_count}.
It is loaded wholesale at startup, dropping expired entries, and rewritten
wholesale before every mutating call returns. Write cost therefore grows
with the size of the cache.

At capacity the oldest inserted entry is evicted (insertion order, not LRU).
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from ..models import CacheMetrics, CachedSelector, now_ms
from .base import SelectorCache, hit_rate

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "selectors.json"
DEFAULT_CACHE_DIR = "./autoheal-cache"
DEFAULT_MAX_SIZE = 10000
DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


class FileCache(SelectorCache):
    """Selector cache that survives process restarts"""

    def __init__(
        self,
        cache_dir: Union[str, Path] = DEFAULT_CACHE_DIR,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_ms: int = DEFAULT_TTL_MS
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.cache_dir = Path(cache_dir)
        self.cache_file = self.cache_dir / CACHE_FILE_NAME
        self.max_size = max_size
        self.ttl_ms = ttl_ms

        self._entries: Dict[str, CachedSelector] = {}
        self._lock = threading.RLock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._load()

    def _load(self):
        """Load entries from disk, skipping expired ones"""
        if not self.cache_file.exists():
            logger.info(f"[FILE-CACHE] No existing cache file, starting empty at: {self.cache_dir}")
            return

        try:
            data = json.loads(self.cache_file.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            entries = {key: CachedSelector.from_dict(value) for key, value in data.items()}
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"[FILE-CACHE] Failed to load cache from {self.cache_file}, starting empty: {e}")
            return

        now = now_ms()
        expired = 0
        for key, entry in entries.items():
            if entry.is_expired(self.ttl_ms, now):
                expired += 1
                continue
            self._entries[key] = entry

        logger.info(
            f"[FILE-CACHE] Loaded {len(self._entries)} entries from {self.cache_file}, "
            f"{expired} expired entries skipped"
        )

    def _save(self):
        """Rewrite the cache file. Caller holds the lock."""
        data = {key: entry.to_dict() for key, entry in self._entries.items()}
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            # Write atomically
            temp_file = self.cache_file.with_suffix(".tmp")
            temp_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
            temp_file.replace(self.cache_file)
        except OSError as e:
            logger.error(f"[FILE-CACHE] Failed to save cache to disk: {e}")

    def get(self, key: str) -> Optional[CachedSelector]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"[FILE-CACHE] Cache MISS: {key}")
                return None

            if entry.is_expired(self.ttl_ms):
                del self._entries[key]
                self._evictions += 1
                self._misses += 1
                self._save()
                logger.debug(f"[FILE-CACHE] Cache EXPIRED: {key}")
                return None

            self._hits += 1
            logger.debug(f"[FILE-CACHE] Cache HIT: {key}")
            return entry

    def put(self, key: str, entry: CachedSelector):
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                self._evictions += 1
                logger.debug(f"[FILE-CACHE] Evicted oldest entry: {oldest_key}")

            self._entries[key] = entry
            self._save()

        expiry_hours = round(self.ttl_ms / (60 * 60 * 1000))
        logger.debug(f"[FILE-CACHE] Cache STORED: {key} (expires in {expiry_hours} hours)")

    def remove(self, key: str) -> bool:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._save()
            return True

    def clear_all(self):
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._save()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def update_success(self, key: str, success: bool):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return
            entry.update_success(success)
            self._save()

    def evict_expired(self) -> int:
        now = now_ms()
        with self._lock:
            expired = [k for k, v in self._entries.items() if v.is_expired(self.ttl_ms, now)]
            for key in expired:
                del self._entries[key]
            self._evictions += len(expired)
            if expired:
                self._save()

        if expired:
            logger.info(f"[FILE-CACHE] Evicted {len(expired)} expired cache entries")
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
