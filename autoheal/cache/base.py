"""
Selector Cache contract

Maps cache keys (`selector|description`) to CachedSelector entries.
Implementations must be safe under concurrent get/put/update_success:
a put overwrites (last writer wins) and counter updates are serialized.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import CacheMetrics, CachedSelector


class SelectorCache(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[CachedSelector]:
        """Live entry for `key`; expired entries are evicted and count as a miss"""

    @abstractmethod
    def put(self, key: str, entry: CachedSelector):
        ...

    @abstractmethod
    def remove(self, key: str) -> bool:
        ...

    @abstractmethod
    def clear_all(self):
        """Drop every entry and reset the lifetime counters"""

    @abstractmethod
    def size(self) -> int:
        ...

    @abstractmethod
    def update_success(self, key: str, success: bool):
        """Record an observation on an existing entry; unknown keys are ignored"""

    @abstractmethod
    def evict_expired(self) -> int:
        """Drop expired entries, returning how many were removed"""

    @abstractmethod
    def get_metrics(self) -> CacheMetrics:
        ...

    def __len__(self) -> int:
        return self.size()


def hit_rate(hits: int, misses: int) -> float:
    total = hits + misses
    return hits / total if total else 0.0
