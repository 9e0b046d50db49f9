"""
Selector cache backends
"""

from ..config import CacheConfig, CacheType
from .base import SelectorCache
from .file_cache import FileCache
from .memory_cache import MemoryCache


def create_cache(config: CacheConfig) -> SelectorCache:
    """Build the cache backend named by `config.type`"""
    if config.type == CacheType.PERSISTENT_FILE:
        return FileCache(
            cache_dir=config.cache_directory,
            max_size=config.max_size,
            ttl_ms=config.expire_after_write_ms,
        )
    return MemoryCache(max_size=config.max_size, ttl_ms=config.expire_after_write_ms)


__all__ = ["SelectorCache", "MemoryCache", "FileCache", "create_cache"]
