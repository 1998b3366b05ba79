"""Cache Manager Implementation.

Redis-style semantics (TTL, prefix scan, atomic counters, typed product
helpers) layered on a KeyValueStore.
Bounded Context: Cache Management
"""

from .cache_manager import (
    CacheManager,
    get_cache_manager,
    init_cache_manager,
    shutdown_cache_manager,
)

__all__ = ["CacheManager", "init_cache_manager", "get_cache_manager", "shutdown_cache_manager"]
