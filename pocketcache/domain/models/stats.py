"""Snapshot model produced by the statistics layer."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time view of the cache contents.

    ``total_size`` is an estimate that assumes two bytes per stored character.
    """
    total_keys: int
    product_keys: int
    category_keys: int
    expired_keys: int
    cache_hit_rate: float
    total_size: int
