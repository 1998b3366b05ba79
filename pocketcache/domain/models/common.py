"""Defines common Value Objects used across the cache and catalog contexts.

These objects represent simple values like cache keys, TTLs and product ids,
plus the key naming convention shared by every caller of the cache.
"""

from typing import NewType

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
CacheKey = NewType("CacheKey", str)            # Unique key for a cache entry
CachePrefix = NewType("CachePrefix", str)      # Literal prefix used by keys()
CacheValue = NewType("CacheValue", str)        # Opaque serialized payload
TtlMillis = NewType("TtlMillis", int)          # Duration or remaining time in ms
EpochMillis = NewType("EpochMillis", int)      # Absolute timestamp in ms
ProductId = NewType("ProductId", int)
CategoryName = NewType("CategoryName", str)

# === TTL sentinels ===
TTL_NO_EXPIRY = TtlMillis(-1)   # No expiry record for the key
TTL_EXPIRED = TtlMillis(-2)     # Expiry passed, entry may still be stored until swept

ONE_HOUR_MS = TtlMillis(60 * 60 * 1000)

# === Key namespace ===
PRODUCT_PREFIX = CachePrefix("product:")
CATEGORY_PREFIX = CachePrefix("category:")
ALL_PRODUCTS_KEY = CacheKey("products:all")


def product_key(product_id: int) -> CacheKey:
    """Key for a single cached product, e.g. ``product:7``."""
    return CacheKey(f"{PRODUCT_PREFIX}{int(product_id)}")


def category_key(category: str) -> CacheKey:
    """Key for the cached product list of a category, e.g. ``category:electronics``."""
    return CacheKey(f"{CATEGORY_PREFIX}{category}")
