"""Core service for monitoring and analyzing cache performance.

Hit and miss counters are owned here but are not collected automatically:
whoever reads from the cache must call ``record_hit``/``record_miss`` after
each lookup. Everything else is derived from the CacheManager's introspection
operations (``keys``, ``ttl``, ``get``).
"""

import json
import logging
from threading import Lock
from typing import List, Tuple

from pocketcache.domain.models.common import CATEGORY_PREFIX, PRODUCT_PREFIX, TTL_EXPIRED, TTL_NO_EXPIRY
from pocketcache.domain.models.stats import CacheStats
from pocketcache.infrastructure.cache.cache_manager import CacheManager

logger = logging.getLogger(__name__)

# Health / recommendation thresholds
LOW_HIT_RATE = 30.0
TARGET_HIT_RATE = 50.0
HIGH_HIT_RATE = 70.0
MIN_REQUESTS_FOR_HIT_RATE = 10
EXPIRED_RATIO_WARNING = 0.3
SIZE_WARNING_BYTES = 500_000
SIZE_CRITICAL_BYTES = 1_000_000
MAX_PRODUCT_KEYS = 50

BYTES_PER_CHAR = 2  # Size estimate assumes a fixed-width two-byte encoding


def format_bytes(size: int) -> str:
    """Formats a byte count as B, KB or MB."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def describe_ttl(ttl: int) -> str:
    """Human-readable form of a ttl() result."""
    if ttl == TTL_NO_EXPIRY:
        return "No expiry"
    if ttl == TTL_EXPIRED:
        return "EXPIRED"
    return f"{ttl // 60_000} min remaining"


class CacheStatistics:
    """Tracks hit/miss counters and derives health metrics for a cache."""

    def __init__(self, cache_manager: CacheManager):
        self.cache_manager = cache_manager
        self._lock = Lock()
        self.cache_hits = 0
        self.cache_misses = 0
        self.total_requests = 0

    def record_hit(self) -> None:
        with self._lock:
            self.cache_hits += 1
            self.total_requests += 1

    def record_miss(self) -> None:
        with self._lock:
            self.cache_misses += 1
            self.total_requests += 1

    def reset_counters(self) -> None:
        with self._lock:
            self.cache_hits = 0
            self.cache_misses = 0
            self.total_requests = 0

    def counters(self) -> Tuple[int, int, int]:
        """Hits, misses and total requests read together under the lock."""
        with self._lock:
            return self.cache_hits, self.cache_misses, self.total_requests

    def estimate_size(self) -> int:
        """Approximate size in bytes of all enumerable keys and their values.

        Values are read through ``get``, so expired keys are evicted by this pass.
        """
        total = 0
        for key in self.cache_manager.keys("*"):
            value = self.cache_manager.get(key)
            if value is not None:
                total += BYTES_PER_CHAR * (len(key) + len(value))
        return total

    def _snapshot(self) -> Tuple[CacheStats, Tuple[int, int, int]]:
        counters = self.counters()
        hits, _, total_requests = counters
        all_keys = self.cache_manager.keys("*")
        product_keys = self.cache_manager.keys(PRODUCT_PREFIX)
        category_keys = self.cache_manager.keys(CATEGORY_PREFIX)
        expired = sum(1 for key in all_keys if self.cache_manager.ttl(key) == TTL_EXPIRED)

        stats = CacheStats(
            total_keys=len(all_keys),
            product_keys=len(product_keys),
            category_keys=len(category_keys),
            expired_keys=expired,
            cache_hit_rate=hits / total_requests * 100 if total_requests else 0.0,
            total_size=self.estimate_size(),
        )
        return stats, counters

    def get_stats(self) -> CacheStats:
        """Takes a snapshot of the cache contents and counters."""
        return self._snapshot()[0]

    def _score(self, stats: CacheStats, total_requests: int) -> int:
        score = 100

        if stats.cache_hit_rate < TARGET_HIT_RATE and total_requests > MIN_REQUESTS_FOR_HIT_RATE:
            score -= int(TARGET_HIT_RATE - stats.cache_hit_rate)

        expired_ratio = stats.expired_keys / stats.total_keys * 100 if stats.total_keys > 0 else 0.0
        score -= int(expired_ratio / 2)

        if stats.total_size > SIZE_CRITICAL_BYTES:
            score -= 20
        elif stats.total_size > SIZE_WARNING_BYTES:
            score -= 10

        return max(0, min(100, score))

    def get_health_score(self) -> int:
        """Cache health from 0 to 100 based on hit rate, expired ratio and size."""
        stats, (_, _, total_requests) = self._snapshot()
        return self._score(stats, total_requests)

    def analyze_and_recommend(self) -> List[str]:
        """Advisory messages for the current cache state. No action is taken."""
        recommendations: List[str] = []
        stats, (_, _, total_requests) = self._snapshot()

        if stats.cache_hit_rate < LOW_HIT_RATE and total_requests > MIN_REQUESTS_FOR_HIT_RATE:
            recommendations.append(
                f"Low cache hit rate ({stats.cache_hit_rate:.2f}%). "
                "Consider increasing TTL or pre-caching popular items."
            )
        elif stats.cache_hit_rate > HIGH_HIT_RATE:
            recommendations.append(f"Excellent cache hit rate ({stats.cache_hit_rate:.2f}%)!")

        if stats.expired_keys > stats.total_keys * EXPIRED_RATIO_WARNING:
            recommendations.append(
                f"{stats.expired_keys} expired keys found. Run cleanup to free storage."
            )

        if stats.total_size > SIZE_WARNING_BYTES:
            recommendations.append(
                f"Cache size is {format_bytes(stats.total_size)}. Consider cleanup or shorter TTL."
            )

        if stats.total_keys == 0 and total_requests > 0:
            recommendations.append(
                f"Cache is empty despite {total_requests} requests. Verify caching logic."
            )

        if stats.product_keys > MAX_PRODUCT_KEYS:
            recommendations.append(
                f"{stats.product_keys} individual products cached. Consider category-based caching."
            )

        return recommendations

    def top_keys(self, limit: int = 5) -> List[Tuple[str, int]]:
        """First ``limit`` keys with their current ttl()."""
        return [(key, self.cache_manager.ttl(key)) for key in self.cache_manager.keys("*")[:limit]]

    def log_detailed_stats(self, top_n: int = 5) -> None:
        """Writes a statistics report to the log."""
        stats, (hits, misses, total_requests) = self._snapshot()
        logger.info("=== Cache statistics ===")
        logger.info(f"Total keys: {stats.total_keys}")
        logger.info(f"Product keys: {stats.product_keys}")
        logger.info(f"Category keys: {stats.category_keys}")
        logger.info(f"Expired keys: {stats.expired_keys}")
        logger.info(f"Total requests: {total_requests}")
        logger.info(f"Cache hits: {hits}")
        logger.info(f"Cache misses: {misses}")
        logger.info(f"Hit rate: {stats.cache_hit_rate:.2f}%")
        logger.info(f"Estimated size: {format_bytes(stats.total_size)}")
        logger.info(f"Top {top_n} cached keys:")
        for key, ttl in self.top_keys(top_n):
            logger.info(f"  {key} -> {describe_ttl(ttl)}")

    def export_as_json(self) -> str:
        """Serializes one snapshot plus counters and health score for reporting."""
        stats, (hits, misses, total) = self._snapshot()
        report = {
            "totalKeys": stats.total_keys,
            "productKeys": stats.product_keys,
            "categoryKeys": stats.category_keys,
            "expiredKeys": stats.expired_keys,
            "cacheHitRate": stats.cache_hit_rate,
            "totalSize": stats.total_size,
            "cacheHits": hits,
            "cacheMisses": misses,
            "totalRequests": total,
            "healthScore": self._score(stats, total),
        }
        return json.dumps(report, indent=4)
