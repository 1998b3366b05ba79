"""Core service for browsing the product catalog through the cache.

Every lookup checks the cache first and only goes to the ProductSource on a
miss, storing what it fetched for the next caller. Hits and misses are
reported to CacheStatistics here, since the cache does not count them itself.
"""

import logging
from typing import List, Optional

from pocketcache.core.services.cache_statistics import CacheStatistics
from pocketcache.domain.interfaces.product_source import ProductSource
from pocketcache.domain.models.common import ONE_HOUR_MS
from pocketcache.domain.models.product import Product
from pocketcache.infrastructure.cache.cache_manager import CacheManager

logger = logging.getLogger(__name__)

CATEGORIES = ("men's clothing", "women's clothing", "electronics", "jewelery")
MIN_PRODUCT_ID = 1
DEFAULT_MAX_PRODUCT_ID = 20


class CatalogService:
    """Cache-aside access to products and product categories."""

    def __init__(
        self,
        cache_manager: CacheManager,
        product_source: ProductSource,
        statistics: CacheStatistics,
        ttl_ms: int = ONE_HOUR_MS,
        max_product_id: int = DEFAULT_MAX_PRODUCT_ID,
    ):
        self.cache_manager = cache_manager
        self.product_source = product_source
        self.statistics = statistics
        self.ttl_ms = ttl_ms
        self.max_product_id = max_product_id

    def validate_product_id(self, raw: str) -> Optional[int]:
        """Parses a user-supplied product id, or returns None if it is out of range."""
        try:
            product_id = int(str(raw).strip())
        except ValueError:
            return None
        if MIN_PRODUCT_ID <= product_id <= self.max_product_id:
            return product_id
        return None

    def _all_products(self) -> List[Product]:
        products = self.cache_manager.get_all_cached_products()
        if products is not None:
            logger.debug("Using cached full product list.")
            return products
        products = self.product_source.get_all_products()
        self.cache_manager.cache_all_products(products, self.ttl_ms)
        logger.info(f"Cached full product list ({len(products)} products).")
        return products

    def products_in_category(self, category: str) -> List[Product]:
        """Products of one category, served from the cache when possible.

        Raises:
            ProductSourceError: If the cache misses and the source fails.
        """
        cached = self.cache_manager.get_cached_products_by_category(category)
        if cached is not None:
            self.statistics.record_hit()
            logger.info(f"Loaded category '{category}' from cache ({len(cached)} products).")
            return cached

        self.statistics.record_miss()
        logger.info(f"Cache miss for category: {category}, fetching from source")
        filtered = [p for p in self._all_products() if p.category == category]
        if filtered:
            self.cache_manager.cache_products_by_category(category, filtered, self.ttl_ms)
            logger.info(f"Cached {len(filtered)} products for category: {category}")
        return filtered

    def product_by_id(self, product_id: int) -> Optional[Product]:
        """One product, served from the cache when possible.

        Raises:
            ProductSourceError: If the cache misses and the source fails.
        """
        cached = self.cache_manager.get_cached_product(product_id)
        if cached is not None:
            self.statistics.record_hit()
            logger.info(f"Loaded product from cache: {cached.title}")
            return cached

        self.statistics.record_miss()
        logger.info(f"Cache miss for product ID: {product_id}, fetching from source")
        product = self.product_source.get_product(product_id)
        if product is not None:
            self.cache_manager.cache_product(product, self.ttl_ms)
            logger.info(f"Cached product: {product.title}")
        return product

    @staticmethod
    def format_product(product: Product) -> str:
        return "\n".join([
            f"Product: {product.title}",
            f"Price: ${product.price}",
            f"Description: {product.description}",
            f"Category: {product.category}",
            f"Rating: {product.rating.rate} ({product.rating.count} reviews)",
            f"Image: {product.image}",
        ])
