"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work to
the CacheManager and the application services (CatalogService,
CacheStatistics) and presents results through the UserInterface.

Each ``handle_*`` method returns True on success and False when it reported
an error, so the CLI can turn failures into a non-zero exit code.
"""

import logging
from typing import Callable, Optional, Sequence

from pocketcache.core.services.cache_statistics import CacheStatistics, describe_ttl, format_bytes
from pocketcache.core.services.catalog_service import CATEGORIES, CatalogService
from pocketcache.domain.interfaces.key_value_store import StorageError
from pocketcache.domain.interfaces.product_source import ProductSourceError
from pocketcache.domain.interfaces.user_interface import UserInterface
from pocketcache.infrastructure.cache.cache_manager import CacheManager

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to the cache and services."""

    def __init__(
        self,
        cache_manager: CacheManager,
        statistics: CacheStatistics,
        catalog_service: CatalogService,
        ui: UserInterface,
    ):
        self.cache_manager = cache_manager
        self.statistics = statistics
        self.catalog_service = catalog_service
        self.ui = ui

    def _run(self, command: str, action: Callable[[], None]) -> bool:
        try:
            action()
            return True
        except (StorageError, ProductSourceError, ValueError) as e:
            logger.error(f"'{command}' command failed: {e}", exc_info=True)
            self.ui.display_error(f"{command} failed: {e}")
            return False

    # --- Raw cache commands ---

    def handle_set(self, key: str, value: str, ttl_ms: Optional[int] = None) -> bool:
        def action():
            self.cache_manager.set(key, value, ttl_ms)
            suffix = f" (expires in {ttl_ms} ms)" if ttl_ms is not None else ""
            self.ui.display_info(f"Stored '{key}'{suffix}.")
        return self._run("set", action)

    def handle_get(self, key: str) -> bool:
        def action():
            value = self.cache_manager.get(key)
            if value is None:
                self.statistics.record_miss()
                self.ui.display_info(f"Key '{key}' not found.")
            else:
                self.statistics.record_hit()
                self.ui.display_output(value)
        return self._run("get", action)

    def handle_delete(self, keys: Sequence[str]) -> bool:
        def action():
            self.cache_manager.delete(*keys)
            self.ui.display_info(f"Deleted {len(keys)} key(s).")
        return self._run("delete", action)

    def handle_ttl(self, key: str) -> bool:
        def action():
            ttl = self.cache_manager.ttl(key)
            self.ui.display_output(f"{ttl} ({describe_ttl(ttl)})")
        return self._run("ttl", action)

    def handle_expire(self, key: str, ttl_ms: int) -> bool:
        def action():
            if self.cache_manager.expire(key, ttl_ms):
                self.ui.display_info(f"Key '{key}' now expires in {ttl_ms} ms.")
            else:
                self.ui.display_warning(f"Key '{key}' does not exist; expiry not set.")
        return self._run("expire", action)

    def handle_increment(self, key: str, delta: int = 1) -> bool:
        return self._run("incr", lambda: self.ui.display_output(str(self.cache_manager.increment(key, delta))))

    def handle_decrement(self, key: str, delta: int = 1) -> bool:
        return self._run("decr", lambda: self.ui.display_output(str(self.cache_manager.decrement(key, delta))))

    def handle_keys(self, pattern: str) -> bool:
        def action():
            keys = self.cache_manager.keys(pattern)
            if not keys:
                self.ui.display_info(f"No keys match '{pattern}'.")
                return
            rows = [(key, describe_ttl(self.cache_manager.ttl(key))) for key in keys]
            self.ui.display_table(f"Keys matching '{pattern}'", ["Key", "TTL"], rows)
        return self._run("keys", action)

    def handle_flush(self) -> bool:
        def action():
            self.cache_manager.flush_all()
            self.ui.display_info("All keys removed.")
        return self._run("flush", action)

    def handle_cleanup(self) -> bool:
        def action():
            removed = self.cache_manager.cleanup_expired_keys()
            self.ui.display_info(f"Removed {removed} expired key(s).")
        return self._run("cleanup", action)

    # --- Statistics commands ---

    def handle_stats(self) -> bool:
        def action():
            stats = self.statistics.get_stats()
            hits, misses, total_requests = self.statistics.counters()
            rows = [
                ("Total keys", stats.total_keys),
                ("Product keys", stats.product_keys),
                ("Category keys", stats.category_keys),
                ("Expired keys", stats.expired_keys),
                ("Total requests", total_requests),
                ("Cache hits", hits),
                ("Cache misses", misses),
                ("Hit rate", f"{stats.cache_hit_rate:.2f}%"),
                ("Estimated size", format_bytes(stats.total_size)),
            ]
            self.ui.display_table("Cache statistics", ["Metric", "Value"], rows)
            self.statistics.log_detailed_stats()
        return self._run("stats", action)

    def handle_health(self) -> bool:
        return self._run("health", lambda: self.ui.display_output(
            f"{self.statistics.get_health_score()}/100", title="Cache health"))

    def handle_recommend(self) -> bool:
        def action():
            recommendations = self.statistics.analyze_and_recommend()
            if not recommendations:
                self.ui.display_info("No recommendations; the cache looks healthy.")
            for recommendation in recommendations:
                self.ui.display_output(f"- {recommendation}")
        return self._run("recommend", action)

    def handle_export_stats(self) -> bool:
        return self._run("export-stats", lambda: self.ui.display_output(self.statistics.export_as_json()))

    # --- Catalog browsing commands ---

    def handle_categories(self) -> bool:
        return self._run("categories", lambda: self.ui.display_table(
            "Categories", ["Category"], [(c,) for c in CATEGORIES]))

    def handle_category(self, category: str) -> bool:
        def action():
            products = self.catalog_service.products_in_category(category)
            if not products:
                self.ui.display_warning(f"No products found in category '{category}'.")
                return
            rows = [(p.id, p.title, f"${p.price}") for p in products]
            self.ui.display_table(f"Products in '{category}'", ["ID", "Title", "Price"], rows)
        return self._run("category", action)

    def handle_product(self, raw_id: str) -> bool:
        product_id = self.catalog_service.validate_product_id(raw_id)
        if product_id is None:
            self.ui.display_error(
                f"Invalid product ID. Enter a number between 1 and {self.catalog_service.max_product_id}.")
            return False

        def action():
            product = self.catalog_service.product_by_id(product_id)
            if product is None:
                self.ui.display_warning(f"Product {product_id} not found.")
                return
            self.ui.display_output(self.catalog_service.format_product(product), title=f"Product {product.id}")
        return self._run("product", action)
