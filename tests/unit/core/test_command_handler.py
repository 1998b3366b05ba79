import pytest
from unittest.mock import MagicMock, call

from pocketcache.core.command_handler import CommandHandler
from pocketcache.core.services.cache_statistics import CacheStatistics
from pocketcache.core.services.catalog_service import CATEGORIES, CatalogService
from pocketcache.domain.interfaces.key_value_store import StorageError
from pocketcache.domain.interfaces.product_source import ProductSourceError
from pocketcache.domain.interfaces.user_interface import UserInterface
from pocketcache.domain.models.stats import CacheStats
from pocketcache.infrastructure.cache.cache_manager import CacheManager


@pytest.fixture
def mock_cache_manager():
    return MagicMock(spec=CacheManager)


@pytest.fixture
def mock_statistics():
    stats = MagicMock(spec=CacheStatistics)
    stats.counters.return_value = (0, 0, 0)
    return stats


@pytest.fixture
def mock_catalog_service():
    service = MagicMock(spec=CatalogService)
    service.max_product_id = 20
    return service


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def command_handler(mock_cache_manager, mock_statistics, mock_catalog_service, mock_ui):
    """Fixture to create CommandHandler with mocked services."""
    return CommandHandler(
        cache_manager=mock_cache_manager,
        statistics=mock_statistics,
        catalog_service=mock_catalog_service,
        ui=mock_ui,
    )


# --- raw cache commands ---

def test_handle_set_with_ttl(command_handler: CommandHandler, mock_cache_manager: MagicMock, mock_ui: MagicMock):
    assert command_handler.handle_set("k", "v", 1000) is True
    mock_cache_manager.set.assert_called_once_with("k", "v", 1000)
    mock_ui.display_info.assert_called_once_with("Stored 'k' (expires in 1000 ms).")


def test_handle_get_hit(command_handler, mock_cache_manager, mock_statistics, mock_ui):
    mock_cache_manager.get.return_value = "hello"
    assert command_handler.handle_get("k") is True
    mock_statistics.record_hit.assert_called_once()
    mock_statistics.record_miss.assert_not_called()
    mock_ui.display_output.assert_called_once_with("hello")


def test_handle_get_miss(command_handler, mock_cache_manager, mock_statistics, mock_ui):
    mock_cache_manager.get.return_value = None
    assert command_handler.handle_get("k") is True
    mock_statistics.record_miss.assert_called_once()
    mock_ui.display_info.assert_called_once_with("Key 'k' not found.")


def test_handle_delete(command_handler, mock_cache_manager, mock_ui):
    command_handler.handle_delete(["a", "b"])
    mock_cache_manager.delete.assert_called_once_with("a", "b")
    mock_ui.display_info.assert_called_once_with("Deleted 2 key(s).")


@pytest.mark.parametrize("ttl, expected", [
    (-1, "-1 (No expiry)"),
    (-2, "-2 (EXPIRED)"),
    (180_000, "180000 (3 min remaining)"),
])
def test_handle_ttl(command_handler, mock_cache_manager, mock_ui, ttl, expected):
    mock_cache_manager.ttl.return_value = ttl
    command_handler.handle_ttl("k")
    mock_ui.display_output.assert_called_once_with(expected)


def test_handle_expire_missing_key_warns(command_handler, mock_cache_manager, mock_ui):
    mock_cache_manager.expire.return_value = False
    assert command_handler.handle_expire("k", 500) is True
    mock_ui.display_warning.assert_called_once_with("Key 'k' does not exist; expiry not set.")


def test_handle_increment_and_decrement(command_handler, mock_cache_manager, mock_ui):
    mock_cache_manager.increment.return_value = 3
    mock_cache_manager.decrement.return_value = 1
    command_handler.handle_increment("c", 2)
    command_handler.handle_decrement("c", 2)
    mock_cache_manager.increment.assert_called_once_with("c", 2)
    mock_cache_manager.decrement.assert_called_once_with("c", 2)
    assert mock_ui.display_output.call_args_list == [call("3"), call("1")]


def test_handle_keys_table(command_handler, mock_cache_manager, mock_ui):
    mock_cache_manager.keys.return_value = ["a", "b"]
    mock_cache_manager.ttl.side_effect = [-1, -2]
    command_handler.handle_keys("*")
    mock_ui.display_table.assert_called_once_with(
        "Keys matching '*'", ["Key", "TTL"], [("a", "No expiry"), ("b", "EXPIRED")]
    )


def test_handle_keys_none_match(command_handler, mock_cache_manager, mock_ui):
    mock_cache_manager.keys.return_value = []
    command_handler.handle_keys("user:")
    mock_ui.display_info.assert_called_once_with("No keys match 'user:'.")


def test_handle_keys_rejects_glob(command_handler, mock_cache_manager, mock_ui):
    """Errors raised by the cache are displayed, not propagated."""
    mock_cache_manager.keys.side_effect = ValueError("Only literal prefix patterns are supported")
    assert command_handler.handle_keys("a?") is False
    mock_ui.display_error.assert_called_once_with("keys failed: Only literal prefix patterns are supported")


def test_storage_error_is_displayed(command_handler, mock_cache_manager, mock_ui):
    mock_cache_manager.set.side_effect = StorageError("disk full")
    assert command_handler.handle_set("k", "v") is False
    mock_ui.display_error.assert_called_once_with("set failed: disk full")
    mock_ui.display_info.assert_not_called()


def test_handle_flush_and_cleanup(command_handler, mock_cache_manager, mock_ui):
    mock_cache_manager.cleanup_expired_keys.return_value = 4
    command_handler.handle_flush()
    command_handler.handle_cleanup()
    mock_cache_manager.flush_all.assert_called_once()
    assert mock_ui.display_info.call_args_list == [call("All keys removed."), call("Removed 4 expired key(s).")]


# --- statistics commands ---

def test_handle_stats(command_handler, mock_statistics, mock_ui):
    mock_statistics.get_stats.return_value = CacheStats(
        total_keys=3, product_keys=1, category_keys=1, expired_keys=0, cache_hit_rate=50.0, total_size=2048,
    )
    mock_statistics.counters.return_value = (4, 4, 8)
    command_handler.handle_stats()

    title, columns, rows = mock_ui.display_table.call_args.args
    assert title == "Cache statistics"
    assert columns == ["Metric", "Value"]
    assert ("Total requests", 8) in rows
    assert ("Cache hits", 4) in rows
    assert ("Hit rate", "50.00%") in rows
    assert ("Estimated size", "2.00 KB") in rows
    mock_statistics.log_detailed_stats.assert_called_once()


def test_handle_health(command_handler, mock_statistics, mock_ui):
    mock_statistics.get_health_score.return_value = 85
    command_handler.handle_health()
    mock_ui.display_output.assert_called_once_with("85/100", title="Cache health")


def test_handle_recommend(command_handler, mock_statistics, mock_ui):
    mock_statistics.analyze_and_recommend.return_value = ["first", "second"]
    command_handler.handle_recommend()
    assert mock_ui.display_output.call_args_list == [call("- first"), call("- second")]


def test_handle_recommend_when_healthy(command_handler, mock_statistics, mock_ui):
    mock_statistics.analyze_and_recommend.return_value = []
    command_handler.handle_recommend()
    mock_ui.display_info.assert_called_once_with("No recommendations; the cache looks healthy.")


def test_handle_export_stats(command_handler, mock_statistics, mock_ui):
    mock_statistics.export_as_json.return_value = '{"totalKeys": 0}'
    command_handler.handle_export_stats()
    mock_ui.display_output.assert_called_once_with('{"totalKeys": 0}')


# --- catalog commands ---

def test_handle_categories(command_handler, mock_ui):
    command_handler.handle_categories()
    mock_ui.display_table.assert_called_once_with("Categories", ["Category"], [(c,) for c in CATEGORIES])


def test_handle_category(command_handler, mock_catalog_service, mock_ui, product_factory):
    mock_catalog_service.products_in_category.return_value = [product_factory(9, price=12.5)]
    command_handler.handle_category("electronics")
    mock_ui.display_table.assert_called_once_with(
        "Products in 'electronics'", ["ID", "Title", "Price"], [(9, "Product 9", "$12.5")]
    )


def test_handle_category_empty(command_handler, mock_catalog_service, mock_ui):
    mock_catalog_service.products_in_category.return_value = []
    command_handler.handle_category("toys")
    mock_ui.display_warning.assert_called_once_with("No products found in category 'toys'.")


def test_handle_product_invalid_id(command_handler, mock_catalog_service, mock_ui):
    mock_catalog_service.validate_product_id.return_value = None
    assert command_handler.handle_product("99") is False
    mock_ui.display_error.assert_called_once_with("Invalid product ID. Enter a number between 1 and 20.")
    mock_catalog_service.product_by_id.assert_not_called()


def test_handle_product_found(command_handler, mock_catalog_service, mock_ui, product_factory):
    product = product_factory(4)
    mock_catalog_service.validate_product_id.return_value = 4
    mock_catalog_service.product_by_id.return_value = product
    mock_catalog_service.format_product.return_value = "formatted"

    assert command_handler.handle_product("4") is True
    mock_catalog_service.product_by_id.assert_called_once_with(4)
    mock_ui.display_output.assert_called_once_with("formatted", title="Product 4")


def test_handle_product_not_found(command_handler, mock_catalog_service, mock_ui):
    mock_catalog_service.validate_product_id.return_value = 4
    mock_catalog_service.product_by_id.return_value = None
    command_handler.handle_product("4")
    mock_ui.display_warning.assert_called_once_with("Product 4 not found.")


def test_handle_product_source_error(command_handler, mock_catalog_service, mock_ui):
    mock_catalog_service.validate_product_id.return_value = 4
    mock_catalog_service.product_by_id.side_effect = ProductSourceError("catalog unreadable")
    assert command_handler.handle_product("4") is False
    mock_ui.display_error.assert_called_once_with("product failed: catalog unreadable")
