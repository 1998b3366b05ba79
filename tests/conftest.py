from pathlib import Path
from typing import List

import pytest
from typer.testing import CliRunner

from pocketcache.core.services.cache_statistics import CacheStatistics
from pocketcache.domain.models.product import Product, Rating
from pocketcache.infrastructure.cache import cache_manager as cache_manager_module
from pocketcache.infrastructure.cache.cache_manager import CacheManager
from pocketcache.infrastructure.config import settings
from pocketcache.infrastructure.serialization.json_serializer import JsonSerializer
from pocketcache.infrastructure.storage.memory_store import InMemoryStore


class FakeClock:
    """Manually advanced clock returning epoch milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def serializer() -> JsonSerializer:
    return JsonSerializer()


@pytest.fixture
def cache(memory_store: InMemoryStore, serializer: JsonSerializer, clock: FakeClock) -> CacheManager:
    """CacheManager over an in-memory store with a controllable clock."""
    return CacheManager(memory_store, serializer, clock=clock)


@pytest.fixture
def statistics(cache: CacheManager) -> CacheStatistics:
    return CacheStatistics(cache)


def make_product(product_id: int = 1, category: str = "electronics", **overrides) -> Product:
    fields = dict(
        id=product_id,
        title=f"Product {product_id}",
        price=9.99 + product_id,
        description=f"Description of product {product_id}",
        category=category,
        image=f"https://example.com/img/{product_id}.jpg",
        rating=Rating(rate=4.1, count=120 + product_id),
    )
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture
def product_factory():
    """Builds Product instances with predictable field values."""
    return make_product


@pytest.fixture
def sample_products() -> List[Product]:
    return [
        make_product(1, "men's clothing"),
        make_product(2, "men's clothing"),
        make_product(5, "jewelery"),
        make_product(9, "electronics"),
        make_product(15, "women's clothing"),
    ]


@pytest.fixture
def products_file(tmp_path: Path, sample_products: List[Product], serializer: JsonSerializer) -> Path:
    """Local catalog file in the same JSON shape the cache stores."""
    path = tmp_path / "products.json"
    path.write_text(serializer.serialize(sample_products), encoding="utf-8")
    return path


@pytest.fixture(scope="session")
def runner() -> CliRunner:
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, products_file: Path, monkeypatch):
    """Points the CLI at a temporary store and catalog via environment variables."""
    store_dir = tmp_path / "store"
    monkeypatch.setenv(settings.env_var_name("cache.directory"), str(store_dir))
    monkeypatch.setenv(settings.env_var_name("catalog.products_file"), str(products_file))
    monkeypatch.setattr(settings, "DEFAULT_CONFIG_FILE", tmp_path / "missing-config.yaml")
    settings.reset_configuration()
    yield store_dir
    settings.reset_configuration()


@pytest.fixture(autouse=True)
def reset_process_cache_manager():
    """Ensures no process-wide cache manager leaks between tests."""
    yield
    cache_manager_module.shutdown_cache_manager()
    settings.clear_test_config()

