import sqlite3
import threading
from pathlib import Path

import pytest

from pocketcache.domain.interfaces.key_value_store import StorageError
from pocketcache.infrastructure.cache.cache_manager import CacheManager
from pocketcache.infrastructure.serialization.json_serializer import JsonSerializer
from pocketcache.infrastructure.storage.disk_store import DiskStore


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "store"


@pytest.fixture
def disk_store(store_dir: Path):
    store = DiskStore(store_dir)
    yield store
    store.close()


def test_creates_missing_directory(disk_store: DiskStore, store_dir: Path):
    assert store_dir.is_dir()


def test_put_get_remove(disk_store: DiskStore):
    disk_store.put("a", "1")
    assert disk_store.get("a") == "1"
    disk_store.remove("a")
    assert disk_store.get("a") is None
    # removing again is a no-op
    disk_store.remove("a")


def test_all_keys_and_clear(disk_store: DiskStore):
    disk_store.put("a", "1")
    disk_store.put("a_expiry", "123")
    disk_store.put("b", "2")
    assert disk_store.all_keys() == {"a", "a_expiry", "b"}

    disk_store.clear()
    assert disk_store.all_keys() == set()


def test_values_survive_reopen(store_dir: Path):
    """Records written by one process are visible to the next."""
    first = DiskStore(store_dir)
    first.put("counter", "41")
    first.close()

    second = DiskStore(store_dir)
    try:
        assert second.get("counter") == "41"
    finally:
        second.close()


def test_transaction_groups_writes(disk_store: DiskStore):
    with disk_store.transaction():
        disk_store.put("k", "v")
        disk_store.put("k_expiry", "999")
    assert disk_store.get("k") == "v"
    assert disk_store.get("k_expiry") == "999"


def test_read_failure_raises_storage_error(disk_store: DiskStore, mocker):
    mocker.patch.object(disk_store._cache, "get", side_effect=sqlite3.OperationalError("disk I/O error"))
    with pytest.raises(StorageError, match="disk I/O error"):
        disk_store.get("a")


def test_write_failure_raises_storage_error(disk_store: DiskStore, mocker):
    mocker.patch.object(disk_store._cache, "set", side_effect=OSError("No space left on device"))
    with pytest.raises(StorageError, match="key: a"):
        disk_store.put("a", "1")


def test_unusable_directory_raises_storage_error(tmp_path: Path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied", encoding="utf-8")
    with pytest.raises(StorageError):
        DiskStore(blocker / "store")


def test_concurrent_increments_over_disk_store(disk_store: DiskStore):
    cache = CacheManager(disk_store, JsonSerializer())
    thread_count = 20
    start = threading.Barrier(thread_count, timeout=10)
    errors = []

    def worker():
        start.wait()
        try:
            cache.increment("shared")
        except StorageError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(thread_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert cache.get("shared") == "20"
