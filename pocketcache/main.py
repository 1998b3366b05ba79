"""Main entry point for the pocketcache application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.

The cache manager is created once per invocation in the root callback, which
also sweeps expired keys; the sweep runs again and the store is closed when
the command finishes.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from typing_extensions import Annotated

from pocketcache.core.command_handler import CommandHandler
from pocketcache.core.services.cache_statistics import CacheStatistics
from pocketcache.core.services.catalog_service import CatalogService
from pocketcache.domain.interfaces.key_value_store import StorageError
from pocketcache.infrastructure.cache.cache_manager import init_cache_manager, shutdown_cache_manager
from pocketcache.infrastructure.catalog.json_product_source import JsonProductSource
from pocketcache.infrastructure.cli.display import ConsoleDisplay
from pocketcache.infrastructure.config.settings import (
    get_cache_dir,
    get_config,
    get_default_ttl_ms,
    get_max_product_id,
    get_products_file,
    load_configuration,
)
from pocketcache.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, resolve_log_level, setup_logging
from pocketcache.infrastructure.serialization.json_serializer import JsonSerializer
from pocketcache.infrastructure.storage.disk_store import DiskStore

logger = logging.getLogger(__name__)


def create_dependencies(cache_dir: Optional[Path] = None, verbose: bool = False) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one CLI invocation.

    This acts as the Composition Root. Every setting is resolved before the
    store is opened.

    Raises:
        ValueError: If a configured value has the wrong type.
        StorageError: If the cache store cannot be opened.
    """
    load_configuration()
    setup_logging(
        log_level=resolve_log_level(get_config('logging.level'), verbose=verbose),
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
    )
    store_dir = cache_dir or get_cache_dir()
    products_file = get_products_file()
    ttl_ms = get_default_ttl_ms()
    max_product_id = get_max_product_id()

    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()
    dependencies['store'] = DiskStore(store_dir)
    dependencies['serializer'] = JsonSerializer()
    dependencies['cache_manager'] = init_cache_manager(dependencies['store'], dependencies['serializer'])
    dependencies['statistics'] = CacheStatistics(dependencies['cache_manager'])
    dependencies['product_source'] = JsonProductSource(products_file)
    dependencies['catalog_service'] = CatalogService(
        cache_manager=dependencies['cache_manager'],
        product_source=dependencies['product_source'],
        statistics=dependencies['statistics'],
        ttl_ms=ttl_ms,
        max_product_id=max_product_id,
    )
    dependencies['command_handler'] = CommandHandler(
        cache_manager=dependencies['cache_manager'],
        statistics=dependencies['statistics'],
        catalog_service=dependencies['catalog_service'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="pocketcache",
    help="pocketcache: a local Redis-style cache with expiring keys, counters and health statistics.",
    add_completion=False,
    no_args_is_help=True,
)


def _handler(ctx: typer.Context) -> CommandHandler:
    return ctx.obj['command_handler']


def _finish(ok: bool) -> None:
    if not ok:
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    cache_dir: Annotated[
        Optional[Path],
        typer.Option("--cache-dir", "-d", help="Directory of the cache store (overrides configuration).")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Opens the cache store and sweeps expired keys before running a command."""
    # Runs even when dependency setup fails part-way
    ctx.call_on_close(shutdown_cache_manager)
    try:
        ctx.obj = create_dependencies(cache_dir=cache_dir, verbose=verbose)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}", exc_info=True)
        ConsoleDisplay().display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)
    except StorageError as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        ConsoleDisplay().display_error(f"Cannot open cache store: {e}")
        raise typer.Exit(code=1)
    ctx.obj['cache_manager'].cleanup_expired_keys()


TtlOption = Annotated[Optional[int], typer.Option("--ttl", "-t", min=0, help="Time to live in milliseconds.")]


@app.command(name="set")
def set_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Key to store the value under.")],
    value: Annotated[str, typer.Argument(help="Value to store.")],
    ttl: TtlOption = None,
):
    """Store a value, optionally expiring after --ttl milliseconds."""
    _finish(_handler(ctx).handle_set(key, value, ttl))


@app.command(name="get")
def get_command(ctx: typer.Context, key: Annotated[str, typer.Argument(help="Key to read.")]):
    """Print the value stored under a key."""
    _finish(_handler(ctx).handle_get(key))


@app.command(name="delete")
def delete_command(ctx: typer.Context, keys: Annotated[List[str], typer.Argument(help="Keys to delete.")]):
    """Delete one or more keys."""
    _finish(_handler(ctx).handle_delete(keys))


@app.command(name="ttl")
def ttl_command(ctx: typer.Context, key: Annotated[str, typer.Argument(help="Key to inspect.")]):
    """Show remaining time to live (-1: no expiry, -2: expired)."""
    _finish(_handler(ctx).handle_ttl(key))


@app.command(name="expire")
def expire_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Existing key.")],
    ttl: Annotated[int, typer.Argument(min=0, help="Time to live in milliseconds.")],
):
    """Set a new expiry on an existing key."""
    _finish(_handler(ctx).handle_expire(key, ttl))


@app.command(name="incr")
def incr_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Counter key.")],
    delta: Annotated[int, typer.Option("--by", "-b", help="Amount to add.")] = 1,
):
    """Atomically increment an integer counter."""
    _finish(_handler(ctx).handle_increment(key, delta))


@app.command(name="decr")
def decr_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Counter key.")],
    delta: Annotated[int, typer.Option("--by", "-b", help="Amount to subtract.")] = 1,
):
    """Atomically decrement an integer counter."""
    _finish(_handler(ctx).handle_decrement(key, delta))


@app.command(name="keys")
def keys_command(
    ctx: typer.Context,
    pattern: Annotated[str, typer.Argument(help="Literal key prefix; a trailing '*' is ignored.")] = "*",
):
    """List keys by literal prefix (no general glob matching)."""
    _finish(_handler(ctx).handle_keys(pattern))


@app.command(name="flush")
def flush_command(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """Remove every key from the cache."""
    if not yes:
        typer.confirm("Remove every key from the cache?", abort=True)
    _finish(_handler(ctx).handle_flush())


@app.command(name="cleanup")
def cleanup_command(ctx: typer.Context):
    """Remove all expired keys now."""
    _finish(_handler(ctx).handle_cleanup())


@app.command(name="stats")
def stats_command(ctx: typer.Context):
    """Show cache statistics."""
    _finish(_handler(ctx).handle_stats())


@app.command(name="health")
def health_command(ctx: typer.Context):
    """Show the cache health score (0-100)."""
    _finish(_handler(ctx).handle_health())


@app.command(name="recommend")
def recommend_command(ctx: typer.Context):
    """Show advisory recommendations for the cache."""
    _finish(_handler(ctx).handle_recommend())


@app.command(name="export-stats")
def export_stats_command(ctx: typer.Context):
    """Print statistics, counters and health score as JSON."""
    _finish(_handler(ctx).handle_export_stats())


@app.command(name="categories")
def categories_command(ctx: typer.Context):
    """List the product categories that can be browsed."""
    _finish(_handler(ctx).handle_categories())


@app.command(name="category")
def category_command(ctx: typer.Context, name: Annotated[str, typer.Argument(help="Category name.")]):
    """Browse the products of a category (cache first)."""
    _finish(_handler(ctx).handle_category(name))


@app.command(name="product")
def product_command(ctx: typer.Context, product_id: Annotated[str, typer.Argument(help="Product ID.")]):
    """Show one product's details (cache first)."""
    _finish(_handler(ctx).handle_product(product_id))


def cli_entry_point():
    """Function called by the console script entry point in pyproject.toml."""
    try:
        app()
    except StorageError as e:
        print(f"FATAL storage error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli_entry_point()
