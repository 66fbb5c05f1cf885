"""Main entry point for the feedcache application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from feedcache.core.command_handler import CommandHandler
from feedcache.core.services.feed_service import FeedService

# --- Domain Layer ---
from feedcache.domain.events.cache_events import DomainEvent
from feedcache.domain.exceptions import ConfigurationError
from feedcache.domain.models.common import CacheKey

# --- Infrastructure Layer ---
from feedcache.infrastructure.cache.caching_service import TieredCacheService
from feedcache.infrastructure.cli.display import ConsoleDisplay
from feedcache.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE,
    get_config,
    get_feed_cache_key,
    get_feed_loop_count,
    get_feed_source_path,
    load_backoff_policy,
    load_cache_settings,
    load_configuration,
)
from feedcache.infrastructure.content.json_source import JsonFileContentSource
from feedcache.infrastructure.monitoring.logger_setup import setup_logging
from feedcache.infrastructure.resilience.fetch_retry import FetchRetryService

logger = logging.getLogger(__name__)


def log_cache_event(event: DomainEvent) -> None:
    """Default cache event listener: trace every event at debug level."""
    logger.debug(f"EVENT: {event}")


# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    source_path: Optional[Path] = None,
    config_file: Path = DEFAULT_CONFIG_FILE,
    verbose: bool = False,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root. Exactly one cache instance is created
    and shared by every component that needs it.

    Raises:
        ConfigurationError: If the cache settings are invalid.
    """
    # 1. Load Configuration First
    load_configuration(config_file=config_file, force=True)
    log_level = "DEBUG" if verbose else get_config("logging.level", "WARNING")
    setup_logging(
        log_level=log_level,
        log_file=get_config("logging.file"),
        log_format=get_config("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
    )
    logger.info("Initializing application dependencies...")

    dependencies: Dict[str, Any] = {}
    settings = load_cache_settings()
    dependencies["settings"] = settings

    # 2. Infrastructure Adapters & Services
    dependencies["ui"] = ConsoleDisplay()
    dependencies["cache_service"] = TieredCacheService.from_settings(settings, event_listener=log_cache_event)

    # 3. Feed Service (only when a content source is available)
    source_path = source_path or get_feed_source_path()
    if source_path is not None:
        dependencies["feed_service"] = FeedService(
            cache_service=dependencies["cache_service"],
            content_source=JsonFileContentSource(source_path),
            retry_service=FetchRetryService.from_policy(load_backoff_policy()),
            cache_key=CacheKey(get_feed_cache_key()),
            loop_count=get_feed_loop_count(),
        )
    else:
        logger.info("No feed source configured; 'feed' command disabled.")
        dependencies["feed_service"] = None

    # 4. Command Handler
    dependencies["command_handler"] = CommandHandler(
        cache_service=dependencies["cache_service"],
        settings=settings,
        ui=dependencies["ui"],
        feed_service=dependencies["feed_service"],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


# Single instances of our services for the current invocation
_dependencies: Dict[str, Any] = {}

# --- Typer App Definition ---
app = typer.Typer(
    name="feedcache",
    help="feedcache: two-tier (memory + disk) content cache for the social feed.",
    add_completion=False,
    no_args_is_help=True,
)


def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs an async handler and maps a failed result to exit code 1."""
    ok = asyncio.run(coro)
    if not ok:
        raise typer.Exit(code=1)


def _handler() -> CommandHandler:
    return _dependencies["command_handler"]


@app.callback()
def main_callback(
    source: Annotated[
        Optional[Path],
        typer.Option("--source", "-s", dir_okay=False, resolve_path=True,
                     help="JSON file with posts used on a cache miss (overrides feed.source_path)."),
    ] = None,
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help="YAML configuration file."),
    ] = DEFAULT_CONFIG_FILE,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
):
    """Wires dependencies before any command runs."""
    try:
        _dependencies.clear()
        _dependencies.update(create_dependencies(source_path=source, config_file=config, verbose=verbose))
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        ConsoleDisplay().display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)


@app.command()
def feed(
    refresh: Annotated[bool, typer.Option("--refresh", "-r", help="Skip the cache and reload from the source.")] = False,
):
    """Load the feed (memory -> disk -> source) and list the posts."""
    run_async(_handler().handle_feed(refresh=refresh))


@app.command()
def get(
    key: Annotated[str, typer.Argument(help="Cache key, e.g. 'feed_posts'.")],
):
    """Print the cached JSON for a key, or report a miss."""
    run_async(_handler().handle_get(key))


@app.command()
def invalidate(
    key: Annotated[str, typer.Argument(help="Cache key to remove from both tiers.")],
):
    """Remove one key from the memory and disk tiers."""
    run_async(_handler().handle_invalidate(key))


@app.command()
def clear():
    """Remove every entry from both tiers."""
    run_async(_handler().handle_clear())


@app.command(name="memory-pressure")
def memory_pressure():
    """Simulate a low-memory signal: drop the memory tier."""
    if not _handler().handle_memory_pressure():
        raise typer.Exit(code=1)


@app.command()
def stats():
    """Show disk usage, budgets and hit/miss counters."""
    run_async(_handler().handle_stats())


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    try:
        app()
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    cli_entry_point()
