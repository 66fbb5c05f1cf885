"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the work
to the feed service and the cache. Every handler reports failures through
the UserInterface and returns True on success, False otherwise.
"""

import json
import logging
from typing import Any, Dict, Optional

from feedcache.core.services.feed_service import FeedService
from feedcache.domain.exceptions import ContentSourceError, InvalidCacheKeyError
from feedcache.domain.interfaces.user_interface import UserInterface
from feedcache.domain.models.cache import CacheSettings
from feedcache.domain.models.common import CacheKey
from feedcache.infrastructure.cache.caching_service import TieredCacheService
from feedcache.infrastructure.cli.display import format_cache_size

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        cache_service: TieredCacheService,
        settings: CacheSettings,
        ui: UserInterface,
        feed_service: Optional[FeedService] = None,
    ):
        """Initializes the CommandHandler with required services."""
        self.cache_service = cache_service
        self.settings = settings
        self.ui = ui
        self.feed_service = feed_service

    async def handle_feed(self, refresh: bool = False) -> bool:
        """Handles the 'feed' command: load through the cache and list posts."""
        if self.feed_service is None:
            self.ui.display_error("No feed source configured. Pass --source or set feed.source_path.")
            return False

        logger.info(f"Handling 'feed' command (refresh={refresh})")
        try:
            if refresh:
                result = await self.feed_service.refresh()
            else:
                result = await self.feed_service.load_feed()
        except ContentSourceError as e:
            logger.error(f"Feed command failed: {e}", exc_info=True)
            self.ui.display_error(f"Failed to load feed: {e}")
            return False

        if not result.posts:
            self.ui.display_warning("No posts found.")
        self.ui.display_posts(result.posts, origin=result.origin)
        return True

    async def handle_get(self, key: str) -> bool:
        """Handles the 'get' command: print the cached JSON for a key."""
        logger.info(f"Handling 'get' command for key: {key}")
        try:
            lookup = await self.cache_service.lookup(CacheKey(key))
        except InvalidCacheKeyError as e:
            self.ui.display_error(str(e))
            return False

        if lookup is None:
            self.ui.display_info(f"Cache miss for key '{key}'.")
            return True
        self.ui.display_output(
            json.dumps(lookup.value, indent=2, ensure_ascii=False),
            title=f"{key} (from {lookup.tier})",
            as_json=True,
        )
        return True

    async def handle_invalidate(self, key: str) -> bool:
        """Handles the 'invalidate' command."""
        logger.info(f"Handling 'invalidate' command for key: {key}")
        try:
            await self.cache_service.invalidate(CacheKey(key))
        except InvalidCacheKeyError as e:
            self.ui.display_error(str(e))
            return False
        self.ui.display_info(f"Invalidated '{key}' in memory and disk tiers.")
        return True

    async def handle_clear(self) -> bool:
        """Handles the 'clear' command."""
        logger.info("Handling 'clear' command")
        await self.cache_service.clear()
        self.ui.display_info(f"Cache cleared ({self.settings.cache_dir}).")
        return True

    def handle_memory_pressure(self) -> bool:
        """Handles the 'memory-pressure' command (low-memory hook)."""
        logger.info("Handling 'memory-pressure' command")
        dropped = len(self.cache_service.memory)
        self.cache_service.handle_memory_pressure()
        self.ui.display_info(f"Memory tier cleared ({dropped} entries dropped).")
        return True

    async def handle_stats(self) -> bool:
        """Handles the 'stats' command."""
        logger.info("Handling 'stats' command")
        self.ui.display_stats(await self.build_stats_report())
        return True

    async def build_stats_report(self) -> Dict[str, Any]:
        stats = self.cache_service.stats
        memory = self.cache_service.memory
        return {
            "Cache directory": str(self.settings.cache_dir),
            "Disk usage": format_cache_size(await self.cache_service.disk_usage()),
            "Disk budget (advisory)": format_cache_size(self.settings.disk_budget_bytes),
            "Memory entries": len(memory),
            "Memory usage": format_cache_size(memory.total_bytes),
            "Memory budget": format_cache_size(self.settings.memory_budget_bytes),
            "TTL": f"{self.settings.ttl_seconds:g}s",
            "Memory hits": stats.memory_hits,
            "Disk hits": stats.disk_hits,
            "Misses": stats.misses,
            "Hit ratio": f"{stats.hit_ratio:.0%}",
            "Expired entries": stats.expirations,
            "Corrupt entries": stats.corruptions,
            "Write failures": stats.write_failures,
        }
