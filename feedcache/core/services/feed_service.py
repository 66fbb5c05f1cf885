"""Application Service for loading the feed through the cache.

Implements the caller side of the cache contract: look up the feed key,
and on a miss fetch from the content source, write the result through to
the cache and return it. Concurrent loads share a single in-flight fetch.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from feedcache.domain.exceptions import ContentDecodeError, ContentSourceError
from feedcache.domain.interfaces.cache import CacheService
from feedcache.domain.interfaces.content_source import ContentSource
from feedcache.domain.models.common import CacheKey, ContentOrigin, REMOTE_ORIGIN
from feedcache.domain.models.feed import Post, group_posts_by_profile, parse_posts
from feedcache.infrastructure.resilience.fetch_retry import FetchRetryService

logger = logging.getLogger(__name__)

DEFAULT_FEED_CACHE_KEY = CacheKey("feed_posts")


@dataclass
class FeedResult:
    """Posts for display and where they came from ('memory', 'disk' or 'remote')."""
    posts: List[Post]
    origin: ContentOrigin

    @property
    def grouped(self) -> List[List[Post]]:
        return group_posts_by_profile(self.posts)


class FeedService:
    """Loads the public feed, preferring cached content."""

    def __init__(
        self,
        cache_service: CacheService,
        content_source: ContentSource,
        retry_service: Optional[FetchRetryService] = None,
        cache_key: CacheKey = DEFAULT_FEED_CACHE_KEY,
        loop_count: int = 0,
    ):
        """Initializes the FeedService.

        Args:
            cache_service: The shared cache instance.
            content_source: Where posts come from on a cache miss.
            retry_service: Wraps source calls with retries (no retries if None).
            cache_key: Key the feed is cached under.
            loop_count: Extra copies of the feed (with fresh ids) appended for
                an endless-scroll effect. 0 disables it.
        """
        if loop_count < 0:
            raise ValueError(f"loop_count must be >= 0, got {loop_count}")
        self.cache_service = cache_service
        self.content_source = content_source
        self.retry_service = retry_service or FetchRetryService(max_retries=0)
        self.cache_key = cache_key
        self.loop_count = loop_count
        self._inflight: Optional["asyncio.Future[List[Post]]"] = None

    @property
    def is_loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def load_feed(self, force_refresh: bool = False) -> FeedResult:
        """Returns the feed from the cache, or from the content source on a miss.

        Args:
            force_refresh: Skip the cache lookup and fetch from the source. If
                that fetch fails, fresh cached content is still returned.

        Raises:
            ContentSourceError: If the source fails and nothing usable is cached.
        """
        if not force_refresh:
            cached = await self._load_cached()
            if cached is not None:
                return cached

        try:
            posts = await self._fetch_single_flight()
        except ContentSourceError as e:
            if force_refresh:
                logger.warning(f"Refresh from {self.content_source.name} failed ({e}); trying cache.")
                cached = await self._load_cached()
                if cached is not None:
                    return cached
            raise

        logger.info(f"Loaded {len(posts)} posts from {self.content_source.name}")
        return FeedResult(posts=self._expand(posts), origin=REMOTE_ORIGIN)

    async def refresh(self) -> FeedResult:
        """Drops the cached feed and reloads it from the source."""
        await self.cache_service.invalidate(self.cache_key)
        return await self.load_feed(force_refresh=True)

    # --- internals ---

    async def _load_cached(self) -> Optional[FeedResult]:
        lookup = await self.cache_service.lookup(self.cache_key)
        if lookup is None:
            return None
        try:
            posts = parse_posts(lookup.value)
        except ContentDecodeError as e:
            # Schema changed since the entry was written
            logger.warning(f"Cached feed under '{self.cache_key}' no longer matches the post schema: {e}")
            await self.cache_service.invalidate(self.cache_key)
            return None
        logger.debug(f"Serving {len(posts)} cached posts from {lookup.tier}")
        return FeedResult(posts=self._expand(posts), origin=ContentOrigin(lookup.tier))

    async def _fetch_single_flight(self) -> List[Post]:
        if self._inflight is None or self._inflight.done():
            logger.debug(f"Starting fetch from {self.content_source.name}")
            task = asyncio.ensure_future(self._fetch_and_store())
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        else:
            logger.debug("Fetch already in progress, joining it")
        # Shield so one cancelled caller does not cancel the shared fetch
        return await asyncio.shield(self._inflight)

    async def _fetch_and_store(self) -> List[Post]:
        posts = await self.retry_service.execute_with_retry(
            self.content_source.fetch_all,
            operation_name=f"{self.content_source.name}.fetch_all",
        )
        await self.cache_service.put(self.cache_key, [post.to_dict() for post in posts])
        return posts

    def _clear_inflight(self, task: "asyncio.Future[List[Post]]") -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Feed fetch finished with error: {task.exception()}")

    def _expand(self, posts: List[Post]) -> List[Post]:
        if self.loop_count == 0 or not posts:
            return list(posts)
        expanded = list(posts)
        for _ in range(self.loop_count):
            expanded.extend(post.copy_with_new_id() for post in posts)
        return expanded
