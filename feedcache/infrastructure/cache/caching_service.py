"""Concrete implementation of the two-tier Caching Service.

Coordinates the L1 (memory) and L2 (file) tiers: lookups go memory -> disk ->
miss, disk hits are promoted back into memory, and puts write through to both
tiers. A single global TTL, measured from write time, applies to both tiers.

Tier failures are recovered here. A failed disk read is a miss, a failed disk
write leaves a memory-only entry, and a corrupt payload is deleted and
reported as a miss. Callers never see CacheIOError or CacheDecodeError.
"""

import logging
import time
from typing import Any, Callable, Optional

from feedcache.domain.events.cache_events import (
    CacheCleared,
    CacheEntryCorrupted,
    CacheEntryExpired,
    CacheHit,
    CacheInvalidated,
    CacheMiss,
    CacheWriteFailed,
    CacheWritten,
    DomainEvent,
    MemoryPressureCleared,
)
from feedcache.domain.exceptions import CacheDecodeError, CacheIOError, ConfigurationError
from feedcache.domain.interfaces.cache import CacheService
from feedcache.domain.models.cache import (
    CacheEntry,
    CacheLookup,
    CacheSettings,
    CacheStats,
)
from feedcache.domain.models.common import CacheKey, Clock, DISK_TIER, MEMORY_TIER
from feedcache.infrastructure.cache.codec import JsonCodec
from feedcache.infrastructure.cache.disk_tier import DiskTier
from feedcache.infrastructure.cache.keys import validate_key
from feedcache.infrastructure.cache.memory_tier import MemoryTier

logger = logging.getLogger(__name__)

EventListener = Callable[[DomainEvent], None]


class TieredCacheService(CacheService):
    """Two-level cache implementation (L1 Memory, L2 File)."""

    def __init__(
        self,
        memory: MemoryTier,
        disk: DiskTier,
        codec: Optional[JsonCodec] = None,
        ttl_seconds: Optional[float] = None,
        clock: Clock = time.time,
        event_listener: Optional[EventListener] = None,
    ):
        """Initializes the caching service.

        The TTL is owned by the disk tier. Passing a different ttl_seconds
        raises ConfigurationError.
        """
        if ttl_seconds is not None and ttl_seconds != disk.ttl_seconds:
            raise ConfigurationError(
                f"ttl_seconds={ttl_seconds} does not match the disk tier's ttl_seconds={disk.ttl_seconds}"
            )
        self.memory = memory
        self.disk = disk
        self.codec = codec or disk.codec
        self.ttl_seconds = disk.ttl_seconds
        self.clock = clock
        self.event_listener = event_listener
        self._stats = CacheStats()
        logger.info(
            f"CachingService initialized. L1(budget={memory.budget_bytes} bytes), "
            f"L2(dir={disk.directory}), ttl={self.ttl_seconds}s"
        )

    @classmethod
    def from_settings(
        cls,
        settings: CacheSettings,
        clock: Clock = time.time,
        event_listener: Optional[EventListener] = None,
    ) -> "TieredCacheService":
        """Builds both tiers from CacheSettings sharing one codec and clock."""
        codec = JsonCodec()
        memory = MemoryTier(budget_bytes=settings.memory_budget_bytes)
        disk = DiskTier(settings.cache_dir, ttl_seconds=settings.ttl_seconds, codec=codec, clock=clock)
        return cls(
            memory=memory,
            disk=disk,
            codec=codec,
            clock=clock,
            event_listener=event_listener,
        )

    @property
    def stats(self) -> CacheStats:
        return self._stats

    # --- CacheService Interface Implementation ---

    async def lookup(self, key: CacheKey) -> Optional[CacheLookup]:
        """Memory -> disk -> miss, promoting disk hits into memory."""
        key = validate_key(key)

        # Check L1
        l1_entry = self.memory.get(key)
        if l1_entry is not None:
            if not l1_entry.is_expired(self.ttl_seconds, self.clock()):
                value = self._decode_or_none(key, l1_entry, MEMORY_TIER)
                if value is not None:
                    logger.debug(f"L1 cache hit for key: {key}")
                    self._emit(CacheHit(key=key, tier=MEMORY_TIER))
                    return CacheLookup(value=value[0], tier=MEMORY_TIER)
            else:
                logger.debug(f"L1 cache expired for key: {key}. Evicting.")
                self.memory.remove(key)
                self._emit(CacheEntryExpired(key=key, tier=MEMORY_TIER))

        # Check L2 (the disk tier applies the TTL itself)
        try:
            l2_entry = await self.disk.read(
                key, on_expired=lambda: self._emit(CacheEntryExpired(key=key, tier=DISK_TIER))
            )
        except CacheDecodeError as e:
            self._emit(CacheEntryCorrupted(key=key, error_message=str(e), tier=DISK_TIER))
            l2_entry = None
        except CacheIOError as e:
            logger.warning(f"L2 read failed for key {key}, treating as miss: {e}")
            l2_entry = None

        if l2_entry is not None:
            value = self._decode_or_none(key, l2_entry, DISK_TIER)
            if value is not None:
                logger.debug(f"L2 cache hit for key: {key}. Promoting to L1.")
                self.memory.set(key, l2_entry)
                self._emit(CacheHit(key=key, tier=DISK_TIER))
                return CacheLookup(value=value[0], tier=DISK_TIER)
            await self._remove_disk_quietly(key)

        logger.debug(f"Cache miss for key: {key}")
        self._emit(CacheMiss(key=key))
        return None

    async def put(self, key: CacheKey, content: Any) -> None:
        """Serializes once and writes through to memory, then disk (best effort)."""
        key = validate_key(key)
        now = self.clock()
        entry = CacheEntry(payload=self.codec.encode(content, stored_at=now), stored_at=now)
        self.memory.set(key, entry)
        logger.debug(f"Stored item in L1 cache: key={key}")

        try:
            await self.disk.write(key, entry)
        except CacheIOError as e:
            # No rollback: memory stays authoritative until evicted
            logger.error(f"L2 write failed for key {key}; entry kept in memory only: {e}")
            self._emit(CacheWriteFailed(key=key, tier=DISK_TIER, error_message=str(e)))
        self._emit(CacheWritten(key=key, size_bytes=entry.size))

    async def invalidate(self, key: CacheKey) -> None:
        """Removes the key from both tiers unconditionally."""
        key = validate_key(key)
        self.memory.remove(key)
        await self._remove_disk_quietly(key)
        logger.debug(f"Invalidated key in all tiers: {key}")
        self._emit(CacheInvalidated(key=key))

    async def clear(self) -> None:
        """Clears both tiers and resets the diagnostic counters."""
        self.memory.clear()
        logger.info("Cleared L1 (in-memory) cache.")
        try:
            await self.disk.clear()
        except CacheIOError as e:
            logger.error(f"Failed to clear L2 cache: {e}")
        self._stats.reset()
        self._emit(CacheCleared(scope="all"))

    def handle_memory_pressure(self) -> None:
        """Drops L1 only; subsequent reads fall through to disk."""
        evicted = self.memory.handle_memory_pressure()
        self._emit(MemoryPressureCleared(evicted_entries=evicted))

    async def disk_usage(self) -> int:
        """Total bytes currently stored by the disk tier."""
        return await self.disk.total_bytes()

    # --- internals ---

    def _decode_or_none(self, key: CacheKey, entry: CacheEntry, tier: str) -> Optional[tuple]:
        """Decodes an entry, wrapping the value in a 1-tuple so falsy content stays a hit."""
        try:
            content, _ = self.codec.decode(entry.payload)
        except CacheDecodeError as e:
            logger.warning(f"Failed to decode {tier} cache entry for key {key}: {e}. Discarding.")
            self.memory.remove(key)
            self._emit(CacheEntryCorrupted(key=key, error_message=str(e), tier=tier))
            return None
        return (content,)

    async def _remove_disk_quietly(self, key: CacheKey) -> None:
        try:
            await self.disk.remove(key)
        except CacheIOError as e:
            logger.warning(f"Failed to remove L2 cache file for key {key}: {e}")

    def _emit(self, event: DomainEvent) -> None:
        self._stats.record(event)
        if self.event_listener is not None:
            try:
                self.event_listener(event)
            except Exception as e:
                logger.error(f"Cache event listener failed on {type(event).__name__}: {e}", exc_info=True)
