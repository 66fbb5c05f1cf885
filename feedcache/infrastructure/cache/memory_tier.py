"""L1 cache: a byte-bounded, least-recently-used in-process store.

Cost of an entry is the length of its payload. Eviction order is strict LRU
(recency is refreshed by get and set), so it is deterministic and testable.
The tier has no notion of expiration; the orchestrator checks entry age.
"""

import logging
import threading
from collections import OrderedDict
from typing import Dict, List, Optional

from feedcache.domain.models.cache import CacheEntry, DEFAULT_MEMORY_BUDGET_BYTES
from feedcache.domain.models.common import CacheKey

logger = logging.getLogger(__name__)


class MemoryTier:
    """In-memory LRU map from CacheKey to CacheEntry, bounded by total payload bytes."""

    def __init__(self, budget_bytes: int = DEFAULT_MEMORY_BUDGET_BYTES):
        if budget_bytes <= 0:
            raise ValueError(f"budget_bytes must be positive, got {budget_bytes}")
        self.budget_bytes = budget_bytes
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._total_bytes = 0
        self._lock = threading.RLock()
        logger.info(f"MemoryTier initialized with budget {budget_bytes} bytes")

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        # Membership test does not touch recency
        return key in self._entries

    def keys(self) -> List[CacheKey]:
        """Keys in eviction order (least recently used first)."""
        with self._lock:
            return list(self._entries.keys())

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        """Returns the entry for key (refreshing its recency) or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def set(self, key: CacheKey, entry: CacheEntry) -> None:
        """Stores entry, evicting least recently used entries to stay within budget.

        An entry larger than the whole budget is not retained. This is never an
        error; the next read simply falls through to the disk tier.
        """
        with self._lock:
            self._discard(key)
            if entry.size > self.budget_bytes:
                logger.debug(
                    f"L1 entry for key {key} ({entry.size} bytes) exceeds budget "
                    f"({self.budget_bytes} bytes); not retained"
                )
                return
            self._entries[key] = entry
            self._total_bytes += entry.size
            self._evict_to_budget()

    def remove(self, key: CacheKey) -> None:
        """Deletes the entry if present; no-op otherwise."""
        with self._lock:
            if self._discard(key):
                logger.debug(f"L1 removed key: {key}")

    def clear(self) -> int:
        """Removes all entries. Returns the number of entries dropped."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._total_bytes = 0
            return count

    def handle_memory_pressure(self) -> int:
        """Low-memory hook: drops the whole tier so reads fall through to disk."""
        count = self.clear()
        logger.warning(f"L1 cache cleared due to memory pressure ({count} entries dropped)")
        return count

    def snapshot(self) -> Dict[CacheKey, int]:
        """Key -> payload size, for diagnostics."""
        with self._lock:
            return {key: entry.size for key, entry in self._entries.items()}

    # --- internals ---

    def _discard(self, key: CacheKey) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        self._total_bytes -= entry.size
        return True

    def _evict_to_budget(self) -> None:
        while self._total_bytes > self.budget_bytes and self._entries:
            lru_key, lru_entry = self._entries.popitem(last=False)
            self._total_bytes -= lru_entry.size
            logger.debug(f"L1 evicted key (LRU): {lru_key} ({lru_entry.size} bytes)")
