"""Interface for caching mechanisms.

Defines the contract for storing, retrieving and invalidating cached
content. Callers only ever observe a hit (the value) or a miss (None);
tier failures are never surfaced.
"""

import abc
from typing import Any, Optional

from ..models.cache import CacheLookup, CacheStats
from ..models.common import CacheKey


class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def lookup(self, key: CacheKey) -> Optional[CacheLookup]:
        """Retrieves an item together with the tier that served it.

        Args:
            key: The cache key to retrieve.

        Returns:
            A CacheLookup if a fresh entry was found, otherwise None.
        """
        pass

    async def get(self, key: CacheKey) -> Optional[Any]:
        """Retrieves an item from the cache asynchronously.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached item if found and not expired, otherwise None.
            An empty collection is a hit, distinct from None.
        """
        result = await self.lookup(key)
        return result.value if result is not None else None

    @abc.abstractmethod
    async def put(self, key: CacheKey, content: Any) -> None:
        """Stores an item in every tier (write-through).

        Args:
            key: The cache key to store the item under.
            content: The JSON-serializable item to store.
        """
        pass

    @abc.abstractmethod
    async def invalidate(self, key: CacheKey) -> None:
        """Removes an item from every tier regardless of its age.

        Args:
            key: The cache key to remove.
        """
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Removes all items from every tier and resets the counters."""
        pass

    @abc.abstractmethod
    def handle_memory_pressure(self) -> None:
        """Drops the in-memory tier. Hook for the host's low-memory signal."""
        pass

    @property
    @abc.abstractmethod
    def stats(self) -> CacheStats:
        """Diagnostic hit/miss counters."""
        pass
