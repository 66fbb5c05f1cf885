"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like cache keys, tier
names and backoff policies, ensuring consistency and type safety.
"""

from typing import Callable, NewType, TypedDict

# === Caching Context ===
CacheKey = NewType("CacheKey", str)            # Unique key for a cache entry (e.g. 'feed_posts')
CacheNamespace = NewType("CacheNamespace", str)  # Sub-directory name of the disk tier
CacheTier = NewType("CacheTier", str)          # 'memory' or 'disk'
ContentOrigin = NewType("ContentOrigin", str)  # Where a feed result came from

MEMORY_TIER = CacheTier("memory")
DISK_TIER = CacheTier("disk")
REMOTE_ORIGIN = ContentOrigin("remote")

# Returns the current time as epoch seconds (time.time by default)
Clock = Callable[[], float]

# === Feed Context ===
PostID = NewType("PostID", str)
ProfileID = NewType("ProfileID", str)


class BackoffPolicy(TypedDict):
    """Value Object representing retry backoff configuration."""
    max_retries: int
    initial_delay: float
    factor: float
