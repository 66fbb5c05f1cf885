"""Domain Events related to cache lookups, writes and invalidation.

The orchestrator emits one of these for every notable outcome; CacheStats
folds them into counters and an optional listener can log or forward them.
"""

from dataclasses import dataclass, field
import time
from typing import Optional

from feedcache.domain.models.common import CacheKey, CacheTier


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class CacheHit(DomainEvent):
    """A fresh entry was served from a tier."""
    key: CacheKey
    tier: CacheTier
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheMiss(DomainEvent):
    """Neither tier held a fresh entry for the key."""
    key: CacheKey
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheEntryExpired(DomainEvent):
    """A stale entry was found (and dropped) in a tier."""
    key: CacheKey
    tier: CacheTier
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheEntryCorrupted(DomainEvent):
    """A stored payload failed to decode and was discarded."""
    key: CacheKey
    error_message: str
    tier: Optional[CacheTier] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheWritten(DomainEvent):
    """An entry was written through to the tiers."""
    key: CacheKey
    size_bytes: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheWriteFailed(DomainEvent):
    """A best-effort tier write failed. The other tier may still hold the entry."""
    key: CacheKey
    tier: CacheTier
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheInvalidated(DomainEvent):
    """A key was removed from both tiers on request."""
    key: CacheKey
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheCleared(DomainEvent):
    """One or both tiers were emptied ('memory' or 'all')."""
    scope: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class MemoryPressureCleared(DomainEvent):
    """The memory tier was dropped in response to a low-memory signal."""
    evicted_entries: int = 0
    timestamp: float = field(default_factory=time.time)
