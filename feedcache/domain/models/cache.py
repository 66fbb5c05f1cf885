"""Cache entities: the stored entry, a lookup result, settings and counters."""

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from feedcache.domain.exceptions import ConfigurationError
from feedcache.domain.events.cache_events import (
    CacheEntryCorrupted,
    CacheEntryExpired,
    CacheHit,
    CacheInvalidated,
    CacheMiss,
    CacheWriteFailed,
    CacheWritten,
    DomainEvent,
)
from feedcache.domain.models.common import CacheNamespace, CacheTier, DISK_TIER, MEMORY_TIER

DEFAULT_MEMORY_BUDGET_BYTES = 50 * 1024 * 1024   # 50 MiB
DEFAULT_DISK_BUDGET_BYTES = 200 * 1024 * 1024    # 200 MiB, advisory only
DEFAULT_TTL_SECONDS = 3600                       # 1 hour
DEFAULT_CACHE_NAMESPACE = CacheNamespace("cache")


def default_cache_root() -> Path:
    """Platform cache directory for this application ($XDG_CACHE_HOME or ~/.cache)."""
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / "feedcache"


@dataclass(frozen=True)
class CacheEntry:
    """A serialized payload plus the time it was written.

    Owned by whichever tier holds it; the orchestrator only keeps transient
    references during a single operation.
    """
    payload: bytes
    stored_at: float

    @property
    def size(self) -> int:
        return len(self.payload)

    def age(self, now: float) -> float:
        return now - self.stored_at

    def is_expired(self, ttl_seconds: float, now: float) -> bool:
        # An entry exactly ttl_seconds old is still fresh
        return self.age(now) > ttl_seconds


@dataclass(frozen=True)
class CacheLookup:
    """A cache hit: the decoded value and the tier that served it."""
    value: Any
    tier: CacheTier


@dataclass
class CacheSettings:
    """Recognized cache options and their defaults."""
    memory_budget_bytes: int = DEFAULT_MEMORY_BUDGET_BYTES
    disk_budget_bytes: int = DEFAULT_DISK_BUDGET_BYTES
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    cache_namespace: CacheNamespace = DEFAULT_CACHE_NAMESPACE
    cache_root: Path = field(default_factory=default_cache_root)

    def __post_init__(self) -> None:
        self.cache_root = Path(self.cache_root)
        self.validate()

    @property
    def cache_dir(self) -> Path:
        return self.cache_root / self.cache_namespace

    def validate(self) -> None:
        """Raises ConfigurationError when an option is out of range."""
        if self.memory_budget_bytes <= 0:
            raise ConfigurationError(f"memory_budget_bytes must be positive, got {self.memory_budget_bytes}")
        if self.disk_budget_bytes <= 0:
            raise ConfigurationError(f"disk_budget_bytes must be positive, got {self.disk_budget_bytes}")
        if not math.isfinite(self.ttl_seconds) or self.ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be a positive finite number, got {self.ttl_seconds}")
        namespace = self.cache_namespace
        if not namespace or namespace in (".", "..") or "/" in namespace or "\\" in namespace:
            raise ConfigurationError(f"cache_namespace must be a single directory name, got {namespace!r}")


@dataclass
class CacheStats:
    """Diagnostic counters, folded from domain events."""
    memory_hits: int = 0
    disk_hits: int = 0
    misses: int = 0
    expirations: int = 0
    corruptions: int = 0
    writes: int = 0
    write_failures: int = 0
    invalidations: int = 0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.disk_hits

    @property
    def hit_ratio(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def record(self, event: DomainEvent) -> None:
        """Updates the counters for a single event. Unknown events are ignored."""
        if isinstance(event, CacheHit):
            if event.tier == MEMORY_TIER:
                self.memory_hits += 1
            elif event.tier == DISK_TIER:
                self.disk_hits += 1
        elif isinstance(event, CacheMiss):
            self.misses += 1
        elif isinstance(event, CacheEntryExpired):
            self.expirations += 1
        elif isinstance(event, CacheEntryCorrupted):
            self.corruptions += 1
        elif isinstance(event, CacheWritten):
            self.writes += 1
        elif isinstance(event, CacheWriteFailed):
            self.write_failures += 1
        elif isinstance(event, CacheInvalidated):
            self.invalidations += 1

    def reset(self) -> None:
        self.memory_hits = 0
        self.disk_hits = 0
        self.misses = 0
        self.expirations = 0
        self.corruptions = 0
        self.writes = 0
        self.write_failures = 0
        self.invalidations = 0

    def as_dict(self) -> dict:
        return {
            "memory_hits": self.memory_hits,
            "disk_hits": self.disk_hits,
            "misses": self.misses,
            "expirations": self.expirations,
            "corruptions": self.corruptions,
            "writes": self.writes,
            "write_failures": self.write_failures,
            "invalidations": self.invalidations,
        }
