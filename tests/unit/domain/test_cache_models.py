import pytest
from pathlib import Path

from feedcache.domain.events.cache_events import (
    CacheCleared,
    CacheEntryCorrupted,
    CacheEntryExpired,
    CacheHit,
    CacheMiss,
    CacheWriteFailed,
    CacheWritten,
)
from feedcache.domain.exceptions import ConfigurationError
from feedcache.domain.models.cache import CacheEntry, CacheSettings, CacheStats, default_cache_root
from feedcache.domain.models.common import CacheKey, DISK_TIER, MEMORY_TIER


def test_entry_exactly_ttl_old_is_fresh():
    """The boundary belongs to the fresh side."""
    entry = CacheEntry(payload=b"{}", stored_at=100.0)
    assert not entry.is_expired(ttl_seconds=10, now=110.0)
    assert entry.is_expired(ttl_seconds=10, now=110.5)


def test_entry_size_is_payload_length():
    entry = CacheEntry(payload=b"12345", stored_at=0.0)
    assert entry.size == 5
    assert entry.age(now=7.5) == 7.5


def test_settings_defaults_and_cache_dir(tmp_path: Path):
    settings = CacheSettings(cache_root=str(tmp_path))
    assert settings.memory_budget_bytes == 50 * 1024 * 1024
    assert settings.disk_budget_bytes == 200 * 1024 * 1024
    assert settings.ttl_seconds == 3600
    assert settings.cache_dir == tmp_path / "cache"


@pytest.mark.parametrize(
    "overrides",
    [
        {"memory_budget_bytes": 0},
        {"disk_budget_bytes": -1},
        {"ttl_seconds": 0},
        {"ttl_seconds": float("nan")},
        {"ttl_seconds": float("inf")},
        {"cache_namespace": ""},
        {"cache_namespace": "../escape"},
        {"cache_namespace": ".."},
    ],
)
def test_settings_reject_invalid_values(tmp_path: Path, overrides):
    with pytest.raises(ConfigurationError):
        CacheSettings(cache_root=tmp_path, **overrides)


def test_default_cache_root_honours_xdg(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    assert default_cache_root() == tmp_path / "feedcache"


def test_stats_fold_events():
    """Each event type moves exactly one counter."""
    stats = CacheStats()
    key = CacheKey("feed_posts")
    for event in [
        CacheHit(key=key, tier=MEMORY_TIER),
        CacheHit(key=key, tier=DISK_TIER),
        CacheHit(key=key, tier=DISK_TIER),
        CacheMiss(key=key),
        CacheEntryExpired(key=key, tier=MEMORY_TIER),
        CacheEntryCorrupted(key=key, error_message="bad", tier=DISK_TIER),
        CacheWritten(key=key, size_bytes=10),
        CacheWriteFailed(key=key, tier=DISK_TIER, error_message="disk full"),
        CacheCleared(scope="all"),
    ]:
        stats.record(event)

    assert stats.memory_hits == 1
    assert stats.disk_hits == 2
    assert stats.hits == 3
    assert stats.misses == 1
    assert stats.hit_ratio == pytest.approx(0.75)
    assert stats.as_dict()["expirations"] == 1
    assert stats.corruptions == 1
    assert stats.writes == 1
    assert stats.write_failures == 1


def test_stats_reset():
    stats = CacheStats(memory_hits=3, misses=2)
    stats.reset()
    assert stats.as_dict() == CacheStats().as_dict()
    assert stats.hit_ratio == 0.0
