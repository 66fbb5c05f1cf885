import os
import time
import pytest
from pathlib import Path
from unittest.mock import MagicMock

from feedcache.domain.exceptions import CacheDecodeError, CacheIOError
from feedcache.domain.models.cache import CacheEntry
from feedcache.domain.models.common import CacheKey
from feedcache.infrastructure.cache.codec import JsonCodec
from feedcache.infrastructure.cache.disk_tier import DiskTier

KEY = CacheKey("feed_posts")


def make_entry(content, stored_at: float) -> CacheEntry:
    return CacheEntry(payload=JsonCodec().encode(content, stored_at=stored_at), stored_at=stored_at)


@pytest.mark.asyncio
async def test_write_then_read(disk_tier: DiskTier, clock):
    entry = make_entry({"posts": [1, 2]}, clock())
    await disk_tier.write(KEY, entry)

    path = disk_tier.directory / "feed_posts.json"
    assert path.read_bytes() == entry.payload
    stored = await disk_tier.read(KEY)
    assert stored is not None
    assert stored.payload == entry.payload
    assert stored.stored_at == clock()


@pytest.mark.asyncio
async def test_write_leaves_no_temp_files(disk_tier: DiskTier, clock):
    await disk_tier.write(KEY, make_entry([1], clock()))
    await disk_tier.write(KEY, make_entry([2], clock()))
    assert sorted(p.name for p in disk_tier.directory.iterdir()) == ["feed_posts.json"]


@pytest.mark.asyncio
async def test_colon_keys_are_escaped(disk_tier: DiskTier, clock):
    await disk_tier.write(CacheKey("feed:all"), make_entry([], clock()))
    assert (disk_tier.directory / "feed%3Aall.json").is_file()


@pytest.mark.asyncio
async def test_colon_and_underscore_keys_use_separate_files(disk_tier: DiskTier, clock):
    colon, underscore = CacheKey("feed:all"), CacheKey("feed_all")
    await disk_tier.write(colon, make_entry(["A"], clock()))
    await disk_tier.write(underscore, make_entry(["B"], clock()))

    assert disk_tier.path_for(colon) != disk_tier.path_for(underscore)
    assert JsonCodec().decode((await disk_tier.read(colon)).payload)[0] == ["A"]

    await disk_tier.remove(underscore)
    assert await disk_tier.read(colon) is not None


@pytest.mark.asyncio
async def test_read_missing_file(disk_tier: DiskTier):
    assert await disk_tier.read(KEY) is None


@pytest.mark.asyncio
async def test_expired_file_is_deleted(disk_tier: DiskTier, clock):
    await disk_tier.write(KEY, make_entry([1], clock()))
    on_expired = MagicMock()

    clock.advance(3600)
    assert await disk_tier.read(KEY, on_expired=on_expired) is not None
    on_expired.assert_not_called()

    clock.advance(1)
    assert await disk_tier.read(KEY, on_expired=on_expired) is None
    on_expired.assert_called_once_with()
    assert not disk_tier.path_for(KEY).exists()


@pytest.mark.asyncio
async def test_old_mtime_expires_entry(tmp_path: Path):
    """A file whose mtime is past the TTL is stale even if its payload claims otherwise."""
    now = time.time()
    tier = DiskTier(tmp_path / "ns", ttl_seconds=60, clock=lambda: now)
    await tier.write(KEY, make_entry([1], stored_at=now))
    os.utime(tier.path_for(KEY), (now - 120, now - 120))

    assert await tier.read(KEY) is None
    assert not tier.path_for(KEY).exists()


@pytest.mark.asyncio
async def test_corrupt_file_is_deleted_and_reported(disk_tier: DiskTier):
    disk_tier.directory.mkdir(parents=True)
    disk_tier.path_for(KEY).write_bytes(b"{truncated")

    with pytest.raises(CacheDecodeError):
        await disk_tier.read(KEY)
    assert not disk_tier.path_for(KEY).exists()


@pytest.mark.asyncio
async def test_remove(disk_tier: DiskTier, clock):
    await disk_tier.write(KEY, make_entry([1], clock()))
    await disk_tier.remove(KEY)
    await disk_tier.remove(KEY)  # missing file is fine
    assert await disk_tier.read(KEY) is None


@pytest.mark.asyncio
async def test_total_bytes(disk_tier: DiskTier, clock):
    assert await disk_tier.total_bytes() == 0
    first = make_entry({"a": 1}, clock())
    second = make_entry({"b": [1, 2, 3]}, clock())
    await disk_tier.write(CacheKey("first"), first)
    await disk_tier.write(CacheKey("second"), second)
    assert await disk_tier.total_bytes() == first.size + second.size


@pytest.mark.asyncio
async def test_clear_removes_directory(disk_tier: DiskTier, clock):
    await disk_tier.write(KEY, make_entry([1], clock()))
    await disk_tier.clear()
    assert not disk_tier.directory.exists()
    await disk_tier.clear()  # already gone


@pytest.mark.asyncio
async def test_write_failure_raises_cache_io_error(tmp_path: Path, clock):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied")
    tier = DiskTier(blocker, clock=clock)

    with pytest.raises(CacheIOError):
        await tier.write(KEY, make_entry([1], clock()))
