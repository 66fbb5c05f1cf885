import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from feedcache.domain.models.cache import CacheSettings
from feedcache.infrastructure.cache.caching_service import TieredCacheService
from feedcache.infrastructure.cache.codec import JsonCodec
from feedcache.infrastructure.cache.disk_tier import DiskTier
from feedcache.infrastructure.cache.memory_tier import MemoryTier
from feedcache.infrastructure.config.settings import ENV_PREFIX, clear_test_config, load_configuration
from feedcache.infrastructure.cli.display import ConsoleDisplay


class FakeClock:
    """Manually advanced clock. Starts well below any real file mtime so the
    disk tier's min(mtime, stored_at) always picks the embedded write time."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


SAMPLE_POSTS = [
    {
        "id": "p1",
        "profile_id": "alice",
        "created_at": "2024-05-01T10:00:00Z",
        "caption": "Morning run",
        "hashtags": ["fitness", "morning"],
        "image_url": "https://cdn.example.com/p1.jpg",
        "cta_url": None,
        "category": "free",
        "7verse_post_premium_details": [],
        "7verse_profiles": {"id": "alice", "profile_name": "Alice", "followers_count": 12},
    },
    {
        "id": "p2",
        "profile_id": "bob",
        "created_at": "2024-05-03T08:30:00Z",
        "caption": "Behind the scenes",
        "hashtags": [],
        "image_url": "https://cdn.example.com/p2.jpg",
        "cta_url": "https://example.com/bts",
        "category": "premium",
        "7verse_post_premium_details": [{"price_usd": 4.99, "full_content_url": "https://example.com/full/p2"}],
    },
    {
        "id": "p3",
        "profile_id": "alice",
        "created_at": "2024-05-02T18:15:00Z",
        "caption": "Sunset",
        "hashtags": ["travel"],
        "image_url": "https://cdn.example.com/p3.jpg",
        "category": "free",
    },
]


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path):
    """Keeps real FEEDCACHE_* variables, .env files and test overrides out of every test."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    load_configuration(config_file=tmp_path / "no-config.yaml", force=True)
    clear_test_config()
    yield
    clear_test_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "cache_root"


@pytest.fixture
def cache_settings(cache_root: Path) -> CacheSettings:
    return CacheSettings(ttl_seconds=3600, cache_root=cache_root)


@pytest.fixture
def memory_tier() -> MemoryTier:
    return MemoryTier(budget_bytes=1024 * 1024)


@pytest.fixture
def disk_tier(cache_settings: CacheSettings, clock: FakeClock) -> DiskTier:
    return DiskTier(cache_settings.cache_dir, ttl_seconds=cache_settings.ttl_seconds, codec=JsonCodec(), clock=clock)


@pytest.fixture
def cache_service(memory_tier: MemoryTier, disk_tier: DiskTier, clock: FakeClock) -> TieredCacheService:
    """Real two-tier cache on a temporary directory with a fake clock."""
    return TieredCacheService(memory=memory_tier, disk=disk_tier, ttl_seconds=3600, clock=clock)


@pytest.fixture
def sample_posts_data():
    return json.loads(json.dumps(SAMPLE_POSTS))


@pytest.fixture
def posts_file(tmp_path: Path, sample_posts_data) -> Path:
    """A bundled posts file in the {"posts": [...]} form."""
    path = tmp_path / "posts.json"
    path.write_text(json.dumps({"posts": sample_posts_data}), encoding="utf-8")
    return path


@pytest.fixture
def mock_console_display(mocker):
    """Mocks the ConsoleDisplay to capture output easily.
    Patches the ConsoleDisplay where main.py builds it.
    """
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch("feedcache.main.ConsoleDisplay", return_value=mock)
    return mock
