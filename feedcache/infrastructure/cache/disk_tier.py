"""L2 cache: one JSON file per key under the namespaced cache directory.

Layout: <cache_root>/<namespace>/<key>.json, no index or manifest. Freshness
is judged from the older of the file's mtime and the write time embedded in
the payload envelope. Stale and corrupt files are deleted when they are read
(lazy expiration, no background sweep).

File contents go through aiofiles; stat/replace/unlink/rmtree run in a worker
thread so the event loop is never blocked by disk I/O.
"""

import asyncio
import logging
import os
import shutil
import time
import uuid
from pathlib import Path
from typing import Callable, Optional

import aiofiles

from feedcache.domain.exceptions import CacheDecodeError, CacheIOError
from feedcache.domain.models.cache import CacheEntry, DEFAULT_TTL_SECONDS
from feedcache.domain.models.common import CacheKey, Clock
from feedcache.infrastructure.cache.codec import JsonCodec
from feedcache.infrastructure.cache.keys import file_name_for_key

logger = logging.getLogger(__name__)

TEMP_FILE_SUFFIX = ".tmp"


class DiskTier:
    """Durable key -> file store used as the fallback behind the memory tier."""

    def __init__(
        self,
        directory: Path,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        codec: Optional[JsonCodec] = None,
        clock: Clock = time.time,
    ):
        self.directory = Path(directory)
        self.ttl_seconds = ttl_seconds
        self.codec = codec or JsonCodec()
        self.clock = clock
        logger.info(f"DiskTier initialized at {self.directory} (ttl={ttl_seconds}s)")

    def path_for(self, key: CacheKey) -> Path:
        """Generates the file path for a cache key."""
        return self.directory / file_name_for_key(key)

    async def write(self, key: CacheKey, entry: CacheEntry) -> None:
        """Atomically writes the entry's payload to the key's file.

        The payload goes to a temporary file in the same directory which is then
        renamed over the target, so readers never see a partial file.

        Raises:
            CacheIOError: If the directory cannot be created or the write fails.
        """
        target = self.path_for(key)
        temp_path = self.directory / f".{target.name}.{uuid.uuid4().hex}{TEMP_FILE_SUFFIX}"
        try:
            await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, mode="wb") as f:
                await f.write(entry.payload)
                await f.flush()
            await asyncio.to_thread(os.replace, temp_path, target)
            logger.debug(f"L2 stored key: {key} ({entry.size} bytes) at {target}")
        except OSError as e:
            await self._unlink_quietly(temp_path)
            raise CacheIOError(f"Failed to write L2 cache file {target}: {e}") from e

    async def read(
        self,
        key: CacheKey,
        on_expired: Optional[Callable[[], None]] = None,
    ) -> Optional[CacheEntry]:
        """Reads the key's file if it exists and is still fresh.

        Args:
            key: The cache key to look up.
            on_expired: Called once if a stale file was found and deleted.

        Returns:
            The entry, or None if there is no file or it had expired.

        Raises:
            CacheDecodeError: If the file is corrupt. It has already been deleted.
            CacheIOError: For filesystem errors other than a missing file.
        """
        path = self.path_for(key)
        try:
            stat_result = await asyncio.to_thread(path.stat)
            async with aiofiles.open(path, mode="rb") as f:
                payload = await f.read()
        except FileNotFoundError:
            logger.debug(f"L2 no file for key: {key}")
            return None
        except OSError as e:
            raise CacheIOError(f"Failed to read L2 cache file {path}: {e}") from e

        try:
            embedded_stored_at = self.codec.read_stored_at(payload)
        except CacheDecodeError as e:
            logger.warning(f"Corrupt L2 cache file {path}: {e}. Removing.")
            await self._unlink_quietly(path)
            raise

        entry = CacheEntry(payload=payload, stored_at=min(stat_result.st_mtime, embedded_stored_at))
        if entry.is_expired(self.ttl_seconds, self.clock()):
            logger.debug(f"L2 cache expired for key: {key}. Removing file.")
            await self._unlink_quietly(path)
            if on_expired is not None:
                on_expired()
            return None
        return entry

    async def remove(self, key: CacheKey) -> None:
        """Deletes the key's file. A missing file is not an error.

        Raises:
            CacheIOError: If the file exists but cannot be deleted.
        """
        path = self.path_for(key)
        try:
            await asyncio.to_thread(path.unlink)
            logger.debug(f"L2 removed key: {key}")
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CacheIOError(f"Failed to delete L2 cache file {path}: {e}") from e

    async def total_bytes(self) -> int:
        """Sums the sizes of all files under the cache directory (diagnostics only)."""
        return await asyncio.to_thread(self._walk_size)

    async def clear(self) -> None:
        """Removes the entire cache directory.

        Raises:
            CacheIOError: If the directory exists but cannot be removed.
        """
        try:
            await asyncio.to_thread(shutil.rmtree, self.directory)
            logger.info(f"Cleared L2 (file) cache at: {self.directory}")
        except FileNotFoundError:
            logger.info("L2 cache directory does not exist, nothing to clear.")
        except OSError as e:
            raise CacheIOError(f"Failed to clear L2 cache directory {self.directory}: {e}") from e

    # --- internals ---

    def _walk_size(self) -> int:
        total = 0
        if not self.directory.is_dir():
            return 0
        for root, _dirs, files in os.walk(self.directory):
            for name in files:
                try:
                    total += os.stat(os.path.join(root, name)).st_size
                except OSError:
                    # File vanished between listing and stat
                    continue
        return total

    async def _unlink_quietly(self, path: Path) -> None:
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete cache file {path}: {e}")
