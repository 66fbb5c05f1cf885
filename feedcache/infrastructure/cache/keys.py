"""Cache key validation and key -> file name mapping."""

import re
from urllib.parse import quote

from feedcache.domain.exceptions import InvalidCacheKeyError
from feedcache.domain.models.common import CacheKey

CACHE_FILE_SUFFIX = ".json"
MAX_KEY_LENGTH = 200
_VALID_KEY = re.compile(r"^[A-Za-z0-9_:\-][A-Za-z0-9._:\-]*$")


def validate_key(key: str) -> CacheKey:
    """Returns the key as a CacheKey or raises InvalidCacheKeyError."""
    if not isinstance(key, str) or not key:
        raise InvalidCacheKeyError("Cache key must be a non-empty string")
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidCacheKeyError(f"Cache key longer than {MAX_KEY_LENGTH} characters: {key[:20]}...")
    if not _VALID_KEY.match(key):
        raise InvalidCacheKeyError(
            f"Invalid cache key {key!r}: use letters, digits, '.', '_', ':' or '-' and do not start with '.'"
        )
    return CacheKey(key)


def file_name_for_key(key: str) -> str:
    """Deterministic, one-to-one file name for a key ('feed:all' -> 'feed%3Aall.json')."""
    # Only ":" is escaped; "%" never appears in a valid key
    return quote(validate_key(key), safe="") + CACHE_FILE_SUFFIX
