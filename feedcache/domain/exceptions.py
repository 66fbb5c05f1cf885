"""Exception hierarchy for the cache and the content sources.

Cache tier errors (CacheIOError, CacheDecodeError) are always recovered
inside the cache orchestrator; callers only ever see a hit or a miss.
Content-source errors propagate to the feed service's callers.
"""


class FeedCacheError(Exception):
    """Base class for all feedcache errors."""


class CacheIOError(FeedCacheError, OSError):
    """A filesystem operation on the disk tier failed."""


class CacheDecodeError(FeedCacheError, ValueError):
    """A serialized cache payload could not be decoded."""


class InvalidCacheKeyError(FeedCacheError, ValueError):
    """A cache key cannot be mapped to a file name."""


class ConfigurationError(FeedCacheError):
    """Cache or application settings are invalid."""


class ContentSourceError(FeedCacheError):
    """The content source failed to produce posts."""


class NetworkError(ContentSourceError):
    """Transient failure reaching the content source. Safe to retry."""


class ContentDecodeError(ContentSourceError):
    """The content source returned data that does not match the post schema."""


class MaxRetryError(ContentSourceError):
    """Exception raised when max retries are exceeded."""

    def __init__(self, original_exception: Exception, attempts: int):
        self.original_exception = original_exception
        self.attempts = attempts
        super().__init__(f"Max retries ({attempts}) exceeded. Last error: {original_exception}")
