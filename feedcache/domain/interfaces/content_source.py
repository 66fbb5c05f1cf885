"""Interface for the upstream content source.

The cache never calls a content source itself; the feed service falls back
to one on a cache miss. This keeps the cache decoupled from any data source.
"""

import abc
from typing import List

from ..models.feed import Post


class ContentSource(abc.ABC):
    """Abstract Base Class for anything that can produce the full feed."""

    @abc.abstractmethod
    async def fetch_all(self) -> List[Post]:
        """Fetches every post for the public feed.

        Returns:
            The posts, possibly empty.

        Raises:
            NetworkError: For transient failures that are safe to retry.
            ContentDecodeError: If the response does not match the post schema.
            ContentSourceError: For any other non-retryable failure.
        """
        pass

    @property
    def name(self) -> str:
        """Human readable name used in logs."""
        return self.__class__.__name__
