"""Content source backed by a bundled JSON file.

Accepts either a bare list of posts or an object with a "posts" key:

    {"posts": [{"id": "...", "profile_id": "...", ...}]}
"""

import json
import logging
from pathlib import Path
from typing import List

import aiofiles

from feedcache.domain.exceptions import ContentDecodeError, ContentSourceError
from feedcache.domain.interfaces.content_source import ContentSource
from feedcache.domain.models.feed import Post, parse_posts

logger = logging.getLogger(__name__)


class JsonFileContentSource(ContentSource):
    """Reads posts from a local JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        logger.info(f"JsonFileContentSource initialized with {self.path}")

    @property
    def name(self) -> str:
        return f"json-file:{self.path.name}"

    async def fetch_all(self) -> List[Post]:
        logger.debug(f"Attempting to read posts from: {self.path}")
        try:
            async with aiofiles.open(self.path, mode="r", encoding="utf-8") as f:
                text = await f.read()
        except FileNotFoundError as e:
            raise ContentSourceError(f"Posts file not found: {self.path}") from e
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading posts file {self.path}: {e}", exc_info=True)
            raise ContentSourceError(f"Failed to read posts file {self.path}: {e}") from e

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise ContentDecodeError(f"Posts file {self.path} is not valid JSON: {e}") from e

        items = document.get("posts") if isinstance(document, dict) else document
        posts = parse_posts(items)
        logger.debug(f"Loaded {len(posts)} posts from {self.path}")
        return posts
