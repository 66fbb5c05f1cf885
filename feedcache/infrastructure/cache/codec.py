"""JSON serialization codec shared by both cache tiers.

Content is wrapped in a small envelope that embeds the write time, so the
disk tier does not rely on filesystem mtime alone:

    {"stored_at": 1718000000.0, "data": <content>}

Encoding happens once per put; both tiers receive the same bytes.
"""

import dataclasses
import json
import logging
import math
from datetime import date, datetime
from typing import Any, Tuple
from uuid import UUID

from feedcache.domain.exceptions import CacheDecodeError

logger = logging.getLogger(__name__)

STORED_AT_FIELD = "stored_at"
DATA_FIELD = "data"


def _default(obj: Any) -> Any:
    """json.dumps hook for the value types that appear in feed content."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class JsonCodec:
    """Encodes content into cache payload bytes and back."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def encode(self, content: Any, stored_at: float) -> bytes:
        """Serializes content together with its write time.

        Raises:
            TypeError: If the content cannot be represented as JSON.
        """
        envelope = {STORED_AT_FIELD: stored_at, DATA_FIELD: content}
        text = json.dumps(envelope, default=_default, ensure_ascii=False, separators=(",", ":"))
        return text.encode(self.encoding)

    def decode(self, payload: bytes) -> Tuple[Any, float]:
        """Returns (content, stored_at) for a payload produced by encode.

        Raises:
            CacheDecodeError: If the payload is not a valid envelope.
        """
        try:
            document = json.loads(payload.decode(self.encoding))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheDecodeError(f"Payload is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise CacheDecodeError(f"Expected a JSON object envelope, got {type(document).__name__}")
        if DATA_FIELD not in document:
            raise CacheDecodeError(f"Envelope is missing '{DATA_FIELD}'")

        stored_at = document.get(STORED_AT_FIELD)
        # bool is an int subclass; reject it explicitly
        if isinstance(stored_at, bool) or not isinstance(stored_at, (int, float)) or not math.isfinite(stored_at):
            raise CacheDecodeError(f"Envelope has an invalid '{STORED_AT_FIELD}': {stored_at!r}")

        return document[DATA_FIELD], float(stored_at)

    def read_stored_at(self, payload: bytes) -> float:
        """Decodes only to validate the envelope and return its write time."""
        _, stored_at = self.decode(payload)
        return stored_at
