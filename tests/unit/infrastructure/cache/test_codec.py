import json
import pytest
from datetime import datetime, timezone

from feedcache.domain.exceptions import CacheDecodeError
from feedcache.infrastructure.cache.codec import JsonCodec


@pytest.fixture
def codec():
    return JsonCodec()


def test_encode_embeds_write_time(codec: JsonCodec):
    payload = codec.encode({"a": [1, 2]}, stored_at=123.5)
    assert json.loads(payload) == {"stored_at": 123.5, "data": {"a": [1, 2]}}
    assert b" " not in payload  # compact separators


def test_decode_returns_content_and_write_time(codec: JsonCodec):
    content, stored_at = codec.decode(codec.encode(["x"], stored_at=42))
    assert content == ["x"]
    assert stored_at == 42.0


def test_empty_collection_is_preserved(codec: JsonCodec):
    content, _ = codec.decode(codec.encode([], stored_at=1.0))
    assert content == []


def test_encode_handles_datetimes(codec: JsonCodec):
    when = datetime(2024, 5, 1, tzinfo=timezone.utc)
    content, _ = codec.decode(codec.encode({"when": when}, stored_at=1.0))
    assert content == {"when": "2024-05-01T00:00:00+00:00"}


def test_encode_rejects_unserializable_content(codec: JsonCodec):
    with pytest.raises(TypeError):
        codec.encode({"obj": object()}, stored_at=1.0)


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"\xff\xfe",
        b"[1, 2]",
        b'{"stored_at": 1.0}',
        b'{"stored_at": "yesterday", "data": 1}',
        b'{"stored_at": true, "data": 1}',
        b'{"data": 1}',
    ],
)
def test_decode_rejects_invalid_payloads(codec: JsonCodec, payload: bytes):
    with pytest.raises(CacheDecodeError):
        codec.decode(payload)


def test_read_stored_at(codec: JsonCodec):
    assert codec.read_stored_at(codec.encode({"x": 1}, stored_at=99.0)) == 99.0
