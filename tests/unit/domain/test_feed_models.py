import pytest
from datetime import datetime, timezone

from feedcache.domain.exceptions import ContentDecodeError
from feedcache.domain.models.feed import (
    PREMIUM_DETAILS_FIELD,
    Post,
    group_posts_by_profile,
    parse_posts,
    parse_timestamp,
)


def test_post_from_dict(sample_posts_data):
    post = Post.from_dict(sample_posts_data[0])
    assert post.id == "p1"
    assert post.profile_id == "alice"
    assert post.created_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    assert post.hashtags == ["fitness", "morning"]
    assert post.profile is not None and post.profile.profile_name == "Alice"
    assert post.profile.followers_count == 12
    assert not post.is_premium
    assert post.premium_details is None


def test_premium_post(sample_posts_data):
    post = Post.from_dict(sample_posts_data[1])
    assert post.is_premium
    assert post.premium_details.price_usd == 4.99
    assert post.premium_details.display_price == "$4.99"


def test_premium_details_accepts_single_object(sample_posts_data):
    data = dict(sample_posts_data[1])
    data[PREMIUM_DETAILS_FIELD] = {"price_usd": 2}
    assert Post.from_dict(data).premium_details.display_price == "$2.00"


def test_to_dict_survives_the_cache_shape(sample_posts_data):
    """Posts written to the cache as dicts parse back to equal posts."""
    posts = parse_posts(sample_posts_data)
    assert parse_posts([post.to_dict() for post in posts]) == posts


@pytest.mark.parametrize(
    "field, value",
    [
        ("caption", None),
        ("id", True),
        ("created_at", "yesterday"),
        ("hashtags", "fitness"),
        (PREMIUM_DETAILS_FIELD, [{"price_usd": "free"}]),
    ],
)
def test_invalid_post_fields(sample_posts_data, field, value):
    data = dict(sample_posts_data[0])
    data[field] = value
    with pytest.raises(ContentDecodeError):
        Post.from_dict(data)


def test_parse_posts_requires_list():
    with pytest.raises(ContentDecodeError):
        parse_posts({"posts": []})


def test_parse_timestamp_assumes_utc_for_naive_values():
    assert parse_timestamp("2024-01-02T03:04:05").tzinfo == timezone.utc


def test_copy_with_new_id(sample_posts_data):
    post = Post.from_dict(sample_posts_data[0])
    copy = post.copy_with_new_id()
    assert copy.id != post.id
    assert copy.caption == post.caption
    assert copy.created_at == post.created_at


def test_group_posts_by_profile(sample_posts_data):
    """Groups are newest-first by their latest post; posts inside are newest-first."""
    groups = group_posts_by_profile(parse_posts(sample_posts_data))
    assert [[post.id for post in group] for group in groups] == [["p2"], ["p3", "p1"]]


def test_group_posts_by_profile_empty():
    assert group_posts_by_profile([]) == []
