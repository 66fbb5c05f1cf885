"""Feed entities: posts, premium details and profiles.

JSON field names follow the remote database's snake_case columns so cached
payloads and source payloads share one shape.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from feedcache.domain.exceptions import ContentDecodeError
from feedcache.domain.models.common import PostID, ProfileID

PREMIUM_CATEGORY = "premium"
# Joined table; the API returns it as a one-element list
PREMIUM_DETAILS_FIELD = "7verse_post_premium_details"
PROFILE_FIELD = "7verse_profiles"


def parse_timestamp(value: Any) -> datetime:
    """Parses an ISO-8601 timestamp (a trailing 'Z' is accepted)."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ContentDecodeError(f"Expected an ISO-8601 timestamp string, got {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ContentDecodeError(f"Invalid timestamp {value!r}: {e}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require(data: Dict[str, Any], name: str, kind: Union[type, Tuple[type, ...]]) -> Any:
    if name not in data or data[name] is None:
        raise ContentDecodeError(f"Missing field '{name}'")
    value = data[name]
    if isinstance(value, bool) or not isinstance(value, kind):
        kinds = kind if isinstance(kind, tuple) else (kind,)
        expected = " or ".join(k.__name__ for k in kinds)
        raise ContentDecodeError(f"Field '{name}' should be {expected}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class PremiumDetails:
    """Pricing for premium (gated) content."""
    price_usd: float
    full_content_url: Optional[str] = None

    @property
    def display_price(self) -> str:
        return f"${self.price_usd:.2f}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PremiumDetails":
        price = data.get("price_usd")
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ContentDecodeError(f"Field 'price_usd' should be a number, got {price!r}")
        return cls(price_usd=float(price), full_content_url=data.get("full_content_url"))

    def to_dict(self) -> Dict[str, Any]:
        return {"price_usd": self.price_usd, "full_content_url": self.full_content_url}


@dataclass(frozen=True)
class Post:
    """A single feed item."""
    id: PostID
    profile_id: ProfileID
    created_at: datetime
    caption: str
    image_url: str
    category: str
    hashtags: List[str] = field(default_factory=list)
    cta_url: Optional[str] = None
    premium_details: Optional[PremiumDetails] = None
    profile: Optional["Profile"] = None

    @property
    def is_premium(self) -> bool:
        return self.category == PREMIUM_CATEGORY

    def copy_with_new_id(self) -> "Post":
        """Same content under a fresh id (used to loop the feed)."""
        return replace(self, id=PostID(str(uuid.uuid4())))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        """Builds a Post from its API/cache JSON form.

        Raises:
            ContentDecodeError: If a required field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ContentDecodeError(f"Post must be a JSON object, got {type(data).__name__}")

        hashtags = data.get("hashtags") or []
        if not isinstance(hashtags, list) or not all(isinstance(tag, str) for tag in hashtags):
            raise ContentDecodeError("Field 'hashtags' should be a list of strings")

        premium_details = None
        details = data.get(PREMIUM_DETAILS_FIELD)
        if isinstance(details, dict):
            details = [details]
        if details:
            if not isinstance(details, list) or not isinstance(details[0], dict):
                raise ContentDecodeError(f"Field '{PREMIUM_DETAILS_FIELD}' should be a list of objects")
            premium_details = PremiumDetails.from_dict(details[0])

        profile = None
        if isinstance(data.get(PROFILE_FIELD), dict):
            profile = Profile.from_dict(data[PROFILE_FIELD])

        return cls(
            id=PostID(str(_require(data, "id", (str, int)))),
            profile_id=ProfileID(str(_require(data, "profile_id", (str, int)))),
            created_at=parse_timestamp(_require(data, "created_at", (str, datetime))),
            caption=_require(data, "caption", str),
            image_url=_require(data, "image_url", str),
            category=_require(data, "category", str),
            hashtags=list(hashtags),
            cta_url=data.get("cta_url"),
            premium_details=premium_details,
            profile=profile,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "created_at": self.created_at.isoformat(),
            "caption": self.caption,
            "hashtags": list(self.hashtags),
            "image_url": self.image_url,
            "cta_url": self.cta_url,
            "category": self.category,
            PREMIUM_DETAILS_FIELD: [self.premium_details.to_dict()] if self.premium_details else [],
            PROFILE_FIELD: self.profile.to_dict() if self.profile else None,
        }


@dataclass(frozen=True)
class Profile:
    """A creator profile shown on profile pages."""
    id: ProfileID
    profile_name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    avatar_thumbnail_url: Optional[str] = None
    followers_count: int = 0
    following_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        if not isinstance(data, dict):
            raise ContentDecodeError(f"Profile must be a JSON object, got {type(data).__name__}")
        try:
            followers = int(data.get("followers_count") or 0)
            following = int(data.get("following_count") or 0)
        except (TypeError, ValueError) as e:
            raise ContentDecodeError(f"Invalid follower counts: {e}") from e
        return cls(
            id=ProfileID(str(_require(data, "id", (str, int)))),
            profile_name=_require(data, "profile_name", str),
            bio=data.get("bio"),
            avatar_url=data.get("avatar_url"),
            avatar_thumbnail_url=data.get("avatar_thumbnail_url"),
            followers_count=followers,
            following_count=following,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "profile_name": self.profile_name,
            "bio": self.bio,
            "avatar_url": self.avatar_url,
            "avatar_thumbnail_url": self.avatar_thumbnail_url,
            "followers_count": self.followers_count,
            "following_count": self.following_count,
        }


def parse_posts(items: Any) -> List[Post]:
    """Decodes a list of post objects, failing on the first invalid item."""
    if not isinstance(items, list):
        raise ContentDecodeError(f"Expected a list of posts, got {type(items).__name__}")
    return [Post.from_dict(item) for item in items]


def group_posts_by_profile(posts: List[Post]) -> List[List[Post]]:
    """Groups posts by profile.

    Groups are ordered by their most recent post, newest first, and the posts
    inside each group are newest first as well.
    """
    groups: Dict[str, List[Post]] = {}
    for post in posts:
        groups.setdefault(post.profile_id, []).append(post)

    ordered = [sorted(group, key=lambda p: p.created_at, reverse=True) for group in groups.values()]
    ordered.sort(key=lambda group: group[0].created_at, reverse=True)
    return ordered
