"""Domain records exchanged with the Gista backend.

Every record is immutable. Decoding follows a lenient policy: a small set of
fields per record is required and a missing one raises ``KeyError`` (surfaced
as ``DecodingError`` by the executor); every other field falls back to a
documented default.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

DEFAULT_PRODUCTION_STATUS = "Reviewing Content"
DEFAULT_SEGMENT_TITLE = "Untitled Segment"
DEFAULT_SEGMENT_AUDIO_URL = "https://example.com/audio.mp3"
DEFAULT_GIST_IMAGE_URL = "https://example.com/image.jpg"
DEFAULT_PUBLISHER = "theNewGista"
DEFAULT_LINK_TITLE = "Unknown Title"
DEFAULT_LINK_TYPE = "Web"
DEFAULT_LINK_URL = "https://example.com"
DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_USER_MESSAGE = "User operation completed"


def _now() -> datetime:
    return datetime.now(UTC)


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 string, returning None when it is absent or malformed."""
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_datetime(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"field '{key}' must be a string, got {type(value).__name__}")
    return value


def _str_or(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _bool_or(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


def _int_or(data: dict[str, Any], key: str, default: int) -> int:
    """Read an integer that the backend sometimes sends as a numeric string."""
    value = data.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _local_id(value: Any) -> uuid.UUID:
    if isinstance(value, str):
        try:
            return uuid.UUID(value)
        except ValueError:
            pass
    return uuid.uuid4()


@dataclass(frozen=True)
class User:
    """A Gista account as returned by the backend."""

    user_id: str
    username: str = ""
    email: str = ""
    is_authenticated: bool = False
    profile_picture_url: str | None = None
    message: str = DEFAULT_USER_MESSAGE
    last_login: datetime | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "User":
        """Create a User from API response data. Only ``user_id`` is required."""
        return cls(
            user_id=_require_str(data, "user_id"),
            username=_str_or(data, "username", ""),
            email=_str_or(data, "email", ""),
            is_authenticated=_bool_or(data, "isAuthenticated", False),
            profile_picture_url=_optional_str(data, "profile_picture_url"),
            message=_str_or(data, "message", DEFAULT_USER_MESSAGE),
            last_login=parse_datetime(data.get("lastLoginDate")),
        )


@dataclass(frozen=True)
class ArticleGistStatus:
    """Link between a stored article and the gist produced from it."""

    gist_created: bool
    gist_id: str | None
    image_url: str | None
    link_id: str
    title: str
    link_type: str = DEFAULT_LINK_TYPE
    url: str = DEFAULT_LINK_URL

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ArticleGistStatus":
        """Create a status from the ``gist_created`` object of a link.

        A status object without an explicit ``gist_created`` flag is taken to
        mean the gist exists.
        """
        return cls(
            gist_created=_bool_or(data, "gist_created", True),
            gist_id=_optional_str(data, "gist_id"),
            image_url=_optional_str(data, "image_url"),
            link_id=_str_or(data, "link_id", str(uuid.uuid4())),
            title=_str_or(data, "link_title", DEFAULT_LINK_TITLE),
            link_type=_str_or(data, "link_type", DEFAULT_LINK_TYPE),
            url=_str_or(data, "url", DEFAULT_LINK_URL),
        )

    @classmethod
    def missing(cls) -> "ArticleGistStatus":
        """Placeholder used when a link carries no readable status."""
        return cls(
            gist_created=False,
            gist_id=None,
            image_url=None,
            link_id=str(uuid.uuid4()),
            title=DEFAULT_LINK_TITLE,
        )


@dataclass(frozen=True)
class Article:
    """An article or link saved by the user."""

    title: str
    url: str
    category: str = DEFAULT_CATEGORY
    duration: int = 0
    date_added: datetime = field(default_factory=_now)
    gist_status: ArticleGistStatus | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def from_link_data(cls, data: dict[str, Any]) -> "Article":
        """Create an Article from a backend link record. ``category`` is required."""
        category = _require_str(data, "category")
        raw_status = data.get("gist_created")
        if isinstance(raw_status, dict):
            status = ArticleGistStatus.from_api_response(raw_status)
        else:
            status = ArticleGistStatus.missing()
        return cls(
            title=status.title,
            url=status.url,
            category=category,
            date_added=parse_datetime(data.get("date_added")) or _now(),
            gist_status=status,
        )

    @property
    def link_id(self) -> str | None:
        """Backend id of the link, when the backend has assigned one."""
        return self.gist_status.link_id if self.gist_status else None


@dataclass(frozen=True)
class StoreArticleResult:
    """Outcome of storing a link, with the ids the backend assigned."""

    success: bool
    message: str
    link_id: str | None = None
    gist_id: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "StoreArticleResult":
        return cls(
            success=_bool_or(data, "success", True),
            message=_str_or(data, "message", "Operation completed"),
            link_id=_optional_str(data, "linkId"),
            gist_id=_optional_str(data, "gistId"),
        )


@dataclass(frozen=True)
class GistSegment:
    """One playable audio segment of a gist."""

    duration: int
    title: str
    audio_url: str
    segment_index: int | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "GistSegment":
        index = data.get("segment_index")
        return cls(
            duration=_int_or(data, "playback_duration", 0),
            title=_str_or(data, "segment_title", DEFAULT_SEGMENT_TITLE),
            audio_url=_str_or(data, "segment_audioUrl", DEFAULT_SEGMENT_AUDIO_URL),
            segment_index=index if isinstance(index, int) and not isinstance(index, bool) else None,
        )

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "playback_duration": self.duration,
            "segment_title": self.title or DEFAULT_SEGMENT_TITLE,
            "segment_audioUrl": self.audio_url,
        }
        if self.segment_index is not None:
            data["segment_index"] = self.segment_index
        return data


@dataclass(frozen=True)
class GistStatus:
    """Production state of a gist."""

    in_production: bool = False
    production_status: str = DEFAULT_PRODUCTION_STATUS

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "GistStatus":
        return cls(
            in_production=_bool_or(data, "inProduction", False),
            production_status=_str_or(data, "production_status", DEFAULT_PRODUCTION_STATUS),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "inProduction": self.in_production,
            "production_status": self.production_status or DEFAULT_PRODUCTION_STATUS,
        }


@dataclass(frozen=True)
class Gist:
    """An audio gist produced from an article.

    ``id`` is local; ``gist_id`` is the backend-assigned id and is the one to
    use when addressing the gist in API calls.
    """

    title: str
    category: str
    link: str
    image_url: str = DEFAULT_GIST_IMAGE_URL
    segments: tuple[GistSegment, ...] = ()
    status: GistStatus = field(default_factory=GistStatus)
    is_played: bool = False
    is_published: bool = True
    playback_duration: int = 0
    ratings: int = 0
    users: int = 0
    publisher: str = DEFAULT_PUBLISHER
    date_created: datetime = field(default_factory=_now)
    gist_id: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Gist":
        """Create a Gist from API data. ``title``, ``category`` and ``link`` are required."""
        raw_segments = data.get("segments")
        segments: tuple[GistSegment, ...] = ()
        if isinstance(raw_segments, list):
            segments = tuple(
                GistSegment.from_api_response(s) for s in raw_segments if isinstance(s, dict)
            )

        raw_status = data.get("status")
        status = (
            GistStatus.from_api_response(raw_status)
            if isinstance(raw_status, dict)
            else GistStatus()
        )

        return cls(
            title=_require_str(data, "title"),
            category=_require_str(data, "category"),
            link=_require_str(data, "link"),
            image_url=_str_or(data, "image_url", DEFAULT_GIST_IMAGE_URL),
            segments=segments,
            status=status,
            is_played=_bool_or(data, "is_played", False),
            is_published=_bool_or(data, "is_published", True),
            playback_duration=_int_or(data, "playback_duration", 0),
            ratings=_int_or(data, "ratings", 0),
            users=_int_or(data, "users", 0),
            publisher=_str_or(data, "publisher", DEFAULT_PUBLISHER),
            date_created=parse_datetime(data.get("date_created")) or _now(),
            gist_id=_optional_str(data, "gistId"),
            id=_local_id(data.get("id")),
        )

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": str(self.id),
            "title": self.title,
            "category": self.category,
            "link": self.link,
            "image_url": self.image_url,
            "segments": [s.to_api() for s in self.segments],
            "status": self.status.to_api(),
            "is_played": self.is_played,
            "is_published": self.is_published,
            "playback_duration": self.playback_duration,
            "ratings": self.ratings,
            "users": self.users,
            "publisher": self.publisher,
            "date_created": format_datetime(self.date_created),
        }
        if self.gist_id is not None:
            data["gistId"] = self.gist_id
        return data


@dataclass(frozen=True)
class Category:
    """A gist category with its tags."""

    id: str
    name: str
    slug: str
    tags: tuple[str, ...] = ()

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Category":
        category_id = data["_id"] if "_id" in data else data["id"]
        raw_tags = data.get("tags")
        tags = tuple(t for t in raw_tags if isinstance(t, str)) if isinstance(raw_tags, list) else ()
        return cls(
            id=str(category_id),
            name=_require_str(data, "name"),
            slug=_require_str(data, "slug"),
            tags=tags,
        )
