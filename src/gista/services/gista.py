"""Domain service: the single entry point for backend operations."""

import uuid
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

import httpx

from gista.api.endpoints import Operation, build_request
from gista.api.payloads import (
    CategoryRequest,
    CreateGistRequest,
    CreateUserRequest,
    GistStatusPayload,
    GistUpdateRequest,
    LinkData,
    LinkGistStatusRequest,
    SegmentPayload,
    StoreLinkRequest,
    UpdateUserRequest,
)
from gista.clients.executor import ExecutorConfig, RequestExecutor
from gista.config import Settings
from gista.models import (
    Article,
    Category,
    Gist,
    GistStatus,
    StoreArticleResult,
    User,
)
from gista.utils.logging import get_logger

logger = get_logger(__name__)


def _as_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def _as_list(value: Any, key: str) -> list[Any]:
    if not isinstance(value, list):
        raise TypeError(f"field '{key}' must be a list")
    return value


def _success_flag(payload: Any) -> bool:
    """Read ``success`` from a status response; a 2xx without one counts as success."""
    if isinstance(payload, dict) and isinstance(payload.get("success"), bool):
        return payload["success"]
    return True


def _unwrap(payload: Any, key: str) -> dict[str, Any]:
    """Return ``payload[key]`` when the backend wraps the record, else the payload."""
    data = _as_dict(payload)
    inner = data.get(key)
    return inner if isinstance(inner, dict) else data


def _status_payload(status: GistStatus) -> GistStatusPayload:
    api = status.to_api()
    return GistStatusPayload(
        in_production=api["inProduction"], production_status=api["production_status"]
    )


class GistaService:
    """One method per backend operation.

    Every method raises the ``GistaError`` produced by the executor unchanged;
    callers branch on ``UnauthorizedError``, ``ForbiddenError`` and
    ``NotFoundError`` themselves.
    """

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GistaService":
        """Build a service with an executor configured from settings."""
        executor = RequestExecutor(
            base_url=settings.api_base_url,
            config=ExecutorConfig(
                timeout=settings.request_timeout,
                max_retries=settings.max_retry_attempts,
                retry_delay=settings.retry_delay,
            ),
            token=settings.api_token,
            transport=transport,
        )
        return cls(executor)

    def set_auth_token(self, token: str | None) -> None:
        self._executor.set_auth_token(token)

    def set_base_url(self, base_url: str) -> None:
        self._executor.set_base_url(base_url)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._executor.close()

    async def __aenter__(self) -> "GistaService":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # Users

    async def create_user(self, email: str, password: str, username: str) -> User:
        """Register a user with the backend.

        The user id is generated client side as ``<username>_<uuid>``.
        """
        logger.info("Creating user", username=username)
        body = CreateUserRequest(
            user_id=f"{username}_{uuid.uuid4()}",
            email=email,
            password=password,
            username=username,
        )
        request = build_request(Operation.CREATE_USER, body=body)
        user = await self._executor.execute(
            request, lambda p: User.from_api_response(_as_dict(p))
        )
        logger.info("User created", user_id=user.user_id)
        return user

    async def update_user(self, user_id: str, username: str, email: str) -> bool:
        logger.info("Updating user", user_id=user_id)
        body = UpdateUserRequest(user_id=user_id, username=username, email=email)
        request = build_request(Operation.UPDATE_USER, body=body)
        return await self._executor.execute(request, _success_flag)

    async def delete_user(self, user_id: str) -> bool:
        logger.info("Deleting user", user_id=user_id)
        request = build_request(Operation.DELETE_USER, user_id=user_id)
        return await self._executor.execute(request, _success_flag)

    # Articles

    async def store_article(
        self, user_id: str, article: Article, auto_create_gist: bool = True
    ) -> StoreArticleResult:
        """Store a link and optionally have the backend create its gist.

        Returns:
            The result with the backend-assigned link id and, when a gist was
            created, its gist id.
        """
        logger.info(
            "Storing article",
            user_id=user_id,
            url=article.url,
            auto_create_gist=auto_create_gist,
        )
        body = StoreLinkRequest(
            user_id=user_id,
            link=LinkData(category=article.category, url=article.url, title=article.title),
            auto_create_gist=auto_create_gist,
        )
        request = build_request(Operation.STORE_LINK, body=body)
        result = await self._executor.execute(
            request, lambda p: StoreArticleResult.from_api_response(_as_dict(p))
        )
        logger.info("Article stored", link_id=result.link_id, gist_id=result.gist_id)
        return result

    async def update_article_gist_status(
        self,
        user_id: str,
        article_id: str,
        gist_id: str,
        image_url: str,
        title: str,
    ) -> Article:
        """Record that a link now has a gist. ``article_id`` is the backend link id."""
        body = LinkGistStatusRequest(gist_id=gist_id, image_url=image_url, link_title=title)
        request = build_request(
            Operation.UPDATE_LINK_GIST_STATUS, body=body, user_id=user_id, link_id=article_id
        )
        return await self._executor.execute(
            request, lambda p: Article.from_link_data(_as_dict(_as_dict(p)["link"]))
        )

    async def fetch_articles(self, user_id: str) -> list[Article]:
        request = build_request(Operation.FETCH_LINKS, user_id=user_id)

        def decode(payload: Any) -> list[Article]:
            links = _as_list(_as_dict(payload)["links"], "links")
            return [Article.from_link_data(_as_dict(link)) for link in links]

        articles = await self._executor.execute(request, decode)
        logger.info("Fetched articles", user_id=user_id, count=len(articles))
        return articles

    # Gists

    async def create_gist(self, user_id: str, gist: Gist, link_id: str | None = None) -> Gist:
        """Create a gist for a stored link.

        When the backend answers with only the assigned ``gistId``, the input
        gist is returned carrying that id.
        """
        body = CreateGistRequest(
            title=gist.title,
            link=gist.link,
            image_url=gist.image_url,
            category=gist.category,
            segments=[
                SegmentPayload(
                    duration=s.duration,
                    title=s.title,
                    audio_url=s.audio_url,
                    segment_index=s.segment_index,
                )
                for s in gist.segments
            ],
            playback_duration=gist.playback_duration,
            link_id=link_id,
            gist_id=gist.gist_id,
            status=_status_payload(gist.status),
        )
        request = build_request(Operation.CREATE_GIST, body=body, user_id=user_id)

        def decode(payload: Any) -> Gist:
            data = _unwrap(payload, "gist")
            if "title" not in data and isinstance(data.get("gistId"), str):
                return replace(gist, gist_id=data["gistId"])
            return Gist.from_api_response(data)

        created = await self._executor.execute(request, decode)
        logger.info("Gist created", user_id=user_id, gist_id=created.gist_id)
        return created

    async def update_gist_status(
        self,
        user_id: str,
        gist_id: str,
        status: GistStatus,
        is_played: bool | None = None,
        ratings: int | None = None,
    ) -> bool:
        """Send a full status update. ``gist_id`` is the backend-assigned id."""
        logger.info(
            "Updating gist status",
            user_id=user_id,
            gist_id=gist_id,
            in_production=status.in_production,
            production_status=status.production_status,
        )
        body = GistUpdateRequest(
            status=_status_payload(status), is_played=is_played, ratings=ratings
        )
        request = build_request(
            Operation.UPDATE_GIST_STATUS, body=body, user_id=user_id, gist_id=gist_id
        )
        return await self._executor.execute(request, _success_flag)

    async def update_gist_production_status(self, user_id: str, gist_id: str) -> bool:
        """Signal the backend to move a gist into production.

        Sends an empty body; the backend sets ``inProduction`` and the
        "Reviewing Content" status itself.
        """
        logger.info("Signalling gist production", user_id=user_id, gist_id=gist_id)
        request = build_request(
            Operation.SIGNAL_GIST_PRODUCTION, user_id=user_id, gist_id=gist_id
        )
        return await self._executor.execute(request, _success_flag)

    async def delete_gist(self, user_id: str, gist_id: str) -> bool:
        logger.info("Deleting gist", user_id=user_id, gist_id=gist_id)
        request = build_request(Operation.DELETE_GIST, user_id=user_id, gist_id=gist_id)

        def decode(payload: Any) -> bool:
            if isinstance(payload, dict):
                if isinstance(payload.get("success"), bool):
                    return payload["success"]
                message = payload.get("message")
                if isinstance(message, str):
                    return "deleted successfully" in message.lower()
            return True

        return await self._executor.execute(request, decode)

    async def fetch_gists(self, user_id: str) -> list[Gist]:
        """Fetch a user's gists, skipping records that lack required fields."""
        request = build_request(Operation.FETCH_GISTS, user_id=user_id)

        def decode(payload: Any) -> list[Gist]:
            gists: list[Gist] = []
            for entry in _as_list(_as_dict(payload)["gists"], "gists"):
                try:
                    gists.append(Gist.from_api_response(_as_dict(entry)))
                except (KeyError, TypeError) as e:
                    logger.warning("Skipping undecodable gist", user_id=user_id, error=repr(e))
            return gists

        gists = await self._executor.execute(request, decode)
        logger.info("Fetched gists", user_id=user_id, count=len(gists))
        return gists

    # Categories

    async def fetch_categories(self) -> list[Category]:
        request = build_request(Operation.FETCH_CATEGORIES)

        def decode(payload: Any) -> list[Category]:
            entries = _as_list(_as_dict(payload)["categories"], "categories")
            return [Category.from_api_response(_as_dict(c)) for c in entries]

        return await self._executor.execute(request, decode)

    async def fetch_category(self, slug: str) -> Category:
        request = build_request(Operation.FETCH_CATEGORY, slug=slug)
        return await self._executor.execute(
            request, lambda p: Category.from_api_response(_unwrap(p, "category"))
        )

    async def create_category(self, name: str, tags: Sequence[str]) -> Category:
        logger.info("Creating category", name=name)
        body = CategoryRequest(name=name, tags=list(tags))
        request = build_request(Operation.CREATE_CATEGORY, body=body)
        return await self._executor.execute(
            request, lambda p: Category.from_api_response(_unwrap(p, "category"))
        )

    async def update_category(
        self,
        category_id: str,
        name: str | None = None,
        tags: Sequence[str] | None = None,
    ) -> Category:
        logger.info("Updating category", category_id=category_id)
        body = CategoryRequest(name=name or "", tags=list(tags or []))
        request = build_request(Operation.UPDATE_CATEGORY, body=body, category_id=category_id)
        return await self._executor.execute(
            request, lambda p: Category.from_api_response(_unwrap(p, "category"))
        )
