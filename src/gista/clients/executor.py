"""Retrying HTTP request executor for the Gista backend."""

import asyncio
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from gista.errors import (
    DecodingError,
    EncodingError,
    ForbiddenError,
    GistaError,
    InvalidURLError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
    UnauthorizedError,
    UnexpectedStatusError,
    UnknownError,
)
from gista.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class ExecutorConfig:
    """Timeout and retry policy applied to every request."""

    timeout: float = 30.0
    max_retries: int = 2
    retry_delay: float = 1.0


@dataclass(frozen=True)
class RequestDescriptor:
    """A fully specified, single-use outbound call."""

    operation: str
    method: str
    path: str
    query: Mapping[str, str] | None = None
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)


def encode_body(body: Any) -> bytes:
    """Serialize a request body to JSON bytes.

    Raises:
        EncodingError: If the body cannot be represented as JSON.
    """
    try:
        if isinstance(body, BaseModel):
            payload = body.model_dump(mode="json", by_alias=True, exclude_none=True)
        else:
            payload = body
        return json.dumps(payload).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(str(e)) from e


def classify_status(status_code: int) -> GistaError | None:
    """Map a non-success status code to its error kind.

    Returns None for 2xx codes.
    """
    if 200 <= status_code <= 299:
        return None
    if status_code == 401:
        return UnauthorizedError()
    if status_code == 403:
        return ForbiddenError()
    if status_code == 404:
        return NotFoundError()
    if status_code == 429:
        return RateLimitedError()
    if 500 <= status_code <= 599:
        return ServerError(f"Status code: {status_code}")
    return UnexpectedStatusError(status_code)


class RequestExecutor:
    """Sends requests to the backend, retrying transport and server failures."""

    def __init__(
        self,
        base_url: str,
        config: ExecutorConfig | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._config = config or ExecutorConfig()
        self._token = token
        self._client = httpx.AsyncClient(timeout=self._config.timeout, transport=transport)

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_auth_token(self, token: str | None) -> None:
        """Replace the bearer token; applies from the next call."""
        self._token = token

    def set_base_url(self, base_url: str) -> None:
        """Replace the backend base URL; applies from the next call."""
        self._base_url = base_url

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "RequestExecutor":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    def resolve_url(self, path: str) -> httpx.URL:
        """Join the base URL and a request path.

        Raises:
            InvalidURLError: If the result is not an absolute http(s) URL.
        """
        if not path.startswith("/"):
            path = f"/{path}"
        try:
            url = httpx.URL(self._base_url.rstrip("/") + path)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidURLError() from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURLError()
        return url

    def build_headers(self, overrides: Mapping[str, str]) -> httpx.Headers:
        """Defaults, then caller overrides, then the bearer token."""
        headers = httpx.Headers(DEFAULT_HEADERS)
        headers.update(overrides)
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def execute(self, request: RequestDescriptor, decode: Callable[[Any], T]) -> T:
        """Send a request and decode the successful response.

        Args:
            request: The request to send.
            decode: Converts the parsed JSON payload (None for an empty body)
                into the expected value.

        Returns:
            The decoded value.

        Raises:
            GistaError: The classified failure. Retryable failures are raised
                only after the retry budget is exhausted.
        """
        url = self.resolve_url(request.path)
        headers = self.build_headers(request.headers)
        content = encode_body(request.body) if request.body is not None else None

        last_error: GistaError | None = None
        attempts = self._config.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                response = await self._send(request, url, headers, content, attempt)
                return self._handle_response(request, response, decode)
            except GistaError as e:
                last_error = e
                if not e.retryable:
                    raise
                if attempt == attempts:
                    logger.warning(
                        "Retries exhausted",
                        operation=request.operation,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise
                logger.info(
                    "Retrying request",
                    operation=request.operation,
                    attempt=attempt,
                    delay=self._config.retry_delay,
                    error=str(e),
                )
                await asyncio.sleep(self._config.retry_delay)

        raise last_error or UnknownError()

    async def _send(
        self,
        request: RequestDescriptor,
        url: httpx.URL,
        headers: httpx.Headers,
        content: bytes | None,
        attempt: int,
    ) -> httpx.Response:
        logger.debug(
            "Sending request",
            operation=request.operation,
            method=request.method,
            path=request.path,
            attempt=attempt,
        )
        try:
            return await self._client.request(
                request.method,
                url,
                params=dict(request.query) if request.query else None,
                headers=headers,
                content=content,
            )
        except httpx.InvalidURL as e:
            raise InvalidURLError() from e
        except httpx.TimeoutException as e:
            logger.warning("Request timed out", operation=request.operation, attempt=attempt)
            raise TransportError("timeout") from e
        except httpx.TransportError as e:
            logger.warning(
                "Transport error", operation=request.operation, attempt=attempt, error=str(e)
            )
            raise TransportError(str(e) or type(e).__name__) from e
        except httpx.DecodingError as e:
            logger.warning(
                "Undecodable response body", operation=request.operation, error=str(e)
            )
            raise DecodingError(f"invalid content encoding: {e}") from e
        except httpx.RequestError as e:
            logger.warning(
                "Request failed", operation=request.operation, attempt=attempt, error=str(e)
            )
            raise TransportError(str(e) or type(e).__name__) from e

    def _handle_response(
        self,
        request: RequestDescriptor,
        response: httpx.Response,
        decode: Callable[[Any], T],
    ) -> T:
        logger.debug(
            "Received response",
            operation=request.operation,
            status=response.status_code,
        )
        error = classify_status(response.status_code)
        if error is not None:
            logger.warning(
                "Request failed",
                operation=request.operation,
                status=response.status_code,
                error=str(error),
            )
            raise error

        try:
            payload = response.json() if response.content.strip() else None
        except ValueError as e:
            raise DecodingError(f"invalid JSON: {e}") from e

        try:
            return decode(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(
                "Failed to decode response", operation=request.operation, error=repr(e)
            )
            raise DecodingError(repr(e)) from e
