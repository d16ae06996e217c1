"""Failure kinds shared by the API client and its callers."""

from typing import Any


class GistaError(Exception):
    """Base class for every failure surfaced by the API access layer.

    Errors compare by kind and associated detail, so two ``ServerError``
    instances with the same detail are equal while a ``ServerError`` never
    equals a ``TransportError``.
    """

    description = "Unknown error"
    retryable = False

    def __init__(self, detail: Any = None) -> None:
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.detail is None:
            return self.description
        return f"{self.description}: {self.detail}"

    def __repr__(self) -> str:
        if self.detail is None:
            return f"{type(self).__name__}()"
        return f"{type(self).__name__}({self.detail!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GistaError):
            return NotImplemented
        return type(self) is type(other) and self.detail == other.detail

    def __hash__(self) -> int:
        return hash((type(self), self.detail))


class InvalidURLError(GistaError):
    description = "Invalid URL"

    def __init__(self) -> None:
        super().__init__()


class InvalidResponseError(GistaError):
    description = "Invalid server response"

    def __init__(self) -> None:
        super().__init__()


class UnauthorizedError(GistaError):
    description = "Unauthorized access"

    def __init__(self) -> None:
        super().__init__()


class ForbiddenError(GistaError):
    description = "Forbidden access"

    def __init__(self) -> None:
        super().__init__()


class NotFoundError(GistaError):
    description = "Resource not found"

    def __init__(self) -> None:
        super().__init__()


class RateLimitedError(GistaError):
    description = "Rate limit exceeded"

    def __init__(self) -> None:
        super().__init__()


class ServerError(GistaError):
    description = "Server error"
    retryable = True

    def __init__(self, detail: str) -> None:
        super().__init__(detail)


class UnexpectedStatusError(GistaError):
    description = "Unexpected status code"

    def __init__(self, status_code: int) -> None:
        super().__init__(status_code)

    @property
    def status_code(self) -> int:
        return int(self.detail)


class DecodingError(GistaError):
    description = "Decoding error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)


class EncodingError(GistaError):
    description = "Encoding error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)


class TransportError(GistaError):
    description = "Network error"
    retryable = True

    def __init__(self, detail: str) -> None:
        super().__init__(detail)


class UnknownError(GistaError):
    def __init__(self) -> None:
        super().__init__()
