"""Routing table mapping each backend operation to its HTTP encoding."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel

from gista.api.payloads import (
    CategoryRequest,
    CreateGistRequest,
    CreateUserRequest,
    GistUpdateRequest,
    LinkGistStatusRequest,
    StoreLinkRequest,
    UpdateUserRequest,
)
from gista.clients.executor import RequestDescriptor


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class Operation(str, Enum):
    """Closed set of logical backend operations."""

    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    STORE_LINK = "store_link"
    UPDATE_LINK_GIST_STATUS = "update_link_gist_status"
    FETCH_LINKS = "fetch_links"
    CREATE_GIST = "create_gist"
    UPDATE_GIST_STATUS = "update_gist_status"
    SIGNAL_GIST_PRODUCTION = "signal_gist_production"
    DELETE_GIST = "delete_gist"
    FETCH_GISTS = "fetch_gists"
    FETCH_CATEGORIES = "fetch_categories"
    FETCH_CATEGORY = "fetch_category"
    CREATE_CATEGORY = "create_category"
    UPDATE_CATEGORY = "update_category"


class _EmptyBody:
    """Marker for routes that always send ``{}`` and let the backend pick defaults."""

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = _EmptyBody()


@dataclass(frozen=True)
class Route:
    method: HTTPMethod
    path_template: str
    body: type[BaseModel] | _EmptyBody | None = None

    @property
    def requires_body(self) -> bool:
        return isinstance(self.body, type)


ROUTES: dict[Operation, Route] = {
    Operation.CREATE_USER: Route(HTTPMethod.POST, "/auth/create_user", CreateUserRequest),
    Operation.UPDATE_USER: Route(HTTPMethod.PUT, "/auth/update-user", UpdateUserRequest),
    Operation.DELETE_USER: Route(HTTPMethod.DELETE, "/auth/delete_user/{user_id}"),
    Operation.STORE_LINK: Route(HTTPMethod.POST, "/links/store", StoreLinkRequest),
    Operation.UPDATE_LINK_GIST_STATUS: Route(
        HTTPMethod.PUT,
        "/links/update-gist-status/{user_id}/{link_id}",
        LinkGistStatusRequest,
    ),
    Operation.FETCH_LINKS: Route(HTTPMethod.GET, "/links/{user_id}"),
    Operation.CREATE_GIST: Route(HTTPMethod.POST, "/gists/add/{user_id}", CreateGistRequest),
    Operation.UPDATE_GIST_STATUS: Route(
        HTTPMethod.PUT, "/gists/update/{user_id}/{gist_id}", GistUpdateRequest
    ),
    Operation.SIGNAL_GIST_PRODUCTION: Route(
        HTTPMethod.PUT, "/gists/{user_id}/{gist_id}/status", EMPTY
    ),
    Operation.DELETE_GIST: Route(HTTPMethod.DELETE, "/gists/delete/{user_id}/{gist_id}"),
    Operation.FETCH_GISTS: Route(HTTPMethod.GET, "/gists/{user_id}"),
    Operation.FETCH_CATEGORIES: Route(HTTPMethod.GET, "/categories"),
    Operation.FETCH_CATEGORY: Route(HTTPMethod.GET, "/categories/{slug}"),
    Operation.CREATE_CATEGORY: Route(HTTPMethod.POST, "/categories/add", CategoryRequest),
    Operation.UPDATE_CATEGORY: Route(
        HTTPMethod.PUT, "/categories/update/{category_id}", CategoryRequest
    ),
}


class _StrictParams(dict):
    def __missing__(self, key: str) -> str:
        raise KeyError(f"missing path parameter '{key}'")


def route_for(operation: Operation) -> Route:
    return ROUTES[operation]


def resolve_path(operation: Operation, **params: str) -> str:
    """Substitute percent-encoded path parameters into an operation's template.

    Raises:
        KeyError: If a parameter named in the template is missing.
    """
    template = ROUTES[operation].path_template
    encoded = {key: quote(str(value), safe="") for key, value in params.items()}
    return template.format_map(_StrictParams(encoded))


def build_request(
    operation: Operation,
    body: BaseModel | None = None,
    query: Mapping[str, str] | None = None,
    headers: Mapping[str, str] | None = None,
    **params: str,
) -> RequestDescriptor:
    """Build the request descriptor for one call of an operation.

    Raises:
        KeyError: If a path parameter is missing.
        TypeError: If the body does not match the operation's body shape.
    """
    route = ROUTES[operation]
    payload: Any
    if isinstance(route.body, _EmptyBody):
        if body is not None:
            raise TypeError(f"{operation.value} sends an empty body")
        payload = {}
    elif route.body is None:
        if body is not None:
            raise TypeError(f"{operation.value} takes no body")
        payload = None
    else:
        if not isinstance(body, route.body):
            raise TypeError(
                f"{operation.value} requires a {route.body.__name__} body, "
                f"got {type(body).__name__}"
            )
        payload = body

    return RequestDescriptor(
        operation=operation.value,
        method=route.method.value,
        path=resolve_path(operation, **params),
        query=query,
        body=payload,
        headers=dict(headers or {}),
    )
