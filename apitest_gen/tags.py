"""Tags for marking endpoint classes and methods for test generation.

The decorators and markers in this module do nothing at runtime beyond
recording their arguments on the decorated object. The generator reads
them statically from source, so tag arguments must be literals, enum
members (``MatcherKind.EQUAL_TO``, ``HTTPStatus.OK``) or module-level
constants.

Example:
    >>> @generate_api_test(auth_url="/auth/login", username="admin", password="secret")
    ... @request_mapping("/api/clients")
    ... class ClientController:
    ...     @get("/{client_id}")
    ...     @api_test_spec(scenarios=[
    ...         api_test_case(expected_status_code=200, data_provider="client"),
    ...     ])
    ...     def get_client(self, client_id: int = PathParam()):
    ...         ...
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from apitest_gen.core.matchers import MatcherKind
from apitest_gen.core.model import DEFAULT_TOKEN_FIELD, UNSET_RESPONSE_TIMEOUT

__all__ = [
    "ApiTestCase",
    "BodyParam",
    "BodyPath",
    "CookieParam",
    "ExpectedCookie",
    "ExpectedHeader",
    "FileParam",
    "FormParam",
    "HeaderParam",
    "JsonPath",
    "MatcherKind",
    "MatrixParam",
    "PathParam",
    "QueryParam",
    "RequestPart",
    "api_test_case",
    "api_test_spec",
    "delete",
    "generate_api_test",
    "get",
    "head",
    "patch",
    "post",
    "put",
    "request_mapping",
    "route",
]

TAG_ATTRIBUTE = "__apitest_tags__"


def _record(target: Any, key: str, value: Any) -> Any:
    tags = dict(getattr(target, TAG_ATTRIBUTE, {}))
    tags[key] = value
    setattr(target, TAG_ATTRIBUTE, tags)
    return target


# Class-level tags


def generate_api_test(
    _cls: Optional[type] = None,
    *,
    auth_url: str = "",
    username: str = "",
    password: str = "",
    token_field_name: str = DEFAULT_TOKEN_FIELD,
) -> Any:
    """Mark a class for test generation, optionally with auth credentials.

    Usable bare (``@generate_api_test``) or with arguments.
    """
    options = {
        "auth_url": auth_url,
        "username": username,
        "password": password,
        "token_field_name": token_field_name,
    }

    def decorator(cls: type) -> type:
        return _record(cls, "generate_api_test", options)

    if _cls is not None:
        return decorator(_cls)
    return decorator


def request_mapping(path: str = "") -> Callable[[Any], Any]:
    """Set the base path for every route of a class."""

    def decorator(target: Any) -> Any:
        return _record(target, "request_mapping", path)

    return decorator


# Method-level routing tags


def route(path: str = "", methods: Sequence[str] = ("GET",)) -> Callable[[Any], Any]:
    """Declare the HTTP verb and path template of a method."""
    verb = methods[0].lower() if methods else ""

    def decorator(func: Any) -> Any:
        return _record(func, "route", (verb, path))

    return decorator


def get(path: str = "") -> Callable[[Any], Any]:
    return route(path, methods=("GET",))


def post(path: str = "") -> Callable[[Any], Any]:
    return route(path, methods=("POST",))


def put(path: str = "") -> Callable[[Any], Any]:
    return route(path, methods=("PUT",))


def patch(path: str = "") -> Callable[[Any], Any]:
    return route(path, methods=("PATCH",))


def delete(path: str = "") -> Callable[[Any], Any]:
    return route(path, methods=("DELETE",))


def head(path: str = "") -> Callable[[Any], Any]:
    return route(path, methods=("HEAD",))


# Scenario tags


@dataclass(frozen=True)
class BodyPath:
    """Assertion on a response body value selected by JSON path."""

    path: str
    matcher: Optional[MatcherKind] = MatcherKind.EQUAL_TO
    value: str = ""
    custom_matcher: Optional[Any] = None


JsonPath = BodyPath


@dataclass(frozen=True)
class ExpectedHeader:
    """Expected response header with one or more values."""

    name: str
    value: Sequence[str] = ()


@dataclass(frozen=True)
class ExpectedCookie:
    """Expected response cookie value."""

    name: str
    value: str = ""


@dataclass(frozen=True)
class ApiTestCase:
    """One declared test case; field defaults are the tag's declared defaults."""

    display_name: str = ""
    order: int = 0
    timeout: int = 0
    expected_status_code: int = 0
    requires_auth: bool = False
    data_provider: str = ""
    repeat: int = 1
    enable_logging: bool = False
    response_timeout_seconds: int = UNSET_RESPONSE_TIMEOUT
    expected_headers: Sequence[ExpectedHeader] = field(default_factory=tuple)
    expected_cookies: Sequence[ExpectedCookie] = field(default_factory=tuple)
    body_paths: Sequence[BodyPath] = field(default_factory=tuple)


def api_test_case(**fields: Any) -> ApiTestCase:
    """Declare one test case. ``json_paths`` is accepted for ``body_paths``."""
    if "json_paths" in fields:
        fields["body_paths"] = fields.pop("json_paths")
    return ApiTestCase(**fields)


def api_test_spec(scenarios: Sequence[ApiTestCase] = ()) -> Callable[[Any], Any]:
    """Attach test cases to an endpoint method."""

    def decorator(func: Any) -> Any:
        return _record(func, "api_test_spec", tuple(scenarios))

    return decorator


# Parameter role markers


@dataclass(frozen=True)
class _ParamMarker:
    """Request role of an endpoint parameter.

    ``name`` (or ``alias``) overrides the parameter name as the request
    and test data key.
    """

    role = ""

    name: Optional[str] = None
    default: Any = None
    alias: Optional[str] = None


@dataclass(frozen=True)
class PathParam(_ParamMarker):
    role = "path"


@dataclass(frozen=True)
class QueryParam(_ParamMarker):
    role = "query"


@dataclass(frozen=True)
class HeaderParam(_ParamMarker):
    role = "header"


@dataclass(frozen=True)
class CookieParam(_ParamMarker):
    role = "cookie"


@dataclass(frozen=True)
class BodyParam(_ParamMarker):
    role = "body"


@dataclass(frozen=True)
class FormParam(_ParamMarker):
    role = "form"


@dataclass(frozen=True)
class FileParam(_ParamMarker):
    role = "file"


@dataclass(frozen=True)
class MatrixParam(_ParamMarker):
    """Matrix parameter (``;key=value``) attached to the path variable ``path_var``."""

    role = "matrix"

    path_var: str = ""


@dataclass(frozen=True)
class RequestPart(_ParamMarker):
    """Part of a multipart request body."""

    role = "part"
