"""Fluent HTTP test client used by generated tests.

Wraps ``httpx.Client`` with a chainable request builder and response
assertions built on PyHamcrest:

    (
        client.post()
        .uri("/api/clients")
        .content_type(MediaType.APPLICATION_JSON)
        .body_value({"name": "John"})
        .exchange()
        .expect_status().is_created()
        .expect_body()
        .json_path("$.name").value(equal_to("John"))
    )
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
from hamcrest import (
    all_of,
    assert_that,
    equal_to,
    greater_than_or_equal_to,
    is_not,
    less_than,
    none,
)
from hamcrest.core.matcher import Matcher

from apitest_gen.runtime import json_path
from apitest_gen.runtime.data import safe_string

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

Hook = Callable[[Any], None]


class MediaType:
    """Content type constants."""

    APPLICATION_JSON = "application/json"
    MULTIPART_FORM_DATA = "multipart/form-data"
    APPLICATION_FORM_URLENCODED = "application/x-www-form-urlencoded"
    TEXT_PLAIN = "text/plain"


def log_http_request(request: httpx.Request) -> None:
    """Event hook logging an outgoing request."""
    logger.info(f"Request: {request.method} {request.url}")
    logger.debug(f"Request headers: {dict(request.headers)}")


def log_http_response(response: httpx.Response) -> None:
    """Event hook logging a received response, body included."""
    response.read()
    logger.info(
        f"Response: {response.status_code} {response.request.method} {response.request.url}"
    )
    logger.debug(f"Response body: {response.text}")


class MultipartBody:
    """Form fields and files of a multipart request."""

    def __init__(
        self,
        fields: Optional[dict[str, str]] = None,
        files: Optional[dict[str, Any]] = None,
    ) -> None:
        self.fields = fields or {}
        self.files = files or {}

    @staticmethod
    def _is_file(value: Any) -> bool:
        return isinstance(value, (bytes, bytearray, Path)) or hasattr(value, "read")

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "MultipartBody":
        """Split test data into files and text fields.

        bytes, paths, file objects and ``(filename, content[, type])``
        tuples become files; every other value becomes a text field.
        """
        fields: dict[str, str] = {}
        files: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, Path):
                files[key] = (value.name, value.read_bytes())
            elif isinstance(value, tuple) or cls._is_file(value):
                files[key] = value
            elif value is not None:
                fields[key] = value if isinstance(value, str) else str(value)
        return cls(fields=fields, files=files)


class WebTestClient:
    """Chainable HTTP client for tests.

    Example:
        >>> client = WebTestClient("http://localhost:8000")
        >>> client.get().uri("/health").exchange().expect_status().is_ok()
    """

    def __init__(
        self,
        base_url: str = "",
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Union[float, httpx.Timeout] = DEFAULT_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
        request_hooks: Optional[list[Hook]] = None,
        response_hooks: Optional[list[Hook]] = None,
        owns_transport: bool = True,
    ) -> None:
        self.base_url = base_url
        self.owns_transport = owns_transport
        self.closed = False
        self.transport = transport
        self.timeout = timeout
        self.headers = dict(headers or {})
        self.request_hooks = list(request_hooks or [])
        self.response_hooks = list(response_hooks or [])
        self._client = httpx.Client(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            headers=self.headers,
            event_hooks={"request": self.request_hooks, "response": self.response_hooks},
        )

    def close(self) -> None:
        """Close the client; a transport borrowed from another client stays open."""
        if self.owns_transport:
            self._client.close()
        self.closed = True

    def __enter__(self) -> "WebTestClient":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def mutate(self) -> "WebTestClientBuilder":
        """Start a builder seeded with this client's settings."""
        return WebTestClientBuilder(self)

    def method(self, name: str) -> "RequestSpec":
        if not name:
            raise ValueError("HTTP method is required; the endpoint has no routing tag")
        return RequestSpec(self, name.upper())

    def get(self) -> "RequestSpec":
        return self.method("GET")

    def post(self) -> "RequestSpec":
        return self.method("POST")

    def put(self) -> "RequestSpec":
        return self.method("PUT")

    def patch(self) -> "RequestSpec":
        return self.method("PATCH")

    def delete(self) -> "RequestSpec":
        return self.method("DELETE")

    def head(self) -> "RequestSpec":
        return self.method("HEAD")

    def options(self) -> "RequestSpec":
        return self.method("OPTIONS")

    def send(self, request: httpx.Request) -> httpx.Response:
        return self._client.send(request)

    def build_request(self, method: str, url: str, **kwargs: Any) -> httpx.Request:
        return self._client.build_request(method, url, **kwargs)


class WebTestClientBuilder:
    """Builder for a client derived from an existing one."""

    def __init__(self, source: WebTestClient) -> None:
        self._base_url = source.base_url
        self._transport = source.transport
        self._timeout = source.timeout
        self._headers = dict(source.headers)
        self._request_hooks = list(source.request_hooks)
        self._response_hooks = list(source.response_hooks)

    def on_request(self, hook: Hook) -> "WebTestClientBuilder":
        self._request_hooks.append(hook)
        return self

    def on_response(self, hook: Hook) -> "WebTestClientBuilder":
        self._response_hooks.append(hook)
        return self

    def response_timeout(self, seconds: float) -> "WebTestClientBuilder":
        self._timeout = httpx.Timeout(seconds)
        return self

    def default_header(self, name: str, value: str) -> "WebTestClientBuilder":
        self._headers[name] = value
        return self

    def build(self) -> WebTestClient:
        return WebTestClient(
            base_url=self._base_url,
            transport=self._transport,
            timeout=self._timeout,
            headers=self._headers,
            request_hooks=self._request_hooks,
            response_hooks=self._response_hooks,
            owns_transport=self._transport is None,
        )


class RequestSpec:
    """Request under construction."""

    def __init__(self, client: WebTestClient, method: str) -> None:
        self._client = client
        self._method = method
        self._uri = ""
        self._headers: list[tuple[str, str]] = []
        self._cookies: list[tuple[str, str]] = []
        self._content_type: Optional[str] = None
        self._body: Any = None
        self._has_body = False

    def uri(self, uri: str) -> "RequestSpec":
        self._uri = uri
        return self

    def header(self, name: str, value: Any) -> "RequestSpec":
        """Add a request header; a None value (missing data key) is not sent."""
        if value is not None:
            self._headers.append((name, safe_string(value)))
        return self

    def cookie(self, name: str, value: Any) -> "RequestSpec":
        if value is not None:
            self._cookies.append((name, safe_string(value)))
        return self

    def content_type(self, media_type: str) -> "RequestSpec":
        self._content_type = media_type
        return self

    def body_value(self, value: Any) -> "RequestSpec":
        """Set the JSON body; mappings given in several calls are merged."""
        if self._has_body and isinstance(self._body, dict) and isinstance(value, Mapping):
            self._body = {**self._body, **value}
        else:
            self._body = dict(value) if isinstance(value, Mapping) else value
        self._has_body = True
        return self

    def body(self, body: Any) -> "RequestSpec":
        self._body = body
        self._has_body = True
        return self

    def _build(self) -> httpx.Request:
        headers = list(self._headers)
        if self._cookies:
            headers.append(("Cookie", "; ".join(f"{k}={v}" for k, v in self._cookies)))

        kwargs: dict[str, Any] = {}
        if isinstance(self._body, MultipartBody):
            # httpx writes the content type with its boundary
            if self._body.files:
                kwargs["data"] = self._body.fields
                kwargs["files"] = self._body.files
            else:
                # httpx only encodes multipart when files are given
                kwargs["files"] = {name: (None, value) for name, value in self._body.fields.items()}
        else:
            if self._content_type:
                headers.append(("Content-Type", self._content_type))
            if self._has_body:
                if self._content_type in (None, MediaType.APPLICATION_JSON):
                    kwargs["json"] = self._body
                elif isinstance(self._body, (str, bytes)):
                    kwargs["content"] = self._body
                else:
                    kwargs["data"] = self._body

        return self._client.build_request(self._method, self._uri, headers=headers, **kwargs)

    def exchange(self) -> "ResponseSpec":
        """Send the request and return the response for assertions."""
        response = self._client.send(self._build())
        return ResponseSpec(response)


class ResponseSpec:
    """Received response with chainable expectations."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response

    def _describe(self) -> str:
        request = self.response.request
        return f"{request.method} {request.url}"

    def expect_status(self) -> "StatusAssertions":
        return StatusAssertions(self)

    def expect_header(self) -> "HeaderAssertions":
        return HeaderAssertions(self)

    def expect_cookie(self) -> "CookieAssertions":
        return CookieAssertions(self)

    def expect_body(self) -> "BodyContentSpec":
        return BodyContentSpec(self)


class StatusAssertions:
    """Assertions on the response status code."""

    def __init__(self, spec: ResponseSpec) -> None:
        self._spec = spec

    def _check(self, matcher: Matcher) -> ResponseSpec:
        response = self._spec.response
        assert_that(
            response.status_code,
            matcher,
            f"Unexpected status for {self._spec._describe()}: {response.text[:500]}",
        )
        return self._spec

    def is_equal_to(self, status_code: int) -> ResponseSpec:
        return self._check(equal_to(status_code))

    def is_ok(self) -> ResponseSpec:
        return self.is_equal_to(200)

    def is_created(self) -> ResponseSpec:
        return self.is_equal_to(201)

    def is_no_content(self) -> ResponseSpec:
        return self.is_equal_to(204)

    def is_bad_request(self) -> ResponseSpec:
        return self.is_equal_to(400)

    def is_unauthorized(self) -> ResponseSpec:
        return self.is_equal_to(401)

    def is_forbidden(self) -> ResponseSpec:
        return self.is_equal_to(403)

    def is_not_found(self) -> ResponseSpec:
        return self.is_equal_to(404)

    def is_5xx_server_error(self) -> ResponseSpec:
        return self._check(all_of(greater_than_or_equal_to(500), less_than(600)))


class HeaderAssertions:
    """Assertions on response headers."""

    def __init__(self, spec: ResponseSpec) -> None:
        self._spec = spec

    def value_equals(self, name: str, *values: str) -> ResponseSpec:
        """Assert a header's values; without values only its presence is checked."""
        headers = self._spec.response.headers
        if not values:
            assert_that(headers.get(name), is_not(none()), f"Missing header {name}")
            return self._spec
        actual = headers.get_list(name, split_commas=len(values) > 1)
        assert_that(actual, equal_to(list(values)), f"Header {name}")
        return self._spec


class CookieAssertions:
    """Assertions on response cookies."""

    def __init__(self, spec: ResponseSpec) -> None:
        self._spec = spec

    def value_equals(self, name: str, value: str) -> ResponseSpec:
        actual = self._spec.response.cookies.get(name)
        assert_that(actual, equal_to(value), f"Cookie {name}")
        return self._spec


class BodyContentSpec:
    """Assertions on the decoded JSON body."""

    def __init__(self, spec: ResponseSpec) -> None:
        self._spec = spec
        self._document: Any = None
        self._decoded = False

    @property
    def document(self) -> Any:
        if not self._decoded:
            self._document = self._spec.response.json()
            self._decoded = True
        return self._document

    def json_path(self, path: str) -> "JsonPathAssertions":
        return JsonPathAssertions(self, path)

    def and_then(self) -> ResponseSpec:
        """Return to the response for further expectations."""
        return self._spec


class JsonPathAssertions:
    """Assertion on one JSON path of the body."""

    def __init__(self, body: BodyContentSpec, path: str) -> None:
        self._body = body
        self._path = path

    def value(self, matcher: Union[Matcher, Any]) -> BodyContentSpec:
        """Assert the selected value; plain values are compared for equality."""
        if not isinstance(matcher, Matcher):
            matcher = equal_to(matcher)
        actual = json_path.evaluate(self._body.document, self._path)
        assert_that(actual, matcher, f"JSON path {self._path}")
        return self._body
