"""Base class and auth support for generated test classes."""

import threading
from typing import Optional

import pytest

from apitest_gen.runtime import json_path
from apitest_gen.runtime.client import MediaType, WebTestClient

_token_cache: dict[tuple[str, str, str], str] = {}
_token_lock = threading.Lock()


class ApiTestBase:
    """Base class of generated test classes.

    Binds the ``web_test_client`` fixture to ``self.web_test_client``
    before every test. ``bearer_token`` is set by the generated
    ``authenticate`` fixture when the tested class declares credentials.
    """

    __test__ = False

    base_path = ""
    bearer_token: Optional[str] = None
    web_test_client: WebTestClient

    @pytest.fixture(autouse=True)
    def _bind_web_test_client(self, web_test_client: WebTestClient) -> None:
        self.web_test_client = web_test_client


def obtain_bearer_token(
    client: WebTestClient,
    auth_url: str,
    username: str,
    password: str,
    token_field: str = "token",
) -> str:
    """Log in once per (base URL, auth URL, user) and return the Authorization value.

    Args:
        client: Client used for the login request
        auth_url: Login endpoint
        username: Login user name
        password: Login password
        token_field: Field (or JSON path) of the token in the response body

    Returns:
        ``Bearer <token>``

    Raises:
        AssertionError: If login fails or the response has no token
    """
    key = (client.base_url, auth_url, username)
    with _token_lock:
        if key in _token_cache:
            return _token_cache[key]

    response = (
        client.post()
        .uri(auth_url)
        .content_type(MediaType.APPLICATION_JSON)
        .body_value({"username": username, "password": password})
        .exchange()
        .response
    )
    if not response.is_success:
        raise AssertionError(f"Login to {auth_url} failed with status {response.status_code}")

    token = json_path.evaluate(response.json(), token_field)
    if not token:
        raise AssertionError(f"Login response from {auth_url} has no '{token_field}'")

    value = f"Bearer {token}"
    with _token_lock:
        _token_cache[key] = value
    return value


def clear_token_cache() -> None:
    with _token_lock:
        _token_cache.clear()
