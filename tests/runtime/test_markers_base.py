"""Tests for test markers and bearer token support."""

import json

import httpx
import pytest

from apitest_gen.runtime.base import ApiTestBase, clear_token_cache, obtain_bearer_token
from apitest_gen.runtime.client import WebTestClient
from apitest_gen.runtime.markers import api_test, display_name, repeated_test

pytestmark = pytest.mark.runtime


class TestMarkers:
    """Tests for collection markers."""

    def test_api_test_enables_collection(self):
        @api_test
        def fetch_client_200(self):
            pass

        assert fetch_client_200.__test__ is True

    def test_repeated_test(self):
        """Test the repeat mark is attached along with the collection flag."""

        @repeated_test(3)
        def fetch_client_200(self):
            pass

        marks = fetch_client_200.pytestmark
        assert [(m.name, m.args) for m in marks] == [("repeat", (3,))]
        assert fetch_client_200.__test__ is True

    def test_display_name(self):
        @display_name("Fetch client")
        def fetch_client_200(self):
            pass

        assert [(m.name, m.args) for m in fetch_client_200.pytestmark] == [
            ("display_name", ("Fetch client",))
        ]

    def test_base_class_is_not_collected(self):
        assert ApiTestBase.__test__ is False


class TestObtainBearerToken:
    """Tests for obtain_bearer_token."""

    @pytest.fixture(autouse=True)
    def fresh_cache(self):
        clear_token_cache()
        yield
        clear_token_cache()

    def make_client(self, handler, calls):
        def counting(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return handler(request)

        return WebTestClient("http://auth.test", transport=httpx.MockTransport(counting))

    def test_login_returns_bearer_value(self):
        calls = []
        client = self.make_client(lambda request: httpx.Response(200, json={"token": "abc"}), calls)

        value = obtain_bearer_token(client, "/auth/login", "admin", "secret")

        assert value == "Bearer abc"
        request = calls[0]
        assert request.method == "POST"
        assert request.url.path == "/auth/login"
        assert json.loads(request.read()) == {"username": "admin", "password": "secret"}

    def test_token_is_cached(self):
        """Test one login per base URL, auth URL and user."""
        calls = []
        client = self.make_client(lambda request: httpx.Response(200, json={"token": "abc"}), calls)

        obtain_bearer_token(client, "/auth/login", "admin", "secret")
        obtain_bearer_token(client, "/auth/login", "admin", "secret")
        obtain_bearer_token(client, "/auth/login", "other", "secret")

        assert len(calls) == 2

    def test_custom_token_field(self):
        calls = []
        client = self.make_client(
            lambda request: httpx.Response(200, json={"data": {"access_token": "xyz"}}), calls
        )

        value = obtain_bearer_token(client, "/auth", "u", "p", token_field="$.data.access_token")

        assert value == "Bearer xyz"

    def test_failed_login(self):
        calls = []
        client = self.make_client(lambda request: httpx.Response(401), calls)

        with pytest.raises(AssertionError, match="401"):
            obtain_bearer_token(client, "/auth", "u", "p")

    def test_missing_token_field(self):
        calls = []
        client = self.make_client(lambda request: httpx.Response(200, json={"jwt": "abc"}), calls)

        with pytest.raises(AssertionError, match="token"):
            obtain_bearer_token(client, "/auth", "u", "p")
