"""End-to-end tests running generated modules under pytest."""

import pytest

from apitest_gen.core.module_generator import TestModuleGenerator
from apitest_gen.core.scanner import DeclarationScanner, TestedTypeAccumulator

pytestmark = pytest.mark.integration

# Fake service answering the requests of the generated ClientController tests
SERVICE_CONFTEST = '''
import json

import httpx
import pytest

from apitest_gen.runtime import WebTestClient, data_provider
from apitest_gen.runtime.base import clear_token_cache


def handle(request):
    path = request.url.path
    if path == "/auth/login":
        credentials = json.loads(request.read())
        if credentials == {"username": "admin", "password": "secret"}:
            return httpx.Response(200, json={"token": "t-1"})
        return httpx.Response(401)
    if request.method == "GET" and path == "/api/clients/42":
        return httpx.Response(200, json={"id": 42, "name": "John Doe"})
    if request.method == "GET" and path.startswith("/api/clients/"):
        return httpx.Response(404, json={"error": "not found"})
    if request.method == "GET" and path == "/api/clients":
        if request.url.params.get("name") == "John" and request.url.params.get("limit") == "10":
            return httpx.Response(200, json=[{"id": 42, "name": "John Doe"}])
        return httpx.Response(400)
    if request.method == "POST" and path == "/api/clients":
        if request.headers.get("Authorization") != "Bearer t-1":
            return httpx.Response(401)
        if request.headers.get("X-Request-Id") != "req-1":
            return httpx.Response(400)
        body = json.loads(request.read())
        return httpx.Response(
            201,
            json={"id": 1, **body},
            headers={"Location": "/api/clients/1"},
        )
    return httpx.Response(500)


@data_provider("client")
def client():
    return {"client_id": 42}


@data_provider("missing_client")
def missing_client():
    return {"client_id": 99}


@data_provider("search")
def search():
    return {"name": "John", "limit": 10}


@data_provider("new_client")
def new_client():
    return {"client": {"name": "John Doe"}, "X-Request-Id": "req-1"}


@pytest.fixture
def web_test_client():
    clear_token_cache()
    client = WebTestClient("http://testserver", transport=httpx.MockTransport(handle))
    yield client
    client.close()
'''


@pytest.fixture
def generated_source(client_controller_source, diagnostics) -> str:
    scanner = DeclarationScanner(TestedTypeAccumulator(), diagnostics)
    tested_type = scanner.scan_source(client_controller_source, module="app.controllers")[0]
    return TestModuleGenerator(diagnostics=diagnostics).generate(tested_type).source


class TestGeneratedModule:
    """Run a generated module against a fake service."""

    def test_generated_tests_pass(self, pytester, generated_source):
        """Test every generated method is collected and passes."""
        pytester.makeconftest(SERVICE_CONFTEST)
        pytester.makepyfile(client_controller_generated_test=generated_source)

        result = pytester.runpytest("-v", "-p", "no:cacheprovider")

        result.assert_outcomes(passed=4)
        result.stdout.fnmatch_lines(
            [
                "*::ClientControllerGeneratedTest::get_client_200 PASSED*",
                "*::ClientControllerGeneratedTest::get_client_404 PASSED*",
                "*::ClientControllerGeneratedTest::search_clients_200 PASSED*",
                "*::ClientControllerGeneratedTest::create_client_201 PASSED*",
            ]
        )

    def test_failing_assertion_is_reported(self, pytester, generated_source):
        """Test a wrong body value fails only the affected method."""
        pytester.makeconftest(SERVICE_CONFTEST.replace("**body}", '**body, "name": "Jane"}'))
        pytester.makepyfile(client_controller_generated_test=generated_source)

        result = pytester.runpytest("-p", "no:cacheprovider")

        result.assert_outcomes(passed=3, failed=1)
        result.stdout.fnmatch_lines(["*create_client_201*"])


HEALTH_CONTROLLER_SOURCE = '''\
from apitest_gen.tags import api_test_case, api_test_spec, generate_api_test, get


@generate_api_test
class HealthController:
    @get("/health")
    @api_test_spec(scenarios=[api_test_case(expected_status_code=200, enable_logging=True)])
    def health(self):
        pass

    @get("/ready")
    @api_test_spec(scenarios=[api_test_case(expected_status_code=200, response_timeout_seconds=5)])
    def ready(self):
        pass
'''

# Fails a test at teardown if any client it created is still open
CLIENT_TRACKING_CONFTEST = '''
import httpx
import pytest

from apitest_gen.runtime import WebTestClient


def handle(request):
    return httpx.Response(200)


@pytest.fixture(autouse=True)
def track_clients(monkeypatch):
    created = []
    original_init = WebTestClient.__init__

    def tracking_init(self, *args, **kwargs):
        original_init(self, *args, **kwargs)
        created.append(self)

    monkeypatch.setattr(WebTestClient, "__init__", tracking_init)
    yield created
    assert len(created) == 2
    assert [client.closed for client in created] == [True, True]


@pytest.fixture
def web_test_client():
    client = WebTestClient("http://testserver", transport=httpx.MockTransport(handle))
    yield client
    client.close()
'''


class TestDedicatedClientLifecycle:
    """Run a generated module whose cases build dedicated clients."""

    def test_dedicated_clients_are_closed(self, pytester, diagnostics):
        scanner = DeclarationScanner(TestedTypeAccumulator(), diagnostics)
        tested_type = scanner.scan_source(HEALTH_CONTROLLER_SOURCE, module="health")[0]
        source = TestModuleGenerator(diagnostics=diagnostics).generate(tested_type).source
        pytester.makeconftest(CLIENT_TRACKING_CONFTEST)
        pytester.makepyfile(health_controller_generated_test=source)

        result = pytester.runpytest("-p", "no:cacheprovider")

        result.assert_outcomes(passed=2)
