"""Shared pytest fixtures for all tests."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from apitest_gen.core.diagnostics import Diagnostics

CLIENT_CONTROLLER_SOURCE = '''\
from apitest_gen.tags import (
    BodyPath,
    ExpectedHeader,
    HeaderParam,
    MatcherKind,
    PathParam,
    QueryParam,
    api_test_case,
    api_test_spec,
    generate_api_test,
    get,
    post,
    request_mapping,
)

BASE_PATH = "/api/clients"
CREATED = 201


@generate_api_test(auth_url="/auth/login", username="admin", password="secret")
@request_mapping(BASE_PATH)
class ClientController:
    def __init__(self, service):
        self.service = service

    @get("/{client_id}")
    @api_test_spec(scenarios=[
        api_test_case(expected_status_code=200, data_provider="client"),
        api_test_case(
            expected_status_code=404,
            data_provider="missing_client",
            display_name="Unknown client",
        ),
    ])
    def get_client(self, client_id: int = PathParam()):
        return self.service.get(client_id)

    @get("")
    @api_test_spec(scenarios=[
        api_test_case(expected_status_code=200, data_provider="search"),
    ])
    def search_clients(self, name: str = QueryParam(), limit: int = QueryParam()):
        return self.service.search(name, limit)

    @post("")
    @api_test_spec(scenarios=[
        api_test_case(
            expected_status_code=CREATED,
            requires_auth=True,
            data_provider="new_client",
            expected_headers=[ExpectedHeader("Location", ["/api/clients/1"])],
            body_paths=[
                BodyPath("$.name", MatcherKind.EQUAL_TO, "John Doe"),
                BodyPath("$.id", MatcherKind.GREATER_THAN, "0"),
            ],
        ),
    ])
    def create_client(
        self,
        client: dict,
        request_id: str = HeaderParam(name="X-Request-Id"),
    ):
        return self.service.create(client)

    def helper(self):
        return None
'''

PLAIN_MODULE_SOURCE = '''\
class NotTagged:
    def get(self):
        return 1
'''


@pytest.fixture
def temp_project_dir() -> Generator[Path, None, None]:
    """Create a temporary project directory for testing.

    Yields:
        Path object pointing to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def client_controller_source() -> str:
    """Source of a tagged controller with three endpoints."""
    return CLIENT_CONTROLLER_SOURCE


@pytest.fixture
def project_with_controller(temp_project_dir: Path) -> Path:
    """Create a project with one tagged controller in package ``app``.

    Args:
        temp_project_dir: Temporary directory fixture

    Returns:
        Path to project directory
    """
    package = temp_project_dir / "app"
    package.mkdir()
    (package / "__init__.py").write_text("")
    (package / "controllers.py").write_text(CLIENT_CONTROLLER_SOURCE)
    (package / "models.py").write_text(PLAIN_MODULE_SOURCE)
    return temp_project_dir


@pytest.fixture
def diagnostics() -> Diagnostics:
    """Fresh diagnostics collector."""
    return Diagnostics()
