"""pytest plugin providing the test client for generated tests.

Registered through the ``pytest11`` entry point. The target service is
set with ``--apitest-base-url``, the ``APITEST_BASE_URL`` environment
variable or the ``apitest_base_url`` ini option. Override the
``web_test_client`` fixture in ``conftest.py`` to test an app in-process
(e.g. with ``httpx.WSGITransport``).
"""

import os
from pathlib import Path

import pytest

from apitest_gen.runtime.client import DEFAULT_TIMEOUT, WebTestClient
from apitest_gen.runtime.data import default_registry

BASE_URL_ENV = "APITEST_BASE_URL"


def pytest_addoption(parser):
    group = parser.getgroup("apitest", "generated API tests")
    group.addoption(
        "--apitest-base-url",
        dest="apitest_base_url",
        default=None,
        help=f"Base URL of the service under test (env: {BASE_URL_ENV})",
    )
    parser.addini("apitest_base_url", "Base URL of the service under test", default="")
    parser.addini(
        "apitest_data_dir", "Directory with <provider>.yaml test data files", default=""
    )
    parser.addini(
        "apitest_timeout", "Default client timeout in seconds", default=str(DEFAULT_TIMEOUT)
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "display_name(text): human readable name of a generated API test"
    )
    data_dir = config.getini("apitest_data_dir")
    if data_dir:
        default_registry.data_dir = Path(config.rootpath) / data_dir


def pytest_collection_modifyitems(items):
    for item in items:
        marker = item.get_closest_marker("display_name")
        if marker is not None and marker.args:
            item.user_properties.append(("display_name", marker.args[0]))


@pytest.fixture(scope="session")
def apitest_base_url(pytestconfig) -> str:
    url = (
        pytestconfig.getoption("apitest_base_url")
        or os.environ.get(BASE_URL_ENV, "")
        or pytestconfig.getini("apitest_base_url")
    )
    if not url:
        pytest.skip(f"Base URL not set; use --apitest-base-url or {BASE_URL_ENV}")
    return url


@pytest.fixture
def web_test_client(apitest_base_url, pytestconfig):
    """WebTestClient pointed at the service under test."""
    timeout = float(pytestconfig.getini("apitest_timeout"))
    client = WebTestClient(base_url=apitest_base_url, timeout=timeout)
    yield client
    client.close()
