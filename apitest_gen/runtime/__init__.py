"""Runtime support imported by generated test modules."""

from apitest_gen.runtime.base import ApiTestBase, obtain_bearer_token
from apitest_gen.runtime.client import (
    MediaType,
    MultipartBody,
    WebTestClient,
    log_http_request,
    log_http_response,
)
from apitest_gen.runtime.data import (
    DataLoader,
    DataProviderRegistry,
    data_provider,
    default_registry,
    format_body,
    get_data,
    safe_string,
)
from apitest_gen.runtime.markers import api_test, display_name, repeated_test

__all__ = [
    "ApiTestBase",
    "DataLoader",
    "DataProviderRegistry",
    "MediaType",
    "MultipartBody",
    "WebTestClient",
    "api_test",
    "data_provider",
    "default_registry",
    "display_name",
    "format_body",
    "get_data",
    "log_http_request",
    "log_http_response",
    "obtain_bearer_token",
    "repeated_test",
    "safe_string",
]
