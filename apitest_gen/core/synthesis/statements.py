"""Stage B: the fluent request and assertion statement.

Each step appends calls to one chained expression that starts at the
test client and ends with the response assertions. Steps run in
STATEMENT_STEPS order.
"""

from apitest_gen.core.literals import quote
from apitest_gen.core.matchers import build_matcher_expression
from apitest_gen.core.synthesis.context import (
    HELPER_MULTIPART,
    SynthesisContext,
)
from apitest_gen.core.synthesis.source import FluentStatement
from apitest_gen.core.uri_builder import prepare_uri_expression

# Expected status code -> status assertion method
STATUS_METHODS = {
    200: "is_ok",
    201: "is_created",
    204: "is_no_content",
    400: "is_bad_request",
    401: "is_unauthorized",
    403: "is_forbidden",
    404: "is_not_found",
    500: "is_5xx_server_error",
}
FALLBACK_STATUS_METHOD = "is_equal_to"

AUTHORIZATION_HEADER = "Authorization"


def status_assertion(status_code: int) -> str:
    """Return the status assertion call for an expected status code.

    Example:
        >>> status_assertion(200)
        'is_ok()'
        >>> status_assertion(418)
        'is_equal_to(418)'
    """
    method = STATUS_METHODS.get(status_code)
    if method is None:
        return f"{FALLBACK_STATUS_METHOD}({status_code})"
    return f"{method}()"


def client_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    chain.target = "client" if ctx.case.needs_dedicated_client else "self.web_test_client"


def verb_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    if ctx.verb:
        chain.call(f"{ctx.verb}()")
    else:
        chain.call(f"method({quote(ctx.verb)})")


def uri_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    params = ctx.parameters
    expression = prepare_uri_expression(
        ctx.full_path, params.path_params, params.query_params, params.matrix_params
    )
    if params.path_params or params.query_params or params.matrix_params:
        ctx.runtime("safe_string")
    chain.call(f"uri({expression})")


def header_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    for name in ctx.parameters.header_params:
        chain.call(f"header({quote(name)}, data.get({quote(name)}))")


def auth_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    if ctx.case.requires_auth:
        chain.call(f"header({quote(AUTHORIZATION_HEADER)}, self.bearer_token)")


def cookie_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    for name in ctx.parameters.cookie_params:
        chain.call(f"cookie({quote(name)}, data.get({quote(name)}))")


def body_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    """Send multipart form data or JSON body values."""
    if not ctx.requires_body:
        return

    ctx.runtime("MediaType")
    if ctx.is_multipart:
        ctx.helpers.add(HELPER_MULTIPART)
        chain.call("content_type(MediaType.MULTIPART_FORM_DATA)")
        chain.call("body(self.build_multipart_data(data))")
        return

    chain.call("content_type(MediaType.APPLICATION_JSON)")
    for name in ctx.parameters.body:
        ctx.runtime("format_body")
        local = ctx.body_local(name)
        value = local if local is not None else f"data.get({quote(name)})"
        chain.call(f"body_value(format_body({value}))")


def exchange_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    chain.call("exchange()")
    chain.call(f"expect_status().{status_assertion(ctx.case.expected_status_code)}")


def cookie_assertion_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    for cookie in ctx.case.expected_cookies:
        chain.call(f"expect_cookie().value_equals({quote(cookie.name)}, {quote(cookie.value)})")


def header_assertion_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    for header in ctx.case.expected_headers:
        args = ", ".join(quote(item) for item in (header.name, *header.values))
        chain.call(f"expect_header().value_equals({args})")


def body_path_step(chain: FluentStatement, ctx: SynthesisContext) -> None:
    """Assert body values selected by JSON path; unusable assertions are skipped."""
    assertions = [a for a in ctx.case.body_paths if a.is_usable]
    if not assertions:
        return

    chain.call("expect_body()")
    for assertion in assertions:
        matcher = build_matcher_expression(
            assertion.matcher, assertion.value, assertion.custom_matcher
        )
        ctx.imports.update(matcher.imports)
        chain.call(f"json_path({quote(assertion.path.strip())}).value({matcher.text})")


STATEMENT_STEPS = (
    client_step,
    verb_step,
    uri_step,
    header_step,
    auth_step,
    cookie_step,
    body_step,
    exchange_step,
    cookie_assertion_step,
    header_assertion_step,
    body_path_step,
)
