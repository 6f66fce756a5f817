"""Stage A: method decorations and setup statements.

Each step reads only the case and scenario group, and appends to the
method builder. Steps run in DECORATION_STEPS order, which is the order
the decorators appear in the generated source.
"""

from apitest_gen.core.literals import quote
from apitest_gen.core.synthesis.context import (
    HELPER_LOGGING,
    SynthesisContext,
)
from apitest_gen.core.synthesis.source import MethodBuilder


def repeat_step(method: MethodBuilder, ctx: SynthesisContext) -> None:
    """Mark the method for N executions, or as a single test."""
    if ctx.case.repeat > 1:
        ctx.runtime("repeated_test")
        method.decorate(f"repeated_test({ctx.case.repeat})")
    else:
        ctx.runtime("api_test")
        method.decorate("api_test")


def timeout_step(method: MethodBuilder, ctx: SynthesisContext) -> None:
    if ctx.case.timeout > 0:
        ctx.imports.add("pytest")
        method.decorate(f"pytest.mark.timeout({ctx.case.timeout})")


def order_step(method: MethodBuilder, ctx: SynthesisContext) -> None:
    """Add the execution order marker.

    With the "timeout" gating option the marker follows the legacy rule
    and is emitted only when the case also has a timeout.
    """
    if ctx.options.order_gating == "timeout":
        emit = ctx.case.timeout > 0
    else:
        emit = ctx.case.order != 0
    if emit:
        ctx.imports.add("pytest")
        method.decorate(f"pytest.mark.order({ctx.case.order})")


def display_name_step(method: MethodBuilder, ctx: SynthesisContext) -> None:
    if ctx.case.display_name:
        ctx.runtime("display_name")
        method.decorate(f"display_name({quote(ctx.case.display_name)})")


def client_setup_step(method: MethodBuilder, ctx: SynthesisContext) -> None:
    """Open a dedicated client when the case logs traffic or overrides the timeout.

    The client is used as a context manager around the request chain.
    """
    if not ctx.case.needs_dedicated_client:
        return

    calls = ["self.web_test_client.mutate()"]
    if ctx.case.enable_logging:
        ctx.helpers.add(HELPER_LOGGING)
        calls.append("on_request(self.log_request)")
        calls.append("on_response(self.log_response)")
    if ctx.case.has_response_timeout:
        calls.append(f"response_timeout({ctx.case.response_timeout_seconds})")
    calls.append("build()")
    method.open_client(".".join(calls))


def data_load_step(method: MethodBuilder, ctx: SynthesisContext) -> None:
    """Load the case data, then bind body parameters for JSON requests."""
    ctx.runtime("get_data")
    method.add_statement(f"data = get_data({quote(ctx.case.data_provider)})")

    if not ctx.requires_body or ctx.is_multipart:
        return
    for name, type_name in ctx.parameters.body.items():
        local = ctx.body_local(name)
        if local is not None:
            method.add_statement(f"{local}: {type_name} = data.get({quote(name)})")


DECORATION_STEPS = (
    repeat_step,
    timeout_step,
    order_step,
    display_name_step,
    client_setup_step,
    data_load_step,
)
