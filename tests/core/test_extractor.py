"""Unit tests for MetadataExtractor."""

import ast
import textwrap

import pytest

from apitest_gen.core.diagnostics import Diagnostics
from apitest_gen.core.extractor import (
    CASE_FIELD_DEFAULTS,
    MetadataExtractor,
    collect_import_aliases,
    collect_module_constants,
)
from apitest_gen.core.matchers import MatcherKind
from apitest_gen.core.model import CookieAssertion, HeaderAssertion, PathAssertion
from apitest_gen.exceptions import MalformedTagException


def parse_first(source: str):
    """Parse source and return (tree, first class or function node)."""
    tree = ast.parse(textwrap.dedent(source))
    node = next(
        n for n in tree.body if isinstance(n, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef))
    )
    return tree, node


def make_extractor(tree, diagnostics, module="app.controllers"):
    return MetadataExtractor(
        diagnostics,
        constants=collect_module_constants(tree),
        imports=collect_import_aliases(tree, module.rpartition(".")[0]),
        module=module,
        location="controllers.py",
        local_names={n.name for n in tree.body if isinstance(n, (ast.ClassDef, ast.FunctionDef))},
    )


class TestCreateTestedType:
    """Tests for create_tested_type."""

    def test_generated_name_and_base_path(self, diagnostics):
        """Test generated name, package and base path."""
        tree, node = parse_first(
            """
            @generate_api_test
            @request_mapping("/api/clients")
            class ClientController:
                pass
            """
        )
        extractor = make_extractor(tree, diagnostics)

        tested_type = extractor.create_tested_type("ClientController", "app", node)

        assert tested_type.name == "ClientControllerGeneratedTest"
        assert tested_type.source_name == "ClientController"
        assert tested_type.package == "app"
        assert tested_type.module == "app.controllers"
        assert tested_type.base_path == "/api/clients"
        assert tested_type.auth is None

    def test_base_path_from_constant(self, diagnostics):
        tree, node = parse_first(
            """
            BASE = "/v1/orders"

            @generate_api_test()
            @request_mapping(path=BASE)
            class OrderController:
                pass
            """
        )

        tested_type = make_extractor(tree, diagnostics).create_tested_type("OrderController", "", node)

        assert tested_type.base_path == "/v1/orders"

    def test_without_routing_tag(self, diagnostics):
        tree, node = parse_first(
            """
            @generate_api_test
            class Plain:
                pass
            """
        )

        tested_type = make_extractor(tree, diagnostics).create_tested_type("Plain", "", node)

        assert tested_type.base_path == ""

    def test_auth_with_all_credentials(self, diagnostics):
        """Test auth is set when url, username and password are present."""
        tree, node = parse_first(
            """
            @generate_api_test(auth_url="/auth", username="admin", password="secret")
            class Secured:
                pass
            """
        )

        auth = make_extractor(tree, diagnostics).create_tested_type("Secured", "", node).auth

        assert auth is not None
        assert auth.auth_url == "/auth"
        assert auth.username == "admin"
        assert auth.password == "secret"
        assert auth.token_field_name == "token"

    def test_auth_custom_token_field(self, diagnostics):
        tree, node = parse_first(
            """
            @generate_api_test(auth_url="/auth", username="a", password="b", token_field_name="access_token")
            class Secured:
                pass
            """
        )

        auth = make_extractor(tree, diagnostics).create_tested_type("Secured", "", node).auth

        assert auth.token_field_name == "access_token"

    @pytest.mark.parametrize(
        "arguments",
        [
            'auth_url="/auth", username="admin"',
            'auth_url="/auth", password="secret"',
            'username="admin", password="secret"',
            'auth_url="", username="admin", password="secret"',
        ],
    )
    def test_auth_requires_every_credential(self, diagnostics, arguments):
        """Test a partial credential set yields no auth descriptor."""
        tree, node = parse_first(
            f"""
            @generate_api_test({arguments})
            class Secured:
                pass
            """
        )

        tested_type = make_extractor(tree, diagnostics).create_tested_type("Secured", "", node)

        assert tested_type.auth is None


class TestExtractRoute:
    """Tests for extract_route."""

    @pytest.mark.parametrize(
        "decorator,expected",
        [
            ('@get("/{id}")', ("get", "/{id}")),
            ('@post(path="/items")', ("post", "/items")),
            ('@router.delete("/{id}")', ("delete", "/{id}")),
            ('@app.patch("/x")', ("patch", "/x")),
            ("@get", ("get", "")),
            ('@route("/x", methods=["PUT", "POST"])', ("put", "/x")),
            ('@route("/x")', ("get", "/x")),
            ('@router.api_route("/x", methods=["HEAD"])', ("head", "/x")),
        ],
    )
    def test_recognized_routes(self, diagnostics, decorator, expected):
        tree, node = parse_first(
            f"""
            {decorator}
            def endpoint(self):
                pass
            """
        )

        assert make_extractor(tree, diagnostics).extract_route(node) == expected

    def test_first_routing_tag_wins(self, diagnostics):
        tree, node = parse_first(
            """
            @staticmethod
            @put("/first")
            @get("/second")
            def endpoint():
                pass
            """
        )

        assert make_extractor(tree, diagnostics).extract_route(node) == ("put", "/first")

    def test_missing_routing_tag(self, diagnostics):
        """Test no routing tag yields empty verb and path without diagnostics."""
        tree, node = parse_first(
            """
            def endpoint(self):
                pass
            """
        )

        assert make_extractor(tree, diagnostics).extract_route(node) == ("", "")
        assert diagnostics.items == []


class TestProcessParameters:
    """Tests for process_parameters."""

    def test_role_markers(self, diagnostics):
        """Test parameters route to the map of their role."""
        tree, node = parse_first(
            """
            def endpoint(
                self,
                client_id: int = PathParam(),
                name: str = QueryParam(),
                session: str = CookieParam(),
                note: str = FormParam(),
                avatar: bytes = FileParam(),
                payload: dict = BodyParam(),
            ):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "post")

        assert metadata.http_method == "post"
        assert metadata.path_params == {"client_id": "int"}
        assert metadata.query_params == {"name": "str"}
        assert metadata.cookie_params == {"session": "str"}
        assert metadata.form_params == {"note": "str"}
        assert metadata.file_params == {"avatar": "bytes"}
        assert metadata.body == {"payload": "dict"}
        assert metadata.multipart is True

    def test_untagged_parameter_is_body(self, diagnostics):
        """Test parameters without a role marker default to body."""
        tree, node = parse_first(
            """
            def endpoint(self, client: ClientDto, extra):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "post")

        assert metadata.body == {"client": "ClientDto", "extra": "Any"}
        assert metadata.multipart is False

    def test_header_name_override(self, diagnostics):
        """Test header markers use name/alias overrides, else the parameter name."""
        tree, node = parse_first(
            """
            def endpoint(
                self,
                request_id: str = HeaderParam(name="X-Request-Id"),
                tenant: str = HeaderParam("X-Tenant"),
                token: str = Header(alias="X-Token"),
                trace: str = HeaderParam(),
            ):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "get")

        assert metadata.header_params == {
            "X-Request-Id": "str",
            "X-Tenant": "str",
            "X-Token": "str",
            "trace": "str",
        }

    def test_name_override_for_every_role(self, diagnostics):
        """Test name/alias overrides apply to path, query, cookie, form and file markers."""
        tree, node = parse_first(
            """
            def endpoint(
                self,
                client_id: int = PathParam(name="id"),
                search: str = QueryParam("q"),
                page_size: int = Query(10, alias="pageSize"),
                session: str = CookieParam(name="SESSION"),
                note: str = FormParam(alias="comment"),
                avatar: bytes = FileParam("image"),
                item_id: int = Path(...),
            ):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "post")

        assert metadata.path_params == {"id": "int", "item_id": "int"}
        assert metadata.query_params == {"q": "str", "pageSize": "int"}
        assert metadata.cookie_params == {"SESSION": "str"}
        assert metadata.form_params == {"comment": "str"}
        assert metadata.file_params == {"image": "bytes"}

    def test_fastapi_header_converts_underscores(self, diagnostics):
        tree, node = parse_first(
            """
            def endpoint(user_agent: str = Header(None), raw_name: str = Header(convert_underscores=False)):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "get")

        assert metadata.header_params == {"user-agent": "str", "raw_name": "str"}

    def test_annotated_markers(self, diagnostics):
        """Test markers inside Annotated metadata."""
        tree, node = parse_first(
            """
            def endpoint(
                item_id: Annotated[int, Path()],
                q: Annotated[Optional[str], Query(max_length=50)] = None,
                upload: Annotated[UploadFile, File()] = None,
            ):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "put")

        assert metadata.path_params == {"item_id": "int"}
        assert metadata.query_params == {"q": "Optional[str]"}
        assert metadata.file_params == {"upload": "UploadFile"}
        assert metadata.multipart is True

    def test_matrix_params(self, diagnostics):
        """Test matrix markers nest under their path variable."""
        tree, node = parse_first(
            """
            def endpoint(
                self,
                color: str = MatrixParam(path_var="filters"),
                size: int = MatrixParam(name="sz", path_var="filters"),
            ):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "get")

        assert metadata.matrix_params == {"filters": {"color": "str", "sz": "int"}}

    def test_matrix_param_without_path_var(self, diagnostics):
        tree, node = parse_first(
            """
            def endpoint(self, color: str = MatrixParam()):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "get")

        assert metadata.matrix_params == {}
        assert diagnostics.warnings_count == 1

    def test_request_part_sets_multipart(self, diagnostics):
        """Test request parts are body parameters of a multipart request."""
        tree, node = parse_first(
            """
            def endpoint(self, document: bytes = RequestPart(), title: str = RequestPart()):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "post")

        assert metadata.body == {"document": "bytes", "title": "str"}
        assert metadata.multipart is True

    def test_injected_parameters_are_skipped(self, diagnostics):
        tree, node = parse_first(
            """
            def endpoint(
                request: Request,
                user: Annotated[User, Security(current_user)],
                db: Session = Depends(get_db),
                *args,
                payload: dict,
                **kwargs,
            ):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "post")

        assert metadata.body == {"payload": "dict"}

    def test_keyword_only_and_positional_only(self, diagnostics):
        tree, node = parse_first(
            """
            def endpoint(self, item_id: int = PathParam(), /, *, flag: bool = QueryParam()):
                pass
            """
        )

        metadata = make_extractor(tree, diagnostics).process_parameters(node, "get")

        assert metadata.path_params == {"item_id": "int"}
        assert metadata.query_params == {"flag": "bool"}


class TestExtractCases:
    """Tests for extract_cases."""

    def spec_call(self, source: str):
        tree, node = parse_first(source)
        return tree, node.decorator_list[0]

    def test_defaults_for_absent_fields(self, diagnostics):
        """Test absent fields fall back to declared defaults."""
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[api_test_case(expected_status_code=200)])
            def endpoint(self):
                pass
            """
        )

        cases = make_extractor(tree, diagnostics).extract_cases(call)

        assert len(cases) == 1
        case = cases[0]
        assert case.expected_status_code == 200
        assert case.repeat == CASE_FIELD_DEFAULTS["repeat"] == 1
        assert case.response_timeout_seconds == -1
        assert case.display_name == ""
        assert diagnostics.items == []

    def test_all_scalar_fields(self, diagnostics):
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[
                api_test_case(
                    display_name="Create",
                    order=2,
                    timeout=5,
                    expected_status_code=HTTPStatus.CREATED,
                    requires_auth=True,
                    data_provider="new_client",
                    repeat=3,
                    enable_logging=True,
                    response_timeout_seconds=30,
                ),
            ])
            def endpoint(self):
                pass
            """
        )

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.display_name == "Create"
        assert case.order == 2
        assert case.timeout == 5
        assert case.expected_status_code == 201
        assert case.requires_auth is True
        assert case.data_provider == "new_client"
        assert case.repeat == 3
        assert case.enable_logging is True
        assert case.response_timeout_seconds == 30

    def test_cases_keep_declaration_order(self, diagnostics):
        tree, call = self.spec_call(
            """
            @api_test_spec([
                api_test_case(expected_status_code=404),
                api_test_case(expected_status_code=200),
                api_test_case(expected_status_code=status.HTTP_400_BAD_REQUEST),
            ])
            def endpoint(self):
                pass
            """
        )

        cases = make_extractor(tree, diagnostics).extract_cases(call)

        assert [c.expected_status_code for c in cases] == [404, 200, 400]

    def test_unknown_field_is_warned_and_skipped(self, diagnostics):
        """Test unknown field names produce a warning."""
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[api_test_case(expected_status_code=200, retries=3)])
            def endpoint(self):
                pass
            """
        )

        cases = make_extractor(tree, diagnostics).extract_cases(call)

        assert cases[0].expected_status_code == 200
        assert diagnostics.warnings_count == 1
        assert "retries" in diagnostics.items[0].message

    def test_wrong_scalar_type_uses_default(self, diagnostics):
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[api_test_case(repeat="often", requires_auth=1)])
            def endpoint(self):
                pass
            """
        )

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.repeat == 1
        assert case.requires_auth is False
        assert diagnostics.warnings_count == 2

    def test_unresolved_constant_uses_default(self, diagnostics):
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[api_test_case(timeout=settings.TIMEOUT)])
            def endpoint(self):
                pass
            """
        )

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.timeout == 0
        assert diagnostics.warnings_count == 1

    def test_data_provider_class_reference(self, diagnostics):
        """Test a provider class reference is registered under its class name."""
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[api_test_case(data_provider=providers.ClientData)])
            def endpoint(self):
                pass
            """
        )

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.data_provider == "ClientData"
        assert diagnostics.items == []

    def test_list_field_with_wrong_shape(self, diagnostics):
        """Test a non-list value for a list field is warned about."""
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[api_test_case(expected_headers=ExpectedHeader("X-Id"))])
            def endpoint(self):
                pass
            """
        )

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.expected_headers == []
        assert diagnostics.warnings_count == 1

    def test_header_and_cookie_assertions(self, diagnostics):
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[
                api_test_case(
                    expected_headers=[
                        ExpectedHeader("Cache-Control", ["no-cache", "no-store"]),
                        ExpectedHeader(name="X-Id", value="1"),
                        ExpectedHeader(value="orphan"),
                    ],
                    expected_cookies=[ExpectedCookie("session", "abc")],
                ),
            ])
            def endpoint(self):
                pass
            """
        )

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.expected_headers == [
            HeaderAssertion("Cache-Control", ("no-cache", "no-store")),
            HeaderAssertion("X-Id", ("1",)),
        ]
        assert case.expected_cookies == [CookieAssertion("session", "abc")]
        assert diagnostics.warnings_count == 1

    def test_body_paths(self, diagnostics):
        """Test body path tags become path assertions."""
        tree, call = self.spec_call(
            """
            MIN_ID = 0

            @api_test_spec(scenarios=[
                api_test_case(
                    json_paths=[
                        BodyPath("$.name", MatcherKind.EQUAL_TO, "John"),
                        BodyPath(path="$.id", matcher="greater_than", value=MIN_ID),
                        JsonPath("$.email"),
                        BodyPath("$.tags", MatcherKind.ANY_OF, ["a", "b"]),
                    ],
                ),
            ])
            def endpoint(self):
                pass
            """
        )
        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.body_paths == [
            PathAssertion("$.name", MatcherKind.EQUAL_TO, "John"),
            PathAssertion("$.id", MatcherKind.GREATER_THAN, "0"),
            PathAssertion("$.email", MatcherKind.EQUAL_TO, ""),
            PathAssertion("$.tags", MatcherKind.ANY_OF, "a,b"),
        ]

    def test_unknown_matcher_kind(self, diagnostics):
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[api_test_case(body_paths=[BodyPath("$.a", "similar_to", "x")])])
            def endpoint(self):
                pass
            """
        )

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert case.body_paths[0].matcher is None
        assert diagnostics.warnings_count == 1

    def test_custom_matcher_reference_is_qualified(self, diagnostics):
        """Test custom matcher names resolve through the module imports."""
        source = """
            from app.matchers import IsPositive
            import app.checks as checks

            class LocalMatcher:
                pass

            @api_test_spec(scenarios=[
                api_test_case(body_paths=[
                    BodyPath("$.a", MatcherKind.CUSTOM_CLASS, custom_matcher=IsPositive),
                    BodyPath("$.b", MatcherKind.CUSTOM_CLASS, custom_matcher=checks.IsEven),
                    BodyPath("$.c", MatcherKind.CUSTOM_CLASS, custom_matcher=LocalMatcher),
                    BodyPath("$.d", MatcherKind.CUSTOM_CLASS, custom_matcher="pkg.m.Other"),
                ]),
            ])
            def endpoint(self):
                pass
            """
        tree = ast.parse(textwrap.dedent(source))
        call = tree.body[-1].decorator_list[0]

        case = make_extractor(tree, diagnostics).extract_cases(call)[0]

        assert [p.custom_matcher for p in case.body_paths] == [
            "app.matchers.IsPositive",
            "app.checks.IsEven",
            "app.controllers.LocalMatcher",
            "pkg.m.Other",
        ]

    @pytest.mark.parametrize("reference", ["IsPositive()", "42", '""', "lambda x: x"])
    def test_malformed_custom_matcher_is_fatal(self, diagnostics, reference):
        """Test a malformed custom matcher reference fails the case."""
        tree, call = self.spec_call(
            f"""
            @api_test_spec(scenarios=[
                api_test_case(body_paths=[BodyPath("$.a", MatcherKind.CUSTOM_CLASS, custom_matcher={reference})]),
            ])
            def endpoint(self):
                pass
            """
        )

        with pytest.raises(MalformedTagException):
            make_extractor(tree, diagnostics).extract_cases(call)

    def test_no_scenario_tag(self, diagnostics):
        tree = ast.parse("x = 1")

        assert make_extractor(tree, diagnostics).extract_cases(None) == []

    def test_non_case_entries_are_skipped(self, diagnostics):
        tree, call = self.spec_call(
            """
            @api_test_spec(scenarios=[make_case(), api_test_case(expected_status_code=200)])
            def endpoint(self):
                pass
            """
        )

        cases = make_extractor(tree, diagnostics).extract_cases(call)

        assert len(cases) == 1
        assert diagnostics.warnings_count == 1


class TestModuleTables:
    """Tests for module constant and import collection."""

    def test_collect_module_constants(self):
        tree = ast.parse(
            textwrap.dedent(
                """
                BASE = "/api"
                LIMIT: int = 10
                A = B = -1
                computed = compute()
                """
            )
        )

        assert collect_module_constants(tree) == {"BASE": "/api", "LIMIT": 10, "A": -1, "B": -1}

    def test_collect_import_aliases(self):
        tree = ast.parse(
            textwrap.dedent(
                """
                import os
                import app.checks as checks
                from app.matchers import IsPositive as Positive
                from .local import Helper
                from ..shared import Common
                """
            )
        )

        aliases = collect_import_aliases(tree, "app.api.v1")

        assert aliases["os"] == "os"
        assert aliases["checks"] == "app.checks"
        assert aliases["Positive"] == "app.matchers.IsPositive"
        assert aliases["Helper"] == "app.api.v1.local.Helper"
        assert aliases["Common"] == "app.api.shared.Common"
