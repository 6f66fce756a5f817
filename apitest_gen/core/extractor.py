"""Metadata extractor for tagged endpoint declarations.

Reads tag arguments from the AST of a tagged class or method and turns
them into metadata model entries. Tags are never imported or executed:
argument values are read statically from literals, enum members and
module-level constants of the scanned module.
"""

import ast
import dataclasses
import logging
import re
from http import HTTPStatus
from typing import Any, Optional

from apitest_gen.core.diagnostics import Diagnostics
from apitest_gen.core.matchers import MatcherKind
from apitest_gen.core.model import (
    DEFAULT_TOKEN_FIELD,
    GENERATED_SUFFIX,
    AuthDescriptor,
    Case,
    CookieAssertion,
    HeaderAssertion,
    ParameterMetadata,
    PathAssertion,
    TestedType,
)
from apitest_gen.exceptions import MalformedTagException
from apitest_gen.tags import ApiTestCase, BodyPath, ExpectedCookie, ExpectedHeader

logger = logging.getLogger(__name__)

MARKER_TAG = "generate_api_test"
BASE_PATH_TAGS = {"request_mapping", "route", "api_route"}
SCENARIO_TAG = "api_test_spec"
CASE_TAGS = {"api_test_case", "ApiTestCase"}

# Verb decorators, also matched as attributes (router.get, app.post)
VERB_TAGS = {"get", "post", "put", "patch", "delete", "head", "options"}
MULTI_VERB_TAGS = {"route", "api_route"}

# Declared case fields and their defaults, taken from the tag definition
CASE_FIELD_DEFAULTS: dict[str, Any] = {
    f.name: f.default if f.default is not dataclasses.MISSING else f.default_factory()
    for f in dataclasses.fields(ApiTestCase)
}
CASE_FIELD_ALIASES = {"json_paths": "body_paths"}
LIST_CASE_FIELDS = {"expected_headers", "expected_cookies", "body_paths"}

HEADER_TAGS = {"ExpectedHeader"}
COOKIE_TAGS = {"ExpectedCookie"}
BODY_PATH_TAGS = {"BodyPath", "JsonPath"}

# Parameter role markers by call name
ROLE_MARKERS = {
    "PathParam": "path",
    "Path": "path",
    "QueryParam": "query",
    "Query": "query",
    "HeaderParam": "header",
    "Header": "header",
    "CookieParam": "cookie",
    "Cookie": "cookie",
    "BodyParam": "body",
    "Body": "body",
    "FormParam": "form",
    "Form": "form",
    "FileParam": "file",
    "File": "file",
    "MatrixParam": "matrix",
    "RequestPart": "part",
}

# Markers whose first positional argument is the name (not the default value)
NAME_FIRST_MARKERS = {
    "PathParam",
    "QueryParam",
    "HeaderParam",
    "CookieParam",
    "BodyParam",
    "FormParam",
    "FileParam",
    "MatrixParam",
    "RequestPart",
}

# Framework injections that are not part of the request
INJECTED_MARKERS = {"Depends", "Security"}
INJECTED_TYPES = {"Request", "Response", "BackgroundTasks", "WebSocket", "HTTPConnection"}

STATUS_CONSTANT_PATTERN = re.compile(r"^HTTP_(\d{3})(?:_|$)")


class _Unresolved(Exception):
    """Tag argument that cannot be evaluated statically."""


def tag_name(node: ast.AST) -> str:
    """Return the simple name of a decorator or call (``router.get(...)`` -> ``get``)."""
    if isinstance(node, ast.Call):
        node = node.func
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ""


def dotted_name(node: ast.AST) -> Optional[str]:
    """Return ``a.b.c`` for a Name/Attribute chain, None otherwise."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = dotted_name(node.value)
        return f"{base}.{node.attr}" if base else None
    return None


def collect_module_constants(tree: ast.Module) -> dict[str, Any]:
    """Collect module-level ``NAME = <literal>`` assignments.

    Args:
        tree: Parsed module

    Returns:
        Mapping of constant name to its literal value
    """
    constants: dict[str, Any] = {}
    for node in tree.body:
        if isinstance(node, ast.Assign):
            targets = [t for t in node.targets if isinstance(t, ast.Name)]
            value = node.value
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            targets = [node.target]
            value = node.value
        else:
            continue
        if value is None or not targets:
            continue
        try:
            literal = ast.literal_eval(value)
        except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
            continue
        for target in targets:
            constants[target.id] = literal
    return constants


def collect_import_aliases(tree: ast.Module, package: str = "") -> dict[str, str]:
    """Map names bound by module-level imports to their dotted origin.

    Args:
        tree: Parsed module
        package: Dotted package of the module, used for relative imports

    Returns:
        Mapping of local name to dotted path
    """
    aliases: dict[str, str] = {}
    for node in tree.body:
        if isinstance(node, ast.Import):
            for alias in node.names:
                local = alias.asname or alias.name.split(".")[0]
                aliases[local] = alias.name if alias.asname else local
        elif isinstance(node, ast.ImportFrom):
            base = node.module or ""
            if node.level:
                parts = package.split(".") if package else []
                if node.level > 1:
                    parts = parts[: len(parts) - (node.level - 1)]
                base = ".".join(p for p in [*parts, base] if p)
            for alias in node.names:
                if alias.name == "*":
                    continue
                local = alias.asname or alias.name
                aliases[local] = f"{base}.{alias.name}" if base else alias.name
    return aliases


class MetadataExtractor:
    """Populate the metadata model from tag arguments of one source module.

    One instance serves one scanned module: it carries that module's
    constant and import tables plus the diagnostics sink.

    Example:
        >>> tree = ast.parse(source)
        >>> extractor = MetadataExtractor(Diagnostics(), collect_module_constants(tree))
        >>> tested_type = extractor.create_tested_type("ClientController", "app", class_node)
    """

    def __init__(
        self,
        diagnostics: Diagnostics,
        constants: Optional[dict[str, Any]] = None,
        imports: Optional[dict[str, str]] = None,
        module: str = "",
        location: Optional[str] = None,
        suffix: str = GENERATED_SUFFIX,
        local_names: Optional[set[str]] = None,
    ) -> None:
        """Initialize extractor.

        Args:
            diagnostics: Sink for warnings and notes
            constants: Module-level literal constants of the scanned module
            imports: Import alias table of the scanned module
            module: Dotted name of the scanned module
            location: File name used in diagnostics
            suffix: Suffix appended to generated class names
            local_names: Classes and functions defined at module level
        """
        self.diagnostics = diagnostics
        self.constants = constants or {}
        self.imports = imports or {}
        self.module = module
        self.location = location or module
        self.suffix = suffix
        self.local_names = local_names or set()

    # Value evaluation

    def _where(self, node: ast.AST) -> str:
        line = getattr(node, "lineno", None)
        return f"{self.location}:{line}" if line else self.location

    def _evaluate(self, node: ast.AST) -> Any:
        """Evaluate a tag argument statically.

        Raises:
            _Unresolved: If the expression is not a literal, enum member or constant
        """
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._evaluate(elt) for elt in node.elts]
        if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
            operand = self._evaluate(node.operand)
            if isinstance(operand, (int, float)) and not isinstance(operand, bool):
                return -operand if isinstance(node.op, ast.USub) else operand
            raise _Unresolved(ast.unparse(node))
        if isinstance(node, ast.Name):
            if node.id in self.constants:
                return self.constants[node.id]
            raise _Unresolved(node.id)
        if isinstance(node, ast.Attribute):
            return self._evaluate_attribute(node)
        raise _Unresolved(ast.unparse(node))

    def _evaluate_attribute(self, node: ast.Attribute) -> Any:
        owner = tag_name(node.value)
        if owner == "MatcherKind":
            if node.attr in MatcherKind.__members__:
                return MatcherKind[node.attr]
        elif owner == "HTTPStatus":
            if node.attr in HTTPStatus.__members__:
                return HTTPStatus[node.attr].value
        elif owner == "status":
            match = STATUS_CONSTANT_PATTERN.match(node.attr)
            if match:
                return int(match.group(1))
        raise _Unresolved(ast.unparse(node))

    def _argument(
        self, call: ast.Call, name: str, position: Optional[int] = None
    ) -> Optional[ast.AST]:
        """Return the AST node of a keyword (or positional) argument, if present."""
        for keyword in call.keywords:
            if keyword.arg == name:
                return keyword.value
        if position is not None and len(call.args) > position:
            arg = call.args[position]
            if not isinstance(arg, ast.Starred):
                return arg
        return None

    def _string_argument(
        self, call: ast.Call, name: str, position: Optional[int] = None, default: str = ""
    ) -> str:
        node = self._argument(call, name, position)
        if node is None:
            return default
        try:
            value = self._evaluate(node)
        except _Unresolved as e:
            self.diagnostics.warning(
                f"Cannot resolve value of '{name}' in {tag_name(call)}: {e}",
                self._where(node),
            )
            return default
        if not isinstance(value, str):
            self.diagnostics.warning(
                f"Expected a string for '{name}' in {tag_name(call)}, got {type(value).__name__}",
                self._where(node),
            )
            return default
        return value

    # Tested type

    def find_marker(self, class_node: ast.ClassDef) -> Optional[ast.AST]:
        """Return the generation marker decorator of a class, if any."""
        for decorator in class_node.decorator_list:
            if tag_name(decorator) == MARKER_TAG:
                return decorator
        return None

    def create_tested_type(
        self,
        name: str,
        package: str,
        class_node: ast.ClassDef,
        module: Optional[str] = None,
        source_file: Optional[str] = None,
    ) -> TestedType:
        """Create a TestedType from a tagged class.

        Args:
            name: Source class name
            package: Dotted package of the source module
            class_node: Class definition carrying the marker
            module: Dotted module name (defaults to the extractor's module)
            source_file: Path of the scanned file

        Returns:
            TestedType with generated name, base path and optional auth
        """
        tested_type = TestedType(
            name=f"{name}{self.suffix}",
            source_name=name,
            package=package,
            module=module if module is not None else self.module,
            source_file=source_file,
        )

        for decorator in class_node.decorator_list:
            if tag_name(decorator) in BASE_PATH_TAGS and isinstance(decorator, ast.Call):
                tested_type.base_path = self._string_argument(decorator, "path", 0)
                break

        marker = self.find_marker(class_node)
        if isinstance(marker, ast.Call):
            tested_type.auth = self._extract_auth(marker)

        logger.debug(f"Created tested type {tested_type.name} (base path '{tested_type.base_path}')")
        return tested_type

    def _extract_auth(self, marker: ast.Call) -> Optional[AuthDescriptor]:
        auth_url = self._string_argument(marker, "auth_url")
        username = self._string_argument(marker, "username")
        password = self._string_argument(marker, "password")
        if not (auth_url and username and password):
            return None
        token_field = self._string_argument(
            marker, "token_field_name", default=DEFAULT_TOKEN_FIELD
        )
        return AuthDescriptor(
            auth_url=auth_url,
            username=username,
            password=password,
            token_field_name=token_field or DEFAULT_TOKEN_FIELD,
        )

    # Routing

    def extract_route(self, func_node: ast.FunctionDef) -> tuple[str, str]:
        """Return (verb, path) from the first recognized routing tag.

        Args:
            func_node: Method definition

        Returns:
            Lower-case verb and path template; ("", "") without a routing tag
        """
        for decorator in func_node.decorator_list:
            name = tag_name(decorator)
            if name in VERB_TAGS:
                path = ""
                if isinstance(decorator, ast.Call):
                    path = self._string_argument(decorator, "path", 0)
                return name, path
            if name in MULTI_VERB_TAGS and isinstance(decorator, ast.Call):
                return self._route_verb(decorator), self._string_argument(decorator, "path", 0)
        return "", ""

    def _route_verb(self, decorator: ast.Call) -> str:
        node = self._argument(decorator, "methods")
        if node is None:
            return "get"
        try:
            methods = self._evaluate(node)
        except _Unresolved as e:
            self.diagnostics.warning(f"Cannot resolve route methods: {e}", self._where(node))
            return "get"
        if isinstance(methods, str):
            methods = [methods]
        if not isinstance(methods, list) or not methods or not isinstance(methods[0], str):
            self.diagnostics.warning("Route methods must be a list of strings", self._where(node))
            return "get"
        return methods[0].lower()

    # Parameters

    def _iter_parameters(self, func_node: ast.FunctionDef):
        """Yield (arg, default) pairs for every named parameter."""
        args = func_node.args
        positional = [*args.posonlyargs, *args.args]
        padding = [None] * (len(positional) - len(args.defaults))
        for arg, default in zip(positional, [*padding, *args.defaults]):
            yield arg, default
        for arg, default in zip(args.kwonlyargs, args.kw_defaults):
            yield arg, default

    def _split_annotation(self, annotation: Optional[ast.AST]) -> tuple[str, list[ast.AST]]:
        """Return (type name, Annotated metadata nodes) for a parameter annotation."""
        if annotation is None:
            return "Any", []
        if (
            isinstance(annotation, ast.Subscript)
            and tag_name(annotation.value) == "Annotated"
            and isinstance(annotation.slice, ast.Tuple)
            and annotation.slice.elts
        ):
            inner, *metadata = annotation.slice.elts
            return ast.unparse(inner), metadata
        return ast.unparse(annotation), []

    def _find_marker(self, candidates: list[Optional[ast.AST]]) -> Optional[ast.AST]:
        for candidate in candidates:
            if candidate is None:
                continue
            name = tag_name(candidate)
            if name in ROLE_MARKERS or name in INJECTED_MARKERS:
                return candidate
        return None

    def _override_name(self, marker: ast.AST, *keys: str) -> Optional[str]:
        """Read an explicit name override from a role marker."""
        if not isinstance(marker, ast.Call):
            return None
        position = 0 if tag_name(marker) in NAME_FIRST_MARKERS else None
        for index, key in enumerate(keys):
            value = self._string_argument(marker, key, position if index == 0 else None)
            if value:
                return value
        return None

    def process_parameters(
        self, func_node: ast.FunctionDef, http_method: str = ""
    ) -> ParameterMetadata:
        """Classify the parameters of a method by transport role.

        A parameter without a recognized role marker is a body parameter.
        Role markers honour ``alias=``/``name=`` overrides (the first
        positional argument of the tag library markers); without one, FastAPI
        style ``Header()`` converts underscores to hyphens like FastAPI does.

        Args:
            func_node: Method definition
            http_method: Verb from the routing tag

        Returns:
            Freshly built ParameterMetadata
        """
        metadata = ParameterMetadata(http_method=http_method)

        for index, (arg, default) in enumerate(self._iter_parameters(func_node)):
            if index == 0 and arg.arg in ("self", "cls"):
                continue

            type_name, annotated = self._split_annotation(arg.annotation)
            marker = self._find_marker([default, *annotated])
            marker_name = tag_name(marker) if marker is not None else ""

            if marker_name in INJECTED_MARKERS or (
                marker is None and type_name.split(".")[-1] in INJECTED_TYPES
            ):
                logger.debug(f"Skipping injected parameter '{arg.arg}'")
                continue

            role = ROLE_MARKERS.get(marker_name, "body")
            if role == "matrix":
                self._add_matrix_param(metadata, marker, arg.arg, type_name)
                continue

            override = self._override_name(marker, "alias", "name")
            name = override or arg.arg
            if role == "header" and override is None and marker_name == "Header":
                name = self._fastapi_header_name(marker, name)

            if role == "path":
                metadata.path_params[name] = type_name
            elif role == "query":
                metadata.query_params[name] = type_name
            elif role == "header":
                metadata.header_params[name] = type_name
            elif role == "cookie":
                metadata.cookie_params[name] = type_name
            elif role == "form":
                metadata.form_params[name] = type_name
            elif role == "file":
                metadata.file_params[name] = type_name
                metadata.multipart = True
            elif role == "part":
                metadata.body[name] = type_name
                metadata.multipart = True
            else:
                metadata.body[name] = type_name

        return metadata

    def _fastapi_header_name(self, marker: ast.AST, name: str) -> str:
        if isinstance(marker, ast.Call):
            node = self._argument(marker, "convert_underscores")
            if isinstance(node, ast.Constant) and node.value is False:
                return name
        return name.replace("_", "-")

    def _add_matrix_param(
        self, metadata: ParameterMetadata, marker: ast.AST, name: str, type_name: str
    ) -> None:
        path_var = ""
        if isinstance(marker, ast.Call):
            path_var = self._string_argument(marker, "path_var")
        if not path_var:
            self.diagnostics.warning(
                f"Matrix parameter '{name}' has no path_var, skipped", self._where(marker)
            )
            return
        key = self._override_name(marker, "name") or name
        metadata.add_matrix_param(path_var, key, type_name)

    # Cases

    def find_scenario_tag(self, func_node: ast.FunctionDef) -> Optional[ast.Call]:
        """Return the scenario tag call of a method, if any."""
        for decorator in func_node.decorator_list:
            if tag_name(decorator) == SCENARIO_TAG and isinstance(decorator, ast.Call):
                return decorator
        return None

    def extract_cases(self, spec_call: Optional[ast.Call]) -> list[Case]:
        """Read every case of a scenario tag.

        Args:
            spec_call: ``api_test_spec(...)`` call, or None

        Returns:
            Cases in declaration order

        Raises:
            MalformedTagException: If a custom matcher reference is malformed
        """
        if spec_call is None:
            return []

        scenarios = self._argument(spec_call, "scenarios", 0)
        if scenarios is None:
            return []
        if not isinstance(scenarios, (ast.List, ast.Tuple)):
            self.diagnostics.warning(
                "Scenario tag 'scenarios' must be a list of api_test_case(...)",
                self._where(scenarios),
            )
            return []

        cases = []
        for element in scenarios.elts:
            if not (isinstance(element, ast.Call) and tag_name(element) in CASE_TAGS):
                self.diagnostics.warning(
                    f"Ignoring non-case entry in scenarios: {ast.unparse(element)}",
                    self._where(element),
                )
                continue
            cases.append(self._extract_case(element))
        return cases

    def _extract_case(self, case_call: ast.Call) -> Case:
        values = dict(CASE_FIELD_DEFAULTS)

        if case_call.args:
            self.diagnostics.warning(
                "Case fields must be passed by keyword; positional arguments ignored",
                self._where(case_call),
            )

        for keyword in case_call.keywords:
            if keyword.arg is None:
                self.diagnostics.warning(
                    "Unpacked case fields cannot be read statically, skipped",
                    self._where(keyword.value),
                )
                continue
            field_name = CASE_FIELD_ALIASES.get(keyword.arg, keyword.arg)
            if field_name not in CASE_FIELD_DEFAULTS:
                self.diagnostics.warning(
                    f"Unknown case field '{keyword.arg}', skipped", self._where(keyword.value)
                )
                continue

            if field_name in LIST_CASE_FIELDS:
                values[field_name] = self._read_list_field(field_name, keyword.value)
            else:
                values[field_name] = self._read_scalar_field(field_name, keyword.value)

        return Case(
            display_name=values["display_name"],
            order=values["order"],
            timeout=values["timeout"],
            expected_status_code=values["expected_status_code"],
            requires_auth=values["requires_auth"],
            data_provider=values["data_provider"],
            repeat=values["repeat"],
            enable_logging=values["enable_logging"],
            response_timeout_seconds=values["response_timeout_seconds"],
            expected_headers=list(values["expected_headers"]),
            expected_cookies=list(values["expected_cookies"]),
            body_paths=list(values["body_paths"]),
        )

    def _read_scalar_field(self, field_name: str, node: ast.AST) -> Any:
        default = CASE_FIELD_DEFAULTS[field_name]
        try:
            value = self._evaluate(node)
        except _Unresolved as e:
            if field_name == "data_provider" and dotted_name(node):
                # Provider given as a class reference: registered under its name
                return dotted_name(node).split(".")[-1]
            self.diagnostics.warning(
                f"Cannot resolve case field '{field_name}': {e}; using default {default!r}",
                self._where(node),
            )
            return default

        expected = type(default)
        if expected is int and isinstance(value, bool):
            value = None
        if not isinstance(value, expected):
            self.diagnostics.warning(
                f"Case field '{field_name}' expects {expected.__name__}, "
                f"got {type(value).__name__}; using default {default!r}",
                self._where(node),
            )
            return default
        return value

    def _read_list_field(self, field_name: str, node: ast.AST) -> list:
        if not isinstance(node, (ast.List, ast.Tuple)):
            self.diagnostics.warning(
                f"Case field '{field_name}' expects a list, got {ast.unparse(node)}",
                self._where(node),
            )
            return []

        readers = {
            "expected_headers": (HEADER_TAGS, self._read_header),
            "expected_cookies": (COOKIE_TAGS, self._read_cookie),
            "body_paths": (BODY_PATH_TAGS, self._read_body_path),
        }
        accepted, reader = readers[field_name]

        items = []
        for element in node.elts:
            if not (isinstance(element, ast.Call) and tag_name(element) in accepted):
                self.diagnostics.warning(
                    f"Unexpected entry in '{field_name}': {ast.unparse(element)}",
                    self._where(element),
                )
                continue
            item = reader(element)
            if item is not None:
                items.append(item)
        return items

    def _read_header(self, call: ast.Call) -> Optional[HeaderAssertion]:
        name = self._string_argument(call, "name", 0)
        if not name:
            self.diagnostics.warning("Expected header without a name, skipped", self._where(call))
            return None
        node = self._argument(call, "value", 1)
        values: list[str] = []
        if node is not None:
            try:
                raw = self._evaluate(node)
            except _Unresolved as e:
                self.diagnostics.warning(
                    f"Cannot resolve value of header '{name}': {e}", self._where(node)
                )
                raw = []
            if isinstance(raw, list):
                values = [str(item) for item in raw]
            else:
                values = [str(raw)]
        return HeaderAssertion(name=name, values=tuple(values))

    def _read_cookie(self, call: ast.Call) -> Optional[CookieAssertion]:
        name = self._string_argument(call, "name", 0)
        if not name:
            self.diagnostics.warning("Expected cookie without a name, skipped", self._where(call))
            return None
        return CookieAssertion(name=name, value=self._string_argument(call, "value", 1))

    def _read_body_path(self, call: ast.Call) -> Optional[PathAssertion]:
        positions = {f.name: i for i, f in enumerate(dataclasses.fields(BodyPath))}

        path = self._string_argument(call, "path", positions["path"])
        matcher = self._read_matcher(call, positions["matcher"])

        value = ""
        value_node = self._argument(call, "value", positions["value"])
        if value_node is not None:
            try:
                raw = self._evaluate(value_node)
                value = ",".join(str(v) for v in raw) if isinstance(raw, list) else str(raw)
            except _Unresolved as e:
                self.diagnostics.warning(
                    f"Cannot resolve matcher value for '{path}': {e}", self._where(value_node)
                )

        custom = self._read_custom_matcher(call, positions["custom_matcher"])
        return PathAssertion(path=path, matcher=matcher, value=value, custom_matcher=custom)

    def _read_matcher(self, call: ast.Call, position: int) -> Optional[MatcherKind]:
        node = self._argument(call, "matcher", position)
        if node is None:
            return MatcherKind.EQUAL_TO
        if isinstance(node, ast.Constant) and node.value is None:
            return None
        try:
            raw = self._evaluate(node)
        except _Unresolved as e:
            self.diagnostics.warning(f"Unknown matcher kind: {e}", self._where(node))
            return None
        if isinstance(raw, MatcherKind):
            return raw
        kind = MatcherKind.from_name(raw) if isinstance(raw, str) else None
        if kind is None:
            self.diagnostics.warning(f"Unknown matcher kind: {raw!r}", self._where(node))
        return kind

    def _read_custom_matcher(self, call: ast.Call, position: int) -> Optional[str]:
        node = self._argument(call, "custom_matcher", position)
        if node is None:
            return None
        if isinstance(node, ast.Constant):
            if node.value is None:
                return None
            if isinstance(node.value, str) and node.value.strip():
                return node.value.strip()
        else:
            reference = dotted_name(node)
            if reference:
                return self._qualify(reference)
        raise MalformedTagException(
            f"{self._where(node)}: custom matcher must be a class or dotted path, "
            f"got {ast.unparse(node)}"
        )

    def _qualify(self, reference: str) -> str:
        """Turn a name used in the scanned module into an importable dotted path."""
        head, _, rest = reference.partition(".")
        if head in self.imports:
            base = self.imports[head]
            return f"{base}.{rest}" if rest else base
        if head in self.local_names and self.module:
            return f"{self.module}.{reference}"
        return reference
