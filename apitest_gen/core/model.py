"""Metadata model for annotated endpoint test generation.

This module defines the dataclasses produced by the declaration scanner
and consumed by the code synthesis engine: one TestedType per tagged
class, one ScenarioGroup per tagged method, one Case per scenario variant.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from apitest_gen.core.matchers import MatcherKind
from apitest_gen.exceptions import DuplicateTestNameException

# Appended to the source class name to form the generated class name
GENERATED_SUFFIX = "GeneratedTest"

DEFAULT_TOKEN_FIELD = "token"

# Sentinel for "no response timeout override"
UNSET_RESPONSE_TIMEOUT = -1

# HTTP verbs that carry a request body
BODY_METHODS = ("post", "put", "patch")

DUPLICATE_POLICIES = ("suffix", "error")


def _unique(items: list) -> list:
    """Drop repeated entries while keeping first-seen order."""
    return list(dict.fromkeys(items))


@dataclass
class AuthDescriptor:
    """Credentials used to obtain a bearer token before authenticated cases.

    Attributes:
        auth_url: Endpoint that issues tokens
        username: Login user name
        password: Login password
        token_field_name: Response body field holding the token
    """

    auth_url: str
    username: str
    password: str
    token_field_name: str = DEFAULT_TOKEN_FIELD

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "auth_url": self.auth_url,
            "username": self.username,
            "password": self.password,
            "token_field_name": self.token_field_name,
        }


@dataclass(frozen=True)
class HeaderAssertion:
    """Expected response header; several values assert a multi-value header."""

    name: str
    values: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "values": list(self.values)}


@dataclass(frozen=True)
class CookieAssertion:
    """Expected response cookie value."""

    name: str
    value: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class PathAssertion:
    """Assertion on a value selected from the response body by JSON path.

    Attributes:
        path: JSON path expression, e.g. ``$.name``
        matcher: Matcher kind applied to the selected value
        value: Expected value as declared (always a string)
        custom_matcher: Dotted reference of a matcher class for CUSTOM_CLASS
    """

    path: str
    matcher: Optional[MatcherKind] = MatcherKind.EQUAL_TO
    value: str = ""
    custom_matcher: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        """True if the assertion has a path and a matcher kind."""
        return bool(self.path and self.path.strip()) and self.matcher is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": self.path,
            "matcher": self.matcher.name if self.matcher else None,
            "value": self.value,
            "custom_matcher": self.custom_matcher,
        }


@dataclass
class ParameterMetadata:
    """Classification of one method's parameters by transport role.

    Every role map is parameter name -> declared type name. Matrix
    parameters are nested by the path variable that owns them.
    """

    http_method: str = ""
    path_params: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)
    header_params: dict[str, str] = field(default_factory=dict)
    cookie_params: dict[str, str] = field(default_factory=dict)
    body: dict[str, str] = field(default_factory=dict)
    form_params: dict[str, str] = field(default_factory=dict)
    file_params: dict[str, str] = field(default_factory=dict)
    matrix_params: dict[str, dict[str, str]] = field(default_factory=dict)
    multipart: bool = False

    @property
    def requires_body(self) -> bool:
        """True if the HTTP verb carries a request body."""
        return self.http_method.lower() in BODY_METHODS

    def add_matrix_param(self, path_var: str, key: str, type_name: str) -> None:
        """Register a matrix key under its owning path variable."""
        self.matrix_params.setdefault(path_var, {})[key] = type_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "http_method": self.http_method,
            "path_params": dict(self.path_params),
            "query_params": dict(self.query_params),
            "header_params": dict(self.header_params),
            "cookie_params": dict(self.cookie_params),
            "body": dict(self.body),
            "form_params": dict(self.form_params),
            "file_params": dict(self.file_params),
            "matrix_params": {k: dict(v) for k, v in self.matrix_params.items()},
            "multipart": self.multipart,
        }


@dataclass
class Case:
    """One test variant of a scenario group.

    Attributes:
        display_name: Human readable test name (empty = none)
        order: Execution order hint (0 = unordered)
        timeout: Test timeout in seconds (0 = none)
        expected_status_code: Expected HTTP status code
        requires_auth: Send the bearer token obtained for the tested type
        data_provider: Name of the registered data provider
        repeat: Number of executions (1 = single execution)
        enable_logging: Log requests and responses through a dedicated client
        response_timeout_seconds: Client response timeout override (-1 = unset)
        expected_headers: Header assertions, duplicate-free
        expected_cookies: Cookie assertions, duplicate-free
        body_paths: Body path assertions, duplicate-free
        parameters: Parameter classification of the owning method
    """

    display_name: str = ""
    order: int = 0
    timeout: int = 0
    expected_status_code: int = 0
    requires_auth: bool = False
    data_provider: str = ""
    repeat: int = 1
    enable_logging: bool = False
    response_timeout_seconds: int = UNSET_RESPONSE_TIMEOUT
    expected_headers: list[HeaderAssertion] = field(default_factory=list)
    expected_cookies: list[CookieAssertion] = field(default_factory=list)
    body_paths: list[PathAssertion] = field(default_factory=list)
    parameters: Optional[ParameterMetadata] = None

    def __post_init__(self) -> None:
        self.expected_headers = _unique(self.expected_headers)
        self.expected_cookies = _unique(self.expected_cookies)
        self.body_paths = _unique(self.body_paths)

    @property
    def has_response_timeout(self) -> bool:
        return self.response_timeout_seconds > 0

    @property
    def needs_dedicated_client(self) -> bool:
        """True if the case builds its own client instead of the shared one."""
        return self.enable_logging or self.has_response_timeout

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "display_name": self.display_name,
            "order": self.order,
            "timeout": self.timeout,
            "expected_status_code": self.expected_status_code,
            "requires_auth": self.requires_auth,
            "data_provider": self.data_provider,
            "repeat": self.repeat,
            "enable_logging": self.enable_logging,
            "response_timeout_seconds": self.response_timeout_seconds,
            "expected_headers": [h.to_dict() for h in self.expected_headers],
            "expected_cookies": [c.to_dict() for c in self.expected_cookies],
            "body_paths": [p.to_dict() for p in self.body_paths],
            "parameters": self.parameters.to_dict() if self.parameters else None,
        }


@dataclass
class ScenarioGroup:
    """One tested operation derived from one method.

    Attributes:
        method_name: Name of the source method
        http_method: Lower-case HTTP verb ("" when no routing tag was found)
        path: Path template relative to the tested type's base path
        cases: Cases in declaration order
    """

    method_name: str
    http_method: str = ""
    path: str = ""
    cases: list[Case] = field(default_factory=list)

    def attach_parameters(self, parameters: ParameterMetadata) -> None:
        """Share one parameter classification across every case of the group."""
        for case in self.cases:
            case.parameters = parameters

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "method_name": self.method_name,
            "http_method": self.http_method,
            "path": self.path,
            "cases": [c.to_dict() for c in self.cases],
        }


def case_method_name(group: ScenarioGroup, case: Case) -> str:
    """Return the generated test method name for a case.

    Args:
        group: Scenario group owning the case
        case: Case to name

    Returns:
        ``<method_name>_<expected_status_code>``
    """
    return f"{group.method_name}_{case.expected_status_code}"


@dataclass
class TestedType:
    """One tagged class for which a test module is generated.

    Attributes:
        name: Generated class name (source name + GENERATED_SUFFIX)
        source_name: Name of the tagged source class
        package: Dotted package of the source module ("" at top level)
        module: Dotted name of the source module
        base_path: Path prefix from the class-level routing tag
        auth: Auth descriptor, set only when all credentials are present
        groups: Scenario groups keyed by method name, in declaration order
        source_file: Path of the scanned file, if scanned from disk
    """

    # Not a pytest test class despite the name
    __test__ = False

    name: str
    source_name: str = ""
    package: str = ""
    module: str = ""
    base_path: str = ""
    auth: Optional[AuthDescriptor] = None
    groups: dict[str, ScenarioGroup] = field(default_factory=dict)
    source_file: Optional[str] = None

    def add_group(self, group: ScenarioGroup) -> None:
        """Add a scenario group; a repeated method name replaces the earlier one."""
        self.groups[group.method_name] = group

    @property
    def case_count(self) -> int:
        return sum(len(g.cases) for g in self.groups.values())

    def requires_auth(self) -> bool:
        """True if an auth descriptor exists and any case needs it."""
        return self.auth is not None and any(
            case.requires_auth for g in self.groups.values() for case in g.cases
        )

    def assign_method_names(
        self, policy: str = "suffix"
    ) -> tuple[list[tuple[ScenarioGroup, Case, str]], list[str]]:
        """Assign a unique test method name to every case.

        Names follow ``<method_name>_<status>``. When two cases collide the
        ``suffix`` policy renames the later ones ``<name>_2``, ``<name>_3``;
        the ``error`` policy raises instead.

        Args:
            policy: Collision policy, "suffix" or "error"

        Returns:
            Tuple of (assignments, collided base names). Assignments are
            (group, case, method_name) triples in declaration order.

        Raises:
            DuplicateTestNameException: If policy is "error" and names collide
        """
        if policy not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown duplicate name policy: {policy}")

        assignments: list[tuple[ScenarioGroup, Case, str]] = []
        collisions: list[str] = []
        seen: dict[str, int] = {}

        for group in self.groups.values():
            for case in group.cases:
                base = case_method_name(group, case)
                count = seen.get(base, 0) + 1
                seen[base] = count

                if count == 1:
                    assignments.append((group, case, base))
                    continue

                if policy == "error":
                    raise DuplicateTestNameException(
                        f"Duplicate test method '{base}' in {self.name}"
                    )
                if base not in collisions:
                    collisions.append(base)
                assignments.append((group, case, f"{base}_{count}"))

        return assignments, collisions

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "source_name": self.source_name,
            "package": self.package,
            "module": self.module,
            "base_path": self.base_path,
            "auth": self.auth.to_dict() if self.auth else None,
            "groups": {k: g.to_dict() for k, g in self.groups.items()},
            "source_file": self.source_file,
        }
