"""Per-method state shared by the generation steps."""

import keyword
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional

from apitest_gen.core.matchers import build_matcher_expression
from apitest_gen.core.model import Case, ParameterMetadata, ScenarioGroup
from apitest_gen.core.synthesis.source import ImportSet

RUNTIME_MODULE = "apitest_gen.runtime"

# Helper methods the generated class must provide
HELPER_MULTIPART = "build_multipart_data"
HELPER_LOGGING = "log_request"

MULTIPART_METHODS = ("post", "put")

FILE_TYPE_PATTERN = re.compile(
    r"\b(?:UploadFile|File|FileStorage|bytes|bytearray|BinaryIO|IO|Resource)\b"
)

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_]\w*")

# Local names the generated method already uses
RESERVED_LOCALS = frozenset({"self", "data", "client"})

# Module-level names the generated method body refers to
BODY_GLOBALS = frozenset({"get_data", "safe_string", "format_body", "MediaType", "pytest"})

ORDER_GATING_CHOICES = ("order", "timeout")


@dataclass
class SynthesisOptions:
    """Engine options.

    Attributes:
        order_gating: "order" emits the order marker when order != 0;
            "timeout" keeps the legacy rule of emitting it when timeout > 0
    """

    order_gating: str = "order"


@dataclass
class SynthesisContext:
    """Inputs and shared outputs of one generated test method."""

    group: ScenarioGroup
    case: Case
    full_path: str
    options: SynthesisOptions = field(default_factory=SynthesisOptions)
    imports: ImportSet = field(default_factory=ImportSet)
    helpers: set[str] = field(default_factory=set)

    @property
    def parameters(self) -> ParameterMetadata:
        return self.case.parameters or ParameterMetadata(http_method=self.verb)

    @property
    def verb(self) -> str:
        return (self.group.http_method or "").lower()

    @property
    def requires_body(self) -> bool:
        return self.verb in ("post", "put", "patch")

    @property
    def is_multipart(self) -> bool:
        """True if the request is sent as multipart form data."""
        if self.verb not in MULTIPART_METHODS:
            return False
        params = self.parameters
        if params.multipart or params.file_params or params.form_params:
            return True
        return any(FILE_TYPE_PATTERN.search(type_name) for type_name in params.body.values())

    @cached_property
    def reserved_names(self) -> frozenset:
        """Names a body parameter local must not shadow.

        Covers the method's own locals, the runtime names its body uses and
        every identifier in the case's body path matcher expressions.

        Raises:
            MatcherException: If a body path matcher cannot be built
        """
        names = set(RESERVED_LOCALS | BODY_GLOBALS)
        for assertion in self.case.body_paths:
            if not assertion.is_usable:
                continue
            matcher = build_matcher_expression(
                assertion.matcher, assertion.value, assertion.custom_matcher
            )
            names.update(IDENTIFIER_PATTERN.findall(matcher.text))
        return frozenset(names)

    def body_local(self, name: str) -> Optional[str]:
        return body_local(name, self.reserved_names)

    def runtime(self, *names: str) -> None:
        """Require names from the runtime support package."""
        for name in names:
            self.imports.add(RUNTIME_MODULE, name)


def body_local(name: str, reserved: frozenset = RESERVED_LOCALS | BODY_GLOBALS) -> Optional[str]:
    """Return the local variable used for a body parameter, None if unusable."""
    if not name.isidentifier() or name in reserved:
        return None
    if keyword.iskeyword(name):
        return None
    return name
