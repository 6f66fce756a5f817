"""Test module generator.

Assembles the methods produced by the synthesis engine into one pytest
module per tested type, adding the shared helper methods once.
"""

import ast
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Optional

from apitest_gen.core.diagnostics import Diagnostics
from apitest_gen.core.literals import quote
from apitest_gen.core.model import TestedType
from apitest_gen.core.synthesis.context import HELPER_LOGGING, HELPER_MULTIPART, RUNTIME_MODULE
from apitest_gen.core.synthesis.engine import CodeSynthesisEngine
from apitest_gen.core.synthesis.source import INDENT, ImportSet
from apitest_gen.core.uri_builder import join_paths
from apitest_gen.exceptions import GenerationException

logger = logging.getLogger(__name__)

AUTH_FIXTURE = '''\
    @pytest.fixture(autouse=True)
    def authenticate(self, web_test_client):
        self.bearer_token = obtain_bearer_token(
            web_test_client,
            {auth_url},
            {username},
            {password},
            token_field={token_field},
        )'''

MULTIPART_HELPER = '''\
    def build_multipart_data(self, data):
        return MultipartBody.from_data(data)'''

LOGGING_HELPERS = '''\
    @staticmethod
    def log_request(request):
        log_http_request(request)

    @staticmethod
    def log_response(response):
        log_http_response(response)'''


def snake_case(name: str) -> str:
    """Convert a CamelCase class name to snake_case.

    Example:
        >>> snake_case("HTTPClientControllerGeneratedTest")
        'http_client_controller_generated_test'
    """
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.lower()


def module_file_name(class_name: str) -> str:
    """Return a pytest-collectable file name for a generated class."""
    stem = snake_case(class_name)
    if not (stem.startswith("test_") or stem.endswith("_test")):
        stem = f"{stem}_test"
    return f"{stem}.py"


@dataclass
class GeneratedModule:
    """Generated test module for one tested type.

    Attributes:
        class_name: Generated class name
        file_name: Module file name
        package_dir: Directory of the source package, relative ("" at top level)
        source: Module source text
        method_names: Generated test methods in declaration order
        collisions: Method names renamed to resolve collisions
        source_module: Dotted name of the scanned source module
    """

    class_name: str
    file_name: str
    package_dir: str
    source: str
    method_names: list[str] = field(default_factory=list)
    collisions: list[str] = field(default_factory=list)
    source_module: str = ""

    @property
    def relative_path(self) -> str:
        return str(PurePosixPath(self.package_dir, self.file_name))


class TestModuleGenerator:
    """Generate pytest modules from tested types.

    Example:
        >>> generator = TestModuleGenerator(CodeSynthesisEngine())
        >>> module = generator.generate(tested_type)
        >>> module.relative_path
        'app/client_controller_generated_test.py'
    """

    __test__ = False

    def __init__(
        self,
        engine: Optional[CodeSynthesisEngine] = None,
        duplicate_names: str = "suffix",
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        """Initialize generator.

        Args:
            engine: Synthesis engine for test methods
            duplicate_names: Method name collision policy, "suffix" or "error"
            diagnostics: Sink for generation warnings
        """
        self.engine = engine or CodeSynthesisEngine()
        self.duplicate_names = duplicate_names
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def generate(self, tested_type: TestedType) -> GeneratedModule:
        """Generate the test module for one tested type.

        Args:
            tested_type: Scanned tested type

        Returns:
            GeneratedModule with source text and file placement

        Raises:
            DuplicateTestNameException: If names collide under the "error" policy
            MatcherException: If a body path assertion cannot be built
            GenerationException: If the generated source does not parse
        """
        location = tested_type.source_file or tested_type.module or tested_type.name
        assignments, collisions = tested_type.assign_method_names(self.duplicate_names)
        for name in collisions:
            self.diagnostics.warning(
                f"Duplicate test method '{name}' in {tested_type.name}; "
                f"later cases renamed with a sequence suffix",
                location,
            )

        imports = ImportSet([(RUNTIME_MODULE, "ApiTestBase")])
        helpers: set[str] = set()
        methods = []
        for group, case, method_name in assignments:
            full_path = join_paths(tested_type.base_path, group.path)
            method = self.engine.generate(group, case, full_path, method_name=method_name)
            imports.merge(method.imports)
            helpers |= method.helpers
            methods.append(method)

            if case.requires_auth and tested_type.auth is None:
                self.diagnostics.warning(
                    f"Case {method_name} requires auth but {tested_type.source_name} "
                    f"declares no auth_url/username/password",
                    location,
                )

        class_body = self._class_header(tested_type)
        class_body.extend(self._helpers(tested_type, helpers, imports))
        class_body.extend(method.text for method in methods)

        source = self._render_module(tested_type, imports, class_body)
        try:
            ast.parse(source)
        except SyntaxError as e:
            raise GenerationException(
                f"Generated source for {tested_type.name} does not parse: {e.msg} (line {e.lineno})"
            ) from e

        logger.info(f"Generated {tested_type.name} with {len(methods)} test method(s)")
        return GeneratedModule(
            class_name=tested_type.name,
            file_name=module_file_name(tested_type.name),
            package_dir=tested_type.package.replace(".", "/"),
            source=source,
            method_names=[method.name for method in methods],
            collisions=collisions,
            source_module=tested_type.module,
        )

    def _class_header(self, tested_type: TestedType) -> list[str]:
        lines = [
            f'{INDENT}"""Generated API tests for {tested_type.source_name or tested_type.name}."""',
            "",
            f"{INDENT}__test__ = True",
            f"{INDENT}base_path = {quote(tested_type.base_path)}",
        ]
        return ["\n".join(lines)]

    def _helpers(self, tested_type: TestedType, helpers: set[str], imports: ImportSet) -> list[str]:
        """Return helper method blocks the generated methods rely on."""
        blocks = []
        if tested_type.requires_auth():
            auth = tested_type.auth
            imports.add("pytest")
            imports.add(RUNTIME_MODULE, "obtain_bearer_token")
            blocks.append(
                AUTH_FIXTURE.format(
                    auth_url=quote(auth.auth_url),
                    username=quote(auth.username),
                    password=quote(auth.password),
                    token_field=quote(auth.token_field_name),
                )
            )
        if HELPER_MULTIPART in helpers:
            imports.add(RUNTIME_MODULE, "MultipartBody")
            blocks.append(MULTIPART_HELPER)
        if HELPER_LOGGING in helpers:
            imports.add(RUNTIME_MODULE, "log_http_request")
            imports.add(RUNTIME_MODULE, "log_http_response")
            blocks.append(LOGGING_HELPERS)
        return blocks

    def _render_module(
        self, tested_type: TestedType, imports: ImportSet, class_body: list[str]
    ) -> str:
        origin = tested_type.module or tested_type.source_name
        header = [
            f'"""Generated API tests for {tested_type.source_name or tested_type.name}.',
            "",
            f"Generated by apitest-gen from {origin}. Do not edit by hand.",
            '"""',
            "",
            *imports.render(),
            "",
            "",
            f"class {tested_type.name}(ApiTestBase):",
        ]
        return "\n".join(header) + "\n" + "\n\n".join(class_body) + "\n"
