"""Declaration scanner for tagged endpoint classes.

Walks the AST of one source module, finds classes carrying the
generation marker and drives the metadata extractor for every method.
Tested types of one module are appended together to a shared,
lock-guarded accumulator so several modules can be scanned in parallel.
"""

import ast
import logging
import threading
from pathlib import Path
from typing import Iterator, Optional, Union

from apitest_gen.core.diagnostics import Diagnostics
from apitest_gen.core.extractor import (
    MetadataExtractor,
    collect_import_aliases,
    collect_module_constants,
)
from apitest_gen.core.model import GENERATED_SUFFIX, ScenarioGroup, TestedType
from apitest_gen.exceptions import ApiTestGenException

logger = logging.getLogger(__name__)

# Special methods that never describe an endpoint
SKIPPED_METHODS = {"__init__", "__new__"}

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


class TestedTypeAccumulator:
    """Append-only, thread-safe collection of scanned tested types.

    Types appended in one call keep their order; no order is guaranteed
    between calls made from different threads.
    """

    __test__ = False

    def __init__(self) -> None:
        self._types: list[TestedType] = []
        self._lock = threading.Lock()

    def extend(self, tested_types: list[TestedType]) -> None:
        """Append all tested types of one scanned module."""
        with self._lock:
            self._types.extend(tested_types)

    def snapshot(self) -> list[TestedType]:
        """Return a copy of every tested type collected so far."""
        with self._lock:
            return list(self._types)

    def __len__(self) -> int:
        with self._lock:
            return len(self._types)


def module_name_for(path: Path, root: Path) -> tuple[str, str]:
    """Derive dotted (module, package) names of a file relative to a root.

    Args:
        path: Python source file
        root: Directory the dotted names are relative to

    Returns:
        Tuple of (module, package); package is "" for top-level modules
    """
    relative = path.resolve().relative_to(root.resolve()).with_suffix("")
    parts = list(relative.parts)
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
        return ".".join(parts), ".".join(parts)
    return ".".join(parts), ".".join(parts[:-1])


class DeclarationScanner:
    """Scan source modules for tagged classes.

    Example:
        >>> accumulator = TestedTypeAccumulator()
        >>> scanner = DeclarationScanner(accumulator)
        >>> scanner.scan_file(Path("app/controllers.py"), Path("."))
        >>> [t.name for t in accumulator.snapshot()]
        ['ClientControllerGeneratedTest']
    """

    def __init__(
        self,
        accumulator: TestedTypeAccumulator,
        diagnostics: Optional[Diagnostics] = None,
        suffix: str = GENERATED_SUFFIX,
    ) -> None:
        """Initialize scanner.

        Args:
            accumulator: Shared collection receiving tested types
            diagnostics: Sink for warnings and errors (a new one if omitted)
            suffix: Suffix appended to generated class names
        """
        self.accumulator = accumulator
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.suffix = suffix

    def scan_file(self, path: Path, root: Path) -> list[TestedType]:
        """Scan one source file.

        Args:
            path: Python source file
            root: Project root used to derive the dotted module name

        Returns:
            Tested types found in the file (also appended to the accumulator)
        """
        module, package = module_name_for(path, root)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.diagnostics.error(f"Cannot read source file: {e}", str(path))
            return []
        return self.scan_source(source, module=module, package=package, source_file=str(path))

    def scan_source(
        self,
        source: str,
        module: str = "",
        package: Optional[str] = None,
        source_file: Optional[str] = None,
    ) -> list[TestedType]:
        """Scan module source text.

        A syntax error or a fatal tag error is reported as an error
        diagnostic and nothing from the module is accumulated.

        Args:
            source: Python source text
            module: Dotted module name
            package: Dotted package name (derived from module if omitted)
            source_file: File name used in diagnostics

        Returns:
            Tested types found in the module
        """
        if package is None:
            package = module.rpartition(".")[0]
        location = source_file or module or "<source>"

        try:
            tree = ast.parse(source, filename=location)
        except SyntaxError as e:
            self.diagnostics.error(f"Cannot parse module: {e.msg} (line {e.lineno})", location)
            return []

        extractor = MetadataExtractor(
            self.diagnostics,
            constants=collect_module_constants(tree),
            imports=collect_import_aliases(tree, package),
            module=module,
            location=location,
            suffix=self.suffix,
            local_names=self._local_names(tree),
        )

        try:
            tested_types = [
                self._scan_class(extractor, class_node, package, module, source_file)
                for class_node in self._iter_classes(tree.body)
                if extractor.find_marker(class_node) is not None
            ]
        except ApiTestGenException as e:
            self.diagnostics.error(str(e), location)
            return []

        if tested_types:
            self.accumulator.extend(tested_types)
            logger.debug(f"Scanned {location}: {len(tested_types)} tagged class(es)")
        return tested_types

    def _local_names(self, tree: ast.Module) -> set[str]:
        return {
            node.name
            for node in tree.body
            if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef))
        }

    def _iter_classes(self, body: list[ast.stmt]) -> Iterator[ast.ClassDef]:
        """Yield classes at module level and nested inside classes."""
        for node in body:
            if isinstance(node, ast.ClassDef):
                yield node
                yield from self._iter_classes(node.body)

    def _iter_methods(self, class_node: ast.ClassDef) -> Iterator[FunctionNode]:
        for node in class_node.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                if node.name not in SKIPPED_METHODS:
                    yield node

    def _scan_class(
        self,
        extractor: MetadataExtractor,
        class_node: ast.ClassDef,
        package: str,
        module: str,
        source_file: Optional[str],
    ) -> TestedType:
        tested_type = extractor.create_tested_type(
            class_node.name, package, class_node, module=module, source_file=source_file
        )

        for func_node in self._iter_methods(class_node):
            http_method, path = extractor.extract_route(func_node)
            group = ScenarioGroup(method_name=func_node.name, http_method=http_method, path=path)
            group.cases = extractor.extract_cases(extractor.find_scenario_tag(func_node))
            group.attach_parameters(extractor.process_parameters(func_node, http_method))
            tested_type.add_group(group)

        return tested_type
