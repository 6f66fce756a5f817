"""Scan-and-generate pipeline.

Discovers tagged source files, scans them in parallel into one shared
accumulator, then generates and writes one test module per tested type.
A fatal error aborts emission for the affected source file only.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional

from apitest_gen.config import GeneratorConfig
from apitest_gen.core.diagnostics import Diagnostics
from apitest_gen.core.model import TestedType
from apitest_gen.core.module_generator import (
    GeneratedModule,
    TestModuleGenerator,
    module_file_name,
)
from apitest_gen.core.project_analyzer import ProjectAnalyzer
from apitest_gen.core.scanner import DeclarationScanner, TestedTypeAccumulator
from apitest_gen.core.synthesis import CodeSynthesisEngine, SynthesisOptions
from apitest_gen.exceptions import ApiTestGenException, GenerationException

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Result of one pipeline run."""

    tested_types: list[TestedType] = field(default_factory=list)
    modules: list[GeneratedModule] = field(default_factory=list)
    written_files: list[str] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def success(self) -> bool:
        """True if no error diagnostics were produced."""
        return not self.diagnostics.has_errors

    @property
    def methods_count(self) -> int:
        return sum(len(m.method_names) for m in self.modules)


class ApiTestGenerator:
    """Run discovery, scanning and generation for a project.

    Example:
        >>> generator = ApiTestGenerator(GeneratorConfig(workers=2))
        >>> report = generator.run("./my_service", dry_run=True)
        >>> print(f"{len(report.modules)} module(s), success={report.success}")
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def scan(self, project_path: str) -> list[TestedType]:
        """Scan every tagged source file of a project in parallel.

        Args:
            project_path: Project root directory or single source file

        Returns:
            Tested types, grouped by source file in file order
        """
        root = Path(project_path)
        files = ProjectAnalyzer(exclude=self.config.exclude).find_tagged_files(project_path)
        if root.is_file():
            root = root.parent

        accumulator = TestedTypeAccumulator()
        scanner = DeclarationScanner(accumulator, self.diagnostics, suffix=self.config.suffix)

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = {executor.submit(scanner.scan_file, path, root): path for path in files}
            for future in as_completed(futures):
                path = futures[future]
                try:
                    future.result()
                except (ApiTestGenException, ValueError) as e:
                    self.diagnostics.error(f"Scan failed: {e}", str(path))

        # Types of one file stay in declaration order
        order = {str(path): index for index, path in enumerate(files)}
        tested_types = sorted(
            accumulator.snapshot(), key=lambda t: order.get(t.source_file or "", len(order))
        )
        logger.info(f"Scanned {len(files)} file(s), found {len(tested_types)} tagged class(es)")
        return tested_types

    def generate(self, tested_types: list[TestedType]) -> list[GeneratedModule]:
        """Generate test modules, dropping every module of a failed source file.

        Args:
            tested_types: Scanned tested types

        Returns:
            Generated modules of source files without fatal errors
        """
        engine = CodeSynthesisEngine(SynthesisOptions(order_gating=self.config.order_gating))
        generator = TestModuleGenerator(
            engine, duplicate_names=self.config.duplicate_names, diagnostics=self.diagnostics
        )

        by_unit: dict[str, list[GeneratedModule]] = {}
        failed_units: set[str] = set()
        for tested_type in tested_types:
            unit = tested_type.source_file or tested_type.module
            if unit in failed_units:
                continue
            try:
                by_unit.setdefault(unit, []).append(generator.generate(tested_type))
            except ApiTestGenException as e:
                self.diagnostics.error(
                    f"Generation aborted for {tested_type.source_name}: {e}", unit
                )
                failed_units.add(unit)
                by_unit.pop(unit, None)

        modules = [module for modules in by_unit.values() for module in modules]
        self._resolve_path_collisions(modules)
        return modules

    def _resolve_path_collisions(self, modules: list[GeneratedModule]) -> None:
        """Rename modules whose output path is already taken by an earlier module.

        Same-named classes from different files of one package, or a nested
        class named like a top-level one, would otherwise overwrite each other.
        The later module is prefixed with its source module name, then numbered.
        """
        taken: set[str] = set()
        for module in modules:
            original = module.relative_path
            if original in taken:
                stem = PurePosixPath(module.file_name).stem
                prefix = module.source_module.rsplit(".", 1)[-1] or "module"
                module.file_name = module_file_name(f"{prefix}_{stem}")
                counter = 2
                while module.relative_path in taken:
                    module.file_name = module_file_name(f"{prefix}_{counter}_{stem}")
                    counter += 1
                self.diagnostics.warning(
                    f"Output path {original} is already used, "
                    f"writing {module.class_name} to {module.relative_path}",
                    module.source_module,
                )
            taken.add(module.relative_path)

    def write(self, modules: list[GeneratedModule], output_dir: str) -> list[str]:
        """Write generated modules below ``output_dir`` in their package directories.

        Raises:
            GenerationException: If a file cannot be written
        """
        written = []
        for module in modules:
            target = Path(output_dir) / module.relative_path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(module.source, encoding="utf-8")
            except OSError as e:
                raise GenerationException(f"Cannot write {target}: {e}") from e
            written.append(str(target))
            logger.debug(f"Wrote {target}")
        return written

    def run(
        self, project_path: str, output_dir: Optional[str] = None, dry_run: bool = False
    ) -> GenerationReport:
        """Scan a project and generate its test modules.

        Args:
            project_path: Project root directory or single source file
            output_dir: Output directory (config ``output_dir`` if omitted)
            dry_run: Generate in memory without writing files

        Returns:
            GenerationReport with tested types, modules and diagnostics
        """
        tested_types = self.scan(project_path)
        modules = self.generate(tested_types)
        written = [] if dry_run else self.write(modules, output_dir or self.config.output_dir)
        return GenerationReport(
            tested_types=tested_types,
            modules=modules,
            written_files=written,
            diagnostics=self.diagnostics,
        )
