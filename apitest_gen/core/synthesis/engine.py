"""Code synthesis engine.

Turns one scenario group and case into the source of one pytest test
method by running the decoration steps, then the fluent statement steps.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from apitest_gen.core.model import Case, ScenarioGroup, case_method_name
from apitest_gen.core.synthesis.context import SynthesisContext, SynthesisOptions
from apitest_gen.core.synthesis.decorations import DECORATION_STEPS
from apitest_gen.core.synthesis.source import FluentStatement, ImportSet, MethodBuilder
from apitest_gen.core.synthesis.statements import STATEMENT_STEPS

logger = logging.getLogger(__name__)

# Indentation level of methods inside the generated class
METHOD_LEVEL = 1


@dataclass
class MethodSource:
    """Generated test method.

    Attributes:
        name: Method name
        text: Method source, indented for a class body
        imports: Imports the method needs
        helpers: Names of class helper methods the method calls
    """

    name: str
    text: str
    imports: ImportSet = field(default_factory=ImportSet)
    helpers: set[str] = field(default_factory=set)


class CodeSynthesisEngine:
    """Generate test method source from the metadata model.

    Example:
        >>> engine = CodeSynthesisEngine()
        >>> method = engine.generate(group, case, "/api/clients/{id}")
        >>> method.name
        'get_client_200'
    """

    def __init__(
        self,
        options: Optional[SynthesisOptions] = None,
        decoration_steps: Sequence[Callable] = DECORATION_STEPS,
        statement_steps: Sequence[Callable] = STATEMENT_STEPS,
    ) -> None:
        """Initialize engine.

        Args:
            options: Engine options (defaults if omitted)
            decoration_steps: Stage A steps, applied in order
            statement_steps: Stage B steps, applied in order
        """
        self.options = options or SynthesisOptions()
        self.decoration_steps = tuple(decoration_steps)
        self.statement_steps = tuple(statement_steps)

    def generate(
        self,
        group: ScenarioGroup,
        case: Case,
        full_path: str,
        method_name: Optional[str] = None,
    ) -> MethodSource:
        """Generate one test method.

        Args:
            group: Scenario group of the case
            case: Case to generate
            full_path: Base path joined with the group's path template
            method_name: Name override (collision resolution); defaults to
                ``<method_name>_<expected_status_code>``

        Returns:
            MethodSource with method text, imports and required helpers

        Raises:
            MatcherException: If a body path assertion cannot be built
        """
        name = method_name or case_method_name(group, case)
        ctx = SynthesisContext(group=group, case=case, full_path=full_path, options=self.options)

        method = MethodBuilder(name=name)
        for step in self.decoration_steps:
            step(method, ctx)

        chain = FluentStatement(target="self.web_test_client")
        for step in self.statement_steps:
            step(chain, ctx)

        logger.debug(f"Generated method {name} ({len(chain.calls)} chained calls)")
        return MethodSource(
            name=name,
            text=method.render(METHOD_LEVEL, chain),
            imports=ctx.imports,
            helpers=ctx.helpers,
        )
