"""Code synthesis engine for generated test methods."""

from apitest_gen.core.synthesis.context import SynthesisContext, SynthesisOptions
from apitest_gen.core.synthesis.decorations import DECORATION_STEPS
from apitest_gen.core.synthesis.engine import CodeSynthesisEngine, MethodSource
from apitest_gen.core.synthesis.source import FluentStatement, ImportSet, MethodBuilder
from apitest_gen.core.synthesis.statements import STATEMENT_STEPS, STATUS_METHODS, status_assertion

__all__ = [
    "CodeSynthesisEngine",
    "DECORATION_STEPS",
    "FluentStatement",
    "ImportSet",
    "MethodBuilder",
    "MethodSource",
    "STATEMENT_STEPS",
    "STATUS_METHODS",
    "SynthesisContext",
    "SynthesisOptions",
    "status_assertion",
]
