"""API Test Generator - Generate pytest API tests from tagged endpoint classes."""

__version__ = "1.0.0"

from apitest_gen.core.pipeline import ApiTestGenerator
from apitest_gen.core.scanner import DeclarationScanner, TestedTypeAccumulator
from apitest_gen.core.synthesis import CodeSynthesisEngine

__all__ = [
    "ApiTestGenerator",
    "CodeSynthesisEngine",
    "DeclarationScanner",
    "TestedTypeAccumulator",
]
