"""Core modules for API Test Generator."""

from apitest_gen.core.model import (
    AuthDescriptor,
    Case,
    CookieAssertion,
    HeaderAssertion,
    ParameterMetadata,
    PathAssertion,
    ScenarioGroup,
    TestedType,
)
from apitest_gen.core.matchers import MatcherKind, build_matcher_expression
from apitest_gen.core.uri_builder import prepare_uri_expression
from apitest_gen.core.diagnostics import Diagnostic, Diagnostics
from apitest_gen.core.extractor import MetadataExtractor
from apitest_gen.core.scanner import DeclarationScanner, TestedTypeAccumulator
from apitest_gen.core.synthesis import CodeSynthesisEngine
from apitest_gen.core.module_generator import GeneratedModule, TestModuleGenerator
from apitest_gen.core.project_analyzer import ProjectAnalyzer

__all__ = [
    # model
    "AuthDescriptor",
    "Case",
    "CookieAssertion",
    "HeaderAssertion",
    "ParameterMetadata",
    "PathAssertion",
    "ScenarioGroup",
    "TestedType",
    # generation
    "MatcherKind",
    "build_matcher_expression",
    "prepare_uri_expression",
    "Diagnostic",
    "Diagnostics",
    "MetadataExtractor",
    "DeclarationScanner",
    "TestedTypeAccumulator",
    "CodeSynthesisEngine",
    "GeneratedModule",
    "TestModuleGenerator",
    "ProjectAnalyzer",
]
