"""Custom exceptions for API Test Generator.

This module defines the exception hierarchy for the API Test Generator.
All custom exceptions inherit from ApiTestGenException base class.

Recoverable problems (unknown case fields, unresolved constants, missing
routing tags) are never raised; they are collected as diagnostics instead.
"""


class ApiTestGenException(Exception):
    """Base exception for all API Test Generator errors.

    All custom exceptions in the API Test Generator inherit from this
    base class to allow catching all tool-specific errors.
    """

    pass


class ConfigException(ApiTestGenException):
    """Raised when generator configuration is invalid.

    This exception is raised when:
    - Config file cannot be read or is not valid YAML
    - Config file contains unknown keys
    - A config value has the wrong type or an unsupported choice
    """

    pass


# Scan Exceptions


class ScanException(ApiTestGenException):
    """Base exception for declaration scanning errors.

    This exception is raised when a source module cannot be scanned.
    """

    pass


class MalformedTagException(ScanException):
    """Raised when a tag carries a value the extractor cannot interpret.

    This exception is raised when:
    - A custom matcher reference is not a class name or dotted path
    - A tag argument has a shape that makes the case unusable
    """

    pass


# Generation Exceptions


class GenerationException(ApiTestGenException):
    """Raised when test source generation fails.

    This exception is raised when:
    - Generated module source does not parse
    - A case cannot be turned into a test method
    - Output file cannot be written
    """

    pass


class DuplicateTestNameException(GenerationException):
    """Raised when two cases produce the same test method name.

    Only raised when the ``duplicate_names`` policy is set to ``error``.
    """

    pass


class MatcherException(GenerationException):
    """Base exception for matcher expression errors."""

    pass


class InvalidMatcherValueException(MatcherException):
    """Raised when a matcher value has the wrong shape for its kind.

    This exception is raised when:
    - GREATER_THAN or LESS_THAN value is neither an int nor a float
    """

    pass


class UnresolvableTypeException(MatcherException):
    """Raised when an INSTANCE_OF matcher names a type that cannot be located."""

    pass


class MissingCustomMatcherException(MatcherException):
    """Raised when a CUSTOM_CLASS matcher has no matcher class reference."""

    pass


# Runtime Exceptions


class DataProviderException(ApiTestGenException):
    """Raised when a data provider is registered incorrectly.

    This exception is raised when:
    - A provider name is registered twice
    - A registered object does not implement ``load()``
    """

    pass
