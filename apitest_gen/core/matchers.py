"""Matcher catalog for response body path assertions.

Each MatcherKind maps to a fixed PyHamcrest expression template applied
to the declared expected value. The catalog returns the expression text
together with the imports the generated module needs for it.
"""

import builtins
import math
import pydoc
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from apitest_gen.core.literals import quote
from apitest_gen.exceptions import (
    InvalidMatcherValueException,
    MissingCustomMatcherException,
    UnresolvableTypeException,
)

HAMCREST_MODULE = "hamcrest"


class MatcherKind(Enum):
    """Assertion strategy applied to a value selected from a response body."""

    EQUAL_TO = "equal_to"
    HAS_ITEM = "has_item"
    NULL_VALUE = "null_value"
    NOT_NULL_VALUE = "not_null_value"
    NOT = "not"
    INSTANCE_OF = "instance_of"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS_STRING = "contains_string"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    ANY_OF = "any_of"
    CONTAINS = "contains"
    CUSTOM_CLASS = "custom_class"

    @classmethod
    def from_name(cls, name: str) -> Optional["MatcherKind"]:
        """Look up a kind by member name or value, case-insensitive.

        Returns:
            The matching kind, or None when the name is unknown
        """
        key = name.strip()
        for kind in cls:
            if key.upper() == kind.name or key.lower() == kind.value:
                return kind
        return None


@dataclass(frozen=True)
class MatcherExpression:
    """Matcher source text plus the imports it requires.

    Attributes:
        text: Python expression, e.g. ``equal_to("John")``
        imports: Set of (module, name) pairs; name None means ``import module``
    """

    text: str
    imports: frozenset = field(default_factory=frozenset)


def _hamcrest(*names: str) -> frozenset:
    return frozenset((HAMCREST_MODULE, name) for name in names)


def _parse_number(value: str) -> str:
    """Render a numeric matcher value as source, int first then float."""
    raw = value.strip()
    try:
        return repr(int(raw))
    except ValueError:
        pass
    try:
        number = float(raw)
    except ValueError:
        raise InvalidMatcherValueException(
            f"Numeric matcher requires a number, got: {value!r}"
        ) from None
    if not math.isfinite(number):
        raise InvalidMatcherValueException(
            f"Numeric matcher requires a finite number, got: {value!r}"
        )
    return repr(number)


def _split_items(value: str) -> list[str]:
    return [item.strip() for item in value.split(",")]


def _resolve_type(type_name: str) -> tuple[str, frozenset]:
    """Resolve a dotted type name to an expression and its imports.

    Raises:
        UnresolvableTypeException: If the name does not locate a class
    """
    located = pydoc.locate(type_name.strip()) if type_name.strip() else None
    if not isinstance(located, type):
        raise UnresolvableTypeException(f"Cannot resolve type: {type_name!r}")

    module = located.__module__
    qualname = located.__qualname__
    if module == "builtins" and getattr(builtins, qualname, None) is located:
        return qualname, frozenset()

    top_level = qualname.split(".")[0]
    return qualname, frozenset({(module, top_level)})


def _custom_matcher(reference: Optional[str]) -> tuple[str, frozenset]:
    """Build a constructor call for a user supplied matcher class.

    Raises:
        MissingCustomMatcherException: If no reference was declared
    """
    if reference is None or not reference.strip():
        raise MissingCustomMatcherException(
            "CUSTOM_CLASS matcher requires a matcher class reference"
        )
    module, _, name = reference.strip().rpartition(".")
    if not module:
        return f"{name}()", frozenset()
    return f"{name}()", frozenset({(module, name)})


def build_matcher_expression(
    kind: Optional[MatcherKind], value: str = "", custom_matcher: Optional[str] = None
) -> MatcherExpression:
    """Build the matcher expression for one body path assertion.

    Args:
        kind: Matcher kind; None or unknown falls back to ``anything()``
        value: Declared expected value
        custom_matcher: Dotted matcher class reference for CUSTOM_CLASS

    Returns:
        MatcherExpression with expression text and required imports

    Raises:
        InvalidMatcherValueException: Non-numeric value for GREATER_THAN/LESS_THAN
        UnresolvableTypeException: Unknown type name for INSTANCE_OF
        MissingCustomMatcherException: CUSTOM_CLASS without a reference
    """
    value = "" if value is None else str(value)

    if kind is MatcherKind.EQUAL_TO:
        return MatcherExpression(f"equal_to({quote(value)})", _hamcrest("equal_to"))
    if kind is MatcherKind.NOT_NULL_VALUE:
        return MatcherExpression("not_none()", _hamcrest("not_none"))
    if kind is MatcherKind.NULL_VALUE:
        return MatcherExpression("none()", _hamcrest("none"))
    if kind is MatcherKind.CONTAINS_STRING:
        return MatcherExpression(
            f"contains_string({quote(value)})", _hamcrest("contains_string")
        )
    if kind is MatcherKind.STARTS_WITH:
        return MatcherExpression(f"starts_with({quote(value)})", _hamcrest("starts_with"))
    if kind is MatcherKind.ENDS_WITH:
        return MatcherExpression(f"ends_with({quote(value)})", _hamcrest("ends_with"))
    if kind is MatcherKind.GREATER_THAN:
        return MatcherExpression(
            f"greater_than({_parse_number(value)})", _hamcrest("greater_than")
        )
    if kind is MatcherKind.LESS_THAN:
        return MatcherExpression(f"less_than({_parse_number(value)})", _hamcrest("less_than"))
    if kind is MatcherKind.NOT:
        return MatcherExpression(
            f"is_not(equal_to({quote(value)}))", _hamcrest("is_not", "equal_to")
        )
    if kind is MatcherKind.INSTANCE_OF:
        type_expr, imports = _resolve_type(value)
        return MatcherExpression(
            f"instance_of({type_expr})", _hamcrest("instance_of") | imports
        )
    if kind is MatcherKind.ANY_OF:
        items = ", ".join(f"equal_to({quote(item)})" for item in _split_items(value))
        return MatcherExpression(f"any_of({items})", _hamcrest("any_of", "equal_to"))
    if kind is MatcherKind.CONTAINS:
        items = ", ".join(f"equal_to({quote(item)})" for item in _split_items(value))
        return MatcherExpression(
            f"contains_exactly({items})", _hamcrest("contains_exactly", "equal_to")
        )
    if kind is MatcherKind.HAS_ITEM:
        return MatcherExpression(f"has_item({quote(value)})", _hamcrest("has_item"))
    if kind is MatcherKind.CUSTOM_CLASS:
        text, imports = _custom_matcher(custom_matcher)
        return MatcherExpression(text, imports)

    return MatcherExpression("anything()", _hamcrest("anything"))
