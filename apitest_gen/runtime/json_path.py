"""Minimal JSON path evaluation for response body assertions.

Supported syntax: ``$``, ``.key``, ``['key']``, ``["key"]``, ``[0]``,
``[-1]`` and the ``[*]`` / ``.*`` wildcards. A path without a leading
``$`` is treated as relative to the root.
"""

import re
from typing import Any

_TOKEN_PATTERN = re.compile(
    r"""
    \.(?P<key>[^.\[\]]+)            # .key or .*
    | \[(?P<index>-?\d+)\]          # [0]
    | \[(?P<quote>['"])(?P<qkey>.*?)(?P=quote)\]   # ['key']
    | \[(?P<star>\*)\]              # [*]
    """,
    re.VERBOSE,
)

WILDCARD = object()


class JsonPathError(ValueError):
    """Raised when a JSON path expression cannot be parsed."""


def parse(path: str) -> list[Any]:
    """Split a JSON path into keys, indexes and wildcards.

    Raises:
        JsonPathError: If the expression contains unsupported syntax
    """
    expression = path.strip()
    if expression.startswith("$"):
        expression = expression[1:]
    elif expression and not expression.startswith((".", "[")):
        expression = "." + expression

    tokens: list[Any] = []
    position = 0
    while position < len(expression):
        match = _TOKEN_PATTERN.match(expression, position)
        if match is None:
            raise JsonPathError(f"Unsupported JSON path syntax at {position}: {path!r}")
        if match.group("key") is not None:
            key = match.group("key")
            tokens.append(WILDCARD if key == "*" else key)
        elif match.group("index") is not None:
            tokens.append(int(match.group("index")))
        elif match.group("qkey") is not None:
            tokens.append(match.group("qkey"))
        else:
            tokens.append(WILDCARD)
        position = match.end()
    return tokens


def _step(values: list[Any], token: Any) -> list[Any]:
    selected = []
    for value in values:
        if token is WILDCARD:
            if isinstance(value, dict):
                selected.extend(value.values())
            elif isinstance(value, list):
                selected.extend(value)
        elif isinstance(token, int):
            if isinstance(value, list) and -len(value) <= token < len(value):
                selected.append(value[token])
        elif isinstance(value, dict) and token in value:
            selected.append(value[token])
    return selected


def evaluate(document: Any, path: str) -> Any:
    """Select a value from a decoded JSON document.

    Args:
        document: Decoded JSON (dicts, lists, scalars)
        path: JSON path expression

    Returns:
        The selected value; a list when the path holds a wildcard;
        None when nothing matches a definite path

    Example:
        >>> evaluate({"items": [{"id": 1}, {"id": 2}]}, "$.items[*].id")
        [1, 2]
    """
    tokens = parse(path)
    values = [document]
    for token in tokens:
        values = _step(values, token)

    if any(token is WILDCARD for token in tokens):
        return values
    return values[0] if values else None
