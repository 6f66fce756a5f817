"""URI expression builder.

Turns a path template plus classified path, query and matrix parameters
into a Python string-concatenation expression that looks every value up
in the case's test data at runtime.

Example:
    >>> prepare_uri_expression("/items/{id}", {"id": "int"}, {}, {})
    '"/items/" + safe_string(data.get("id"))'
"""

import re
from typing import Optional

from apitest_gen.core.literals import quote

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")

# Generated expression reading one value from the loaded test data
LOOKUP_TEMPLATE = "safe_string(data.get({key}))"


def data_lookup(key: str) -> str:
    """Return the runtime lookup expression for one data key."""
    return LOOKUP_TEMPLATE.format(key=quote(key))


def _placeholder_name(token: str) -> str:
    # "{id:int}" style converters name the variable before the colon
    return token.split(":", 1)[0].strip()


def _tokenize(template: str) -> list[tuple[str, str]]:
    """Split a path template into ("text", ...) and ("var", name) tokens."""
    tokens: list[tuple[str, str]] = []
    position = 0
    for match in PLACEHOLDER_PATTERN.finditer(template):
        if match.start() > position:
            tokens.append(("text", template[position : match.start()]))
        tokens.append(("var", match.group(0)))
        position = match.end()
    if position < len(template):
        tokens.append(("text", template[position:]))
    return tokens


def _expand_matrix(
    tokens: list[tuple[str, str]], matrix_params: dict[str, dict[str, str]]
) -> list[tuple[str, str]]:
    """Replace placeholders owning matrix entries with ``var;key=<lookup>`` segments."""
    expanded: list[tuple[str, str]] = []
    for kind, text in tokens:
        name = _placeholder_name(text[1:-1]) if kind == "var" else ""
        entries = matrix_params.get(name) if name else None
        if not entries:
            expanded.append((kind, text))
            continue
        expanded.append(("text", name))
        for key in entries:
            expanded.append(("text", f";{key}="))
            expanded.append(("expr", data_lookup(key)))
    return expanded


def _substitute_path_params(
    tokens: list[tuple[str, str]], path_params: dict[str, str]
) -> list[tuple[str, str]]:
    """Replace remaining placeholders naming a path parameter with a data lookup."""
    substituted: list[tuple[str, str]] = []
    for kind, text in tokens:
        if kind == "var":
            name = _placeholder_name(text[1:-1])
            if name in path_params:
                substituted.append(("expr", data_lookup(name)))
                continue
            # Unclassified placeholder stays literal
            kind = "text"
        substituted.append((kind, text))
    return substituted


def _append_query(
    tokens: list[tuple[str, str]], query_params: dict[str, str]
) -> list[tuple[str, str]]:
    for index, key in enumerate(query_params):
        separator = "?" if index == 0 else "&"
        tokens.append(("text", f"{separator}{key}="))
        tokens.append(("expr", data_lookup(key)))
    return tokens


def _render(tokens: list[tuple[str, str]]) -> str:
    """Join tokens into a concatenation, merging literals and dropping empty ones."""
    parts: list[str] = []
    pending_text = ""
    for kind, text in tokens:
        if kind == "text":
            pending_text += text
            continue
        if pending_text:
            parts.append(quote(pending_text))
            pending_text = ""
        parts.append(text)
    if pending_text:
        parts.append(quote(pending_text))
    return " + ".join(parts) if parts else '""'


def prepare_uri_expression(
    path_template: str,
    path_params: Optional[dict[str, str]] = None,
    query_params: Optional[dict[str, str]] = None,
    matrix_params: Optional[dict[str, dict[str, str]]] = None,
) -> str:
    """Build the runtime URI expression for one request.

    Matrix expansion runs before plain path parameter substitution, so a
    path variable with matrix entries is consumed by the expansion.

    Args:
        path_template: Full path template, e.g. ``/api/items/{id}``
        path_params: Path parameter name -> type name
        query_params: Query parameter name -> type name, in declaration order
        matrix_params: Path variable -> {matrix key -> type name}

    Returns:
        Python expression evaluating to the request URI
    """
    tokens = _tokenize(path_template or "")
    tokens = _expand_matrix(tokens, matrix_params or {})
    tokens = _substitute_path_params(tokens, path_params or {})
    tokens = _append_query(tokens, query_params or {})
    return _render(tokens)


def join_paths(base_path: str, path: str) -> str:
    """Join a class-level base path and a method path template.

    Args:
        base_path: Base path from the class routing tag ("" if none)
        path: Method path template ("" if none)

    Returns:
        Combined path with exactly one slash at the seam
    """
    base = (base_path or "").strip()
    tail = (path or "").strip()
    if not base:
        return tail
    if not tail:
        return base
    return base.rstrip("/") + "/" + tail.lstrip("/")
