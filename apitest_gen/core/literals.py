"""Helpers for writing Python literals into generated source."""

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def _escape(ch: str) -> str:
    if ch in _ESCAPES:
        return _ESCAPES[ch]
    if ord(ch) < 0x20 or ord(ch) == 0x7F:
        return f"\\x{ord(ch):02x}"
    return ch


def quote(text: str) -> str:
    """Return ``text`` as a double-quoted Python string literal.

    Args:
        text: Raw string value

    Returns:
        Source text of a string literal evaluating to ``text``
    """
    return '"' + "".join(_escape(ch) for ch in str(text)) + '"'
