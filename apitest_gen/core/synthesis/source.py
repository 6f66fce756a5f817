"""Source text builders used by the synthesis engine."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

INDENT = "    "


class ImportSet:
    """Imports needed by generated code, rendered sorted and merged.

    Entries are (module, name) pairs; a None name stands for ``import module``.
    """

    def __init__(self, entries: Optional[Iterable[tuple[str, Optional[str]]]] = None) -> None:
        self._entries: set[tuple[str, Optional[str]]] = set(entries or ())

    def add(self, module: str, name: Optional[str] = None) -> None:
        self._entries.add((module, name))

    def update(self, entries: Iterable[tuple[str, Optional[str]]]) -> None:
        for module, name in entries:
            self.add(module, name)

    def merge(self, other: "ImportSet") -> None:
        self._entries |= other._entries

    def __contains__(self, entry: tuple[str, Optional[str]]) -> bool:
        return entry in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def render(self) -> list[str]:
        """Render ``import x`` lines first, then one ``from x import ...`` per module."""
        plain = sorted(module for module, name in self._entries if name is None)
        grouped: dict[str, set[str]] = {}
        for module, name in self._entries:
            if name is not None:
                grouped.setdefault(module, set()).add(name)

        lines = [f"import {module}" for module in plain]
        for module in sorted(grouped):
            names = ", ".join(sorted(grouped[module]))
            lines.append(f"from {module} import {names}")
        return lines


@dataclass
class FluentStatement:
    """One chained call expression, rendered one call per line.

    Example:
        >>> chain = FluentStatement("self.web_test_client")
        >>> chain.call("get()")
        >>> chain.call("exchange()")
        >>> print(chain.render(2))
                (
                    self.web_test_client
                    .get()
                    .exchange()
                )
    """

    target: str
    calls: list[str] = field(default_factory=list)

    def call(self, text: str) -> None:
        """Append a call; ``text`` may hold several chained calls."""
        self.calls.append(text)

    def render(self, level: int) -> str:
        outer = INDENT * level
        inner = INDENT * (level + 1)
        lines = [f"{outer}(", f"{inner}{self.target}"]
        lines.extend(f"{inner}.{call}" for call in self.calls)
        lines.append(f"{outer})")
        return "\n".join(lines)


@dataclass
class MethodBuilder:
    """Accumulates the decorators and body statements of one test method.

    A client context, when set, is opened with ``with ... as client:``
    after the statements and encloses the fluent chain, so the dedicated
    client is closed when the method returns.
    """

    name: str
    decorators: list[str] = field(default_factory=list)
    statements: list[str] = field(default_factory=list)
    client_context: Optional[str] = None

    def decorate(self, text: str) -> None:
        self.decorators.append(text)

    def add_statement(self, text: str) -> None:
        self.statements.append(text)

    def open_client(self, expression: str) -> None:
        self.client_context = expression

    def render(self, level: int, chain: Optional[FluentStatement] = None) -> str:
        """Render the method at ``level`` indentation, ending with ``chain``."""
        outer = INDENT * level
        inner = INDENT * (level + 1)
        lines = [f"{outer}@{decorator}" for decorator in self.decorators]
        lines.append(f"{outer}def {self.name}(self):")
        lines.extend(f"{inner}{statement}" for statement in self.statements)
        chain_level = level + 1
        if self.client_context is not None:
            lines.append(f"{inner}with {self.client_context} as client:")
            chain_level += 1
        if chain is not None:
            lines.append(chain.render(chain_level))
        elif self.client_context is not None:
            lines.append(f"{INDENT * chain_level}pass")
        if not self.statements and chain is None and self.client_context is None:
            lines.append(f"{inner}pass")
        return "\n".join(lines)
