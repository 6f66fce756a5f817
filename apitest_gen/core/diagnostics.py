"""Diagnostic collection for scanning and generation.

Recoverable problems are collected here instead of raised, so that one
bad tag does not stop generation for the rest of the project. Every
record is also written to the module logger.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"
NOTE = "note"

_LOG_LEVELS = {
    ERROR: logging.ERROR,
    WARNING: logging.WARNING,
    NOTE: logging.INFO,
}


@dataclass
class Diagnostic:
    """Single diagnostic record."""

    level: str  # "error" | "warning" | "note"
    message: str
    location: Optional[str] = None  # file, class or method

    def __str__(self) -> str:
        prefix = f"{self.location}: " if self.location else ""
        return f"{prefix}{self.message}"


class Diagnostics:
    """Thread-safe collector of diagnostics.

    Example:
        >>> diagnostics = Diagnostics()
        >>> diagnostics.warning("Unknown case field 'foo'", location="api.py")
        >>> diagnostics.warnings_count
        1
    """

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []
        self._lock = threading.Lock()

    def report(self, level: str, message: str, location: Optional[str] = None) -> None:
        """Record a diagnostic and log it at the matching level.

        Args:
            level: "error", "warning" or "note"
            message: Human readable description
            location: Optional source location
        """
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown diagnostic level: {level}")
        diagnostic = Diagnostic(level=level, message=message, location=location)
        with self._lock:
            self._items.append(diagnostic)
        logger.log(_LOG_LEVELS[level], str(diagnostic))

    def error(self, message: str, location: Optional[str] = None) -> None:
        self.report(ERROR, message, location)

    def warning(self, message: str, location: Optional[str] = None) -> None:
        self.report(WARNING, message, location)

    def note(self, message: str, location: Optional[str] = None) -> None:
        self.report(NOTE, message, location)

    @property
    def items(self) -> list[Diagnostic]:
        """Snapshot of all diagnostics in report order."""
        with self._lock:
            return list(self._items)

    def _count(self, level: str) -> int:
        return sum(1 for item in self.items if item.level == level)

    @property
    def errors_count(self) -> int:
        """Count error diagnostics."""
        return self._count(ERROR)

    @property
    def warnings_count(self) -> int:
        """Count warning diagnostics."""
        return self._count(WARNING)

    @property
    def has_errors(self) -> bool:
        return self.errors_count > 0
