"""Test method markers used by generated tests.

Generated method names do not start with ``test``; these decorators
set ``__test__ = True`` so pytest collects them anyway.
"""

from typing import Callable, TypeVar

import pytest

F = TypeVar("F", bound=Callable)


def api_test(func: F) -> F:
    """Mark a method as a single-execution test."""
    func.__test__ = True
    return func


def repeated_test(count: int) -> Callable[[F], F]:
    """Mark a method as a test executed ``count`` times (pytest-repeat)."""

    def decorator(func: F) -> F:
        func = pytest.mark.repeat(count)(func)
        func.__test__ = True
        return func

    return decorator


def display_name(text: str) -> pytest.MarkDecorator:
    """Attach a human readable name, reported as a ``display_name`` user property."""
    return pytest.mark.display_name(text)
