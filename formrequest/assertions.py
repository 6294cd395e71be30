"""Counting assertion helper shared by the testing helpers.

Every check goes through an ``Assertions`` instance so helpers can report how
many expectations a test actually verified, including vacuous ones.
"""

from typing import Any, Container, NoReturn


class Assertions:
    """Raises ``AssertionError`` on failed checks and counts every check."""

    def __init__(self) -> None:
        self.count = 0

    def record(self) -> None:
        """Count a check that holds trivially."""
        self.count += 1

    def true(self, condition: Any, message: str) -> None:
        __tracebackhide__ = True
        self.count += 1
        if not condition:
            raise AssertionError(message)

    def false(self, condition: Any, message: str) -> None:
        __tracebackhide__ = True
        self.true(not condition, message)

    def contains(self, needle: Any, haystack: Container, message: str) -> None:
        __tracebackhide__ = True
        self.true(needle in haystack, message)

    def not_contains(self, needle: Any, haystack: Container, message: str) -> None:
        __tracebackhide__ = True
        self.true(needle not in haystack, message)

    def fail(self, message: str) -> NoReturn:
        __tracebackhide__ = True
        self.count += 1
        raise AssertionError(message)


__all__ = [
    "Assertions",
]
