"""Package-specific exception types."""

from __future__ import annotations


class QueryError(ValueError):
    """Base class for query-related errors.

    Represents errors a caller can act on while building a query. Missing
    matches, empty documents and malformed selector characters are never
    errors.
    """


class PatternError(QueryError):
    """Raised when a regex text matcher does not compile.

    Args:
        pattern: Regular expression source as written in the selector.
        reason: Message reported by the `re` module.
    """

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return f"Invalid regular expression /{self.pattern}/: {self.reason}"
