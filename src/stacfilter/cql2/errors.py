"""Errors for CQL2 parsing, serialization and transforms."""

from __future__ import annotations


class FilterError(Exception):
    """Base exception for filter expression failures."""


class FilterParseError(FilterError):
    """Raised when filter input in either encoding cannot be parsed."""


class FilterLexError(FilterParseError):
    """Raised when CQL2 text contains a character that starts no token."""

    def __init__(self, message: str, character: str, line: int, column: int) -> None:
        super().__init__(message)
        self.character = character
        self.line = line
        self.column = column


class FilterSyntaxError(FilterParseError):
    """Raised when CQL2 text tokens do not match the grammar."""

    def __init__(
        self,
        message: str,
        token: str | None,
        line: int,
        column: int,
        expected: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message)
        self.token = token
        self.line = line
        self.column = column
        self.expected = expected


class FilterSemanticError(FilterParseError):
    """Raised when a CQL2 JSON document has an invalid operator or operand."""

    def __init__(
        self,
        message: str,
        operator: str | None = None,
        expected: str | None = None,
        actual: int | None = None,
    ) -> None:
        super().__init__(message)
        self.operator = operator
        self.expected = expected
        self.actual = actual


class FilterSerializationError(FilterError):
    """Raised when an expression cannot be rendered."""


class UnsupportedOperatorError(FilterError):
    """Raised when a dialect cannot express an expression node."""

    def __init__(self, operator: str, dialect: str) -> None:
        super().__init__(f"Unsupported operator for dialect {dialect}: {operator}")
        self.operator = operator
        self.dialect = dialect


class FilterPolicyError(FilterError):
    """Raised when a transform meets an expression shape it does not allow."""

    def __init__(self, message: str, operator: str) -> None:
        super().__init__(message)
        self.operator = operator
