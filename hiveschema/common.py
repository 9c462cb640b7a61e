"""
Common exception types for hiveschema.
"""

from typing import Optional


class HiveSchemaError(Exception):
    """
    Base exception for schema inference and rendering failures.

    Attributes:
        message: Human-readable error description
        context: Optional context about where the error occurred
        cause: Optional underlying exception that caused this error
    """

    def __init__(self, message: str, context: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        self.message = message
        self.context = context
        self.cause = cause
        full_message = message
        if context:
            full_message = f"{message} (context: {context})"
        super().__init__(full_message)


class NumericRangeError(HiveSchemaError):
    """
    Raised when an integral literal does not fit a 64-bit signed integer.

    Attributes:
        value: The offending integral value
    """

    def __init__(self, value: int, context: Optional[str] = None) -> None:
        self.value = value
        super().__init__(f"Integer literal {value} is outside the 64-bit signed range", context)


class TableShapeError(HiveSchemaError):
    """Raised when a table declaration is requested for a non-struct schema."""


class InputFormatError(HiveSchemaError):
    """Raised when an input file does not contain well-formed JSON."""
