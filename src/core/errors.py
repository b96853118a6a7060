"""
Error taxonomy for the data API.

Client errors (bad target, bad column, bad value) carry a message that is
safe to return to the caller.  Infrastructure errors never leak their detail
outside the server log.
"""
from __future__ import annotations


class DataApiError(Exception):
    """Base class for every error raised by the query engine."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        return self.message


class InvalidTargetError(DataApiError):
    """Schema/table is not allow-listed or does not exist."""


class InvalidFilterColumnError(DataApiError):
    """A filter, date or sort column is unknown for the target table."""

    def __init__(self, message: str, column: str | None = None):
        super().__init__(message)
        self.column = column


class ColumnNotFoundError(InvalidFilterColumnError):
    """Raised by the catalog when asked for the type of a missing column."""


class InvalidValueError(DataApiError):
    """A raw value could not be coerced to its column's declared type."""

    def __init__(self, value: object, expected_type: str):
        super().__init__(f"Invalid format for value: {value} expected type: {expected_type}")
        self.value = value
        self.expected_type = expected_type


class InfrastructureError(DataApiError):
    """Metadata lookup or query execution failed for reasons unrelated to the caller."""

    status_code = 500

    @property
    def public_message(self) -> str:
        return "Internal Server Error"
