"""
Custom exception classes with context for grepfix.

All exceptions inherit from GrepfixError and support attaching
contextual information for logging and API error responses.
"""

from __future__ import annotations


class GrepfixError(Exception):
    """
    Base exception for grepfix.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary with additional context for logging/debugging
    """

    def __init__(self, message: str, context: dict[str, object] | None = None):
        super().__init__(message)
        self.context = context or {}


class ValidationError(GrepfixError):
    """
    Input validation failed.

    Raised before any side effect when user input cannot be acted on.

    Example:
        raise ValidationError(
            "Unknown result list",
            context={"field": "mode", "value": "buffers"}
        )
    """


class InvalidExpressionError(ValidationError):
    """
    Substitution expression is not of the form /pattern/replacement/flags.

    Example:
        raise InvalidExpressionError(
            "Invalid substitution expression",
            context={"expression": "/foo/bar", "reason": "missing_delimiter"}
        )
    """


class NoFilesError(ValidationError):
    """
    The result list references no files.

    Raised by file set derivation when only tombstones (or nothing) remain.
    """


class InvalidRangeError(ValidationError):
    """
    Deletion range lies outside the result list.

    Example:
        raise InvalidRangeError(
            "Range out of bounds",
            context={"first": 3, "last": 9, "length": 4}
        )
    """


class SearchError(GrepfixError):
    """
    The search program could not be run.

    Raised when the program is missing from PATH or exceeds its timeout.
    A program that runs and exits non-zero is not an error.
    """


class ConfigurationError(GrepfixError):
    """
    Configuration error.

    Raised when configuration loading, validation, or parsing fails.

    Example:
        raise ConfigurationError(
            "Unknown match record format specifier",
            context={"format": "%f:%q", "specifier": "%q"}
        )
    """


class PersistenceError(GrepfixError):
    """
    A file could not be written back during a substitution pass.

    Collected per file and reported; never rolls back files already written.
    """
