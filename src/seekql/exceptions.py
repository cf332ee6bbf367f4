"""Custom exceptions for SeekQL.

This module defines all custom exceptions used throughout the library for
consistent error handling and clear error messaging. Compilation errors are
always caller-input errors: they are raised immediately and never retried.
"""

from typing import Any, Dict


# Base exception
class SeekQLError(Exception):
    """Base exception for all SeekQL errors.

    Attributes:
        message: Error message
        details: Additional error context as key-value pairs
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        """Initialize exception with message and additional details.

        Args:
            message: Human-readable error message
            **kwargs: Additional context (e.g., key, operator, collection_name)
        """
        self.message = message
        self.details: Dict[str, Any] = kwargs
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the complete error message with details."""
        if not self.details:
            return self.message

        details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        if self.message:
            return f"{self.message} ({details_str})"
        return details_str

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# Validation exceptions
class ValidationError(SeekQLError):
    """Raised when caller input fails validation.

    Example:
        >>> raise ValidationError("Invalid input", field="limit", value=-1)
    """


class InvalidFilter(ValidationError):
    """Raised when a filter expression cannot be parsed or compiled.

    Covers unsupported operators, empty ``$in`` lists, bad field names and
    malformed nesting.

    Example:
        >>> raise InvalidFilter("Unsupported operator", key="age", operator="$between")
    """


class InvalidParameter(ValidationError):
    """Raised when request parameters are missing or malformed.

    Example:
        >>> raise InvalidParameter("knn requires query_vector or query_texts", section="knn")
    """


# Capability exceptions
class UnsupportedInTarget(SeekQLError):
    """Raised when a valid filter uses a feature the compilation target lacks.

    Kept apart from ``InvalidFilter`` so callers can detect capability gaps.

    Example:
        >>> raise UnsupportedInTarget("$regex is unsupported in hybrid search", operator="$regex", target="search")
    """


# Configuration exceptions
class ConfigurationError(SeekQLError):
    """Raised when configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError("Invalid configuration", setting="VECTOR_METRIC", value="hamming")
    """


class MissingConfigError(ConfigurationError):
    """Raised when required configuration values are not set.

    Example:
        >>> raise MissingConfigError("Configuration not set", config_key="OPENAI_API_KEY")
    """


class EmbeddingFunctionRequired(ConfigurationError):
    """Raised when texts must be embedded but no embedding adapter is configured.

    Example:
        >>> raise EmbeddingFunctionRequired("Embedding adapter required", section="knn")
    """


# Search exceptions
class SearchError(SeekQLError):
    """Raised when a search collaborator fails (e.g. embedding generation).

    Example:
        >>> raise SearchError("Embedding generation failed", model="text-embedding-3-small")
    """
