"""Error handling utilities.

This module provides the exception hierarchy for Fetscr. Every error raised to a
caller derives from FetscrError so the HTTP and tool layers can turn it into a
tagged failure with a stable status code.
"""

import http
from typing import Any, TypeVar

# Type variable for self-referential return types
T = TypeVar("T", bound="FetscrError")


class FetscrError(Exception):
    """Base class for all application exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = http.HTTPStatus.INTERNAL_SERVER_ERROR,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize the error with context information.

        Args:
            message: Human-readable error message
            status_code: HTTP status code to use when converting to HTTP responses
            original_error: The original exception that caused this error, if any
            details: Additional structured details about the error
        """
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
        self.details = details or {}
        super().__init__(message)

    @classmethod
    def from_exception(
        cls: type[T], exc: Exception, message: str | None = None, **kwargs
    ) -> T:
        """Create an error instance from another exception.

        Args:
            exc: The exception to wrap
            message: Custom message to use (defaults to str(exc))
            **kwargs: Additional arguments to pass to the constructor

        Returns:
            A new instance of the error class
        """
        return cls(message=message or str(exc), original_error=exc, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dictionary representation."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        return result


# Request errors


class InvalidRequestError(FetscrError):
    """Error raised when a search or plan request is malformed."""

    def __init__(
        self,
        message: str = "Missing query",
        field: str | None = None,
        status_code: int = http.HTTPStatus.BAD_REQUEST,
        **kwargs,
    ):
        """Initialize an invalid request error.

        Args:
            message: Error message
            field: The offending request field
            status_code: HTTP status code (defaults to 400 Bad Request)
            **kwargs: Additional arguments passed to FetscrError
        """
        details = kwargs.pop("details", {})

        if field:
            details["field"] = field

        super().__init__(message, status_code=status_code, details=details, **kwargs)


class AccountNotFoundError(FetscrError):
    """Error raised when the account does not exist."""

    def __init__(
        self,
        account_id: str,
        message: str | None = None,
        status_code: int = http.HTTPStatus.NOT_FOUND,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["account_id"] = account_id
        message = message or "User not found"
        super().__init__(message, status_code=status_code, details=details, **kwargs)


class QuotaExceededError(FetscrError):
    """Error raised when the account has used all of its allowed queries."""

    def __init__(
        self,
        account_id: str,
        allowed_queries: int | None = None,
        queries_used: int | None = None,
        message: str | None = None,
        status_code: int = http.HTTPStatus.FORBIDDEN,
        **kwargs,
    ):
        """Initialize a quota exceeded error.

        Args:
            account_id: Account that hit its limit
            allowed_queries: The plan's query allowance
            queries_used: Queries consumed so far
            message: Error message (defaults to a standard message)
            status_code: HTTP status code (defaults to 403 Forbidden)
            **kwargs: Additional arguments passed to FetscrError
        """
        details = kwargs.pop("details", {})
        details["account_id"] = account_id

        if allowed_queries is not None:
            details["allowed_queries"] = allowed_queries
        if queries_used is not None:
            details["queries_used"] = queries_used

        message = message or "Query limit reached. Please upgrade."

        super().__init__(message, status_code=status_code, details=details, **kwargs)


# Upstream and storage errors


class UpstreamUnavailableError(FetscrError):
    """Error raised by the upstream HTTP layer.

    The page fetcher absorbs it into an empty page; it never reaches a caller.
    """

    def __init__(
        self,
        message: str | None = None,
        reason: str = "transport",
        upstream_status: int | None = None,
        status_code: int = http.HTTPStatus.BAD_GATEWAY,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["reason"] = reason

        if upstream_status is not None:
            details["upstream_status"] = upstream_status

        if message is None:
            message = "Upstream search provider unavailable"
            if upstream_status is not None:
                message += f" (HTTP {upstream_status})"

        self.reason = reason
        super().__init__(message, status_code=status_code, details=details, **kwargs)


class PersistenceError(FetscrError):
    """Error raised when the account store cannot complete an operation."""

    def __init__(
        self,
        operation: str,
        message: str | None = None,
        status_code: int = http.HTTPStatus.INTERNAL_SERVER_ERROR,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["operation"] = operation

        message = message or f"Account store operation '{operation}' failed"

        super().__init__(message, status_code=status_code, details=details, **kwargs)


# Configuration errors


class ConfigurationError(FetscrError):
    """Error raised when there's an issue with the application configuration."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        status_code: int = http.HTTPStatus.INTERNAL_SERVER_ERROR,
        **kwargs,
    ):
        details = kwargs.pop("details", {})

        if config_key:
            details["config_key"] = config_key

        super().__init__(message, status_code=status_code, details=details, **kwargs)


class MissingConfigurationError(ConfigurationError):
    """Error raised when a required configuration value is missing."""

    def __init__(self, config_key: str, message: str | None = None, **kwargs):
        message = message or f"Required configuration '{config_key}' is missing"
        super().__init__(message, config_key, **kwargs)


# Utility functions


def http_error_response(
    error: Exception | str,
    status_code: int = http.HTTPStatus.INTERNAL_SERVER_ERROR,
    **kwargs,
) -> dict[str, Any]:
    """Convert an error to a standardized HTTP error response.

    Args:
        error: The error (either an exception instance or a string message)
        status_code: HTTP status code to use (defaults to 500)
        **kwargs: Additional fields to include in the response

    Returns:
        A dictionary suitable for returning as a JSON error response
    """
    if isinstance(error, FetscrError):
        response = error.to_dict()
        status_code = error.status_code
    elif isinstance(error, Exception):
        response = {
            "error_type": error.__class__.__name__,
            "message": str(error),
        }
    else:
        response = {
            "error_type": "Error",
            "message": str(error),
        }

    response["success"] = False
    response["status_code"] = int(status_code)

    for key, value in kwargs.items():
        if key not in response and value is not None:
            response[key] = value

    return response
