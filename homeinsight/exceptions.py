"""Custom exception hierarchy for homeinsight.

Exception Hierarchy:
    HomeInsightError (base)
    ├── ConfigurationError
    ├── ValidationError
    ├── ProviderError
    │   ├── ProviderNotFoundError
    │   ├── ProviderTimeoutError
    │   └── DataNotAvailableError
    ├── AIBackendError
    │   └── AIResponseParseError
    └── RoutingError

Nothing in the question pipeline is fatal: these errors are raised close
to the failing call and converted into degraded results by the fan-out
executor, the validation pass or the API layer.
"""
from __future__ import annotations

from typing import Optional, Dict, Any


class HomeInsightError(Exception):
    """Base exception for all homeinsight errors.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(HomeInsightError):
    """Raised when there's a configuration problem (missing key, bad value)."""
    pass


class ValidationError(HomeInsightError):
    """Raised when request input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code, details)


# Data Provider Errors
class ProviderError(HomeInsightError):
    """Base class for data provider errors.

    Attributes:
        provider: Id of the provider that failed
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.provider = provider
        details = details or {}
        if provider:
            details["provider"] = provider
        super().__init__(message, code, details)


class ProviderNotFoundError(ProviderError):
    """Raised when a provider id has no registered client."""
    pass


class ProviderTimeoutError(ProviderError):
    """Raised when a provider request exceeds its timeout.

    Attributes:
        timeout: The timeout value that was exceeded
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        timeout: Optional[float] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.timeout = timeout
        details = details or {}
        if timeout:
            details["timeout"] = timeout
        super().__init__(message, provider, code, details)


class DataNotAvailableError(ProviderError):
    """Raised when a provider answered but has no data for the property."""
    pass


# AI Backend Errors
class AIBackendError(HomeInsightError):
    """Raised when the AI text-completion backend fails.

    Attributes:
        service: Name of the AI service
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.service = service
        details = details or {}
        if service:
            details["service"] = service
        super().__init__(message, code, details)


class AIResponseParseError(AIBackendError):
    """Raised when the AI backend output cannot be interpreted."""

    def __init__(self, message: str, raw_content: str = "", service: Optional[str] = None):
        self.raw_content = raw_content
        super().__init__(message, service=service)


class RoutingError(HomeInsightError):
    """Raised when a routing plan references an unknown handler or recipe."""
    pass


def is_retryable_error(error: Exception) -> bool:
    """Check if an error is temporary and can be retried."""
    retryable_types = (
        ProviderTimeoutError,
        AIBackendError,
    )
    if isinstance(error, AIResponseParseError):
        return False
    return isinstance(error, retryable_types)


def get_error_response(error: Exception) -> Dict[str, Any]:
    """Convert any exception to an API error response."""
    if isinstance(error, HomeInsightError):
        return error.to_dict()

    return {
        "error": "InternalError",
        "message": str(error),
        "details": {},
    }
