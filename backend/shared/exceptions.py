"""
Base exception classes for the HadalHub client core.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application.
"""

from typing import Optional, Any


class HadalHubError(Exception):
    """
    Base exception for all HadalHub errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for display or logging."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(HadalHubError):
    """Resource not found."""

    pass


class ValidationError(HadalHubError):
    """Input validation failed."""

    pass


class AuthenticationError(HadalHubError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(HadalHubError):
    """Authorization failed (insufficient permissions)."""

    pass


class ConfigurationError(HadalHubError):
    """Required configuration is missing or invalid."""

    pass


class ExternalServiceError(HadalHubError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class TransientNetworkError(ExternalServiceError):
    """
    Timeout, abort or transport failure talking to the backend.

    Callers holding a cached value should fall back to it instead of
    surfacing this error.
    """

    def __init__(self, message: str, service: str = "supabase"):
        super().__init__(message, service, code="NETWORK_ERROR")
