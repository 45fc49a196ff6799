"""
Shared infrastructure for the HadalHub client core.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- repository: Repository base class and backend error translation

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, get_session_storage, reset_client_cache
from .exceptions import (
    HadalHubError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ExternalServiceError,
    TransientNetworkError,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "get_session_storage",
    "reset_client_cache",
    "HadalHubError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ConfigurationError",
    "ExternalServiceError",
    "TransientNetworkError",
]
