"""
Authentication module.

Handles sign-in/sign-up, profile resolution and app start-up auth state.

Public API:
- IAuthService / AuthService: Sign-in, sign-up, sign-out and profile resolution
- AuthReconciler: Start-up and auth event reconciliation
- AppAuthState, AuthStatus, SignUpMetadata: Models
- Auth form exceptions: InvalidCredentialsError, AlreadyRegisteredError, etc.
"""

from .interfaces import IAuthService
from .models import AppAuthState, AuthStatus, SignUpMetadata
from .exceptions import (
    AuthFormError,
    InvalidCredentialsError,
    AlreadyRegisteredError,
    WeakPasswordError,
    InvalidEmailError,
    SignUpDisabledError,
    MissingCredentialsError,
    map_auth_error,
)
from .service import AuthService
from .reconciler import AuthReconciler

__all__ = [
    # Interface
    "IAuthService",
    # Models
    "AppAuthState",
    "AuthStatus",
    "SignUpMetadata",
    # Exceptions
    "AuthFormError",
    "InvalidCredentialsError",
    "AlreadyRegisteredError",
    "WeakPasswordError",
    "InvalidEmailError",
    "SignUpDisabledError",
    "MissingCredentialsError",
    "map_auth_error",
    # Implementation
    "AuthService",
    "AuthReconciler",
]
