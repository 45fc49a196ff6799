"""
Authentication module interface.

Other modules should depend on IAuthService, not the concrete implementation.
This enables testing with mocks.
"""

from typing import Protocol, Optional, runtime_checkable

from modules.session.models import Session, UserIdentity, UserProfile

from .models import SignUpMetadata


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    This protocol defines the contract that the auth module exposes
    to other modules. Implementations must provide all these methods.
    """

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Raises:
            AuthFormError: With a user-facing message on rejection
        """
        ...

    async def sign_up(
        self, email: str, password: str, metadata: SignUpMetadata
    ) -> Optional[Session]:
        """
        Create an account. The profile row is created server-side.

        Raises:
            AuthFormError: With a user-facing message on rejection
        """
        ...

    async def sign_out(self) -> bool:
        """Sign out; returns whether the remote call succeeded."""
        ...

    async def ensure_user_profile(self, identity: UserIdentity) -> UserProfile:
        """
        Resolve the user's profile, creating it if absent.

        Never raises: falls back to a synthesized profile.
        """
        ...
