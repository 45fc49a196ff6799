"""
Session module interfaces.

The cache depends on IAuthGateway, not on the Supabase client directly.
This keeps every backend call mockable in tests.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from .models import AuthEventType, CacheStatusSnapshot, Session, UserIdentity, UserProfile

AuthStateHandler = Callable[[AuthEventType, Optional[Session]], Awaitable[None]]


@runtime_checkable
class AuthSubscription(Protocol):
    """Handle returned when registering for auth state changes."""

    def unsubscribe(self) -> None: ...


@runtime_checkable
class IAuthGateway(Protocol):
    """
    Remote auth and profile operations.

    Implementations raise TransientNetworkError for timeouts and transport
    failures, ProfileNotFoundError for a missing profile row and
    AuthenticationError / BackendRequestError for backend-reported errors.
    """

    async def get_session(self) -> Optional[Session]:
        """Return the current session, or None when signed out."""
        ...

    async def get_user(self) -> Optional[UserIdentity]:
        """Return the identity for the current session."""
        ...

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password."""
        ...

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> Optional[Session]:
        """
        Register a new account.

        Returns None when the backend requires email confirmation before
        issuing a session.
        """
        ...

    async def sign_out(self) -> None:
        """Revoke the current session remotely."""
        ...

    def on_auth_state_change(self, handler: AuthStateHandler) -> AuthSubscription:
        """Register handler for auth state change events."""
        ...

    async def fetch_profile(self, user_id: str) -> UserProfile:
        """Fetch the profile row for user_id."""
        ...

    async def ensure_user_profile(
        self, user_id: str, email: str, metadata: dict[str, Any]
    ) -> None:
        """Create the profile row server-side if it does not exist."""
        ...

    async def clear_local_session(self) -> None:
        """Forget any locally persisted session tokens."""
        ...


@runtime_checkable
class ISessionCache(Protocol):
    """Interface for the client-side session cache."""

    async def get_session_sync(self) -> Optional[Session]: ...

    async def get_current_user(self) -> Optional[UserIdentity]: ...

    async def get_user_profile(self, user_id: str) -> Optional[UserProfile]: ...

    async def validate_session(self, timeout_ms: int) -> Optional[Session]: ...

    async def background_validate_session(self) -> None: ...

    async def sign_out(self) -> bool: ...

    def clear_cache(self) -> None: ...

    def record_activity(self) -> None: ...

    def get_cache_status(self) -> CacheStatusSnapshot: ...
