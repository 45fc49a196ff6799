"""
Supabase implementation of IAuthGateway.

Maps supabase-py auth and PostgREST responses onto session models and
translates client errors into the HadalHub exception taxonomy.
"""

import asyncio
import logging
from typing import Any, Optional

import jwt
from postgrest.exceptions import APIError
from supabase import AsyncClient
from supabase_auth.errors import AuthError, AuthRetryableError

from shared.database import SessionStorage
from shared.exceptions import AuthenticationError, TransientNetworkError
from shared.repository import BaseRepository, translate_backend_error

from .exceptions import ProfileNotFoundError
from .interfaces import AuthStateHandler, AuthSubscription, IAuthGateway
from .models import AuthEventType, Session, UserIdentity, UserProfile

logger = logging.getLogger(__name__)

PROFILES_TABLE = "users"
NO_ROWS_CODE = "PGRST116"


def _token_expiry(access_token: str) -> Optional[int]:
    """Read the exp claim without verifying the signature."""
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if exp is not None else None


def map_identity(user: Any) -> Optional[UserIdentity]:
    """Convert a supabase_auth User into a UserIdentity."""
    if user is None:
        return None
    return UserIdentity(
        id=str(user.id),
        email=user.email or "",
        user_metadata=dict(user.user_metadata or {}),
    )


def map_session(session: Any) -> Optional[Session]:
    """Convert a supabase_auth Session into a Session."""
    if session is None:
        return None
    expires_at = session.expires_at or _token_expiry(session.access_token)
    return Session(
        access_token=session.access_token,
        refresh_token=session.refresh_token or "",
        expires_at=expires_at,
        user=map_identity(session.user),
    )


def _translate_auth_error(error: Exception) -> Exception:
    if isinstance(error, AuthRetryableError):
        return TransientNetworkError(error.message)
    if isinstance(error, AuthError):
        return AuthenticationError(error.message, code="AUTH_API_ERROR")
    return translate_backend_error(error)


class _Subscription:
    """Wraps the supabase_auth subscription and its pending handler tasks."""

    def __init__(self) -> None:
        self.inner: Any = None
        self.tasks: set[asyncio.Task] = set()

    def unsubscribe(self) -> None:
        if self.inner is not None:
            self.inner.unsubscribe()
            self.inner = None
        for task in self.tasks:
            task.cancel()
        self.tasks.clear()


class SupabaseAuthGateway(BaseRepository[UserProfile], IAuthGateway):
    """
    Auth gateway backed by the Supabase async client.

    Uses Supabase Auth for sessions and the public ``users`` table for
    learner profiles.
    """

    def __init__(self, db: AsyncClient, storage: Optional[SessionStorage] = None):
        super().__init__(db)
        self._storage = storage

    async def get_session(self) -> Optional[Session]:
        try:
            session = await self._db.auth.get_session()
        except Exception as e:
            raise _translate_auth_error(e) from e
        return map_session(session)

    async def get_user(self) -> Optional[UserIdentity]:
        try:
            response = await self._db.auth.get_user()
        except Exception as e:
            raise _translate_auth_error(e) from e
        if response is None:
            return None
        return map_identity(response.user)

    async def sign_in(self, email: str, password: str) -> Session:
        try:
            response = await self._db.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise _translate_auth_error(e) from e
        session = map_session(response.session)
        if session is None:
            raise AuthenticationError("Sign in returned no session", code="NO_SESSION")
        return session

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> Optional[Session]:
        try:
            response = await self._db.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata},
                }
            )
        except Exception as e:
            raise _translate_auth_error(e) from e
        return map_session(response.session)

    async def sign_out(self) -> None:
        try:
            await self._db.auth.sign_out()
        except Exception as e:
            raise _translate_auth_error(e) from e

    def on_auth_state_change(self, handler: AuthStateHandler) -> AuthSubscription:
        subscription = _Subscription()

        def callback(event: Any, session: Any) -> None:
            try:
                event_type = AuthEventType(getattr(event, "value", event))
            except ValueError:
                logger.debug(f"Ignoring unknown auth event: {event}")
                return
            task = asyncio.ensure_future(handler(event_type, map_session(session)))
            subscription.tasks.add(task)
            task.add_done_callback(subscription.tasks.discard)

        subscription.inner = self._db.auth.on_auth_state_change(callback)
        return subscription

    async def fetch_profile(self, user_id: str) -> UserProfile:
        try:
            result = await (
                self._db.table(PROFILES_TABLE)
                .select("*")
                .eq("id", user_id)
                .single()
                .execute()
            )
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                raise ProfileNotFoundError(user_id) from e
            raise translate_backend_error(e) from e
        except Exception as e:
            raise translate_backend_error(e) from e
        if not result.data:
            raise ProfileNotFoundError(user_id)
        return UserProfile.model_validate(result.data)

    async def ensure_user_profile(
        self, user_id: str, email: str, metadata: dict[str, Any]
    ) -> None:
        try:
            await self._db.rpc(
                "ensure_user_profile",
                {
                    "user_id_param": user_id,
                    "user_email_param": email,
                    "metadata": metadata,
                },
            ).execute()
        except Exception as e:
            raise translate_backend_error(e) from e

    async def clear_local_session(self) -> None:
        if self._storage is not None:
            await self._storage.clear()
