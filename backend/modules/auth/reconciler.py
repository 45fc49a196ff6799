"""
Auth-state reconciliation at application start-up.

Resolves the initial auth state from the session cache, then keeps it in
step with Supabase auth events. The UI is marked authenticated as soon as
a session is known; the profile is resolved afterwards and a failure to
resolve it never revokes the authenticated state.
"""

import logging
from typing import Any, Callable, Optional

from shared.config import Settings, get_settings
from shared.exceptions import HadalHubError

from modules.session.connection import ConnectionMonitor
from modules.session.interfaces import AuthSubscription, IAuthGateway
from modules.session.models import AuthEventType, Session, UserIdentity, UserProfile
from modules.session.service import SessionCache

from .interfaces import IAuthService
from .models import AppAuthState, AuthStatus

logger = logging.getLogger(__name__)

StateListener = Callable[[AppAuthState], None]

OFFLINE_MESSAGE = "No internet connection"
INIT_FAILED_MESSAGE = "Failed to initialize authentication"
EVENT_FAILED_MESSAGE = "Authentication error occurred"


class AuthReconciler:
    """
    Owns the application's auth state.

    State machine: loading -> {authenticated, unauthenticated, error}.
    Moves between authenticated and unauthenticated happen only on
    sign-in/sign-out events or a fresh initialize().
    """

    def __init__(
        self,
        cache: SessionCache,
        auth: IAuthService,
        gateway: IAuthGateway,
        connection: ConnectionMonitor,
        settings: Optional[Settings] = None,
        on_state_change: Optional[StateListener] = None,
    ):
        self._cache = cache
        self._auth = auth
        self._gateway = gateway
        self._connection = connection
        self._settings = settings or get_settings()
        self._on_state_change = on_state_change
        self._state = AppAuthState()
        self._initializing = False
        self._mounted = False
        self._subscription: Optional[AuthSubscription] = None

    @property
    def state(self) -> AppAuthState:
        return self._state

    @property
    def listening(self) -> bool:
        return self._subscription is not None

    def _update(self, **changes: Any) -> None:
        self._state = self._state.model_copy(update=changes)
        if self._on_state_change is not None:
            self._on_state_change(self._state)

    # -------------------------------------------------------------------------
    # Start-up
    # -------------------------------------------------------------------------

    async def initialize(self) -> AppAuthState:
        """
        Resolve the initial auth state and start listening for changes.

        Re-entrant calls while a previous initialize() is running are
        skipped.
        """
        if self._initializing:
            logger.debug("Auth initialization already in progress, skipping")
            return self._state

        self._initializing = True
        self._mounted = True
        try:
            logger.info("Initializing authentication")
            health = await self._connection.check()
            if not health.is_online:
                logger.warning("App starting offline")
                self._update(status=AuthStatus.ERROR, error=OFFLINE_MESSAGE)
                return self._state

            session = await self._cache.validate_session(
                self._settings.startup_validation_timeout_ms
            )
            if session is not None and session.user is not None:
                logger.info(f"Valid session found: {session.user.email}")
                await self._grant(session.user)
            else:
                logger.info("No valid session found")
                self._update(
                    status=AuthStatus.UNAUTHENTICATED,
                    is_authenticated=False,
                    profile=None,
                    error="",
                )

            self._register_listener()
        except Exception as e:
            logger.error(f"Auth initialization failed: {e}")
            await self._recover()
        finally:
            self._initializing = False

        return self._state

    async def _recover(self) -> None:
        """Second chance from the cached session before showing an error."""
        logger.info("Attempting auth recovery")
        try:
            session = await self._cache.get_session_sync()
        except Exception as e:
            logger.error(f"Auth recovery failed: {e}")
            session = None

        if session is not None and session.user is not None:
            logger.info("Recovered from cached session")
            self._update(
                status=AuthStatus.AUTHENTICATED,
                is_authenticated=True,
                profile=UserProfile.synthesize(session.user),
                error="",
            )
        else:
            self._update(status=AuthStatus.ERROR, error=INIT_FAILED_MESSAGE)

    async def _grant(self, identity: UserIdentity) -> None:
        """Mark authenticated now, then resolve the profile."""
        self._update(status=AuthStatus.AUTHENTICATED, is_authenticated=True, error="")

        try:
            profile = await self._auth.ensure_user_profile(identity)
        except Exception as e:
            logger.warning(f"Profile loading failed, but user is authenticated: {e}")
            profile = UserProfile.synthesize(identity)

        if self._mounted:
            self._update(profile=profile, error="")

    # -------------------------------------------------------------------------
    # Auth events
    # -------------------------------------------------------------------------

    def _register_listener(self) -> None:
        if self._mounted and self._subscription is None:
            self._subscription = self._gateway.on_auth_state_change(
                self.handle_auth_event
            )

    async def handle_auth_event(
        self, event: AuthEventType, session: Optional[Session]
    ) -> None:
        """Apply one auth state change event."""
        if not self._mounted:
            return

        logger.info(f"Auth state changed: {event.value}")
        # Replayed on subscribe; reconciling it again would loop
        if event == AuthEventType.INITIAL_SESSION:
            return

        try:
            if event == AuthEventType.SIGNED_OUT or session is None:
                self._update(
                    status=AuthStatus.UNAUTHENTICATED,
                    is_authenticated=False,
                    profile=None,
                    error="",
                )
                self._cache.clear_cache()
            elif event == AuthEventType.SIGNED_IN and session.user is not None:
                logger.info(f"User signed in: {session.user.email}")
                await self._grant(session.user)
            elif event == AuthEventType.TOKEN_REFRESHED:
                logger.debug("Token refreshed")
        except HadalHubError as e:
            logger.error(f"Auth state change error: {e.message}")
            if self._mounted:
                self._update(error=EVENT_FAILED_MESSAGE)

    # -------------------------------------------------------------------------
    # Teardown and recovery tooling
    # -------------------------------------------------------------------------

    def teardown(self) -> None:
        """Stop listening for auth events and clear guard flags."""
        self._mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._initializing = False

    async def clear_auth_state(self) -> None:
        """Reset everything auth-related, for recovering from stuck states."""
        logger.info("Clearing all authentication state")
        self.teardown()
        self._cache.clear_cache()
        await self._gateway.clear_local_session()
        self._update(
            status=AuthStatus.UNAUTHENTICATED,
            is_authenticated=False,
            profile=None,
            error="",
        )
