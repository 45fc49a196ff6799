"""
Client-side session cache.

Provides fast reads of the current session, identity and profile while
bounding how stale they can get, and collapses concurrent foreground
validations into a single backend call. Read operations never raise:
network failures degrade to the last known value.
"""

import asyncio
import logging
import time
from typing import Optional

from shared.config import Settings, get_settings
from shared.exceptions import HadalHubError, TransientNetworkError

from .exceptions import ProfileNotFoundError
from .interfaces import IAuthGateway, ISessionCache
from .models import CacheStatusSnapshot, Session, UserIdentity, UserProfile
from .ttl_cache import CacheEntry, Clock, ValidationGuard

logger = logging.getLogger(__name__)


class SessionCache(ISessionCache):
    """
    TTL cache of the current session, identity and profile.

    One instance exists per running client; it is constructed by the
    service container and passed to whatever needs the current user.
    """

    def __init__(
        self,
        gateway: IAuthGateway,
        settings: Optional[Settings] = None,
        clock: Clock = time.monotonic,
    ):
        self._gateway = gateway
        self._settings = settings or get_settings()
        self._clock = clock
        self._session: CacheEntry[Session] = CacheEntry(clock)
        self._user: CacheEntry[UserIdentity] = CacheEntry(clock)
        self._profile: CacheEntry[UserProfile] = CacheEntry(clock)
        self._guard = ValidationGuard()
        self._last_activity = clock()
        self._background_tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Activity tracking
    # -------------------------------------------------------------------------

    def record_activity(self) -> None:
        """Note a user interaction (click, key press, scroll, pointer move)."""
        self._last_activity = self._clock()

    def seconds_since_activity(self) -> float:
        return self._clock() - self._last_activity

    def seconds_since_check(self) -> Optional[float]:
        return self._session.age()

    def session_max_age(self) -> float:
        """Longer TTL while the user is actively interacting."""
        if self.seconds_since_activity() < self._settings.activity_window:
            return self._settings.session_active_max_age
        return self._settings.session_fresh_max_age

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_session_sync(self) -> Optional[Session]:
        """
        Return the cached session if younger than the activity-aware TTL.

        Otherwise fetch once. On failure the last known session is
        returned when there is one, else None.
        """
        if self._session.is_fresh(self.session_max_age()):
            return self._session.value

        generation = self._guard.generation
        try:
            session = await self._gateway.get_session()
        except HadalHubError as e:
            logger.warning(f"Session sync check failed: {e.message}")
            return self._session.value

        if self._cleared_since(generation):
            return self._session.value
        self._session.store(session)
        return session

    async def get_current_user(self) -> Optional[UserIdentity]:
        """
        Return the cached identity, refreshing it after identity_max_age.

        A failed refresh returns the stale identity rather than None so a
        network blip never looks like a sign-out.
        """
        if self._user.is_fresh(self._settings.identity_max_age):
            return self._user.value

        generation = self._guard.generation
        try:
            user = await self._gateway.get_user()
        except HadalHubError as e:
            logger.warning(f"User fetch failed: {e.message}")
            return self._user.value

        if self._cleared_since(generation):
            return self._user.value
        self._user.store(user)
        return user

    async def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        """
        Return the profile for user_id, refreshing it after profile_max_age.

        A missing row returns the stale cached profile when one exists;
        transport failures do the same. Any other backend error yields None.
        """
        if not user_id:
            return None

        cached = self._profile.value
        if cached is not None and cached.id != user_id:
            cached = None

        if cached is not None and self._profile.is_fresh(self._settings.profile_max_age):
            return cached

        generation = self._guard.generation
        try:
            profile = await self._gateway.fetch_profile(user_id)
        except ProfileNotFoundError:
            if cached is None:
                logger.info(f"No profile row yet for user {user_id}")
            return cached
        except TransientNetworkError as e:
            logger.warning(f"Profile fetch error, using cached profile: {e.message}")
            return cached
        except HadalHubError as e:
            logger.warning(f"Profile fetch failed: {e.message}")
            return None

        if self._cleared_since(generation):
            return None
        self._profile.store(profile)
        return profile

    def store_profile(self, profile: UserProfile) -> None:
        """Cache a profile obtained outside get_user_profile."""
        if profile.is_synthetic:
            return
        self._profile.store(profile)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    async def validate_session(self, timeout_ms: int = 5000) -> Optional[Session]:
        """
        Foreground session validation.

        A session confirmed within session_fresh_max_age is returned at once
        (and refreshed in the background). If another foreground validation
        is running, wait for it (bounded) and return what it cached.
        Otherwise fetch with a timeout, falling back to the stale session on
        timeout or network failure.
        """
        if self._session.is_fresh(self._settings.session_fresh_max_age):
            if not self._guard.background_validating:
                self._spawn_background_validation()
            return self._session.value

        if self._guard.is_validating:
            logger.debug("Session validation already in progress, waiting")
            finished = await self._guard.wait_foreground(
                self._settings.validation_wait_timeout
            )
            if not finished:
                logger.warning("Gave up waiting for in-flight session validation")
            return self._session.value

        token = self._guard.begin_foreground()
        generation = self._guard.generation
        try:
            session = await asyncio.wait_for(
                self._gateway.get_session(), timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            logger.warning(f"Session validation timed out after {timeout_ms}ms")
            return self._session.value
        except TransientNetworkError as e:
            logger.warning(f"Network error, using cached session: {e.message}")
            return self._session.value
        except HadalHubError as e:
            logger.warning(f"Session validation failed: {e.message}")
            return None
        else:
            if self._cleared_since(generation):
                logger.debug("Cache cleared during session validation, discarding result")
                return self._session.value
            self._session.store(session)
            return session
        finally:
            self._guard.end_foreground(token)

    async def background_validate_session(self) -> None:
        """Refresh the session without anyone waiting on the result."""
        token = self._guard.begin_background()
        if token is None:
            return

        generation = self._guard.generation
        try:
            session = await self._gateway.get_session()
            if session is not None and not self._cleared_since(generation):
                self._session.store(session)
                logger.debug("Background session refresh completed")
        except HadalHubError as e:
            logger.warning(f"Background session validation failed: {e.message}")
        finally:
            self._guard.end_background(token)

    def _cleared_since(self, generation: int) -> bool:
        return self._guard.generation != generation

    def _spawn_background_validation(self) -> None:
        task = asyncio.ensure_future(self.background_validate_session())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def sign_out(self) -> bool:
        """
        Sign out remotely and reset the cache whatever the outcome.

        Returns:
            Whether the remote sign-out succeeded.
        """
        succeeded = True
        try:
            await self._gateway.sign_out()
        except HadalHubError as e:
            logger.error(f"Sign out failed: {e.message}")
            succeeded = False

        self.clear_cache()
        try:
            await self._gateway.clear_local_session()
        except HadalHubError as e:
            logger.warning(f"Could not clear persisted session: {e.message}")
        return succeeded

    def clear_cache(self) -> None:
        """Reset every slot and guard to the initial empty state."""
        self._session.clear()
        self._user.clear()
        self._profile.clear()
        self._guard.reset()
        self._last_activity = self._clock()
        logger.info("Session cache cleared")

    def release_guards(self) -> None:
        """Drop in-progress flags without touching cached values."""
        self._guard.release()

    def get_cache_status(self) -> CacheStatusSnapshot:
        """Diagnostic snapshot; has no side effects."""
        return CacheStatusSnapshot(
            has_session=self._session.has_value,
            has_user=self._user.has_value,
            has_profile=self._profile.has_value,
            cache_age=self._session.age(),
            is_validating=self._guard.is_validating,
            background_validating=self._guard.background_validating,
            last_activity=self.seconds_since_activity(),
        )
