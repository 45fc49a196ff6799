"""
Authentication service implementation.

Wraps Supabase Auth sign-in/sign-up with user-facing error mapping and
resolves the learner profile for an authenticated identity.
"""

import logging
from typing import Optional

from shared.exceptions import AuthenticationError, HadalHubError

from modules.session.interfaces import IAuthGateway
from modules.session.models import Session, UserIdentity, UserProfile
from modules.session.service import SessionCache

from .interfaces import IAuthService
from .models import SignUpMetadata
from .exceptions import MissingCredentialsError, map_auth_error

logger = logging.getLogger(__name__)


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    Uses the auth gateway for remote calls and the session cache for
    profile reads and sign-out.
    """

    def __init__(self, gateway: IAuthGateway, cache: SessionCache):
        self._gateway = gateway
        self._cache = cache

    async def sign_in(self, email: str, password: str) -> Session:
        email = email.strip()
        if not email or not password:
            raise MissingCredentialsError()

        logger.info(f"Signing in user: {email}")
        try:
            session = await self._gateway.sign_in(email, password)
        except AuthenticationError as e:
            logger.info(f"Sign in rejected: {e.message}")
            raise map_auth_error(e.message) from e

        logger.info(f"Sign in successful: {email}")
        return session

    async def sign_up(
        self, email: str, password: str, metadata: SignUpMetadata
    ) -> Optional[Session]:
        email = email.strip()
        if not email or not password:
            raise MissingCredentialsError()

        logger.info(f"Signing up user: {email}")
        try:
            session = await self._gateway.sign_up(
                email, password, metadata.to_metadata(email)
            )
        except AuthenticationError as e:
            logger.info(f"Sign up rejected: {e.message}")
            raise map_auth_error(e.message) from e

        # The profile row is created by a database trigger
        logger.info(f"Sign up successful: {email}")
        return session

    async def sign_out(self) -> bool:
        return await self._cache.sign_out()

    async def ensure_user_profile(self, identity: UserIdentity) -> UserProfile:
        """
        Fetch the profile; if absent, create it server-side and re-fetch.

        Falls back to a profile synthesized from the auth email when
        creation or the follow-up fetch fails.
        """
        profile = await self._cache.get_user_profile(identity.id)
        if profile is not None:
            logger.debug(f"Profile loaded: {profile.display_name}")
            return profile

        logger.info(f"Profile not found for {identity.id}, ensuring creation")
        try:
            await self._gateway.ensure_user_profile(
                identity.id, identity.email, identity.user_metadata
            )
        except HadalHubError as e:
            logger.error(f"Profile creation failed: {e.message}")
            return UserProfile.synthesize(identity)

        try:
            profile = await self._gateway.fetch_profile(identity.id)
        except HadalHubError as e:
            logger.error(f"Profile fetch after creation failed: {e.message}")
            return UserProfile.synthesize(identity)

        self._cache.store_profile(profile)
        logger.info(f"Profile created and loaded: {profile.display_name}")
        return profile
