"""Tests for the session cache service."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from modules.session.exceptions import ProfileNotFoundError
from modules.session.models import UserProfile
from modules.session.service import SessionCache
from shared.exceptions import AuthenticationError, TransientNetworkError
from shared.repository import BackendRequestError
from tests.conftest import make_identity, make_profile, make_session


@pytest.fixture
def cache(mock_gateway, settings, clock):
    """Create a SessionCache on the fake clock."""
    return SessionCache(mock_gateway, settings, clock=clock)


async def prime_session(cache, mock_gateway, session):
    """Populate the session slot and forget the priming call."""
    mock_gateway.get_session.return_value = session
    await cache.get_session_sync()
    mock_gateway.get_session.reset_mock()


async def settle():
    """Let spawned tasks run up to their next suspension point."""
    for _ in range(5):
        await asyncio.sleep(0)


class TestGetSessionSync:
    @pytest.mark.asyncio
    async def test_fetches_when_empty(self, cache, mock_gateway, session):
        """Should fetch once when nothing is cached."""
        mock_gateway.get_session.return_value = session

        result = await cache.get_session_sync()

        assert result == session
        mock_gateway.get_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cached_session_served_without_network(self, cache, mock_gateway, clock, session):
        """A 30s old session is returned twice with no fetch."""
        await prime_session(cache, mock_gateway, session)
        clock.advance(30)

        first = await cache.get_session_sync()
        second = await cache.get_session_sync()

        assert first is second
        assert first == session
        assert mock_gateway.get_session.await_count == 0

    @pytest.mark.asyncio
    async def test_refetches_at_window_boundary(self, cache, mock_gateway, clock, session):
        """Exactly one fetch once the max age is reached."""
        clock.advance(400)  # no recent activity
        await prime_session(cache, mock_gateway, session)
        clock.advance(120)

        await cache.get_session_sync()
        await cache.get_session_sync()

        mock_gateway.get_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_activity_extends_ttl(self, cache, mock_gateway, clock, session):
        """Interaction just before 120s keeps the session for 300s."""
        clock.advance(400)
        await prime_session(cache, mock_gateway, session)
        clock.advance(119)
        cache.record_activity()
        clock.advance(2)

        assert cache.session_max_age() == 300
        result = await cache.get_session_sync()

        assert result == session
        assert mock_gateway.get_session.await_count == 0

    @pytest.mark.asyncio
    async def test_idle_user_gets_short_ttl(self, cache, mock_gateway, clock, session):
        """Without recent activity the session expires after 120s."""
        clock.advance(400)
        await prime_session(cache, mock_gateway, session)
        clock.advance(121)

        assert cache.session_max_age() == 120
        await cache.get_session_sync()

        mock_gateway.get_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_returns_stale_session_on_failure(self, cache, mock_gateway, clock, session):
        """A failed fetch returns the last known session."""
        await prime_session(cache, mock_gateway, session)
        clock.advance(1000)
        mock_gateway.get_session.side_effect = TransientNetworkError("offline")

        result = await cache.get_session_sync()

        assert result == session

    @pytest.mark.asyncio
    async def test_returns_none_on_failure_without_cache(self, cache, mock_gateway):
        """Nothing cached and the fetch fails: None, not an exception."""
        mock_gateway.get_session.side_effect = TransientNetworkError("offline")

        assert await cache.get_session_sync() is None


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_cached_for_identity_max_age(self, cache, mock_gateway, clock):
        """Identity is refreshed only after 600s."""
        identity = make_identity()
        mock_gateway.get_user.return_value = identity

        await cache.get_current_user()
        clock.advance(599)
        await cache.get_current_user()
        assert mock_gateway.get_user.await_count == 1

        clock.advance(1)
        await cache.get_current_user()
        assert mock_gateway.get_user.await_count == 2

    @pytest.mark.asyncio
    async def test_stale_identity_on_failure(self, cache, mock_gateway, clock):
        """A failed refresh keeps the previous identity."""
        identity = make_identity()
        mock_gateway.get_user.return_value = identity
        await cache.get_current_user()

        clock.advance(700)
        mock_gateway.get_user.side_effect = TransientNetworkError("offline")

        assert await cache.get_current_user() == identity


class TestGetUserProfile:
    @pytest.mark.asyncio
    async def test_empty_user_id(self, cache, mock_gateway):
        """No user id, no fetch."""
        assert await cache.get_user_profile("") is None
        mock_gateway.fetch_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_cached_profile_for_same_user(self, cache, mock_gateway, clock, test_user_id):
        """Profile is served from cache within 600s."""
        profile = make_profile(test_user_id)
        mock_gateway.fetch_profile.return_value = profile

        await cache.get_user_profile(test_user_id)
        clock.advance(300)
        result = await cache.get_user_profile(test_user_id)

        assert result == profile
        mock_gateway.fetch_profile.assert_awaited_once_with(test_user_id)

    @pytest.mark.asyncio
    async def test_other_user_bypasses_cache(self, cache, mock_gateway, test_user_id):
        """A cached profile for another user is never returned."""
        mock_gateway.fetch_profile.return_value = make_profile(test_user_id)
        await cache.get_user_profile(test_user_id)

        other = make_profile("other-user")
        mock_gateway.fetch_profile.return_value = other

        assert await cache.get_user_profile("other-user") == other
        assert mock_gateway.fetch_profile.await_count == 2

    @pytest.mark.asyncio
    async def test_transient_error_returns_cached_profile(self, cache, mock_gateway, clock, test_user_id):
        """Network failure falls back to the stale profile."""
        profile = make_profile(test_user_id)
        mock_gateway.fetch_profile.return_value = profile
        await cache.get_user_profile(test_user_id)

        clock.advance(700)
        mock_gateway.fetch_profile.side_effect = TransientNetworkError("offline")

        assert await cache.get_user_profile(test_user_id) == profile

    @pytest.mark.asyncio
    async def test_backend_error_returns_none(self, cache, mock_gateway, test_user_id):
        """Non-network backend errors yield None."""
        mock_gateway.fetch_profile.side_effect = BackendRequestError("boom", "500")

        assert await cache.get_user_profile(test_user_id) is None

    @pytest.mark.asyncio
    async def test_missing_row_then_created(self, cache, mock_gateway, test_user_id):
        """Row not found returns None; after creation the new profile is returned."""
        mock_gateway.fetch_profile.side_effect = ProfileNotFoundError(test_user_id)

        assert await cache.get_user_profile(test_user_id) is None

        await mock_gateway.ensure_user_profile(test_user_id, "test@example.com", {})
        created = make_profile(test_user_id)
        mock_gateway.fetch_profile.side_effect = None
        mock_gateway.fetch_profile.return_value = created

        result = await cache.get_user_profile(test_user_id)

        assert result == created
        assert result.id == test_user_id

    def test_store_profile_skips_synthetic(self, cache):
        """Synthesized profiles are never cached."""
        cache.store_profile(UserProfile.synthesize(make_identity()))
        assert cache.get_cache_status().has_profile is False

        cache.store_profile(make_profile())
        assert cache.get_cache_status().has_profile is True


class TestValidateSession:
    @pytest.mark.asyncio
    async def test_fresh_session_returned_and_refreshed_in_background(
        self, cache, mock_gateway, clock, session
    ):
        """A recently confirmed session is returned at once."""
        await prime_session(cache, mock_gateway, session)
        clock.advance(10)

        result = await cache.validate_session()
        assert result == session
        assert mock_gateway.get_session.await_count == 0

        # Let the spawned background refresh run
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert mock_gateway.get_session.await_count == 1

    @pytest.mark.asyncio
    async def test_single_flight(self, cache, mock_gateway, session):
        """Concurrent callers share one backend call."""
        release = asyncio.Event()

        async def slow_get_session():
            await release.wait()
            return session

        mock_gateway.get_session = AsyncMock(side_effect=slow_get_session)

        callers = [asyncio.ensure_future(cache.validate_session()) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*callers)

        assert mock_gateway.get_session.await_count == 1
        assert all(r == session for r in results)

    @pytest.mark.asyncio
    async def test_timeout_returns_stale_session(self, cache, mock_gateway, clock, session):
        """A hung fetch is abandoned and the stale session returned."""
        await prime_session(cache, mock_gateway, session)
        clock.advance(200)

        async def hang():
            await asyncio.sleep(10)

        mock_gateway.get_session = AsyncMock(side_effect=hang)

        result = await cache.validate_session(timeout_ms=10)

        assert result == session
        assert cache.get_cache_status().is_validating is False

    @pytest.mark.asyncio
    async def test_network_error_returns_stale_session(self, cache, mock_gateway, clock, session):
        await prime_session(cache, mock_gateway, session)
        clock.advance(200)
        mock_gateway.get_session.side_effect = TransientNetworkError("offline")

        assert await cache.validate_session() == session

    @pytest.mark.asyncio
    async def test_auth_error_returns_none(self, cache, mock_gateway, clock, session):
        """A rejected session is not served from cache."""
        await prime_session(cache, mock_gateway, session)
        clock.advance(200)
        mock_gateway.get_session.side_effect = AuthenticationError("expired")

        assert await cache.validate_session() is None
        assert cache.get_cache_status().is_validating is False

    @pytest.mark.asyncio
    async def test_stores_fetched_session(self, cache, mock_gateway, session):
        mock_gateway.get_session.return_value = session

        assert await cache.validate_session() == session
        status = cache.get_cache_status()
        assert status.has_session is True
        assert status.cache_age == 0

    @pytest.mark.asyncio
    async def test_clear_during_validation_keeps_single_flight(self, cache, mock_gateway, session):
        """A validation started before a clear should not free the slot of a newer one."""
        gates = []

        async def gated_get_session():
            gate = asyncio.Event()
            gates.append(gate)
            await gate.wait()
            return session

        mock_gateway.get_session = AsyncMock(side_effect=gated_get_session)

        first = asyncio.ensure_future(cache.validate_session())
        await settle()
        cache.clear_cache()
        second = asyncio.ensure_future(cache.validate_session())
        await settle()

        gates[0].set()
        assert await first is None
        assert cache.get_cache_status().is_validating is True

        third = asyncio.ensure_future(cache.validate_session())
        await settle()
        assert mock_gateway.get_session.await_count == 2

        gates[1].set()
        assert await second == session
        assert await third == session


class TestBackgroundValidation:
    @pytest.mark.asyncio
    async def test_keeps_cache_when_no_session(self, cache, mock_gateway, session):
        """A None result does not overwrite the cached session."""
        await prime_session(cache, mock_gateway, session)
        mock_gateway.get_session.return_value = None

        await cache.background_validate_session()

        assert await cache.get_session_sync() == session

    @pytest.mark.asyncio
    async def test_swallows_errors(self, cache, mock_gateway):
        mock_gateway.get_session.side_effect = TransientNetworkError("offline")

        await cache.background_validate_session()

        assert cache.get_cache_status().background_validating is False

    @pytest.mark.asyncio
    async def test_result_discarded_after_clear(self, cache, mock_gateway, session):
        """A refresh that finishes after a clear should not repopulate the cache."""
        release = asyncio.Event()

        async def slow_get_session():
            await release.wait()
            return session

        mock_gateway.get_session = AsyncMock(side_effect=slow_get_session)

        refresh = asyncio.ensure_future(cache.background_validate_session())
        await settle()
        cache.clear_cache()
        release.set()
        await refresh

        assert cache.get_cache_status().has_session is False
        assert cache.get_cache_status().background_validating is False


class TestSignOut:
    @pytest.mark.asyncio
    async def test_clears_everything(self, cache, mock_gateway, session, test_user_id):
        """Sign-out empties every slot."""
        await prime_session(cache, mock_gateway, session)
        mock_gateway.get_user.return_value = make_identity()
        await cache.get_current_user()
        cache.store_profile(make_profile(test_user_id))

        assert await cache.sign_out() is True

        status = cache.get_cache_status()
        assert status.has_session is False
        assert status.has_user is False
        assert status.has_profile is False
        mock_gateway.clear_local_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_clears_even_if_remote_fails(self, cache, mock_gateway, session):
        """A failed remote sign-out still resets the cache."""
        await prime_session(cache, mock_gateway, session)
        mock_gateway.sign_out.side_effect = TransientNetworkError("offline")

        assert await cache.sign_out() is False

        status = cache.get_cache_status()
        assert status.has_session is False
        assert status.cache_age is None
        mock_gateway.clear_local_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_inflight_validation_does_not_restore_session(self, cache, mock_gateway, session):
        """A validation still running at sign-out should not bring the session back."""
        release = asyncio.Event()

        async def slow_get_session():
            await release.wait()
            return session

        mock_gateway.get_session = AsyncMock(side_effect=slow_get_session)

        inflight = asyncio.ensure_future(cache.validate_session())
        await settle()
        assert await cache.sign_out() is True
        assert cache.get_cache_status().has_session is False

        release.set()
        assert await inflight is None
        assert cache.get_cache_status().has_session is False


class TestCacheStatus:
    @pytest.mark.asyncio
    async def test_snapshot(self, cache, mock_gateway, clock, session):
        """Snapshot reports slots, age and activity."""
        await prime_session(cache, mock_gateway, session)
        clock.advance(42)

        status = cache.get_cache_status()

        assert status.has_session is True
        assert status.has_user is False
        assert status.cache_age == 42
        assert status.last_activity == 42
        assert status.is_validating is False
        assert status.background_validating is False
