"""Tests for the service container."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from app.container import ServiceContainer, get_container, reset_container
from modules.groups.controller import GroupLifecycleController
from modules.groups.realtime import GroupRealtimeSubscription
from modules.session.models import EnglishLevel
from modules.session.service import SessionCache
from tests.conftest import make_profile


@pytest.fixture
def container(settings):
    return ServiceContainer(settings)


class TestServiceContainer:
    def test_requires_start(self, container):
        with pytest.raises(RuntimeError, match="start"):
            container.gateway

    @pytest.mark.asyncio
    @patch("app.container.get_supabase_client", new_callable=AsyncMock)
    async def test_single_session_cache(self, mock_client, container):
        """Every consumer shares one SessionCache."""
        mock_client.return_value = MagicMock()
        await container.start()

        cache = container.session_cache

        assert isinstance(cache, SessionCache)
        assert container.auth._cache is cache
        assert container.reconciler._cache is cache
        assert container.maintenance._cache is cache
        assert container.session_cache is cache

    @pytest.mark.asyncio
    @patch("app.container.get_supabase_client", new_callable=AsyncMock)
    async def test_group_controller_for_admin(self, mock_client, container):
        mock_client.return_value = MagicMock()
        await container.start()
        container._admin = MagicMock(is_admin=AsyncMock(return_value=True))

        controller = await container.group_controller(
            make_profile(english_level=EnglishLevel.ADVANCED, groups_created_today=1)
        )

        assert isinstance(controller, GroupLifecycleController)
        assert controller.viewer.is_admin is True
        assert controller.viewer.level == EnglishLevel.ADVANCED
        assert controller.viewer.can_create_group is False

    @pytest.mark.asyncio
    @patch("app.container.get_supabase_client", new_callable=AsyncMock)
    async def test_group_subscription_uses_settings(self, mock_client, settings):
        mock_client.return_value = MagicMock()
        settings = settings.model_copy(update={"realtime_max_retries": 3})
        container = ServiceContainer(settings)
        await container.start()
        controller = MagicMock()

        subscription = container.group_subscription(controller)

        assert isinstance(subscription, GroupRealtimeSubscription)
        assert subscription._policy.max_retries == 3
        assert subscription._on_event is controller.handle_change_event

    @pytest.mark.asyncio
    @patch("app.container.get_supabase_client", new_callable=AsyncMock)
    async def test_reset(self, mock_client, container):
        mock_client.return_value = MagicMock()
        await container.start()
        cache = container.session_cache

        container.reset()

        with pytest.raises(RuntimeError):
            container.session_cache
        await container.start()
        assert container.session_cache is not cache


class TestGetContainer:
    def test_singleton(self):
        reset_container()
        try:
            assert get_container() is get_container()
        finally:
            reset_container()
