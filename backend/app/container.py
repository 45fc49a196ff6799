"""
Dependency injection setup.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations around the single
Supabase client.
"""

from typing import TYPE_CHECKING, Optional

from shared.config import Settings, get_settings
from shared.database import get_session_storage, get_supabase_client

# Type checking imports (avoids importing supabase-backed modules eagerly)
if TYPE_CHECKING:
    from supabase import AsyncClient

    from modules.admin.service import AdminService
    from modules.auth.reconciler import AuthReconciler
    from modules.auth.service import AuthService
    from modules.groups.controller import GroupLifecycleController
    from modules.groups.realtime import GroupRealtimeSubscription
    from modules.groups.repository import GroupRepository
    from modules.session.connection import ConnectionMonitor
    from modules.session.gateway import SupabaseAuthGateway
    from modules.session.maintenance import SessionMaintenance
    from modules.session.models import UserProfile
    from modules.session.service import SessionCache


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached, so there is
    exactly one SessionCache per container. Call start() before touching
    anything that needs the Supabase client; use reset() in tests.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db: "AsyncClient | None" = None
        self._gateway: "SupabaseAuthGateway | None" = None
        self._session_cache: "SessionCache | None" = None
        self._auth: "AuthService | None" = None
        self._connection: "ConnectionMonitor | None" = None
        self._maintenance: "SessionMaintenance | None" = None
        self._reconciler: "AuthReconciler | None" = None
        self._group_repository: "GroupRepository | None" = None
        self._admin: "AdminService | None" = None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def start(self) -> None:
        """Create the Supabase client (fails fast on missing config)."""
        if self._db is None:
            self._db = await get_supabase_client()

    @property
    def db(self) -> "AsyncClient":
        if self._db is None:
            raise RuntimeError("ServiceContainer.start() must be awaited first")
        return self._db

    @property
    def gateway(self) -> "SupabaseAuthGateway":
        """Get the auth gateway instance."""
        if self._gateway is None:
            from modules.session.gateway import SupabaseAuthGateway
            self._gateway = SupabaseAuthGateway(self.db, get_session_storage())
        return self._gateway

    @property
    def session_cache(self) -> "SessionCache":
        """Get the session cache instance."""
        if self._session_cache is None:
            from modules.session.service import SessionCache
            self._session_cache = SessionCache(self.gateway, self._settings)
        return self._session_cache

    @property
    def auth(self) -> "AuthService":
        """Get the auth service instance."""
        if self._auth is None:
            from modules.auth.service import AuthService
            self._auth = AuthService(self.gateway, self.session_cache)
        return self._auth

    @property
    def connection(self) -> "ConnectionMonitor":
        """Get the connection monitor instance."""
        if self._connection is None:
            from modules.session.connection import ConnectionMonitor
            self._connection = ConnectionMonitor(self._settings)
        return self._connection

    @property
    def maintenance(self) -> "SessionMaintenance":
        """Get the session maintenance instance."""
        if self._maintenance is None:
            from modules.session.maintenance import SessionMaintenance
            self._maintenance = SessionMaintenance(
                self.session_cache, self.connection, self._settings
            )
        return self._maintenance

    @property
    def reconciler(self) -> "AuthReconciler":
        """Get the auth reconciler instance."""
        if self._reconciler is None:
            from modules.auth.reconciler import AuthReconciler
            self._reconciler = AuthReconciler(
                self.session_cache,
                self.auth,
                self.gateway,
                self.connection,
                self._settings,
            )
        return self._reconciler

    @property
    def group_repository(self) -> "GroupRepository":
        """Get the group repository instance."""
        if self._group_repository is None:
            from modules.groups.repository import GroupRepository
            self._group_repository = GroupRepository(self.db)
        return self._group_repository

    @property
    def admin(self) -> "AdminService":
        """Get the admin service instance."""
        if self._admin is None:
            from modules.admin.service import AdminService
            self._admin = AdminService(self.db)
        return self._admin

    async def group_controller(self, profile: "UserProfile") -> "GroupLifecycleController":
        """Build a lifecycle controller for the signed-in learner."""
        from modules.groups.controller import GroupLifecycleController
        from modules.groups.models import GroupViewer

        viewer = GroupViewer(
            user_id=profile.id,
            level=profile.english_level,
            is_admin=await self.admin.is_admin(profile.id),
            groups_created_today=profile.groups_created_today,
        )
        return GroupLifecycleController(self.group_repository, viewer, self._settings)

    def group_subscription(
        self, controller: "GroupLifecycleController"
    ) -> "GroupRealtimeSubscription":
        """Realtime subscription feeding controller."""
        from modules.groups.realtime import GroupRealtimeSubscription, RetryPolicy

        policy = RetryPolicy(
            base_delay=self._settings.realtime_retry_base_delay,
            max_delay=self._settings.realtime_retry_max_delay,
            max_retries=self._settings.realtime_max_retries,
        )
        return GroupRealtimeSubscription(self.db, controller.handle_change_event, policy)

    async def shutdown(self) -> None:
        """Unregister listeners and stop background timers."""
        if self._reconciler is not None:
            self._reconciler.teardown()
        if self._maintenance is not None:
            await self._maintenance.stop()

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._db = None
        self._gateway = None
        self._session_cache = None
        self._auth = None
        self._connection = None
        self._maintenance = None
        self._reconciler = None
        self._group_repository = None
        self._admin = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None
