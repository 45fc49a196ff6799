"""
Opportunistic session upkeep.

Runs the background revalidations that keep the session cache warm:
when the app becomes visible again, when the connection comes back, and
on a periodic timer while the user is active.
"""

import asyncio
import logging
from typing import Optional

from shared.config import Settings, get_settings

from .connection import ConnectionMonitor
from .service import SessionCache

logger = logging.getLogger(__name__)


class SessionMaintenance:
    """Drives SessionCache.background_validate_session from app events."""

    def __init__(
        self,
        cache: SessionCache,
        connection: ConnectionMonitor,
        settings: Optional[Settings] = None,
    ):
        self._cache = cache
        self._connection = connection
        self._settings = settings or get_settings()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def on_visible(self) -> None:
        """The app came back to the foreground."""
        self._cache.record_activity()
        age = self._cache.seconds_since_check()
        if age is None or age > self._settings.visibility_refresh_age:
            logger.debug("App visible again, refreshing session")
            await self._cache.background_validate_session()

    async def on_online(self) -> None:
        """The network connection was restored."""
        self._connection.mark_online()
        await self._cache.background_validate_session()

    def on_offline(self) -> None:
        self._connection.mark_offline()

    async def run_periodic_check(self) -> None:
        """One tick of the periodic health check."""
        was_online = self._connection.is_online
        health = await self._connection.check()
        if not health.is_online:
            return
        if not was_online:
            await self._cache.background_validate_session()
            return
        if self._cache.seconds_since_activity() < self._settings.background_active_window:
            await self._cache.background_validate_session()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.background_check_interval)
            await self.run_periodic_check()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.ensure_future(self._loop())

    async def stop(self) -> None:
        """Stop the timer and drop any in-progress flags."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._cache.release_guards()
