"""
Connection health monitoring.

Probes the Supabase Auth health endpoint to decide whether the client is
online before attempting remote calls.
"""

import logging
import time
from typing import Optional

import httpx
from pydantic import BaseModel

from shared.config import Settings, get_settings

from .ttl_cache import Clock

logger = logging.getLogger(__name__)


class ConnectionHealth(BaseModel):
    """Snapshot of connectivity as last observed."""

    is_online: bool
    last_check: float
    retry_count: int


class ConnectionMonitor:
    """Tracks whether the backend is reachable."""

    HEALTH_PATH = "/auth/v1/health"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Clock = time.monotonic,
    ):
        self._settings = settings or get_settings()
        self._http = http_client
        self._clock = clock
        self._is_online = True
        self._last_check = clock()
        self._retry_count = 0

    @property
    def is_online(self) -> bool:
        return self._is_online

    def get_health(self) -> ConnectionHealth:
        return ConnectionHealth(
            is_online=self._is_online,
            last_check=self._last_check,
            retry_count=self._retry_count,
        )

    def mark_online(self) -> bool:
        """Record that the connection is up. Returns True if it was down."""
        restored = not self._is_online
        if restored:
            logger.info("Connection restored")
        self._is_online = True
        self._last_check = self._clock()
        self._retry_count = 0
        return restored

    def mark_offline(self) -> None:
        if self._is_online:
            logger.warning("Connection lost")
        self._is_online = False
        self._last_check = self._clock()
        self._retry_count += 1

    async def check(self) -> ConnectionHealth:
        """Probe the backend and update the recorded state."""
        url = self._settings.supabase_url.rstrip("/") + self.HEALTH_PATH
        headers = {"apikey": self._settings.supabase_anon_key}
        try:
            if self._http is not None:
                response = await self._http.get(
                    url, headers=headers, timeout=self._settings.connection_check_timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(
                        url, headers=headers, timeout=self._settings.connection_check_timeout
                    )
        except httpx.HTTPError as e:
            logger.debug(f"Health probe failed: {e}")
            self.mark_offline()
            return self.get_health()

        if response.status_code >= 500:
            self.mark_offline()
        else:
            self.mark_online()
        return self.get_health()
