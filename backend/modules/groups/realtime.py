"""
Realtime subscription to the groups table.

Change notifications are only a trigger for re-fetching the group list;
they are never applied to local state directly. When the channel errors
or times out the subscription is re-established with exponential
backoff, up to a retry ceiling.
"""

import asyncio
import itertools
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field
from supabase import AsyncClient

from .event_mapper import map_change_payload
from .models import GroupChangeEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[GroupChangeEvent], None]
Sleep = Callable[[float], Awaitable[None]]

_channel_counter = itertools.count(1)


class SubscriptionState(str, Enum):
    """Channel states reported by the realtime client."""

    SUBSCRIBED = "SUBSCRIBED"
    TIMED_OUT = "TIMED_OUT"
    CLOSED = "CLOSED"
    CHANNEL_ERROR = "CHANNEL_ERROR"


class RetryPolicy(BaseModel):
    """Exponential backoff with a ceiling on attempts."""

    base_delay: float = Field(default=1.0, gt=0)
    max_delay: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=8, ge=0)

    model_config = {"frozen": True}

    def delay(self, attempt: int) -> float:
        """Delay before retry number attempt (0-based)."""
        return min(self.base_delay * (2 ** attempt), self.max_delay)


class GroupRealtimeSubscription:
    """Keeps one postgres_changes channel on ``public.groups`` alive."""

    TABLE = "groups"

    def __init__(
        self,
        db: AsyncClient,
        on_event: EventHandler,
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._db = db
        self._on_event = on_event
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._channel: Any = None
        self._attempts = 0
        self._stopped = True
        self._retry_task: Optional[asyncio.Task] = None
        self.state: Optional[SubscriptionState] = None
        self.gave_up = False

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def pending_retry(self) -> Optional[asyncio.Task]:
        return self._retry_task

    async def start(self) -> None:
        self._stopped = False
        self.gave_up = False
        self._attempts = 0
        await self._subscribe()

    async def stop(self) -> None:
        self._stopped = True
        if self._retry_task is not None:
            self._retry_task.cancel()
            self._retry_task = None
        await self._remove_channel()

    async def _remove_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is None:
            return
        try:
            await self._db.remove_channel(channel)
        except Exception as e:
            logger.warning(f"Failed to remove realtime channel: {e}")

    async def _subscribe(self) -> None:
        await self._remove_channel()
        name = f"groups_changes_{next(_channel_counter)}"
        logger.debug(f"Subscribing to realtime channel {name}")
        channel = self._db.channel(name)
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=self.TABLE,
            callback=self._handle_payload,
        )
        self._channel = channel
        try:
            await channel.subscribe(self._handle_status)
        except Exception as e:
            logger.error(f"Realtime subscribe failed: {e}")
            self._schedule_retry()

    def _handle_payload(self, payload: dict[str, Any]) -> None:
        event = map_change_payload(payload)
        if event is not None:
            self._on_event(event)

    def _handle_status(self, status: Any, error: Optional[Exception] = None) -> None:
        try:
            state = SubscriptionState(getattr(status, "value", status))
        except ValueError:
            logger.debug(f"Unknown realtime status: {status}")
            return
        self.state = state

        if state == SubscriptionState.SUBSCRIBED:
            logger.info("Realtime subscription to groups active")
            self._attempts = 0
        elif state in (SubscriptionState.CHANNEL_ERROR, SubscriptionState.TIMED_OUT):
            logger.warning(f"Realtime subscription {state.value.lower()}: {error}")
            self._schedule_retry()
        elif state == SubscriptionState.CLOSED:
            logger.info("Realtime subscription closed")

    def _schedule_retry(self) -> None:
        if self._stopped:
            return
        if self._retry_task is not None and not self._retry_task.done():
            return
        if self._attempts >= self._policy.max_retries:
            logger.error(
                f"Realtime subscription failed {self._attempts} times, giving up; "
                "group list still refreshes by polling"
            )
            self.gave_up = True
            return

        delay = self._policy.delay(self._attempts)
        self._attempts += 1
        logger.info(f"Retrying realtime subscription in {delay:.1f}s (attempt {self._attempts})")
        self._retry_task = asyncio.ensure_future(self._retry_after(delay))

    async def _retry_after(self, delay: float) -> None:
        await self._sleep(delay)
        self._retry_task = None
        if not self._stopped:
            await self._subscribe()
