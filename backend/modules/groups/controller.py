"""
Group lifecycle controller.

Keeps the visible debate groups consistent with the server. Three
independent triggers ask for a reconciliation: a fixed-interval poll, a
per-card countdown reaching zero, and realtime change notifications. All
of them go through request_reconciliation(), which coalesces overlapping
requests into one in-flight run plus at most one trailing run. Local
state is always replaced by an authoritative re-fetch, never patched.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from shared.config import Settings, get_settings
from shared.exceptions import HadalHubError

from .countdown import CountdownBoard
from .exceptions import (
    GroupActionError,
    GroupCreationError,
    GroupJoinError,
    GroupPermissionError,
    InvalidStatusTransitionError,
)
from .interfaces import IGroupRepository
from .models import (
    ActionOutcome,
    AdminGroupAction,
    ChangeType,
    Group,
    GroupChangeEvent,
    GroupViewer,
    LevelSchedule,
)
from .realtime import GroupRealtimeSubscription

logger = logging.getLogger(__name__)

ConfirmPrompt = Callable[[str], Awaitable[bool]]
GroupsListener = Callable[[list[Group]], None]

JOIN_PROMPT = (
    'Do you agree to debate the topic: "{topic}"?\n\n'
    "By joining, you commit to respectful discussion and staying on topic."
)
ACTION_PROMPT = 'Are you sure you want to {action} the group "{name}"?'
DELETE_PROMPT = (
    'Permanently delete the group "{name}"?\n\n'
    "This removes the group and its chat history and cannot be undone."
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GroupLifecycleController:
    """
    Drives the group list for one viewer.

    Non-admin viewers see only groups at their own level, both in the
    fetch query and when filtering realtime events.
    """

    def __init__(
        self,
        repository: IGroupRepository,
        viewer: GroupViewer,
        settings: Optional[Settings] = None,
        now: Callable[[], datetime] = _utcnow,
        on_groups_changed: Optional[GroupsListener] = None,
    ):
        self._repository = repository
        self._viewer = viewer
        self._settings = settings or get_settings()
        self._now = now
        self._on_groups_changed = on_groups_changed
        self._groups: list[Group] = []
        self._countdowns = CountdownBoard(self.on_countdown_complete)
        self._inflight: Optional[asyncio.Task] = None
        self._rerun = False
        self._pending_activation = False
        self._loops: list[asyncio.Task] = []
        self._spawned: set[asyncio.Task] = set()
        self._subscription: Optional[GroupRealtimeSubscription] = None
        self.last_error = ""

    @property
    def viewer(self) -> GroupViewer:
        return self._viewer

    @property
    def groups(self) -> list[Group]:
        return list(self._groups)

    @property
    def countdowns(self) -> CountdownBoard:
        return self._countdowns

    def get_group(self, group_id: str) -> Optional[Group]:
        return next((g for g in self._groups if g.id == group_id), None)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    async def request_reconciliation(
        self, activate: bool = False, reason: str = ""
    ) -> list[Group]:
        """
        Re-fetch the group list, optionally activating due groups first.

        Requests arriving while a run is in flight are folded into a
        single trailing run, which activates if any of them asked to.
        """
        if activate:
            self._pending_activation = True

        if self._inflight is None or self._inflight.done():
            logger.debug(f"Reconciling groups ({reason or 'requested'})")
            self._inflight = asyncio.ensure_future(self._run_reconciliation())
        else:
            self._rerun = True

        await asyncio.shield(self._inflight)
        return self.groups

    async def refresh(self) -> list[Group]:
        return await self.request_reconciliation(reason="refresh")

    async def _run_reconciliation(self) -> None:
        while True:
            activate = self._pending_activation
            self._pending_activation = False
            self._rerun = False
            await self._reconcile_once(activate)
            if not self._rerun:
                return

    async def _reconcile_once(self, activate: bool) -> None:
        if activate:
            try:
                result = await self._repository.activate_scheduled_groups()
                if result.activated_count:
                    logger.info(f"Activated {result.activated_count} scheduled group(s)")
            except HadalHubError as e:
                logger.warning(f"Error activating scheduled groups: {e.message}")

        level = None if self._viewer.is_admin else self._viewer.level
        try:
            groups = await self._repository.fetch_groups(level, self._now())
        except HadalHubError as e:
            logger.error(f"Error fetching groups: {e.message}")
            self.last_error = "Failed to load groups"
            return

        self._groups = groups
        self._countdowns.sync(groups)
        self.last_error = ""
        if self._on_groups_changed is not None:
            self._on_groups_changed(self.groups)

    async def _reconcile_logged(self, activate: bool, reason: str) -> None:
        try:
            await self.request_reconciliation(activate=activate, reason=reason)
        except Exception as e:
            logger.error(f"Group reconciliation ({reason}) failed: {e}")
            self.last_error = "Failed to load groups"

    def _spawn(self, activate: bool, reason: str) -> None:
        task = asyncio.ensure_future(self._reconcile_logged(activate, reason))
        self._spawned.add(task)
        task.add_done_callback(self._spawned.discard)

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    async def poll_activation(self) -> list[Group]:
        """Activate due groups, then re-fetch."""
        return await self.request_reconciliation(activate=True, reason="poll")

    def on_countdown_complete(self, group_id: str) -> None:
        """A card's countdown reached zero: check activation immediately."""
        logger.info(f"Countdown finished for group {group_id}, checking activation")
        self._spawn(activate=True, reason=f"countdown {group_id}")

    def tick_countdowns(self) -> None:
        self._countdowns.tick(self._now())

    def handle_change_event(self, event: GroupChangeEvent) -> bool:
        """
        React to a realtime change on the groups table.

        Returns:
            True if a re-fetch was requested
        """
        level = event.level
        if level is None and event.group_id is not None:
            known = self.get_group(event.group_id)
            level = known.level.value if known is not None else None
        if not self._viewer.can_see(level):
            logger.debug(f"Ignoring change for group {event.group_id} at level {level}")
            return False

        if event.type == ChangeType.UPDATE:
            if not event.status_changed:
                return False
            old, new = event.old_status, event.new_status
            if old is not None and new is not None and not old.can_transition_to(new):
                error = InvalidStatusTransitionError(
                    event.group_id or "", old.value, new.value
                )
                logger.warning(error.message)

        self._spawn(activate=False, reason=f"realtime {event.type.value}")
        return True

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    async def join_group(self, group_id: str, confirm: ConfirmPrompt) -> ActionOutcome:
        """Join after the user agrees to the debate topic."""
        group = self.get_group(group_id)
        topic = group.topic_title if group is not None and group.topic_title else "this topic"
        if not await confirm(JOIN_PROMPT.format(topic=topic)):
            return ActionOutcome(success=False, cancelled=True)

        try:
            joined = await self._repository.join_group(group_id, self._viewer.user_id)
        except HadalHubError as e:
            logger.error(f"Error joining group: {e.message}")
            return ActionOutcome(success=False, message="Failed to join group")

        if not joined:
            return ActionOutcome(success=False, message=GroupJoinError(group_id).message)

        await self.request_reconciliation(reason="joined")
        return ActionOutcome(
            success=True,
            message="Successfully joined the group! Redirecting to group chat...",
            navigate_to=f"/group/{group_id}",
        )

    async def manage_group(
        self,
        group_id: str,
        action: AdminGroupAction,
        confirm: ConfirmPrompt,
    ) -> ActionOutcome:
        """Close, delete or extend a group (admins only)."""
        if not self._viewer.is_admin:
            error = GroupPermissionError(self._viewer.user_id, action.value)
            logger.warning(error.message)
            return ActionOutcome(success=False, message=error.message)

        group = self.get_group(group_id)
        name = group.name if group is not None else group_id
        prompt = DELETE_PROMPT if action.is_irreversible else ACTION_PROMPT
        if not await confirm(prompt.format(action=action.value, name=name)):
            return ActionOutcome(success=False, cancelled=True)

        try:
            result = await self._repository.admin_manage_group(
                self._viewer.user_id, group_id, action
            )
        except HadalHubError as e:
            logger.error(f"Error trying to {action.value} group: {e.message}")
            return ActionOutcome(success=False, message=f"Failed to {action.value} group")

        if not result.success:
            error = GroupActionError(group_id, action.value, result.message)
            return ActionOutcome(success=False, message=error.message)

        await self.request_reconciliation(reason=f"admin {action.value}")
        return ActionOutcome(
            success=True, message=result.message or f"Group {action.past_tense}"
        )

    async def create_group(self, name: str, topic_id: str) -> ActionOutcome:
        """Host a new group at the viewer's level (one per day)."""
        if not self._viewer.can_create_group:
            return ActionOutcome(
                success=False, message="You can only create one group per day"
            )
        name = name.strip()
        if not name or not topic_id:
            return ActionOutcome(success=False, message="Choose a topic and a group name")

        try:
            result = await self._repository.create_group(
                name, self._viewer.level, topic_id, self._viewer.user_id
            )
        except HadalHubError as e:
            logger.error(f"Error creating group: {e.message}")
            return ActionOutcome(success=False, message="Failed to create group")

        if not result.success:
            error = GroupCreationError(result.error or "")
            return ActionOutcome(success=False, message=error.message)

        await self.request_reconciliation(reason="created")
        return ActionOutcome(success=True, message=f'Group "{name}" created')

    async def get_schedule(self) -> LevelSchedule:
        return await self._repository.get_level_schedule(self._viewer.level)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        while True:
            await self._reconcile_logged(activate=True, reason="poll")
            await asyncio.sleep(self._settings.group_poll_interval)

    async def _countdown_loop(self) -> None:
        while True:
            try:
                self.tick_countdowns()
            except Exception as e:
                logger.error(f"Countdown tick failed: {e}")
            await asyncio.sleep(self._settings.countdown_tick_interval)

    async def start(self, subscription: Optional[GroupRealtimeSubscription] = None) -> None:
        """Start polling, countdown ticks and (optionally) realtime updates."""
        if self._loops:
            return
        self._loops = [
            asyncio.ensure_future(self._poll_loop()),
            asyncio.ensure_future(self._countdown_loop()),
        ]
        if subscription is not None:
            self._subscription = subscription
            await subscription.start()

    async def stop(self) -> None:
        tasks = self._loops + list(self._spawned)
        if self._inflight is not None and not self._inflight.done():
            tasks.append(self._inflight)
        self._loops = []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self._subscription is not None:
            await self._subscription.stop()
            self._subscription = None
