"""
Groups module interfaces.

The lifecycle controller depends on IGroupRepository, not on Supabase.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from modules.session.models import EnglishLevel

from .models import (
    ActivationResult,
    AdminActionResult,
    AdminGroupAction,
    CreateGroupResult,
    Group,
    LevelSchedule,
)


@runtime_checkable
class IGroupRepository(Protocol):
    """
    Remote group operations.

    Implementations raise TransientNetworkError or BackendRequestError on
    failure; callers decide how to surface them.
    """

    async def fetch_groups(
        self, level: Optional[EnglishLevel], now: datetime
    ) -> list[Group]:
        """
        List groups that are scheduled, waiting or active and not yet over.

        Args:
            level: Restrict to one level, or None for every level
            now: Groups whose scheduled_end is before now are excluded
        """
        ...

    async def activate_scheduled_groups(self) -> ActivationResult:
        """Activate every scheduled group whose activation time has passed."""
        ...

    async def join_group(self, group_id: str, user_id: str) -> bool:
        """Record topic agreement and join; False if the group is full or gone."""
        ...

    async def admin_manage_group(
        self, admin_id: str, group_id: str, action: AdminGroupAction
    ) -> AdminActionResult:
        """Close, delete or extend a group."""
        ...

    async def create_group(
        self, name: str, level: EnglishLevel, topic_id: str, host_id: str
    ) -> CreateGroupResult:
        """Create a new debate group hosted by host_id."""
        ...

    async def get_level_schedule(self, level: EnglishLevel) -> LevelSchedule:
        """Daily debate window for a level."""
        ...
