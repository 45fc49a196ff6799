"""
Groups module data models.

Debate groups are created by admins (or hosts) and move through a
forward-only lifecycle decided by the server:

    scheduled -> waiting | active -> full -> closed

Any non-terminal status may also move straight to closed.
"""

from datetime import datetime, time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from modules.session.models import EnglishLevel


class GroupStatus(str, Enum):
    """Debate group lifecycle status."""

    SCHEDULED = "scheduled"  # Waiting for its activation time
    WAITING = "waiting"      # Open, waiting for participants
    ACTIVE = "active"        # Open, debate running
    FULL = "full"            # Participant cap reached
    CLOSED = "closed"        # Terminal

    @property
    def is_terminal(self) -> bool:
        return self is GroupStatus.CLOSED

    def can_transition_to(self, new: "GroupStatus") -> bool:
        """True if moving from this status to new is a forward move."""
        return new in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: dict[GroupStatus, frozenset[GroupStatus]] = {
    GroupStatus.SCHEDULED: frozenset(
        {GroupStatus.WAITING, GroupStatus.ACTIVE, GroupStatus.CLOSED}
    ),
    GroupStatus.WAITING: frozenset(
        {GroupStatus.ACTIVE, GroupStatus.FULL, GroupStatus.CLOSED}
    ),
    GroupStatus.ACTIVE: frozenset({GroupStatus.FULL, GroupStatus.CLOSED}),
    GroupStatus.FULL: frozenset({GroupStatus.CLOSED}),
    GroupStatus.CLOSED: frozenset(),
}

# Statuses requested by the group list query
LISTED_STATUSES = (GroupStatus.WAITING, GroupStatus.ACTIVE, GroupStatus.SCHEDULED)


class Group(BaseModel):
    """A debate room."""

    id: str = Field(..., description="Group ID (UUID)")
    name: str
    level: EnglishLevel
    status: GroupStatus
    participants: list[str] = Field(default_factory=list)
    max_participants: int = Field(default=6, ge=1)
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    activation_time: Optional[datetime] = None
    host_id: Optional[str] = None
    topic_id: Optional[str] = None
    topic_title: Optional[str] = None
    topic_description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def is_full(self) -> bool:
        return self.participant_count >= self.max_participants

    @property
    def is_joinable(self) -> bool:
        return self.status in (GroupStatus.WAITING, GroupStatus.ACTIVE) and not self.is_full


class ChangeType(str, Enum):
    """Row-level change kinds pushed by the realtime channel."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class GroupChangeEvent(BaseModel):
    """A realtime change notification for the groups table."""

    type: ChangeType
    record: dict[str, Any] = Field(default_factory=dict)
    old_record: dict[str, Any] = Field(default_factory=dict)

    @property
    def group_id(self) -> Optional[str]:
        value = self.record.get("id") or self.old_record.get("id")
        return str(value) if value is not None else None

    @property
    def level(self) -> Optional[str]:
        return self.record.get("level") or self.old_record.get("level")

    @property
    def old_status(self) -> Optional[GroupStatus]:
        return _parse_status(self.old_record.get("status"))

    @property
    def new_status(self) -> Optional[GroupStatus]:
        return _parse_status(self.record.get("status"))

    @property
    def status_changed(self) -> bool:
        return (
            self.type == ChangeType.UPDATE
            and self.new_status is not None
            and self.old_status != self.new_status
        )


def _parse_status(value: Any) -> Optional[GroupStatus]:
    try:
        return GroupStatus(value) if value is not None else None
    except ValueError:
        return None


class AdminGroupAction(str, Enum):
    """Lifecycle actions an admin may take on a group."""

    CLOSE = "close"
    DELETE = "delete"
    EXTEND = "extend"

    @property
    def is_irreversible(self) -> bool:
        return self is AdminGroupAction.DELETE

    @property
    def past_tense(self) -> str:
        return {"close": "closed", "delete": "deleted", "extend": "extended"}[self.value]


class AdminActionResult(BaseModel):
    """Result of the admin_manage_group RPC."""

    success: bool
    message: str = ""


class ActivationResult(BaseModel):
    """Result of the activate_scheduled_groups RPC."""

    activated_count: int = 0


class CreateGroupResult(BaseModel):
    """Result of the create_debate_group RPC."""

    success: bool
    group_id: Optional[str] = None
    error: Optional[str] = None


class LevelSchedule(BaseModel):
    """Daily window during which debates for a level run."""

    start_time: time = time(20, 0)
    end_time: time = time(23, 0)

    def display(self) -> str:
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"


class GroupViewer(BaseModel):
    """Who is looking at the group list."""

    user_id: str
    level: EnglishLevel
    is_admin: bool = False
    groups_created_today: int = 0

    model_config = {"frozen": True}

    def can_see(self, level: Optional[str]) -> bool:
        """Admins see every level; learners only their own."""
        if self.is_admin:
            return True
        return level == self.level.value

    @property
    def can_create_group(self) -> bool:
        return self.groups_created_today < 1


class ActionOutcome(BaseModel):
    """User-visible result of a group action."""

    success: bool
    message: str = ""
    navigate_to: Optional[str] = None
    cancelled: bool = False
