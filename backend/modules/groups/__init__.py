"""
Groups module.

Handles the debate group list, scheduled activation and group actions.

Public API:
- IGroupRepository: Interface for remote group operations
- GroupLifecycleController: Polling, countdown and realtime reconciliation
- Group, GroupStatus, GroupViewer, ActionOutcome: Models
"""

from .interfaces import IGroupRepository
from .models import (
    ActionOutcome,
    ActivationResult,
    AdminActionResult,
    AdminGroupAction,
    ChangeType,
    CreateGroupResult,
    Group,
    GroupChangeEvent,
    GroupStatus,
    GroupViewer,
    LevelSchedule,
)
from .exceptions import (
    GroupError,
    GroupJoinError,
    GroupActionError,
    GroupPermissionError,
    GroupCreationError,
    InvalidStatusTransitionError,
)
from .countdown import CountdownBoard, GroupCountdown
from .controller import GroupLifecycleController

__all__ = [
    # Interface
    "IGroupRepository",
    # Models
    "ActionOutcome",
    "ActivationResult",
    "AdminActionResult",
    "AdminGroupAction",
    "ChangeType",
    "CreateGroupResult",
    "Group",
    "GroupChangeEvent",
    "GroupStatus",
    "GroupViewer",
    "LevelSchedule",
    # Exceptions
    "GroupError",
    "GroupJoinError",
    "GroupActionError",
    "GroupPermissionError",
    "GroupCreationError",
    "InvalidStatusTransitionError",
    # Controller
    "CountdownBoard",
    "GroupCountdown",
    "GroupLifecycleController",
]
