"""
Groups module exceptions.
"""

from shared.exceptions import (
    HadalHubError,
    AuthorizationError,
    ValidationError,
)


class GroupError(HadalHubError):
    """Base exception for group-related errors."""

    pass


class GroupJoinError(GroupError):
    """Raised when the backend refuses a join (group full or gone)."""

    def __init__(self, group_id: str):
        super().__init__(
            "Failed to join group. It might be full or no longer available.",
            code="GROUP_JOIN_FAILED",
            details={"group_id": group_id},
        )


class GroupActionError(GroupError):
    """Raised when an admin group action is rejected by the backend."""

    def __init__(self, group_id: str, action: str, message: str):
        super().__init__(
            message or f"Failed to {action} group",
            code="GROUP_ACTION_FAILED",
            details={"group_id": group_id, "action": action},
        )


class GroupPermissionError(AuthorizationError):
    """Raised when a non-admin attempts an admin action."""

    def __init__(self, user_id: str, action: str):
        super().__init__(
            f"Admin permissions required to {action} groups",
            code="GROUP_PERMISSION_DENIED",
            details={"user_id": user_id, "action": action},
        )


class InvalidStatusTransitionError(ValidationError):
    """Raised when a status change would move a group backwards."""

    def __init__(self, group_id: str, old_status: str, new_status: str):
        super().__init__(
            f"Invalid status transition for group {group_id}: {old_status} -> {new_status}",
            code="INVALID_STATUS_TRANSITION",
            details={
                "group_id": group_id,
                "old_status": old_status,
                "new_status": new_status,
            },
        )


class GroupCreationError(GroupError):
    """Raised when a group cannot be created."""

    def __init__(self, message: str):
        super().__init__(message or "Failed to create group", code="GROUP_CREATE_FAILED")
