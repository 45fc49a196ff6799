"""
Admin module data models.
"""

from enum import Enum


class AdminRole(str, Enum):
    """Administrative roles, most privileged first."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MODERATOR = "moderator"

    @property
    def can_manage_groups(self) -> bool:
        return self in (AdminRole.SUPER_ADMIN, AdminRole.ADMIN)
