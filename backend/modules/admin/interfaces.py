"""
Admin module interface.
"""

from typing import Optional, Protocol, runtime_checkable

from .models import AdminRole


@runtime_checkable
class IAdminService(Protocol):
    """Role lookups for the admin dashboard."""

    async def load_admin_role(self, user_id: str) -> Optional[AdminRole]:
        """
        Get the user's admin role.

        Returns:
            The role, or None if the user is not an admin or the lookup
            failed for any reason
        """
        ...

    async def is_admin(self, user_id: str) -> bool:
        """True if the user may manage groups."""
        ...
