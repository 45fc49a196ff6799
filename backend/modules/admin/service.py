"""
Admin role lookups.

Role lookups fail closed: a missing row, an unknown role value or any
backend error all mean "not an admin".
"""

import logging
from typing import Optional

from shared.repository import BaseRepository, translate_backend_error

from .interfaces import IAdminService
from .models import AdminRole

logger = logging.getLogger(__name__)

ADMIN_TABLE = "admin_users"


class AdminService(BaseRepository[AdminRole], IAdminService):
    """Reads roles from the admin_users table."""

    async def load_admin_role(self, user_id: str) -> Optional[AdminRole]:
        if not user_id:
            return None

        try:
            result = await (
                self._db.table(ADMIN_TABLE)
                .select("role")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            error = translate_backend_error(e)
            logger.warning(f"Admin role lookup failed, denying admin access: {error.message}")
            return None

        if not result.data:
            return None

        raw_role = result.data[0].get("role")
        try:
            return AdminRole(raw_role)
        except ValueError:
            logger.warning(f"Unknown admin role {raw_role!r} for {user_id}, denying")
            return None

    async def is_admin(self, user_id: str) -> bool:
        role = await self.load_admin_role(user_id)
        return role is not None and role.can_manage_groups
