"""Tests for admin role lookups."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from modules.admin.models import AdminRole
from modules.admin.service import AdminService


def create_db_mock(data=None, error=None) -> MagicMock:
    db = MagicMock()
    query = db.table.return_value.select.return_value.eq.return_value.limit.return_value
    if error is not None:
        query.execute = AsyncMock(side_effect=error)
    else:
        query.execute = AsyncMock(return_value=MagicMock(data=data))
    return db


class TestLoadAdminRole:
    @pytest.mark.asyncio
    async def test_reads_role(self):
        db = create_db_mock([{"role": "admin"}])
        service = AdminService(db)

        role = await service.load_admin_role("user-1")

        assert role == AdminRole.ADMIN
        db.table.assert_called_once_with("admin_users")
        db.table.return_value.select.return_value.eq.assert_called_once_with("user_id", "user-1")

    @pytest.mark.asyncio
    async def test_no_row(self):
        assert await AdminService(create_db_mock([])).load_admin_role("user-1") is None

    @pytest.mark.asyncio
    async def test_unknown_role_denied(self):
        service = AdminService(create_db_mock([{"role": "owner"}]))
        assert await service.load_admin_role("user-1") is None

    @pytest.mark.asyncio
    async def test_backend_error_denied(self):
        """Lookup failures fail closed."""
        service = AdminService(create_db_mock(error=httpx.ConnectError("offline")))
        assert await service.load_admin_role("user-1") is None

    @pytest.mark.asyncio
    async def test_blank_user(self):
        db = create_db_mock([{"role": "admin"}])
        assert await AdminService(db).load_admin_role("") is None
        db.table.assert_not_called()


class TestIsAdmin:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "role,expected",
        [("super_admin", True), ("admin", True), ("moderator", False)],
    )
    async def test_roles(self, role, expected):
        service = AdminService(create_db_mock([{"role": role}]))
        assert await service.is_admin("user-1") is expected

    @pytest.mark.asyncio
    async def test_error_is_not_admin(self):
        service = AdminService(create_db_mock(error=RuntimeError("boom")))
        assert await service.is_admin("user-1") is False
