"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.config import Settings
from modules.session.models import Session, UserIdentity, UserProfile


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_identity(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
) -> UserIdentity:
    """Create a test identity."""
    return UserIdentity(id=user_id, email=email)


def make_session(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    access_token: str = "access-token",
) -> Session:
    """Create a test session for the given user."""
    return Session(
        access_token=access_token,
        refresh_token="refresh-token",
        expires_at=4102444800,
        user=make_identity(user_id, email),
    )


def make_profile(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    display_name: Optional[str] = "Test User",
    **fields,
) -> UserProfile:
    """Create a test profile row."""
    return UserProfile(id=user_id, email=email, display_name=display_name, **fields)


def create_mock_gateway() -> MagicMock:
    """Create an auth gateway mock with async methods."""
    gateway = MagicMock()
    gateway.get_session = AsyncMock(return_value=None)
    gateway.get_user = AsyncMock(return_value=None)
    gateway.sign_in = AsyncMock()
    gateway.sign_up = AsyncMock(return_value=None)
    gateway.sign_out = AsyncMock(return_value=None)
    gateway.fetch_profile = AsyncMock()
    gateway.ensure_user_profile = AsyncMock(return_value=None)
    gateway.clear_local_session = AsyncMock(return_value=None)
    gateway.on_auth_state_change = MagicMock(return_value=MagicMock())
    return gateway


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with backend configured, no .env lookup and a throwaway session file."""
    return Settings(
        _env_file=None,
        supabase_url="https://test.supabase.co",
        supabase_anon_key="test-anon-key",
        session_file=tmp_path / "session.json",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_gateway() -> MagicMock:
    return create_mock_gateway()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def session() -> Session:
    return make_session()
