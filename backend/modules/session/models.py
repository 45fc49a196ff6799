"""
Session module data models.

Session and UserIdentity mirror what Supabase Auth issues; UserProfile is
the application's row in the public ``users`` table.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EnglishLevel(str, Enum):
    """English proficiency level of a learner (and of a debate group)."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class UserIdentity(BaseModel):
    """Minimal identity record derived from the session by Supabase Auth."""

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: str = Field(default="", description="User's email address")
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True, "extra": "ignore"}


class Session(BaseModel):
    """
    Opaque token bundle for an authenticated identity.

    Owned by the SessionCache while cached; replaced wholesale on refresh.
    """

    access_token: str
    refresh_token: str = ""
    expires_at: Optional[int] = Field(None, description="Expiry (unix seconds)")
    user: Optional[UserIdentity] = None

    model_config = {"frozen": True, "extra": "ignore"}

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        current = now or datetime.now(timezone.utc)
        return current.timestamp() >= self.expires_at


class UserProfile(BaseModel):
    """Application-level learner profile."""

    id: str = Field(..., description="User ID (same as UserIdentity.id)")
    email: str = ""
    display_name: Optional[str] = None
    english_level: EnglishLevel = EnglishLevel.BEGINNER
    gender: Optional[str] = None
    current_streak: int = 0
    longest_streak: int = 0
    lessons_completed: int = 0
    quizzes_completed: int = 0
    groups_created_today: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_synthetic: bool = Field(
        default=False,
        description="Built locally because the backend profile was unavailable",
    )

    model_config = {"extra": "ignore"}

    @classmethod
    def synthesize(cls, identity: UserIdentity) -> "UserProfile":
        """Minimal profile derived from the auth email."""
        return cls(
            id=identity.id,
            email=identity.email,
            display_name=identity.email.split("@")[0] if identity.email else None,
            english_level=EnglishLevel.BEGINNER,
            created_at=datetime.now(timezone.utc),
            is_synthetic=True,
        )


class CacheStatusSnapshot(BaseModel):
    """Read-only diagnostic view of the session cache (ages in seconds)."""

    has_session: bool
    has_user: bool
    has_profile: bool
    cache_age: Optional[float]
    is_validating: bool
    background_validating: bool
    last_activity: float


class AuthEventType(str, Enum):
    """Auth state change events emitted by Supabase Auth."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"
