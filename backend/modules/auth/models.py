"""
Authentication module data models.

AppAuthState keeps "is the user signed in" and "which profile do we show"
as separate slots so the UI can be authenticated while the profile is
still loading.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from modules.session.models import EnglishLevel, UserProfile


class AuthStatus(str, Enum):
    """Application auth state."""

    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    ERROR = "error"


class AppAuthState(BaseModel):
    """Auth state exposed to the UI."""

    status: AuthStatus = AuthStatus.LOADING
    is_authenticated: bool = False
    profile: Optional[UserProfile] = None
    error: str = ""

    @property
    def profile_pending(self) -> bool:
        return self.is_authenticated and self.profile is None


class SignUpMetadata(BaseModel):
    """User metadata attached to a new account."""

    display_name: str = ""
    english_level: EnglishLevel = EnglishLevel.BEGINNER
    gender: Optional[str] = Field(None, description="Used to pair chat partners")

    def to_metadata(self, email: str) -> dict[str, Any]:
        return {
            "display_name": self.display_name.strip() or email.split("@")[0],
            "english_level": self.english_level.value,
            "gender": self.gender,
        }
