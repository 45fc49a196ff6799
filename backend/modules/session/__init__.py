"""
Session module.

Caches the current Supabase session, identity and profile on the client.

Public API:
- ISessionCache / SessionCache: TTL cache with single-flight validation
- IAuthGateway / SupabaseAuthGateway: remote auth and profile calls
- ConnectionMonitor, SessionMaintenance: background upkeep
- Models: Session, UserIdentity, UserProfile, EnglishLevel, CacheStatusSnapshot
"""

from .interfaces import IAuthGateway, ISessionCache, AuthSubscription
from .models import (
    AuthEventType,
    CacheStatusSnapshot,
    EnglishLevel,
    Session,
    UserIdentity,
    UserProfile,
)
from .exceptions import ProfileNotFoundError
from .ttl_cache import CacheEntry, ValidationGuard, ValidationPhase
from .service import SessionCache
from .connection import ConnectionHealth, ConnectionMonitor
from .maintenance import SessionMaintenance

__all__ = [
    # Interfaces
    "IAuthGateway",
    "ISessionCache",
    "AuthSubscription",
    # Models
    "AuthEventType",
    "CacheStatusSnapshot",
    "EnglishLevel",
    "Session",
    "UserIdentity",
    "UserProfile",
    # Exceptions
    "ProfileNotFoundError",
    # Implementation
    "CacheEntry",
    "ValidationGuard",
    "ValidationPhase",
    "SessionCache",
    "ConnectionHealth",
    "ConnectionMonitor",
    "SessionMaintenance",
]
