"""
Admin module.

Public API:
- IAdminService: Interface for admin role lookups
- AdminRole: Role enum
"""

from .interfaces import IAdminService
from .models import AdminRole

__all__ = [
    "IAdminService",
    "AdminRole",
]
