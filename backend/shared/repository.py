"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and the translation of client errors into
HadalHub exceptions.
"""

import asyncio
from typing import TypeVar, Generic

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from .exceptions import ExternalServiceError, TransientNetworkError


T = TypeVar("T")


class BackendRequestError(ExternalServiceError):
    """The backend answered, but with an error."""

    def __init__(self, message: str, backend_code: str | None = None):
        super().__init__(
            message,
            service="supabase",
            code="BACKEND_ERROR",
            details={"backend_code": backend_code},
        )
        self.backend_code = backend_code


def translate_backend_error(error: Exception) -> ExternalServiceError:
    """
    Map a Supabase/httpx exception to the HadalHub taxonomy.

    Timeouts and transport failures become TransientNetworkError;
    anything else raised by the client becomes BackendRequestError.
    """
    if isinstance(error, ExternalServiceError):
        return error
    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError)):
        return TransientNetworkError(str(error) or error.__class__.__name__)
    if isinstance(error, APIError):
        return BackendRequestError(error.message or str(error), error.code)
    return BackendRequestError(str(error) or error.__class__.__name__)


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for model type hints

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class GroupRepository(BaseRepository[Group]):
            async def get_by_id(self, group_id: str) -> Optional[Group]:
                result = await self._db.table("groups").select("*").eq("id", group_id).execute()
                if not result.data:
                    return None
                return self._map_to_group(result.data[0])
    """

    def __init__(self, db: AsyncClient) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db
