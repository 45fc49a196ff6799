"""
Supabase client factory.

The client core talks to Supabase with the public (anon) key only; row level
security on the backend decides what the signed-in user may see. The auth
session is persisted to a JSON file so a sign-in survives between runs.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions
from supabase_auth import AsyncSupportedStorage

from .config import get_settings

logger = logging.getLogger(__name__)

CLIENT_INFO_HEADER = "hadalhub@1.0.0"


class SessionStorage(AsyncSupportedStorage):
    """
    File-backed auth storage for the Supabase client.

    Items live in one JSON object on disk, readable only by the owner.
    clear() deletes the file on sign-out.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        if not data:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f)
        tmp.replace(self.path)

    async def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    async def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    async def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    async def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# Module-level client cache
_client: Optional[AsyncClient] = None
_storage: Optional[SessionStorage] = None


def get_session_storage() -> SessionStorage:
    """Get the storage backing the Supabase auth session."""
    global _storage
    if _storage is None:
        _storage = SessionStorage(get_settings().session_file)
    return _storage


async def get_supabase_client() -> AsyncClient:
    """
    Get the shared Supabase client (anon key, user session).

    Returns:
        Supabase async client configured with the public key

    Raises:
        ConfigurationError: If SUPABASE_URL or SUPABASE_ANON_KEY is missing
    """
    global _client

    if _client is None:
        settings = get_settings()
        settings.require_backend()
        options = AsyncClientOptions(
            auto_refresh_token=True,
            persist_session=True,
            storage=get_session_storage(),
            headers={"x-client-info": CLIENT_INFO_HEADER},
        )
        _client = await acreate_client(
            settings.supabase_url,
            settings.supabase_anon_key,
            options=options,
        )

    return _client


def reset_client_cache() -> None:
    """
    Reset the cached client and its session storage.

    Useful for testing or when configuration changes.
    """
    global _client, _storage
    _client = None
    _storage = None
