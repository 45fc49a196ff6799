"""
Application composition root.

Wires the Supabase client into the session, auth, group and admin modules.
"""

from .container import ServiceContainer, get_container, reset_container

__all__ = ["ServiceContainer", "get_container", "reset_container"]
