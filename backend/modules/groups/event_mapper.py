"""
Event mapper for translating realtime payloads to GroupChangeEvents.

The realtime client delivers postgres_changes payloads either wrapped in a
``data`` envelope (``type`` / ``record`` / ``old_record``) or flattened
(``eventType`` / ``new`` / ``old``). Both shapes map to the same event.
"""

import logging
from typing import Any, Optional

from .models import ChangeType, GroupChangeEvent

logger = logging.getLogger(__name__)


def map_change_payload(payload: dict[str, Any]) -> Optional[GroupChangeEvent]:
    """
    Map a postgres_changes payload to a GroupChangeEvent.

    Returns:
        The event, or None if the payload is not a row change
    """
    data = payload.get("data", payload)
    raw_type = data.get("type") or data.get("eventType")
    try:
        change_type = ChangeType(str(getattr(raw_type, "value", raw_type)).upper())
    except ValueError:
        logger.debug(f"Ignoring realtime payload with type {raw_type!r}")
        return None

    record = data.get("record") if "record" in data else data.get("new")
    old_record = data.get("old_record") if "old_record" in data else data.get("old")
    return GroupChangeEvent(
        type=change_type,
        record=record or {},
        old_record=old_record or {},
    )
