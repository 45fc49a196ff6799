"""
Group repository for database access.

Encapsulates all Supabase queries and RPCs for debate groups:
- groups (joined with debate_topics)
- group_join_requests
- activate_scheduled_groups, join_group, admin_manage_group,
  create_debate_group, get_level_schedule
"""

import logging
from datetime import datetime, time
from typing import Any, Optional

from shared.repository import BaseRepository, translate_backend_error

from modules.session.models import EnglishLevel

from .interfaces import IGroupRepository
from .models import (
    LISTED_STATUSES,
    ActivationResult,
    AdminActionResult,
    AdminGroupAction,
    CreateGroupResult,
    Group,
    GroupStatus,
    LevelSchedule,
)

logger = logging.getLogger(__name__)

GROUP_SELECT = "*, topic:debate_topics(title, description)"


class GroupRepository(BaseRepository[Group], IGroupRepository):
    """
    Repository for debate group data access.

    Note: This repository does NOT perform authorization checks.
    Row level security and the RPCs themselves enforce permissions.
    """

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def fetch_groups(
        self, level: Optional[EnglishLevel], now: datetime
    ) -> list[Group]:
        try:
            query = (
                self._db.table("groups")
                .select(GROUP_SELECT)
                .in_("status", [s.value for s in LISTED_STATUSES])
                .gte("scheduled_end", now.isoformat())
            )
            if level is not None:
                query = query.eq("level", level.value)
            result = await query.order("created_at", desc=True).execute()
        except Exception as e:
            raise translate_backend_error(e) from e

        groups = []
        for row in result.data or []:
            try:
                groups.append(self._map_to_group(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed group row {row.get('id')}: {e}")
        return groups

    async def get_level_schedule(self, level: EnglishLevel) -> LevelSchedule:
        """Falls back to the default 20:00-23:00 window if the RPC fails."""
        try:
            result = await self._db.rpc(
                "get_level_schedule", {"level_param": level.value}
            ).execute()
            data = _first_row(result.data)
            if not data:
                return LevelSchedule()
            return LevelSchedule(
                start_time=_parse_time(data.get("start_time"), time(20, 0)),
                end_time=_parse_time(data.get("end_time"), time(23, 0)),
            )
        except Exception as e:
            logger.warning(f"Error fetching schedule, using default: {e}")
            return LevelSchedule()

    # -------------------------------------------------------------------------
    # RPCs
    # -------------------------------------------------------------------------

    async def activate_scheduled_groups(self) -> ActivationResult:
        try:
            result = await self._db.rpc("activate_scheduled_groups", {}).execute()
            data = result.data
            if isinstance(data, int):
                return ActivationResult(activated_count=data)
            row = _first_row(data)
            return ActivationResult(activated_count=int(row.get("activated_count") or 0))
        except Exception as e:
            raise translate_backend_error(e) from e

    async def join_group(self, group_id: str, user_id: str) -> bool:
        try:
            await (
                self._db.table("group_join_requests")
                .upsert(
                    {
                        "group_id": group_id,
                        "user_id": user_id,
                        "agreed_to_topic": True,
                    }
                )
                .execute()
            )
            result = await self._db.rpc(
                "join_group",
                {"group_id_param": group_id, "user_id_param": user_id},
            ).execute()
        except Exception as e:
            raise translate_backend_error(e) from e

        return bool(result.data)

    async def admin_manage_group(
        self, admin_id: str, group_id: str, action: AdminGroupAction
    ) -> AdminActionResult:
        try:
            result = await self._db.rpc(
                "admin_manage_group",
                {
                    "admin_id_param": admin_id,
                    "group_id_param": group_id,
                    "action_param": action.value,
                },
            ).execute()
        except Exception as e:
            raise translate_backend_error(e) from e

        row = _first_row(result.data)
        return AdminActionResult(
            success=bool(row.get("success", False)),
            message=row.get("message") or "",
        )

    async def create_group(
        self, name: str, level: EnglishLevel, topic_id: str, host_id: str
    ) -> CreateGroupResult:
        try:
            result = await self._db.rpc(
                "create_debate_group",
                {
                    "group_name_param": name,
                    "level_param": level.value,
                    "topic_id_param": topic_id,
                    "host_id_param": host_id,
                },
            ).execute()
        except Exception as e:
            raise translate_backend_error(e) from e

        row = _first_row(result.data)
        return CreateGroupResult(
            success=bool(row.get("success", False)),
            group_id=str(row["group_id"]) if row.get("group_id") else None,
            error=row.get("error"),
        )

    # -------------------------------------------------------------------------
    # Mapping helpers
    # -------------------------------------------------------------------------

    def _map_to_group(self, row: dict[str, Any]) -> Group:
        """Map a groups row (with joined topic) to a Group."""
        topic = row.get("topic") or {}
        return Group(
            id=str(row["id"]),
            name=row.get("name") or "",
            level=EnglishLevel(row["level"]),
            status=GroupStatus(row["status"]),
            participants=[str(p) for p in row.get("participants") or []],
            max_participants=row.get("max_participants") or 6,
            scheduled_start=row.get("scheduled_start"),
            scheduled_end=row.get("scheduled_end"),
            activation_time=row.get("activation_time"),
            host_id=str(row["host_id"]) if row.get("host_id") else None,
            topic_id=str(row["topic_id"]) if row.get("topic_id") else None,
            topic_title=topic.get("title"),
            topic_description=topic.get("description"),
            created_at=row.get("created_at"),
        )


def _first_row(data: Any) -> dict[str, Any]:
    """RPCs return either a JSON object or a one-row set."""
    if isinstance(data, list):
        return data[0] if data else {}
    if isinstance(data, dict):
        return data
    return {}


def _parse_time(value: Optional[str], default: time) -> time:
    if not value:
        return default
    try:
        return time.fromisoformat(value)
    except ValueError:
        return default
