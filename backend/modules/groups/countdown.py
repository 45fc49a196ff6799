"""
Per-group activation countdowns.

Each scheduled group card counts down to its activation_time once per
tick. When the countdown first reaches zero the completion callback fires
exactly once; the fired flag only resets while time remains positive, so
repeated ticks after zero do not fire again.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .models import Group, GroupStatus

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str], None]


def format_remaining(seconds: float) -> str:
    """Render a countdown as H:MM:SS (or M:SS under an hour)."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class GroupCountdown:
    """Countdown to one group's activation time."""

    def __init__(
        self,
        group_id: str,
        activation_time: datetime,
        on_complete: CompletionCallback,
    ):
        self.group_id = group_id
        self.activation_time = activation_time
        self._on_complete = on_complete
        self._fired = False
        self.remaining: float = 0.0

    @property
    def fired(self) -> bool:
        return self._fired

    def tick(self, now: datetime) -> float:
        """Recompute the remaining time and fire on first reaching zero."""
        self.remaining = (self.activation_time - now).total_seconds()
        if self.remaining > 0:
            self._fired = False
        elif not self._fired:
            self._fired = True
            logger.info(f"Countdown complete for group {self.group_id}")
            self._on_complete(self.group_id)
        return self.remaining


class CountdownBoard:
    """The countdowns for every scheduled group currently listed."""

    def __init__(self, on_complete: CompletionCallback):
        self._on_complete = on_complete
        self._countdowns: dict[str, GroupCountdown] = {}

    def __contains__(self, group_id: str) -> bool:
        return group_id in self._countdowns

    def __len__(self) -> int:
        return len(self._countdowns)

    def get(self, group_id: str) -> Optional[GroupCountdown]:
        return self._countdowns.get(group_id)

    def sync(self, groups: list[Group]) -> None:
        """
        Track exactly the scheduled groups in groups.

        Existing countdowns keep their fired flag unless the activation
        time moved.
        """
        wanted: dict[str, datetime] = {
            g.id: g.activation_time
            for g in groups
            if g.status == GroupStatus.SCHEDULED and g.activation_time is not None
        }
        for group_id in list(self._countdowns):
            if group_id not in wanted:
                del self._countdowns[group_id]
        for group_id, activation_time in wanted.items():
            existing = self._countdowns.get(group_id)
            if existing is None or existing.activation_time != activation_time:
                self._countdowns[group_id] = GroupCountdown(
                    group_id, activation_time, self._on_complete
                )

    def tick(self, now: Optional[datetime] = None) -> None:
        current = now or datetime.now(timezone.utc)
        for countdown in list(self._countdowns.values()):
            countdown.tick(current)
