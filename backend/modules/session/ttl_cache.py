"""
Generic TTL cache primitives.

CacheEntry holds one cached value and the time it was last confirmed
against the backend. ValidationGuard serializes refreshes of a cache:
at most one foreground validation and at most one background validation
may be in flight at any time.
"""

import asyncio
import time
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


class CacheEntry(Generic[T]):
    """A single cached value with its last confirmation time."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self.value: Optional[T] = None
        self.last_check: Optional[float] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def age(self) -> Optional[float]:
        """Seconds since the value was last confirmed, or None if never."""
        if self.last_check is None:
            return None
        return self._clock() - self.last_check

    def is_fresh(self, max_age: float) -> bool:
        """True when a value is cached and younger than max_age."""
        age = self.age()
        return self.value is not None and age is not None and age < max_age

    def store(self, value: Optional[T]) -> None:
        self.value = value
        self.last_check = self._clock()

    def clear(self) -> None:
        self.value = None
        self.last_check = None


class ValidationPhase(str, Enum):
    """Which refresh, if any, is currently running."""

    IDLE = "idle"
    VALIDATING = "validating"
    BACKGROUND_VALIDATING = "background_validating"


class ValidationGuard:
    """
    Tagged state guarding the refresh slots of a cache.

    The foreground slot carries an asyncio.Event so callers arriving while
    a validation is in flight can wait for it (bounded) instead of issuing
    a second backend call.

    Claiming a slot returns a token; only the holder of the current token
    can release it. reset() also advances ``generation`` so validations
    started before it can tell their result belongs to a cleared cache.
    """

    def __init__(self) -> None:
        self._foreground: Optional[asyncio.Event] = None
        self._background: Optional[object] = None
        self._generation = 0

    @property
    def phase(self) -> ValidationPhase:
        if self._foreground is not None:
            return ValidationPhase.VALIDATING
        if self._background is not None:
            return ValidationPhase.BACKGROUND_VALIDATING
        return ValidationPhase.IDLE

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_validating(self) -> bool:
        return self._foreground is not None

    @property
    def background_validating(self) -> bool:
        return self._background is not None

    def begin_foreground(self) -> Optional[asyncio.Event]:
        """Claim the foreground slot. Returns None if already taken."""
        if self._foreground is not None:
            return None
        self._foreground = asyncio.Event()
        return self._foreground

    def end_foreground(self, token: asyncio.Event) -> None:
        """Release the foreground slot if token still owns it."""
        if self._foreground is token:
            self._foreground = None
        token.set()

    async def wait_foreground(self, timeout: float) -> bool:
        """
        Wait for the in-flight foreground validation to finish.

        Returns:
            True if it finished within timeout (or none was running).
        """
        event = self._foreground
        if event is None:
            return True
        try:
            await asyncio.wait_for(event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def begin_background(self) -> Optional[object]:
        """Claim the background slot. Returns None if already taken."""
        if self._background is not None:
            return None
        self._background = object()
        return self._background

    def end_background(self, token: object) -> None:
        if self._background is token:
            self._background = None

    def release(self) -> None:
        """Free both slots, waking any foreground waiters."""
        event, self._foreground = self._foreground, None
        if event is not None:
            event.set()
        self._background = None

    def reset(self) -> None:
        """Free both slots and invalidate validations already in flight."""
        self._generation += 1
        self.release()
