"""Search window: start instant, direction and optional duration limit."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Optional

from .types import InvalidParameterError, require_aware

__all__ = ["Direction", "SearchWindow", "should_continue"]

ONE_DAY = timedelta(days=1)


class Direction(str, Enum):
    forward = "forward"
    reverse = "reverse"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.forward else -1


def should_continue(
    elapsed: timedelta, direction: Direction, limit: Optional[timedelta]
) -> bool:
    """Return whether a search that has covered *elapsed* may keep stepping.

    *elapsed* is the absolute span already searched, whichever way time runs.
    An unbounded window (``limit is None``) never asks to stop.
    """

    if elapsed < timedelta(0):
        raise InvalidParameterError("elapsed search time cannot be negative")
    if limit is None:
        return True
    return elapsed < abs(limit)


@dataclass(frozen=True)
class SearchWindow:
    """Where and how far an event search may look.

    Build instances with :meth:`create` so that negative limits are folded
    into the direction.
    """

    start: datetime
    direction: Direction = Direction.forward
    limit: Optional[timedelta] = None

    @classmethod
    def create(
        cls,
        start: datetime,
        *,
        limit: Optional[timedelta] = None,
        reverse: bool = False,
    ) -> "SearchWindow":
        require_aware(start)
        direction = Direction.reverse if reverse else Direction.forward
        if limit is not None:
            if not isinstance(limit, timedelta):
                raise InvalidParameterError("limit must be a timedelta or None")
            if limit < timedelta(0):
                direction = Direction.reverse
                limit = -limit
        return cls(start=start, direction=direction, limit=limit)

    @classmethod
    def one_day(cls, start: datetime, *, reverse: bool = False) -> "SearchWindow":
        return cls.create(start, limit=ONE_DAY, reverse=reverse)

    @classmethod
    def full_cycle(cls, start: datetime, *, reverse: bool = False) -> "SearchWindow":
        return cls.create(start, reverse=reverse)

    @property
    def bounded(self) -> bool:
        return self.limit is not None

    @property
    def end(self) -> Optional[datetime]:
        """Far edge of the window, or None when unbounded."""

        if self.limit is None:
            return None
        return self.start.astimezone(UTC) + self.direction.sign * self.limit

    def offset(self, hours: float) -> datetime:
        """UTC instant *hours* into the search, counted in the search direction."""

        return self.start.astimezone(UTC) + timedelta(hours=self.direction.sign * hours)

    def localize(self, instant: Optional[datetime]) -> Optional[datetime]:
        """Express *instant* in the zone the window was started in."""

        if instant is None:
            return None
        return instant.astimezone(self.start.tzinfo)

    def contains_offset(self, hours: float) -> bool:
        if hours < 0.0:
            return False
        if self.limit is None:
            return True
        return timedelta(hours=hours) <= self.limit

    def should_continue(self, elapsed: timedelta) -> bool:
        return should_continue(elapsed, self.direction, self.limit)
