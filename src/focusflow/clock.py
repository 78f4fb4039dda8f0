"""Time acquisition for the engine.

Every rule that depends on "now" (midnight rollover, refill slot expiry,
streak day gaps, result timestamps) reads it from a ``Clock`` passed in by
the caller, so scheduling can be driven deterministically in tests.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of timezone-aware local timestamps."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in a fixed IANA timezone."""

    def __init__(self, tz: str | tzinfo = "UTC") -> None:
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Clock frozen at a given instant until advanced explicitly."""

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._now = at

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> datetime:
        """Move the clock forward by ``timedelta(**kwargs)`` and return the new time."""
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, at: datetime) -> None:
        self._now = at


def local_midnight(dt: datetime) -> datetime:
    """Start of the calendar day containing ``dt``, in ``dt``'s own timezone."""
    return datetime.combine(dt.date(), time.min, tzinfo=dt.tzinfo)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole calendar days between two instants, compared at local-midnight granularity.

    ``earlier`` is converted into ``later``'s timezone first so both dates are
    read on the same local calendar.
    """
    if later.tzinfo is not None and earlier.tzinfo is not None:
        earlier = earlier.astimezone(later.tzinfo)
    return (later.date() - earlier.date()).days
