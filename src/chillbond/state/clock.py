"""
Time source for the engine.

Week convention: ISO weeks, starting Monday 00:00 UTC. Rollover compares
week starts for equality, so the convention must never change for a store.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """
    Abstract clock.

    Implementations:
    - SystemClock: wall-clock time (production)
    - FixedClock: manually stepped time (testing)
    """

    def now(self) -> datetime:
        """Current time, timezone-aware."""
        ...

    def start_of_week(self, ts: datetime) -> datetime:
        """Start of the week containing ts."""
        ...


def iso_week_start(ts: datetime) -> datetime:
    """Monday 00:00 UTC of the ISO week containing ts."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    midnight = ts.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=midnight.weekday())


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def start_of_week(self, ts: datetime) -> datetime:
        return iso_week_start(ts)


class FixedClock:
    """
    Clock that only moves when told to.

    Used by tests to cross week boundaries deterministically.
    """

    def __init__(self, current: datetime | None = None):
        current = current or datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self.current = current

    def now(self) -> datetime:
        return self.current

    def start_of_week(self, ts: datetime) -> datetime:
        return iso_week_start(ts)

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self.current = current

    def advance(self, **kwargs) -> datetime:
        """Move forward by a timedelta given as keyword args (days=7, minutes=5)."""
        self.current = self.current + timedelta(**kwargs)
        return self.current
