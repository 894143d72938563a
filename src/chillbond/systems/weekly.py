"""
Weekly rollover.

Detects that the clock has moved into a new week and swaps in fresh
WeeklyStats and challenges. No archive is kept; WEEK_ROLLED_OVER carries
the finished week's stats for anyone who wants one.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ..state.event_bus import EventType
from ..state.schema import WeeklyStats

if TYPE_CHECKING:
    from ..state.manager import ProgressionEngine

logger = logging.getLogger(__name__)


class WeeklyRollover:
    """Keeps WeeklyStats pinned to the clock's current week."""

    def __init__(self, engine: "ProgressionEngine"):
        self.engine = engine

    def current_week_start(self) -> datetime:
        clock = self.engine.clock
        return clock.start_of_week(clock.now())

    def is_stale(self) -> bool:
        """Whether stored stats belong to a different week."""
        return self.engine.state.weekly_stats.week_start != self.current_week_start()

    def ensure_current_week(self) -> bool:
        """
        Roll over if the week changed; fill in challenges if there are none.

        Safe to call any number of times. Call before reading or writing
        weekly stats.

        Returns:
            True if stats or challenges were replaced
        """
        state = self.engine.state
        week_start = self.current_week_start()

        if state.weekly_stats.week_start != week_start:
            previous = state.weekly_stats
            state.weekly_stats = WeeklyStats(week_start=week_start)
            self.engine.challenges.regenerate()

            logger.info(
                f"Week rolled over: {previous.week_start.date()} -> {week_start.date()}"
            )
            self.engine.emit(
                EventType.WEEK_ROLLED_OVER,
                week_start=week_start.isoformat(),
                previous=previous.model_dump(mode="json"),
            )
            return True

        if not state.challenges.challenges:
            self.engine.challenges.regenerate()
            self.engine.challenges.recompute()
            return True

        return False
