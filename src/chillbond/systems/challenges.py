"""
Challenge tracker.

Weekly challenges are a projection of WeeklyStats: progress is read off
the stats, never accumulated, so recomputing is always safe.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..state.event_bus import EventType
from ..state.schema import Challenge, ChallengeType, WeeklyStats
from ..state.templates import weekly_challenges

if TYPE_CHECKING:
    from ..state.manager import ProgressionEngine

logger = logging.getLogger(__name__)


class ChallengeTracker:
    """
    Keeps the current week's challenges in line with the weekly stats.

    regenerate() is driven by the weekly rollover; recompute() runs after
    every session that reaches the stats.
    """

    def __init__(self, engine: "ProgressionEngine"):
        self.engine = engine

    @property
    def _board(self):
        return self.engine.state.challenges

    @property
    def _stats(self) -> WeeklyStats:
        return self.engine.state.weekly_stats

    def regenerate(self) -> list[Challenge]:
        """Replace the board with a fresh copy of the weekly template."""
        self._board.challenges = weekly_challenges()
        logger.debug(f"Generated {len(self._board.challenges)} weekly challenges")
        return list(self._board.challenges)

    def project(self, challenge_type: ChallengeType) -> int:
        """Current value of the weekly fact behind a challenge type."""
        stats = self._stats
        if challenge_type == ChallengeType.DIFFERENT_FRIENDS:
            return stats.unique_friends_count
        if challenge_type == ChallengeType.TOTAL_MINUTES:
            return stats.total_minutes
        if challenge_type == ChallengeType.SESSIONS:
            return stats.sessions_count
        if challenge_type == ChallengeType.BOND_LEVEL:
            # Deepest bond among friends seen this week
            roster = self.engine.state.roster
            levels = [
                friend.bond_level
                for friend in (roster.get(fid) for fid in stats.unique_friends)
                if friend is not None
            ]
            return max(levels, default=0)
        return 0

    def recompute(self) -> list[Challenge]:
        """
        Set every challenge's progress from the weekly stats.

        Returns:
            Challenges that became complete during this call
        """
        newly_completed = []
        for challenge in self._board.challenges:
            was_completed = challenge.is_completed
            challenge.progress = self.project(challenge.type)
            if challenge.is_completed and not was_completed:
                newly_completed.append(challenge)

        for challenge in newly_completed:
            logger.info(f"Challenge completed: {challenge.title}")
            self.engine.emit(
                EventType.CHALLENGE_COMPLETED,
                challenge_id=challenge.id,
                title=challenge.title,
                target=challenge.target,
            )

        return newly_completed
