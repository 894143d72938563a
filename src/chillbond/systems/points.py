"""
Point award path.

Every point that reaches the user's total goes through award_points(),
which also works out level-ups and milestone achievements and reports
them to the event sink in a fixed order:

    points earned -> level up (if any) -> achievements, ascending
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..errors import InvalidOperation
from ..rules.progression import (
    MILESTONE_TEXT,
    MilestoneTag,
    is_point_milestone,
    level_for_points,
    level_title_for_level,
    milestones_crossed,
    ordered_milestones,
)
from ..state.event_bus import EventType

if TYPE_CHECKING:
    from ..state.manager import ProgressionEngine

logger = logging.getLogger(__name__)


@dataclass
class AwardResult:
    """What an award did to the totals."""
    amount: int
    applied: bool
    old_points: int
    new_points: int
    old_level: int
    new_level: int
    milestones: list[MilestoneTag] = field(default_factory=list)

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


class PointSystem:
    """
    Adds points to the authoritative counter.

    Privacy mode turns every award into a no-op: nothing is added and
    nothing is announced.
    """

    def __init__(self, engine: "ProgressionEngine"):
        self.engine = engine

    def award_points(self, amount: int) -> AwardResult:
        """
        Award points.

        Args:
            amount: Points to add, >= 0

        Returns:
            AwardResult describing the change

        Raises:
            InvalidOperation: If amount is negative
        """
        if amount < 0:
            raise InvalidOperation("award points", f"amount must be >= 0, got {amount}")

        state = self.engine.state
        old_points = state.total_points
        old_level = level_for_points(old_points)

        if state.settings.privacy_mode:
            logger.debug(f"Privacy mode on, ignoring award of {amount}")
            return AwardResult(
                amount=amount,
                applied=False,
                old_points=old_points,
                new_points=old_points,
                old_level=old_level,
                new_level=old_level,
            )

        new_points = old_points + amount
        state.total_points = new_points
        state.profile.total_points = new_points

        new_level = level_for_points(new_points)
        crossed = ordered_milestones(milestones_crossed(old_points, new_points))
        result = AwardResult(
            amount=amount,
            applied=True,
            old_points=old_points,
            new_points=new_points,
            old_level=old_level,
            new_level=new_level,
            milestones=crossed,
        )

        if amount > 0:
            self._announce(result)
        return result

    def _announce(self, result: AwardResult) -> None:
        self.engine.emit(
            EventType.POINTS_EARNED,
            amount=result.amount,
            total=result.new_points,
        )

        if result.leveled_up:
            title = level_title_for_level(result.new_level)
            logger.info(f"Level up: {result.old_level} -> {result.new_level} ({title})")
            self.engine.emit(
                EventType.LEVEL_UP,
                new_level=result.new_level,
                old_level=result.old_level,
                title=title,
                milestones=[
                    {
                        "tag": tag.value,
                        "title": MILESTONE_TEXT[tag][0],
                        "message": MILESTONE_TEXT[tag][1],
                    }
                    for tag in result.milestones
                    if not is_point_milestone(tag)
                ],
            )

        for tag in result.milestones:
            if not is_point_milestone(tag):
                continue
            title, message = MILESTONE_TEXT[tag]
            logger.info(f"Achievement unlocked: {tag.value}")
            self.engine.emit(
                EventType.ACHIEVEMENT_UNLOCKED,
                tag=tag.value,
                title=title,
                message=message,
            )
