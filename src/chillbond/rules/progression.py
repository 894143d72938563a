"""
Progression rules as pure functions.

Level, bond level, titles, milestone detection and the point-rate policy.
Nothing here holds state; callers pass totals in and get values back.
"""

from dataclasses import dataclass
from enum import Enum


POINTS_PER_LEVEL = 100
MINUTES_PER_BOND_LEVEL = 30


class MilestoneTag(str, Enum):
    """One-time achievements tied to totals."""
    POINTS_100 = "points_100"
    POINTS_500 = "points_500"
    POINTS_1000 = "points_1000"
    LEVEL_5 = "level_5"
    LEVEL_10 = "level_10"


# Ascending. Order here is the order achievements are reported in.
POINT_MILESTONES: list[tuple[int, MilestoneTag]] = [
    (100, MilestoneTag.POINTS_100),
    (500, MilestoneTag.POINTS_500),
    (1000, MilestoneTag.POINTS_1000),
]

LEVEL_MILESTONES: list[tuple[int, MilestoneTag]] = [
    (5, MilestoneTag.LEVEL_5),
    (10, MilestoneTag.LEVEL_10),
]

# (upper bound inclusive, title); last entry catches everything above
BOND_TITLES: list[tuple[int, str]] = [
    (1, "Acquaintance"),
    (5, "Friends"),
    (10, "Good Friends"),
    (20, "Best Friends"),
    (50, "Confidants"),
]
BOND_TITLE_MAX = "Soulmates"

LEVEL_TITLES: list[tuple[int, str]] = [
    (5, "Chill Beginner"),
    (15, "Social Explorer"),
    (30, "Friendship Master"),
    (50, "Bond Legend"),
]
LEVEL_TITLE_MAX = "Chill God"

# tag -> (title, message) shown by the presentation layer
MILESTONE_TEXT: dict[MilestoneTag, tuple[str, str]] = {
    MilestoneTag.POINTS_100: ("First Hundred!", "You collected your first 100 points!"),
    MilestoneTag.POINTS_500: ("Chill Master!", "500 points - you're a real pro!"),
    MilestoneTag.POINTS_1000: ("Legend!", "1000 points - absolute perfection!"),
    MilestoneTag.LEVEL_5: ("High Five!", "Level 5 reached - you rock!"),
    MilestoneTag.LEVEL_10: ("Perfect Ten!", "Level 10 - you're unstoppable!"),
}


@dataclass(frozen=True)
class PointPolicy:
    """
    How many points a minute of chilling is worth.

    private_multiplier scales the running session display while privacy is
    on; private sessions never reach persistent totals either way.
    """
    points_per_minute: int = 1
    private_multiplier: float = 1.0


def level_for_points(points: int) -> int:
    """Every 100 points is a level. Never below 1."""
    return max(1, points // POINTS_PER_LEVEL)


def bond_level_for_minutes(minutes: int) -> int:
    """Every 30 shared minutes is a bond level. Never below 1."""
    return max(1, minutes // MINUTES_PER_BOND_LEVEL)


def _title_for(level: int, table: list[tuple[int, str]], fallback: str) -> str:
    for upper, title in table:
        if level <= upper:
            return title
    return fallback


def bond_title_for_level(level: int) -> str:
    return _title_for(level, BOND_TITLES, BOND_TITLE_MAX)


def level_title_for_level(level: int) -> str:
    return _title_for(level, LEVEL_TITLES, LEVEL_TITLE_MAX)


def milestones_crossed(old_points: int, new_points: int) -> set[MilestoneTag]:
    """
    Milestones crossed moving from old_points to new_points.

    A threshold counts when old < threshold <= new. Level thresholds use the
    levels derived from both totals. Working from totals rather than the
    delta lets one large award cross several milestones at once.

    Args:
        old_points: Total before the award
        new_points: Total after the award

    Returns:
        Set of crossed milestone tags (empty if none)
    """
    crossed = {
        tag for threshold, tag in POINT_MILESTONES
        if old_points < threshold <= new_points
    }

    old_level = level_for_points(old_points)
    new_level = level_for_points(new_points)
    crossed.update(
        tag for threshold, tag in LEVEL_MILESTONES
        if old_level < threshold <= new_level
    )
    return crossed


def ordered_milestones(tags: set[MilestoneTag]) -> list[MilestoneTag]:
    """Point milestones ascending, then level milestones ascending."""
    order = [tag for _, tag in POINT_MILESTONES] + [tag for _, tag in LEVEL_MILESTONES]
    return [tag for tag in order if tag in tags]


def is_point_milestone(tag: MilestoneTag) -> bool:
    return any(tag == t for _, t in POINT_MILESTONES)


def points_for_minutes(minutes: int, policy: PointPolicy, private: bool = False) -> int:
    """Points earned for a span of minutes under the given policy."""
    points = minutes * policy.points_per_minute
    if private:
        points = int(points * policy.private_multiplier)
    return max(0, points)
