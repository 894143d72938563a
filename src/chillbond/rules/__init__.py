"""
Progression rules as pure functions.

Separates logic from data models for easier testing.
"""

from .progression import (
    MilestoneTag,
    PointPolicy,
    MILESTONE_TEXT,
    level_for_points,
    bond_level_for_minutes,
    bond_title_for_level,
    level_title_for_level,
    milestones_crossed,
    ordered_milestones,
    is_point_milestone,
    points_for_minutes,
)

__all__ = [
    "MilestoneTag",
    "PointPolicy",
    "MILESTONE_TEXT",
    "level_for_points",
    "bond_level_for_minutes",
    "bond_title_for_level",
    "level_title_for_level",
    "milestones_crossed",
    "ordered_milestones",
    "is_point_milestone",
    "points_for_minutes",
]
