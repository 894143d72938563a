"""
Progression systems for chillbond.

Extracted from the engine to separate domain logic from persistence.
Each system operates on engine state and reports events back through it.
"""

from .challenges import ChallengeTracker
from .points import AwardResult, PointSystem
from .sessions import SessionSystem
from .weekly import WeeklyRollover

__all__ = [
    "ChallengeTracker",
    "AwardResult",
    "PointSystem",
    "SessionSystem",
    "WeeklyRollover",
]
