"""
Seed data for new installs.

The weekly challenge template and the demo roster used when no friends
have been stored yet.
"""

from .schema import Challenge, ChallengeType, Friend


# Exactly three challenges per week. Order is display order.
WEEKLY_CHALLENGE_TEMPLATE: list[dict] = [
    {
        "title": "Social Butterfly",
        "description": "Chill with 3 different friends",
        "target": 3,
        "icon": "person.3.fill",
        "color": "purple",
        "type": ChallengeType.DIFFERENT_FRIENDS,
    },
    {
        "title": "Chill Master",
        "description": "Collect 60 minutes of chill time",
        "target": 60,
        "icon": "timer",
        "color": "orange",
        "type": ChallengeType.TOTAL_MINUTES,
    },
    {
        "title": "Session Hero",
        "description": "Start 5 chill sessions",
        "target": 5,
        "icon": "play.circle.fill",
        "color": "green",
        "type": ChallengeType.SESSIONS,
    },
]

DEMO_ROSTER: list[dict] = [
    {"name": "Anna Schmidt", "handle": "@anna_s", "chill_minutes": 90,
     "is_online": True, "last_seen": "Online", "mutual_friends": 5},
    {"name": "Max Mueller", "handle": "@max_m", "chill_minutes": 75,
     "is_online": True, "last_seen": "Online", "mutual_friends": 8},
    {"name": "Lisa Weber", "handle": "@lisa_w", "chill_minutes": 120,
     "is_online": False, "last_seen": "2h ago", "mutual_friends": 3},
    {"name": "Tom Fischer", "handle": "@tom_f", "chill_minutes": 45,
     "is_online": False, "last_seen": "1d ago", "mutual_friends": 12},
    {"name": "Sarah Klein", "handle": "@sarah_k", "chill_minutes": 60,
     "is_online": True, "last_seen": "Online", "mutual_friends": 6},
]


def weekly_challenges() -> list[Challenge]:
    """Fresh copies of the weekly template, progress at zero."""
    return [Challenge(**entry) for entry in WEEKLY_CHALLENGE_TEMPLATE]


def demo_roster() -> list[Friend]:
    """Fresh demo friends with new IDs."""
    return [Friend(**entry) for entry in DEMO_ROSTER]
