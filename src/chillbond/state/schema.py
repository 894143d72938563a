"""
Pydantic models for chillbond progression state.

Designed to serialize to JSON but structured like database tables.
Derived values (levels, titles, completion) are properties, never stored.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator

from ..rules.progression import (
    bond_level_for_minutes,
    bond_title_for_level,
    level_for_points,
    level_title_for_level,
)


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class ChallengeType(str, Enum):
    """Which weekly fact drives a challenge's progress."""
    DIFFERENT_FRIENDS = "different_friends"
    TOTAL_MINUTES = "total_minutes"
    SESSIONS = "sessions"
    BOND_LEVEL = "bond_level"


# -----------------------------------------------------------------------------
# Core Models
# -----------------------------------------------------------------------------

def generate_id() -> str:
    return str(uuid4())[:8]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Friend(BaseModel):
    """A friend on the roster, with a bond that grows with shared minutes."""
    id: str = Field(default_factory=generate_id)
    name: str
    handle: str = ""
    chill_minutes: int = Field(default=0, ge=0)  # Only ever grows
    is_online: bool = False
    last_seen: str = ""                          # Display label: "Online", "2h ago"
    mutual_friends: int = 0

    @property
    def bond_level(self) -> int:
        return bond_level_for_minutes(self.chill_minutes)

    @property
    def bond_title(self) -> str:
        return bond_title_for_level(self.bond_level)

    @property
    def first_name(self) -> str:
        parts = self.name.split()
        return parts[0] if parts else self.name

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.name.split())


class FriendRoster(BaseModel):
    """All friends, in insertion order."""
    friends: list[Friend] = Field(default_factory=list)

    def get(self, friend_id: str) -> Friend | None:
        """Find friend by ID."""
        for friend in self.friends:
            if friend.id == friend_id:
                return friend
        return None

    def add(self, friend: Friend) -> bool:
        """Add a friend unless one with the same ID exists."""
        if self.get(friend.id):
            return False
        self.friends.append(friend)
        return True

    def ranking(self) -> list[Friend]:
        """Friends by shared minutes, most first. Ties keep roster order."""
        return sorted(self.friends, key=lambda f: f.chill_minutes, reverse=True)

    def top_friend(self) -> Friend | None:
        ranked = self.ranking()
        return ranked[0] if ranked else None

    def __len__(self) -> int:
        return len(self.friends)


class ChillSession(BaseModel):
    """
    A timed session with one or more friends.

    Participants are fixed at creation. The session is active until
    end_time is set; the engine discards it right after closing.
    """
    id: str = Field(default_factory=generate_id)
    friend_ids: tuple[str, ...] = Field(min_length=1)
    friend_names: tuple[str, ...] = ()
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: int = Field(default=0, ge=0)
    points_earned: int = Field(default=0, ge=0)
    is_private: bool = False

    @field_validator("friend_ids")
    @classmethod
    def _dedupe(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value))

    @property
    def is_active(self) -> bool:
        return self.end_time is None


class Challenge(BaseModel):
    """A weekly goal whose progress is projected from WeeklyStats."""
    id: str = Field(default_factory=generate_id)
    title: str
    description: str = ""
    target: int = Field(gt=0)
    progress: int = Field(default=0, ge=0)  # Uncapped; clamped only for display
    icon: str = ""
    color: str = "purple"
    type: ChallengeType

    @property
    def is_completed(self) -> bool:
        return self.progress >= self.target

    @property
    def progress_percentage(self) -> float:
        return min(1.0, self.progress / self.target)


class ChallengeBoard(BaseModel):
    """The current week's challenges."""
    challenges: list[Challenge] = Field(default_factory=list)

    def get(self, challenge_id: str) -> Challenge | None:
        for challenge in self.challenges:
            if challenge.id == challenge_id:
                return challenge
        return None

    def completed(self) -> list[Challenge]:
        return [c for c in self.challenges if c.is_completed]

    def __len__(self) -> int:
        return len(self.challenges)


class WeeklyStats(BaseModel):
    """Rolling counters for the current week. Replaced wholesale on rollover."""
    week_start: datetime
    sessions_count: int = 0
    total_minutes: int = 0
    unique_friends: set[str] = Field(default_factory=set)
    points_earned: int = 0

    @field_serializer("unique_friends")
    def _serialize_friends(self, value: set[str]) -> list[str]:
        # Sorted so equal stats always encode to identical bytes
        return sorted(value)

    @property
    def unique_friends_count(self) -> int:
        return len(self.unique_friends)


class UserProfile(BaseModel):
    """The user's lifetime totals."""
    username: str = "Chiller"
    total_points: int = 0         # Mirror of EngineState.total_points
    total_chill_minutes: int = 0
    total_sessions: int = 0
    join_date: datetime = Field(default_factory=utcnow)

    @property
    def level(self) -> int:
        return level_for_points(self.total_points)

    @property
    def level_title(self) -> str:
        return level_title_for_level(self.level)


class Settings(BaseModel):
    """User toggles that affect accrual or presentation."""
    privacy_mode: bool = False
    points_sound_enabled: bool = True


class EngineState(BaseModel):
    """
    Complete progression state.

    Each collection is persisted under its own key; this root model exists
    so the whole state can be compared, copied and handed out as a snapshot.
    """
    roster: FriendRoster = Field(default_factory=FriendRoster)
    challenges: ChallengeBoard = Field(default_factory=ChallengeBoard)
    weekly_stats: WeeklyStats
    profile: UserProfile = Field(default_factory=UserProfile)
    total_points: int = 0         # Authoritative points counter
    settings: Settings = Field(default_factory=Settings)
    active_session: ChillSession | None = None
    selected_friends: list[str] = Field(default_factory=list)
