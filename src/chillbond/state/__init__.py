"""State management for chillbond progression."""

from .schema import (
    ChallengeType,
    Challenge,
    ChallengeBoard,
    ChillSession,
    EngineState,
    Friend,
    FriendRoster,
    Settings,
    UserProfile,
    WeeklyStats,
)
from .clock import Clock, SystemClock, FixedClock
from .manager import ProgressionEngine
from .store import (
    KeyValueStore,
    FileKeyValueStore,
    MemoryKeyValueStore,
    StateRepository,
)
from .event_bus import (
    EventBus,
    EventSink,
    EventType,
    ProgressEvent,
)

__all__ = [
    # Schema
    "ChallengeType",
    "Challenge",
    "ChallengeBoard",
    "ChillSession",
    "EngineState",
    "Friend",
    "FriendRoster",
    "Settings",
    "UserProfile",
    "WeeklyStats",
    # Clock
    "Clock",
    "SystemClock",
    "FixedClock",
    # Engine
    "ProgressionEngine",
    # Store
    "KeyValueStore",
    "FileKeyValueStore",
    "MemoryKeyValueStore",
    "StateRepository",
    # Event Bus
    "EventBus",
    "EventSink",
    "EventType",
    "ProgressEvent",
]
