"""chillbond - points, friend bonds, chill sessions and weekly challenges."""

from .errors import EngineError, InvalidOperation, PersistenceWarning
from .rules import PointPolicy
from .state import (
    EventBus,
    EventType,
    FileKeyValueStore,
    MemoryKeyValueStore,
    ProgressionEngine,
    ProgressEvent,
    SystemClock,
)

__version__ = "0.1.0"

__all__ = [
    "EngineError",
    "InvalidOperation",
    "PersistenceWarning",
    "PointPolicy",
    "EventBus",
    "EventType",
    "FileKeyValueStore",
    "MemoryKeyValueStore",
    "ProgressionEngine",
    "ProgressEvent",
    "SystemClock",
]
