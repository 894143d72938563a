"""
Event bus for chillbond progression events.

The engine never calls into animation, sound or archiving code directly.
It hands typed events to a sink; whoever listens decides what to do.

Usage:
    from .event_bus import EventBus, EventType

    # Subscribe (typically in the presentation layer)
    bus = EventBus()
    bus.on(EventType.LEVEL_UP, my_handler)

    # The engine notifies the sink when state changes
    engine = ProgressionEngine(store, sink=bus)

    # Called with each LEVEL_UP
    def my_handler(event: ProgressEvent):
        print(f"Reached level {event.data['new_level']}!")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Progression events that can be published."""

    # Points
    POINTS_EARNED = "points.earned"
    LEVEL_UP = "points.level_up"
    ACHIEVEMENT_UNLOCKED = "points.achievement"

    # Sessions
    SESSION_STARTED = "session.started"
    SESSION_ENDED = "session.ended"

    # Weekly cycle
    WEEK_ROLLED_OVER = "week.rolled_over"
    CHALLENGE_COMPLETED = "challenge.completed"

    # Persistence
    STATE_LOADED = "state.loaded"
    STATE_SAVED = "state.saved"


@dataclass
class ProgressEvent:
    """
    Event payload handed to the sink.

    Attributes:
        type: What happened
        data: Payload; keys depend on the type
        timestamp: Engine clock time at emission
    """

    type: EventType
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


# Listeners take the event and return nothing
EventHandler = Callable[[ProgressEvent], None]


@runtime_checkable
class EventSink(Protocol):
    """Anything the engine can hand events to. Must not block."""

    def notify(self, event: ProgressEvent) -> None:
        ...


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on notify(). A failing listener is
    logged and skipped; it never reaches the engine or other listeners.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._catch_all: list[EventHandler] = []
        self._history: list[ProgressEvent] = []
        self._history_limit = history_limit

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Listen for one event type. Subscribing twice is a no-op.

        Args:
            event_type: Event type to listen for
            handler: Callback function that receives ProgressEvent
        """
        listeners = self._listeners.setdefault(event_type, [])
        if handler not in listeners:
            listeners.append(handler)

    def on_any(self, handler: EventHandler) -> None:
        """Subscribe to every event type."""
        if handler not in self._catch_all:
            self._catch_all.append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Stop listening. Unknown handlers are ignored.

        Args:
            event_type: Event type the handler was registered for
            handler: Previously registered callback
        """
        listeners = self._listeners.get(event_type, [])
        if handler in listeners:
            listeners.remove(handler)

    def notify(self, event: ProgressEvent) -> None:
        """Record an event and pass it to every subscriber."""
        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in self._listeners.get(event.type, []) + self._catch_all:
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Error in handler for {event.type.value}: {e}")

    def emit(self, event_type: EventType, **data) -> ProgressEvent:
        """
        Build and publish an event.

        Returns:
            The emitted ProgressEvent (for chaining/testing)
        """
        event = ProgressEvent(type=event_type, data=data)
        self.notify(event)
        return event

    def clear(self) -> None:
        """Drop every listener, typed and catch-all."""
        self._listeners.clear()
        self._catch_all.clear()

    def get_history(self, event_type: EventType | None = None) -> list[ProgressEvent]:
        """
        Events notified so far, up to history_limit.

        Args:
            event_type: Only return this type; None for everything

        Returns:
            List of recent events, oldest first
        """
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def clear_history(self) -> None:
        self._history.clear()

    def listener_count(self, event_type: EventType) -> int:
        """How many typed listeners an event type has (catch-alls excluded)."""
        return len(self._listeners.get(event_type, []))
