"""
Pytest fixtures for chillbond tests.

Provides in-memory stores, a hand-stepped clock and a recording event bus
for isolated testing.
"""

import pytest

from chillbond.state import (
    EventBus,
    EventType,
    FixedClock,
    MemoryKeyValueStore,
    ProgressionEngine,
)


# Emitted on every autosave/load; most tests only care about the rest
BOOKKEEPING = {EventType.STATE_SAVED, EventType.STATE_LOADED}


def domain_events(bus: EventBus) -> list:
    """Bus history minus persistence bookkeeping."""
    return [e for e in bus.get_history() if e.type not in BOOKKEEPING]


class FailingStore:
    """Store whose writes always fail; reads see nothing."""

    def get(self, key: str) -> bytes | None:
        return None

    def set(self, key: str, value: bytes) -> None:
        raise OSError("disk full")

    def delete(self, key: str) -> None:
        raise OSError("read-only filesystem")


class ExplodingSink:
    """Event sink that raises on every event."""

    def __init__(self):
        self.calls = 0

    def notify(self, event) -> None:
        self.calls += 1
        raise RuntimeError("sink is broken")


@pytest.fixture
def memory_store():
    """In-memory blob store for testing."""
    return MemoryKeyValueStore()


@pytest.fixture
def clock():
    """Clock fixed at Wednesday 2024-01-03 12:00 UTC."""
    return FixedClock()


@pytest.fixture
def bus():
    """Event bus with a large enough history for a whole test."""
    return EventBus(history_limit=500)


@pytest.fixture
def engine(memory_store, clock, bus):
    """Loaded engine with the demo roster and a clean event history."""
    engine = ProgressionEngine(store=memory_store, clock=clock, sink=bus)
    engine.load()
    bus.clear_history()
    return engine


@pytest.fixture
def empty_engine(memory_store, clock, bus):
    """Loaded engine with no friends."""
    engine = ProgressionEngine(
        store=memory_store, clock=clock, sink=bus, seed_roster=False
    )
    engine.load()
    bus.clear_history()
    return engine


@pytest.fixture
def anna(engine):
    return engine.find_friend("anna")


@pytest.fixture
def max_(engine):
    return engine.find_friend("max")


@pytest.fixture
def engine_with_session(engine, anna, max_):
    """Engine with a running session with Anna and Max."""
    engine.start_session([anna.id, max_.id])
    engine.sink.clear_history()
    return engine


@pytest.fixture
def events(bus):
    """Callable returning domain events recorded so far."""
    return lambda: domain_events(bus)


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def exploding_sink():
    return ExplodingSink()
