"""
Progression storage abstraction.

Separates persistence from domain logic for testability. The engine only
needs a key-value blob store; StateRepository maps each state collection
to its own key and handles encoding.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from ..errors import PersistenceWarning
from .schema import (
    ChallengeBoard,
    ChillSession,
    EngineState,
    FriendRoster,
    Settings,
    UserProfile,
    WeeklyStats,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Abstract blob storage.

    Implementations:
    - FileKeyValueStore: one JSON file per key (production)
    - MemoryKeyValueStore: in-memory dict (testing)
    """

    def get(self, key: str) -> bytes | None:
        """Return the stored blob, or None if absent."""
        ...

    def set(self, key: str, value: bytes) -> None:
        """Store a blob, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. Absent keys are ignored."""
        ...


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileKeyValueStore:
    """
    File-based blob storage.

    Features:
    - One <key>.json file per key
    - Previous value kept as <key>.json.bak on overwrite
    """

    def __init__(self, data_dir: Path | str = "chillbond_data"):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)

        # Backup previous save
        if path.exists():
            backup = path.with_suffix(".json.bak")
            backup.write_bytes(path.read_bytes())

        path.write_bytes(value)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        # Skip non-state files stored alongside (config)
        return sorted(
            p.stem for p in self.data_dir.glob("*.json")
            if not p.name.startswith(".")
        )


class MemoryKeyValueStore:
    """
    In-memory blob storage for testing.

    No file I/O - all data lives in memory.
    """

    def __init__(self):
        self.data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self.data)

    def clear(self) -> None:
        """Clear all keys (test utility)."""
        self.data.clear()


# -----------------------------------------------------------------------------
# State Repository
# -----------------------------------------------------------------------------


class StateRepository:
    """
    Reads and writes EngineState one collection at a time.

    Loading never fails: a missing or unreadable blob falls back to that
    collection's default. Saving never raises: failed keys come back as
    PersistenceWarnings and the caller decides what to do with them.
    """

    FRIENDS = "friends"
    CHALLENGES = "challenges"
    WEEKLY_STATS = "weekly_stats"
    USER_PROFILE = "user_profile"
    TOTAL_POINTS = "total_points"
    SETTINGS = "settings"
    ACTIVE_SESSION = "active_session"
    SELECTED_FRIENDS = "selected_friends"

    KEYS = (
        FRIENDS,
        CHALLENGES,
        WEEKLY_STATS,
        USER_PROFILE,
        TOTAL_POINTS,
        SETTINGS,
        ACTIVE_SESSION,
        SELECTED_FRIENDS,
    )

    def __init__(self, store: KeyValueStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _read(self, key: str) -> bytes | None:
        try:
            return self.store.get(key)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read '{key}', using default: {e}")
            return None

    def _load_model(self, key: str, model: type[M], default: Callable[[], M]) -> M:
        blob = self._read(key)
        if blob is None:
            return default()
        try:
            return model.model_validate_json(blob)
        except ValidationError as e:
            logger.warning(f"Corrupt '{key}' blob, using default: {e.error_count()} error(s)")
            return default()

    def _load_json(self, key: str, check: Callable[[object], bool]):
        blob = self._read(key)
        if blob is None:
            return None
        try:
            value = json.loads(blob)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Corrupt '{key}' blob, using default: {e}")
            return None
        if not check(value):
            logger.warning(f"Unexpected '{key}' value, using default")
            return None
        return value

    def load(
        self,
        week_start: datetime,
        default_profile: UserProfile | None = None,
    ) -> EngineState:
        """
        Load every collection.

        Args:
            week_start: Week start to use if no weekly stats are stored
            default_profile: Profile to use if none is stored

        Returns:
            The assembled state, with defaults for anything missing
        """
        profile = self._load_model(
            self.USER_PROFILE,
            UserProfile,
            lambda: default_profile.model_copy() if default_profile else UserProfile(),
        )

        total_points = self._load_json(
            self.TOTAL_POINTS,
            lambda v: isinstance(v, int) and not isinstance(v, bool) and v >= 0,
        )
        if total_points is None:
            total_points = profile.total_points

        active = None
        blob = self._read(self.ACTIVE_SESSION)
        if blob is not None:
            try:
                active = ChillSession.model_validate_json(blob)
            except ValidationError:
                logger.warning("Corrupt 'active_session' blob, dropping it")

        selected = self._load_json(
            self.SELECTED_FRIENDS,
            lambda v: isinstance(v, list) and all(isinstance(i, str) for i in v),
        ) or []

        state = EngineState(
            roster=self._load_model(self.FRIENDS, FriendRoster, FriendRoster),
            challenges=self._load_model(self.CHALLENGES, ChallengeBoard, ChallengeBoard),
            weekly_stats=self._load_model(
                self.WEEKLY_STATS,
                WeeklyStats,
                lambda: WeeklyStats(week_start=week_start),
            ),
            profile=profile,
            total_points=total_points,
            settings=self._load_model(self.SETTINGS, Settings, Settings),
            active_session=active,
            selected_friends=selected,
        )
        # The counter is authoritative; the profile only mirrors it
        state.profile.total_points = state.total_points
        return state

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def encode(self, state: EngineState) -> dict[str, bytes | None]:
        """Encode each collection. None means the key should be deleted."""
        return {
            self.FRIENDS: state.roster.model_dump_json().encode(),
            self.CHALLENGES: state.challenges.model_dump_json().encode(),
            self.WEEKLY_STATS: state.weekly_stats.model_dump_json().encode(),
            self.USER_PROFILE: state.profile.model_dump_json().encode(),
            self.TOTAL_POINTS: json.dumps(state.total_points).encode(),
            self.SETTINGS: state.settings.model_dump_json().encode(),
            self.ACTIVE_SESSION: (
                state.active_session.model_dump_json().encode()
                if state.active_session else None
            ),
            self.SELECTED_FRIENDS: json.dumps(state.selected_friends).encode(),
        }

    def save(self, state: EngineState) -> list[PersistenceWarning]:
        """
        Write every collection. Keeps going past failures.

        Returns:
            One PersistenceWarning per key that could not be written
        """
        warnings = []
        for key, blob in self.encode(state).items():
            try:
                if blob is None:
                    self.store.delete(key)
                else:
                    self.store.set(key, blob)
            except (OSError, ValueError) as e:
                warnings.append(PersistenceWarning(key, e))
        return warnings

    def clear(self) -> list[PersistenceWarning]:
        """Delete every key this repository owns."""
        warnings = []
        for key in self.KEYS:
            try:
                self.store.delete(key)
            except (OSError, ValueError) as e:
                warnings.append(PersistenceWarning(key, e))
        return warnings
