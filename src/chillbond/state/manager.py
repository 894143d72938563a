"""
Progression engine: the single owner of chillbond state.

Handles load, save, reset and every mutating operation. Domain logic lives
in the systems package; the engine wires them to the clock, the event
sink and the store, and saves after each change.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable

from ..errors import InvalidOperation, PersistenceWarning
from ..rules.progression import PointPolicy
from .clock import Clock, SystemClock
from .event_bus import EventBus, EventSink, EventType, ProgressEvent
from .schema import (
    ChillSession,
    EngineState,
    Friend,
    UserProfile,
    WeeklyStats,
)
from .store import KeyValueStore, MemoryKeyValueStore, StateRepository
from .templates import demo_roster

logger = logging.getLogger(__name__)


class ProgressionEngine:
    """
    Owns points, friends, sessions, weekly stats and challenges.

    Collaborators are injected:
    - store: KeyValueStore the state is persisted to
    - clock: time source and week convention
    - sink: receives ProgressEvents (defaults to a private EventBus)
    - policy: PointPolicy for ticked session minutes

    Single caller at a time. Wrap it in a lock if threads share it.

    Typical flow:
    - load() -> restore state, roll the week, seed friends
    - start_session(ids) / record_tick() / end_session()
    - award_points(n)
    - save() happens after every change while autosave is on
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        clock: Clock | None = None,
        sink: EventSink | None = None,
        policy: PointPolicy | None = None,
        autosave: bool = True,
        seed_roster: bool = True,
        username: str | None = None,
    ):
        """
        Initialize with collaborators.

        Args:
            store: Blob store, in-memory if omitted
            clock: Time source, SystemClock if omitted
            sink: Event sink, a fresh EventBus if omitted
            policy: Point-rate policy, PointPolicy() if omitted
            autosave: Save after every mutating operation
            seed_roster: Add demo friends on load when the roster is empty
            username: Display name for a profile that was never stored
        """
        self.username = username
        self.store = store if store is not None else MemoryKeyValueStore()
        self.repository = StateRepository(self.store)
        self.clock = clock or SystemClock()
        self.sink = sink if sink is not None else EventBus()
        self.policy = policy or PointPolicy()
        self.autosave = autosave
        self.seed_roster = seed_roster

        self.persistence_warnings: list[PersistenceWarning] = []
        self.state = self._default_state()

        # Systems (lazily initialized)
        self._sessions = None
        self._points = None
        self._weekly = None
        self._challenges = None

    def _default_profile(self) -> UserProfile:
        profile = UserProfile(join_date=self.clock.now())
        if self.username:
            profile.username = self.username
        return profile

    def _default_state(self) -> EngineState:
        return EngineState(
            weekly_stats=WeeklyStats(week_start=self.clock.start_of_week(self.clock.now())),
            profile=self._default_profile(),
        )

    # -------------------------------------------------------------------------
    # Systems
    # -------------------------------------------------------------------------

    @property
    def sessions(self):
        """Get the session system (lazy initialization)."""
        if self._sessions is None:
            from ..systems.sessions import SessionSystem
            self._sessions = SessionSystem(self)
        return self._sessions

    @property
    def points(self):
        """Get the point award system (lazy initialization)."""
        if self._points is None:
            from ..systems.points import PointSystem
            self._points = PointSystem(self)
        return self._points

    @property
    def weekly(self):
        """Get the weekly rollover controller (lazy initialization)."""
        if self._weekly is None:
            from ..systems.weekly import WeeklyRollover
            self._weekly = WeeklyRollover(self)
        return self._weekly

    @property
    def challenges(self):
        """Get the challenge tracker (lazy initialization)."""
        if self._challenges is None:
            from ..systems.challenges import ChallengeTracker
            self._challenges = ChallengeTracker(self)
        return self._challenges

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def emit(self, event_type: EventType, **data) -> ProgressEvent:
        """
        Hand an event to the sink.

        Fire and forget: a failing sink is logged and never undoes the
        change that produced the event.
        """
        event = ProgressEvent(type=event_type, data=data, timestamp=self.clock.now())
        try:
            self.sink.notify(event)
        except Exception as e:
            logger.warning(f"Event sink failed on {event_type.value}: {e}")
        return event

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> EngineState:
        """
        Restore state from the store.

        Missing or corrupt collections come back as defaults. The week is
        rolled forward and the demo roster seeded if needed.
        """
        self.state = self.repository.load(
            self.clock.start_of_week(self.clock.now()),
            default_profile=self._default_profile(),
        )
        changed = False

        if self.seed_roster and len(self.state.roster) == 0:
            for friend in demo_roster():
                self.state.roster.add(friend)
            logger.info(f"Seeded roster with {len(self.state.roster)} friends")
            changed = True

        if self.weekly.ensure_current_week():
            changed = True

        self.emit(
            EventType.STATE_LOADED,
            friends=len(self.state.roster),
            total_points=self.state.total_points,
            active_session=self.state.active_session is not None,
        )

        if changed:
            self._autosave()
        return self.state

    def save(self) -> bool:
        """
        Persist current state. Best effort, never raises.

        Returns:
            True if every collection was written
        """
        warnings = self.repository.save(self.state)
        for warning in warnings:
            logger.warning(str(warning))
        self.persistence_warnings.extend(warnings)

        if warnings:
            return False
        self.emit(EventType.STATE_SAVED, keys=len(StateRepository.KEYS))
        return True

    def _autosave(self) -> None:
        if self.autosave:
            self.save()

    def reset(self) -> EngineState:
        """Forget everything: delete stored data and start from defaults."""
        warnings = self.repository.clear()
        for warning in warnings:
            logger.warning(str(warning))
        self.persistence_warnings.extend(warnings)

        self.state = self._default_state()
        logger.info("All progression data reset")
        return self.load()

    def snapshot(self) -> EngineState:
        """Deep copy of the current state, safe to hand to readers."""
        self.ensure_current_week()
        return self.state.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Weekly cycle
    # -------------------------------------------------------------------------

    def ensure_current_week(self) -> bool:
        """Roll the week forward if needed. Call on app foregrounding."""
        changed = self.weekly.ensure_current_week()
        if changed:
            self._autosave()
        return changed

    # -------------------------------------------------------------------------
    # Friends
    # -------------------------------------------------------------------------

    def add_friend(
        self,
        name: str,
        handle: str = "",
        is_online: bool = False,
        last_seen: str = "",
        mutual_friends: int = 0,
    ) -> Friend:
        """Add a new friend to the roster with no shared minutes."""
        if not name.strip():
            raise InvalidOperation("add friend", "name is empty")

        friend = Friend(
            name=name.strip(),
            handle=handle,
            is_online=is_online,
            last_seen=last_seen,
            mutual_friends=mutual_friends,
        )
        self.state.roster.add(friend)
        self._autosave()
        return friend

    def get_friend(self, friend_id: str) -> Friend | None:
        return self.state.roster.get(friend_id)

    def find_friend(self, query: str) -> Friend | None:
        """
        Find a friend by ID, ID prefix, handle or name (case-insensitive).

        Exact matches win over prefixes.
        """
        friend = self.state.roster.get(query)
        if friend:
            return friend

        q = query.lower().lstrip("@")
        friends = self.state.roster.friends
        for f in friends:
            if f.handle.lower().lstrip("@") == q or f.name.lower() == q:
                return f
        for f in friends:
            if f.id.startswith(query) or f.first_name.lower() == q:
                return f
        return None

    def friends_ranking(self) -> list[Friend]:
        return self.state.roster.ranking()

    def top_friend(self) -> Friend | None:
        return self.state.roster.top_friend()

    def select_friend(self, friend_id: str) -> bool:
        selected = self.sessions.select_friend(friend_id)
        self._autosave()
        return selected

    def deselect_friend(self, friend_id: str) -> bool:
        removed = self.sessions.deselect_friend(friend_id)
        self._autosave()
        return removed

    def clear_selection(self) -> None:
        self.sessions.clear_selection()
        self._autosave()

    def selected_friends_label(self) -> str:
        return self.sessions.selected_friends_label()

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    @property
    def active_session(self) -> ChillSession | None:
        return self.state.active_session

    @property
    def is_chilling(self) -> bool:
        return self.state.active_session is not None

    def start_session(
        self,
        participant_ids: Iterable[str] | None = None,
        is_private: bool | None = None,
    ) -> str:
        """Open a session. See SessionSystem.start_session."""
        session_id = self.sessions.start_session(participant_ids, is_private)
        self._autosave()
        return session_id

    def record_tick(self) -> int:
        """Count one elapsed minute of the active session."""
        points = self.sessions.record_tick()
        self._autosave()
        return points

    def end_session(
        self,
        final_duration_minutes: int | None = None,
        final_points: int | None = None,
    ) -> ChillSession:
        """Close the active session. See SessionSystem.end_session."""
        session = self.sessions.end_session(final_duration_minutes, final_points)
        self._autosave()
        return session

    # -------------------------------------------------------------------------
    # Points & Settings
    # -------------------------------------------------------------------------

    def award_points(self, amount: int):
        """Award points outside a session (quick actions, bonuses)."""
        result = self.points.award_points(amount)
        if result.applied:
            self._autosave()
        return result

    def set_privacy_mode(self, enabled: bool) -> None:
        self.state.settings.privacy_mode = enabled
        logger.info(f"Privacy mode {'on' if enabled else 'off'}")
        self._autosave()

    def set_points_sound(self, enabled: bool) -> None:
        self.state.settings.points_sound_enabled = enabled
        self._autosave()

    def set_username(self, username: str) -> None:
        if not username.strip():
            raise InvalidOperation("set username", "name is empty")
        self.state.profile.username = username.strip()
        self._autosave()

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def _format_relative_time(self, dt: datetime) -> str:
        """Format timestamp as relative time (Today, Yesterday, etc.)."""
        now = self.clock.now()
        diff = now - dt

        if diff < timedelta(days=1) and dt.date() == now.date():
            return "Today"
        elif diff < timedelta(days=2) and (now.date() - dt.date()).days == 1:
            return "Yesterday"
        elif diff < timedelta(days=7):
            return dt.strftime("%A")  # Weekday name
        else:
            return dt.strftime("%b %d")  # "Jan 04"

    def get_summary(self) -> str:
        """Generate a brief summary of current progression state."""
        self.ensure_current_week()
        s = self.state
        p = s.profile
        w = s.weekly_stats
        lines = [
            f"User: {p.username} | Level {p.level} ({p.level_title})",
            f"Points: {s.total_points} | Sessions: {p.total_sessions} | Minutes: {p.total_chill_minutes}",
            f"Friends: {len(s.roster)} | Selected: {self.selected_friends_label()}",
            f"This week: {w.sessions_count} sessions, {w.total_minutes} min, "
            f"{w.unique_friends_count} friends",
            f"Challenges: {len(s.challenges.completed())}/{len(s.challenges)} complete",
        ]

        if s.active_session:
            started = self._format_relative_time(s.active_session.start_time)
            lines.append(
                f"Chilling with {', '.join(s.active_session.friend_names)} "
                f"(started {started}, {s.active_session.duration_minutes} min)"
            )
        if s.settings.privacy_mode:
            lines.append("Privacy mode: on")

        return "\n".join(lines)
