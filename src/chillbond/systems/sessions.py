"""
Chill session lifecycle.

State machine for the single session slot:

    NONE --start_session--> ACTIVE --end_session--> NONE

record_tick() is only valid while ACTIVE. Anything else raises
InvalidOperation before touching state.

Elapsed time comes from the caller (a UI timer, a script, a test), either
one tick per minute or as final values passed to end_session().
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from ..errors import InvalidOperation
from ..rules.progression import points_for_minutes
from ..state.event_bus import EventType
from ..state.schema import ChillSession

if TYPE_CHECKING:
    from ..state.manager import ProgressionEngine

logger = logging.getLogger(__name__)


class SessionSystem:
    """
    Opens and closes chill sessions and fans the results out.

    Closing a non-private session touches, in order: weekly rollover,
    profile totals, each participant's bond minutes, weekly stats, the
    point award path and the challenge tracker.
    """

    def __init__(self, engine: "ProgressionEngine"):
        self.engine = engine

    @property
    def _state(self):
        return self.engine.state

    @property
    def active(self) -> ChillSession | None:
        return self._state.active_session

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_friend(self, friend_id: str) -> bool:
        """Add a roster friend to the working set. False if already selected."""
        if self._state.roster.get(friend_id) is None:
            raise InvalidOperation("select friend", f"unknown friend '{friend_id}'")
        if friend_id in self._state.selected_friends:
            return False
        self._state.selected_friends.append(friend_id)
        return True

    def deselect_friend(self, friend_id: str) -> bool:
        if friend_id not in self._state.selected_friends:
            return False
        self._state.selected_friends.remove(friend_id)
        return True

    def clear_selection(self) -> None:
        self._state.selected_friends.clear()

    def selected_friends_label(self) -> str:
        """
        First names of the selected friends for display.

        "nobody", "Anna", "Anna & Max", "Anna, Max & Lisa"
        """
        names = []
        for friend_id in self._state.selected_friends:
            friend = self._state.roster.get(friend_id)
            if friend:
                names.append(friend.first_name)

        if not names:
            return "nobody"
        if len(names) == 1:
            return names[0]
        return f"{', '.join(names[:-1])} & {names[-1]}"

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_session(
        self,
        participant_ids: Iterable[str] | None = None,
        is_private: bool | None = None,
    ) -> str:
        """
        Open a session.

        Args:
            participant_ids: Friends taking part; defaults to the selection
            is_private: Defaults to the global privacy mode

        Returns:
            The new session's ID

        Raises:
            InvalidOperation: If a session is active, no participants were
                given, or a participant is not on the roster
        """
        if self.active is not None:
            raise InvalidOperation(
                "start session", f"session {self.active.id} is already active"
            )

        if participant_ids is None:
            participant_ids = self._state.selected_friends
        elif isinstance(participant_ids, str):
            raise InvalidOperation(
                "start session", "participant_ids must be a list of friend IDs, not a string"
            )
        ids = list(dict.fromkeys(participant_ids))
        if not ids:
            raise InvalidOperation("start session", "no participants")

        roster = self._state.roster
        unknown = [fid for fid in ids if roster.get(fid) is None]
        if unknown:
            raise InvalidOperation(
                "start session", f"unknown friend(s): {', '.join(unknown)}"
            )

        if is_private is None:
            is_private = self._state.settings.privacy_mode

        session = ChillSession(
            friend_ids=tuple(ids),
            friend_names=tuple(roster.get(fid).name for fid in ids),
            start_time=self.engine.clock.now(),
            is_private=is_private,
        )
        self._state.active_session = session

        logger.info(
            f"Session {session.id} started with {len(ids)} friend(s)"
            + (" (private)" if is_private else "")
        )
        self.engine.emit(
            EventType.SESSION_STARTED,
            session_id=session.id,
            friend_ids=list(session.friend_ids),
            is_private=is_private,
        )
        return session.id

    def record_tick(self) -> int:
        """
        Count one elapsed minute.

        Only the session's running counters move; totals are untouched
        until end_session().

        Returns:
            Points earned for this minute

        Raises:
            InvalidOperation: If no session is active
        """
        session = self.active
        if session is None:
            raise InvalidOperation("record tick", "no active session")

        points = points_for_minutes(1, self.engine.policy, private=session.is_private)
        session.duration_minutes += 1
        session.points_earned += points
        return points

    def end_session(
        self,
        final_duration_minutes: int | None = None,
        final_points: int | None = None,
    ) -> ChillSession:
        """
        Close the active session and apply its results.

        Args:
            final_duration_minutes: Measured duration; defaults to ticked minutes
            final_points: Points earned; defaults to ticked points

        Returns:
            The closed session (no longer held by the engine)

        Raises:
            InvalidOperation: If no session is active or a final value is negative
        """
        session = self.active
        if session is None:
            raise InvalidOperation("end session", "no active session")

        duration = session.duration_minutes if final_duration_minutes is None else final_duration_minutes
        points = session.points_earned if final_points is None else final_points
        if duration < 0 or points < 0:
            raise InvalidOperation(
                "end session",
                f"duration and points must be >= 0, got {duration} and {points}",
            )

        session.end_time = self.engine.clock.now()
        session.duration_minutes = duration
        session.points_earned = points

        # The slot is cleared whatever happens next
        self._state.active_session = None
        self._state.selected_friends.clear()

        # Privacy mode switched on mid-session makes the whole session private
        if self._state.settings.privacy_mode:
            session.is_private = True

        if session.is_private:
            logger.info(f"Private session {session.id} closed, nothing recorded")
        else:
            self._apply(session)
            logger.info(
                f"Session {session.id} ended: {duration} min, {points} pts"
            )

        self.engine.emit(
            EventType.SESSION_ENDED,
            session_id=session.id,
            duration_minutes=duration,
            points_earned=points,
            is_private=session.is_private,
        )
        return session

    def _apply(self, session: ChillSession) -> None:
        """Fan a finished session out to every counter it feeds."""
        state = self._state
        duration = session.duration_minutes

        self.engine.weekly.ensure_current_week()

        state.profile.total_chill_minutes += duration
        state.profile.total_sessions += 1

        for friend_id in session.friend_ids:
            friend = state.roster.get(friend_id)
            if friend is None:
                logger.warning(f"Session friend {friend_id} is no longer on the roster")
                continue
            friend.chill_minutes += duration

        stats = state.weekly_stats
        stats.sessions_count += 1
        stats.total_minutes += duration
        stats.unique_friends.update(session.friend_ids)

        result = self.engine.points.award_points(session.points_earned)
        if result.applied:
            stats.points_earned += result.amount
        self.engine.challenges.recompute()
