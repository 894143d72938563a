"""
Tests for the state models.

Derived properties and JSON round-trips for each entity.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from chillbond.state import (
    Challenge,
    ChallengeBoard,
    ChallengeType,
    ChillSession,
    EngineState,
    Friend,
    FriendRoster,
    Settings,
    UserProfile,
    WeeklyStats,
)

WEEK = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestFriend:
    """Bond level and display helpers."""

    def test_bond_from_minutes(self):
        friend = Friend(name="Lisa Weber", chill_minutes=120)
        assert friend.bond_level == 4
        assert friend.bond_title == "Friends"

    def test_new_friend_is_acquaintance(self):
        friend = Friend(name="Tom")
        assert friend.bond_level == 1
        assert friend.bond_title == "Acquaintance"

    def test_names(self):
        friend = Friend(name="Anna Maria Schmidt")
        assert friend.first_name == "Anna"
        assert friend.initials == "AMS"

    def test_minutes_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            Friend(name="Max", chill_minutes=-5)


class TestFriendRoster:
    """Lookup and ranking."""

    def test_add_rejects_duplicate_id(self):
        roster = FriendRoster()
        friend = Friend(name="Anna")
        assert roster.add(friend)
        assert not roster.add(Friend(id=friend.id, name="Other"))
        assert len(roster) == 1

    def test_ranking_by_minutes_stable(self):
        roster = FriendRoster(friends=[
            Friend(name="A", chill_minutes=10),
            Friend(name="B", chill_minutes=50),
            Friend(name="C", chill_minutes=10),
        ])
        assert [f.name for f in roster.ranking()] == ["B", "A", "C"]
        assert roster.top_friend().name == "B"

    def test_empty_roster_has_no_top_friend(self):
        assert FriendRoster().top_friend() is None


class TestChillSession:
    """Session invariants."""

    def test_needs_a_participant(self):
        with pytest.raises(ValidationError):
            ChillSession(friend_ids=(), start_time=WEEK)

    def test_participants_deduplicated(self):
        session = ChillSession(friend_ids=("a", "b", "a"), start_time=WEEK)
        assert session.friend_ids == ("a", "b")

    def test_active_until_ended(self):
        session = ChillSession(friend_ids=("a",), start_time=WEEK)
        assert session.is_active
        session.end_time = WEEK
        assert not session.is_active


class TestChallenge:
    """Completion and display ratio."""

    def test_completion(self):
        challenge = Challenge(title="x", target=3, type=ChallengeType.SESSIONS, progress=2)
        assert not challenge.is_completed
        challenge.progress = 3
        assert challenge.is_completed

    def test_percentage_clamped(self):
        challenge = Challenge(title="x", target=4, type=ChallengeType.SESSIONS, progress=10)
        assert challenge.progress_percentage == 1.0
        challenge.progress = 1
        assert challenge.progress_percentage == 0.25

    def test_target_must_be_positive(self):
        with pytest.raises(ValidationError):
            Challenge(title="x", target=0, type=ChallengeType.SESSIONS)


class TestUserProfile:
    def test_level_from_points(self):
        profile = UserProfile(total_points=620)
        assert profile.level == 6
        assert profile.level_title == "Social Explorer"

    def test_defaults(self):
        profile = UserProfile()
        assert profile.username == "Chiller"
        assert profile.level == 1
        assert profile.join_date.tzinfo is not None


class TestSerialization:
    """JSON round-trips reproduce equal values."""

    def test_friend_roster(self):
        roster = FriendRoster(friends=[
            Friend(name="Anna", handle="@a", chill_minutes=90, is_online=True),
            Friend(name="Max", mutual_friends=3),
        ])
        assert FriendRoster.model_validate_json(roster.model_dump_json()) == roster

    def test_session(self):
        session = ChillSession(
            friend_ids=("a", "b"),
            friend_names=("Anna", "Max"),
            start_time=datetime(2024, 1, 3, 12, 0, 0, 123456, tzinfo=timezone.utc),
            duration_minutes=12,
            points_earned=12,
            is_private=True,
        )
        assert ChillSession.model_validate_json(session.model_dump_json()) == session

    def test_challenge_board(self):
        board = ChallengeBoard(challenges=[
            Challenge(title="Deep", target=5, progress=2, type=ChallengeType.BOND_LEVEL),
        ])
        assert ChallengeBoard.model_validate_json(board.model_dump_json()) == board

    def test_weekly_stats_friend_set_sorted(self):
        stats = WeeklyStats(week_start=WEEK, unique_friends={"z", "a", "m"})
        encoded = stats.model_dump_json()

        assert '"unique_friends":["a","m","z"]' in encoded
        assert WeeklyStats.model_validate_json(encoded) == stats

    def test_weekly_stats_encoding_is_stable(self):
        one = WeeklyStats(week_start=WEEK, unique_friends={"b", "a"})
        two = WeeklyStats(week_start=WEEK, unique_friends={"a", "b"})
        assert one.model_dump_json() == two.model_dump_json()

    def test_profile_and_settings(self):
        profile = UserProfile(username="Jo", total_points=10, join_date=WEEK)
        settings = Settings(privacy_mode=True, points_sound_enabled=False)

        assert UserProfile.model_validate_json(profile.model_dump_json()) == profile
        assert Settings.model_validate_json(settings.model_dump_json()) == settings

    def test_engine_state(self):
        state = EngineState(
            roster=FriendRoster(friends=[Friend(name="Anna")]),
            weekly_stats=WeeklyStats(week_start=WEEK, unique_friends={"x"}),
            total_points=42,
            active_session=ChillSession(friend_ids=("x",), start_time=WEEK),
            selected_friends=["x"],
        )
        assert EngineState.model_validate_json(state.model_dump_json()) == state
