"""
Tests for the weekly rollover and the clock's week convention.
"""

from datetime import datetime, timedelta, timezone

from chillbond import ProgressionEngine
from chillbond.state import EventType, FixedClock
from chillbond.state.clock import SystemClock, iso_week_start


class TestWeekConvention:
    """ISO weeks, Monday 00:00 UTC."""

    def test_wednesday_maps_to_monday(self):
        ts = datetime(2024, 1, 3, 12, 30, tzinfo=timezone.utc)
        assert iso_week_start(ts) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_monday_midnight_is_its_own_start(self):
        ts = datetime(2024, 1, 8, tzinfo=timezone.utc)
        assert iso_week_start(ts) == ts

    def test_sunday_night_belongs_to_previous_week(self):
        ts = datetime(2024, 1, 7, 23, 59, tzinfo=timezone.utc)
        assert iso_week_start(ts) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_other_timezones_are_converted(self):
        # Monday 01:00 in UTC+2 is still Sunday in UTC
        tz = timezone(timedelta(hours=2))
        ts = datetime(2024, 1, 8, 1, 0, tzinfo=tz)
        assert iso_week_start(ts) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_naive_treated_as_utc(self):
        assert iso_week_start(datetime(2024, 1, 3)) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_system_clock_is_aware(self):
        assert SystemClock().now().tzinfo is not None

    def test_fixed_clock_moves_only_when_told(self):
        clock = FixedClock()
        first = clock.now()
        assert clock.now() == first
        assert clock.advance(days=1) == first + timedelta(days=1)


class TestRollover:
    """ensure_current_week()"""

    def test_same_week_is_noop(self, engine, events):
        assert not engine.ensure_current_week()
        assert events() == []

    def test_later_same_week_is_noop(self, engine, clock):
        clock.advance(days=4)  # Sunday
        assert not engine.ensure_current_week()

    def test_new_week_resets_stats_and_challenges(self, engine_with_session, clock):
        engine = engine_with_session
        engine.end_session(60, 60)
        assert engine.state.weekly_stats.total_minutes == 60
        assert any(c.progress for c in engine.state.challenges.challenges)
        old_ids = [c.id for c in engine.state.challenges.challenges]

        clock.advance(days=7)
        assert engine.ensure_current_week()

        stats = engine.state.weekly_stats
        assert stats.week_start == datetime(2024, 1, 8, tzinfo=timezone.utc)
        assert stats.sessions_count == 0
        assert stats.total_minutes == 0
        assert stats.unique_friends == set()
        assert stats.points_earned == 0

        challenges = engine.state.challenges.challenges
        assert len(challenges) == 3
        assert all(c.progress == 0 for c in challenges)
        assert [c.id for c in challenges] != old_ids

    def test_lifetime_totals_survive(self, engine_with_session, clock):
        engine = engine_with_session
        engine.end_session(60, 60)

        clock.advance(days=7)
        engine.ensure_current_week()

        assert engine.state.total_points == 60
        assert engine.state.profile.total_chill_minutes == 60

    def test_rollover_event_carries_previous_week(self, engine_with_session, clock, events):
        engine = engine_with_session
        engine.end_session(25, 25)
        engine.sink.clear_history()

        clock.advance(days=7)
        engine.ensure_current_week()

        rolled = [e for e in events() if e.type == EventType.WEEK_ROLLED_OVER]
        assert len(rolled) == 1
        assert rolled[0].data["week_start"] == "2024-01-08T00:00:00+00:00"
        previous = rolled[0].data["previous"]
        assert previous["total_minutes"] == 25
        assert previous["sessions_count"] == 1
        assert len(previous["unique_friends"]) == 2

    def test_second_call_changes_nothing(self, engine, clock, memory_store):
        clock.advance(days=9)
        assert engine.ensure_current_week()
        blobs = dict(memory_store.data)
        before = engine.state.model_dump_json()

        assert not engine.ensure_current_week()

        assert engine.state.model_dump_json() == before
        assert memory_store.data["weekly_stats"] == blobs["weekly_stats"]
        assert memory_store.data["challenges"] == blobs["challenges"]

    def test_staleness(self, engine, clock):
        assert not engine.weekly.is_stale()
        clock.advance(days=5)
        assert engine.weekly.is_stale()
        engine.ensure_current_week()
        assert not engine.weekly.is_stale()

    def test_missing_challenges_are_regenerated(self, engine):
        engine.state.challenges.challenges = []

        assert engine.ensure_current_week()
        assert len(engine.state.challenges) == 3

    def test_load_rolls_stale_week(self, memory_store, clock, bus):
        first = ProgressionEngine(store=memory_store, clock=clock, sink=bus)
        first.load()
        first.award_points(10)

        clock.advance(days=14)
        second = ProgressionEngine(store=memory_store, clock=clock, sink=bus)
        second.load()

        assert second.state.weekly_stats.week_start == clock.start_of_week(clock.now())
        assert second.state.total_points == 10


class TestReadsNeverStale:
    """Readers always see the current week."""

    def test_snapshot_rolls_first(self, engine, anna, clock):
        engine.award_points(10)
        engine.start_session([anna.id])
        engine.end_session(20, 20)

        clock.advance(days=7)
        snap = engine.snapshot()

        assert snap.weekly_stats.week_start == clock.start_of_week(clock.now())
        assert snap.weekly_stats.total_minutes == 0
        assert snap.total_points == 30

    def test_summary_rolls_first(self, engine, anna, clock):
        engine.start_session([anna.id])
        engine.end_session(20, 20)

        clock.advance(days=7)
        summary = engine.get_summary()

        assert "This week: 0 sessions, 0 min, 0 friends" in summary
        assert not engine.weekly.is_stale()

    def test_read_rollover_is_saved(self, engine, clock, memory_store):
        clock.advance(days=7)
        engine.snapshot()

        stored = memory_store.get("weekly_stats").decode()
        assert "2024-01-08" in stored
