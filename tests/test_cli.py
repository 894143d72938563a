"""
Tests for the command-line interface.

Each call to main() builds a fresh engine over the same data dir, the
way separate shell invocations would.
"""

from chillbond import ProgressionEngine
from chillbond.interface.cli import build_engine, build_parser, main, run_command
from chillbond.interface.config import load_config, save_config


def run(tmp_path, *argv):
    return main(["--data-dir", str(tmp_path), *argv])


class TestParser:
    def test_commands_registered(self):
        parser = build_parser()
        args = parser.parse_args(["end", "--minutes", "10", "--points", "12"])
        assert args.command == "end"
        assert args.minutes == 10
        assert args.points == 12

    def test_start_defaults(self):
        args = build_parser().parse_args(["start"])
        assert args.friends == []
        assert not args.private


class TestCommands:
    """One-shot commands chain through the data dir."""

    def test_status_on_fresh_dir(self, tmp_path):
        assert run(tmp_path) == 0
        assert run(tmp_path, "status") == 0
        assert (tmp_path / "friends.json").exists()

    def test_session_flow(self, tmp_path):
        assert run(tmp_path, "start", "anna", "max") == 0
        assert run(tmp_path, "tick", "--minutes", "5") == 0
        assert run(tmp_path, "end") == 0

        engine, _ = build_engine(tmp_path)
        assert engine.active_session is None
        assert engine.state.profile.total_chill_minutes == 5
        assert engine.state.total_points == 5
        assert engine.find_friend("anna").chill_minutes == 95

    def test_selection_then_start(self, tmp_path):
        assert run(tmp_path, "select", "lisa") == 0
        assert run(tmp_path, "start") == 0

        engine, _ = build_engine(tmp_path)
        assert engine.active_session.friend_names == ("Lisa Weber",)

    def test_invalid_operation_exit_code(self, tmp_path, capsys):
        assert run(tmp_path, "end") == 1
        assert "no active session" in capsys.readouterr().out

    def test_unknown_friend(self, tmp_path):
        assert run(tmp_path, "start", "zoe") == 1

    def test_award_and_views(self, tmp_path, capsys):
        assert run(tmp_path, "award", "120") == 0
        out = capsys.readouterr().out
        assert "+120 points" in out
        assert "First Hundred!" in out

        for command in ("friends", "leaderboard", "challenges"):
            assert run(tmp_path, command) == 0

    def test_privacy_blocks_awards(self, tmp_path, capsys):
        assert run(tmp_path, "privacy", "on") == 0
        assert run(tmp_path, "award", "50") == 0
        assert "Privacy mode is on" in capsys.readouterr().out

        engine, _ = build_engine(tmp_path)
        assert engine.state.total_points == 0

    def test_add_friend_and_name(self, tmp_path):
        assert run(tmp_path, "add-friend", "Nina", "Berg", "--handle", "@nina") == 0
        assert run(tmp_path, "name", "Jo") == 0

        engine, _ = build_engine(tmp_path)
        assert engine.find_friend("@nina").name == "Nina Berg"
        assert engine.state.profile.username == "Jo"

    def test_reset_with_yes(self, tmp_path):
        run(tmp_path, "award", "300")
        assert run(tmp_path, "reset", "--yes") == 0

        engine, _ = build_engine(tmp_path)
        assert engine.state.total_points == 0

    def test_config_sets_point_rate(self, tmp_path):
        config = load_config(tmp_path)
        config["points_per_minute"] = 2
        save_config(config, tmp_path)

        run(tmp_path, "start", "tom")
        run(tmp_path, "tick", "-m", "3")
        run(tmp_path, "end")

        engine, _ = build_engine(tmp_path)
        assert engine.state.total_points == 6

    def test_config_command(self, tmp_path, capsys):
        assert run(
            tmp_path, "config",
            "--points-per-minute", "3",
            "--private-multiplier", "0.5",
            "--username", "Jo",
        ) == 0
        assert "points_per_minute" in capsys.readouterr().out

        config = load_config(tmp_path)
        assert config["points_per_minute"] == 3
        assert config["private_multiplier"] == 0.5
        assert config["username"] == "Jo"

    def test_config_rejects_negative_rate(self, tmp_path):
        assert run(tmp_path, "config", "--points-per-minute", "-2") == 1
        assert load_config(tmp_path)["points_per_minute"] == 1

    def test_config_rate_applies_to_running_engine(self, tmp_path):
        engine, _ = build_engine(tmp_path)
        parser = build_parser()

        run_command(engine, parser.parse_args(
            ["--data-dir", str(tmp_path), "config", "--points-per-minute", "4"]
        ))

        assert engine.policy.points_per_minute == 4


class TestWeekBoundary:
    """Every command sees the current week."""

    def test_command_rolls_stale_week(self, memory_store, clock):
        engine = ProgressionEngine(store=memory_store, clock=clock)
        engine.load()
        anna = engine.find_friend("anna")
        engine.start_session([anna.id])
        engine.end_session(20, 20)

        clock.advance(days=7)
        assert run_command(engine, build_parser().parse_args(["challenges"])) == 0

        stats = engine.state.weekly_stats
        assert stats.week_start == clock.start_of_week(clock.now())
        assert stats.total_minutes == 0
