"""
Command-line interface for chillbond.

One-shot subcommands (`chillbond start anna max`) or an interactive shell
(`chillbond shell`) over the same command set. State lives in --data-dir
and is saved after every change, so one-shot commands chain naturally.
"""

import argparse
import logging
import shlex
import sys
from pathlib import Path

from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.completion import WordCompleter

from ..errors import InvalidOperation
from ..state import EventBus, FileKeyValueStore, ProgressionEngine
from .config import (
    load_config,
    policy_from_config,
    set_points_per_minute,
    set_private_multiplier,
    set_username,
)
from .renderer import (
    console,
    render_event,
    show_challenges,
    show_config,
    show_error,
    show_friends,
    show_info,
    show_leaderboard,
    show_status,
)

logger = logging.getLogger(__name__)

COMMAND_META = {
    "status": "Show level, points and this week",
    "friends": "List the roster",
    "leaderboard": "Friends ranked by shared minutes",
    "challenges": "Show weekly challenges",
    "add-friend": "Add a friend to the roster",
    "select": "Select friends for the next session",
    "deselect": "Remove friends from the selection",
    "start": "Start a chill session",
    "tick": "Count elapsed minutes of the running session",
    "end": "End the running session",
    "award": "Award bonus points",
    "rollover": "Check for a new week",
    "privacy": "Turn privacy mode on or off",
    "sound": "Turn the points sound on or off",
    "name": "Set your display name",
    "config": "Show or change point rate and defaults",
    "reset": "Delete all progress",
    "shell": "Interactive mode",
}


# -----------------------------------------------------------------------------
# Engine setup
# -----------------------------------------------------------------------------

def build_engine(data_dir: Path) -> tuple[ProgressionEngine, EventBus]:
    """Engine over a file store in data_dir, events printed as they happen."""
    config = load_config(data_dir)
    bus = EventBus()
    bus.on_any(render_event)

    engine = ProgressionEngine(
        store=FileKeyValueStore(data_dir),
        sink=bus,
        policy=policy_from_config(config),
        seed_roster=config.get("seed_roster", True),
        username=config.get("username"),
    )
    engine.load()
    return engine, bus


def _resolve_friends(engine: ProgressionEngine, queries: list[str]) -> list[str]:
    ids = []
    for query in queries:
        friend = engine.find_friend(query)
        if friend is None:
            raise InvalidOperation("find friend", f"no friend matches '{query}'")
        ids.append(friend.id)
    return ids


def _on_off(value: str) -> bool:
    return value.lower() in ("on", "true", "yes", "1")


# -----------------------------------------------------------------------------
# Command handlers
# -----------------------------------------------------------------------------

def cmd_status(engine, args):
    show_status(engine)


def cmd_friends(engine, args):
    show_friends(engine)


def cmd_leaderboard(engine, args):
    show_leaderboard(engine, limit=args.limit)


def cmd_challenges(engine, args):
    show_challenges(engine)


def cmd_add_friend(engine, args):
    friend = engine.add_friend(" ".join(args.name), handle=args.handle or "")
    show_info(f"Added {friend.name} ({friend.id})")


def cmd_select(engine, args):
    for friend_id in _resolve_friends(engine, args.friends):
        engine.select_friend(friend_id)
    show_info(f"Selected: {engine.selected_friends_label()}")


def cmd_deselect(engine, args):
    if args.all:
        engine.clear_selection()
    else:
        for friend_id in _resolve_friends(engine, args.friends):
            engine.deselect_friend(friend_id)
    show_info(f"Selected: {engine.selected_friends_label()}")


def cmd_start(engine, args):
    ids = _resolve_friends(engine, args.friends) if args.friends else None
    engine.start_session(ids, is_private=True if args.private else None)
    session = engine.active_session
    show_info(f"Chilling with {', '.join(session.friend_names)}")


def cmd_tick(engine, args):
    if args.minutes < 1:
        raise InvalidOperation("record tick", "minutes must be >= 1")
    for _ in range(args.minutes):
        engine.record_tick()
    session = engine.active_session
    show_info(f"{session.duration_minutes} min | {session.points_earned} pts")


def cmd_end(engine, args):
    session = engine.end_session(args.minutes, args.points)
    if session.is_private:
        show_info("Private session ended. Nothing was recorded.")
    else:
        show_info(
            f"Session ended: {session.duration_minutes} min with "
            f"{', '.join(session.friend_names)}"
        )


def cmd_award(engine, args):
    result = engine.award_points(args.amount)
    if not result.applied:
        show_info("Privacy mode is on. No points recorded.")


def cmd_rollover(engine, args):
    if not engine.ensure_current_week():
        show_info("Still the same week.")


def cmd_privacy(engine, args):
    engine.set_privacy_mode(_on_off(args.value))
    show_info(f"Privacy mode {'on' if engine.state.settings.privacy_mode else 'off'}")


def cmd_sound(engine, args):
    engine.set_points_sound(_on_off(args.value))
    show_info(f"Points sound {'on' if engine.state.settings.points_sound_enabled else 'off'}")


def cmd_name(engine, args):
    engine.set_username(" ".join(args.name))
    show_info(f"Hi, {engine.state.profile.username}!")


def cmd_config(engine, args):
    if args.points_per_minute is not None:
        if args.points_per_minute < 0:
            raise InvalidOperation("update config", "points per minute must be >= 0")
        set_points_per_minute(args.points_per_minute, args.data_dir)
    if args.private_multiplier is not None:
        if args.private_multiplier < 0:
            raise InvalidOperation("update config", "private multiplier must be >= 0")
        set_private_multiplier(args.private_multiplier, args.data_dir)
    if args.username is not None:
        set_username(args.username, args.data_dir)

    config = load_config(args.data_dir)
    # Ticks from now on use the new rate
    engine.policy = policy_from_config(config)
    show_config(config)


def cmd_reset(engine, args):
    if not args.yes:
        answer = console.input("Delete all progress? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            show_info("Cancelled.")
            return
    engine.reset()
    show_info("All progress deleted.")


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chillbond",
        description="chillbond - points, friend bonds and weekly challenges",
    )
    parser.add_argument(
        "--data-dir", "-d",
        type=Path,
        default=Path("chillbond_data"),
        help="Where progress is stored (default: chillbond_data)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )

    sub = parser.add_subparsers(dest="command")

    def add(name, handler):
        p = sub.add_parser(name, help=COMMAND_META[name])
        p.set_defaults(handler=handler)
        return p

    add("status", cmd_status)
    add("friends", cmd_friends)
    add("leaderboard", cmd_leaderboard).add_argument("--limit", type=int, default=10)
    add("challenges", cmd_challenges)

    p = add("add-friend", cmd_add_friend)
    p.add_argument("name", nargs="+")
    p.add_argument("--handle")

    add("select", cmd_select).add_argument("friends", nargs="+")

    p = add("deselect", cmd_deselect)
    p.add_argument("friends", nargs="*")
    p.add_argument("--all", action="store_true", help="Clear the whole selection")

    p = add("start", cmd_start)
    p.add_argument("friends", nargs="*", help="Defaults to the selection")
    p.add_argument("--private", action="store_true", help="Record nothing")

    add("tick", cmd_tick).add_argument("--minutes", "-m", type=int, default=1)

    p = add("end", cmd_end)
    p.add_argument("--minutes", "-m", type=int, help="Measured duration")
    p.add_argument("--points", "-p", type=int, help="Points earned")

    add("award", cmd_award).add_argument("amount", type=int)
    add("rollover", cmd_rollover)
    add("privacy", cmd_privacy).add_argument("value", choices=["on", "off"])
    add("sound", cmd_sound).add_argument("value", choices=["on", "off"])
    add("name", cmd_name).add_argument("name", nargs="+")

    p = add("config", cmd_config)
    p.add_argument("--points-per-minute", type=int)
    p.add_argument("--private-multiplier", type=float)
    p.add_argument("--username", help="Name for profiles created from now on")

    add("reset", cmd_reset).add_argument("--yes", "-y", action="store_true")
    add("shell", None)

    return parser


def run_command(engine: ProgressionEngine, args: argparse.Namespace) -> int:
    """Run one parsed command. Returns an exit code."""
    handler = getattr(args, "handler", None)
    if handler is None:
        show_status(engine)
        return 0
    try:
        # Commands never see last week's stats, even in a long-lived shell
        engine.ensure_current_week()
        handler(engine, args)
    except InvalidOperation as e:
        show_error(str(e))
        return 1

    if engine.persistence_warnings:
        show_error(f"Warning: {engine.persistence_warnings[-1]}")
        engine.persistence_warnings.clear()
    return 0


# -----------------------------------------------------------------------------
# Main Loop
# -----------------------------------------------------------------------------

def run_shell(engine: ProgressionEngine, parser: argparse.ArgumentParser) -> int:
    """Read commands until quit/exit/EOF."""
    completer = WordCompleter(
        [name for name in COMMAND_META if name != "shell"] + ["help", "quit", "exit"],
        sentence=True,
    )
    show_info("chillbond shell - type 'help' for commands, 'quit' to leave")

    while True:
        try:
            line = pt_prompt("chill> ", completer=completer).strip()
        except (EOFError, KeyboardInterrupt):
            break

        if not line:
            continue
        if line in ("quit", "exit"):
            break
        if line == "help":
            for name, meta in COMMAND_META.items():
                if name != "shell":
                    console.print(f"  [bold]{name:<12}[/bold] {meta}")
            continue

        try:
            args = parser.parse_args(shlex.split(line))
        except SystemExit:
            # argparse already printed the problem
            continue
        except ValueError as e:
            show_error(str(e))
            continue

        if args.command == "shell":
            continue
        run_command(engine, args)

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    engine, _ = build_engine(args.data_dir)

    if args.command == "shell":
        # Shell lines are parsed without --data-dir; keep the one we started with
        parser.set_defaults(data_dir=args.data_dir)
        return run_shell(engine, parser)
    return run_command(engine, args)


if __name__ == "__main__":
    sys.exit(main())
