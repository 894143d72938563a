"""
Display and rendering helpers for the chillbond CLI.

Handles theming, status tables and event lines.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..state.event_bus import EventType, ProgressEvent
from ..state.manager import ProgressionEngine


# Shared console instance
console = Console()

THEME = {
    "primary": "medium_purple",     # brand colour of the app
    "secondary": "grey85",
    "accent": "dark_orange",        # points and streaks
    "success": "green3",
    "warning": "gold3",
    "danger": "red3",
    "dim": "dim",
}

# Challenge tag -> rich colour
CHALLENGE_COLORS = {
    "purple": THEME["primary"],
    "orange": THEME["accent"],
    "green": THEME["success"],
    "blue": "steel_blue",
    "red": THEME["danger"],
    "yellow": THEME["warning"],
}


def progress_bar(ratio: float, width: int = 10) -> str:
    """Generate a visual progress bar for a 0.0-1.0 ratio."""
    ratio = max(0.0, min(1.0, ratio))
    filled = int(ratio * width)
    return "█" * filled + "░" * (width - filled)


def show_status(engine: ProgressionEngine):
    """Show profile, weekly numbers and any running session."""
    s = engine.snapshot()
    p = s.profile
    w = s.weekly_stats

    table = Table(
        title=f"[bold {THEME['primary']}]{p.username}[/bold {THEME['primary']}]",
        show_header=False,
        box=None,
    )
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])

    next_level_points = (p.level + 1) * 100
    table.add_row("Level", f"{p.level} - {p.level_title}")
    table.add_row(
        "Points",
        f"[{THEME['accent']}]{s.total_points}[/{THEME['accent']}] "
        f"{progress_bar(s.total_points / next_level_points)} next at {next_level_points}",
    )
    table.add_row("Sessions", f"{p.total_sessions}")
    table.add_row("Chill minutes", f"{p.total_chill_minutes}")
    table.add_row(
        "This week",
        f"{w.sessions_count} sessions, {w.total_minutes} min, "
        f"{w.unique_friends_count} friends (since {w.week_start.date()})",
    )
    table.add_row("Selected", engine.selected_friends_label())
    table.add_row("Privacy mode", "on" if s.settings.privacy_mode else "off")

    console.print(table)

    if s.active_session:
        session = s.active_session
        console.print()
        console.print(Panel(
            f"With {', '.join(session.friend_names)}\n"
            f"{session.duration_minutes} min | {session.points_earned} pts"
            + ("\n[dim]private - nothing will be recorded[/dim]" if session.is_private else ""),
            title=f"[bold {THEME['accent']}]Chilling[/bold {THEME['accent']}]",
            border_style=THEME["accent"],
        ))


def show_friends(engine: ProgressionEngine):
    """Roster in insertion order with bond levels."""
    selected = set(engine.state.selected_friends)
    table = Table(title="Friends", box=None)
    table.add_column("", width=1)
    table.add_column("ID", style=THEME["dim"])
    table.add_column("Name")
    table.add_column("Handle", style=THEME["dim"])
    table.add_column("Bond")
    table.add_column("Minutes", justify="right")
    table.add_column("Seen", style=THEME["dim"])

    for friend in engine.state.roster.friends:
        marker = f"[{THEME['accent']}]*[/{THEME['accent']}]" if friend.id in selected else ""
        seen = f"[{THEME['success']}]Online[/{THEME['success']}]" if friend.is_online else friend.last_seen
        table.add_row(
            marker,
            friend.id,
            friend.name,
            friend.handle,
            f"{friend.bond_level} {friend.bond_title}",
            str(friend.chill_minutes),
            seen,
        )

    console.print(table)


def show_leaderboard(engine: ProgressionEngine, limit: int = 10):
    """Friends ranked by shared minutes."""
    table = Table(title="Leaderboard", box=None)
    table.add_column("#", justify="right", style=THEME["dim"])
    table.add_column("Name")
    table.add_column("Minutes", justify="right")
    table.add_column("Bond")

    for rank, friend in enumerate(engine.friends_ranking()[:limit], start=1):
        style = f"bold {THEME['accent']}" if rank <= 3 else ""
        table.add_row(
            str(rank),
            f"[{style}]{friend.name}[/{style}]" if style else friend.name,
            str(friend.chill_minutes),
            friend.bond_title,
        )

    console.print(table)


def show_challenges(engine: ProgressionEngine):
    """This week's challenges with progress bars."""
    table = Table(title="Weekly Challenges", box=None)
    table.add_column("Challenge")
    table.add_column("Progress")
    table.add_column("", justify="right")

    for challenge in engine.state.challenges.challenges:
        color = CHALLENGE_COLORS.get(challenge.color.lower(), THEME["primary"])
        done = f" [{THEME['success']}]done[/{THEME['success']}]" if challenge.is_completed else ""
        table.add_row(
            f"[{color}]{challenge.title}[/{color}]\n[dim]{challenge.description}[/dim]",
            f"[{color}]{progress_bar(challenge.progress_percentage)}[/{color}]",
            f"{min(challenge.progress, challenge.target)}/{challenge.target}{done}",
        )

    console.print(table)


def show_config(config: dict):
    table = Table(title="Config", show_header=False, box=None)
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])
    for key, value in config.items():
        table.add_row(key, str(value))
    console.print(table)


def render_event(event: ProgressEvent):
    """One line per user-facing event. Bookkeeping events are skipped."""
    data = event.data
    if event.type == EventType.POINTS_EARNED:
        console.print(f"[{THEME['accent']}]+{data['amount']} points[/{THEME['accent']}]")
    elif event.type == EventType.LEVEL_UP:
        console.print(
            f"[bold {THEME['primary']}]Level {data['new_level']}! "
            f"You are now {data['title']}[/bold {THEME['primary']}]"
        )
        for milestone in data.get("milestones", []):
            console.print(f"  [bold]{milestone['title']}[/bold] {milestone['message']}")
    elif event.type == EventType.ACHIEVEMENT_UNLOCKED:
        console.print(
            f"[bold {THEME['warning']}]{data['title']}[/bold {THEME['warning']}] {data['message']}"
        )
    elif event.type == EventType.CHALLENGE_COMPLETED:
        console.print(f"[{THEME['success']}]Challenge complete: {data['title']}[/{THEME['success']}]")
    elif event.type == EventType.WEEK_ROLLED_OVER:
        console.print(f"[{THEME['dim']}]New week started - challenges reset[/{THEME['dim']}]")


def show_error(message: str):
    console.print(f"[{THEME['danger']}]{message}[/{THEME['danger']}]")


def show_info(message: str):
    console.print(f"[{THEME['secondary']}]{message}[/{THEME['secondary']}]")
