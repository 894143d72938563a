"""
User configuration persistence.

Stores settings like the point rate and display name in a JSON file next
to the progression data.
"""

import json
from pathlib import Path
from typing import TypedDict

from ..rules.progression import PointPolicy


class Config(TypedDict, total=False):
    """User configuration."""
    username: str  # Display name for new profiles
    points_per_minute: int  # Points per ticked session minute
    private_multiplier: float  # Scales ticked points while a session is private
    seed_roster: bool  # Add demo friends when the roster is empty


DEFAULT_CONFIG: Config = {
    "username": "Chiller",
    "points_per_minute": 1,
    "private_multiplier": 1.0,
    "seed_roster": True,
}


def get_config_path(data_dir: Path | str = "chillbond_data") -> Path:
    """Get path to config file."""
    return Path(data_dir) / ".chillbond_config.json"


def load_config(data_dir: Path | str = "chillbond_data") -> Config:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(data_dir)

    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        config = DEFAULT_CONFIG.copy()
        if isinstance(saved, dict):
            config.update(saved)
        return config
    except (json.JSONDecodeError, IOError):
        return DEFAULT_CONFIG.copy()


def save_config(config: Config, data_dir: Path | str = "chillbond_data") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(data_dir)

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError:
        return False


def set_points_per_minute(points: int, data_dir: Path | str = "chillbond_data") -> None:
    """Save point rate preference."""
    config = load_config(data_dir)
    config["points_per_minute"] = max(0, int(points))
    save_config(config, data_dir)


def set_private_multiplier(multiplier: float, data_dir: Path | str = "chillbond_data") -> None:
    """Save the point scale used while a session is private."""
    config = load_config(data_dir)
    config["private_multiplier"] = max(0.0, float(multiplier))
    save_config(config, data_dir)


def set_username(username: str, data_dir: Path | str = "chillbond_data") -> None:
    """Save default display name."""
    config = load_config(data_dir)
    config["username"] = username
    save_config(config, data_dir)


def policy_from_config(config: Config) -> PointPolicy:
    """Build the point-rate policy, falling back to defaults for bad values."""
    try:
        per_minute = max(0, int(config.get("points_per_minute", 1)))
    except (TypeError, ValueError):
        per_minute = DEFAULT_CONFIG["points_per_minute"]
    try:
        multiplier = max(0.0, float(config.get("private_multiplier", 1.0)))
    except (TypeError, ValueError):
        multiplier = DEFAULT_CONFIG["private_multiplier"]
    return PointPolicy(points_per_minute=per_minute, private_multiplier=multiplier)
