"""
Tests for user configuration persistence.
"""

from chillbond.interface.config import (
    DEFAULT_CONFIG,
    get_config_path,
    load_config,
    policy_from_config,
    save_config,
    set_points_per_minute,
    set_private_multiplier,
    set_username,
)
from chillbond.rules import PointPolicy


class TestConfigFile:
    def test_defaults_when_missing(self, tmp_path):
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_defaults_are_not_shared(self, tmp_path):
        config = load_config(tmp_path)
        config["username"] = "Changed"
        assert DEFAULT_CONFIG["username"] == "Chiller"

    def test_save_and_load(self, tmp_path):
        config = load_config(tmp_path)
        config["points_per_minute"] = 3

        assert save_config(config, tmp_path)
        assert get_config_path(tmp_path).exists()
        assert load_config(tmp_path)["points_per_minute"] == 3

    def test_missing_keys_merged(self, tmp_path):
        get_config_path(tmp_path).write_text('{"username": "Jo"}')

        config = load_config(tmp_path)

        assert config["username"] == "Jo"
        assert config["seed_roster"] is True

    def test_corrupt_file_gives_defaults(self, tmp_path):
        get_config_path(tmp_path).write_text("{oops")
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_setters(self, tmp_path):
        set_points_per_minute(-4, tmp_path)
        set_private_multiplier(-1.5, tmp_path)
        set_username("Kim", tmp_path)

        config = load_config(tmp_path)
        assert config["points_per_minute"] == 0
        assert config["private_multiplier"] == 0.0
        assert config["username"] == "Kim"


class TestPolicyFromConfig:
    def test_default_policy(self):
        assert policy_from_config(DEFAULT_CONFIG) == PointPolicy()

    def test_custom_values(self):
        policy = policy_from_config({"points_per_minute": 2, "private_multiplier": 0.5})
        assert policy == PointPolicy(points_per_minute=2, private_multiplier=0.5)

    def test_bad_values_fall_back(self):
        policy = policy_from_config({"points_per_minute": "many", "private_multiplier": None})
        assert policy == PointPolicy()
