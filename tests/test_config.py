"""Tests for the config module."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from config import ConfigManager, _get_home_dir, config_from_dict, config_to_dict
from errors import ConfigError
from models import Config


class TestGetHomeDir:
    """Tests for locating the global clockin directory."""

    def test_env_override(self, monkeypatch, tmp_path):
        """Test that CLOCKIN_HOME wins."""
        monkeypatch.setenv("CLOCKIN_HOME", str(tmp_path / "custom"))
        assert _get_home_dir() == tmp_path / "custom"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("CLOCKIN_HOME", raising=False)
        assert _get_home_dir() == Path.home() / ".clockin"


class TestSerialisation:
    """Tests for the JSON form of Config."""

    def test_round_trip(self, config: Config):
        config.start_date = date(2024, 3, 1)
        config.timezone = "Europe/Berlin"
        assert config_from_dict(config_to_dict(config)) == config

    def test_missing_required_field(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            config_from_dict({"name": "x"})

    def test_invalid_value(self, config: Config):
        data = config_to_dict(config)
        data["hours_per_week"] = 500
        with pytest.raises(ConfigError):
            config_from_dict(data)

    def test_bad_start_date(self, config: Config):
        data = config_to_dict(config)
        data["start_date"] = "yesterday"
        with pytest.raises(ConfigError):
            config_from_dict(data)


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_load_without_config(self, tmp_path):
        """Test that a fresh install has no config yet."""
        manager = ConfigManager(tmp_path / "home")
        assert manager.load_config() is None

    def test_save_and_load(self, tmp_path, config: Config):
        """Test that the pointer leads back to the saved config."""
        manager = ConfigManager(tmp_path / "home")
        path = manager.save_config(config)

        assert path == config.data_directory / ".clockin" / "config.json"
        pointer = json.loads(manager.pointer_path.read_text(encoding="utf-8"))
        assert pointer == {"current_data_directory": str(config.data_directory)}
        assert manager.current_data_directory() == config.data_directory
        assert manager.load_config() == config

    def test_save_rejects_invalid(self, tmp_path, config: Config):
        config.hours_per_week = 0
        with pytest.raises(ConfigError):
            ConfigManager(tmp_path / "home").save_config(config)

    def test_malformed_config(self, tmp_path, config: Config):
        """Test that a corrupt config file is an error, not a fresh start."""
        manager = ConfigManager(tmp_path / "home")
        path = manager.save_config(config)
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(ConfigError, match="Malformed"):
            manager.load_config()

    def test_malformed_pointer(self, tmp_path):
        manager = ConfigManager(tmp_path)
        manager.pointer_path.write_text("[]", encoding="utf-8")
        with pytest.raises(ConfigError):
            manager.current_data_directory()

    def test_default_config(self, tmp_path):
        config = ConfigManager(tmp_path).default_config()
        assert config.working_days_count == 5
        assert config.data_directory == Path.home() / "clockin-data"
        assert not config.setup_completed


class TestReset:
    """Tests for wiping the configuration."""

    def test_removes_global_and_data_config(self, tmp_path, config: Config):
        """Test that both config locations go but entry files stay."""
        manager = ConfigManager(tmp_path / "home")
        config_path = manager.save_config(config)
        entries = config.data_directory / "time-entries.csv"
        entries.write_text("ID,Date\n", encoding="utf-8")

        removed = manager.reset()

        assert removed == [tmp_path / "home", config_path.parent]
        assert not manager.pointer_path.exists()
        assert not config_path.exists()
        assert entries.exists()
        assert manager.load_config() is None

    def test_nothing_to_remove(self, tmp_path):
        assert ConfigManager(tmp_path / "home").reset() == []

    def test_unreadable_pointer(self, tmp_path):
        """Test that a broken pointer file does not block the reset."""
        manager = ConfigManager(tmp_path / "home")
        manager.home_dir.mkdir()
        manager.pointer_path.write_text("garbage", encoding="utf-8")

        assert manager.reset() == [tmp_path / "home"]
        assert not manager.home_dir.exists()
