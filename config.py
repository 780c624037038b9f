"""Loading and saving of the user configuration."""

from __future__ import annotations

import json
import logging
import os
import shutil
from datetime import date
from pathlib import Path

from errors import ConfigError
from models import Config, WorkingDay, default_working_days

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".clockin"
CONFIG_FILE_NAME = "config.json"
POINTER_FILE_NAME = "currentConfig.json"
DEFAULT_DATA_DIR_NAME = "clockin-data"


def _get_home_dir() -> Path:
    """Get the global clockin directory from environment variable or default location."""
    if env_path := os.environ.get("CLOCKIN_HOME"):
        return Path(env_path)
    return Path.home() / CONFIG_DIR_NAME


def config_to_dict(config: Config) -> dict:
    return {
        "name": config.name,
        "hours_per_week": config.hours_per_week,
        "vacation_days_per_year": config.vacation_days_per_year,
        "working_days": [
            {"day": wd.day, "is_working_day": wd.is_working_day} for wd in config.working_days
        ],
        "data_directory": str(config.data_directory),
        "timezone": config.timezone,
        "setup_completed": config.setup_completed,
        "start_date": config.start_date.isoformat() if config.start_date else None,
        "country": config.country,
        "region": config.region,
    }


def config_from_dict(data: dict) -> Config:
    """Build and validate a Config from its JSON form."""
    try:
        working_days = [
            WorkingDay(day=str(wd["day"]).lower(), is_working_day=bool(wd["is_working_day"]))
            for wd in data.get("working_days") or []
        ] or default_working_days()
        start_date = data.get("start_date")
        config = Config(
            name=str(data.get("name", "")),
            hours_per_week=float(data["hours_per_week"]),
            vacation_days_per_year=float(data.get("vacation_days_per_year", 0)),
            working_days=working_days,
            data_directory=Path(data["data_directory"]).expanduser(),
            timezone=data.get("timezone") or "UTC",
            setup_completed=bool(data.get("setup_completed", False)),
            start_date=date.fromisoformat(start_date) if start_date else None,
            country=data.get("country") or "DE",
            region=data.get("region") or "BY",
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    config.validate()
    return config


class ConfigManager:
    """Finds the current data directory and reads or writes its config."""

    def __init__(self, home_dir: Path | None = None):
        self.home_dir = home_dir or _get_home_dir()

    @property
    def pointer_path(self) -> Path:
        return self.home_dir / POINTER_FILE_NAME

    @staticmethod
    def config_path_for(data_directory: Path) -> Path:
        return Path(data_directory) / CONFIG_DIR_NAME / CONFIG_FILE_NAME

    def default_data_directory(self) -> Path:
        return Path.home() / DEFAULT_DATA_DIR_NAME

    def current_data_directory(self) -> Path:
        """Data directory named by the pointer file, else the default."""
        if not self.pointer_path.exists():
            return self.default_data_directory()
        try:
            pointer = json.loads(self.pointer_path.read_text(encoding="utf-8"))
            return Path(pointer["current_data_directory"]).expanduser()
        except (ValueError, KeyError, TypeError) as exc:
            raise ConfigError(f"Unreadable pointer file {self.pointer_path}: {exc}") from exc

    def load_config(self) -> Config | None:
        """Load the config of the current data directory, or None if there is none yet."""
        path = self.config_path_for(self.current_data_directory())
        if not path.exists():
            logger.debug("No config at %s", path)
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise ConfigError(f"Malformed config file {path}: {exc}") from exc
        return config_from_dict(data)

    def save_config(self, config: Config) -> Path:
        """Write the config and point the global pointer at its data directory."""
        config.validate()
        self.home_dir.mkdir(parents=True, exist_ok=True)
        self.pointer_path.write_text(
            json.dumps({"current_data_directory": str(config.data_directory)}, indent=2),
            encoding="utf-8",
        )

        path = self.config_path_for(config.data_directory)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config_to_dict(config), indent=2), encoding="utf-8")
        logger.info("Saved config to %s", path)
        return path

    def default_config(self) -> Config:
        return Config(working_days=default_working_days(), data_directory=self.default_data_directory())

    def reset(self) -> list[Path]:
        """Delete the global config directory and the current data directory's config.

        Entry CSVs in the data directory are left alone. Returns the removed directories.
        """
        try:
            data_config_dir = self.config_path_for(self.current_data_directory()).parent
        except ConfigError:
            logger.warning("Pointer file %s is unreadable, only removing %s", self.pointer_path, self.home_dir)
            data_config_dir = None

        removed = []
        for path in (self.home_dir, data_config_dir):
            if path is not None and path.exists() and path not in removed:
                try:
                    shutil.rmtree(path)
                except OSError as exc:
                    raise ConfigError(f"Could not remove {path}: {exc}") from exc
                logger.info("Removed %s", path)
                removed.append(path)
        return removed
