"""Application configuration management."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from pomodoro.models import AppConfig, TimerConfiguration


def _is_android() -> bool:
    """Return True when running inside an Android (p4a) environment."""
    return "ANDROID_ARGUMENT" in os.environ or hasattr(sys, "getandroidapilevel")


def _android_data_dir() -> Path:
    """Return the writable app-private directory on Android."""
    for var in ("ANDROID_PRIVATE", "ANDROID_APP_PATH"):
        val = os.environ.get(var)
        if val:
            return Path(val)
    return Path(".")


if _is_android():
    _CONFIG_DIR = _android_data_dir() / "data" / "config"
    _DATA_DIR = _android_data_dir() / "data"
else:
    _CONFIG_DIR = Path.home() / ".config" / "pomodoro"
    _DATA_DIR = Path.home() / ".local" / "share" / "pomodoro"

_CONFIG_FILE = _CONFIG_DIR / "config.json"


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists or it is unreadable."""
    if _CONFIG_FILE.exists():
        try:
            data = json.loads(_CONFIG_FILE.read_text())
            return AppConfig(**data)
        except (OSError, ValueError, TypeError, ValidationError):
            pass
    return AppConfig()


def save_config(config: AppConfig) -> Path:
    """Write config to disk. Returns the config file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def get_db_path(config: Optional[AppConfig] = None) -> Path:
    """Resolve the session history database path."""
    config = config or load_config()
    if config.db_path is not None:
        p = Path(config.db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    _DATA_DIR.mkdir(parents=True, exist_ok=True)
    return _DATA_DIR / "pomodoro.db"


def set_db_path(path: str) -> AppConfig:
    """Set a custom database path and save config."""
    resolved = Path(path).expanduser().resolve()
    if resolved.is_dir():
        resolved = resolved / "pomodoro.db"
    resolved.parent.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config.db_path = str(resolved)
    save_config(config)
    return config


def reset_db_path() -> AppConfig:
    """Reset to the default local database path."""
    config = load_config()
    config.db_path = None
    save_config(config)
    return config


def get_presence_path(config: Optional[AppConfig] = None) -> Path:
    """Where the ambient activity file is written."""
    config = config or load_config()
    if config.presence_path is not None:
        return Path(config.presence_path)
    return _DATA_DIR / "activity.json"


def set_durations(
    work_minutes: Optional[float] = None, break_minutes: Optional[float] = None
) -> AppConfig:
    """Change the default interval lengths. Raises ValidationError if not positive."""
    config = load_config()
    updates: dict[str, float] = {}
    if work_minutes is not None:
        updates["work_duration_seconds"] = work_minutes * 60
    if break_minutes is not None:
        updates["break_duration_seconds"] = break_minutes * 60
    config = AppConfig(**{**config.model_dump(), **updates})
    save_config(config)
    return config


def timer_configuration(config: Optional[AppConfig] = None) -> TimerConfiguration:
    """Build the engine's interval configuration from the app config."""
    config = config or load_config()
    return TimerConfiguration(
        work_duration_seconds=config.work_duration_seconds,
        break_duration_seconds=config.break_duration_seconds,
    )
