"""Timely configuration using pydantic-settings."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_data_dir() -> Path:
    """Per-user data directory, honouring XDG_DATA_HOME."""
    base = os.environ.get("XDG_DATA_HOME") or (Path.home() / ".local" / "share")
    return Path(base) / "timely"


class Settings(BaseSettings):
    """Settings loaded from ``TIMELY_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="TIMELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: Path = Field(default_factory=default_data_dir)
    history: bool = True  # Commit every write to a git repo in data_dir
    weekly_threshold_hours: float = 40.0
    log_level: str = "WARNING"
