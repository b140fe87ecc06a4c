"""Configuration via pydantic-settings — 12-factor app style."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from .parsing.label import DEFAULT_PATTERN
from .parsing.timestamp import EPOCH_FORMAT


class Settings(BaseSettings):
    """timecover configuration — loaded from env vars / .env file."""

    pattern: str = Field(default=DEFAULT_PATTERN, description="Item pattern with a 'timestamp' named group")
    time_format: str = Field(default=EPOCH_FORMAT, description="strptime format for the timestamp capture (%s = epoch)")
    timestamp_is_numeric: bool = Field(default=False, description="Treat the timestamp capture as an epoch number")
    default_window: str = Field(default="5m", description="Lookback used when no --start/--last is given")
    log_level: str = Field(default="WARNING", description="Log level for the CLI")

    class Config:
        env_prefix = "TIMECOVER_"
        env_file = ".env"


settings = Settings()
