"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class SharedConfig(BaseSettings):
    """Base configuration shared across the bridge."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class FlutterEnvConfig(SharedConfig):
    """Environment overrides for locating and driving the Flutter SDK."""
    flutter_root: str = Field(default="", validation_alias="FLUTTER_ROOT")
    verbose_logging: bool = Field(
        default=False, validation_alias="FLUTTER_VERBOSE_LOGGING"
    )
