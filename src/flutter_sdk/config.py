"""Configuration dataclasses and loader for the Flutter SDK bridge."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.flutter_sdk.exceptions import ConfigurationError
from src.shared.config import FlutterEnvConfig
from src.shared.constants import (
    DEFAULT_CONFIG_QUERY_TIMEOUT_MS,
    DEFAULT_PROCESS_ENCODING,
)

logger = logging.getLogger(__name__)

SECTION = "flutter_sdk"


@dataclass
class ProcessConfig:
    """Settings applied to every spawned ``flutter`` process."""

    config_query_timeout_ms: int = DEFAULT_CONFIG_QUERY_TIMEOUT_MS
    encoding: str = DEFAULT_PROCESS_ENCODING
    flutter_host: str = "flutter-sdk-bridge"


@dataclass
class FlutterSettings:
    """Top-level configuration.

    ``verbose_logging`` is the global flag that adds ``--verbose`` to
    ``run`` and ``test`` commands.
    """

    sdk_path: str = ""
    verbose_logging: bool = False
    log_level: str = "info"
    process: ProcessConfig = field(default_factory=ProcessConfig)


def _pick(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter *data* to only keys accepted by *cls*."""
    valid = {f.name for f in cls.__dataclass_fields__.values()}
    return {k: v for k, v in data.items() if k in valid}


def load_flutter_settings(
    path: Path | str | None = None,
    env: FlutterEnvConfig | None = None,
) -> FlutterSettings:
    """Load settings from the ``flutter_sdk:`` section of a YAML file.

    Unknown keys are silently ignored.  Values the file leaves unset are
    taken from the environment (``FLUTTER_ROOT``,
    ``FLUTTER_VERBOSE_LOGGING``, ``LOG_LEVEL``).

    Args:
        path: Path to config YAML.  ``None`` or a missing file means
              defaults plus environment.
        env: Environment snapshot; read from ``os.environ`` when omitted.

    Returns:
        Populated configuration dataclass.

    Raises:
        ConfigurationError: The file is not valid YAML or a section has
            the wrong type.
    """
    raw: dict[str, Any] = {}
    if path is not None and Path(path).exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
        raw = loaded.get(SECTION) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"'{SECTION}' in {path} must be a mapping")

    process_raw = raw.get("process") or {}
    if not isinstance(process_raw, dict):
        raise ConfigurationError("'process' must be a mapping")

    top_level = _pick(raw, FlutterSettings)
    top_level.pop("process", None)

    env = env if env is not None else FlutterEnvConfig()
    top_level.setdefault("sdk_path", env.flutter_root)
    top_level.setdefault("verbose_logging", env.verbose_logging)
    top_level.setdefault("log_level", env.log_level)

    settings = FlutterSettings(
        process=ProcessConfig(**_pick(process_raw, ProcessConfig)),
        **top_level,
    )
    logger.debug("Loaded Flutter settings (sdk_path=%r)", settings.sdk_path)
    return settings
