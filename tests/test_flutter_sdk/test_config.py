"""Tests for src.flutter_sdk.config (YAML settings loader)."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from src.flutter_sdk.config import (
    FlutterSettings,
    ProcessConfig,
    load_flutter_settings,
)
from src.flutter_sdk.exceptions import ConfigurationError
from src.shared.config import FlutterEnvConfig


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> FlutterEnvConfig:
    for name in ("FLUTTER_ROOT", "FLUTTER_VERBOSE_LOGGING", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return FlutterEnvConfig()


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_dataclass_defaults(self):
        settings = FlutterSettings()
        assert settings.sdk_path == ""
        assert settings.verbose_logging is False
        assert settings.log_level == "info"
        assert settings.process == ProcessConfig()
        assert settings.process.config_query_timeout_ms == 5000
        assert settings.process.encoding == "utf-8"

    def test_no_file(self, clean_env):
        assert load_flutter_settings(None, clean_env) == FlutterSettings()

    def test_missing_file(self, tmp_path: Path, clean_env):
        assert load_flutter_settings(tmp_path / "absent.yaml", clean_env) == FlutterSettings()

    def test_empty_file(self, tmp_path: Path, clean_env):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_flutter_settings(path, clean_env) == FlutterSettings()


class TestYamlLoading:
    def test_section_values(self, tmp_path: Path, clean_env):
        path = _write(
            tmp_path,
            {
                "flutter_sdk": {
                    "sdk_path": "/opt/flutter",
                    "verbose_logging": True,
                    "log_level": "debug",
                    "process": {"config_query_timeout_ms": 1500, "flutter_host": "ci"},
                }
            },
        )
        settings = load_flutter_settings(path, clean_env)
        assert settings.sdk_path == "/opt/flutter"
        assert settings.verbose_logging is True
        assert settings.log_level == "debug"
        assert settings.process.config_query_timeout_ms == 1500
        assert settings.process.flutter_host == "ci"
        assert settings.process.encoding == "utf-8"

    def test_unknown_keys_ignored(self, tmp_path: Path, clean_env):
        path = _write(
            tmp_path,
            {
                "other_tool": {"x": 1},
                "flutter_sdk": {"sdk_path": "/opt/flutter", "colour": "blue",
                                "process": {"retries": 3}},
            },
        )
        settings = load_flutter_settings(path, clean_env)
        assert settings.sdk_path == "/opt/flutter"
        assert settings.process == ProcessConfig()

    def test_invalid_yaml(self, tmp_path: Path, clean_env):
        path = tmp_path / "config.yaml"
        path.write_text("flutter_sdk: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_flutter_settings(path, clean_env)

    def test_top_level_not_mapping(self, tmp_path: Path, clean_env):
        path = _write(tmp_path, ["a", "b"])
        with pytest.raises(ConfigurationError):
            load_flutter_settings(path, clean_env)

    def test_section_not_mapping(self, tmp_path: Path, clean_env):
        path = _write(tmp_path, {"flutter_sdk": "oops"})
        with pytest.raises(ConfigurationError):
            load_flutter_settings(path, clean_env)

    def test_process_not_mapping(self, tmp_path: Path, clean_env):
        path = _write(tmp_path, {"flutter_sdk": {"process": [1]}})
        with pytest.raises(ConfigurationError):
            load_flutter_settings(path, clean_env)


class TestEnvironmentFallback:
    def test_env_fills_unset_values(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLUTTER_ROOT", "/env/flutter")
        monkeypatch.setenv("FLUTTER_VERBOSE_LOGGING", "true")
        monkeypatch.setenv("LOG_LEVEL", "warning")
        settings = load_flutter_settings()
        assert settings.sdk_path == "/env/flutter"
        assert settings.verbose_logging is True
        assert settings.log_level == "warning"

    def test_file_wins_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLUTTER_ROOT", "/env/flutter")
        path = _write(tmp_path, {"flutter_sdk": {"sdk_path": "/file/flutter"}})
        assert load_flutter_settings(path).sdk_path == "/file/flutter"

    def test_explicit_env_snapshot(self, clean_env):
        env = FlutterEnvConfig(flutter_root="/snapshot")
        assert load_flutter_settings(None, env).sdk_path == "/snapshot"
