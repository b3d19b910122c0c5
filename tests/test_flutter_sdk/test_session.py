"""Tests for src.flutter_sdk.session.FlutterSession (SDK discovery and caching)."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from src.flutter_sdk.config import FlutterSettings, ProcessConfig
from src.flutter_sdk.host import LocalProject
from src.flutter_sdk.session import FLUTTER_HOST_ENV, FlutterSession
from src.flutter_sdk.sdk import FlutterSdk
from src.flutter_sdk.sync import SyncCoordinator
from src.shared.constants import DART_CORE_SUFFIX, DART_SDK_SUFFIX

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="fake flutter tool is a POSIX script"
)


def _project(base: Path, dart_sdk_path: str | None, disposed: bool = False) -> LocalProject:
    return LocalProject(base_dir=base, dart_sdk_path=dart_sdk_path, is_disposed=disposed)


class TestGetFlutterSdk:
    def test_found(self, sdk_home: Path, project):
        sdk = FlutterSession().get_flutter_sdk(project)
        assert isinstance(sdk, FlutterSdk)
        assert sdk.home == sdk_home

    def test_disposed_project(self, sdk_home: Path, tmp_path: Path):
        project = _project(tmp_path, str(sdk_home) + DART_SDK_SUFFIX, disposed=True)
        assert FlutterSession().get_flutter_sdk(project) is None

    def test_no_dart_sdk(self, tmp_path: Path):
        assert FlutterSession().get_flutter_sdk(_project(tmp_path, None)) is None
        assert FlutterSession().get_flutter_sdk(_project(tmp_path, "")) is None

    def test_standalone_dart_sdk(self, tmp_path: Path):
        project = _project(tmp_path, "/usr/lib/dart")
        assert FlutterSession().get_flutter_sdk(project) is None

    def test_backslashes_and_trailing_separator(self, sdk_home: Path, tmp_path: Path):
        windows_style = (str(sdk_home) + DART_SDK_SUFFIX).replace("/", "\\") + "\\"
        sdk = FlutterSession().get_flutter_sdk(_project(tmp_path, windows_style))
        assert sdk is not None
        assert sdk.home == sdk_home

    def test_not_a_flutter_sdk(self, tmp_path: Path):
        home = tmp_path / "not-flutter"
        (home / "bin" / "cache" / "dart-sdk").mkdir(parents=True)
        project = _project(tmp_path, str(home) + DART_SDK_SUFFIX)
        assert FlutterSession().get_flutter_sdk(project) is None


class TestGetIncomplete:
    def _library_project(self, base: Path, *roots: str, disposed: bool = False) -> LocalProject:
        return LocalProject(base_dir=base, is_disposed=disposed, dart_sdk_library_roots=roots)

    def test_recovers_uncached_sdk(self, sdk_home: Path, tmp_path: Path):
        assert not (sdk_home / "bin" / "cache").exists()
        project = self._library_project(
            tmp_path,
            "/usr/lib/dart/lib/async",
            str(sdk_home) + DART_CORE_SUFFIX,
        )
        session = FlutterSession()
        assert session.get_flutter_sdk(project) is None

        sdk = session.get_incomplete(project)
        assert isinstance(sdk, FlutterSdk)
        assert sdk.home == sdk_home
        assert sdk.version.parts == (0, 0, 3)
        assert sdk.dart_sdk_path is None

    def test_skips_home_check(self, tmp_path: Path):
        bare = tmp_path / "fresh-clone"
        bare.mkdir()
        project = self._library_project(tmp_path, str(bare) + DART_CORE_SUFFIX + "/")
        sdk = FlutterSession().get_incomplete(project)
        assert sdk is not None
        assert sdk.home == bare
        assert not sdk.version.is_valid

    def test_backslash_roots(self, sdk_home: Path, tmp_path: Path):
        windows_style = (str(sdk_home) + DART_CORE_SUFFIX).replace("/", "\\")
        sdk = FlutterSession().get_incomplete(self._library_project(tmp_path, windows_style))
        assert sdk is not None
        assert sdk.home == sdk_home

    def test_missing_home(self, tmp_path: Path):
        project = self._library_project(tmp_path, str(tmp_path / "gone") + DART_CORE_SUFFIX)
        assert FlutterSession().get_incomplete(project) is None

    def test_no_matching_root(self, tmp_path: Path):
        assert FlutterSession().get_incomplete(self._library_project(tmp_path)) is None
        project = self._library_project(tmp_path, "/usr/lib/dart/lib/core")
        assert FlutterSession().get_incomplete(project) is None

    def test_disposed_project(self, sdk_home: Path, tmp_path: Path):
        project = self._library_project(
            tmp_path, str(sdk_home) + DART_CORE_SUFFIX, disposed=True
        )
        assert FlutterSession().get_incomplete(project) is None

    def test_not_cached(self, sdk_home: Path, tmp_path: Path):
        project = self._library_project(tmp_path, str(sdk_home) + DART_CORE_SUFFIX)
        session = FlutterSession()
        assert session.get_incomplete(project) is not session.get_incomplete(project)


class TestSdkCache:
    def test_same_handle_within_session(self, project):
        session = FlutterSession()
        assert session.get_flutter_sdk(project) is session.get_flutter_sdk(project)

    def test_discovery_runs_once(self, project):
        session = FlutterSession()
        with patch.object(FlutterSdk, "for_path", wraps=FlutterSdk.for_path) as for_path:
            session.get_flutter_sdk(project)
            session.get_flutter_sdk(project)
        assert for_path.call_count == 1

    def test_keyed_by_project_location(self, sdk_home: Path, tmp_path: Path):
        session = FlutterSession()
        dart = str(sdk_home) + DART_SDK_SUFFIX
        first = session.get_flutter_sdk(_project(tmp_path / "one", dart))
        second = session.get_flutter_sdk(_project(tmp_path / "two", dart))
        assert first is not None and second is not None
        assert first is not second

    def test_sessions_do_not_share(self, project):
        assert FlutterSession().get_flutter_sdk(project) is not FlutterSession().get_flutter_sdk(project)

    def test_absent_result_not_cached(self, sdk_factory, tmp_path: Path):
        session = FlutterSession()
        home = tmp_path / "late"
        project = _project(tmp_path, str(home) + DART_SDK_SUFFIX)
        assert session.get_flutter_sdk(project) is None

        built = sdk_factory(name="staging")
        shutil.move(str(built), str(home))
        assert session.get_flutter_sdk(project) is not None

    def test_invalidate(self, project):
        session = FlutterSession()
        first = session.get_flutter_sdk(project)
        session.invalidate()
        assert session.get_flutter_sdk(project) is not first


class TestSessionWiring:
    def test_settings_flow_into_sdk(self, project):
        settings = FlutterSettings(
            verbose_logging=True,
            process=ProcessConfig(config_query_timeout_ms=750),
        )
        sdk = FlutterSession(settings).get_flutter_sdk(project)
        assert sdk.verbose_logging is True
        assert sdk.config_cache.timeout_ms == 750

    def test_host_environment_variable(self, sdk_home: Path, project):
        settings = FlutterSettings(process=ProcessConfig(flutter_host="my-ide"))
        session = FlutterSession(settings)
        handle = session.runner.create_process(
            session.get_flutter_sdk(project).flutter_doctor().spec,
            sdk_home / "bin" / "flutter",
        )
        lines: list[str] = []
        handle.subscribe(lambda event: lines.append(event.text))
        handle.start_notify()
        handle.wait()
        assert "host=my-ide\n" in lines
        assert FLUTTER_HOST_ENV == "FLUTTER_HOST"

    def test_sync_coordinator(self, project):
        session = FlutterSession()
        sdk = session.get_flutter_sdk(project)
        assert isinstance(session.sync_coordinator(sdk), SyncCoordinator)
