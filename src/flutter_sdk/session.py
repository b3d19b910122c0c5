"""Session context: owns the SDK cache and the process collaborators."""

from __future__ import annotations

import logging
from pathlib import Path

from src.flutter_sdk.cache import SessionCache
from src.flutter_sdk.config import FlutterSettings
from src.flutter_sdk.filesystem import LocalFileSystem
from src.flutter_sdk.protocols import ConsoleSink, FileSystemView, ProjectContext
from src.flutter_sdk.runner import ProcessRunner
from src.flutter_sdk.sdk import FlutterSdk
from src.flutter_sdk.sync import SyncCoordinator
from src.flutter_sdk.version import FlutterSdkVersion
from src.shared.constants import DART_CORE_SUFFIX, DART_SDK_SUFFIX

logger = logging.getLogger(__name__)

FLUTTER_HOST_ENV = "FLUTTER_HOST"


class FlutterSession:
    """Everything that lives as long as one host session.

    SDK handles are cached per ``(project location, SDK path)`` for the
    lifetime of the session; nothing evicts them except an explicit
    :meth:`invalidate`.
    """

    def __init__(
        self,
        settings: FlutterSettings | None = None,
        *,
        console: ConsoleSink | None = None,
        fs: FileSystemView | None = None,
    ) -> None:
        self.settings = settings or FlutterSettings()
        self.fs: FileSystemView = fs or LocalFileSystem()
        self.runner = ProcessRunner(
            console,
            env={FLUTTER_HOST_ENV: self.settings.process.flutter_host},
            encoding=self.settings.process.encoding,
        )
        self._sdk_cache: SessionCache[str, FlutterSdk] = SessionCache("flutter-sdk")

    def sdk_for_path(self, path: Path | str) -> FlutterSdk | None:
        """Return a fresh SDK handle for *path*, or None if it is not an SDK home."""
        return FlutterSdk.for_path(
            path,
            self.runner,
            self.fs,
            verbose_logging=self.settings.verbose_logging,
            config_query_timeout_ms=self.settings.process.config_query_timeout_ms,
        )

    def get_flutter_sdk(self, project: ProjectContext) -> FlutterSdk | None:
        """Return the Flutter SDK configured for *project*.

        Returns None if the project is disposed, has no Dart SDK, or its
        Dart SDK is not the one cached inside a Flutter SDK.
        """
        if project.is_disposed:
            return None
        dart_path = project.dart_sdk_path
        if not dart_path:
            return None
        dart_path = dart_path.replace("\\", "/").rstrip("/")
        if not dart_path.endswith(DART_SDK_SUFFIX):
            return None

        sdk_path = dart_path[: -len(DART_SDK_SUFFIX)]
        # e.g. 'e41cfa3d:/Users/me/flutter'
        cache_key = f"{project.location_hash}:{sdk_path}"
        return self._sdk_cache.get_or_compute(cache_key, lambda _key: self.sdk_for_path(sdk_path))

    def get_incomplete(self, project: ProjectContext) -> FlutterSdk | None:
        """Recover the Flutter SDK from the project's "Dart SDK" library.

        A freshly cloned Flutter SDK has no cached Dart SDK yet, so
        :meth:`get_flutter_sdk` and the SDK home check both fail.  The
        library still names ``<flutter>/bin/cache/dart-sdk/lib/core`` as a
        class root; the first such root gives the SDK home.  The result is
        not cached.
        """
        if project.is_disposed:
            return None
        for root in project.dart_sdk_library_roots:
            root = root.replace("\\", "/").rstrip("/")
            if not root.endswith(DART_CORE_SUFFIX):
                continue
            home = Path(root[: -len(DART_CORE_SUFFIX)])
            if not home.is_dir():
                logger.debug("Dart SDK library points at a missing Flutter SDK: %s", home)
                return None
            return FlutterSdk(
                home,
                FlutterSdkVersion.read_from_sdk(home),
                self.runner,
                self.fs,
                verbose_logging=self.settings.verbose_logging,
                config_query_timeout_ms=self.settings.process.config_query_timeout_ms,
            )
        return None

    def sync_coordinator(self, sdk: FlutterSdk) -> SyncCoordinator:
        return SyncCoordinator(sdk, self.fs)

    def invalidate(self) -> None:
        """Forget every cached SDK handle."""
        logger.debug("Dropping %d cached Flutter SDK handles", len(self._sdk_cache))
        self._sdk_cache.invalidate()
