"""The Flutter SDK handle and its command factory methods."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from src.flutter_sdk.command import (
    BuildContext,
    CommandRequest,
    ConfigRequest,
    CreateRequest,
    DoctorRequest,
    FlutterTestRequest,
    PackagesGetRequest,
    PackagesUpgradeRequest,
    RunRequest,
    UpgradeRequest,
    VersionRequest,
    build_command,
)
from src.flutter_sdk.config_cache import ConfigCache
from src.flutter_sdk.models import FlutterDevice, RunMode
from src.flutter_sdk.process import ProcessHandle
from src.flutter_sdk.protocols import FileSystemView, ProjectContext
from src.flutter_sdk.pub_root import PubRoot, normalize_path
from src.flutter_sdk.runner import FlutterCommand, ProcessRunner
from src.flutter_sdk.version import FlutterSdkVersion
from src.shared.constants import (
    DART_SDK_SUFFIX,
    DEFAULT_CONFIG_QUERY_TIMEOUT_MS,
    FLUTTER_BIN_DIR,
    FLUTTER_PACKAGE_PUBSPEC,
    FLUTTER_TOOL_NAME,
    FLUTTER_TOOL_NAME_WINDOWS,
)

logger = logging.getLogger(__name__)


def flutter_tool_name() -> str:
    return FLUTTER_TOOL_NAME_WINDOWS if sys.platform == "win32" else FLUTTER_TOOL_NAME


def is_flutter_sdk_home(path: Path | str) -> bool:
    """True if *path* holds the ``flutter`` tool and the framework package."""
    home = Path(path)
    return (
        (home / FLUTTER_BIN_DIR / flutter_tool_name()).is_file()
        and (home / FLUTTER_PACKAGE_PUBSPEC).is_file()
    )


class FlutterSdk:
    """An installed Flutter SDK.

    The home directory and version are fixed at construction.  Command
    factory methods validate their arguments and return a
    :class:`~src.flutter_sdk.runner.FlutterCommand` ready to start.
    """

    def __init__(
        self,
        home: Path | str,
        version: FlutterSdkVersion,
        runner: ProcessRunner,
        fs: FileSystemView,
        *,
        verbose_logging: bool = False,
        config_query_timeout_ms: int = DEFAULT_CONFIG_QUERY_TIMEOUT_MS,
    ) -> None:
        self._home = normalize_path(home)
        self._version = version
        self._runner = runner
        self._fs = fs
        self._verbose_logging = verbose_logging
        self._config_cache = ConfigCache(self, timeout_ms=config_query_timeout_ms)

    @classmethod
    def for_path(
        cls,
        path: Path | str,
        runner: ProcessRunner,
        fs: FileSystemView,
        **kwargs,
    ) -> FlutterSdk | None:
        """Return the SDK at *path*, or None if it is not a Flutter SDK home."""
        if not is_flutter_sdk_home(path):
            logger.debug("Not a Flutter SDK home: %s", path)
            return None
        version = FlutterSdkVersion.read_from_sdk(path)
        return cls(path, version, runner, fs, **kwargs)

    def __repr__(self) -> str:
        return f"FlutterSdk(home={str(self._home)!r}, version={str(self._version)!r})"

    # ------------------------------------------------------------------
    # Paths and version
    # ------------------------------------------------------------------

    @property
    def home(self) -> Path:
        return self._home

    @property
    def home_path(self) -> str:
        return str(self._home)

    @property
    def version(self) -> FlutterSdkVersion:
        """The version captured in the ``version`` file."""
        return self._version

    @property
    def flutter_tool_path(self) -> Path:
        return self._home / FLUTTER_BIN_DIR / flutter_tool_name()

    @property
    def dart_sdk_path(self) -> str | None:
        """Path of the Dart SDK cached within the Flutter SDK, or None if missing."""
        candidate = Path(self.home_path + DART_SDK_SUFFIX)
        return str(candidate) if candidate.is_dir() else None

    @property
    def verbose_logging(self) -> bool:
        return self._verbose_logging

    @property
    def config_cache(self) -> ConfigCache:
        return self._config_cache

    # ------------------------------------------------------------------
    # Command factory
    # ------------------------------------------------------------------

    def command(self, request: CommandRequest) -> FlutterCommand:
        """Build *request* into a startable command.

        Raises:
            CommandValidationError: The request is invalid for this SDK.
        """
        ctx = BuildContext(
            sdk_home=self._home,
            version=self._version,
            verbose=self._verbose_logging,
        )
        return FlutterCommand(build_command(request, ctx), self.flutter_tool_path, self._runner)

    def flutter_version(self) -> FlutterCommand:
        return self.command(VersionRequest())

    def flutter_upgrade(self) -> FlutterCommand:
        return self.command(UpgradeRequest())

    def flutter_doctor(self) -> FlutterCommand:
        return self.command(DoctorRequest())

    def flutter_create(self, app_dir: Path | str) -> FlutterCommand:
        return self.command(CreateRequest(target_dir=Path(app_dir)))

    def flutter_packages_get(self, root: PubRoot) -> FlutterCommand:
        return self.command(PackagesGetRequest(root=root))

    def flutter_packages_upgrade(self, root: PubRoot) -> FlutterCommand:
        return self.command(PackagesUpgradeRequest(root=root))

    def flutter_config(self, *additional_args: str) -> FlutterCommand:
        return self.command(ConfigRequest(args=tuple(additional_args)))

    def flutter_run(
        self,
        root: PubRoot,
        main: Path | str,
        device: FlutterDevice | None,
        mode: RunMode,
        *additional_args: str,
    ) -> FlutterCommand:
        return self.command(
            RunRequest(
                root=root,
                main=Path(main),
                device=device,
                mode=mode,
                extra_args=tuple(additional_args),
            )
        )

    def flutter_test(
        self,
        root: PubRoot,
        file_or_dir: Path | str,
        test_name: str | None,
        mode: RunMode,
    ) -> FlutterCommand:
        return self.command(
            FlutterTestRequest(
                root=root,
                file_or_dir=Path(file_or_dir),
                test_name=test_name,
                mode=mode,
            )
        )

    # ------------------------------------------------------------------
    # Package commands
    # ------------------------------------------------------------------

    def start_packages_get(self, root: PubRoot, project: ProjectContext) -> ProcessHandle | None:
        """Start ``flutter packages get`` in the console of the module holding *root*.

        Returns None when *root* is not in one of the project's modules.
        The pub root is refreshed once the command finishes.
        """
        module = root.get_module(project)
        if module is None:
            return None
        return self.flutter_packages_get(root).start_in_module_console(
            module, on_done=lambda _code: root.refresh(self._fs)
        )

    def start_packages_upgrade(self, root: PubRoot, project: ProjectContext) -> ProcessHandle | None:
        """Start ``flutter packages upgrade``; same rules as :meth:`start_packages_get`."""
        module = root.get_module(project)
        if module is None:
            return None
        return self.flutter_packages_upgrade(root).start_in_module_console(
            module, on_done=lambda _code: root.refresh(self._fs)
        )

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def query_flutter_config(self, key: str, use_cached_value: bool = True) -> str | None:
        """Query ``flutter config`` for *key*, optionally reusing a cached outcome."""
        return self._config_cache.query(key, use_cached_value)
