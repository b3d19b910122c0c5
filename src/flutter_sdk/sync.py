"""Blocking orchestration: making sure the SDK is usable and creating projects.

These are the only operations that block the caller on an external
process without a timeout.  They are expected to run rarely (once per
session for :meth:`SyncCoordinator.ensure_ready`) and return a plain
negative outcome instead of raising for anything the tool reports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from src.flutter_sdk.exceptions import WaitInterruptedError
from src.flutter_sdk.process import EventSubscriber
from src.flutter_sdk.protocols import FileSystemView, ProjectContext
from src.flutter_sdk.pub_root import PubRoot
from src.flutter_sdk.sdk import FlutterSdk
from src.shared.constants import DART_SDK_CACHE_PATH, FLUTTER_BIN_DIR

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Runs the SDK readiness gate and ``flutter create`` for one SDK."""

    def __init__(self, sdk: FlutterSdk, fs: FileSystemView) -> None:
        self._sdk = sdk
        self._fs = fs

    def ensure_ready(self, project: ProjectContext) -> bool:
        """Run ``flutter --version`` and wait for it to complete.

        This makes the tool download and cache the Dart SDK.  Output is
        shown in the project's console.

        Returns:
            True only if the command started, exited with 0, and
            ``bin/cache/dart-sdk`` exists afterwards.
        """
        handle = self._sdk.flutter_version().start_in_console(project)
        if handle is None:
            return False

        try:
            exit_code = handle.wait()
        except WaitInterruptedError as exc:
            logger.warning("SDK sync interrupted: %s", exc)
            return False
        if exit_code != 0:
            return False

        flutter_bin = self._fs.find_child(self._sdk.home, FLUTTER_BIN_DIR)
        if flutter_bin is None:
            return False
        self._fs.refresh(flutter_bin, recursive=True)
        return self._fs.find_file_by_relative_path(flutter_bin, DART_SDK_CACHE_PATH) is not None

    def create_project(
        self,
        base_dir: Path | str,
        module: Any | None = None,
        listener: EventSubscriber | None = None,
    ) -> PubRoot | None:
        """Run ``flutter create`` into *base_dir* and wait for it to finish.

        Output goes to the module's console when *module* is given;
        otherwise the command runs silently.  *listener* is notified of
        every process event either way.

        Returns:
            The new pub root, or None on any failure.
        """
        base_dir = Path(base_dir)
        command = self._sdk.flutter_create(base_dir)
        if module is None:
            handle = command.start(None, listener)
        else:
            handle = command.start_in_module_console(module, None, listener)
        if handle is None:
            return None

        try:
            if handle.wait() != 0:
                return None
        except WaitInterruptedError as exc:
            logger.warning("flutter create interrupted: %s", exc)
            return None

        self._fs.refresh(base_dir, recursive=True)
        return PubRoot.for_directory(base_dir)
