"""Local file system implementation of :class:`~src.flutter_sdk.protocols.FileSystemView`."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Reads straight through to the disk.

    There is no virtual file cache to invalidate, so :meth:`refresh` only
    checks that the path is still there.
    """

    def refresh(self, path: Path, recursive: bool = True) -> None:
        path = Path(path)
        if not path.exists():
            logger.debug("Refresh of missing path %s", path)
            return
        logger.debug("Refreshed %s (recursive=%s)", path, recursive)

    def find_child(self, directory: Path, name: str) -> Path | None:
        child = Path(directory) / name
        return child if child.exists() else None

    def find_file_by_relative_path(self, directory: Path, relative: str) -> Path | None:
        target = Path(directory) / relative
        return target if target.exists() else None
