"""Pub root handle: a directory containing a ``pubspec.yaml``."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any

from src.flutter_sdk.protocols import FileSystemView, ProjectContext
from src.shared.constants import PACKAGES_FILE_NAME, PUBSPEC_FILE_NAME

logger = logging.getLogger(__name__)


def normalize_path(path: Path | str) -> Path:
    """Collapse ``..`` and duplicate separators without touching the disk."""
    return Path(os.path.normpath(str(path)))


def relative_path(root: Path | str, target: Path | str) -> str | None:
    """Return *target* relative to *root* in native separator form.

    Returns None when *target* is not located under *root*.  When the two
    paths are equal the result is ``"."``.
    """
    root_path = normalize_path(root)
    target_path = normalize_path(target)
    try:
        rel = PurePath(target_path).relative_to(root_path)
    except ValueError:
        return None
    return str(rel)


@dataclass(frozen=True)
class PubRoot:
    """A directory recognised by the Dart package manager."""

    root: Path

    @classmethod
    def for_directory(cls, directory: Path | str | None) -> PubRoot | None:
        """Return the pub root at *directory*, or None if there is no pubspec."""
        if directory is None:
            return None
        directory = Path(directory)
        if not (directory / PUBSPEC_FILE_NAME).is_file():
            return None
        return cls(root=normalize_path(directory))

    @property
    def pubspec(self) -> Path:
        return self.root / PUBSPEC_FILE_NAME

    @property
    def packages_file(self) -> Path | None:
        candidate = self.root / PACKAGES_FILE_NAME
        return candidate if candidate.exists() else None

    def relative_path(self, target: Path | str) -> str | None:
        return relative_path(self.root, target)

    def get_module(self, project: ProjectContext) -> Any | None:
        """Return the module of *project* that holds this pub root."""
        return project.module_for(self.root)

    def refresh(self, fs: FileSystemView) -> None:
        """Refresh the pub root so ``.packages`` and lock files are visible."""
        logger.debug("Refreshing pub root %s", self.root)
        fs.refresh(self.root, recursive=True)
