"""Stand-alone host: projects and modules backed by plain directories."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from src.flutter_sdk.pub_root import normalize_path, relative_path


@dataclass(frozen=True)
class LocalModule:
    """A module rooted at a directory inside a :class:`LocalProject`."""

    name: str
    root: Path

    def __str__(self) -> str:
        return self.name


@dataclass
class LocalProject:
    """A project whose modules are the directories under ``base_dir``."""

    base_dir: Path
    dart_sdk_path: str | None = None
    is_disposed: bool = False
    dart_sdk_library_roots: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.base_dir = normalize_path(self.base_dir)

    @property
    def location_hash(self) -> str:
        return hashlib.sha1(str(self.base_dir).encode("utf-8")).hexdigest()[:8]

    def module_for(self, root: Path) -> LocalModule | None:
        if relative_path(self.base_dir, root) is None:
            return None
        root = normalize_path(root)
        return LocalModule(name=root.name, root=root)
