"""Runtime-checkable protocols for the host collaborators.

The bridge never talks to the host environment directly.  Projects,
consoles and the file system are supplied through these interfaces.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from src.flutter_sdk.process import ProcessHandle


@runtime_checkable
class ProjectContext(Protocol):
    """A host project that Flutter commands run on behalf of."""

    @property
    def is_disposed(self) -> bool:
        """True once the host has closed the project."""
        ...

    @property
    def location_hash(self) -> str:
        """Stable identifier for the project location."""
        ...

    @property
    def dart_sdk_path(self) -> str | None:
        """Home path of the Dart SDK configured for the project, if any."""
        ...

    @property
    def dart_sdk_library_roots(self) -> Sequence[str]:
        """Class roots of the project's "Dart SDK" library, empty when it has none."""
        ...

    def module_for(self, root: Path) -> Any | None:
        """Return the project module that contains *root*, or None.

        Args:
            root: Directory of a pub root.

        Returns:
            An opaque module handle understood by the console sink.
        """
        ...


@runtime_checkable
class ConsoleSink(Protocol):
    """Renders the output of a process live."""

    def attach(
        self,
        handle: ProcessHandle,
        title: str,
        *,
        project: ProjectContext | None = None,
        module: Any | None = None,
    ) -> None:
        """Subscribe to *handle* before it starts and display its events.

        Args:
            handle: Built (not yet started) process handle.
            title: Human-readable title for the console view.
            project: Project whose console should be used, if any.
            module: Module whose console should be used, if any.
        """
        ...


@runtime_checkable
class FileSystemView(Protocol):
    """The host's view of the file system."""

    def refresh(self, path: Path, recursive: bool = True) -> None:
        """Make files written by an external process visible to lookups."""
        ...

    def find_child(self, directory: Path, name: str) -> Path | None:
        """Return the direct child *name* of *directory* if it exists."""
        ...

    def find_file_by_relative_path(self, directory: Path, relative: str) -> Path | None:
        """Return ``directory / relative`` if it exists."""
        ...
