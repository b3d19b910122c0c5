"""Shared data models for the Flutter SDK bridge."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RunMode(str, Enum):
    """Launch mode for ``flutter run`` and ``flutter test``."""
    DEBUG = "debug"
    RELEASE = "release"


class OutputStream(str, Enum):
    """Process stream an output event came from."""
    STDOUT = "stdout"
    STDERR = "stderr"


class EventKind(str, Enum):
    """Lifecycle event emitted by a process handle."""
    STARTED = "started"
    OUTPUT = "output"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class FlutterDevice:
    """A device the ``flutter`` tool can target."""
    device_id: str
    name: str = ""
    platform: str = ""
    emulator: bool = False


@dataclass(frozen=True)
class ProcessEvent:
    """A single tagged event from a running process.

    ``stream`` and ``text`` are set for ``OUTPUT`` events; ``exit_code``
    is set for ``TERMINATED`` events.
    """
    kind: EventKind
    stream: OutputStream | None = None
    text: str = ""
    exit_code: int | None = None

    @property
    def is_stderr(self) -> bool:
        return self.stream is OutputStream.STDERR
