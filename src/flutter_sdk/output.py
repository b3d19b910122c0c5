"""Process output demultiplexing.

Two subscribers for :class:`~src.flutter_sdk.process.ProcessHandle`
events:

* :class:`ConfigOutputCollector` rebuilds the single JSON object that
  ``flutter config --machine`` prints after its banner lines.
* :class:`MachineOutputDemuxer` splits the output of ``run``/``test``
  in machine mode into JSON protocol frames and plain text lines.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from src.flutter_sdk.models import EventKind, OutputStream, ProcessEvent

logger = logging.getLogger(__name__)


def _scalar_to_str(value: Any) -> str | None:
    """Render a JSON scalar the way the tool would print it; None for non-scalars."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return None


class ConfigOutputCollector:
    """Collects the JSON payload of ``flutter config --machine``.

    Every stdout line before the first one starting with ``{`` is tool
    noise (e.g. "Building flutter tool...") and is dropped.  From that
    line on, stdout text is kept verbatim until the process exits.
    """

    def __init__(self) -> None:
        self._seen_brace = False
        self._chunks: list[str] = []

    def __call__(self, event: ProcessEvent) -> None:
        if event.kind is not EventKind.OUTPUT or event.stream is not OutputStream.STDOUT:
            return
        if event.text.startswith("{"):
            self._seen_brace = True
        if self._seen_brace:
            self._chunks.append(event.text)

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def parse(self) -> dict[str, Any] | None:
        """Parse the collected text as one JSON object, or None."""
        try:
            value = json.loads(self.text)
        except json.JSONDecodeError as exc:
            logger.debug("Unparsable config output: %s", exc)
            return None
        return value if isinstance(value, dict) else None

    def value_for(self, key: str) -> str | None:
        """Return the scalar value stored under *key*, or None when absent."""
        obj = self.parse()
        if obj is None:
            return None
        return _scalar_to_str(obj.get(key))


def parse_frames(line: str) -> list[dict[str, Any]] | None:
    """Return the JSON protocol frames carried by *line*, or None for plain text.

    A frame line is a JSON object, or a JSON array of objects (the
    daemon protocol wraps each message in ``[...]``).
    """
    stripped = line.strip()
    if not stripped or stripped[0] not in "{[":
        return None
    try:
        value = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
        return value
    return None


class MachineOutputDemuxer:
    """Routes machine-mode output to a frame consumer and a text consumer.

    Output is re-assembled into whole lines per stream.  Stdout lines that
    carry JSON frames go to *on_frame*; every other line (and all of
    stderr) goes to *on_text*.  A trailing partial line is flushed when
    the process terminates.
    """

    def __init__(
        self,
        on_frame: Callable[[dict[str, Any]], None],
        on_text: Callable[[OutputStream, str], None],
    ) -> None:
        self._on_frame = on_frame
        self._on_text = on_text
        self._partial: dict[OutputStream, str] = {}

    def __call__(self, event: ProcessEvent) -> None:
        if event.kind is EventKind.OUTPUT and event.stream is not None:
            self.feed(event.stream, event.text)
        elif event.kind is EventKind.TERMINATED:
            self.flush()

    def feed(self, stream: OutputStream, text: str) -> None:
        buffered = self._partial.pop(stream, "") + text
        lines = buffered.splitlines(keepends=True)
        if lines and not lines[-1].endswith(("\n", "\r")):
            self._partial[stream] = lines.pop()
        for line in lines:
            self._dispatch(stream, line)

    def flush(self) -> None:
        for stream in list(self._partial):
            self._dispatch(stream, self._partial.pop(stream))

    def _dispatch(self, stream: OutputStream, line: str) -> None:
        if stream is OutputStream.STDOUT:
            frames = parse_frames(line)
            if frames is not None:
                for frame in frames:
                    self._on_frame(frame)
                return
        self._on_text(stream, line)
