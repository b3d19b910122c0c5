"""Rich-based console sink for ``flutter`` processes.

Provides the terminal implementation of
:class:`~src.flutter_sdk.protocols.ConsoleSink`: a header panel with the
command line, stdout as plain text, stderr in red, machine-mode JSON
frames as one-line summaries, and a footer with the exit code.  Uses a
module-level :class:`~rich.console.Console` singleton for consistent
output.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from src.flutter_sdk.models import EventKind, OutputStream, ProcessEvent
from src.flutter_sdk.output import MachineOutputDemuxer
from src.flutter_sdk.process import ProcessHandle
from src.flutter_sdk.protocols import ProjectContext

# ---------------------------------------------------------------------------
# Module-level Console singleton
# ---------------------------------------------------------------------------

_console = Console()


# ---------------------------------------------------------------------------
# Display functions
# ---------------------------------------------------------------------------


def print_command_header(title: str, handle: ProcessHandle, context: str = "") -> None:
    """Print a panel naming the command and where it runs."""
    header = Text()
    header.append(" ".join(handle.command_line[1:]) or title, style="bold white")
    header.append("\n")
    header.append("cwd: ", style="bold")
    header.append(str(handle.workdir), style="green")
    if context:
        header.append("\n")
        header.append("for: ", style="bold")
        header.append(context, style="cyan")
    _console.print(
        Panel(header, title=f"[bold]{title}[/bold]", border_style="blue", expand=False)
    )


def print_output(stream: OutputStream, text: str) -> None:
    """Print one chunk of process output; stderr is shown in red."""
    style = "red" if stream is OutputStream.STDERR else None
    _console.print(Text(text.rstrip("\r\n"), style=style or ""), highlight=False)


def summarize_frame(frame: dict[str, Any]) -> str:
    """One-line summary of a machine-mode JSON frame."""
    if "event" in frame:
        params = frame.get("params") or {}
        message = params.get("message") if isinstance(params, dict) else None
        return f"{frame['event']}: {message}" if message else str(frame["event"])
    if "type" in frame:
        test = frame.get("test")
        name = test.get("name") if isinstance(test, dict) else None
        parts = [str(frame["type"])]
        if name:
            parts.append(str(name))
        if "result" in frame:
            parts.append(f"[{frame['result']}]")
        return " ".join(parts)
    return json.dumps(frame, sort_keys=True)


def print_machine_frame(frame: dict[str, Any]) -> None:
    _console.print(Text(summarize_frame(frame), style="cyan"), highlight=False)


def print_exit(title: str, exit_code: int) -> None:
    """Print the footer line for a finished process."""
    style = "green" if exit_code == 0 else "red"
    _console.print(
        Text(f"{title} finished with exit code {exit_code}", style=f"bold {style}")
    )


def print_error_panel(error: str | Exception) -> None:
    """Print an error in a red panel."""
    _console.print(
        Panel(
            Text(str(error)),
            title="[bold red]Error[/bold red]",
            border_style="red",
            expand=False,
        )
    )


# ---------------------------------------------------------------------------
# Console sink
# ---------------------------------------------------------------------------


class RichConsoleSink:
    """Renders process events to the terminal.

    Commands whose arguments include ``--machine`` are routed through a
    :class:`~src.flutter_sdk.output.MachineOutputDemuxer` so protocol
    frames are summarised instead of dumped.
    """

    def attach(
        self,
        handle: ProcessHandle,
        title: str,
        *,
        project: ProjectContext | None = None,
        module: Any | None = None,
    ) -> None:
        context = str(module) if module is not None else ""
        if not context and project is not None:
            context = project.location_hash

        demuxer: MachineOutputDemuxer | None = None
        if "--machine" in handle.command_line:
            demuxer = MachineOutputDemuxer(on_frame=print_machine_frame, on_text=print_output)

        def render(event: ProcessEvent) -> None:
            if event.kind is EventKind.STARTED:
                print_command_header(title, handle, context)
            elif event.kind is EventKind.OUTPUT and event.stream is not None:
                if demuxer is not None:
                    demuxer(event)
                else:
                    print_output(event.stream, event.text)
            elif event.kind is EventKind.TERMINATED and event.exit_code is not None:
                if demuxer is not None:
                    demuxer(event)
                print_exit(title, event.exit_code)

        handle.subscribe(render)
