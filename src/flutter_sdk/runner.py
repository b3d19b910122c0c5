"""Starting built commands as supervised processes.

:class:`ProcessRunner` holds the environment shared by every launch
(console sink, extra environment variables, output encoding).
:class:`FlutterCommand` binds one :class:`~src.flutter_sdk.command.CommandSpec`
to the SDK tool and allows exactly one start, through whichever variant
the caller picks.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Mapping

from src.flutter_sdk.command import CommandSpec
from src.flutter_sdk.exceptions import ProcessStateError
from src.flutter_sdk.models import EventKind, ProcessEvent
from src.flutter_sdk.process import EventSubscriber, ProcessHandle, ProcessLaunchError
from src.flutter_sdk.protocols import ConsoleSink, ProjectContext
from src.shared.constants import DEFAULT_PROCESS_ENCODING

logger = logging.getLogger(__name__)

OnDone = Callable[[int], None]


def _on_terminated(callback: OnDone) -> EventSubscriber:
    def subscriber(event: ProcessEvent) -> None:
        if event.kind is EventKind.TERMINATED and event.exit_code is not None:
            callback(event.exit_code)

    return subscriber


class ProcessRunner:
    """Creates and starts process handles for command specs.

    Args:
        console: Sink used by the in-console start variants.  ``None``
            makes those variants behave like silent starts.
        env: Extra environment variables for every process.
        encoding: Output encoding of the ``flutter`` tool.
    """

    def __init__(
        self,
        console: ConsoleSink | None = None,
        *,
        env: Mapping[str, str] | None = None,
        encoding: str = DEFAULT_PROCESS_ENCODING,
    ) -> None:
        self._console = console
        self._env = dict(env) if env else {}
        self._encoding = encoding

    @property
    def console(self) -> ConsoleSink | None:
        return self._console

    def create_process(self, spec: CommandSpec, tool_path: Path | str) -> ProcessHandle:
        """Return a built, not yet started, handle for *spec*."""
        logger.info("%s (cwd=%s)", spec.display_command, spec.workdir)
        return ProcessHandle(
            spec.command_line(tool_path),
            spec.workdir,
            env=self._env,
            encoding=self._encoding,
            description=spec.display_command,
        )

    def start(
        self,
        handle: ProcessHandle,
        *,
        title: str,
        console: ConsoleSink | None = None,
        project: ProjectContext | None = None,
        module: Any | None = None,
        listener: EventSubscriber | None = None,
        on_done: OnDone | None = None,
    ) -> ProcessHandle | None:
        """Attach observers to *handle* and launch it.

        Returns:
            The started handle, or None when the process could not be
            launched (the failure is logged, not raised).
        """
        if listener is not None:
            handle.subscribe(listener)
        if on_done is not None:
            handle.subscribe(_on_terminated(on_done))
        if console is not None:
            console.attach(handle, title, project=project, module=module)
        try:
            handle.start_notify()
        except ProcessLaunchError as exc:
            logger.warning("%s", exc)
            return None
        return handle


class FlutterCommand:
    """A built ``flutter`` command that can be started once."""

    def __init__(self, spec: CommandSpec, tool_path: Path | str, runner: ProcessRunner) -> None:
        self._spec = spec
        self._tool_path = Path(tool_path)
        self._runner = runner
        self._lock = threading.Lock()
        self._consumed = False

    @property
    def spec(self) -> CommandSpec:
        return self._spec

    @property
    def args(self) -> tuple[str, ...]:
        return self._spec.args

    @property
    def title(self) -> str:
        return self._spec.title

    def command_line(self) -> list[str]:
        return self._spec.command_line(self._tool_path)

    def __repr__(self) -> str:
        return f"FlutterCommand({self._spec.display_command!r}, cwd={str(self._spec.workdir)!r})"

    def create_process(self) -> ProcessHandle:
        """Consume the command and return a built handle.

        The caller subscribes and then calls ``start_notify()`` itself.

        Raises:
            ProcessStateError: The command was already started.
        """
        with self._lock:
            if self._consumed:
                raise ProcessStateError(
                    f"Command '{self._spec.display_command}' was already started"
                )
            self._consumed = True
        return self._runner.create_process(self._spec, self._tool_path)

    def start(
        self,
        on_done: OnDone | None = None,
        listener: EventSubscriber | None = None,
    ) -> ProcessHandle | None:
        """Start without a console; the caller supervises the handle."""
        handle = self.create_process()
        return self._runner.start(
            handle, title=self.title, listener=listener, on_done=on_done
        )

    def start_in_console(self, project: ProjectContext | None) -> ProcessHandle | None:
        """Start and show output in the project's console.

        Returns None when there is no live project to run in.
        """
        if project is None or project.is_disposed:
            return None
        handle = self.create_process()
        return self._runner.start(
            handle,
            title=self.title,
            console=self._runner.console,
            project=project,
        )

    def start_in_module_console(
        self,
        module: Any | None,
        on_done: OnDone | None = None,
        listener: EventSubscriber | None = None,
    ) -> ProcessHandle | None:
        """Start and show output in the console of *module*.

        Returns None when *module* is None.
        """
        if module is None:
            return None
        handle = self.create_process()
        return self._runner.start(
            handle,
            title=self.title,
            console=self._runner.console,
            module=module,
            listener=listener,
            on_done=on_done,
        )
