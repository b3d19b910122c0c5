"""External process supervision.

A :class:`ProcessHandle` wraps one OS process from the moment its
command line is known until it exits:

* **built** -- subscribers may be attached; nothing is running yet.
* **started** -- :meth:`ProcessHandle.start_notify` launched the process.
  One reader thread per pipe feeds a single notification thread, which
  delivers ``STARTED``, then every ``OUTPUT`` event in stream order, then
  ``TERMINATED``.  Subscribers never run on the caller's thread.
* **terminated** -- the exit code is known; waiters are released after
  every subscriber has seen ``TERMINATED``.

Waiting is opt-in (:meth:`~ProcessHandle.wait_for`) and never kills the
process; only :meth:`~ProcessHandle.destroy` does.
"""

from __future__ import annotations

import contextvars
import logging
import os
import queue
import subprocess
import threading
import time
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import IO, Callable, Iterator, Mapping, Sequence

from src.flutter_sdk.exceptions import (
    FlutterSdkError,
    ProcessStateError,
    WaitInterruptedError,
)
from src.flutter_sdk.models import EventKind, OutputStream, ProcessEvent
from src.shared.constants import DEFAULT_PROCESS_ENCODING

logger = logging.getLogger(__name__)

EventSubscriber = Callable[[ProcessEvent], None]


class ProcessLaunchError(FlutterSdkError):
    """Raised when the OS refuses to launch a process."""

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Unable to launch '{command}': {reason}")


class ProcessState(str, Enum):
    """Lifecycle state of a :class:`ProcessHandle`."""
    BUILT = "built"
    STARTED = "started"
    TERMINATED = "terminated"


class ProcessHandle:
    """A supervised external process.

    Args:
        command_line: Executable followed by its arguments.
        workdir: Working directory for the process.
        env: Extra environment variables merged over ``os.environ``.
        encoding: Text encoding of the process output.
        description: Short label used in log lines and errors.
    """

    def __init__(
        self,
        command_line: Sequence[str],
        workdir: Path | str,
        *,
        env: Mapping[str, str] | None = None,
        encoding: str = DEFAULT_PROCESS_ENCODING,
        description: str = "",
    ) -> None:
        self._command_line: tuple[str, ...] = tuple(command_line)
        self._workdir = Path(workdir)
        self._env = dict(env) if env else None
        self._encoding = encoding
        self._description = description or " ".join(self._command_line)

        self._subscribers: list[EventSubscriber] = []
        self._cond = threading.Condition()
        self._state = ProcessState.BUILT
        self._interrupt_requested = False
        self._process: subprocess.Popen[str] | None = None
        self._exit_code: int | None = None
        self._exit_future: Future[int] = Future()
        self._pipe_queue: queue.Queue[tuple[OutputStream, str | None]] = queue.Queue()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def command_line(self) -> tuple[str, ...]:
        return self._command_line

    @property
    def workdir(self) -> Path:
        return self._workdir

    @property
    def description(self) -> str:
        return self._description

    @property
    def state(self) -> ProcessState:
        with self._cond:
            return self._state

    @property
    def is_terminated(self) -> bool:
        return self.state is ProcessState.TERMINATED

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def exit_code(self) -> int | None:
        """Exit code once the process has exited, else None."""
        with self._cond:
            return self._exit_code

    @property
    def exit_future(self) -> Future[int]:
        """Future resolved with the exit code after termination."""
        return self._exit_future

    # ------------------------------------------------------------------
    # Subscription and start
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: EventSubscriber) -> None:
        """Deliver every subsequent event to *subscriber*.

        Subscribers attached before :meth:`start_notify` see the whole
        event sequence.
        """
        with self._cond:
            self._subscribers.append(subscriber)

    def events(self) -> Iterator[ProcessEvent]:
        """Pull-style view of the event stream.

        Subscribes immediately, so call it before :meth:`start_notify` to
        see every event.  The iterator ends after ``TERMINATED``, or once
        the handle is terminated without one (failed launch).
        """
        inbox: queue.Queue[ProcessEvent] = queue.Queue()
        self.subscribe(inbox.put)
        return self._drain(inbox)

    def start_notify(self) -> None:
        """Launch the process and begin delivering events.

        Raises:
            ProcessStateError: The handle was already started.
            ProcessLaunchError: The executable could not be launched.
        """
        with self._cond:
            if self._state is not ProcessState.BUILT:
                raise ProcessStateError(
                    f"Process '{self._description}' was already started"
                )
            self._state = ProcessState.STARTED

        merged_env = None
        if self._env is not None:
            merged_env = dict(os.environ)
            merged_env.update(self._env)

        try:
            self._process = subprocess.Popen(
                list(self._command_line),
                cwd=str(self._workdir),
                env=merged_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding=self._encoding,
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            self._finish(exit_code=None)
            raise ProcessLaunchError(self._description, str(exc)) from exc

        logger.debug("Started pid %s: %s", self._process.pid, self._description)
        assert self._process.stdout is not None and self._process.stderr is not None
        # Each thread runs in its own copy of the caller's context so log
        # records keep the caller's trace id.
        for pipe, stream in (
            (self._process.stdout, OutputStream.STDOUT),
            (self._process.stderr, OutputStream.STDERR),
        ):
            threading.Thread(
                target=contextvars.copy_context().run,
                args=(self._pump, pipe, stream),
                name=f"flutter-{stream.value}-{self._process.pid}",
                daemon=True,
            ).start()
        threading.Thread(
            target=contextvars.copy_context().run,
            args=(self._notify_loop,),
            name=f"flutter-notify-{self._process.pid}",
            daemon=True,
        ).start()

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    def wait_for(self, timeout_ms: int | None = None) -> bool:
        """Block until the process terminates.

        Args:
            timeout_ms: Upper bound in milliseconds; ``None`` waits forever.

        Returns:
            True if the process terminated, False if the timeout elapsed
            first.  The process keeps running after a timeout.

        Raises:
            ProcessStateError: The handle was never started.
            WaitInterruptedError: :meth:`interrupt_waiters` was called.
        """
        deadline = None if timeout_ms is None else time.monotonic() + timeout_ms / 1000.0
        with self._cond:
            if self._state is ProcessState.BUILT:
                raise ProcessStateError(
                    f"Process '{self._description}' has not been started"
                )
            while self._state is not ProcessState.TERMINATED:
                if self._interrupt_requested:
                    self._interrupt_requested = False
                    raise WaitInterruptedError(self._description)
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def wait(self) -> int | None:
        """Block without a timeout and return the exit code."""
        self.wait_for(None)
        return self.exit_code

    def interrupt_waiters(self) -> None:
        """Wake threads blocked in :meth:`wait_for` with :class:`WaitInterruptedError`.

        The request stays pending until a waiter observes it.
        """
        with self._cond:
            self._interrupt_requested = True
            self._cond.notify_all()

    def destroy(self) -> None:
        """Terminate the process if it is still running."""
        process = self._process
        if process is not None and process.poll() is None:
            logger.info("Terminating pid %s: %s", process.pid, self._description)
            process.terminate()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _drain(self, inbox: queue.Queue[ProcessEvent]) -> Iterator[ProcessEvent]:
        while True:
            try:
                event = inbox.get(timeout=0.05)
            except queue.Empty:
                if self.is_terminated and inbox.empty():
                    return
                continue
            yield event
            if event.kind is EventKind.TERMINATED:
                return

    def _pump(self, pipe: IO[str], stream: OutputStream) -> None:
        try:
            for text in iter(pipe.readline, ""):
                self._pipe_queue.put((stream, text))
        finally:
            pipe.close()
            self._pipe_queue.put((stream, None))

    def _notify_loop(self) -> None:
        assert self._process is not None
        self._emit(ProcessEvent(kind=EventKind.STARTED))
        open_streams = 2
        while open_streams:
            stream, text = self._pipe_queue.get()
            if text is None:
                open_streams -= 1
                continue
            self._emit(ProcessEvent(kind=EventKind.OUTPUT, stream=stream, text=text))
        exit_code = self._process.wait()
        logger.debug("pid %s exited with %s", self._process.pid, exit_code)
        self._finish(exit_code=exit_code)

    def _finish(self, exit_code: int | None) -> None:
        with self._cond:
            self._exit_code = exit_code
        if exit_code is not None:
            self._emit(ProcessEvent(kind=EventKind.TERMINATED, exit_code=exit_code))
        with self._cond:
            self._state = ProcessState.TERMINATED
            self._cond.notify_all()
        if exit_code is not None:
            self._exit_future.set_result(exit_code)
        else:
            self._exit_future.cancel()

    def _emit(self, event: ProcessEvent) -> None:
        with self._cond:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "Process event subscriber failed on %s for '%s'",
                    event.kind.value,
                    self._description,
                )
