"""Command construction for the ``flutter`` tool.

Each operation is described by a small frozen request dataclass that
carries only the parameters it needs.  :func:`build_command` turns a
request into an immutable :class:`CommandSpec` (kind, working directory,
ordered arguments).  Every validation failure is raised here, before any
process exists:

* :class:`~src.flutter_sdk.exceptions.InvalidArgumentError` when a path
  is not under its pub root;
* :class:`~src.flutter_sdk.exceptions.UnsupportedBySdkError` when the
  SDK version lacks a capability the request depends on.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, ClassVar, Union

from src.flutter_sdk.exceptions import InvalidArgumentError, UnsupportedBySdkError
from src.flutter_sdk.models import FlutterDevice, RunMode
from src.flutter_sdk.pub_root import PubRoot, normalize_path
from src.flutter_sdk.version import FlutterSdkVersion


class CommandKind(str, Enum):
    """The operations the bridge knows how to run."""
    VERSION = "version"
    UPGRADE = "upgrade"
    DOCTOR = "doctor"
    CREATE = "create"
    PACKAGES_GET = "packages_get"
    PACKAGES_UPGRADE = "packages_upgrade"
    CONFIG = "config"
    RUN = "run"
    TEST = "test"

    @property
    def subcommand(self) -> tuple[str, ...]:
        """Tokens placed between the tool path and the arguments."""
        return _SUBCOMMANDS[self]

    @property
    def display_name(self) -> str:
        return _TITLES[self]


_SUBCOMMANDS: dict[CommandKind, tuple[str, ...]] = {
    CommandKind.VERSION: ("--version",),
    CommandKind.UPGRADE: ("upgrade",),
    CommandKind.DOCTOR: ("doctor",),
    CommandKind.CREATE: ("create",),
    CommandKind.PACKAGES_GET: ("packages", "get"),
    CommandKind.PACKAGES_UPGRADE: ("packages", "upgrade"),
    CommandKind.CONFIG: ("config",),
    CommandKind.RUN: ("run",),
    CommandKind.TEST: ("test",),
}

_TITLES: dict[CommandKind, str] = {
    CommandKind.VERSION: "Flutter version",
    CommandKind.UPGRADE: "Flutter upgrade",
    CommandKind.DOCTOR: "Flutter doctor",
    CommandKind.CREATE: "Flutter create",
    CommandKind.PACKAGES_GET: "Flutter packages get",
    CommandKind.PACKAGES_UPGRADE: "Flutter packages upgrade",
    CommandKind.CONFIG: "Flutter config",
    CommandKind.RUN: "Flutter run",
    CommandKind.TEST: "Flutter test",
}


@dataclass(frozen=True)
class CommandSpec:
    """A fully built ``flutter`` invocation.

    The argument tuple is final: nothing appends to it once built.
    """

    kind: CommandKind
    workdir: Path
    args: tuple[str, ...] = ()

    @property
    def title(self) -> str:
        return self.kind.display_name

    def command_line(self, tool_path: Path | str) -> list[str]:
        """Return the argv to execute with *tool_path* as the executable."""
        return [str(tool_path), *self.kind.subcommand, *self.args]

    @property
    def display_command(self) -> str:
        return shlex.join(["flutter", *self.kind.subcommand, *self.args])


# ---------------------------------------------------------------------------
# Requests (one variant per CommandKind)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VersionRequest:
    kind: ClassVar[CommandKind] = CommandKind.VERSION


@dataclass(frozen=True)
class UpgradeRequest:
    kind: ClassVar[CommandKind] = CommandKind.UPGRADE


@dataclass(frozen=True)
class DoctorRequest:
    kind: ClassVar[CommandKind] = CommandKind.DOCTOR


@dataclass(frozen=True)
class CreateRequest:
    kind: ClassVar[CommandKind] = CommandKind.CREATE
    target_dir: Path


@dataclass(frozen=True)
class PackagesGetRequest:
    kind: ClassVar[CommandKind] = CommandKind.PACKAGES_GET
    root: PubRoot


@dataclass(frozen=True)
class PackagesUpgradeRequest:
    kind: ClassVar[CommandKind] = CommandKind.PACKAGES_UPGRADE
    root: PubRoot


@dataclass(frozen=True)
class ConfigRequest:
    kind: ClassVar[CommandKind] = CommandKind.CONFIG
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class RunRequest:
    kind: ClassVar[CommandKind] = CommandKind.RUN
    root: PubRoot
    main: Path
    device: FlutterDevice | None = None
    mode: RunMode = RunMode.RELEASE
    extra_args: tuple[str, ...] = ()


@dataclass(frozen=True)
class FlutterTestRequest:
    kind: ClassVar[CommandKind] = CommandKind.TEST
    root: PubRoot
    file_or_dir: Path
    test_name: str | None = None
    mode: RunMode = RunMode.RELEASE


CommandRequest = Union[
    VersionRequest,
    UpgradeRequest,
    DoctorRequest,
    CreateRequest,
    PackagesGetRequest,
    PackagesUpgradeRequest,
    ConfigRequest,
    RunRequest,
    FlutterTestRequest,
]


@dataclass(frozen=True)
class BuildContext:
    """SDK facts the builder consults.

    ``verbose`` is the global verbose-logging flag; it is the only
    setting outside the request that influences the argument vector.
    """

    sdk_home: Path
    version: FlutterSdkVersion
    verbose: bool = False


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _build_sdk_command(request: CommandRequest, ctx: BuildContext) -> CommandSpec:
    return CommandSpec(kind=request.kind, workdir=ctx.sdk_home)


def _build_create(request: CreateRequest, ctx: BuildContext) -> CommandSpec:
    target = normalize_path(request.target_dir)
    return CommandSpec(kind=request.kind, workdir=target.parent, args=(target.name,))


def _build_packages(
    request: PackagesGetRequest | PackagesUpgradeRequest, ctx: BuildContext
) -> CommandSpec:
    return CommandSpec(kind=request.kind, workdir=request.root.root)


def _build_config(request: ConfigRequest, ctx: BuildContext) -> CommandSpec:
    return CommandSpec(kind=request.kind, workdir=ctx.sdk_home, args=tuple(request.args))


def _require_relative(root: PubRoot, target: Path) -> str:
    rel = root.relative_path(target)
    if rel is None:
        raise InvalidArgumentError(path=str(target), root=str(root.root))
    return rel


def _build_run(request: RunRequest, ctx: BuildContext) -> CommandSpec:
    # Relative path first so a bad main fails before anything else is assembled.
    main_path = _require_relative(request.root, request.main)

    args: list[str] = ["--machine"]
    if ctx.verbose:
        args.append("--verbose")
    if request.device is not None:
        args.append(f"--device-id={request.device.device_id}")
    if request.mode is RunMode.DEBUG:
        args.append("--start-paused")
    args.extend(request.extra_args)
    args.append(main_path)
    return CommandSpec(kind=request.kind, workdir=request.root.root, args=tuple(args))


def _build_test(request: FlutterTestRequest, ctx: BuildContext) -> CommandSpec:
    version = ctx.version
    machine_mode = version.supports_machine_mode_tests()

    args: list[str] = []
    if machine_mode:
        args.append("--machine")
    # Otherwise run normally and show the output in a plain console.
    if request.mode is RunMode.DEBUG:
        if not machine_mode:
            raise UnsupportedBySdkError("debug tests", str(version))
        args.append("--start-paused")
    if ctx.verbose:
        args.append("--verbose")
    if request.test_name is not None:
        if not version.supports_test_filtering():
            raise UnsupportedBySdkError("select tests by name", str(version))
        args.extend(["--plain-name", request.test_name])

    if normalize_path(request.file_or_dir) != normalize_path(request.root.root):
        args.append(_require_relative(request.root, request.file_or_dir))

    return CommandSpec(kind=request.kind, workdir=request.root.root, args=tuple(args))


_BUILDERS: dict[type, Callable[..., CommandSpec]] = {
    VersionRequest: _build_sdk_command,
    UpgradeRequest: _build_sdk_command,
    DoctorRequest: _build_sdk_command,
    CreateRequest: _build_create,
    PackagesGetRequest: _build_packages,
    PackagesUpgradeRequest: _build_packages,
    ConfigRequest: _build_config,
    RunRequest: _build_run,
    FlutterTestRequest: _build_test,
}


def build_command(request: CommandRequest, ctx: BuildContext) -> CommandSpec:
    """Build the :class:`CommandSpec` for *request*.

    Args:
        request: One of the request variants.
        ctx: SDK home, version and verbose flag.

    Returns:
        The immutable command specification.

    Raises:
        InvalidArgumentError: A path argument is outside its pub root.
        UnsupportedBySdkError: The SDK lacks a required capability.
        TypeError: *request* is not a known request variant.
    """
    builder = _BUILDERS.get(type(request))
    if builder is None:
        raise TypeError(f"No command builder for {type(request).__name__}")
    return builder(request, ctx)
