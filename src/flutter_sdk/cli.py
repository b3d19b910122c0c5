"""Command-line front end for the Flutter SDK bridge.

Acts as the host: it supplies a project rooted at the current directory,
the local file system, and a Rich console, then maps outcomes to exit
codes (0 success, 1 process failure or absent result, 2 invalid input
or configuration).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from src.flutter_sdk.config import FlutterSettings, load_flutter_settings
from src.flutter_sdk.display import RichConsoleSink, _console, print_error_panel
from src.flutter_sdk.exceptions import CommandValidationError, ConfigurationError
from src.flutter_sdk.host import LocalProject
from src.flutter_sdk.models import FlutterDevice, RunMode
from src.flutter_sdk.process import ProcessHandle
from src.flutter_sdk.pub_root import PubRoot
from src.flutter_sdk.sdk import FlutterSdk
from src.flutter_sdk.session import FlutterSession
from src.shared.constants import DART_SDK_SUFFIX, SERVICE_NAME
from src.shared.logging import new_trace_id, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="flutter-sdk",
    help="Run Flutter SDK commands with supervised output.",
    no_args_is_help=True,
)
packages_app = typer.Typer(help="Dependency management commands.", no_args_is_help=True)
app.add_typer(packages_app, name="packages")


@dataclass
class _CliContext:
    settings: FlutterSettings
    sdk_path: str


def _abs(path: Path) -> Path:
    return Path(os.path.abspath(str(path)))


def _fail(message: str, code: int = 2) -> typer.Exit:
    print_error_panel(message)
    return typer.Exit(code)


def _open(ctx: typer.Context) -> tuple[FlutterSession, FlutterSdk, LocalProject]:
    state: _CliContext = ctx.obj
    if not state.sdk_path:
        raise _fail("No Flutter SDK configured; pass --sdk or set FLUTTER_ROOT.")

    session = FlutterSession(state.settings, console=RichConsoleSink())
    sdk_home = _abs(Path(state.sdk_path))
    project = LocalProject(
        base_dir=_abs(Path.cwd()),
        dart_sdk_path=str(sdk_home) + DART_SDK_SUFFIX,
    )
    sdk = session.get_flutter_sdk(project)
    if sdk is None:
        raise _fail(f"Not a Flutter SDK: {sdk_home}")
    return session, sdk, project


def _pub_root(path: Optional[Path]) -> PubRoot:
    directory = _abs(path or Path.cwd())
    root = PubRoot.for_directory(directory)
    if root is None:
        raise _fail(f"No pubspec.yaml in {directory}")
    return root


def _finish(handle: ProcessHandle | None) -> None:
    if handle is None:
        raise _fail("The command could not be started here.", code=1)
    try:
        exit_code = handle.wait()
    except KeyboardInterrupt:
        handle.destroy()
        raise
    raise typer.Exit(exit_code or 0)


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


@app.callback()
def main(
    ctx: typer.Context,
    sdk: Optional[Path] = typer.Option(None, "--sdk", help="Flutter SDK home directory."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML file with a 'flutter_sdk:' section."),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose tool output and debug logs."),
) -> None:
    try:
        settings = load_flutter_settings(config)
    except ConfigurationError as exc:
        raise _fail(str(exc))
    if verbose:
        settings.verbose_logging = True
        settings.log_level = "debug"

    setup_logging(SERVICE_NAME, settings.log_level, logger_name="src.flutter_sdk")
    new_trace_id()
    ctx.obj = _CliContext(settings=settings, sdk_path=str(sdk) if sdk else settings.sdk_path)


# ---------------------------------------------------------------------------
# SDK commands
# ---------------------------------------------------------------------------


@app.command()
def version(ctx: typer.Context) -> None:
    """Run 'flutter --version'."""
    _session, sdk, project = _open(ctx)
    _finish(sdk.flutter_version().start_in_console(project))


@app.command()
def doctor(ctx: typer.Context) -> None:
    """Run 'flutter doctor'."""
    _session, sdk, project = _open(ctx)
    _finish(sdk.flutter_doctor().start_in_console(project))


@app.command()
def upgrade(ctx: typer.Context) -> None:
    """Run 'flutter upgrade'."""
    _session, sdk, project = _open(ctx)
    _finish(sdk.flutter_upgrade().start_in_console(project))


@app.command()
def sync(ctx: typer.Context) -> None:
    """Make sure the SDK has downloaded its Dart SDK."""
    session, sdk, project = _open(ctx)
    if not session.sync_coordinator(sdk).ensure_ready(project):
        raise _fail(f"Flutter SDK at {sdk.home_path} is not ready.", code=1)
    _console.print(f"Dart SDK: {sdk.dart_sdk_path}")


@app.command()
def create(
    ctx: typer.Context,
    directory: Path = typer.Argument(..., help="Directory of the new project."),
) -> None:
    """Run 'flutter create' and wait for it."""
    session, sdk, project = _open(ctx)
    directory = _abs(directory)
    module = project.module_for(directory)
    root = session.sync_coordinator(sdk).create_project(directory, module)
    if root is None:
        raise _fail(f"flutter create failed for {directory}", code=1)
    _console.print(f"Created {root.root}")


@app.command("config")
def config_query(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Config option, e.g. android-studio-dir."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Always query the tool."),
) -> None:
    """Print the value of a 'flutter config' option."""
    _session, sdk, _project = _open(ctx)
    value = sdk.query_flutter_config(key, use_cached_value=not no_cache)
    if value is None:
        raise _fail(f"'{key}' is not set.", code=1)
    _console.print(value, highlight=False)


# ---------------------------------------------------------------------------
# Packages
# ---------------------------------------------------------------------------


@packages_app.command("get")
def packages_get(
    ctx: typer.Context,
    root: Optional[Path] = typer.Argument(None, help="Pub root; defaults to the current directory."),
) -> None:
    """Run 'flutter packages get'."""
    _session, sdk, project = _open(ctx)
    _finish(sdk.start_packages_get(_pub_root(root), project))


@packages_app.command("upgrade")
def packages_upgrade(
    ctx: typer.Context,
    root: Optional[Path] = typer.Argument(None, help="Pub root; defaults to the current directory."),
) -> None:
    """Run 'flutter packages upgrade'."""
    _session, sdk, project = _open(ctx)
    _finish(sdk.start_packages_upgrade(_pub_root(root), project))


# ---------------------------------------------------------------------------
# Run and test
# ---------------------------------------------------------------------------


@app.command()
def run(
    ctx: typer.Context,
    main_file: Path = typer.Argument(..., help="Entry point, e.g. lib/main.dart."),
    extra: Optional[list[str]] = typer.Argument(None, help="Extra arguments passed to 'flutter run'."),
    root: Optional[Path] = typer.Option(None, "--root", help="Pub root; defaults to the current directory."),
    device: Optional[str] = typer.Option(None, "--device", help="Device id to run on."),
    debug: bool = typer.Option(False, "--debug", help="Start paused for a debugger."),
) -> None:
    """Run an app with 'flutter run --machine'."""
    _session, sdk, project = _open(ctx)
    pub_root = _pub_root(root)
    target = FlutterDevice(device_id=device) if device else None
    mode = RunMode.DEBUG if debug else RunMode.RELEASE
    try:
        command = sdk.flutter_run(pub_root, _abs(main_file), target, mode, *(extra or []))
    except CommandValidationError as exc:
        raise _fail(str(exc))
    _finish(command.start_in_console(project))


@app.command("test")
def test_command(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Test file or directory; defaults to the whole suite."),
    root: Optional[Path] = typer.Option(None, "--root", help="Pub root; defaults to the current directory."),
    name: Optional[str] = typer.Option(None, "--name", help="Only run tests whose name contains this."),
    debug: bool = typer.Option(False, "--debug", help="Start paused for a debugger."),
) -> None:
    """Run tests with 'flutter test'."""
    _session, sdk, project = _open(ctx)
    pub_root = _pub_root(root)
    target = _abs(path) if path else pub_root.root
    mode = RunMode.DEBUG if debug else RunMode.RELEASE
    try:
        command = sdk.flutter_test(pub_root, target, name, mode)
    except CommandValidationError as exc:
        raise _fail(str(exc))
    _finish(command.start_in_console(project))


if __name__ == "__main__":
    app()
