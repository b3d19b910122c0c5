"""Shared fixtures for the Flutter SDK bridge tests.

Most process-level tests drive a fake ``flutter`` tool: a small Python
script installed as ``<home>/bin/flutter`` with the interpreter running
the tests as its shebang.  Every invocation appends its argv (as JSON)
to ``<home>/calls.log`` so tests can count spawns.

The script's behaviour is steered through environment variables, which
reach it because process environments are merged over ``os.environ``:

* ``FAKE_FLUTTER_EXIT`` -- exit code (default 0).
* ``FAKE_FLUTTER_NO_DART`` -- ``--version`` does not create the Dart SDK.
* ``FAKE_FLUTTER_SLEEP`` -- seconds ``config --machine`` sleeps first.
* ``FAKE_FLUTTER_CONFIG`` -- raw text printed instead of the JSON object.
"""

from __future__ import annotations

import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from src.flutter_sdk.filesystem import LocalFileSystem
from src.flutter_sdk.host import LocalProject
from src.flutter_sdk.pub_root import PubRoot
from src.flutter_sdk.runner import ProcessRunner
from src.flutter_sdk.sdk import FlutterSdk
from src.shared.constants import DART_SDK_SUFFIX

FAKE_CONFIG = {
    "android-studio-dir": "/opt/android-studio",
    "enable-web": True,
    "jdk-dir": None,
}

_FAKE_FLUTTER = textwrap.dedent("""\
    import json, os, sys, time

    home = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    args = sys.argv[1:]
    with open(os.path.join(home, "calls.log"), "a", encoding="utf-8") as log:
        log.write(json.dumps(args) + "\\n")
    exit_code = int(os.environ.get("FAKE_FLUTTER_EXIT", "0"))

    if args[:1] == ["--version"]:
        print("Flutter 0.0.3 - channel beta")
        if exit_code == 0 and not os.environ.get("FAKE_FLUTTER_NO_DART"):
            os.makedirs(os.path.join(home, "bin", "cache", "dart-sdk"), exist_ok=True)
    elif args[:2] == ["config", "--machine"]:
        print("Building flutter tool...")
        sys.stdout.flush()
        time.sleep(float(os.environ.get("FAKE_FLUTTER_SLEEP", "0")))
        raw = os.environ.get("FAKE_FLUTTER_CONFIG")
        print(raw if raw is not None else json.dumps(CONFIG, indent=2))
    elif args[:1] == ["create"] and exit_code == 0:
        target = os.path.join(os.getcwd(), args[-1])
        os.makedirs(os.path.join(target, "lib"), exist_ok=True)
        with open(os.path.join(target, "pubspec.yaml"), "w", encoding="utf-8") as f:
            f.write("name: " + args[-1] + "\\n")
        print("All done!")
    elif args[:2] in (["packages", "get"], ["packages", "upgrade"]):
        with open(os.path.join(os.getcwd(), ".packages"), "w", encoding="utf-8") as f:
            f.write("app:lib/\\n")
        print("Running 'flutter packages " + args[1] + "' in " + os.path.basename(os.getcwd()))
    elif args[:1] == ["doctor"]:
        print("host=" + os.environ.get("FLUTTER_HOST", ""))
        print("! Android toolchain not found", file=sys.stderr)
    elif args[:1] == ["run"]:
        print("Launching " + args[-1])
        print(json.dumps([{"event": "app.start", "params": {"appId": "a1"}}]))
        print(json.dumps([{"event": "app.progress", "params": {"message": "Syncing files"}}]))
    elif args[:1] == ["test"]:
        if "--machine" in args:
            print(json.dumps({"type": "testStart", "test": {"name": "adds one"}}))
            print(json.dumps({"type": "testDone", "result": "success"}))
        else:
            print("00:01 +1: All tests passed!")
    else:
        print(" ".join(args))

    sys.exit(exit_code)
""")


def _write_tool(home: Path) -> Path:
    tool = home / "bin" / "flutter"
    tool.write_text(
        f"#!{sys.executable}\n"
        f"CONFIG = {json.dumps(FAKE_CONFIG)!r}\n"
        "import json as _json\n"
        "CONFIG = _json.loads(CONFIG)\n"
        + _FAKE_FLUTTER,
        encoding="utf-8",
    )
    tool.chmod(0o755)
    return tool


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """The CLI reconfigures the package logger; put it back after each test."""
    logger = logging.getLogger("src.flutter_sdk")
    handlers, propagate, level = list(logger.handlers), logger.propagate, logger.level
    yield
    logger.handlers[:] = handlers
    logger.propagate = propagate
    logger.setLevel(level)


# ---------------------------------------------------------------------------
# SDK fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sdk_factory(tmp_path: Path) -> Callable[..., Path]:
    """Return a function that lays out a fake SDK home and returns its path."""

    def make(name: str = "flutter", version: str | None = "0.0.3") -> Path:
        home = tmp_path / name
        (home / "bin").mkdir(parents=True)
        (home / "packages" / "flutter").mkdir(parents=True)
        (home / "packages" / "flutter" / "pubspec.yaml").write_text(
            "name: flutter\n", encoding="utf-8"
        )
        if version is not None:
            (home / "version").write_text(version + "\n", encoding="utf-8")
        _write_tool(home)
        return home

    return make


@pytest.fixture
def sdk_home(sdk_factory) -> Path:
    return sdk_factory()


@pytest.fixture
def sdk(sdk_home: Path) -> FlutterSdk:
    found = FlutterSdk.for_path(sdk_home, ProcessRunner(), LocalFileSystem())
    assert found is not None
    return found


@pytest.fixture
def read_calls() -> Callable[[Path], list[list[str]]]:
    """Return a function listing the argv of every fake tool invocation."""

    def read(home: Path) -> list[list[str]]:
        log = home / "calls.log"
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines()]

    return read


# ---------------------------------------------------------------------------
# Project fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app_root(tmp_path: Path) -> PubRoot:
    """A pub root at ``<tmp>/workspace/app`` with a main file and one test."""
    root = tmp_path / "workspace" / "app"
    (root / "lib").mkdir(parents=True)
    (root / "test").mkdir()
    (root / "pubspec.yaml").write_text("name: app\n", encoding="utf-8")
    (root / "lib" / "main.dart").write_text("void main() {}\n", encoding="utf-8")
    (root / "test" / "widget_test.dart").write_text("void main() {}\n", encoding="utf-8")
    pub_root = PubRoot.for_directory(root)
    assert pub_root is not None
    return pub_root


@pytest.fixture
def project(tmp_path: Path, sdk_home: Path) -> LocalProject:
    """A live project at ``<tmp>/workspace`` configured with the fake SDK."""
    return LocalProject(
        base_dir=tmp_path / "workspace",
        dart_sdk_path=str(sdk_home) + DART_SDK_SUFFIX,
    )
