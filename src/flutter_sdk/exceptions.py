"""Custom exceptions for the Flutter SDK bridge."""

from __future__ import annotations


class FlutterSdkError(Exception):
    """Base exception for all Flutter SDK bridge errors."""

    pass


class CommandValidationError(FlutterSdkError, ValueError):
    """Raised when a command cannot be built from the given arguments.

    Always raised synchronously by the command builder, before any
    process is spawned.
    """

    pass


class InvalidArgumentError(CommandValidationError):
    """Raised when a path argument is not located under its pub root."""

    def __init__(self, path: str, root: str) -> None:
        self.path = path
        self.root = root
        super().__init__(f"'{path}' isn't within the pub root: {root}")


class UnsupportedBySdkError(CommandValidationError):
    """Raised when the installed SDK is too old for a requested feature."""

    def __init__(self, feature: str, version: str = "") -> None:
        self.feature = feature
        self.version = version
        suffix = f" (version {version})" if version else ""
        super().__init__(f"Flutter SDK is too old to {feature}{suffix}")


class ProcessStateError(FlutterSdkError, RuntimeError):
    """Raised when a command or process handle is started twice."""

    pass


class WaitInterruptedError(FlutterSdkError):
    """Raised when a thread blocked on process exit is interrupted."""

    def __init__(self, command: str = "") -> None:
        self.command = command
        super().__init__(f"Interrupted while waiting for '{command}'")


class ConfigurationError(FlutterSdkError):
    """Raised for configuration issues (bad YAML, wrong section types)."""

    pass
