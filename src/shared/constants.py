"""Shared constants used across the Flutter SDK bridge."""
from __future__ import annotations

# Service name used for log entries
SERVICE_NAME: str = "flutter-sdk"

# Layout of a Flutter SDK installation
DART_SDK_SUFFIX: str = "/bin/cache/dart-sdk"
DART_CORE_SUFFIX: str = DART_SDK_SUFFIX + "/lib/core"
FLUTTER_BIN_DIR: str = "bin"
FLUTTER_TOOL_NAME: str = "flutter"
FLUTTER_TOOL_NAME_WINDOWS: str = "flutter.bat"
DART_SDK_CACHE_PATH: str = "cache/dart-sdk"
VERSION_FILE_NAME: str = "version"
FLUTTER_PACKAGE_PUBSPEC: str = "packages/flutter/pubspec.yaml"

# Pub root layout
PUBSPEC_FILE_NAME: str = "pubspec.yaml"
PACKAGES_FILE_NAME: str = ".packages"

# Process settings
DEFAULT_CONFIG_QUERY_TIMEOUT_MS: int = 5000
DEFAULT_PROCESS_ENCODING: str = "utf-8"
