"""Cached ``flutter config --machine`` lookups."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from src.flutter_sdk.cache import SessionCache
from src.flutter_sdk.exceptions import WaitInterruptedError
from src.flutter_sdk.output import ConfigOutputCollector
from src.flutter_sdk.process import ProcessLaunchError
from src.shared.constants import DEFAULT_CONFIG_QUERY_TIMEOUT_MS

if TYPE_CHECKING:
    from src.flutter_sdk.sdk import FlutterSdk

logger = logging.getLogger(__name__)


class ConfigCache:
    """Config option name -> value (or ``None`` for absent).

    Absent outcomes are cached too, so a key the SDK does not expose is
    queried only once unless the caller forces a refresh.

    Args:
        sdk: SDK whose ``flutter config`` is queried.
        timeout_ms: How long a cache miss waits for the tool.
        cache: Backing store; a private one is created when omitted.
    """

    def __init__(
        self,
        sdk: FlutterSdk,
        *,
        timeout_ms: int = DEFAULT_CONFIG_QUERY_TIMEOUT_MS,
        cache: SessionCache[str, str | None] | None = None,
    ) -> None:
        self._sdk = sdk
        self._timeout_ms = timeout_ms
        self._cache: SessionCache[str, str | None] = (
            cache if cache is not None else SessionCache("flutter-config")
        )

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def query(self, key: str, use_cached_value: bool = True) -> str | None:
        """Return the value of config option *key*, or None when absent.

        Args:
            key: Config option name, e.g. ``"android-studio-dir"``.
            use_cached_value: Return a previously stored outcome (value or
                absent) without spawning a process.

        Returns:
            The option value, or None.  On a miss this blocks for at most
            the configured timeout.
        """
        if use_cached_value:
            found, value = self._cache.lookup(key)
            if found:
                return value

        value = self._query_uncached(key)
        self._cache.put(key, value)
        return value

    def invalidate(self, key: str | None = None) -> None:
        self._cache.invalidate(key)

    def _query_uncached(self, key: str) -> str | None:
        handle = self._sdk.flutter_config("--machine").create_process()
        collector = ConfigOutputCollector()
        handle.subscribe(collector)

        logger.info("Calling config --machine")
        start = time.monotonic()
        try:
            handle.start_notify()
        except ProcessLaunchError as exc:
            logger.warning("%s", exc)
            return None

        try:
            finished = handle.wait_for(self._timeout_ms)
        except WaitInterruptedError as exc:
            logger.warning("flutter config --machine: %s", exc)
            return None

        if not finished:
            logger.info("Timeout when calling flutter config --machine")
            return None

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info("flutter config --machine: %dms", duration_ms)

        code = handle.exit_code
        if code != 0:
            logger.info("Exit code from flutter config --machine: %s", code)
            return None
        return collector.value_for(key)
