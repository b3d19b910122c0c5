"""Flutter SDK version parsing and capability gates."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from src.shared.constants import VERSION_FILE_NAME

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)")

# Minimum versions for feature-specific flags.
MIN_MACHINE_MODE_TESTS: tuple[int, int, int] = (0, 0, 2)
MIN_TEST_FILTERING: tuple[int, int, int] = (0, 0, 3)


@dataclass(frozen=True)
class FlutterSdkVersion:
    """The coarse SDK version read from the ``version`` file.

    Not meant for presentation; only for checking the presence of
    baseline features.  An unparsable version string yields an invalid
    version for which every capability is absent.
    """

    full_version: str = ""
    parts: tuple[int, int, int] | None = None

    @classmethod
    def parse(cls, text: str | None) -> FlutterSdkVersion:
        """Parse a version string such as ``"0.0.3"`` or ``"1.22.6-pre"``."""
        raw = (text or "").strip()
        match = _VERSION_RE.match(raw)
        if match is None:
            if raw:
                logger.debug("Unrecognised Flutter version string: %r", raw)
            return cls(full_version=raw, parts=None)
        major, minor, patch = (int(g) for g in match.groups())
        return cls(full_version=raw, parts=(major, minor, patch))

    @classmethod
    def read_from_sdk(cls, home: Path | str) -> FlutterSdkVersion:
        """Read ``<home>/version``.  Missing or unreadable files give an invalid version."""
        version_file = Path(home) / VERSION_FILE_NAME
        try:
            text = version_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Unable to read %s: %s", version_file, exc)
            return cls()
        return cls.parse(text)

    @property
    def is_valid(self) -> bool:
        return self.parts is not None

    def _at_least(self, minimum: tuple[int, int, int]) -> bool:
        return self.parts is not None and self.parts >= minimum

    def supports_machine_mode_tests(self) -> bool:
        """Whether ``flutter test`` accepts ``--machine``."""
        return self._at_least(MIN_MACHINE_MODE_TESTS)

    def supports_test_filtering(self) -> bool:
        """Whether ``flutter test`` accepts ``--plain-name``."""
        return self._at_least(MIN_TEST_FILTERING)

    def __str__(self) -> str:
        return self.full_version or "unknown"
