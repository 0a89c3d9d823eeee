"""Coarse operating-system classification."""

from __future__ import annotations

import platform
from enum import Enum
from pathlib import PurePath, PurePosixPath, PureWindowsPath


class OSFamily(Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"

    @classmethod
    def current(cls) -> OSFamily:
        """Return the family of the running interpreter's platform."""
        return detect_os_family()

    def pure_path(self, *parts: str) -> PurePath:
        """Join ``parts`` with this family's separator, without touching the filesystem."""
        if self is OSFamily.WINDOWS:
            return PureWindowsPath(*parts)
        return PurePosixPath(*parts)


def detect_os_family(os_name: str | None = None) -> OSFamily:
    """Classify an OS name as reported by ``platform.system()``.

    Anything that is neither macOS nor Windows is treated as Linux.
    """
    name = (os_name if os_name is not None else platform.system()).lower()
    if name.startswith(("mac", "darwin")):
        return OSFamily.MACOS
    if name.startswith("windows"):
        return OSFamily.WINDOWS
    return OSFamily.LINUX
