"""Per-user application data locations for each OS family."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

from .osfamily import OSFamily, detect_os_family

logger = logging.getLogger(__name__)

XDG_DATA_HOME_ENV = "XDG_DATA_HOME"
LOCAL_PROFILE = "Local"
ROAMING_PROFILE = "Roaming"


class DataDirectoryUnavailable(OSError):
    """Raised when a required application data directory cannot be used."""


@dataclass(frozen=True)
class DataDirectory:
    path: str
    available: bool
    error: str | None = None

    def require(self) -> str:
        """Return the path, or raise if the directory is not usable."""
        if not self.available:
            raise DataDirectoryUnavailable(f"{self.path} is not a valid data directory: {self.error}")
        return self.path


def app_data_root(os_family: OSFamily | None = None) -> str:
    """Return the base directory for user-local application data."""
    family = os_family if os_family is not None else detect_os_family()
    if family is OSFamily.WINDOWS:
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return local_app_data
        return str(family.pure_path(str(Path.home()), "AppData", LOCAL_PROFILE))
    if family is OSFamily.MACOS:
        return str(family.pure_path(str(Path.home()), "Library", "Application Support"))
    xdg_data_home = os.environ.get(XDG_DATA_HOME_ENV, "").strip()
    if xdg_data_home:
        return xdg_data_home
    return str(family.pure_path(str(Path.home()), ".local", "share"))


def app_local_folder(*subfolders: str, os_family: OSFamily | None = None) -> str:
    family = os_family if os_family is not None else detect_os_family()
    return str(family.pure_path(app_data_root(family), *subfolders))


def windows_roaming_folder(*subfolders: str, os_family: OSFamily | None = None) -> str:
    """Like ``app_local_folder``, but under ``AppData\\Roaming`` on Windows.

    Other platforms have no roaming profile and get the local folder.
    """
    family = os_family if os_family is not None else detect_os_family()
    local = app_local_folder(*subfolders, os_family=family)
    if family is not OSFamily.WINDOWS:
        return local

    parts = list(PureWindowsPath(local).parts)
    for index in range(1, len(parts)):
        if parts[index - 1].lower() == "appdata" and parts[index].lower() == LOCAL_PROFILE.lower():
            parts[index] = ROAMING_PROFILE
            break
    return str(PureWindowsPath(*parts))


def create_app_local_folder(
    *subfolders: str,
    os_family: OSFamily | None = None,
    roaming: bool = False,
) -> DataDirectory:
    """Create the data folder (and parents) and report whether it is usable.

    Failure is returned rather than raised so the caller decides whether to
    abort; ``DataDirectory.require`` raises for callers that want that.
    """
    if roaming:
        path = windows_roaming_folder(*subfolders, os_family=os_family)
    else:
        path = app_local_folder(*subfolders, os_family=os_family)

    error: str | None = None
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        error = str(exc)
        logger.warning("Cannot create data directory %s: %s", path, exc)

    available = Path(path).is_dir()
    if not available and error is None:
        error = "directory does not exist after creation"
    return DataDirectory(path=path, available=available, error=error)
