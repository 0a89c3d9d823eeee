"""First-match resolution of the application's project path, with fallback and caching."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath, PureWindowsPath

from .candidates import (
    PACKAGED_SUBDIR,
    Candidate,
    CandidateOutcome,
    CandidateStatus,
    build_candidates,
    module_location,
)
from .locations import location_to_path
from .osfamily import OSFamily, detect_os_family

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_SUFFIXES: tuple[str, ...] = (".pyz", ".zip", ".egg", ".whl")


class AutoMarker(Enum):
    AUTO = "auto"


AUTO_MARKER = AutoMarker.AUTO


@dataclass
class ResolverConfig:
    debug: bool = False
    class_path_search_first: bool = False
    bundle_subdir: str | None = PACKAGED_SUBDIR
    archive_suffixes: tuple[str, ...] = DEFAULT_ARCHIVE_SUFFIXES
    os_family: OSFamily | None = None

    def family(self) -> OSFamily:
        return self.os_family if self.os_family is not None else detect_os_family()


@dataclass
class Resolution:
    path: str
    validated: bool
    marker: str | None
    outcomes: list[CandidateOutcome] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return bool(self.path)


def is_plain_name(marker: str) -> bool:
    """Return True if ``marker`` names a single entry directly inside a directory."""
    if marker in ("", os.curdir, os.pardir):
        return False
    for flavour in (PurePosixPath, PureWindowsPath):
        path = flavour(marker)
        if path.anchor or len(path.parts) != 1:
            return False
    return True


class ProjectPathResolver:
    """Locates the directory holding the running application.

    Each resolver owns its configuration and a single-slot cache of the last
    resolved path. Callers sharing one resolver across threads provide their
    own locking.
    """

    config: ResolverConfig
    default_reference: object
    last_resolution: Resolution | None

    def __init__(self, config: ResolverConfig | None = None, *, default_reference: object = None) -> None:
        self.config = config if config is not None else ResolverConfig()
        self.default_reference = default_reference if default_reference is not None else sys.modules[__name__]
        self.last_resolution = None
        self._cached_path: str | None = None

    @property
    def debug(self) -> bool:
        return self.config.debug

    @debug.setter
    def debug(self, value: bool) -> None:
        self.config.debug = value

    @property
    def class_path_search_first(self) -> bool:
        return self.config.class_path_search_first

    @class_path_search_first.setter
    def class_path_search_first(self, value: bool) -> None:
        self.config.class_path_search_first = value

    @property
    def cached_path(self) -> str | None:
        return self._cached_path

    def get_candidates(self, reference: object = None) -> list[Candidate]:
        return build_candidates(
            self._reference(reference),
            os_family=self.config.family(),
            class_path_search_first=self.config.class_path_search_first,
            bundle_subdir=self.config.bundle_subdir,
            debug=self.config.debug,
        )

    def get_project_path(self, reference: object = None, marker: str | None | AutoMarker = AUTO_MARKER) -> str:
        """Return the project path.

        Without arguments the cached path is returned when there is one,
        otherwise the resolver's own module is resolved without a marker.
        Given only a reference, the marker is the name of the archive that
        reference was imported from, if any. An explicit marker, None
        included, is used as given.
        """
        if marker is AUTO_MARKER:
            if reference is None:
                if self._cached_path is not None:
                    return self._cached_path
                marker = None
            else:
                marker = self.get_archive_name(reference)
        return self.resolve(reference, marker).path

    def resolve(self, reference: object = None, marker: str | None = None) -> Resolution:
        """Pick the first candidate whose directory exists and contains ``marker``.

        When no candidate validates, the first candidate that produced a
        directory at all is returned; when none did, the path is empty.
        """
        outcomes: list[CandidateOutcome] = []
        fallback: str | None = None
        marker_valid = marker is None or is_plain_name(marker)
        if not marker_valid and self.config.debug:
            logger.debug("Marker %r is not a plain file name; no candidate can match it.", marker)
        for candidate in self.get_candidates(reference):
            outcome = candidate.outcome()
            if outcome.path is None:
                outcomes.append(outcome)
                continue
            if fallback is None:
                fallback = outcome.path

            directory = Path(outcome.path)
            if not directory.exists():
                outcomes.append(outcome.with_status(CandidateStatus.MISSING, "directory does not exist"))
                continue
            if marker is not None and not (marker_valid and (directory / marker).exists()):
                outcomes.append(outcome.with_status(CandidateStatus.NO_MARKER, f"{marker} not found"))
                continue

            outcomes.append(outcome.with_status(CandidateStatus.ACCEPTED))
            if self.config.debug:
                logger.debug('Project path %s taken from "%s".', outcome.path, outcome.description)
            return self._store(Resolution(str(directory.absolute()), True, marker, outcomes))

        if self.config.debug:
            logger.debug("No candidate validated; returning the first resolved candidate or an empty string.")
        return self._store(Resolution(fallback or "", False, marker, outcomes))

    def get_archive_name(self, reference: object = None) -> str | None:
        """Return the file name of the archive ``reference`` was imported from, or None."""
        family = self.config.family()
        try:
            raw = module_location(self._reference(reference))
            if raw is None:
                return None
            name = family.pure_path(location_to_path(raw, family)).name
        except Exception as exc:
            if self.config.debug:
                logger.debug("Cannot determine archive name.", exc_info=exc)
            return None
        return name if name.lower().endswith(self.config.archive_suffixes) else None

    def _reference(self, reference: object) -> object:
        return reference if reference is not None else self.default_reference

    def _store(self, resolution: Resolution) -> Resolution:
        self._cached_path = resolution.path
        self.last_resolution = resolution
        return resolution


default_resolver = ProjectPathResolver()


def get_project_path(reference: object = None, marker: str | None | AutoMarker = AUTO_MARKER) -> str:
    return default_resolver.get_project_path(reference, marker)


def get_archive_name(reference: object = None) -> str | None:
    return default_resolver.get_archive_name(reference)


def get_candidates(reference: object = None) -> list[Candidate]:
    return default_resolver.get_candidates(reference)


def set_debug(debug: bool) -> None:
    default_resolver.debug = debug


def is_debug() -> bool:
    return default_resolver.debug


def set_class_path_search_first(enabled: bool) -> None:
    default_resolver.class_path_search_first = enabled


def is_class_path_search_first() -> bool:
    return default_resolver.class_path_search_first
