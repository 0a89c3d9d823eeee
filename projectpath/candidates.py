"""Heuristics that estimate the running application's base directory."""

from __future__ import annotations

import importlib
import inspect
import logging
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import partial
from pathlib import Path
from types import ModuleType

from .locations import ARCHIVE_SCHEMES, ENTRY_SEPARATOR, format_archive_location, location_to_path
from .osfamily import OSFamily

logger = logging.getLogger(__name__)

PACKAGED_SUBDIR = "app"


class ResolutionError(RuntimeError):
    """Raised when a candidate location cannot be mapped to an existing directory."""


class CandidateKind(Enum):
    PACKAGED_APP = "packaged_app"
    WORKING_DIRECTORY_ENV = "working_directory_env"
    WORKING_DIRECTORY = "working_directory"
    MODULE_LOCATION = "module_location"
    SEARCH_PATH = "search_path"


class CandidateStatus(Enum):
    RESOLVED = "resolved"
    EMPTY = "empty"
    FAILED = "failed"
    MISSING = "missing"
    NO_MARKER = "no_marker"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class CandidateOutcome:
    kind: CandidateKind
    description: str
    status: CandidateStatus
    raw: str | None = None
    path: str | None = None
    reason: str | None = None

    def with_status(self, status: CandidateStatus, reason: str | None = None) -> CandidateOutcome:
        return replace(self, status=status, reason=reason)


def is_packaged() -> bool:
    """Return True when a freezing installer (PyInstaller, cx_Freeze, Briefcase) built the process."""
    return bool(getattr(sys, "frozen", False))


def packaged_app_path() -> str | None:
    if not is_packaged():
        return None
    return sys.executable or None


def reported_working_directory() -> str | None:
    return os.environ.get("PWD") or None


def absolute_working_directory() -> str:
    return str(Path("").absolute())


def first_search_path_entry() -> str | None:
    if not sys.path:
        return None
    # An empty entry on sys.path stands for the current directory.
    return sys.path[0] or os.curdir


def resolve_module(reference: object) -> ModuleType | None:
    """Map a module, dotted module name, class or function to its defining module."""
    if isinstance(reference, ModuleType):
        return reference
    if isinstance(reference, str):
        return importlib.import_module(reference)
    return inspect.getmodule(reference)


def reference_name(reference: object) -> str:
    if isinstance(reference, str):
        return reference
    name = getattr(reference, "__qualname__", None) or getattr(reference, "__name__", None)
    return name if isinstance(name, str) else type(reference).__name__


def module_location(reference: object) -> str | None:
    """Return the directory or archive that ``reference``'s module was imported from.

    The loader is asked first: a zip importer knows its archive. Otherwise the
    module's own file is expressed as a location string and the part that
    mirrors the dotted module name (``pkg/sub/mod.py``) is cut off the end,
    leaving the import root.
    """
    module = resolve_module(reference)
    if module is None:
        return None

    archive = _loader_archive(module)
    if archive:
        return archive

    resource = module_resource_location(module)
    if resource is None:
        return None
    suffix = module_resource_suffix(module, resource.rsplit("/", 1)[-1])
    if not resource.endswith(suffix):
        raise ResolutionError(f"Module file {resource!r} does not end with {suffix!r}.")

    base = resource[: -len(suffix)]
    for scheme in ARCHIVE_SCHEMES:
        if base.lower().startswith(scheme):
            base = base[len(scheme):].removesuffix(ENTRY_SEPARATOR)
            break
    return base


def module_resource_location(module: ModuleType) -> str | None:
    """Return the module's source or bytecode file as a ``file:`` or ``zip:`` location."""
    spec = module.__spec__
    if spec is not None and not spec.has_location:
        return None
    origin = spec.origin if spec is not None else getattr(module, "__file__", None)
    if not origin:
        return None

    path = Path(origin).absolute()
    if path.exists():
        return path.as_uri()
    for parent in path.parents:
        if parent.is_file():
            return format_archive_location(parent, path.relative_to(parent).as_posix())
        if parent.exists():
            break
    return path.as_uri()


def module_resource_suffix(module: ModuleType, file_name: str) -> str:
    spec = module.__spec__
    parts = (spec.name if spec is not None else module.__name__).split(".")
    if not hasattr(module, "__path__"):
        parts = parts[:-1]
    return "/".join([*parts, file_name])


def _loader_archive(module: ModuleType) -> str | None:
    spec = module.__spec__
    loader = spec.loader if spec is not None else getattr(module, "__loader__", None)
    archive = getattr(loader, "archive", None)
    return archive if isinstance(archive, str) and archive else None


def nearest_directory(path: Path) -> Path:
    """Walk up from ``path`` to the closest directory that exists."""
    current = path
    while not current.is_dir():
        parent = current.parent
        if parent == current:
            raise ResolutionError(f"No existing directory above {path}.")
        current = parent
    return current


def normalize_candidate(
    raw: str | None,
    *,
    os_family: OSFamily,
    packaged: bool,
    bundle_subdir: str | None = PACKAGED_SUBDIR,
) -> str | None:
    """Turn a provider's raw location into an absolute directory path.

    Files resolve to their containing directory. Installer bundles keep the
    application one level down, in ``bundle_subdir``.
    """
    if raw is None:
        return None
    directory = nearest_directory(Path(location_to_path(raw, os_family)).absolute())
    if packaged and bundle_subdir and directory.name != bundle_subdir:
        directory = directory / bundle_subdir
    return str(directory.absolute())


@dataclass(frozen=True)
class Candidate:
    kind: CandidateKind
    description: str
    provider: Callable[[], str | None] = field(repr=False, compare=False)
    os_family: OSFamily = field(default_factory=OSFamily.current)
    bundle_subdir: str | None = PACKAGED_SUBDIR
    debug: bool = False

    def outcome(self) -> CandidateOutcome:
        try:
            raw = self.provider()
        except Exception as exc:
            return self._failed(None, exc)
        if raw is None:
            if self.debug:
                logger.debug('Candidate "%s" returned nothing.', self.description)
            return CandidateOutcome(self.kind, self.description, CandidateStatus.EMPTY)

        try:
            path = normalize_candidate(
                raw,
                os_family=self.os_family,
                packaged=is_packaged(),
                bundle_subdir=self.bundle_subdir,
            )
        except Exception as exc:
            return self._failed(raw, exc)
        return CandidateOutcome(self.kind, self.description, CandidateStatus.RESOLVED, raw=raw, path=path)

    def evaluate(self) -> str | None:
        return self.outcome().path

    def _failed(self, raw: str | None, exc: Exception) -> CandidateOutcome:
        if self.debug:
            logger.debug('Candidate "%s" failed.', self.description, exc_info=exc)
        return CandidateOutcome(self.kind, self.description, CandidateStatus.FAILED, raw=raw, reason=str(exc))

    def __str__(self) -> str:
        return f"{self.description} : {self.evaluate()}"


def build_candidates(
    reference: object,
    *,
    os_family: OSFamily,
    class_path_search_first: bool = False,
    bundle_subdir: str | None = PACKAGED_SUBDIR,
    debug: bool = False,
) -> list[Candidate]:
    """Return the candidates for ``reference`` in evaluation order.

    Working-directory candidates come before import-location candidates unless
    ``class_path_search_first`` reverses them. The frozen-application
    candidate always leads.
    """

    def make(kind: CandidateKind, description: str, provider: Callable[[], str | None]) -> Candidate:
        return Candidate(kind, description, provider, os_family, bundle_subdir, debug)

    ordered = [
        make(CandidateKind.WORKING_DIRECTORY_ENV, "Environment variable PWD", reported_working_directory),
        make(CandidateKind.WORKING_DIRECTORY, 'Path("").absolute()', absolute_working_directory),
        make(
            CandidateKind.MODULE_LOCATION,
            f"{reference_name(reference)} module import location",
            partial(module_location, reference),
        ),
        make(CandidateKind.SEARCH_PATH, "First entry of sys.path", first_search_path_entry),
    ]
    if class_path_search_first:
        ordered.reverse()
    ordered.insert(0, make(CandidateKind.PACKAGED_APP, "sys.executable of a frozen application", packaged_app_path))
    return ordered
