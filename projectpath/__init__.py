"""Locate the running application's directory and per-user data folders."""

from .candidates import Candidate, CandidateKind, CandidateOutcome, CandidateStatus, ResolutionError
from .config import (
    DataDirectory,
    DataDirectoryUnavailable,
    app_data_root,
    app_local_folder,
    create_app_local_folder,
    windows_roaming_folder,
)
from .locations import Location, LocationError, parse_location
from .osfamily import OSFamily, detect_os_family
from .resolver import (
    AUTO_MARKER,
    ProjectPathResolver,
    Resolution,
    ResolverConfig,
    default_resolver,
    get_archive_name,
    get_candidates,
    get_project_path,
    is_class_path_search_first,
    is_debug,
    set_class_path_search_first,
    set_debug,
)

__all__ = [
    "AUTO_MARKER",
    "Candidate",
    "CandidateKind",
    "CandidateOutcome",
    "CandidateStatus",
    "DataDirectory",
    "DataDirectoryUnavailable",
    "Location",
    "LocationError",
    "OSFamily",
    "ProjectPathResolver",
    "Resolution",
    "ResolutionError",
    "ResolverConfig",
    "app_data_root",
    "app_local_folder",
    "create_app_local_folder",
    "default_resolver",
    "detect_os_family",
    "get_archive_name",
    "get_candidates",
    "get_project_path",
    "is_class_path_search_first",
    "is_debug",
    "parse_location",
    "set_class_path_search_first",
    "set_debug",
    "windows_roaming_folder",
]
