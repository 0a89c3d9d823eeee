"""Parsing of URL-like code locations.

A location string follows the grammar::

    [archive-scheme ":"] ["file:" ["//" authority]] path ["!/" entry]

where the archive scheme (``zip:`` or ``jar:``) marks a location *inside* an
archive and ``entry`` names the member within it. Plain filesystem paths are
valid locations too and pass through unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from urllib.parse import unquote, urlsplit

from .osfamily import OSFamily

ARCHIVE_SCHEMES: tuple[str, ...] = ("zip:", "jar:")
ENTRY_SEPARATOR = "!/"
FILE_SCHEME = "file:"

# file:C:/... is missing the slash that makes the drive letter part of the path.
_DRIVE_LETTER_URL = re.compile(r"file:[A-Za-z]:.*")
_DRIVE_LETTER_PATH = re.compile(r"/[A-Za-z]:")


class LocationError(ValueError):
    """Raised when a location string cannot be turned into a filesystem path."""


@dataclass(frozen=True)
class Location:
    path: str
    archive: bool = False
    entry: str | None = None


def parse_location(raw: str, os_family: OSFamily) -> Location:
    """Split ``raw`` into the filesystem path it denotes and an optional archive entry."""
    if not raw:
        raise LocationError("Empty location string.")

    text = raw
    archive = False
    entry: str | None = None
    scheme = _archive_scheme(text)
    if scheme is not None:
        archive = True
        text, separator, member = text[len(scheme):].partition(ENTRY_SEPARATOR)
        if separator and member:
            entry = member
        if not text:
            raise LocationError(f"Archive location without an archive path: {raw!r}")

    path = _file_url_to_path(text, os_family)
    if not path:
        raise LocationError(f"Location does not name a path: {raw!r}")
    return Location(path=path, archive=archive, entry=entry)


def location_to_path(raw: str, os_family: OSFamily) -> str:
    return parse_location(raw, os_family).path


def format_archive_location(archive: PurePath, entry: str) -> str:
    """Build the ``zip:file:...!/entry`` form for a member of ``archive``."""
    return f"{ARCHIVE_SCHEMES[0]}{archive.as_uri()}{ENTRY_SEPARATOR}{entry}"


def _archive_scheme(text: str) -> str | None:
    lowered = text.lower()
    for scheme in ARCHIVE_SCHEMES:
        if lowered.startswith(scheme):
            return scheme
    return None


def _file_url_to_path(text: str, os_family: OSFamily) -> str:
    if os_family is OSFamily.WINDOWS and _DRIVE_LETTER_URL.fullmatch(text):
        text = FILE_SCHEME + "/" + text[len(FILE_SCHEME):]
    if not text.lower().startswith(FILE_SCHEME):
        return text

    try:
        parts = urlsplit(text)
    except ValueError:
        # Not a well-formed URL; hand back everything after the scheme.
        return text[len(FILE_SCHEME):]

    path = unquote(parts.path)
    authority = parts.netloc if parts.netloc not in ("", "localhost") else ""
    if os_family is OSFamily.WINDOWS:
        if _DRIVE_LETTER_PATH.match(path):
            path = path[1:]
        path = path.replace("/", "\\")
        if authority:
            path = "\\\\" + authority + path
    elif authority:
        path = "//" + authority + path
    return path
