"""
Appdex Entry Resolver

Pure functions that turn one desktop file, or one filesystem path, into
an :class:`~appdex.core.engine.Entry`.  Every resolver returns ``None``
instead of raising, so scan loops stay branch-free and can run on worker
threads without shared state; :func:`collect_resolved` keeps the
successes and drops the rest.
"""

import configparser
import logging
import mimetypes
import os
import stat
from pathlib import Path
from typing import Iterable, List, Optional, Union

import magic

from appdex.core.config import AppdexConfig
from appdex.core.engine import (
    FOLDER_ICON, GENERIC_EXECUTABLE_ICON, Entry, EntryKind,
)
from appdex.core.scoring import DIRECTORY_BONUS

logger = logging.getLogger(__name__)

DESKTOP_SECTION = "Desktop Entry"

# MIME major type (or full type) -> coarse icon id
_MIME_ICON_BUCKETS = {
    "text": "text-x-generic",
    "image": "image-x-generic",
    "audio": "audio-x-generic",
    "video": "video-x-generic",
    "application/pdf": "application-pdf",
}
GENERIC_FILE_ICON = "application-x-generic"

PathLike = Union[str, os.PathLike]


# =============================================================================
# Path helpers
# =============================================================================

def expand_path(raw: str) -> str:
    """Expand a leading ``~`` and ``$VAR`` / ``${VAR}`` references.

    Unknown variables are left untouched, as a shell without ``set -u``
    would print them.
    """
    return os.path.expanduser(os.path.expandvars(raw))


def desktop_roots(config: AppdexConfig) -> List[Path]:
    """
    Return the desktop-entry directories to scan, in priority order.

    ``$XDG_DATA_DIRS`` entries (each with ``/applications`` appended) come
    first, followed by ``config.desktop_paths``.  Duplicates keep their
    first position.  Existence is *not* checked here.
    """
    candidates: List[str] = []
    if config.use_xdg_data_dirs:
        for data_dir in os.getenv("XDG_DATA_DIRS", "").split(":"):
            if data_dir.strip():
                candidates.append(os.path.join(data_dir.strip(), "applications"))
    candidates.extend(config.desktop_paths)

    roots: List[Path] = []
    seen = set()
    for raw in candidates:
        path = Path(os.path.normpath(expand_path(raw)))
        if path in seen:
            continue
        seen.add(path)
        roots.append(path)
    return roots


def scan_desktop_root(root: Path, extension: str = ".desktop") -> List[Path]:
    """
    List the desktop files directly inside *root*.

    A missing or unreadable root yields an empty list.  The result is
    sorted so that a rebuild walks files in a stable order.
    """
    try:
        with os.scandir(root) as it:
            found = [
                Path(item.path) for item in it
                if item.name.endswith(extension) and not item.is_dir()
            ]
    except OSError as exc:
        logger.debug(f"Skipping unreadable desktop root {root}: {exc}")
        return []
    found.sort()
    return found


def collect_resolved(candidates: Iterable[Optional[Entry]]) -> List[Entry]:
    """Keep resolver successes, discard failures."""
    return [entry for entry in candidates if entry is not None]


# =============================================================================
# Desktop entries
# =============================================================================

def _read_desktop_section(file_path: PathLike) -> Optional[configparser.SectionProxy]:
    parser = configparser.ConfigParser(
        interpolation=None, strict=False, delimiters=("=",), comment_prefixes=("#",),
    )
    parser.optionxform = str  # keys are case sensitive (Name vs name)
    try:
        with open(file_path, encoding="utf-8", errors="replace") as fh:
            parser.read_file(fh)
    except (OSError, configparser.Error) as exc:
        logger.debug(f"Unreadable desktop file {file_path}: {exc}")
        return None
    if not parser.has_section(DESKTOP_SECTION):
        return None
    return parser[DESKTOP_SECTION]


def resolve_desktop_entry(file_path: PathLike) -> Optional[Entry]:
    """
    Resolve one ``.desktop`` file to an application entry.

    Returns ``None`` when the file cannot be read or parsed, has no
    ``Name``, or asks not to be displayed (``NoDisplay=true``).
    """
    section = _read_desktop_section(file_path)
    if section is None:
        return None

    if section.get("NoDisplay", "").strip().lower() == "true":
        return None

    name = section.get("Name", "").strip()
    if not name:
        return None

    description = section.get("Comment", "").strip() or section.get("GenericName", "").strip()
    return Entry(
        name=name,
        description=description,
        path=os.fspath(file_path),
        command=section.get("Exec", "").strip(),
        icon_id=section.get("Icon", "").strip() or GENERIC_EXECUTABLE_ICON,
        launch_count=0,
        kind=EntryKind.APPLICATION,
        rank_bonus=0,
    )


# =============================================================================
# Filesystem entries
# =============================================================================

_OCTET_STREAM = "application/octet-stream"


def _bucket(mime_type: Optional[str]) -> Optional[str]:
    if not mime_type:
        return None
    if mime_type in _MIME_ICON_BUCKETS:
        return _MIME_ICON_BUCKETS[mime_type]
    return _MIME_ICON_BUCKETS.get(mime_type.split("/", 1)[0])


def sniff_mime(path: str) -> Optional[str]:
    """Detect a MIME type from file content with libmagic."""
    try:
        mime_type = magic.from_file(path, mime=True)
    except (OSError, ValueError, magic.MagicException) as exc:
        logger.debug(f"Magic MIME detection failed for {path}: {exc}")
        return None
    logger.debug(f"Magic MIME for {path}: {mime_type}")
    return mime_type


def mime_icon(path: str) -> str:
    """
    Map a file to a coarse icon id through its MIME type.

    The extension is tried first; files it says nothing about (no
    extension, or ``application/octet-stream``) are sniffed by content.
    """
    mime_type, _ = mimetypes.guess_type(path, strict=False)
    icon = _bucket(mime_type)
    if icon is not None:
        return icon
    if path.lower().endswith(".pdf"):
        return _MIME_ICON_BUCKETS["application/pdf"]
    if mime_type is None or mime_type == _OCTET_STREAM:
        icon = _bucket(sniff_mime(path))
        if icon is not None:
            return icon
    return GENERIC_FILE_ICON


def resolve_filesystem_entry(raw_path: str) -> Optional[Entry]:
    """
    Resolve a typed path (``~`` and ``$VAR`` allowed) to a file entry.

    Directories get the folder icon, an empty command and the directory
    boost; executables run directly; everything else opens through the
    desktop's default handler.
    """
    return resolve_path(expand_path(raw_path))


def resolve_path(path: str) -> Optional[Entry]:
    """Resolve an already expanded *path*; its name is taken literally."""
    try:
        st = os.stat(path)
    except (OSError, ValueError):
        return None

    name = os.path.basename(os.path.normpath(path))
    if not name or name in (".", os.sep):
        return None

    if stat.S_ISDIR(st.st_mode):
        icon, command, bonus = FOLDER_ICON, "", DIRECTORY_BONUS
    elif stat.S_ISREG(st.st_mode):
        if st.st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
            icon, command, bonus = GENERIC_EXECUTABLE_ICON, f'"{path}"', 0
        else:
            icon, command, bonus = mime_icon(path), f'xdg-open "{path}"', 0
    else:
        return None

    return Entry(
        name=name,
        description="",
        path=path,
        command=command,
        icon_id=icon,
        launch_count=0,
        kind=EntryKind.FILE,
        rank_bonus=bonus,
    )
