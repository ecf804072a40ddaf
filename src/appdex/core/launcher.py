"""
Appdex Launch Boundary

Turns a chosen entry into the command a caller should execute.  Spawning
the process is the caller's job: :func:`launch` only calls the supplied
``execute(command)`` and records the launch when it succeeds.
"""

import logging
import os
import re
from typing import Callable, Optional

from appdex.core.engine import Entry, EntryKind
from appdex.core.tracker import UsageTracker
from appdex.exceptions import LaunchError

logger = logging.getLogger(__name__)

Executor = Callable[[str], None]

# Field codes that expand to nothing: no files or URLs are ever passed.
_DROPPED_FIELD_CODES = ("f", "F", "u", "U", "i")
_FIELD_CODE = re.compile(r"%(.)")


def expand_field_codes(entry: Entry) -> str:
    """
    Substitute desktop-entry field codes in ``entry.command``.

    ``%f %F %u %U %i`` are removed, ``%c`` becomes the entry name and
    ``%%`` a literal percent sign; unknown codes are kept as written.
    """
    def _sub(match: "re.Match[str]") -> str:
        code = match.group(1)
        if code in _DROPPED_FIELD_CODES:
            return ""
        if code == "c":
            return entry.name
        if code == "%":
            return "%"
        return match.group(0)

    return " ".join(_FIELD_CODE.sub(_sub, entry.command).split())


def navigation_target(entry: Entry) -> Optional[str]:
    """For directory entries, the path (with trailing slash) to search next."""
    if not entry.is_directory:
        return None
    return entry.path if entry.path.endswith(os.sep) else entry.path + os.sep


def launch(entry: Entry, execute: Executor,
           tracker: UsageTracker | None = None) -> Optional[str]:
    """
    Launch *entry* through *execute*.

    Applications get their field codes expanded and, on success, a launch
    recorded.  Directories are not executed: ``None`` is returned and the
    caller should navigate to :func:`navigation_target` instead.

    Returns:
        The command passed to *execute*, or ``None`` for directories.

    Raises:
        LaunchError: if *execute* raised, or the entry has no command.
    """
    if entry.is_directory:
        return None

    if entry.kind is EntryKind.APPLICATION:
        command = expand_field_codes(entry)
    else:
        command = entry.command
    if not command:
        raise LaunchError(f"Entry '{entry.name}' has no command to execute")

    try:
        execute(command)
    except LaunchError:
        raise
    except Exception as exc:
        raise LaunchError(f"Failed to launch '{entry.name}': {exc}") from exc

    logger.info(f"Launched '{entry.name}': {command}")
    if tracker is not None and entry.kind is EntryKind.APPLICATION:
        tracker.record_launch(entry.name)
    return command
