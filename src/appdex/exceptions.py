"""
Appdex Exception Hierarchy

Structured exceptions for clear error handling across CLI and API
consumers.  Each exception type maps to a specific failure mode so that
callers can handle errors precisely without parsing message strings.

Transient source problems (an unreadable directory, a malformed desktop
file, a corrupt heatmap) are *not* represented here: they are absorbed
where they happen and simply contribute nothing to the index.

Usage::

    from appdex.exceptions import AppdexError, IndexBuildError

    try:
        client.rebuild()
    except IndexBuildError:
        pass  # keep serving the previous snapshot
    except AppdexError as exc:
        print(f"Appdex error: {exc}")
"""


class AppdexError(Exception):
    """Base exception for all Appdex errors."""


class ConfigError(AppdexError, ValueError):
    """Configuration is invalid (e.g. a non-positive result cap).

    Inherits from ``ValueError`` so callers that already catch
    ``ValueError`` around configuration keep working.
    """


class IndexBuildError(AppdexError):
    """A scan or resolution worker failed during a rebuild.

    Raised only for broken hand-offs between the scan and merge phases;
    the previously installed index snapshot stays in place.
    """


class SearchError(AppdexError):
    """Unexpected failure while scoring candidates."""


class LaunchError(AppdexError):
    """The caller-supplied executor failed to start a command."""
