"""
Appdex — a keystroke-speed application index with usage-weighted search.

The ``appdex`` package discovers installed applications from freedesktop
``.desktop`` files, keeps them in an in-memory index, and ranks matches
for interactive launchers: fuzzy name matching, directory browsing for
path queries, and a launch-count heatmap that floats favourites up.

Quick start (programmatic API)::

    from appdex import Appdex

    client = Appdex()                    # reads APPDEX_* env vars
    client.rebuild()                     # scan desktop entries
    results = client.search("fire")      # ranked SearchResult list

Quick start (CLI)::

    appdex search fire
    appdex search ~/Downloads/
"""

__version__ = "1.0.0"

# Primary public API — the Appdex facade
from appdex.client import Appdex

# Configuration
from appdex.core.config import AppdexConfig

# Core data types that callers interact with
from appdex.core.engine import Entry, EntryKind, IndexResult, SearchResult

# Exception hierarchy
from appdex.exceptions import (
    AppdexError,
    ConfigError,
    IndexBuildError,
    LaunchError,
    SearchError,
)


def health(config: AppdexConfig | None = None) -> dict:
    """
    Return a small status dict without building an index.

    When *config* is None, uses :meth:`AppdexConfig.from_env()`.
    """
    cfg = config or AppdexConfig.from_env()
    return {
        "version": __version__,
        "heatmap_path": str(cfg.get_heatmap_path()),
        "max_results": cfg.max_results,
    }


__all__ = [
    "__version__",
    # Facade
    "Appdex",
    # Config
    "AppdexConfig",
    # Data types
    "Entry",
    "EntryKind",
    "IndexResult",
    "SearchResult",
    # Exceptions
    "AppdexError",
    "ConfigError",
    "IndexBuildError",
    "LaunchError",
    "SearchError",
    # Status
    "health",
]
