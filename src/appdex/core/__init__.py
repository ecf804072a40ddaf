"""
Appdex Core — configuration, resolution, indexing, scoring and search.

Re-exports the primary classes for convenience::

    from appdex.core import SharedIndex, IndexBuilder, SearchEngine
"""

from appdex.core.cache import SharedIndex
from appdex.core.config import AppdexConfig
from appdex.core.engine import Entry, EntryKind, IndexResult, SearchResult
from appdex.core.heatmap import HeatmapStore, HeatmapWriter
from appdex.core.indexer import IndexBuilder
from appdex.core.resolver import (
    desktop_roots,
    resolve_desktop_entry,
    resolve_filesystem_entry,
    resolve_path,
)
from appdex.core.search import QueryMode, SearchEngine, classify_query
from appdex.core.tracker import UsageTracker

__all__ = [
    "AppdexConfig",
    "Entry",
    "EntryKind",
    "HeatmapStore",
    "HeatmapWriter",
    "IndexBuilder",
    "IndexResult",
    "QueryMode",
    "SearchEngine",
    "SearchResult",
    "SharedIndex",
    "UsageTracker",
    "classify_query",
    "desktop_roots",
    "resolve_desktop_entry",
    "resolve_filesystem_entry",
    "resolve_path",
]
