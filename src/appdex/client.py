"""
Appdex Client Facade

Single entry point for programmatic use of Appdex.  Wires the shared
index, the index builder, the search engine, the usage tracker and the
heatmap writer together behind an instance-based API with async variants.

Usage::

    from appdex import Appdex

    with Appdex(max_results=20) as client:
        client.rebuild()
        for hit in client.search("fire"):
            print(hit.entry.name, hit.score)

    # Async variants (UI event loops)
    hits = await client.asearch("fire")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from appdex.core.cache import SharedIndex
from appdex.core.config import AppdexConfig
from appdex.core.engine import Entry, IndexResult, SearchResult
from appdex.core.heatmap import HeatmapStore, HeatmapWriter
from appdex.core.indexer import IndexBuilder
from appdex.core.launcher import Executor, launch
from appdex.core.search import SearchEngine
from appdex.core.tracker import UsageTracker

logger = logging.getLogger(__name__)


class Appdex:
    """
    High-level Appdex client.

    Each instance owns its own index and heatmap writer and never touches
    global state, so several clients (for example one per test) can live
    in the same process.

    Args:
        config: Explicit configuration object.  When *None*, a config is
            built from environment variables plus keyword overrides.
        validate_on_init: Call :meth:`AppdexConfig.validate` right away.
        **kwargs: Field overrides applied on top of
            :meth:`AppdexConfig.from_env` (e.g. ``max_results=20``).
    """

    def __init__(
        self,
        config: AppdexConfig | None = None,
        *,
        validate_on_init: bool = True,
        **kwargs,
    ):
        if config is not None:
            self._config = config
        elif kwargs:
            base = AppdexConfig.from_env()
            unknown = set(kwargs) - set(AppdexConfig.field_names())
            if unknown:
                raise TypeError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
            merged = {
                name: kwargs.get(name, getattr(base, name))
                for name in AppdexConfig.field_names()
            }
            self._config = AppdexConfig(**merged)
        else:
            self._config = AppdexConfig.from_env()

        if validate_on_init:
            self._config.validate()

        self.index = SharedIndex()
        self.heatmap = HeatmapStore(self._config.get_heatmap_path())
        self._writer = HeatmapWriter(self.heatmap, max_pending=self._config.heatmap_queue_size)
        self._builder = IndexBuilder(self.index, self.heatmap, config=self._config)
        self._engine = SearchEngine(self.index, config=self._config)
        self._tracker = UsageTracker(self.index, self._writer)
        self._last_build: Optional[IndexResult] = None

    # ── Configuration ─────────────────────────────────────────────

    @property
    def config(self) -> AppdexConfig:
        """The active configuration for this client."""
        return self._config

    @property
    def last_build(self) -> Optional[IndexResult]:
        """Statistics of the most recent successful rebuild."""
        return self._last_build

    # ── Indexing ──────────────────────────────────────────────────

    def rebuild(self, *, show_progress: bool = False) -> IndexResult:
        """
        Rescan every desktop-entry root and replace the index.

        Raises:
            IndexBuildError: if a worker failed; the previous index keeps serving.
        """
        result = self._builder.rebuild(show_progress=show_progress)
        self._last_build = result
        return result

    # ── Search ────────────────────────────────────────────────────

    def search(self, query: str, *, max_results: int | None = None) -> List[SearchResult]:
        """
        Search the index (or the filesystem, for path queries).

        Args:
            query: Raw query text.
            max_results: Result cap; defaults to ``config.max_results``.

        Returns:
            Ranked list of :class:`SearchResult` objects.
        """
        return self._engine.search(query, max_results=max_results)

    def get(self, name: str) -> Optional[Entry]:
        """Exact lookup of an indexed entry by name."""
        return self.index.get(name)

    # ── Usage ─────────────────────────────────────────────────────

    def record_launch(self, name: str) -> Optional[int]:
        """Count a launch of *name*; returns the new count or None if unknown."""
        return self._tracker.record_launch(name)

    def launch(self, entry: Entry, execute: Executor) -> Optional[str]:
        """
        Launch *entry* through the caller-supplied *execute* function.

        Returns the executed command, or ``None`` for directory entries
        (navigate to them instead).

        Raises:
            LaunchError: if *execute* failed.
        """
        return launch(entry, execute, tracker=self._tracker)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for queued heatmap writes to reach disk."""
        return self._writer.flush(timeout)

    # ── Statistics ────────────────────────────────────────────────

    def stats(self) -> Dict[str, int]:
        """Return index and heatmap statistics."""
        snapshot = self.index.snapshot()
        return {
            "indexed_entries": len(snapshot),
            "launched_entries": sum(1 for e in snapshot.values() if e.launch_count > 0),
            "total_launches": sum(e.launch_count for e in snapshot.values()),
            "heatmap_entries": len(self.heatmap.load()),
            "index_generation": self.index.generation,
        }

    def health(self) -> Dict[str, object]:
        """Small status dict for status endpoints; no scan is performed."""
        return {
            "version": __import__("appdex", fromlist=["__version__"]).__version__,
            "indexed_entries": len(self.index),
            "heatmap_path": str(self.heatmap.path),
            "max_results": self._config.max_results,
        }

    # ── Async variants ────────────────────────────────────────────
    # These use asyncio.to_thread() so an event loop stays responsive
    # while scanning or scoring runs on a worker thread.

    async def arebuild(self, *, show_progress: bool = False) -> IndexResult:
        """Async variant of :meth:`rebuild`. Raises same exceptions as sync."""
        return await asyncio.to_thread(self.rebuild, show_progress=show_progress)

    async def asearch(self, query: str, *, max_results: int | None = None) -> List[SearchResult]:
        """Async variant of :meth:`search`. Raises same exceptions as sync."""
        return await asyncio.to_thread(self.search, query, max_results=max_results)

    async def arecord_launch(self, name: str) -> Optional[int]:
        """Async variant of :meth:`record_launch`."""
        return await asyncio.to_thread(self.record_launch, name)

    # ── Lifecycle ─────────────────────────────────────────────────

    def close(self) -> None:
        """Drain heatmap writes and stop worker threads. Idempotent."""
        self._writer.close()
        self._engine.close()

    def __enter__(self) -> "Appdex":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
