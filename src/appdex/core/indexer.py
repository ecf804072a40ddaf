"""
Appdex Index Builder

Scans every desktop-entry root concurrently, resolves each candidate
file, seeds launch counts from the heatmap and installs the result as a
complete replacement of the shared index.

- Roots are enumerated in parallel on a thread pool
- Files are resolved in parallel; resolver failures are dropped silently
- The heatmap is loaded on the same pool while scanning runs
- A worker that *crashes* aborts the rebuild with ``IndexBuildError`` and
  leaves the previous snapshot in place
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, List, Optional

from tqdm import tqdm

from appdex.core.cache import SharedIndex
from appdex.core.config import AppdexConfig
from appdex.core.engine import Entry, IndexResult
from appdex.core.heatmap import HeatmapStore
from appdex.core.resolver import (
    collect_resolved, desktop_roots, resolve_desktop_entry, scan_desktop_root,
)
from appdex.exceptions import IndexBuildError

logger = logging.getLogger(__name__)

Resolver = Callable[[Path], Optional[Entry]]


# =============================================================================
# Index Builder
# =============================================================================

class IndexBuilder:
    """
    Orchestrates a full rebuild of the shared index.

    Each call to :meth:`rebuild` starts from nothing: there are no delta
    updates, and nothing is written to disk.
    """

    def __init__(self, index: SharedIndex, heatmap: HeatmapStore,
                 config: AppdexConfig | None = None,
                 resolver: Resolver = resolve_desktop_entry):
        """
        Args:
            index: Container that receives the finished mapping.
            heatmap: Store used to seed launch counts.
            config: Configuration snapshot (defaults to environment).
            resolver: Function turning one desktop file into an entry.
        """
        self.index = index
        self.heatmap = heatmap
        self.config = config or AppdexConfig.from_env()
        self.resolver = resolver

    def rebuild(self, show_progress: bool = False) -> IndexResult:
        """
        Build a new index and swap it in.

        Steps:
          1. Resolve the desktop-entry roots (missing ones are skipped)
          2. Enumerate ``.desktop`` files under every root concurrently
          3. Resolve each file concurrently, discarding failures
          4. Seed launch counts from the heatmap (loaded concurrently)
          5. Merge by name, later roots overriding earlier ones
          6. Replace the shared index atomically

        Raises:
            IndexBuildError: if a worker task failed unexpectedly.
        """
        t0 = time.perf_counter()
        stats = IndexResult()

        roots = desktop_roots(self.config)
        existing = [root for root in roots if root.is_dir()]
        stats.roots_scanned = len(existing)
        stats.roots_missing = len(roots) - len(existing)
        logger.debug(f"Desktop roots: {[str(r) for r in existing]}")

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            heatmap_future = executor.submit(self.heatmap.load)

            # ── Enumerate roots ──────────────────────────────────
            scan_futures = [
                executor.submit(scan_desktop_root, root, self.config.desktop_extension)
                for root in existing
            ]
            files_per_root: List[List[Path]] = [
                self._join(future, f"scanning {root}")
                for root, future in zip(existing, scan_futures)
            ]
            stats.files_found = sum(len(files) for files in files_per_root)

            # ── Resolve files ────────────────────────────────────
            resolve_futures: List[List[Future]] = [
                [executor.submit(self.resolver, path) for path in files]
                for files in files_per_root
            ]
            all_futures = [f for futures in resolve_futures for f in futures]
            with tqdm(total=len(all_futures), desc="Resolving entries", unit="file",
                      disable=not show_progress) as pbar:
                for _ in as_completed(all_futures):
                    pbar.update(1)

            resolved_per_root: List[List[Entry]] = [
                collect_resolved(
                    self._join(future, f"resolving {path}")
                    for path, future in zip(files, futures)
                )
                for files, futures in zip(files_per_root, resolve_futures)
            ]
            heatmap: Dict[str, int] = self._join(heatmap_future, "loading heatmap")

        stats.entries_resolved = sum(len(entries) for entries in resolved_per_root)
        stats.entries_skipped = stats.files_found - stats.entries_resolved
        stats.heatmap_entries = len(heatmap)

        # ── Merge ────────────────────────────────────────────────
        mapping: Dict[str, Entry] = {}
        for entries in resolved_per_root:
            for entry in entries:
                count = heatmap.get(entry.name)
                if count is not None:
                    entry = entry.with_launch_count(count)
                if entry.name in mapping:
                    stats.name_collisions += 1
                    logger.debug(
                        f"Duplicate name '{entry.name}': {entry.path} "
                        f"replaces {mapping[entry.name].path}"
                    )
                mapping[entry.name] = entry

        self.index.replace(mapping)
        stats.entries_indexed = len(mapping)
        stats.elapsed_seconds = time.perf_counter() - t0

        logger.info(
            f"Indexed {stats.entries_indexed:,} entries from {stats.roots_scanned} "
            f"root(s) in {stats.elapsed_seconds * 1000:.1f}ms "
            f"({stats.entries_skipped:,} skipped, {stats.name_collisions:,} duplicate names)"
        )
        return stats

    @staticmethod
    def _join(future: Future, what: str):
        """Return *future*'s result, turning a worker crash into IndexBuildError."""
        try:
            return future.result()
        except Exception as exc:
            logger.error(f"Index worker failed while {what}: {exc}")
            raise IndexBuildError(f"Index rebuild aborted while {what}: {exc}") from exc
