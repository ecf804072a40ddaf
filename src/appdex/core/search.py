"""
Appdex Search Engine

Answers keystroke-driven queries against the shared index.

A query is classified into exactly one mode (first rule wins):

1. **Path** — starts with ``~``, ``$`` or ``/``: list a directory on disk
2. **Empty** — nothing typed: most-launched applications first
3. **Text** — anything else: fuzzy name match with usage weighting, plus a
   fallback to a binary of the same name in ``config.binary_dir``

Scoring runs over one snapshot taken at the start of the call, so a
rebuild that lands mid-search cannot produce a mix of old and new entries.
"""

import json
import logging
import os
import shlex
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Iterable, List, Mapping, Optional

from appdex.core.cache import SharedIndex
from appdex.core.config import AppdexConfig
from appdex.core.engine import (
    FOLDER_ICON, GENERIC_EXECUTABLE_ICON, Entry, EntryKind, SearchResult,
)
from appdex.core.resolver import collect_resolved, expand_path, resolve_path
from appdex.core.scoring import (
    BINARY_FALLBACK_SCORE, DIRECTORY_BONUS, FILE_LISTING_SCORE,
    PARENT_ENTRY_SCORE, popularity_score, text_score,
)
from appdex.exceptions import SearchError

logger = logging.getLogger(__name__)

PATH_PREFIXES = ("~", "$", "/")
PARENT_ENTRY_NAME = ".."


class QueryMode(str, Enum):
    PATH = "path"
    EMPTY = "empty"
    TEXT = "text"


def classify_query(query: str) -> QueryMode:
    """Pick the query mode; whitespace-only input counts as empty."""
    if query[:1] in PATH_PREFIXES:
        return QueryMode.PATH
    if not query.strip():
        return QueryMode.EMPTY
    return QueryMode.TEXT


def normalize_name(name: str) -> str:
    """Case- and whitespace-insensitive key used for de-duplication."""
    return " ".join(name.casefold().split())


def _dedupe(results: Iterable[SearchResult]) -> List[SearchResult]:
    seen = set()
    unique: List[SearchResult] = []
    for result in results:
        key = normalize_name(result.entry.name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


# =============================================================================
# Search Engine
# =============================================================================

class SearchEngine:
    """
    Multi-mode search over a :class:`SharedIndex`.

    Large text-mode candidate sets are scored in chunks on a small thread
    pool; the merged output is identical to a serial pass because the
    final ordering is a total order (score, then name).
    """

    def __init__(self, index: SharedIndex, config: AppdexConfig | None = None):
        self._index = index
        self._config = config or AppdexConfig.from_env()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._last_elapsed_seconds: float = 0.0

    @property
    def config(self) -> AppdexConfig:
        return self._config

    @property
    def last_search_elapsed_seconds(self) -> float:
        """Wall time of the most recent :meth:`search` call."""
        return self._last_elapsed_seconds

    # ── Public API ────────────────────────────────────────────────

    def search(self, query: str, max_results: int | None = None) -> List[SearchResult]:
        """
        Run *query* and return at most *max_results* ranked results.

        Args:
            query: Raw text from the search box.
            max_results: Result cap; defaults to ``config.max_results``.

        Raises:
            SearchError: if a scoring worker failed unexpectedly.
        """
        limit = self._config.max_results if max_results is None else max_results
        if limit <= 0:
            return []

        t0 = time.perf_counter()
        mode = classify_query(query)
        if mode is QueryMode.PATH:
            results = self._search_path(query)
        elif mode is QueryMode.EMPTY:
            results = self._search_empty(self._index.snapshot())
        else:
            results = self._search_text(query.strip(), self._index.snapshot())

        results = results[:limit]
        self._last_elapsed_seconds = time.perf_counter() - t0
        logger.debug(
            f"Query {query!r} ({mode.value}) → {len(results)} result(s) "
            f"in {self._last_elapsed_seconds * 1000:.2f}ms"
        )
        return results

    def close(self) -> None:
        """Shut down the scoring pool, if one was started."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    # ── Path mode ─────────────────────────────────────────────────

    def _search_path(self, query: str) -> List[SearchResult]:
        """List the directory named by *query* (or its parent)."""
        expanded = expand_path(query)
        directory = expanded if os.path.isdir(expanded) else os.path.dirname(expanded)
        if not directory or not os.path.isdir(directory):
            return []

        results = [SearchResult(self._parent_entry(directory), PARENT_ENTRY_SCORE)]
        try:
            names = os.listdir(directory)
        except OSError as exc:
            logger.debug(f"Cannot list {directory}: {exc}")
            return results

        # Child names are literal: "$HOME.txt" is a file, not a variable.
        children = collect_resolved(
            resolve_path(os.path.join(directory, name)) for name in names
        )
        results.extend(
            SearchResult(child, DIRECTORY_BONUS if child.is_directory else FILE_LISTING_SCORE)
            for child in children
        )
        results.sort()
        return results

    @staticmethod
    def _parent_entry(directory: str) -> Entry:
        """Synthetic ".." entry pointing one level above *directory*."""
        parent = os.path.dirname(os.path.normpath(directory)) or os.sep
        resolved = resolve_path(parent)
        return Entry(
            name=PARENT_ENTRY_NAME,
            description=resolved.description if resolved else "",
            path=resolved.path if resolved else parent,
            command="",
            icon_id=FOLDER_ICON,
            launch_count=0,
            kind=EntryKind.FILE,
            rank_bonus=DIRECTORY_BONUS,
        )

    # ── Empty mode ────────────────────────────────────────────────

    def _search_empty(self, snapshot: Mapping[str, Entry]) -> List[SearchResult]:
        extension = self._config.desktop_extension
        results = [
            SearchResult(entry, popularity_score(entry))
            for entry in snapshot.values()
            if entry.kind is EntryKind.APPLICATION and entry.path.endswith(extension)
        ]
        results.sort()
        return results

    # ── Text mode ─────────────────────────────────────────────────

    def _search_text(self, query: str, snapshot: Mapping[str, Entry]) -> List[SearchResult]:
        entries = list(snapshot.values())
        scored = self._score_entries(query, entries)
        scored.sort()
        results = _dedupe(scored)

        token = query.split()[0].casefold()
        if not any(entry.name.casefold() == token for entry in entries):
            fallback = self._binary_fallback(query)
            if fallback is not None:
                results.append(fallback)
                results.sort()
        return results

    def _score_entries(self, query: str, entries: List[Entry]) -> List[SearchResult]:
        threshold = self._config.parallel_threshold
        if len(entries) < threshold or self._config.max_workers <= 1:
            return _score_chunk(query, entries)

        chunk_size = max(threshold // 2, len(entries) // self._config.max_workers + 1)
        chunks = [entries[i:i + chunk_size] for i in range(0, len(entries), chunk_size)]
        executor = self._get_executor()
        futures = [executor.submit(_score_chunk, query, chunk) for chunk in chunks]
        scored: List[SearchResult] = []
        for future in futures:
            try:
                scored.extend(future.result())
            except Exception as exc:
                logger.error(f"Scoring worker failed for {query!r}: {exc}")
                raise SearchError(f"Scoring failed for query {query!r}: {exc}") from exc
        return scored

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._config.max_workers, thread_name_prefix="appdex-score",
                )
            return self._executor

    def _binary_fallback(self, query: str) -> Optional[SearchResult]:
        """Offer ``binary_dir/<first token>`` with the rest of the query as args."""
        tokens = query.split()
        name = tokens[0]
        if os.sep in name or name in (".", ".."):
            return None
        candidate = os.path.join(self._config.binary_dir, name)
        if not (os.path.isfile(candidate) and os.access(candidate, os.X_OK)):
            return None

        command = " ".join([shlex.quote(candidate)] + tokens[1:])
        entry = Entry(
            name=name,
            description=command,
            path=candidate,
            command=command,
            icon_id=GENERIC_EXECUTABLE_ICON,
            launch_count=0,
            kind=EntryKind.FILE,
            rank_bonus=0,
        )
        return SearchResult(entry, BINARY_FALLBACK_SCORE)


def _score_chunk(query: str, entries: List[Entry]) -> List[SearchResult]:
    results: List[SearchResult] = []
    for entry in entries:
        score = text_score(query, entry)
        if score is not None:
            results.append(SearchResult(entry, score))
    return results


# =============================================================================
# Result Formatting
# =============================================================================

class ResultFormatter:
    """Format search results for the CLI, honouring the ``show_*`` flags."""

    def __init__(self, config: AppdexConfig | None = None):
        self.config = config or AppdexConfig()

    # ── Console (human-friendly) ──────────────────────────────────

    def format_console(self, results: List[SearchResult],
                       elapsed_time: float | None = None) -> str:
        if not results:
            return "\n  No results found.\n"

        import shutil
        width = min(shutil.get_terminal_size().columns, 78)
        thin = "─" * width

        header = f"  APPDEX — {len(results)} result{'s' if len(results) != 1 else ''}"
        if elapsed_time is not None:
            header += f" in {elapsed_time * 1000:.2f}ms"

        out: List[str] = [f"\n{thin}", header, thin]
        for idx, r in enumerate(results, start=1):
            icon = f"[{r.entry.icon_id}] " if self.config.show_icons else ""
            out.append(f"  #{idx:<3} {icon}{r.entry.name}  ({r.entry.kind.value}, score {r.score:,})")
            if self.config.show_descriptions and r.entry.description:
                out.append(f"        {r.entry.description}")
            if self.config.show_paths and r.entry.path:
                out.append(f"        {r.entry.path}")
        out.append(thin)
        return "\n".join(out)

    # ── JSON ──────────────────────────────────────────────────────

    @staticmethod
    def format_json(results: List[SearchResult]) -> str:
        """Complete records; visibility flags do not apply to machine output."""
        return json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False)

    # ── Compact (one line per result) ─────────────────────────────

    def format_compact(self, results: List[SearchResult]) -> str:
        if not results:
            return "No results found."
        lines: List[str] = []
        for r in results:
            line = f"{r.score}\t{r.entry.name}"
            if self.config.show_paths:
                line += f"\t{r.entry.path}"
            lines.append(line)
        return "\n".join(lines)
