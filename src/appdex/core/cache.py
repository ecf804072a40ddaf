"""
Appdex Shared Index

Holds the current ``name -> Entry`` snapshot.  Readers grab the snapshot
reference without locking and treat it as immutable; the two writers
(a rebuild swap and a launch-count increment) serialize on one lock and
always publish a *new* dict, so a reader sees either the old mapping or
the new one in full.
"""

import logging
import threading
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from appdex.core.engine import Entry

logger = logging.getLogger(__name__)


class SharedIndex:
    """
    Concurrently readable, exclusively replaceable entry mapping.

    Instances are injected into the index builder, the search engine and
    the usage tracker; there is no module-level singleton.
    """

    def __init__(self, entries: Optional[Mapping[str, Entry]] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, Entry] = dict(entries or {})
        self._generation = 0

    # ── Reads ─────────────────────────────────────────────────────

    def snapshot(self) -> Mapping[str, Entry]:
        """Return a read-only view of the current mapping.

        The underlying dict is never mutated after publication, so the
        view stays consistent for as long as the caller holds it.
        """
        return MappingProxyType(self._entries)

    def get(self, name: str) -> Optional[Entry]:
        return self._entries.get(name)

    @property
    def generation(self) -> int:
        """Number of snapshots published so far (rebuilds + increments)."""
        return self._generation

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    # ── Writes ────────────────────────────────────────────────────

    def replace(self, entries: Mapping[str, Entry]) -> int:
        """
        Atomically install a freshly built mapping.

        Launch counts only grow during a process lifetime, so for names
        present in both snapshots the larger count is kept.  This keeps an
        increment that landed between a rebuild's heatmap read and this
        swap.  Returns the number of counts carried over.
        """
        with self._lock:
            current = self._entries
            merged: Dict[str, Entry] = {}
            carried = 0
            for name, entry in entries.items():
                previous = current.get(name)
                if previous is not None and previous.launch_count > entry.launch_count:
                    entry = entry.with_launch_count(previous.launch_count)
                    carried += 1
                merged[name] = entry
            self._entries = merged
            self._generation += 1
        if carried:
            logger.debug(f"Carried {carried} in-process launch count(s) into new index")
        return carried

    def increment(self, name: str) -> Optional[Entry]:
        """
        Add one launch to *name* and return the updated entry.

        Copy-on-write: the new entry is published in a new dict so readers
        holding the previous snapshot are unaffected.  Unknown names return
        ``None`` and change nothing.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                return None
            updated = entry.with_launch_count(entry.launch_count + 1)
            entries = dict(self._entries)
            entries[name] = updated
            self._entries = entries
            self._generation += 1
        return updated

    def clear(self) -> None:
        with self._lock:
            self._entries = {}
            self._generation += 1
