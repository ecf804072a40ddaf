"""
Appdex Heatmap Store

Persists ``name -> launch_count`` as a single JSON object in a per-user
data file.  The store is best effort throughout: a missing or corrupt
file reads as ``{}``, and a failed write is logged and forgotten.  Counts
are a ranking hint, so concurrent writers from different processes may
lose updates (last writer wins).

Writes are handed to :class:`HeatmapWriter`, a dedicated thread fed by a
bounded queue, so nothing on the query path ever waits for the disk.
Queued writes that have not reached the file when the process is killed
are lost.
"""

import json
import logging
import os
import queue
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class HeatmapStore:
    """Load/save helpers around one heatmap file; keeps no cache of its own."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Dict[str, int]:
        """Read the heatmap, returning ``{}`` on any I/O or parse failure."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.debug(f"Ignoring unreadable heatmap {self.path}: {exc}")
            return {}

        if not isinstance(raw, dict):
            logger.debug(f"Ignoring heatmap {self.path}: top level is not an object")
            return {}

        counts: Dict[str, int] = {}
        for name, count in raw.items():
            # bool is an int subclass; true/false are not counts
            if isinstance(count, int) and not isinstance(count, bool) and count >= 0:
                counts[str(name)] = count
        return counts

    def save(self, name: str, count: int) -> bool:
        """
        Read-modify-write *name* -> *count* into the file.

        The new content goes to a temporary sibling first and is moved into
        place with :func:`os.replace`, so an interrupted write leaves the
        previous file intact.  Returns False (after logging) on failure.
        """
        heatmap = self.load()
        heatmap[name] = count
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".heatmap-", suffix=".json", dir=str(self.path.parent),
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(heatmap, fh, ensure_ascii=False, sort_keys=True)
            os.replace(tmp_name, self.path)
            tmp_name = None
            return True
        except OSError as exc:
            logger.warning(f"Could not save heatmap {self.path}: {exc}")
            return False
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass


class HeatmapWriter:
    """
    Background writer for heatmap updates.

    :meth:`submit` enqueues and returns immediately; a daemon thread
    applies writes in order.  When the queue is full the update is dropped
    with a warning rather than blocking the caller.
    """

    _STOP = object()

    def __init__(self, store: HeatmapStore, max_pending: int = 256):
        self.store = store
        self._queue: "queue.Queue" = queue.Queue(maxsize=max_pending)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False
        self.dropped = 0

    def _ensure_started(self) -> None:
        # caller holds self._lock
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(
                target=self._run, name="appdex-heatmap-writer", daemon=True,
            )
            self._thread.start()

    def submit(self, name: str, count: int) -> bool:
        """Queue a write; returns False when it was dropped."""
        with self._lock:
            if self._closed:
                reason = "Heatmap writer closed"
            else:
                self._ensure_started()
                try:
                    self._queue.put_nowait((name, count))
                    return True
                except queue.Full:
                    reason = "Heatmap write queue full"
            self.dropped += 1
        logger.warning(f"{reason}; dropping update for '{name}'")
        return False

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued write has been applied.

        Returns False if *timeout* expired first.
        """
        if self._thread is None:
            return True
        done = threading.Event()

        def _wait() -> None:
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        return done.wait(timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Drain pending writes and stop the writer thread. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
        if thread is None:
            return
        # No submit can enqueue after _closed is set, so the sentinel is last.
        self._queue.put(self._STOP)
        thread.join(timeout=timeout)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._STOP:
                    return
                name, count = item
                self.store.save(name, count)
            except Exception as exc:
                logger.error(f"Heatmap writer failed: {exc}", exc_info=True)
            finally:
                self._queue.task_done()
