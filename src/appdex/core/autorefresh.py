"""
Appdex Auto-Refresh Module

Keeps the index current while the launcher stays resident:
- watches every existing desktop-entry root with watchdog
- debounces bursts of changes (package installs touch many files)
- runs a full rebuild on the refresher thread once things settle
"""

import logging
import threading
import time
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from appdex.core.resolver import desktop_roots

logger = logging.getLogger(__name__)


class DesktopChangeHandler(FileSystemEventHandler):
    """Flags a refresh when a desktop file is created, changed, moved or removed."""

    def __init__(self, refresher: "AutoRefresher", extension: str = ".desktop"):
        super().__init__()
        self.refresher = refresher
        self.extension = extension

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if any(str(p).endswith(self.extension) for p in paths if p):
            self.refresher.mark_pending()


class AutoRefresher:
    """Automatic index rebuilds driven by filesystem events."""

    def __init__(self, client, debounce_seconds: float = 2.0,
                 min_interval_seconds: float = 0.0, poll_seconds: float = 0.25):
        """
        Initialize the auto-refresher.

        Args:
            client: Appdex client whose ``rebuild()`` is called.
            debounce_seconds: Quiet period after the last change before rebuilding.
            min_interval_seconds: Minimum seconds between two rebuilds.
            poll_seconds: How often the refresher thread checks for pending work.
        """
        self.client = client
        self.debounce_seconds = debounce_seconds
        self.min_interval_seconds = min_interval_seconds
        self.poll_seconds = poll_seconds
        self.refresh_count = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._observer: Optional[Observer] = None
        self._lock = threading.Lock()
        self._pending = False
        self._last_change = 0.0
        self._last_refresh = 0.0

    @property
    def pending(self) -> bool:
        return self._pending

    def mark_pending(self) -> None:
        with self._lock:
            self._pending = True
            self._last_change = time.monotonic()

    def start(self) -> None:
        """Start watching desktop roots in the background."""
        if self._thread and self._thread.is_alive():
            logger.warning("AutoRefresher already running")
            return

        config = self.client.config
        handler = DesktopChangeHandler(self, config.desktop_extension)
        observer = Observer()
        watched = 0
        for root in desktop_roots(config):
            if root.is_dir():
                observer.schedule(handler, str(root), recursive=False)
                watched += 1
        observer.start()
        self._observer = observer

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="appdex-autorefresh", daemon=True)
        self._thread.start()
        logger.info(f"AutoRefresher watching {watched} root(s) (debounce: {self.debounce_seconds}s)")

    def stop(self) -> None:
        """Stop watching. Idempotent."""
        self._stop_event.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
            logger.info("AutoRefresher stopped")

    def _loop(self) -> None:
        while not self._stop_event.wait(self.poll_seconds):
            self.maybe_refresh()

    def maybe_refresh(self) -> bool:
        """Rebuild when a change is pending and the debounce window has passed."""
        now = time.monotonic()
        with self._lock:
            if not self._pending or now - self._last_change < self.debounce_seconds:
                return False
            if self._last_refresh and now - self._last_refresh < self.min_interval_seconds:
                return False
            self._pending = False
            self._last_refresh = now

        try:
            result = self.client.rebuild()
        except Exception as e:
            # The previous snapshot keeps serving; the next change retries.
            logger.error(f"Auto-refresh rebuild failed: {e}")
            return False
        self.refresh_count += 1
        logger.info(f"Auto-refresh complete: {result.entries_indexed} entries indexed")
        return True


def start_auto_refresh(client, debounce_seconds: float = 2.0,
                       min_interval_seconds: float = 0.0) -> AutoRefresher:
    """
    Start automatic index refreshes for *client*.

    Example::

        from appdex import Appdex
        from appdex.core.autorefresh import start_auto_refresh

        client = Appdex()
        client.rebuild()
        refresher = start_auto_refresh(client)
        ...
        refresher.stop()
    """
    refresher = AutoRefresher(client, debounce_seconds, min_interval_seconds)
    refresher.start()
    return refresher
