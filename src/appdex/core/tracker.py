"""
Appdex Usage Tracker

Bumps an entry's launch count in the shared index and hands the new value
to the background heatmap writer.  No rebuild is triggered; the next
rebuild picks the persisted count back up from the heatmap.
"""

import logging
from typing import Optional

from appdex.core.cache import SharedIndex
from appdex.core.heatmap import HeatmapWriter

logger = logging.getLogger(__name__)


class UsageTracker:
    """Records successful launches."""

    def __init__(self, index: SharedIndex, writer: HeatmapWriter):
        self.index = index
        self.writer = writer

    def record_launch(self, name: str) -> Optional[int]:
        """
        Increment *name*'s launch count and queue it for persistence.

        Returns the new count, or ``None`` when *name* is not indexed (in
        which case nothing happens).
        """
        updated = self.index.increment(name)
        if updated is None:
            logger.debug(f"Launch of unindexed entry '{name}' not recorded")
            return None
        self.writer.submit(updated.name, updated.launch_count)
        return updated.launch_count
