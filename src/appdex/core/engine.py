"""
Appdex Core Data Model

Records shared by the resolver, the index builder, the search engine and
the client.  Entries are frozen: the only sanctioned mutation, a launch
count increment, publishes a replaced copy through the shared index.
"""

from dataclasses import asdict, dataclass, replace
from enum import Enum

GENERIC_EXECUTABLE_ICON = "application-x-executable"
"""Icon id that doubles as the "no icon resolved" sentinel."""

FOLDER_ICON = "folder"


# =============================================================================
# Data Models
# =============================================================================

class EntryKind(str, Enum):
    """Where an entry came from."""
    APPLICATION = "application"
    FILE = "file"


@dataclass(frozen=True)
class Entry:
    """One launchable item: an installed application or a filesystem path."""
    name: str
    description: str
    path: str
    command: str
    icon_id: str
    launch_count: int = 0
    kind: EntryKind = EntryKind.APPLICATION
    rank_bonus: int = 0

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.FILE and self.icon_id == FOLDER_ICON

    def with_launch_count(self, count: int) -> "Entry":
        return replace(self, launch_count=count)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass
class SearchResult:
    """An entry with the score it earned for one query."""
    entry: Entry
    score: int

    @property
    def name(self) -> str:
        return self.entry.name

    def sort_key(self) -> tuple:
        """Total order: score descending, then case-insensitive name."""
        return (-self.score, self.entry.name.casefold(), self.entry.name)

    def __lt__(self, other):
        return self.sort_key() < other.sort_key()  # Higher score = better

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict for API pipelines."""
        return {"entry": self.entry.to_dict(), "score": self.score}


@dataclass
class IndexResult:
    """Typed statistics returned by :meth:`IndexBuilder.rebuild`."""
    roots_scanned: int = 0
    roots_missing: int = 0
    files_found: int = 0
    entries_resolved: int = 0
    entries_skipped: int = 0
    name_collisions: int = 0
    entries_indexed: int = 0
    heatmap_entries: int = 0
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)
