"""
File event models for the watch loop.

Provides data structures for representing file system events and the
change batch handed to the classifier once per quiescence period.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class FileEventType(Enum):
    """Types of file system events."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


@dataclass
class FileEvent:
    """
    Represents a single file system event.

    Attributes:
        event_type: Type of the file event (CREATED, MODIFIED, DELETED, MOVED)
        file_path: Path to the affected file, relative to the watch root
        old_path: Previous path for MOVED events, None otherwise
        timestamp: Unix timestamp when the event occurred
    """

    event_type: FileEventType
    file_path: Path
    old_path: Path | None = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        """Ensure paths are Path objects."""
        if isinstance(self.file_path, str):
            self.file_path = Path(self.file_path)
        if isinstance(self.old_path, str):
            self.old_path = Path(self.old_path)


def _path_key(path: Path | str) -> str:
    return Path(path).as_posix()


def _discard(paths: list[str], path: str) -> bool:
    if path in paths:
        paths[:] = [p for p in paths if p != path]
        return True
    return False


@dataclass
class ChangeBatch:
    """
    A batch of changed paths, one per detected quiescence period.

    The three lists keep the order in which paths were reported. The batch
    itself does not enforce uniqueness; ``merge`` collapses repeated events
    for the same path, while batches built directly keep what they are given.

    Attributes:
        modified: Paths of files that changed
        added: Paths of files that were created
        removed: Paths of files that were deleted
    """

    modified: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    def all_paths(self) -> list[str]:
        """Return ``modified + added + removed``, order-preserving."""
        return [*self.modified, *self.added, *self.removed]

    def is_empty(self) -> bool:
        """Check if the batch contains no paths."""
        return not (self.modified or self.added or self.removed)

    def total_count(self) -> int:
        """Return total number of paths in the batch."""
        return len(self.modified) + len(self.added) + len(self.removed)

    def merge(self, event: FileEvent) -> None:
        """
        Merge a single watcher event into this batch.

        Merge rules:
        - CREATED: add to ``added`` unless already tracked; a path removed
          earlier in the batch becomes modified
        - MODIFIED: a path added in this batch stays added
        - DELETED: cancels an add from the same batch, otherwise moves the
          path to ``removed``
        - MOVED: delete of ``old_path`` followed by create of ``file_path``

        Args:
            event: The file event to merge into this batch
        """
        path = _path_key(event.file_path)

        if event.event_type == FileEventType.CREATED:
            self._merge_created(path)

        elif event.event_type == FileEventType.MODIFIED:
            if _discard(self.removed, path):
                self.modified.append(path)
            elif path not in self.added and path not in self.modified:
                self.modified.append(path)

        elif event.event_type == FileEventType.DELETED:
            self._merge_deleted(path)

        elif event.event_type == FileEventType.MOVED:
            if event.old_path is not None:
                self._merge_deleted(_path_key(event.old_path))
            self._merge_created(path)

    def _merge_created(self, path: str) -> None:
        if _discard(self.removed, path):
            self.modified.append(path)
        elif path not in self.added and path not in self.modified:
            self.added.append(path)

    def _merge_deleted(self, path: str) -> None:
        if _discard(self.added, path):
            return
        _discard(self.modified, path)
        if path not in self.removed:
            self.removed.append(path)

    def extend(self, other: "ChangeBatch") -> None:
        """Append another batch's paths, skipping ones already listed."""
        for target, source in (
            (self.modified, other.modified),
            (self.added, other.added),
            (self.removed, other.removed),
        ):
            for path in source:
                if path not in target:
                    target.append(path)

    def clear(self) -> None:
        """Clear all paths from the batch."""
        self.modified.clear()
        self.added.clear()
        self.removed.clear()

    def copy(self) -> "ChangeBatch":
        """Create a copy of this batch."""
        return ChangeBatch(
            modified=list(self.modified),
            added=list(self.added),
            removed=list(self.removed),
        )

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize the batch for logging and JSON output."""
        return {
            "modified": list(self.modified),
            "added": list(self.added),
            "removed": list(self.removed),
        }
