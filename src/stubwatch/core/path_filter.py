"""
Relevance filter for change batches.

A batch is interesting only when at least one changed path is a tracked
source file outside the reserved tooling directories.
"""

from collections.abc import Iterable

from stubwatch.core.file_events import ChangeBatch


class PathFilter:
    """
    Cheap pre-filter applied before any reload or classification.

    Attributes:
        source_extension: Suffix a path must end with to be tracked
        reserved_markers: Substrings marking tooling/generated directories
    """

    def __init__(
        self,
        source_extension: str = ".rb",
        reserved_markers: Iterable[str] = ("sorbet",),
    ):
        self._source_extension = source_extension
        self._reserved_markers = tuple(m for m in reserved_markers if m)

    @property
    def source_extension(self) -> str:
        return self._source_extension

    @property
    def reserved_markers(self) -> tuple[str, ...]:
        return self._reserved_markers

    def is_ignored(self, path: str) -> bool:
        path_str = str(path)
        if any(marker in path_str for marker in self._reserved_markers):
            return True
        return not path_str.endswith(self._source_extension)

    def relevant_paths(self, batch: ChangeBatch) -> list[str]:
        """Return the paths of the batch that survive filtering, in order."""
        return [p for p in batch.all_paths() if not self.is_ignored(p)]

    def is_relevant(self, batch: ChangeBatch) -> bool:
        """True iff at least one path in the batch survives filtering."""
        return any(not self.is_ignored(p) for p in batch.all_paths())
