"""
Fake implementations for testing.

Provides in-memory implementations of the watcher, reloader and generation
runner for use in unit and integration tests without a real project.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stubwatch.core.file_events import FileEvent
    from stubwatch.core.models import GenerationPlan


class FakeFileWatcher:
    """
    Fake file watcher for testing.

    Allows manual triggering of file events without actual file system monitoring.
    Implements the same interface as FileWatcher for use in tests.
    """

    def __init__(self, ignore_patterns: list[str] | None = None):
        """
        Initialize the fake file watcher.

        Args:
            ignore_patterns: List of patterns to ignore (ignored in fake)
        """
        self._ignore_patterns = ignore_patterns or []
        self._callback: Callable[[FileEvent], None] | None = None
        self._watch_path: Path | None = None
        self._running = False

    @property
    def watch_path(self) -> Path | None:
        return self._watch_path

    def start(self, path: Path, callback: Callable[[FileEvent], None]) -> None:
        """
        Start the fake watcher.

        Args:
            path: Directory path to watch
            callback: Function to call when events are triggered
        """
        if self._running:
            raise RuntimeError("File watcher is already running")

        self._watch_path = Path(path).resolve()
        self._callback = callback
        self._running = True

    def stop(self) -> None:
        """Stop the fake watcher."""
        self._running = False
        self._callback = None
        self._watch_path = None

    def is_running(self) -> bool:
        """Check if the fake watcher is running."""
        return self._running

    def trigger_event(self, event: FileEvent) -> None:
        """
        Manually trigger a file event.

        This is the main testing interface - allows tests to simulate
        file system events without actual file operations.

        Args:
            event: The FileEvent to trigger
        """
        if not self._running:
            raise RuntimeError("File watcher is not running")

        if self._callback is not None:
            self._callback(event)


class CountingReloader:
    """Reloader that counts calls and can be told to fail."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = 0

    def reload(self) -> None:
        self.calls += 1
        if self.error is not None:
            raise self.error


class RecordingGenerationRunner:
    """Generation runner that records every plan it receives."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.plans: list[GenerationPlan] = []

    def run(self, plan: GenerationPlan) -> None:
        self.plans.append(plan)
        if self.error is not None:
            raise self.error
