"""
File watcher infrastructure component.

Provides file system monitoring using watchdog library with support for:
- File creation, modification, deletion, and move events
- Ignore pattern filtering (gitignore-style)
- Paths reported relative to the watched project root

Relevance (source extension, tooling directories) is decided later by
PathFilter on whole batches, so the watcher forwards every file event it
does not explicitly ignore.
"""

import fnmatch
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from stubwatch.core.file_events import FileEvent, FileEventType
from stubwatch.core.interfaces import FileWatcherInterface

logger = logging.getLogger(__name__)


class FileWatcher(FileWatcherInterface):
    """
    File system watcher implementation using watchdog.

    Monitors a project tree and emits FileEvent objects through a callback.
    """

    def __init__(self, ignore_patterns: list[str] | None = None):
        """
        Initialize the file watcher.

        Args:
            ignore_patterns: List of gitignore-style patterns to ignore
        """
        self._ignore_patterns = ignore_patterns or []
        self._observer: Observer | None = None
        self._callback: Callable[[FileEvent], None] | None = None
        self._watch_path: Path | None = None
        self._lock = threading.Lock()

    def start(self, path: Path, callback: Callable[[FileEvent], None]) -> None:
        """
        Start watching the specified directory.

        Args:
            path: Directory path to watch (must exist and be a directory)
            callback: Function to call when file events occur

        Raises:
            ValueError: If path doesn't exist or isn't a directory
            RuntimeError: If watcher is already running
        """
        with self._lock:
            if self._observer is not None and self._observer.is_alive():
                raise RuntimeError("File watcher is already running")

            path = Path(path).resolve()
            if not path.exists():
                raise ValueError(f"Path does not exist: {path}")
            if not path.is_dir():
                raise ValueError(f"Path is not a directory: {path}")

            self._watch_path = path
            self._callback = callback

            handler = _WatchdogEventHandler(
                callback=self._handle_event,
                ignore_patterns=self._ignore_patterns,
                root_path=path,
            )

            self._observer = Observer()
            self._observer.schedule(handler, str(path), recursive=True)
            self._observer.start()

            logger.info(f"Started watching: {path}")

    def stop(self) -> None:
        """Stop watching and release resources."""
        with self._lock:
            if self._observer is not None:
                self._observer.stop()
                self._observer.join(timeout=5.0)
                self._observer = None
                logger.info(f"Stopped watching: {self._watch_path}")
            self._callback = None
            self._watch_path = None

    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        with self._lock:
            return self._observer is not None and self._observer.is_alive()

    def _handle_event(self, event: FileEvent) -> None:
        """Internal handler that forwards events to the callback."""
        if self._callback is not None:
            try:
                self._callback(event)
            except Exception as e:
                logger.error(f"Error in file event callback: {e}", exc_info=True)


class _WatchdogEventHandler(FileSystemEventHandler):
    """
    Internal watchdog event handler.

    Converts watchdog events to FileEvent objects with root-relative paths.
    """

    def __init__(
        self,
        callback: Callable[[FileEvent], None],
        ignore_patterns: list[str],
        root_path: Path,
    ):
        """
        Initialize the event handler.

        Args:
            callback: Function to call with FileEvent objects
            ignore_patterns: List of patterns to ignore
            root_path: Root path being watched (for relative path calculation)
        """
        super().__init__()
        self._callback = callback
        self._ignore_patterns = ignore_patterns
        self._root_path = root_path

    def _relative(self, path: Path) -> Path:
        try:
            return path.relative_to(self._root_path)
        except ValueError:
            return path

    def _should_ignore(self, path: Path) -> bool:
        """
        Check if a path should be ignored based on patterns.

        Args:
            path: Path to check

        Returns:
            True if the path should be ignored
        """
        rel_path = self._relative(path)
        path_str = rel_path.as_posix()
        name = path.name

        for pattern in self._ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                return True
            if fnmatch.fnmatch(path_str, pattern):
                return True
            for part in rel_path.parts:
                if fnmatch.fnmatch(part, pattern):
                    return True

        return False

    def _emit_event(
        self,
        event_type: FileEventType,
        file_path: Path,
        old_path: Path | None = None,
    ) -> None:
        """
        Create and emit a FileEvent.

        Args:
            event_type: Type of the event
            file_path: Absolute path to the affected file
            old_path: Previous absolute path for move events
        """
        event = FileEvent(
            event_type=event_type,
            file_path=self._relative(file_path),
            old_path=self._relative(old_path) if old_path is not None else None,
        )
        logger.debug(f"Emitting event: {event_type.value} - {event.file_path}")
        self._callback(event)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file/directory creation events."""
        if isinstance(event, DirCreatedEvent):
            return

        path = Path(event.src_path)
        if not self._should_ignore(path):
            self._emit_event(FileEventType.CREATED, path)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file/directory modification events."""
        if isinstance(event, DirModifiedEvent):
            return

        path = Path(event.src_path)
        if not self._should_ignore(path):
            self._emit_event(FileEventType.MODIFIED, path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file/directory deletion events."""
        if isinstance(event, DirDeletedEvent):
            return

        path = Path(event.src_path)
        if self._should_ignore(path):
            logger.debug(f"Ignoring delete event for: {path}")
            return

        self._emit_event(FileEventType.DELETED, path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle file/directory move events."""
        if isinstance(event, DirMovedEvent):
            return

        src_path = Path(event.src_path)
        dest_path = Path(event.dest_path)

        src_valid = not self._should_ignore(src_path)
        dest_valid = not self._should_ignore(dest_path)

        if dest_valid:
            self._emit_event(
                FileEventType.MOVED,
                dest_path,
                old_path=src_path if src_valid else None,
            )
        elif src_valid:
            # Moved into an ignored location: only the removal is visible
            self._emit_event(FileEventType.DELETED, src_path)
