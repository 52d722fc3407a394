"""
Protocols for the collaborators the classification core consumes.

The host application supplies the registries and the reloader; the
generation runner and the watcher live in the infrastructure layer.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from stubwatch.core.file_events import FileEvent
from stubwatch.core.models import Entity, GenerationPlan, Generator


class EntityRegistry(Protocol):
    """Explicit registry of the entities the host application has loaded."""

    def names(self) -> list[str]:
        """Return every candidate entity name."""
        ...

    def resolve(self, name: str) -> Entity | None:
        """Resolve a name to a live entity, or None when it cannot be resolved."""
        ...


class GeneratorRegistry(Protocol):
    """Explicit registry of the generation backends available to the runner."""

    def generators(self) -> list[Generator]:
        ...


class ApplicationReloader(Protocol):
    """Refreshes the host application's loaded definitions."""

    def reload(self) -> None:
        ...


class GenerationRunner(Protocol):
    """Consumes a plan and writes interface files."""

    def run(self, plan: GenerationPlan) -> None:
        ...


class FileWatcherInterface(Protocol):
    """Protocol for file watcher implementations."""

    def start(self, path: Path, callback: Callable[[FileEvent], None]) -> None:
        """
        Start watching the specified directory.

        Args:
            path: Directory path to watch
            callback: Function to call when file events occur
        """
        ...

    def stop(self) -> None:
        """Stop watching and release resources."""
        ...

    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        ...
