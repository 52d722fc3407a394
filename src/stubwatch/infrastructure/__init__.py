"""
Infrastructure Layer - File watcher, host registries and generation runner.
"""

from stubwatch.infrastructure.fakes import (
    CountingReloader,
    FakeFileWatcher,
    RecordingGenerationRunner,
)
from stubwatch.infrastructure.file_watcher import FileWatcher
from stubwatch.infrastructure.generation_runner import (
    GENERATED_ATTRIBUTES,
    CommandGenerationRunner,
    build_command,
    generated_marker,
    write_generated_marker,
)
from stubwatch.infrastructure.registries import (
    ManifestRegistry,
    StaticEntityRegistry,
    StaticGeneratorRegistry,
)

__all__ = [
    # File watcher
    "FileWatcher",
    # Registries
    "ManifestRegistry",
    "StaticEntityRegistry",
    "StaticGeneratorRegistry",
    # Generation runner
    "CommandGenerationRunner",
    "build_command",
    "generated_marker",
    "write_generated_marker",
    "GENERATED_ATTRIBUTES",
    # Fakes for testing
    "FakeFileWatcher",
    "CountingReloader",
    "RecordingGenerationRunner",
]
