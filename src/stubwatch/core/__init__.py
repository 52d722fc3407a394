"""
Core Layer - Change batches, relevance filter, catalogs, classifier and configuration.
"""

from stubwatch.core.classifier import ChangeClassifier
from stubwatch.core.config import (
    ClassificationConfig,
    FilterConfig,
    GenerationConfig,
    HostConfig,
    LoggingConfig,
    StubwatchConfig,
    WatchSettings,
    load_config,
)
from stubwatch.core.debouncer import Debouncer
from stubwatch.core.entity_catalog import EntityCatalog
from stubwatch.core.errors import (
    GenerationError,
    ManifestError,
    PlanInvariantError,
    StubwatchError,
)
from stubwatch.core.file_events import ChangeBatch, FileEvent, FileEventType
from stubwatch.core.generator_catalog import DEFAULT_CATEGORY_PREFIXES, GeneratorCatalog
from stubwatch.core.interfaces import (
    ApplicationReloader,
    EntityRegistry,
    FileWatcherInterface,
    GenerationRunner,
    GeneratorRegistry,
)
from stubwatch.core.models import (
    PERSISTENCE_MODEL,
    Entity,
    EntityCategory,
    GenerationPlan,
    Generator,
)
from stubwatch.core.path_filter import PathFilter

__all__ = [
    # Config
    "StubwatchConfig",
    "WatchSettings",
    "FilterConfig",
    "ClassificationConfig",
    "HostConfig",
    "GenerationConfig",
    "LoggingConfig",
    "load_config",
    # Errors
    "StubwatchError",
    "PlanInvariantError",
    "ManifestError",
    "GenerationError",
    # Events
    "ChangeBatch",
    "FileEvent",
    "FileEventType",
    "Debouncer",
    # Models
    "PERSISTENCE_MODEL",
    "Entity",
    "EntityCategory",
    "Generator",
    "GenerationPlan",
    # Collaborators
    "EntityRegistry",
    "GeneratorRegistry",
    "ApplicationReloader",
    "GenerationRunner",
    "FileWatcherInterface",
    # Decision engine
    "PathFilter",
    "EntityCatalog",
    "GeneratorCatalog",
    "DEFAULT_CATEGORY_PREFIXES",
    "ChangeClassifier",
]
