"""
Centralized services container module for stubwatch.

Builds every collaborator from configuration once, so the CLI commands and
the watch loop share the same wiring.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stubwatch.core.classifier import ChangeClassifier
from stubwatch.core.config import StubwatchConfig, load_config
from stubwatch.core.models import EntityCategory
from stubwatch.core.path_filter import PathFilter
from stubwatch.infrastructure.file_watcher import FileWatcher
from stubwatch.infrastructure.generation_runner import CommandGenerationRunner
from stubwatch.infrastructure.registries import ManifestRegistry
from stubwatch.services.generation_pass import GenerationPass


@dataclass
class ServicesContainer:
    """
    Container holding all shared service instances.

    Attributes:
        config: Application configuration
        project_root: Root of the watched project
        path_filter: Relevance filter for change batches
        registry: Host manifest (entities, generators, reloader)
        classifier: Change classifier
        runner: Generation command runner
        generation_pass: Pipeline wiring the above for one batch
    """

    config: StubwatchConfig
    project_root: Path
    path_filter: PathFilter
    registry: ManifestRegistry
    classifier: ChangeClassifier
    runner: CommandGenerationRunner
    generation_pass: GenerationPass

    def create_file_watcher(self) -> FileWatcher:
        return FileWatcher(ignore_patterns=list(self.config.watch.ignore_patterns))


def create_services(
    project_root: Path | str = ".",
    config: Optional[StubwatchConfig] = None,
    config_path: Optional[Path | str] = None,
) -> ServicesContainer:
    """
    Create and wire all services.

    Args:
        project_root: Root of the watched project; relative manifest and
            output paths are resolved against it
        config: Preloaded configuration; takes precedence over config_path
        config_path: Optional path to a configuration file

    Returns:
        ServicesContainer with all services initialized
    """
    if config is None:
        config = load_config(config_path)

    root = Path(project_root).resolve()

    path_filter = PathFilter(
        source_extension=config.filter.source_extension,
        reserved_markers=config.filter.reserved_markers,
    )

    manifest_path = Path(config.host.manifest_path)
    if not manifest_path.is_absolute():
        manifest_path = root / manifest_path
    registry = ManifestRegistry(manifest_path)

    classifier = ChangeClassifier(
        entity_registry=registry,
        generator_registry=registry,
        schema_filename=config.classification.schema_filename,
        persistence_category=EntityCategory(config.classification.persistence_category),
        category_prefixes=config.classification.category_prefixes,
    )

    runner = CommandGenerationRunner(config.generation, project_root=root)

    return ServicesContainer(
        config=config,
        project_root=root,
        path_filter=path_filter,
        registry=registry,
        classifier=classifier,
        runner=runner,
        generation_pass=GenerationPass(
            path_filter=path_filter,
            reloader=registry,
            classifier=classifier,
            runner=runner,
        ),
    )
