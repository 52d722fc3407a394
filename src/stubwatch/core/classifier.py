"""
Change classifier: turns a change batch into a GenerationPlan.

Most changes are local and regenerate by path with every generator. A
change to the schema-definition file is the exception: it can affect every
persistence model without touching any model source, so the plan is scoped
to those entities and to the generators serving them.
"""

import logging
from collections.abc import Mapping, Sequence
from pathlib import PurePosixPath

from stubwatch.core.entity_catalog import EntityCatalog
from stubwatch.core.file_events import ChangeBatch
from stubwatch.core.generator_catalog import GeneratorCatalog
from stubwatch.core.interfaces import EntityRegistry, GeneratorRegistry
from stubwatch.core.models import PERSISTENCE_MODEL, EntityCategory, GenerationPlan

logger = logging.getLogger(__name__)


def _file_name(path: str) -> str:
    return PurePosixPath(str(path).replace("\\", "/")).name


class ChangeClassifier:
    """
    Decides which entities, paths and generators a change batch requires.

    Catalogs are rebuilt on every ``classify`` call, so their memoized
    results never leak from one batch into the next.
    """

    def __init__(
        self,
        entity_registry: EntityRegistry,
        generator_registry: GeneratorRegistry,
        schema_filename: str = "schema.rb",
        persistence_category: EntityCategory | None = None,
        category_prefixes: Mapping[str, Sequence[str]] | None = None,
    ):
        """
        Initialize the classifier.

        Args:
            entity_registry: Host registry of loaded entities
            generator_registry: Host registry of generation backends
            schema_filename: File name whose change implies every persistence
                model may need regeneration
            persistence_category: Category of the entities affected by a schema
                change (default: ``persistence_model``)
            category_prefixes: Category name -> generator name prefixes; None
                uses the default table
        """
        self._entity_registry = entity_registry
        self._generator_registry = generator_registry
        self._schema_filename = schema_filename
        self._persistence_category = persistence_category or EntityCategory(PERSISTENCE_MODEL)
        self._category_prefixes = category_prefixes

    @property
    def schema_filename(self) -> str:
        return self._schema_filename

    def is_schema_change(self, batch: ChangeBatch) -> bool:
        """True when any path in the batch names the schema-definition file."""
        return any(_file_name(p) == self._schema_filename for p in batch.all_paths())

    def classify(self, batch: ChangeBatch) -> GenerationPlan:
        """
        Build the generation plan for a batch.

        Accepts any batch, including an empty one, without raising. Callers
        are expected to check relevance first.

        Args:
            batch: The change batch to classify

        Returns:
            An entity-scoped plan for schema changes with known persistence
            models, otherwise a path-scoped plan using every generator
        """
        entity_catalog = EntityCatalog(self._entity_registry)
        generator_catalog = GeneratorCatalog(self._generator_registry, self._category_prefixes)

        if self.is_schema_change(batch):
            targets = entity_catalog.entities_of(self._persistence_category)
            if targets:
                generators = generator_catalog.generators_for(self._persistence_category)
                logger.debug(
                    "Schema change detected, scoping plan to %d entities",
                    len(targets),
                    extra={"category": self._persistence_category.name},
                )
                return GenerationPlan(
                    requested_entities=[e.name for e in targets],
                    requested_paths=[],
                    selected_generators=[g.name for g in generators],
                )

            logger.warning(
                "Schema file %s changed but no %s entities are registered; "
                "falling back to path-scoped generation",
                self._schema_filename,
                self._persistence_category.name,
            )

        return GenerationPlan(
            requested_entities=[],
            requested_paths=batch.all_paths(),
            selected_generators=[g.name for g in generator_catalog.all_generators()],
        )
