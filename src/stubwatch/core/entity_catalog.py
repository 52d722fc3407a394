"""
Entity catalog over the host application's registry.

Enumeration is best-effort: names that fail to resolve are dropped and
never surfaced to the caller.
"""

import logging

from stubwatch.core.interfaces import EntityRegistry
from stubwatch.core.models import Entity, EntityCategory

logger = logging.getLogger(__name__)


class EntityCatalog:
    """
    Memoized view of the resolvable entities for one classification pass.

    Build a new catalog per pass; results are computed on first use and
    reused for the catalog's lifetime.
    """

    def __init__(self, registry: EntityRegistry):
        self._registry = registry
        self._all_entities: list[Entity] | None = None
        self._by_category: dict[str, list[Entity]] = {}

    def all_entities(self) -> list[Entity]:
        """Return every entity whose name resolves, in registry order."""
        if self._all_entities is None:
            entities = []
            dropped = 0
            for name in self._registry.names():
                entity = self._registry.resolve(name)
                if entity is None:
                    dropped += 1
                    logger.debug("Skipping unresolvable entity: %s", name)
                    continue
                entities.append(entity)
            if dropped:
                logger.debug(
                    "Dropped %d unresolvable entity name(s)",
                    dropped,
                    extra={"dropped": dropped, "resolved": len(entities)},
                )
            self._all_entities = entities
        return self._all_entities

    def entities_of(self, category: EntityCategory) -> list[Entity]:
        """Return the resolvable entities that belong to the category."""
        if category.name not in self._by_category:
            self._by_category[category.name] = [
                entity for entity in self.all_entities() if category.matches(entity)
            ]
        return self._by_category[category.name]
