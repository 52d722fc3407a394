"""
Generator catalog with name-prefix applicability.

Whether a generator serves a category is decided from its name alone,
using the configured category -> prefix table.
"""

from collections.abc import Mapping, Sequence

from stubwatch.core.interfaces import GeneratorRegistry
from stubwatch.core.models import PERSISTENCE_MODEL, EntityCategory, Generator

DEFAULT_CATEGORY_PREFIXES: dict[str, list[str]] = {
    PERSISTENCE_MODEL: [
        "Tapioca::Dsl::Compilers::ActiveRecord",
        "Tapioca::Dsl::Compilers::ActiveModel",
    ],
}


class GeneratorCatalog:
    """Memoized view of the registered generators for one classification pass."""

    def __init__(
        self,
        registry: GeneratorRegistry,
        category_prefixes: Mapping[str, Sequence[str]] | None = None,
    ):
        self._registry = registry
        if category_prefixes is None:
            category_prefixes = DEFAULT_CATEGORY_PREFIXES
        self._category_prefixes = {
            category: tuple(prefixes) for category, prefixes in category_prefixes.items()
        }
        self._all_generators: list[Generator] | None = None

    def all_generators(self) -> list[Generator]:
        """Return every registered generator, in registration order."""
        if self._all_generators is None:
            self._all_generators = list(self._registry.generators())
        return self._all_generators

    def prefixes_for(self, category: EntityCategory) -> tuple[str, ...]:
        return self._category_prefixes.get(category.name, ())

    def generators_for(self, category: EntityCategory) -> list[Generator]:
        """
        Return the generators whose name starts with one of the category's prefixes.

        A category without configured prefixes selects no generators.
        """
        prefixes = self.prefixes_for(category)
        if not prefixes:
            return []
        return [g for g in self.all_generators() if g.name.startswith(prefixes)]
