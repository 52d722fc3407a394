"""
Domain models for change classification.

Entities and generators are registered by the host application; a
GenerationPlan is the classifier's answer for a single change batch.
"""

from dataclasses import dataclass, field
from typing import Any

from stubwatch.core.errors import PlanInvariantError

PERSISTENCE_MODEL = "persistence_model"


@dataclass(frozen=True)
class Entity:
    """
    A named definition in the host application (e.g. a class).

    Attributes:
        name: Fully-qualified name; the entity's identity
        tags: Category names attached by the host at registration time
    """

    name: str
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags))


@dataclass(frozen=True)
class EntityCategory:
    """A capability tag that entities may carry, e.g. ``persistence_model``."""

    name: str

    def matches(self, entity: Entity) -> bool:
        return self.name in entity.tags


@dataclass(frozen=True)
class Generator:
    """A generation backend, identified by name."""

    name: str


@dataclass
class GenerationPlan:
    """
    Result of classifying one change batch.

    A plan is scoped either by entity or by path, never both.

    Attributes:
        requested_entities: Entity names to regenerate
        requested_paths: Source paths to regenerate
        selected_generators: Generator names allowed to run
    """

    requested_entities: list[str] = field(default_factory=list)
    requested_paths: list[str] = field(default_factory=list)
    selected_generators: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.requested_entities and self.requested_paths:
            raise PlanInvariantError(
                "A generation plan cannot be scoped by both entities and paths"
            )

    @property
    def scope(self) -> str:
        """Return ``"entities"``, ``"paths"`` or ``"empty"``."""
        if self.requested_entities:
            return "entities"
        if self.requested_paths:
            return "paths"
        return "empty"

    def is_actionable(self) -> bool:
        """True when there is both a scope and at least one generator."""
        return self.scope != "empty" and bool(self.selected_generators)

    def summary_lines(self) -> list[str]:
        """Human-readable description of what the plan will regenerate."""
        lines = []
        if self.requested_entities:
            lines.append(
                "Detected the following entities to be changed: "
                + ", ".join(self.requested_entities)
            )
        if self.requested_paths:
            lines.append(
                "Detected the following paths to be changed: "
                + ", ".join(self.requested_paths)
            )
        if self.selected_generators:
            lines.append(
                "Using the following generators: " + ", ".join(self.selected_generators)
            )
        return lines

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope,
            "requested_entities": list(self.requested_entities),
            "requested_paths": list(self.requested_paths),
            "selected_generators": list(self.selected_generators),
        }
