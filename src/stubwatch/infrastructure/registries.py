"""
Entity and generator registries populated by the host application.

Two flavours are provided:
- Static registries for hosts that register definitions in-process
- ManifestRegistry, which reads a YAML/JSON manifest the host writes at
  startup and re-reads it on every reload
"""

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from stubwatch.core.errors import ManifestError
from stubwatch.core.models import Entity, Generator

logger = logging.getLogger(__name__)


class StaticEntityRegistry:
    """
    In-memory entity registry.

    ``unresolvable`` names are offered by ``names()`` but resolve to None,
    mirroring names a host lists before their definition can be loaded.
    """

    def __init__(
        self,
        entities: Iterable[Entity] = (),
        unresolvable: Iterable[str] = (),
    ):
        self._entities: dict[str, Entity] = {}
        self._order: list[str] = []
        for entity in entities:
            self.register(entity)
        for name in unresolvable:
            if name not in self._order:
                self._order.append(name)

    def register(self, entity: Entity) -> None:
        if entity.name not in self._order:
            self._order.append(entity.name)
        self._entities[entity.name] = entity

    def names(self) -> list[str]:
        return list(self._order)

    def resolve(self, name: str) -> Entity | None:
        return self._entities.get(name)


class StaticGeneratorRegistry:
    """In-memory generator registry, kept in registration order."""

    def __init__(self, generators: Iterable[Generator | str] = ()):
        self._generators: list[Generator] = []
        for generator in generators:
            self.register(generator)

    def register(self, generator: Generator | str) -> None:
        if isinstance(generator, str):
            generator = Generator(name=generator)
        if generator not in self._generators:
            self._generators.append(generator)

    def generators(self) -> list[Generator]:
        return list(self._generators)


def _parse_entity(raw: Any) -> tuple[str | None, Entity | None]:
    """
    Parse one manifest entity entry.

    Returns the entry's name (None when it has none) and the resolved entity
    (None when the entry is malformed or marked unresolvable).
    """
    if isinstance(raw, str):
        return raw, Entity(name=raw)
    if not isinstance(raw, Mapping):
        return None, None

    name = raw.get("name")
    if not isinstance(name, str) or not name:
        return None, None
    if raw.get("resolvable", True) is False:
        return name, None

    tags = raw.get("tags", [])
    if isinstance(tags, str):
        tags = [tags]
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        return name, None
    return name, Entity(name=name, tags=frozenset(tags))


class ManifestRegistry:
    """
    Entity and generator registry backed by a host-written manifest file.

    Also serves as the application reloader: ``reload()`` re-reads the
    manifest so the catalogs see the host's current definitions.

    Manifest format (YAML or JSON)::

        entities:
          - name: User
            tags: [persistence_model]
          - name: Broken
            resolvable: false
        generators:
          - Tapioca::Dsl::Compilers::ActiveRecordColumns
    """

    def __init__(self, manifest_path: Path | str):
        self._manifest_path = Path(manifest_path)
        self._names: list[str] = []
        self._entities: dict[str, Entity] = {}
        self._generators: list[Generator] = []
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def manifest_path(self) -> Path:
        return self._manifest_path

    def reload(self) -> None:
        """
        Re-read the manifest.

        Raises:
            ManifestError: If the manifest is missing, cannot be parsed, or
                has an entities/generators section that is not a list
        """
        data = self._read()
        names: list[str] = []
        entities: dict[str, Entity] = {}
        for raw in self._section(data, "entities"):
            name, entity = _parse_entity(raw)
            if name is None:
                logger.debug("Skipping manifest entity entry without a name: %r", raw)
                continue
            if name not in names:
                names.append(name)
            if entity is not None:
                entities[name] = entity
            else:
                entities.pop(name, None)

        generators: list[Generator] = []
        for raw in self._section(data, "generators"):
            gen_name = raw.get("name") if isinstance(raw, Mapping) else raw
            if not isinstance(gen_name, str) or not gen_name:
                logger.debug("Skipping malformed generator entry: %r", raw)
                continue
            generator = Generator(name=gen_name)
            if generator not in generators:
                generators.append(generator)

        with self._lock:
            self._names = names
            self._entities = entities
            self._generators = generators
            self._loaded = True

        logger.info(
            "Loaded host manifest: %d entities, %d generators",
            len(entities),
            len(generators),
            extra={
                "manifest_path": str(self._manifest_path),
                "entity_names": len(names),
                "resolvable_entities": len(entities),
                "generators": len(generators),
            },
        )

    def _read(self) -> dict[str, Any]:
        path = self._manifest_path
        if not path.exists():
            raise ManifestError(f"Host manifest not found: {path}")

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"Cannot read host manifest {path}: {e}") from e

        try:
            if path.suffix == ".json":
                data = json.loads(content) if content.strip() else {}
            else:
                data = yaml.safe_load(content) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ManifestError(f"Invalid host manifest {path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"Host manifest {path} must be a mapping")
        return data

    def _section(self, data: dict[str, Any], key: str) -> list[Any]:
        value = data.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise ManifestError(
                f"Host manifest {self._manifest_path}: '{key}' must be a list, "
                f"got {type(value).__name__}"
            )
        return value

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.reload()

    def names(self) -> list[str]:
        self._ensure_loaded()
        with self._lock:
            return list(self._names)

    def resolve(self, name: str) -> Entity | None:
        self._ensure_loaded()
        with self._lock:
            return self._entities.get(name)

    def generators(self) -> list[Generator]:
        self._ensure_loaded()
        with self._lock:
            return list(self._generators)
