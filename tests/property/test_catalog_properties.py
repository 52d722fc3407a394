"""
Property-based tests for EntityCatalog and GeneratorCatalog.

**Feature: change-classification, Property: Resolution Resilience**
Unresolvable names are omitted from enumeration without raising.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from stubwatch.core.entity_catalog import EntityCatalog
from stubwatch.core.generator_catalog import DEFAULT_CATEGORY_PREFIXES, GeneratorCatalog
from stubwatch.core.models import PERSISTENCE_MODEL, Entity, EntityCategory, Generator
from stubwatch.infrastructure.registries import StaticEntityRegistry, StaticGeneratorRegistry
from tests.strategies import ACTIVE_RECORD_GENERATORS, ALL_GENERATORS, entity_name

PERSISTENCE = EntityCategory(PERSISTENCE_MODEL)


class CountingRegistry(StaticEntityRegistry):
    """Static registry that counts lookups."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.names_calls = 0
        self.resolve_calls = 0

    def names(self) -> list[str]:
        self.names_calls += 1
        return super().names()

    def resolve(self, name: str) -> Entity | None:
        self.resolve_calls += 1
        return super().resolve(name)


@st.composite
def registry_contents(draw):
    """Draw disjoint resolvable models, plain entities and unresolvable names."""
    names = draw(st.lists(entity_name, max_size=12, unique=True))
    kinds = [draw(st.sampled_from(["model", "plain", "broken"])) for _ in names]
    models = [n for n, k in zip(names, kinds) if k == "model"]
    plain = [n for n, k in zip(names, kinds) if k == "plain"]
    broken = [n for n, k in zip(names, kinds) if k == "broken"]
    return models, plain, broken


@given(contents=registry_contents())
@settings(max_examples=100)
def test_unresolvable_names_are_omitted(contents):
    """Enumeration skips names that do not resolve and never raises."""
    models, plain, broken = contents
    entities = [Entity(n, frozenset({PERSISTENCE_MODEL})) for n in models]
    entities += [Entity(n) for n in plain]
    registry = StaticEntityRegistry(entities, unresolvable=broken)

    catalog = EntityCatalog(registry)

    all_names = [e.name for e in catalog.all_entities()]
    assert set(all_names) == set(models) | set(plain)
    assert not set(all_names) & set(broken)
    assert [e.name for e in catalog.entities_of(PERSISTENCE)] == models


def test_all_entities_keeps_registry_order():
    registry = StaticEntityRegistry(
        [Entity("B"), Entity("A", frozenset({PERSISTENCE_MODEL})), Entity("C")],
        unresolvable=["Z"],
    )

    assert [e.name for e in EntityCatalog(registry).all_entities()] == ["B", "A", "C"]


def test_entity_catalog_memoizes_for_its_lifetime():
    """Names are enumerated and resolved once per catalog."""
    registry = CountingRegistry(
        [Entity("User", frozenset({PERSISTENCE_MODEL})), Entity("Helper")],
        unresolvable=["Ghost"],
    )
    catalog = EntityCatalog(registry)

    catalog.all_entities()
    catalog.entities_of(PERSISTENCE)
    catalog.entities_of(PERSISTENCE)
    catalog.all_entities()

    assert registry.names_calls == 1
    assert registry.resolve_calls == 3

    # A new catalog sees the registry afresh
    EntityCatalog(registry).all_entities()
    assert registry.names_calls == 2


def test_category_matches_by_tag_membership():
    entity = Entity("User", tags=["persistence_model", "auditable"])

    assert isinstance(entity.tags, frozenset)
    assert EntityCategory("auditable").matches(entity)
    assert not EntityCategory("mailer").matches(entity)


def test_generators_for_uses_default_prefixes():
    catalog = GeneratorCatalog(StaticGeneratorRegistry(ALL_GENERATORS))

    selected = [g.name for g in catalog.generators_for(PERSISTENCE)]

    assert selected == [g for g in ALL_GENERATORS if g in ACTIVE_RECORD_GENERATORS]
    assert catalog.prefixes_for(PERSISTENCE) == tuple(DEFAULT_CATEGORY_PREFIXES[PERSISTENCE_MODEL])


def test_all_generators_keeps_registration_order_and_dedupes():
    registry = StaticGeneratorRegistry(["B", Generator("A"), "B", "C"])

    assert [g.name for g in GeneratorCatalog(registry).all_generators()] == ["B", "A", "C"]


def test_category_without_prefixes_selects_nothing():
    catalog = GeneratorCatalog(
        StaticGeneratorRegistry(ALL_GENERATORS),
        category_prefixes={"mailer": ["Tapioca::Dsl::Compilers::ActionMailer"]},
    )

    assert catalog.generators_for(PERSISTENCE) == []
    assert [g.name for g in catalog.generators_for(EntityCategory("mailer"))] == [
        "Tapioca::Dsl::Compilers::ActionMailer"
    ]


@given(
    prefixes=st.lists(st.sampled_from(["Tapioca::", "Tapioca::Dsl::Compilers::Active", "X"]), max_size=3),
)
@settings(max_examples=50)
def test_generators_for_is_a_prefix_filter_of_all_generators(prefixes: list[str]):
    catalog = GeneratorCatalog(
        StaticGeneratorRegistry(ALL_GENERATORS),
        category_prefixes={PERSISTENCE_MODEL: prefixes},
    )

    selected = [g.name for g in catalog.generators_for(PERSISTENCE)]

    assert selected == [g for g in ALL_GENERATORS if any(g.startswith(p) for p in prefixes)]
