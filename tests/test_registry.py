"""Declaration registry tests."""

import pytest

from protograph.errors import DuplicateDeclaration
from protograph.graph.models import Entity, EntityKind


def _entity(registry, qualified_name: str, kind: EntityKind = EntityKind.MESSAGE) -> Entity:
    name = qualified_name.rsplit(".", 1)[-1]
    return Entity(
        qualified_name=qualified_name,
        name=name,
        kind=kind,
        alias=registry.get_or_create_alias(name, qualified_name),
        source="test.proto",
    )


def test_alias_is_stable_per_pair():
    """Re-requesting the alias of a pair returns the same value."""
    from protograph.graph.registry import DeclarationRegistry

    registry = DeclarationRegistry()
    first = registry.get_or_create_alias("Foo", "a.Foo")
    assert registry.get_or_create_alias("Foo", "a.Foo") == first


def test_distinct_pairs_never_share_an_alias():
    """Every distinct (short name, qualified name) pair gets its own alias."""
    from protograph.graph.registry import DeclarationRegistry

    registry = DeclarationRegistry()
    pairs = [("Foo", "a.Foo"), ("Foo", "b.Foo"), ("Bar", "a.Foo"), ("Bar", "a.Bar")]
    aliases = [registry.get_or_create_alias(*pair) for pair in pairs]

    assert len(set(aliases)) == len(pairs)
    # Requesting again in another order changes nothing.
    assert [registry.get_or_create_alias(*pair) for pair in reversed(pairs)] == list(reversed(aliases))


def test_aliases_are_output_safe():
    """Aliases are plain identifiers whatever the qualified name contains."""
    from protograph.graph.registry import DeclarationRegistry

    registry = DeclarationRegistry()
    alias = registry.get_or_create_alias("Weird", "some-pkg.v1.Weird")

    assert alias.startswith("T_")
    assert alias.replace("_", "").isalnum()


def test_declare_and_lookup():
    """Declared entities are found by qualified name and alias."""
    from protograph.graph.registry import DeclarationRegistry

    registry = DeclarationRegistry()
    entity = registry.declare(_entity(registry, "acme.Order"))

    assert registry.lookup("acme.Order") is entity
    assert registry.lookup_alias(entity.alias) is entity
    assert registry.lookup("acme.Missing") is None
    assert "acme.Order" in registry
    assert len(registry) == 1


def test_duplicate_declaration_is_rejected():
    """A second entity with the same qualified name raises and is not stored."""
    from protograph.graph.registry import DeclarationRegistry

    registry = DeclarationRegistry()
    first = registry.declare(_entity(registry, "acme.Order"))

    with pytest.raises(DuplicateDeclaration) as exc_info:
        registry.declare(_entity(registry, "acme.Order", EntityKind.ENUM))

    assert exc_info.value.qualified_name == "acme.Order"
    assert registry.lookup("acme.Order") is first
    assert registry.candidates_for_short_name("Order") == ["acme.Order"]


def test_candidates_for_short_name():
    """Short name index lists every qualified name sharing the name."""
    from protograph.graph.registry import DeclarationRegistry

    registry = DeclarationRegistry()
    registry.declare(_entity(registry, "a.Status", EntityKind.ENUM))
    registry.declare(_entity(registry, "b.Status", EntityKind.ENUM))
    registry.declare(_entity(registry, "b.Order"))

    assert registry.candidates_for_short_name("Status") == ["a.Status", "b.Status"]
    assert registry.candidates_for_short_name("Order") == ["b.Order"]
    assert registry.candidates_for_short_name("Nope") == []


def test_missing_placeholder_is_reused_per_owner():
    """One placeholder per (owner, missing name), never a resolution candidate."""
    from protograph.graph.registry import DeclarationRegistry

    registry = DeclarationRegistry()
    owner = registry.declare(_entity(registry, "a.Foo"))
    other = registry.declare(_entity(registry, "a.Bar"))

    first = registry.missing_placeholder(owner, "Ghost")
    again = registry.missing_placeholder(owner, "Ghost")
    elsewhere = registry.missing_placeholder(other, "Ghost")

    assert first is again
    assert elsewhere is not first
    assert first.kind is EntityKind.MISSING
    assert first.qualified_name == f"missing.{owner.alias}.Ghost"
    assert registry.candidates_for_short_name("Ghost") == []
    assert registry.entities(EntityKind.MISSING) == [first, elsewhere]
