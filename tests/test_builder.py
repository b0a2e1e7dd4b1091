"""Inclusion graph builder tests."""

import pytest

from protograph.errors import GraphBuildError
from protograph.graph import (
    DeclarationRegistry,
    EntityKind,
    InclusionGraph,
    InclusionGraphBuilder,
    ReferenceResolver,
    SourceUnit,
)
from protograph.parsing import ProtoParser


def build(*sources: tuple[str, str], show_missing_types: bool = True, renderer=None):
    """Declare every (name, text) source, then build edges once."""
    registry = DeclarationRegistry()
    resolver = ReferenceResolver(registry, show_missing_types=show_missing_types)
    graph = InclusionGraph()
    builder = InclusionGraphBuilder(registry, resolver, graph, renderer)
    parser = ProtoParser()
    for name, text in sources:
        result = parser.parse(name, text)
        assert result.ok, result.error
        unit = SourceUnit(identifier=name, package=result.file.package)
        builder.declare_file(unit, result.file)
    builder.build_edges()
    return builder


def targets(builder, owner: str, field: str) -> dict[str, int]:
    """Qualified target names recorded under (owner, field)."""
    entity = builder.registry.lookup(owner)
    counts = builder.graph.targets(entity.alias, field)
    return {builder.registry.lookup_alias(alias).qualified_name: n for alias, n in counts.items()}


def test_declares_nested_entities_with_parents():
    """Nested messages and enums are qualified by their parent."""
    builder = build((
        "shop.proto",
        """
        package shop;
        message Cart {
          message Item { int32 qty = 1; }
          enum State { OPEN = 0; }
        }
        enum Currency { EUR = 0; USD = 1; }
        """,
    ))
    registry = builder.registry

    item = registry.lookup("shop.Cart.Item")
    assert item.kind is EntityKind.MESSAGE
    assert item.parent == "shop.Cart"
    assert registry.lookup("shop.Cart.State").parent == "shop.Cart"
    assert registry.lookup("shop.Currency").values == [("EUR", 0), ("USD", 1)]
    assert registry.lookup("shop.Cart").parent is None


def test_cross_package_reference_creates_one_edge():
    """a.Foo.x referencing b.Bar yields exactly one Foo:x -> Bar edge."""
    builder = build(
        ("a.proto", 'package a; import "b.proto"; message Foo { b.Bar x = 1; }'),
        ("b.proto", "package b; message Bar {}"),
    )

    assert targets(builder, "a.Foo", "x") == {"b.Bar": 1}
    assert len(builder.graph) == 1


def test_forward_references_resolve_after_all_declarations():
    """Types declared in a later file are still found."""
    builder = build(
        ("first.proto", "package p; message A { B b = 1; }"),
        ("second.proto", "package p; message B { A a = 1; }"),
    )

    assert targets(builder, "p.A", "b") == {"p.B": 1}
    assert targets(builder, "p.B", "a") == {"p.A": 1}


def test_scalars_produce_no_edges():
    """Fields of built-in types are kept in the body but not in the graph."""
    builder = build(("s.proto", "message S { string name = 1; repeated int64 ids = 2; }"))

    entity = builder.registry.lookup("S")
    assert [f.name for f in entity.fields] == ["name", "ids"]
    assert all(f.target_alias is None for f in entity.fields)
    assert len(builder.graph) == 0


def test_oneof_and_map_fields():
    """Oneof members are flattened; map fields link only their value type."""
    builder = build((
        "pay.proto",
        """
        package pay;
        message Card {}
        message Voucher {}
        message Wallet {
          oneof method {
            Card card = 1;
            Voucher voucher = 2;
          }
          map<string, Card> cards = 3;
        }
        """,
    ))

    assert targets(builder, "pay.Wallet", "card") == {"pay.Card": 1}
    assert targets(builder, "pay.Wallet", "voucher") == {"pay.Voucher": 1}
    assert targets(builder, "pay.Wallet", "cards") == {"pay.Card": 1}

    wallet = builder.registry.lookup("pay.Wallet")
    by_name = {f.name: f for f in wallet.fields}
    assert by_name["card"].oneof == "method"
    assert by_name["cards"].label == "map"
    assert by_name["cards"].key_type == "string"
    assert by_name["cards"].target_kind is EntityKind.MESSAGE


def test_rpc_edges_use_synthetic_field_names():
    """Service edges are keyed `<method>_request` / `<method>_response`."""
    builder = build((
        "svc.proto",
        """
        package svc;
        message Get { string id = 1; }
        message Item {}
        service Store {
          rpc Get(Get) returns (Item);
          rpc Stream(stream Get) returns (stream Item);
        }
        """,
    ))

    assert targets(builder, "svc.Store", "Get_request") == {"svc.Get": 1}
    assert targets(builder, "svc.Store", "Get_response") == {"svc.Item": 1}
    assert targets(builder, "svc.Store", "Stream_response") == {"svc.Item": 1}

    service = builder.registry.lookup("svc.Store")
    rpc = builder.registry.lookup("svc.Store.Stream")
    assert rpc.kind is EntityKind.RPC
    assert rpc.service == "svc.Store"
    assert (rpc.request_type, rpc.response_type) == ("Get", "Item")
    assert rpc.streams_request and rpc.streams_response
    assert [m.name for m in service.methods] == ["Get", "Stream"]


def test_missing_type_placeholder_is_shared_per_owner():
    """Repeated references to one undeclared name reuse a single placeholder."""
    builder = build((
        "m.proto",
        """
        package m;
        message Foo { Ghost a = 1; Ghost b = 2; }
        message Bar { Ghost c = 1; }
        """,
    ))

    missing = builder.registry.entities(EntityKind.MISSING)
    assert len(missing) == 2
    foo_targets = targets(builder, "m.Foo", "a")
    assert foo_targets == targets(builder, "m.Foo", "b")
    (placeholder,) = foo_targets
    assert placeholder.startswith("missing.")


def test_unresolved_references_fail_after_the_whole_pass():
    """With placeholders off, every failure is collected before raising."""
    with pytest.raises(GraphBuildError) as exc_info:
        build(
            ("m.proto", "message Foo { Ghost a = 1; Phantom b = 2; string ok = 3; }"),
            show_missing_types=False,
        )

    references = [e.reference for e in exc_info.value.unresolved]
    assert references == ["Ghost", "Phantom"]


def test_duplicate_declaration_keeps_the_first():
    """A duplicate is logged and skipped, not fatal."""
    builder = build(
        ("one.proto", "package p; message Dup { int32 a = 1; }"),
        ("two.proto", "package p; message Dup { int32 b = 1; }"),
    )

    dup = builder.registry.lookup("p.Dup")
    assert dup.source == "one.proto"
    assert [f.name for f in dup.fields] == ["a"]
    assert [d.qualified_name for d in builder.duplicates] == ["p.Dup"]


def test_unsupported_constructs_are_skipped():
    """Groups and extend blocks are recorded but never reach the graph."""
    builder = build((
        "legacy.proto",
        """
        syntax = "proto2";
        package legacy;
        message Old {
          optional group Result = 1 { optional string url = 2; }
          extensions 10 to 20;
        }
        extend Old { optional int32 extra = 10; }
        """,
    ))

    constructs = sorted(s.construct for s in builder.skipped)
    assert constructs == ["extend Old", "group Result"]
    assert len(builder.graph) == 0


def test_renderer_artifacts_are_attached():
    """Every entity gets the renderer's output once edges are built."""

    class NameRenderer:
        def render_entity(self, entity):
            return f"<{entity.qualified_name}>"

    builder = build(("r.proto", "package r; message A {} enum E { X = 0; }"), renderer=NameRenderer())

    assert builder.registry.lookup("r.A").artifact == "<r.A>"
    assert builder.registry.lookup("r.E").artifact == "<r.E>"
