"""Build the inclusion graph from parsed schema files.

Building happens in two passes. `declare_file` registers every message,
enum, service and RPC method of one file as soon as it is parsed. Once the
whole import closure is declared, `build_edges` resolves every field and RPC
type across all files at once, since a file may reference types from files
discovered after it.
"""

import logging
from typing import Protocol

from protograph.constants import RPC_REQUEST_SUFFIX, RPC_RESPONSE_SUFFIX, SEPARATOR
from protograph.errors import DuplicateDeclaration, GraphBuildError, UnresolvedReference, UnsupportedConstruct
from protograph.graph.inclusion import InclusionGraph
from protograph.graph.models import Entity, EntityKind, ResolvedField, SourceUnit
from protograph.graph.registry import DeclarationRegistry
from protograph.graph.resolver import SCALAR, ReferenceResolver
from protograph.parsing.models import (
    Comment,
    ExtendBlock,
    Group,
    MapField,
    NormalField,
    Oneof,
    OneofField,
    Option,
    ProtoEnum,
    ProtoFile,
    ProtoMessage,
    ProtoService,
    ReservedRange,
    Rpc,
)

logger = logging.getLogger(__name__)


class EntityRenderer(Protocol):
    """Anything that turns a resolved entity into an output fragment."""

    def render_entity(self, entity: Entity) -> str: ...


def qualify(namespace: str, name: str) -> str:
    return f"{namespace}{SEPARATOR}{name}" if namespace else name


class InclusionGraphBuilder:
    """Declare entities and record field-keyed inclusion edges between them."""

    def __init__(
        self,
        registry: DeclarationRegistry,
        resolver: ReferenceResolver,
        graph: InclusionGraph,
        renderer: EntityRenderer | None = None,
    ):
        self._registry = registry
        self._resolver = resolver
        self._graph = graph
        self._renderer = renderer
        # Declarations whose bodies still need resolving
        self._pending: list[tuple[Entity, ProtoMessage | ProtoService]] = []
        self.duplicates: list[DuplicateDeclaration] = []
        self.unresolved: list[UnresolvedReference] = []
        self.skipped: list[UnsupportedConstruct] = []

    @property
    def registry(self) -> DeclarationRegistry:
        return self._registry

    @property
    def graph(self) -> InclusionGraph:
        return self._graph

    # ------------------------------------------------------------------
    # Pass 1: declarations
    # ------------------------------------------------------------------

    def declare_file(self, unit: SourceUnit, proto: ProtoFile) -> list[Entity]:
        """Register every top-level and nested declaration of one file.

        Returns:
            The entities declared from this file, in source order.
        """
        declared: list[Entity] = []
        package = proto.package
        for element in proto.elements:
            if isinstance(element, ProtoMessage):
                self._declare_message(unit, package, package, None, element, declared)
            elif isinstance(element, ProtoEnum):
                self._declare_enum(unit, package, package, None, element, declared)
            elif isinstance(element, ProtoService):
                self._declare_service(unit, package, element, declared)
            elif isinstance(element, ExtendBlock):
                self._unsupported(package or unit.identifier, f"extend {element.extendee}")
            elif isinstance(element, (Option, Comment)):
                continue
            else:
                self._unsupported(package or unit.identifier, type(element).__name__)

        logger.debug(f"Declared {len(declared)} entities from {unit.identifier}")
        return declared

    def _new_entity(self, unit: SourceUnit, package: str, name: str, qualified_name: str,
                    kind: EntityKind, parent: str | None, **attributes) -> Entity | None:
        entity = Entity(
            qualified_name=qualified_name,
            name=name,
            kind=kind,
            alias=self._registry.get_or_create_alias(name, qualified_name),
            source=unit.identifier,
            package=package,
            parent=parent,
            **attributes,
        )
        try:
            self._registry.declare(entity)
        except DuplicateDeclaration as e:
            existing = self._registry.lookup(qualified_name)
            logger.warning(f"{e} in {unit.identifier}, keeping the one from {existing.source}")
            self.duplicates.append(e)
            return None

        self._graph.add_entity(entity)
        return entity

    def _declare_message(self, unit: SourceUnit, package: str, namespace: str,
                         parent: str | None, message: ProtoMessage, declared: list[Entity]) -> None:
        qualified_name = qualify(namespace, message.name)
        entity = self._new_entity(unit, package, message.name, qualified_name, EntityKind.MESSAGE, parent)
        if entity is None:
            return
        declared.append(entity)
        self._pending.append((entity, message))

        for element in message.elements:
            if isinstance(element, ProtoMessage):
                self._declare_message(unit, package, qualified_name, qualified_name, element, declared)
            elif isinstance(element, ProtoEnum):
                self._declare_enum(unit, package, qualified_name, qualified_name, element, declared)

    def _declare_enum(self, unit: SourceUnit, package: str, namespace: str,
                      parent: str | None, enum: ProtoEnum, declared: list[Entity]) -> None:
        entity = self._new_entity(
            unit,
            package,
            enum.name,
            qualify(namespace, enum.name),
            EntityKind.ENUM,
            parent,
            values=[(value.name, value.number) for value in enum.values],
        )
        if entity is not None:
            declared.append(entity)

    def _declare_service(self, unit: SourceUnit, package: str, service: ProtoService,
                         declared: list[Entity]) -> None:
        qualified_name = qualify(package, service.name)
        entity = self._new_entity(unit, package, service.name, qualified_name, EntityKind.SERVICE, None)
        if entity is None:
            return
        declared.append(entity)
        self._pending.append((entity, service))

        for rpc in service.methods:
            method = self._new_entity(
                unit,
                package,
                rpc.name,
                qualify(qualified_name, rpc.name),
                EntityKind.RPC,
                qualified_name,
                service=qualified_name,
                request_type=rpc.request_type,
                response_type=rpc.response_type,
                streams_request=rpc.streams_request,
                streams_response=rpc.streams_response,
            )
            if method is not None:
                entity.methods.append(method)
                declared.append(method)

    # ------------------------------------------------------------------
    # Pass 2: resolution and edges
    # ------------------------------------------------------------------

    def build_edges(self) -> None:
        """Resolve the bodies of every declared message and service.

        Each failing reference is recorded and its siblings are still
        processed; the failures are reported together afterwards.

        Raises:
            GraphBuildError: If any reference stayed unresolved.
        """
        pending, self._pending = self._pending, []
        for entity, declaration in pending:
            if isinstance(declaration, ProtoMessage):
                self._link_message(entity, declaration)
            else:
                self._link_service(entity, declaration)

        logger.info(
            f"Built {len(self._graph)} inclusion edges between {len(self._registry)} entities"
        )
        if self.unresolved:
            raise GraphBuildError(self.unresolved)

        if self._renderer is not None:
            for entity in self._registry.entities():
                entity.artifact = self._renderer.render_entity(entity)

    def _link_message(self, entity: Entity, message: ProtoMessage) -> None:
        for element in message.elements:
            if isinstance(element, NormalField):
                entity.fields.append(
                    self._field(entity, element.name, element.type_name, element.number, element.label or "")
                )
            elif isinstance(element, MapField):
                # Map keys are always scalar; only the value type can be an entity.
                entity.fields.append(
                    self._field(entity, element.name, element.type_name, element.number, "map",
                                key_type=element.key_type)
                )
            elif isinstance(element, Oneof):
                for inner in element.elements:
                    if isinstance(inner, OneofField):
                        entity.fields.append(
                            self._field(entity, inner.name, inner.type_name, inner.number, "",
                                        oneof=element.name)
                        )
                    elif isinstance(inner, Group):
                        self._unsupported(entity.qualified_name, f"group {inner.name}")
            elif isinstance(element, Group):
                self._unsupported(entity.qualified_name, f"group {element.name}")
            elif isinstance(element, ExtendBlock):
                self._unsupported(entity.qualified_name, f"extend {element.extendee}")
            elif isinstance(element, (ProtoMessage, ProtoEnum, ReservedRange, Option, Comment)):
                # Nested declarations are entities of their own.
                continue
            else:
                self._unsupported(entity.qualified_name, type(element).__name__)

    def _link_service(self, entity: Entity, service: ProtoService) -> None:
        for element in service.elements:
            if isinstance(element, Rpc):
                self._link(entity, element.name + RPC_REQUEST_SUFFIX, element.request_type)
                self._link(entity, element.name + RPC_RESPONSE_SUFFIX, element.response_type)
            elif isinstance(element, (Option, Comment)):
                continue
            else:
                self._unsupported(entity.qualified_name, type(element).__name__)

    def _field(self, owner: Entity, name: str, type_name: str, number: int, label: str,
               **attributes) -> ResolvedField:
        resolved = ResolvedField(name=name, type_name=type_name, number=number, label=label, **attributes)
        target = self._link(owner, name, type_name)
        if target is not None:
            resolved.target_kind = target.kind
            resolved.target_alias = target.alias
        return resolved

    def _link(self, owner: Entity, field: str, type_name: str) -> Entity | None:
        """Resolve `type_name` in the owner's scope and record the edge."""
        try:
            target = self._resolver.resolve(owner.qualified_name, type_name)
        except UnresolvedReference as e:
            logger.warning(str(e))
            self.unresolved.append(e)
            return None

        if target is SCALAR:
            return None

        if not self._graph.has_entity(target.alias):
            self._graph.add_entity(target)
        if target.is_missing:
            logger.warning(
                f"Field [{field}] of [{owner.qualified_name}] refers to undeclared type [{type_name}]"
            )
        self._graph.record(owner.alias, field, target.alias)
        return target

    def _unsupported(self, scope: str, construct: str) -> None:
        skipped = UnsupportedConstruct(scope, construct)
        logger.warning(str(skipped))
        self.skipped.append(skipped)
