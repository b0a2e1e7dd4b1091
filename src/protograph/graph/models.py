"""Data models for the schema inclusion graph."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum


class EntityKind(Enum):
    """Kinds of declared (or synthesized) schema entities."""

    MESSAGE = "message"
    ENUM = "enum"
    SERVICE = "service"
    RPC = "rpc"
    MISSING = "missing"


# Only these kinds can be the type of a field or an RPC parameter.
REFERENCEABLE_KINDS = frozenset({EntityKind.MESSAGE, EntityKind.ENUM})


@dataclass
class SourceUnit:
    """One schema file taking part in a run."""

    identifier: str  # path as imported, or blob_<hash> for inline source
    package: str = ""
    syntax: str = ""
    dependencies: list[str] = field(default_factory=list)  # imported identifiers
    missing: bool = False  # the file could not be opened
    weak: bool = False  # first reached through `import weak`
    location: str | None = None  # where the content was actually loaded from


@dataclass
class ResolvedField:
    """A message field together with what its type resolved to."""

    name: str
    type_name: str
    number: int
    label: str = ""  # "repeated", "optional", "required" or "map"
    key_type: str | None = None  # map fields only
    oneof: str | None = None  # name of the enclosing oneof, if any
    target_kind: EntityKind | None = None  # None for scalars and unresolved types
    target_alias: str | None = None


@dataclass(eq=False)
class Entity:
    """A declared message, enum, service, RPC method or missing placeholder.

    Entities compare by identity: one qualified name maps to exactly one
    Entity object for the lifetime of a run.
    """

    qualified_name: str  # e.g. "acme.orders.Order.Line"
    name: str  # e.g. "Line"
    kind: EntityKind
    alias: str  # output-safe identifier, e.g. "T_104"
    source: str  # SourceUnit identifier
    package: str = ""
    parent: str | None = None  # qualified name of the enclosing message or service
    fields: list[ResolvedField] = field(default_factory=list)
    values: list[tuple[str, int]] = field(default_factory=list)  # enum entries
    methods: list["Entity"] = field(default_factory=list)  # services: their RPC entities
    # RPC methods only
    service: str | None = None
    request_type: str | None = None
    response_type: str | None = None
    streams_request: bool = False
    streams_response: bool = False
    # Opaque payload attached by the renderer once the body is resolved
    artifact: str | None = None

    @property
    def is_missing(self) -> bool:
        return self.kind is EntityKind.MISSING

    def __repr__(self) -> str:
        return f"Entity({self.kind.value} {self.qualified_name} as {self.alias})"


@dataclass
class InclusionEdge:
    """All targets recorded for one (owner alias, field name) key."""

    owner: str
    field: str
    targets: Counter = field(default_factory=Counter)

    @property
    def key(self) -> str:
        return f"{self.owner}:{self.field}"


@dataclass
class Subgraph:
    """A set of entities and the inclusion edges owned by them."""

    entities: list[Entity]
    edges: list[InclusionEdge]
    selection: str = ""

    @property
    def aliases(self) -> set[str]:
        return {e.alias for e in self.entities}

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        return {
            "selection": self.selection,
            "entities": [
                {
                    "alias": e.alias,
                    "name": e.name,
                    "qualified_name": e.qualified_name,
                    "kind": e.kind.value,
                    "source": e.source,
                    "parent": e.parent,
                }
                for e in sorted(self.entities, key=lambda e: e.qualified_name)
            ],
            "edges": [
                {
                    "owner": edge.owner,
                    "field": edge.field,
                    "target": target,
                    "count": count,
                }
                for edge in sorted(self.edges, key=lambda e: (e.owner, e.field))
                for target, count in sorted(edge.targets.items())
            ],
        }
