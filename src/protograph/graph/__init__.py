"""Schema symbol resolution and inclusion graph construction."""

from protograph.graph.models import (
    Entity,
    EntityKind,
    InclusionEdge,
    ResolvedField,
    SourceUnit,
    Subgraph,
)
from protograph.graph.registry import DeclarationRegistry
from protograph.graph.resolver import SCALAR, ReferenceResolver, is_scalar_type
from protograph.graph.inclusion import InclusionGraph
from protograph.graph.builder import InclusionGraphBuilder
from protograph.graph.walker import ImportWalker
from protograph.graph.selector import SubgraphSelector

__all__ = [
    # Models
    "Entity",
    "EntityKind",
    "InclusionEdge",
    "ResolvedField",
    "SourceUnit",
    "Subgraph",
    # Registry
    "DeclarationRegistry",
    # Resolver
    "SCALAR",
    "ReferenceResolver",
    "is_scalar_type",
    # Graph
    "InclusionGraph",
    "InclusionGraphBuilder",
    # Traversal
    "ImportWalker",
    "SubgraphSelector",
]
