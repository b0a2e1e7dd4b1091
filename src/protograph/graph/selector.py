"""Extract the part of the inclusion graph reachable from selected entities."""

import logging
from collections import Counter, deque

from protograph.constants import (
    RPC_REQUEST_SUFFIX,
    RPC_RESPONSE_SUFFIX,
    SELECT_ROOT_FILE,
    SELECTION_SEPARATOR,
    SEPARATOR,
)
from protograph.errors import AmbiguousSelection, UnresolvedReference
from protograph.graph.inclusion import InclusionGraph
from protograph.graph.models import Entity, EntityKind, InclusionEdge, Subgraph
from protograph.graph.registry import DeclarationRegistry
from protograph.graph.resolver import SCALAR, ReferenceResolver

logger = logging.getLogger(__name__)


class SubgraphSelector:
    """Match selection fragments to entities and collect what they include."""

    def __init__(
        self,
        registry: DeclarationRegistry,
        resolver: ReferenceResolver,
        graph: InclusionGraph,
        root: str | None = None,
    ):
        self._registry = registry
        self._resolver = resolver
        self._graph = graph
        self._root = root

    def match(self, fragment: str) -> Entity:
        """Find the single entity a fragment names.

        Whole trailing name components are matched first; plain substrings
        are only tried when no qualified name ends with the fragment.

        Raises:
            AmbiguousSelection: If zero or several entities match.
        """
        names = [e.qualified_name for e in self._registry.entities() if not e.is_missing]
        matches = [n for n in names if n == fragment or n.endswith(SEPARATOR + fragment)]
        if not matches:
            matches = [n for n in names if fragment in n]
        if len(matches) != 1:
            raise AmbiguousSelection(fragment, sorted(matches))
        return self._registry.lookup(matches[0])

    def seeds(self, selection: str) -> list[Entity]:
        """Turn a selection string into seed entities.

        `*` selects everything declared in the root file; otherwise the
        selection is a `;`-separated list of fragments.
        """
        if selection.strip() == SELECT_ROOT_FILE:
            return [
                e
                for e in self._registry.entities()
                if e.source == self._root and not e.is_missing
            ]
        fragments = [f.strip() for f in selection.split(SELECTION_SEPARATOR) if f.strip()]
        if not fragments:
            raise AmbiguousSelection(selection, [])
        return [self.match(fragment) for fragment in fragments]

    def select(self, selection: str) -> Subgraph:
        """Compute the reachable subgraph for a selection.

        Raises:
            AmbiguousSelection: If any fragment does not name exactly one entity.
        """
        seeds = self.seeds(selection)
        queue: deque[Entity] = deque()
        edges: dict[tuple[str, str], InclusionEdge] = {}
        # Included but never expanded (the owning service of an RPC seed)
        attached: dict[str, Entity] = {}

        for seed in seeds:
            if seed.kind is EntityKind.RPC:
                self._expand_rpc(seed, queue, edges, attached)
            queue.append(seed)

        visited: dict[str, Entity] = {}
        while queue:
            entity = queue.popleft()
            if entity.qualified_name in visited:
                continue
            visited[entity.qualified_name] = entity

            for edge in self._graph.edges_from(entity.alias):
                kept: Counter = Counter()
                for alias, count in edge.targets.items():
                    target = self._registry.lookup_alias(alias)
                    if target is None:
                        logger.warning(f"Skipping edge {edge.key} to unknown alias {alias}")
                        continue
                    kept[alias] = count
                    if target.qualified_name not in visited:
                        queue.append(target)
                if kept:
                    merged = edges.setdefault(
                        (edge.owner, edge.field), InclusionEdge(owner=edge.owner, field=edge.field)
                    )
                    for alias, count in kept.items():
                        merged.targets[alias] = max(merged.targets[alias], count)

        for qualified_name, entity in attached.items():
            visited.setdefault(qualified_name, entity)

        logger.info(f"Selection [{selection}] covers {len(visited)} entities and {len(edges)} edges")
        return Subgraph(entities=list(visited.values()), edges=list(edges.values()), selection=selection)

    def _expand_rpc(
        self,
        rpc: Entity,
        queue: deque[Entity],
        edges: dict[tuple[str, str], InclusionEdge],
        attached: dict[str, Entity],
    ) -> None:
        """Attach the owning service with direct request/response edges."""
        service = self._registry.lookup(rpc.service) if rpc.service else None
        if service is None:
            logger.warning(f"RPC {rpc.qualified_name} has no owning service")
            return
        attached[service.qualified_name] = service

        for suffix, type_name in (
            (RPC_REQUEST_SUFFIX, rpc.request_type),
            (RPC_RESPONSE_SUFFIX, rpc.response_type),
        ):
            if not type_name:
                continue
            try:
                target = self._resolver.resolve(service.qualified_name, type_name)
            except UnresolvedReference as e:
                logger.warning(f"{e}, no edge drawn for {rpc.qualified_name}")
                continue
            if target is SCALAR:
                continue
            field = rpc.name + suffix
            edge = edges.setdefault((service.alias, field), InclusionEdge(owner=service.alias, field=field))
            edge.targets[target.alias] = max(edge.targets[target.alias], 1)
            queue.append(target)
