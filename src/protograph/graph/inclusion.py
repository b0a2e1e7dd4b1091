"""Directed multigraph of field-keyed inclusion edges."""

from collections import Counter

import networkx as nx

from protograph.graph.models import Entity, InclusionEdge


class InclusionGraph:
    """Inclusion edges between entity aliases, backed by a networkx MultiDiGraph.

    Nodes are entity aliases. Each (owner, target, field) triple is one
    multigraph edge carrying a `count` attribute, so all targets recorded
    under an (owner, field) key form a counting set.
    """

    def __init__(self):
        self._graph = nx.MultiDiGraph()

    @property
    def nx_graph(self) -> nx.MultiDiGraph:
        return self._graph

    def add_entity(self, entity: Entity) -> None:
        self._graph.add_node(
            entity.alias,
            qualified_name=entity.qualified_name,
            kind=entity.kind.value,
            source=entity.source,
        )

    def has_entity(self, alias: str) -> bool:
        return self._graph.has_node(alias)

    def record(self, owner: str, field: str, target: str) -> None:
        """Add one occurrence of `target` under the (owner, field) key."""
        if not self._graph.has_node(owner):
            raise KeyError(f"Edge owner {owner!r} is not a declared entity")
        if not self._graph.has_node(target):
            raise KeyError(f"Edge target {target!r} is not a declared entity")

        if self._graph.has_edge(owner, target, key=field):
            self._graph.edges[owner, target, field]["count"] += 1
        else:
            self._graph.add_edge(owner, target, key=field, count=1)

    def targets(self, owner: str, field: str) -> Counter:
        targets: Counter = Counter()
        if not self._graph.has_node(owner):
            return targets
        for _, target, key, data in self._graph.out_edges(owner, keys=True, data=True):
            if key == field:
                targets[target] += data["count"]
        return targets

    def edges_from(self, owner: str) -> list[InclusionEdge]:
        """Edges owned by one alias, grouped by field in insertion order."""
        grouped: dict[str, InclusionEdge] = {}
        if not self._graph.has_node(owner):
            return []
        for _, target, key, data in self._graph.out_edges(owner, keys=True, data=True):
            edge = grouped.setdefault(key, InclusionEdge(owner=owner, field=key))
            edge.targets[target] += data["count"]
        return list(grouped.values())

    def edges(self) -> list[InclusionEdge]:
        result = []
        for owner in self._graph.nodes:
            result.extend(self.edges_from(owner))
        return result

    def __len__(self) -> int:
        """Number of distinct (owner, field) keys."""
        return len({(u, k) for u, _, k in self._graph.edges(keys=True)})
