"""TraversalGraph — NetworkX view of a dataset with adapter directedness.

Built per dataset + adapter pair and never mutated afterwards. Every
resolvable relationship becomes one edge of a ``MultiDiGraph`` keyed by
relationship id, oriented source -> target, and tagged ``undirected``
when the notation adapter says direction does not matter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import networkx as nx

from tracectl.domain.types import TraceDirection
from tracectl.notations.base import AnalysisEdge

if TYPE_CHECKING:
    from tracectl.domain.dataset import Dataset
    from tracectl.notations.base import NotationAdapter

type _Graph = nx.MultiDiGraph


class TraversalGraph:
    """Lazy-built traversal graph over one dataset."""

    def __init__(self, dataset: Dataset, adapter: NotationAdapter) -> None:
        self._dataset = dataset
        self._adapter = adapter
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _build(self) -> _Graph:
        g: _Graph = nx.MultiDiGraph()
        for element_id in sorted(self._dataset.elements):
            g.add_node(element_id)

        for rel in self._dataset.resolved_relationships():
            edge = AnalysisEdge(
                relationship_id=rel.id,
                relationship_type=rel.type,
                from_id=rel.source_id,
                to_id=rel.target_id,
                relationship=rel,
            )
            g.add_edge(
                rel.source_id,
                rel.target_id,
                key=rel.id,
                relationship_type=rel.type,
                undirected=not self._adapter.is_edge_directed(edge, self._dataset),
            )
        return g

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.graph

    def candidate_steps(self, node_id: str, direction: TraceDirection) -> list[AnalysisEdge]:
        """Edges eligible for a step away from *node_id*, sorted by relationship id.

        Outgoing steps follow source -> target, incoming steps go target ->
        source. Undirected relationships are eligible in every direction.
        A relationship yields at most one step per node.
        """
        g = self.graph
        if node_id not in g:
            return []

        steps: dict[str, AnalysisEdge] = {}
        for _, target, rel_id, data in g.out_edges(node_id, keys=True, data=True):
            undirected = data["undirected"]
            if direction is TraceDirection.INCOMING and not undirected:
                continue
            steps.setdefault(
                rel_id,
                AnalysisEdge(
                    relationship_id=rel_id,
                    relationship_type=data["relationship_type"],
                    from_id=node_id,
                    to_id=target,
                    relationship=self._dataset.relationship(rel_id),
                    undirected=undirected,
                ),
            )
        for source, _, rel_id, data in g.in_edges(node_id, keys=True, data=True):
            undirected = data["undirected"]
            if direction is TraceDirection.OUTGOING and not undirected:
                continue
            steps.setdefault(
                rel_id,
                AnalysisEdge(
                    relationship_id=rel_id,
                    relationship_type=data["relationship_type"],
                    from_id=node_id,
                    to_id=source,
                    relationship=self._dataset.relationship(rel_id),
                    reversed=True,
                    undirected=undirected,
                ),
            )
        return [steps[k] for k in sorted(steps)]

    def degree(self, node_id: str) -> int:
        """Number of relationships touching *node_id* (0 when unknown)."""
        if node_id not in self.graph:
            return 0
        return int(self.graph.degree(node_id))
