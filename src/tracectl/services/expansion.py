"""Bounded breadth expansion from a single node.

:func:`expand_from_node` is pure: it reads the dataset through a
:class:`~tracectl.infrastructure.graph.engine.TraversalGraph` and returns
a :class:`~tracectl.domain.trace.TraceExpansionPatch` without touching
any explorer state.

Semantics:

- Relationship type filters restrict which edges are walked.
- Layer and element type filters apply to neighbours for both inclusion
  and traversal. A neighbour without the facet never matches.
- Nodes matching ``stop_at_type`` / ``stop_at_layer`` are included but
  traversal does not continue past them. The start node itself is always
  expanded.
- Trace edges keep the relationship's own orientation, so discovering a
  relationship from either end yields the same edge id.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from tracectl.domain.trace import (
    ExpandRequest,
    TraceEdge,
    TraceExpansionPatch,
    TraceFrontier,
    TraceNode,
    edge_id,
)
from tracectl.infrastructure.graph.engine import TraversalGraph
from tracectl.notations.base import LAYER_FACET, TYPE_FACET, facet_matches
from tracectl.services._helpers import normalize_filter

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tracectl.domain.dataset import Dataset, Element
    from tracectl.notations.base import FacetValue, NotationAdapter

logger = logging.getLogger(__name__)


def effective_depth(request: ExpandRequest) -> int:
    """Hop limit of *request*: ``depth`` clamped by ``stop_at_depth``, never negative.

    Examples:
        >>> effective_depth(ExpandRequest(node_id="A", depth=3))
        3
        >>> from tracectl.domain.trace import StopConditions
        >>> effective_depth(ExpandRequest(
        ...     node_id="A", depth=3, stop_conditions=StopConditions(stop_at_depth=1)))
        1
    """
    depth = max(0, request.depth)
    stop = request.stop_conditions
    if stop is not None and stop.stop_at_depth is not None:
        depth = min(depth, max(0, stop.stop_at_depth))
    return depth


class _NodeFilter:
    """Facet predicates compiled once per expansion call."""

    def __init__(self, dataset: Dataset, adapter: NotationAdapter, request: ExpandRequest) -> None:
        self._dataset = dataset
        self._adapter = adapter
        self.layers = normalize_filter(request.layers)
        self.element_types = normalize_filter(request.element_types)
        stop = request.stop_conditions
        self.stop_types = normalize_filter(stop.stop_at_type) if stop else None
        self.stop_layers = normalize_filter(stop.stop_at_layer) if stop else None

    def _facets(self, element: Element) -> dict[str, FacetValue]:
        return self._adapter.get_node_facet_values(element, self._dataset)

    def admits(self, element: Element) -> bool:
        if self.layers is None and self.element_types is None:
            return True
        facets = self._facets(element)
        if self.layers is not None and not facet_matches(facets.get(LAYER_FACET), self.layers):
            return False
        return self.element_types is None or facet_matches(
            facets.get(TYPE_FACET), self.element_types
        )

    def stops_at(self, element: Element) -> bool:
        if self.stop_types is None and self.stop_layers is None:
            return False
        facets = self._facets(element)
        if self.stop_types is not None and facet_matches(facets.get(TYPE_FACET), self.stop_types):
            return True
        return self.stop_layers is not None and facet_matches(
            facets.get(LAYER_FACET), self.stop_layers
        )


def expand_from_node(
    dataset: Dataset,
    adapter: NotationAdapter,
    request: ExpandRequest,
    *,
    known_node_ids: Iterable[str] | None = None,
    graph: TraversalGraph | None = None,
) -> TraceExpansionPatch:
    """Expand *request.node_id* up to its effective depth.

    Args:
        dataset: The model to walk.
        adapter: Notation adapter supplying directedness and facets.
        request: Start node, direction, depth and filters.
        known_node_ids: Nodes already in the explorer state. They are not
            reported in ``added_nodes`` but still gain frontier parents.
        graph: A prebuilt traversal graph for *dataset* and *adapter*.

    Returns:
        An empty patch when the start node is not in the dataset.
    """
    root_id = request.node_id
    if dataset.element(root_id) is None:
        logger.debug("Expansion root %s not in dataset %s", root_id, dataset.id)
        return TraceExpansionPatch(root_node_id=root_id)

    traversal = graph or TraversalGraph(dataset, adapter)
    max_hops = effective_depth(request)
    relationship_types = normalize_filter(request.relationship_types)
    node_filter = _NodeFilter(dataset, adapter, request)
    known = set(known_node_ids or ())

    added_nodes: dict[str, TraceNode] = {}
    added_edges: dict[str, TraceEdge] = {}
    frontier: TraceFrontier = {}

    seen_depth: dict[str, int] = {root_id: 0}
    queue: deque[tuple[str, int]] = deque([(root_id, 0)])

    while queue:
        current, hops = queue.popleft()
        if hops >= max_hops:
            continue

        for step in traversal.candidate_steps(current, request.direction):
            if relationship_types is not None and step.relationship_type not in relationship_types:
                continue

            neighbour_id = step.to_id
            neighbour = dataset.element(neighbour_id)
            if neighbour is None or not node_filter.admits(neighbour):
                continue

            if step.reversed:
                source, target = step.to_id, step.from_id
            else:
                source, target = step.from_id, step.to_id
            eid = edge_id(step.relationship_id, source, target)
            if eid not in added_edges:
                added_edges[eid] = TraceEdge(
                    id=eid,
                    from_id=source,
                    to_id=target,
                    relationship_id=step.relationship_id,
                    type=step.relationship_type or None,
                )

            if neighbour_id in (root_id, current):
                continue

            next_hops = hops + 1
            if neighbour_id not in known and neighbour_id not in added_nodes:
                added_nodes[neighbour_id] = TraceNode(id=neighbour_id, depth=next_hops)

            parents = frontier.setdefault(neighbour_id, [])
            if current not in parents:
                parents.append(current)

            if next_hops >= max_hops or node_filter.stops_at(neighbour):
                continue

            previous = seen_depth.get(neighbour_id)
            if previous is None or next_hops < previous:
                seen_depth[neighbour_id] = next_hops
                queue.append((neighbour_id, next_hops))

    logger.debug(
        "Expanded %s (depth=%d, direction=%s): +%d nodes, +%d edges",
        root_id,
        max_hops,
        request.direction,
        len(added_nodes),
        len(added_edges),
    )
    return TraceExpansionPatch(
        root_node_id=root_id,
        added_nodes=list(added_nodes.values()),
        added_edges=list(added_edges.values()),
        frontier_by_node_id=frontier,
    )
