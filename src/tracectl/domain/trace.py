"""Trace graph models — the accumulated state of an exploration.

Nodes and edges here are lightweight references into a :class:`Dataset`;
labels, positions and styling are derived later. All models are frozen:
state transitions build new objects instead of mutating existing ones.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tracectl.domain.types import TraceDirection


class TraceNode(BaseModel):
    """A discovered node.

    ``depth`` is the distance from the nearest seed at discovery time and
    is never lowered by later expansions.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    depth: int = 0
    pinned: bool = False
    expanded: bool = False
    hidden: bool = False


class TraceEdge(BaseModel):
    """A discovered relationship, oriented source -> target."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    relationship_id: str | None = None
    type: str | None = None
    hidden: bool = False


TraceFrontier = dict[str, list[str]]


class StopConditions(BaseModel):
    """Conditions that end traversal at (but still include) a node."""

    model_config = ConfigDict(frozen=True)

    stop_at_type: list[str] | None = None
    stop_at_layer: list[str] | None = None
    stop_at_depth: int | None = None


class ExpandRequest(BaseModel):
    """One expansion gesture: walk *depth* hops from *node_id*."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    direction: TraceDirection = TraceDirection.BOTH
    depth: int = 1
    relationship_types: list[str] | None = None
    layers: list[str] | None = None
    element_types: list[str] | None = None
    stop_conditions: StopConditions | None = None


class TraceExpansionPatch(BaseModel):
    """Side-effect-free result of one expansion call.

    Depths of ``added_nodes`` are relative to ``root_node_id``.
    """

    model_config = ConfigDict(frozen=True)

    root_node_id: str
    added_nodes: list[TraceNode] = Field(default_factory=list)
    added_edges: list[TraceEdge] = Field(default_factory=list)
    frontier_by_node_id: TraceFrontier = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.added_nodes and not self.added_edges


class TraceFilters(BaseModel):
    """Filters applied to expansions issued from the explorer."""

    model_config = ConfigDict(frozen=True)

    direction: TraceDirection = TraceDirection.BOTH
    relationship_types: list[str] | None = None
    layers: list[str] | None = None
    element_types: list[str] | None = None

    def merged(self, partial: dict[str, Any]) -> TraceFilters:
        """Return a copy with *partial* merged over the current values."""
        return TraceFilters.model_validate({**self.model_dump(), **partial})


class TraceSelection(BaseModel):
    """Currently selected node or edge (at most one of each)."""

    model_config = ConfigDict(frozen=True)

    selected_node_id: str | None = None
    selected_edge_id: str | None = None


class TraceabilityExplorerState(BaseModel):
    """Accumulated exploration graph plus UI bookkeeping."""

    model_config = ConfigDict(frozen=True)

    seed_ids: list[str] = Field(default_factory=list)
    nodes_by_id: dict[str, TraceNode] = Field(default_factory=dict)
    edges_by_id: dict[str, TraceEdge] = Field(default_factory=dict)
    frontier_by_node_id: TraceFrontier = Field(default_factory=dict)
    selection: TraceSelection = Field(default_factory=TraceSelection)
    filters: TraceFilters = Field(default_factory=TraceFilters)
    max_depth_default: int = 3
    pending_by_node_id: frozenset[str] = frozenset()
    last_expand_request: ExpandRequest | None = None

    def visible_nodes(self) -> list[TraceNode]:
        return [n for n in self.nodes_by_id.values() if not n.hidden]

    def visible_edges(self) -> list[TraceEdge]:
        """Edges that are not hidden and whose endpoints are both visible."""
        visible = {n.id for n in self.visible_nodes()}
        return [
            e
            for e in self.edges_by_id.values()
            if not e.hidden and e.from_id in visible and e.to_id in visible
        ]


class InitialStateOptions(BaseModel):
    """Options for :func:`create_initial_state`."""

    model_config = ConfigDict(frozen=True)

    pinned_seeds: bool = True
    expanded_seeds: bool = False
    max_depth_default: int = 3
    filters: dict[str, Any] | None = None
    selection: TraceSelection | None = None


def edge_id(relationship_id: str, from_id: str, to_id: str) -> str:
    """Stable id of a trace edge.

    Examples:
        >>> edge_id("R1", "A", "B")
        'R1:A->B'
    """
    return f"{relationship_id}:{from_id}->{to_id}"


def create_initial_state(
    seed_ids: list[str],
    options: InitialStateOptions | None = None,
) -> TraceabilityExplorerState:
    """Create an explorer state seeded by one or more element ids."""
    opts = options or InitialStateOptions()
    seeds = list(dict.fromkeys(seed_ids))
    nodes = {
        sid: TraceNode(id=sid, depth=0, pinned=opts.pinned_seeds, expanded=opts.expanded_seeds)
        for sid in seeds
    }
    selection = opts.selection or TraceSelection(selected_node_id=seeds[0] if seeds else None)
    return TraceabilityExplorerState(
        seed_ids=seeds,
        nodes_by_id=nodes,
        selection=selection,
        filters=TraceFilters().merged(opts.filters or {}),
        max_depth_default=opts.max_depth_default,
    )


def merge_frontier(a: TraceFrontier, b: TraceFrontier | None) -> TraceFrontier:
    """Union of two frontier maps, keeping parent order and uniqueness."""
    out = {k: list(v) for k, v in a.items()}
    for child, parents in (b or {}).items():
        current = out.setdefault(child, [])
        for parent in parents:
            if parent not in current:
                current.append(parent)
    return out


def _merge_node(existing: TraceNode, added: TraceNode) -> TraceNode:
    # Flags are additive; depth stays as first recorded.
    return existing.model_copy(
        update={
            "pinned": existing.pinned or added.pinned,
            "expanded": existing.expanded or added.expanded,
            "hidden": existing.hidden or added.hidden,
        }
    )


def apply_expansion(
    state: TraceabilityExplorerState,
    patch: TraceExpansionPatch,
) -> TraceabilityExplorerState:
    """Merge *patch* into *state*. Idempotent: re-applying changes nothing."""
    nodes = dict(state.nodes_by_id)
    edges = dict(state.edges_by_id)

    root = nodes.get(patch.root_node_id)
    if root is None:
        root = TraceNode(id=patch.root_node_id, depth=0, expanded=True)
    else:
        root = root.model_copy(update={"expanded": True})
    nodes[root.id] = root

    for added in patch.added_nodes:
        existing = nodes.get(added.id)
        if existing is None:
            nodes[added.id] = added.model_copy(update={"depth": root.depth + added.depth})
        else:
            nodes[added.id] = _merge_node(existing, added)

    for edge in patch.added_edges:
        edges.setdefault(edge.id, edge)

    return state.model_copy(
        update={
            "nodes_by_id": nodes,
            "edges_by_id": edges,
            "frontier_by_node_id": merge_frontier(
                state.frontier_by_node_id, patch.frontier_by_node_id
            ),
        }
    )
