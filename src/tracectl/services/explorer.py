"""Explorer state machine — a reducer over a closed set of actions.

Every action is a frozen pydantic model tagged by ``type``;
:data:`ExplorerAction` is the discriminated union of all of them, so
serialized actions (e.g. from a UI event log) validate with
``TypeAdapter(ExplorerAction)``. :func:`reduce` never mutates its input:
each call returns a new :class:`TraceabilityExplorerState`, or the same
object when the action changes nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from tracectl.domain.trace import (
    ExpandRequest,
    InitialStateOptions,
    TraceabilityExplorerState,
    TraceExpansionPatch,
    TraceSelection,
    apply_expansion,
    create_initial_state,
)

logger = logging.getLogger(__name__)


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class Seed(_Action):
    """Start over from *seed_ids*."""

    type: Literal["seed"] = "seed"
    seed_ids: list[str]
    options: InitialStateOptions | None = None


class Reset(_Action):
    """Start over from *seed_ids*, keeping the current filters."""

    type: Literal["reset"] = "reset"
    seed_ids: list[str]
    options: InitialStateOptions | None = None


class SetFilters(_Action):
    type: Literal["setFilters"] = "setFilters"
    filters: dict[str, Any]


class SetSelection(_Action):
    type: Literal["setSelection"] = "setSelection"
    selection: TraceSelection


class SelectNode(_Action):
    type: Literal["selectNode"] = "selectNode"
    node_id: str | None


class SelectEdge(_Action):
    type: Literal["selectEdge"] = "selectEdge"
    edge_id: str | None


class ExpandRequested(_Action):
    type: Literal["expandRequested"] = "expandRequested"
    request: ExpandRequest


class ExpandApplied(_Action):
    type: Literal["expandApplied"] = "expandApplied"
    request: ExpandRequest
    patch: TraceExpansionPatch


class TogglePin(_Action):
    type: Literal["togglePin"] = "togglePin"
    node_id: str


class ToggleExpanded(_Action):
    type: Literal["toggleExpanded"] = "toggleExpanded"
    node_id: str


class SetHidden(_Action):
    type: Literal["setHidden"] = "setHidden"
    node_id: str
    hidden: bool = True


class CollapseNode(_Action):
    type: Literal["collapseNode"] = "collapseNode"
    node_id: str


class LoadSession(_Action):
    type: Literal["loadSession"] = "loadSession"
    state: TraceabilityExplorerState


ExplorerAction = Annotated[
    Seed
    | Reset
    | SetFilters
    | SetSelection
    | SelectNode
    | SelectEdge
    | ExpandRequested
    | ExpandApplied
    | TogglePin
    | ToggleExpanded
    | SetHidden
    | CollapseNode
    | LoadSession,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _set_node_flags(
    state: TraceabilityExplorerState, node_id: str, **flags: bool
) -> TraceabilityExplorerState:
    node = state.nodes_by_id.get(node_id)
    if node is None:
        return state
    if all(getattr(node, k) == v for k, v in flags.items()):
        return state
    nodes = {**state.nodes_by_id, node_id: node.model_copy(update=flags)}
    return state.model_copy(update={"nodes_by_id": nodes})


def _seed(state: TraceabilityExplorerState, action: Seed) -> TraceabilityExplorerState:
    return create_initial_state(action.seed_ids, action.options)


def _reset(state: TraceabilityExplorerState, action: Reset) -> TraceabilityExplorerState:
    opts = action.options or InitialStateOptions()
    overrides = opts.filters or {}
    update: dict[str, Any] = {"filters": {**state.filters.model_dump(), **overrides}}
    if "max_depth_default" not in opts.model_fields_set:
        update["max_depth_default"] = state.max_depth_default
    return create_initial_state(action.seed_ids, opts.model_copy(update=update))


def _set_filters(state: TraceabilityExplorerState, action: SetFilters) -> TraceabilityExplorerState:
    return state.model_copy(update={"filters": state.filters.merged(action.filters)})


def _set_selection(
    state: TraceabilityExplorerState, action: SetSelection
) -> TraceabilityExplorerState:
    return state.model_copy(update={"selection": action.selection})


def _select_node(state: TraceabilityExplorerState, action: SelectNode) -> TraceabilityExplorerState:
    selection = TraceSelection(selected_node_id=action.node_id)
    return state.model_copy(update={"selection": selection})


def _select_edge(state: TraceabilityExplorerState, action: SelectEdge) -> TraceabilityExplorerState:
    selection = TraceSelection(selected_edge_id=action.edge_id)
    return state.model_copy(update={"selection": selection})


def _expand_requested(
    state: TraceabilityExplorerState, action: ExpandRequested
) -> TraceabilityExplorerState:
    node_id = action.request.node_id
    if node_id in state.pending_by_node_id:
        logger.debug("Ignoring expansion of %s: a request is already pending", node_id)
        return state
    next_state = _set_node_flags(state, node_id, expanded=True)
    return next_state.model_copy(
        update={
            "pending_by_node_id": state.pending_by_node_id | {node_id},
            "last_expand_request": action.request,
        }
    )


def _expand_applied(
    state: TraceabilityExplorerState, action: ExpandApplied
) -> TraceabilityExplorerState:
    merged = apply_expansion(state, action.patch)
    return merged.model_copy(
        update={
            "pending_by_node_id": state.pending_by_node_id - {action.request.node_id},
            "last_expand_request": action.request,
        }
    )


def _toggle_pin(state: TraceabilityExplorerState, action: TogglePin) -> TraceabilityExplorerState:
    node = state.nodes_by_id.get(action.node_id)
    if node is None:
        return state
    return _set_node_flags(state, action.node_id, pinned=not node.pinned)


def _toggle_expanded(
    state: TraceabilityExplorerState, action: ToggleExpanded
) -> TraceabilityExplorerState:
    node = state.nodes_by_id.get(action.node_id)
    if node is None:
        return state
    return _set_node_flags(state, action.node_id, expanded=not node.expanded)


def _set_hidden(state: TraceabilityExplorerState, action: SetHidden) -> TraceabilityExplorerState:
    return _set_node_flags(state, action.node_id, hidden=action.hidden)


def _collapse_node(
    state: TraceabilityExplorerState, action: CollapseNode
) -> TraceabilityExplorerState:
    return collapse_node(state, action.node_id)


def _load_session(
    state: TraceabilityExplorerState, action: LoadSession
) -> TraceabilityExplorerState:
    return action.state


_HANDLERS: dict[str, Callable[[TraceabilityExplorerState, Any], TraceabilityExplorerState]] = {
    "seed": _seed,
    "reset": _reset,
    "setFilters": _set_filters,
    "setSelection": _set_selection,
    "selectNode": _select_node,
    "selectEdge": _select_edge,
    "expandRequested": _expand_requested,
    "expandApplied": _expand_applied,
    "togglePin": _toggle_pin,
    "toggleExpanded": _toggle_expanded,
    "setHidden": _set_hidden,
    "collapseNode": _collapse_node,
    "loadSession": _load_session,
}


def reduce(state: TraceabilityExplorerState, action: ExplorerAction) -> TraceabilityExplorerState:
    """Apply *action* to *state* and return the resulting state.

    Raises:
        ValueError: *action* is not one of the explorer actions.
    """
    handler = _HANDLERS.get(getattr(action, "type", ""))
    if handler is None:
        msg = f"Unhandled explorer action: {action!r}"
        raise ValueError(msg)
    return handler(state, action)


# ---------------------------------------------------------------------------
# Collapse
# ---------------------------------------------------------------------------


def _children_by_parent(state: TraceabilityExplorerState) -> dict[str, list[str]]:
    children: dict[str, list[str]] = {}
    for child, parents in state.frontier_by_node_id.items():
        for parent in parents:
            children.setdefault(parent, []).append(child)
    return children


def collapse_descendants(state: TraceabilityExplorerState, node_id: str) -> set[str]:
    """Nodes discovered through *node_id* (via frontier links) deeper than it."""
    root = state.nodes_by_id.get(node_id)
    if root is None:
        return set()
    children = _children_by_parent(state)
    found: set[str] = set()
    stack = [node_id]
    while stack:
        current = stack.pop()
        for child in children.get(current, ()):
            node = state.nodes_by_id.get(child)
            if node is None or child == node_id or child in found:
                continue
            if node.depth <= root.depth:
                continue
            found.add(child)
            stack.append(child)
    return found


def collapse_node(state: TraceabilityExplorerState, node_id: str) -> TraceabilityExplorerState:
    """Remove the nodes reachable only through *node_id*.

    A descendant survives when it is pinned, or when a frontier path
    reaches it from a node outside the collapsed subtree (another seed,
    a pinned node, or any other surviving parent) without passing through
    *node_id*. Edges left dangling, frontier bookkeeping, pending flags
    and stale selection go with the removed nodes. *node_id* itself stays
    and is marked not expanded.
    """
    descendants = collapse_descendants(state, node_id)
    if not descendants:
        return _set_node_flags(state, node_id, expanded=False)

    nodes = state.nodes_by_id
    children = _children_by_parent(state)
    anchors = [
        nid
        for nid, node in nodes.items()
        if nid != node_id and (nid not in descendants or node.pinned)
    ]
    survivors: set[str] = set()
    stack = list(anchors)
    while stack:
        current = stack.pop()
        for child in children.get(current, ()):
            if child in descendants and child not in survivors:
                survivors.add(child)
                stack.append(child)
    survivors.update(nid for nid in descendants if nodes[nid].pinned)

    removed = descendants - survivors
    if not removed:
        return _set_node_flags(state, node_id, expanded=False)

    kept_nodes = {nid: n for nid, n in nodes.items() if nid not in removed}
    root = kept_nodes[node_id]
    if root.expanded:
        kept_nodes[node_id] = root.model_copy(update={"expanded": False})

    kept_edges = {
        eid: e
        for eid, e in state.edges_by_id.items()
        if e.from_id not in removed and e.to_id not in removed
    }

    frontier: dict[str, list[str]] = {}
    for child, parents in state.frontier_by_node_id.items():
        if child in removed:
            continue
        remaining = [p for p in parents if p not in removed]
        if remaining:
            frontier[child] = remaining

    selection = state.selection
    if selection.selected_node_id in removed:
        selection = selection.model_copy(update={"selected_node_id": None})
    stale_edge = selection.selected_edge_id
    if stale_edge in state.edges_by_id and stale_edge not in kept_edges:
        selection = selection.model_copy(update={"selected_edge_id": None})

    logger.debug("Collapsed %s: removed %d nodes", node_id, len(removed))
    return state.model_copy(
        update={
            "nodes_by_id": kept_nodes,
            "edges_by_id": kept_edges,
            "frontier_by_node_id": frontier,
            "selection": selection,
            "pending_by_node_id": state.pending_by_node_id - removed,
        }
    )
