"""ExplorerController — event glue between a rendering layer and the reducer.

A renderer (terminal UI, web view, notebook widget) only reports what the
user did: a node was clicked, an edge was clicked, an expand arrow was
pressed, a pin was toggled. The controller turns those events into
reducer actions, runs expansions synchronously, keeps an undo history,
and tells interested parties about the result.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING

from tracectl.domain.trace import (
    ExpandRequest,
    InitialStateOptions,
    TraceabilityExplorerState,
    TraceExpansionPatch,
)
from tracectl.services.expansion import expand_from_node
from tracectl.services.explorer import (
    CollapseNode,
    ExpandApplied,
    ExpandRequested,
    ExplorerAction,
    LoadSession,
    Reset,
    Seed,
    SelectEdge,
    SelectNode,
    SetFilters,
    TogglePin,
    reduce,
)
from tracectl.services.layout import (
    LayoutResult,
    WrapCache,
    build_layout_input,
    compute_column_layout,
)

if TYPE_CHECKING:
    from tracectl.domain.dataset import Dataset
    from tracectl.domain.types import TraceDirection
    from tracectl.infrastructure.graph.engine import TraversalGraph
    from tracectl.notations.base import NotationAdapter

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

# Selection is not worth an undo step; expansions record their own.
_UNRECORDED_ACTIONS = frozenset(
    {"selectNode", "selectEdge", "setSelection", "expandRequested", "expandApplied"}
)


class ExplorerController:
    """Owns the current explorer state for one dataset.

    Args:
        dataset: The model being explored.
        adapter: Notation adapter for *dataset*.
        state: Starting state; empty when omitted.
        expand_depth: Hops per expansion.
        auto_expand: Expand a node as soon as it is selected.
        graph: Prebuilt traversal index, shared across expansions.
        on_select_element: Called with the element id of a selected node.
        on_select_relationship: Called with the relationship id of a
            selected edge.
        on_change: Called with the new state after every change.
        history_limit: Maximum number of undo steps kept.
    """

    def __init__(
        self,
        dataset: Dataset,
        adapter: NotationAdapter,
        *,
        state: TraceabilityExplorerState | None = None,
        expand_depth: int = 1,
        auto_expand: bool = False,
        graph: TraversalGraph | None = None,
        on_select_element: Callable[[str], None] | None = None,
        on_select_relationship: Callable[[str], None] | None = None,
        on_change: Callable[[TraceabilityExplorerState], None] | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self.dataset = dataset
        self.adapter = adapter
        self.expand_depth = expand_depth
        self.auto_expand = auto_expand
        self.on_select_element = on_select_element
        self.on_select_relationship = on_select_relationship
        self.on_change = on_change
        self._graph = graph
        self._state = state or TraceabilityExplorerState()
        self._history: deque[TraceabilityExplorerState] = deque(maxlen=history_limit)

    @property
    def state(self) -> TraceabilityExplorerState:
        return self._state

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def dispatch(self, action: ExplorerAction) -> TraceabilityExplorerState:
        """Reduce *action* into the current state and notify on change."""
        previous = self._state
        new_state = reduce(previous, action)
        if new_state is previous:
            return previous
        if action.type not in _UNRECORDED_ACTIONS:
            self._history.append(previous)
        self._state = new_state
        if self.on_change is not None:
            self.on_change(new_state)
        return new_state

    def undo(self) -> bool:
        """Restore the state before the last recorded change."""
        if not self._history:
            return False
        self._state = self._history.pop()
        if self.on_change is not None:
            self.on_change(self._state)
        return True

    # -- lifecycle -------------------------------------------------------

    def seed(self, seed_ids: list[str], options: InitialStateOptions | None = None) -> None:
        self.dispatch(Seed(seed_ids=seed_ids, options=options))

    def reset(self) -> None:
        """Start over from the current seeds, keeping the filters."""
        self.dispatch(Reset(seed_ids=list(self._state.seed_ids)))

    def set_filters(self, **filters: object) -> None:
        self.dispatch(SetFilters(filters=filters))

    def load(self, state: TraceabilityExplorerState) -> None:
        """Replace the state with a loaded session and select its first seed."""
        self.dispatch(LoadSession(state=state))
        if state.seed_ids and self.on_select_element is not None:
            self.on_select_element(state.seed_ids[0])

    # -- renderer events -------------------------------------------------

    def on_select_node(self, node_id: str) -> None:
        self.dispatch(SelectNode(node_id=node_id))
        if self.on_select_element is not None:
            self.on_select_element(node_id)
        if self.auto_expand:
            self.expand(node_id)

    def on_select_edge(self, edge_id: str) -> None:
        self.dispatch(SelectEdge(edge_id=edge_id))
        edge = self._state.edges_by_id.get(edge_id)
        if edge is not None and edge.relationship_id and self.on_select_relationship is not None:
            self.on_select_relationship(edge.relationship_id)

    def on_expand_node(self, node_id: str, direction: TraceDirection | str | None = None) -> None:
        self.dispatch(SelectNode(node_id=node_id))
        if self.on_select_element is not None:
            self.on_select_element(node_id)
        self.expand(node_id, direction=direction)

    def on_toggle_pin(self, node_id: str) -> None:
        self.dispatch(TogglePin(node_id=node_id))

    def on_collapse_node(self, node_id: str) -> None:
        self.dispatch(CollapseNode(node_id=node_id))

    # -- expansion -------------------------------------------------------

    def expand(
        self,
        node_id: str,
        *,
        direction: TraceDirection | str | None = None,
        depth: int | None = None,
    ) -> TraceExpansionPatch | None:
        """Expand *node_id* with the current filters.

        Returns the applied patch, or ``None`` when the node is not in the
        dataset or an expansion of it is already in flight.
        """
        if self.dataset.element(node_id) is None:
            logger.debug("Not expanding %s: not in dataset", node_id)
            return None
        if node_id in self._state.pending_by_node_id:
            logger.debug("Not expanding %s: expansion pending", node_id)
            return None

        before = self._state
        filters = before.filters
        request = ExpandRequest(
            node_id=node_id,
            direction=direction or filters.direction,
            depth=self.expand_depth if depth is None else depth,
            relationship_types=filters.relationship_types,
            layers=filters.layers,
            element_types=filters.element_types,
        )
        self.dispatch(ExpandRequested(request=request))
        patch = expand_from_node(
            self.dataset,
            self.adapter,
            request,
            known_node_ids=self._state.nodes_by_id.keys(),
            graph=self._graph,
        )
        self.dispatch(ExpandApplied(request=request, patch=patch))
        self._history.append(before)
        return patch

    def layout(
        self,
        *,
        wrap_labels: bool = True,
        auto_fit_columns: bool = True,
        wrap_cache: WrapCache | None = None,
    ) -> LayoutResult:
        """Column layout of the current visible graph."""
        nodes, edges = build_layout_input(self._state, self.dataset, self.adapter)
        return compute_column_layout(
            nodes,
            edges,
            wrap_labels=wrap_labels,
            auto_fit_columns=auto_fit_columns,
            wrap_cache=wrap_cache,
        )
