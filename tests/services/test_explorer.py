"""Tests for the explorer reducer and collapse."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter

from tracectl.domain.dataset import Dataset
from tracectl.domain.trace import (
    ExpandRequest,
    InitialStateOptions,
    TraceabilityExplorerState,
    TraceSelection,
    create_initial_state,
)
from tracectl.domain.types import TraceDirection
from tracectl.notations.generic import GenericAdapter
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
    SetHidden,
    SetSelection,
    ToggleExpanded,
    TogglePin,
    collapse_descendants,
    reduce,
)


def _expand(
    state: TraceabilityExplorerState,
    dataset: Dataset,
    node_id: str,
    *,
    depth: int = 1,
    direction: TraceDirection = TraceDirection.OUTGOING,
) -> TraceabilityExplorerState:
    request = ExpandRequest(node_id=node_id, direction=direction, depth=depth)
    state = reduce(state, ExpandRequested(request=request))
    patch = expand_from_node(
        dataset, GenericAdapter(), request, known_node_ids=state.nodes_by_id.keys()
    )
    return reduce(state, ExpandApplied(request=request, patch=patch))


@pytest.fixture
def explored(chain_dataset: Dataset) -> TraceabilityExplorerState:
    """A seeded and expanded two hops outgoing: B(1), C(1), D(2)."""
    state = reduce(TraceabilityExplorerState(), Seed(seed_ids=["A"]))
    return _expand(state, chain_dataset, "A", depth=2)


class TestSeedAndReset:
    def test_seed(self) -> None:
        state = reduce(TraceabilityExplorerState(), Seed(seed_ids=["A", "B", "A"]))
        assert state.seed_ids == ["A", "B"]
        assert state.nodes_by_id["A"].pinned
        assert state.nodes_by_id["A"].depth == 0
        assert state.selection.selected_node_id == "A"

    def test_seed_options(self) -> None:
        options = InitialStateOptions(
            pinned_seeds=False, expanded_seeds=True, filters={"layers": ["x"]}
        )
        state = reduce(TraceabilityExplorerState(), Seed(seed_ids=["A"], options=options))
        node = state.nodes_by_id["A"]
        assert not node.pinned
        assert node.expanded
        assert state.filters.layers == ["x"]

    def test_reset_keeps_filters_and_max_depth(
        self, explored: TraceabilityExplorerState
    ) -> None:
        state = reduce(explored, SetFilters(filters={"relationship_types": ["flow"]}))
        state = state.model_copy(update={"max_depth_default": 7})
        reset = reduce(state, Reset(seed_ids=["A"]))
        assert list(reset.nodes_by_id) == ["A"]
        assert reset.edges_by_id == {}
        assert reset.filters.relationship_types == ["flow"]
        assert reset.max_depth_default == 7

    def test_reset_options_override(self, explored: TraceabilityExplorerState) -> None:
        options = InitialStateOptions(max_depth_default=1, filters={"direction": "incoming"})
        reset = reduce(explored, Reset(seed_ids=["B"], options=options))
        assert reset.seed_ids == ["B"]
        assert reset.max_depth_default == 1
        assert reset.filters.direction is TraceDirection.INCOMING


class TestSelectionAndFilters:
    def test_select_node_clears_edge(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, SelectEdge(edge_id="e1:A->B"))
        assert state.selection == TraceSelection(selected_edge_id="e1:A->B")
        state = reduce(state, SelectNode(node_id="B"))
        assert state.selection == TraceSelection(selected_node_id="B")

    def test_set_selection(self, explored: TraceabilityExplorerState) -> None:
        selection = TraceSelection(selected_node_id="C", selected_edge_id="e4:A->C")
        assert reduce(explored, SetSelection(selection=selection)).selection == selection

    def test_set_filters_merges(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, SetFilters(filters={"layers": ["x"]}))
        state = reduce(state, SetFilters(filters={"direction": "outgoing"}))
        assert state.filters.layers == ["x"]
        assert state.filters.direction is TraceDirection.OUTGOING


class TestExpansion:
    def test_applied_patch_merges(self, explored: TraceabilityExplorerState) -> None:
        assert {n: v.depth for n, v in explored.nodes_by_id.items()} == {
            "A": 0,
            "B": 1,
            "C": 1,
            "D": 2,
        }
        assert explored.nodes_by_id["A"].expanded
        assert explored.pending_by_node_id == frozenset()
        assert explored.last_expand_request is not None

    def test_depths_offset_by_root(
        self, explored: TraceabilityExplorerState, chain_dataset: Dataset
    ) -> None:
        state = reduce(explored, CollapseNode(node_id="C"))
        state = _expand(state, chain_dataset, "C")
        assert state.nodes_by_id["D"].depth == 2

    def test_requested_marks_pending(self, explored: TraceabilityExplorerState) -> None:
        request = ExpandRequest(node_id="B")
        state = reduce(explored, ExpandRequested(request=request))
        assert state.pending_by_node_id == {"B"}
        assert state.nodes_by_id["B"].expanded
        assert state.last_expand_request == request

    def test_duplicate_request_ignored(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, ExpandRequested(request=ExpandRequest(node_id="B")))
        again = reduce(state, ExpandRequested(request=ExpandRequest(node_id="B", depth=3)))
        assert again is state

    def test_reapplying_patch_is_idempotent(
        self, explored: TraceabilityExplorerState, chain_dataset: Dataset
    ) -> None:
        request = ExpandRequest(node_id="A", direction=TraceDirection.OUTGOING, depth=2)
        patch = expand_from_node(chain_dataset, GenericAdapter(), request)
        again = reduce(explored, ExpandApplied(request=request, patch=patch))
        assert again.nodes_by_id == explored.nodes_by_id
        assert again.edges_by_id == explored.edges_by_id
        assert again.frontier_by_node_id == explored.frontier_by_node_id


class TestNodeFlags:
    def test_toggle_pin(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, TogglePin(node_id="B"))
        assert state.nodes_by_id["B"].pinned
        assert not reduce(state, TogglePin(node_id="B")).nodes_by_id["B"].pinned

    def test_toggle_expanded(self, explored: TraceabilityExplorerState) -> None:
        assert not reduce(explored, ToggleExpanded(node_id="A")).nodes_by_id["A"].expanded

    def test_hidden_node_drops_its_edges_from_view(
        self, explored: TraceabilityExplorerState
    ) -> None:
        state = reduce(explored, SetHidden(node_id="C"))
        assert "C" not in {n.id for n in state.visible_nodes()}
        assert {e.id for e in state.visible_edges()} == {"e1:A->B"}
        assert "C" in state.nodes_by_id

    def test_unknown_node_is_a_no_op(self, explored: TraceabilityExplorerState) -> None:
        assert reduce(explored, TogglePin(node_id="zzz")) is explored
        assert reduce(explored, SetHidden(node_id="zzz")) is explored

    def test_unchanged_flag_is_a_no_op(self, explored: TraceabilityExplorerState) -> None:
        assert reduce(explored, SetHidden(node_id="B", hidden=False)) is explored


class TestCollapse:
    def test_descendants_are_deeper(self, explored: TraceabilityExplorerState) -> None:
        assert collapse_descendants(explored, "A") == {"B", "C", "D"}
        assert collapse_descendants(explored, "B") == set()
        assert collapse_descendants(explored, "C") == {"D"}

    def test_collapse_removes_subtree(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, CollapseNode(node_id="C"))
        assert set(state.nodes_by_id) == {"A", "B", "C"}
        assert "e3:C->D" not in state.edges_by_id
        assert "D" not in state.frontier_by_node_id
        assert not state.nodes_by_id["C"].expanded

    def test_collapse_seed_leaves_only_seed(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, CollapseNode(node_id="A"))
        assert set(state.nodes_by_id) == {"A"}
        assert state.edges_by_id == {}
        assert state.frontier_by_node_id == {}

    def test_pinned_descendant_survives(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, TogglePin(node_id="D"))
        state = reduce(state, CollapseNode(node_id="C"))
        assert "D" in state.nodes_by_id

    def test_pinned_node_keeps_its_own_subtree(
        self, explored: TraceabilityExplorerState
    ) -> None:
        state = reduce(explored, TogglePin(node_id="C"))
        state = reduce(state, CollapseNode(node_id="A"))
        assert set(state.nodes_by_id) == {"A", "C", "D"}
        assert "e3:C->D" in state.edges_by_id

    def test_node_reachable_from_other_seed_survives(self, chain_dataset: Dataset) -> None:
        state = reduce(TraceabilityExplorerState(), Seed(seed_ids=["A", "B"]))
        state = _expand(state, chain_dataset, "A")
        state = _expand(state, chain_dataset, "B")
        collapsed = reduce(state, CollapseNode(node_id="A"))
        assert set(collapsed.nodes_by_id) == {"A", "B", "C"}
        assert not collapsed.nodes_by_id["A"].expanded

    def test_stale_selection_cleared(self, explored: TraceabilityExplorerState) -> None:
        state = reduce(explored, SelectNode(node_id="D"))
        assert reduce(state, CollapseNode(node_id="C")).selection.selected_node_id is None
        state = reduce(explored, SelectEdge(edge_id="e3:C->D"))
        assert reduce(state, CollapseNode(node_id="C")).selection.selected_edge_id is None

    def test_leaf_collapse_only_clears_expanded(
        self, explored: TraceabilityExplorerState
    ) -> None:
        state = reduce(explored, CollapseNode(node_id="B"))
        assert state.nodes_by_id.keys() == explored.nodes_by_id.keys()


class TestActions:
    def test_load_session_replaces_state(self, explored: TraceabilityExplorerState) -> None:
        other = create_initial_state(["Z"])
        assert reduce(explored, LoadSession(state=other)) is other

    def test_actions_validate_from_wire_form(self) -> None:
        adapter: TypeAdapter[ExplorerAction] = TypeAdapter(ExplorerAction)
        action = adapter.validate_python({"type": "togglePin", "node_id": "A"})
        assert isinstance(action, TogglePin)

    def test_unknown_action_rejected(self, explored: TraceabilityExplorerState) -> None:
        with pytest.raises(ValueError, match="Unhandled explorer action"):
            reduce(explored, object())  # type: ignore[arg-type]
