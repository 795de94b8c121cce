"""TraceService — seed, expand, collapse and inspect named explorations.

Each operation loads the named session (or seeds a new one), dispatches
explorer actions through :func:`tracectl.services.explorer.reduce`,
persists the resulting state, and returns a :class:`ServiceResult`.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any

from tracectl.domain.trace import (
    ExpandRequest,
    InitialStateOptions,
    StopConditions,
    TraceabilityExplorerState,
    TraceExpansionPatch,
)
from tracectl.domain.types import TraceDirection
from tracectl.infrastructure.datasets import DatasetError, NoDatasetError
from tracectl.services.base import BaseService
from tracectl.services.expansion import expand_from_node
from tracectl.services.explorer import (
    CollapseNode,
    ExpandApplied,
    ExpandRequested,
    Seed,
    SetFilters,
    SetHidden,
    TogglePin,
    reduce,
)
from tracectl.services.layout import build_layout_input, compute_column_layout
from tracectl.services.result import (
    DATASET_INVALID,
    NO_DATASET,
    NOT_FOUND,
    PENDING,
    SESSION_INVALID,
    SESSION_NOT_FOUND,
    ServiceResult,
)
from tracectl.services.sessions import (
    DEFAULT_SESSION,
    SessionFormatError,
    SessionNotFoundError,
    SessionService,
)
from tracectl.services.telemetry import trace_span, traced
from tracectl.services.tooltips import build_edge_tooltip, build_node_tooltip, label_lookup

if TYPE_CHECKING:
    from tracectl.domain.dataset import Dataset
    from tracectl.domain.session import TraceSession
    from tracectl.infrastructure.workspace import Workspace
    from tracectl.notations.base import NotationAdapter

logger = logging.getLogger(__name__)


class TraceOperationError(Exception):
    """Failure inside a trace operation, converted to a failed ServiceResult."""

    def __init__(self, code: str, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail

    def to_result(self, op: str) -> ServiceResult:
        return ServiceResult.failure(op, self.code, self.message, **self.detail)


def _filter_overrides(
    direction: TraceDirection | str | None,
    relationship_types: list[str] | None,
    layers: list[str] | None,
    element_types: list[str] | None,
) -> dict[str, Any]:
    """Only the filters the caller actually set."""
    overrides: dict[str, Any] = {}
    if direction is not None:
        overrides["direction"] = direction
    if relationship_types is not None:
        overrides["relationship_types"] = relationship_types
    if layers is not None:
        overrides["layers"] = layers
    if element_types is not None:
        overrides["element_types"] = element_types
    return overrides


def _node_summary(
    state: TraceabilityExplorerState, dataset: Dataset, adapter: NotationAdapter
) -> list[dict[str, Any]]:
    label_for = label_lookup(adapter, dataset)
    rows = [
        {
            "id": n.id,
            "label": label_for(n.id),
            "depth": n.depth,
            "pinned": n.pinned,
            "expanded": n.expanded,
            "hidden": n.hidden,
        }
        for n in state.nodes_by_id.values()
    ]
    return sorted(rows, key=lambda r: (r["depth"], str(r["label"]).lower(), r["id"]))


class TraceService(BaseService):
    """Explorer operations over named, persisted sessions."""

    def __init__(self, workspace: Workspace) -> None:
        super().__init__(workspace)
        self._sessions = SessionService(workspace)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _model(self) -> tuple[Dataset, NotationAdapter]:
        try:
            return self._workspace.dataset, self._workspace.adapter
        except DatasetError as exc:
            raise self._dataset_error(exc) from exc

    def _dataset_error(self, exc: DatasetError) -> TraceOperationError:
        code = NO_DATASET if isinstance(exc, NoDatasetError) else DATASET_INVALID
        detail = {"path": str(exc.path)} if exc.path is not None else {}
        return TraceOperationError(code, str(exc), **detail)

    def _load(self, session: str) -> tuple[TraceSession, TraceabilityExplorerState]:
        try:
            return self._sessions.fetch(session)
        except DatasetError as exc:
            raise self._dataset_error(exc) from exc
        except SessionNotFoundError as exc:
            raise TraceOperationError(SESSION_NOT_FOUND, str(exc), session=session) from exc
        except SessionFormatError as exc:
            raise TraceOperationError(SESSION_INVALID, str(exc), session=session) from exc

    @staticmethod
    def _require_node(state: TraceabilityExplorerState, node_id: str, session: str) -> None:
        if node_id not in state.nodes_by_id:
            msg = f"Node {node_id!r} is not part of session {session!r}"
            raise TraceOperationError(NOT_FOUND, msg, node_id=node_id, session=session)

    def _expand_state(
        self,
        state: TraceabilityExplorerState,
        node_id: str,
        *,
        depth: int,
        stop: StopConditions | None,
    ) -> tuple[TraceabilityExplorerState, TraceExpansionPatch]:
        """Request, compute and apply one expansion using the state's filters."""
        if node_id in state.pending_by_node_id:
            msg = f"An expansion of {node_id!r} is already pending"
            raise TraceOperationError(PENDING, msg, node_id=node_id)

        dataset, adapter = self._model()
        filters = state.filters
        request = ExpandRequest(
            node_id=node_id,
            direction=filters.direction,
            depth=depth,
            relationship_types=filters.relationship_types,
            layers=filters.layers,
            element_types=filters.element_types,
            stop_conditions=stop,
        )
        state = reduce(state, ExpandRequested(request=request))
        with trace_span("expand_from_node") as span:
            patch = expand_from_node(
                dataset,
                adapter,
                request,
                known_node_ids=state.nodes_by_id.keys(),
                graph=self._workspace.graph,
            )
            if span is not None:
                span.annotate("node_id", node_id)
                span.annotate("added_nodes", len(patch.added_nodes))
                span.annotate("added_edges", len(patch.added_edges))
        state = reduce(state, ExpandApplied(request=request, patch=patch))
        return state, patch

    @staticmethod
    def _counts(state: TraceabilityExplorerState) -> dict[str, int]:
        visible = state.visible_nodes()
        return {
            "node_count": len(state.nodes_by_id),
            "edge_count": len(state.edges_by_id),
            "visible_node_count": len(visible),
        }

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @traced
    def seed(
        self,
        seed_ids: list[str],
        *,
        session: str = DEFAULT_SESSION,
        depth: int | None = None,
        direction: TraceDirection | str | None = None,
        relationship_types: list[str] | None = None,
        layers: list[str] | None = None,
        element_types: list[str] | None = None,
        stop: StopConditions | None = None,
    ) -> ServiceResult:
        """Start (or restart) *session* from *seed_ids* and expand each seed."""
        op = "seed"
        try:
            dataset, _ = self._model()
            seeds = list(dict.fromkeys(s.strip() for s in seed_ids if s.strip()))
            if not seeds:
                raise TraceOperationError(NOT_FOUND, "At least one seed id is required")
            missing = [s for s in seeds if dataset.element(s) is None]
            if missing:
                msg = f"Unknown element id(s): {', '.join(missing)}"
                raise TraceOperationError(NOT_FOUND, msg, missing=missing)

            cfg = self._workspace.settings.explorer
            filters = {
                "direction": cfg.direction,
                **_filter_overrides(direction, relationship_types, layers, element_types),
            }
            options = InitialStateOptions(
                pinned_seeds=cfg.pinned_seeds,
                max_depth_default=cfg.max_depth_default,
                filters=filters,
            )
            state = reduce(TraceabilityExplorerState(), Seed(seed_ids=seeds, options=options))

            hops = cfg.expand_depth if depth is None else max(0, depth)
            added_nodes: list[str] = []
            added_edges: list[str] = []
            if hops > 0:
                for seed_id in seeds:
                    state, patch = self._expand_state(state, seed_id, depth=hops, stop=stop)
                    added_nodes.extend(n.id for n in patch.added_nodes)
                    added_edges.extend(e.id for e in patch.added_edges)

            self._sessions.store(session, state, expand_depth=hops)
        except TraceOperationError as exc:
            return exc.to_result(op)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "session": session,
                "seeds": seeds,
                "depth": hops,
                "added_nodes": list(dict.fromkeys(added_nodes)),
                "added_edges": list(dict.fromkeys(added_edges)),
                **self._counts(state),
            },
        )

    @traced
    def expand(
        self,
        node_id: str,
        *,
        session: str = DEFAULT_SESSION,
        depth: int | None = None,
        direction: TraceDirection | str | None = None,
        relationship_types: list[str] | None = None,
        layers: list[str] | None = None,
        element_types: list[str] | None = None,
        stop: StopConditions | None = None,
    ) -> ServiceResult:
        """Expand a discovered node of *session*.

        Filter arguments that are given replace the session's filters
        before expanding and stay in effect for later expansions.
        """
        op = "expand"
        try:
            saved, state = self._load(session)
            self._require_node(state, node_id, session)
            overrides = _filter_overrides(direction, relationship_types, layers, element_types)
            if overrides:
                state = reduce(state, SetFilters(filters=overrides))
            hops = saved.expand_depth if depth is None else max(0, depth)
            state, patch = self._expand_state(state, node_id, depth=hops, stop=stop)
            self._sessions.store(session, state, expand_depth=saved.expand_depth)
        except TraceOperationError as exc:
            return exc.to_result(op)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "session": session,
                "node_id": node_id,
                "depth": hops,
                "direction": str(state.filters.direction),
                "added_nodes": [n.id for n in patch.added_nodes],
                "added_edges": [e.id for e in patch.added_edges],
                "frontier": patch.frontier_by_node_id,
                **self._counts(state),
            },
        )

    @traced
    def collapse(self, node_id: str, *, session: str = DEFAULT_SESSION) -> ServiceResult:
        """Collapse a node, dropping descendants reachable only through it."""
        op = "collapse"
        try:
            saved, state = self._load(session)
            self._require_node(state, node_id, session)
            before = set(state.nodes_by_id)
            state = reduce(state, CollapseNode(node_id=node_id))
            removed = sorted(before - set(state.nodes_by_id))
            self._sessions.store(session, state, expand_depth=saved.expand_depth)
        except TraceOperationError as exc:
            return exc.to_result(op)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "session": session,
                "node_id": node_id,
                "removed": removed,
                **self._counts(state),
            },
        )

    @traced
    def toggle_pin(self, node_id: str, *, session: str = DEFAULT_SESSION) -> ServiceResult:
        op = "pin"
        try:
            saved, state = self._load(session)
            self._require_node(state, node_id, session)
            state = reduce(state, TogglePin(node_id=node_id))
            self._sessions.store(session, state, expand_depth=saved.expand_depth)
        except TraceOperationError as exc:
            return exc.to_result(op)

        pinned = state.nodes_by_id[node_id].pinned
        return ServiceResult(
            ok=True, op=op, data={"session": session, "node_id": node_id, "pinned": pinned}
        )

    @traced
    def set_hidden(
        self, node_id: str, *, hidden: bool = True, session: str = DEFAULT_SESSION
    ) -> ServiceResult:
        """Hide (or reveal) a node. Hidden nodes stay in the session."""
        op = "hide"
        try:
            saved, state = self._load(session)
            self._require_node(state, node_id, session)
            state = reduce(state, SetHidden(node_id=node_id, hidden=hidden))
            self._sessions.store(session, state, expand_depth=saved.expand_depth)
        except TraceOperationError as exc:
            return exc.to_result(op)

        return ServiceResult(
            ok=True,
            op=op,
            data={"session": session, "node_id": node_id, "hidden": hidden, **self._counts(state)},
        )

    @traced
    def show(self, *, session: str = DEFAULT_SESSION) -> ServiceResult:
        """Nodes, edges and filters of *session*."""
        op = "show"
        try:
            dataset, adapter = self._model()
            saved, state = self._load(session)
        except TraceOperationError as exc:
            return exc.to_result(op)

        label_for = label_lookup(adapter, dataset)
        edges = [
            {
                "id": e.id,
                "from": e.from_id,
                "to": e.to_id,
                "type": e.type,
                "label": build_edge_tooltip(adapter, dataset, e, label_for).title,
                "hidden": e.hidden,
            }
            for e in sorted(state.edges_by_id.values(), key=lambda e: e.id)
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "session": session,
                "saved_at": saved.saved_at,
                "seeds": state.seed_ids,
                "filters": state.filters.model_dump(mode="json"),
                "selection": state.selection.model_dump(mode="json"),
                "nodes": _node_summary(state, dataset, adapter),
                "edges": edges,
                **self._counts(state),
            },
        )

    @traced
    def layout(
        self,
        *,
        session: str = DEFAULT_SESSION,
        wrap_labels: bool | None = None,
        auto_fit_columns: bool | None = None,
        rich_layout_max_nodes: int | None = None,
    ) -> ServiceResult:
        """Column layout of the visible part of *session*."""
        op = "layout"
        try:
            dataset, adapter = self._model()
            _, state = self._load(session)
        except TraceOperationError as exc:
            return exc.to_result(op)

        cfg = self._workspace.settings.layout
        nodes, edges = build_layout_input(state, dataset, adapter)
        with trace_span("compute_column_layout") as span:
            result = compute_column_layout(
                nodes,
                edges,
                wrap_labels=cfg.wrap_labels if wrap_labels is None else wrap_labels,
                auto_fit_columns=cfg.auto_fit_columns
                if auto_fit_columns is None
                else auto_fit_columns,
                rich_layout_max_nodes=cfg.rich_layout_max_nodes
                if rich_layout_max_nodes is None
                else rich_layout_max_nodes,
                font=cfg.font,
                wrap_cache=self._workspace.wrap_cache,
            )
            if span is not None:
                span.annotate("nodes", len(result.nodes))
                span.annotate("edges", len(result.edges))
        return ServiceResult(ok=True, op=op, data={"session": session, **result.to_dict()})

    @traced
    def facets(self, *, node_id: str | None = None) -> ServiceResult:
        """Facet definitions with value counts, or the facet values of one node."""
        op = "facets"
        try:
            dataset, adapter = self._model()
            if node_id is not None and dataset.element(node_id) is None:
                msg = f"Unknown element id: {node_id}"
                raise TraceOperationError(NOT_FOUND, msg, node_id=node_id)
        except TraceOperationError as exc:
            return exc.to_result(op)

        if node_id is not None:
            element = dataset.elements[node_id]
            values = adapter.get_node_facet_values(element, dataset)
            return ServiceResult(
                ok=True, op=op, data={"node_id": node_id, "kind": adapter.kind, "values": values}
            )

        definitions = adapter.get_facet_definitions(dataset)
        counters: dict[str, Counter[str]] = {d.id: Counter() for d in definitions}
        for element in dataset.elements.values():
            values = adapter.get_node_facet_values(element, dataset)
            for facet_id, counter in counters.items():
                value = values.get(facet_id)
                for v in [value] if isinstance(value, str) else value or []:
                    if isinstance(v, str) and v:
                        counter[v] += 1
        facets = [
            {
                "id": d.id,
                "label": d.label,
                "kind": d.kind,
                "values": dict(sorted(counters[d.id].items())),
            }
            for d in definitions
        ]
        return ServiceResult(ok=True, op=op, data={"kind": adapter.kind, "facets": facets})

    @traced
    def tooltip(
        self,
        *,
        node_id: str | None = None,
        edge_id: str | None = None,
        session: str = DEFAULT_SESSION,
    ) -> ServiceResult:
        """Tooltip for a dataset element, or for an edge of *session*."""
        op = "tooltip"
        try:
            dataset, adapter = self._model()
            if edge_id is not None:
                _, state = self._load(session)
                edge = state.edges_by_id.get(edge_id)
                if edge is None:
                    msg = f"Edge {edge_id!r} is not part of session {session!r}"
                    raise TraceOperationError(NOT_FOUND, msg, edge_id=edge_id)
                tip = build_edge_tooltip(adapter, dataset, edge, label_lookup(adapter, dataset))
            else:
                node_tip = build_node_tooltip(adapter, dataset, node_id or "")
                if node_tip is None:
                    msg = f"Unknown element id: {node_id}"
                    raise TraceOperationError(NOT_FOUND, msg, node_id=node_id)
                tip = node_tip
        except TraceOperationError as exc:
            return exc.to_result(op)

        return ServiceResult(ok=True, op=op, data=tip.to_dict())
