"""Tests for Rich and quiet rendering of service results."""

from __future__ import annotations

from tracectl.output.renderers import render_quiet, render_result
from tracectl.services.result import ServiceError, ServiceResult


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=data)


def _render(result: ServiceResult, *, verbose: bool = False) -> str:
    """Rendered text with runs of whitespace collapsed."""
    return " ".join(render_result(result, verbose=verbose).split())


_SHOW = _ok(
    "show",
    session="default",
    seeds=["actor"],
    filters={"direction": "both", "layers": ["Business"]},
    nodes=[
        {"id": "actor", "label": "Customer", "depth": 0, "pinned": True, "expanded": True},
        {"id": "goal", "label": "Grow Sales", "depth": 1, "hidden": True},
    ],
    edges=[{"id": "r6:actor->goal", "from": "actor", "to": "goal", "label": "Association"}],
    node_count=2,
    edge_count=1,
    visible_node_count=1,
)


class TestRenderResult:
    def test_expansion(self) -> None:
        result = _ok(
            "seed",
            session="default",
            seeds=["actor"],
            depth=1,
            added_nodes=["proc", "goal"],
            added_edges=["r1:actor->proc"],
            node_count=3,
            edge_count=1,
            visible_node_count=3,
        )
        out = _render(result)
        assert out.startswith("OK seed")
        assert "added_nodes: 2" in out
        assert "3 nodes (3 visible), 1 edges" in out
        assert "proc" not in out
        assert "proc" in _render(result, verbose=True)

    def test_show_tables(self) -> None:
        out = _render(_SHOW)
        assert "session: default" in out
        assert "layers: Business" in out
        assert "Customer" in out
        assert "pinned" in out
        assert "Association" in out
        assert "r6:actor->goal" not in out
        assert "r6:actor->goal" in _render(_SHOW, verbose=True)

    def test_layout(self) -> None:
        result = _ok(
            "layout",
            session="default",
            nodes=[
                {"id": "a", "label": "A", "lines": ["A"], "x": 24, "y": 24, "w": 190, "h": 34}
            ],
            edges=[{"id": "ab", "pathData": "M 0 0 L 1 1"}],
            width=604,
            height=160,
        )
        out = _render(result)
        assert "190.0" in out
        assert "1 nodes, 1 edges, canvas 604×160" in out
        assert "M 0 0 L 1 1" in _render(result, verbose=True)

    def test_facets(self) -> None:
        result = _ok(
            "facets",
            kind="archimate",
            facets=[
                {
                    "id": "layer",
                    "label": "ArchiMate layer",
                    "kind": "single",
                    "values": {"Business": 2},
                }
            ],
        )
        out = _render(result)
        assert "ArchiMate layer (layer)" in out
        assert "Business" in out

    def test_node_facets(self) -> None:
        result = _ok("facets", node_id="svc", kind="archimate", values={"type": "X", "layer": None})
        out = _render(result)
        assert "node_id: svc" in out
        assert "layer: -" in out

    def test_tooltip(self) -> None:
        out = _render(_ok("tooltip", title="Order Service", lines=["Type: Service"]))
        assert "Order Service" in out
        assert "Type: Service" in out

    def test_session_list(self) -> None:
        result = _ok(
            "session_list",
            kind="archimate",
            model_id="shop",
            count=1,
            items=[{"name": "review", "seed_id": "actor", "expand_depth": 1, "nodes": 3}],
        )
        out = _render(result)
        assert "review" in out
        assert "1 sessions for archimate/shop" in out

    def test_generic_fallback(self) -> None:
        out = _render(_ok("session_delete", name="review", deleted=True))
        assert "name: review" in out
        assert "deleted: True" in out

    def test_error(self) -> None:
        result = ServiceResult(
            ok=False,
            op="expand",
            error=ServiceError(code="NOT_FOUND", message="gone", detail={"node_id": "x"}),
        )
        out = _render(result)
        assert out.startswith("ERROR expand [NOT_FOUND] — gone")
        assert "node_id: x" not in out
        assert "node_id: x" in _render(result, verbose=True)

    def test_telemetry_tree(self) -> None:
        result = _ok("hide", node_id="goal", hidden=True).model_copy(
            update={
                "meta": {
                    "telemetry": {
                        "name": "TraceService.set_hidden",
                        "duration_ms": 1.5,
                        "children": [
                            {"name": "step", "duration_ms": 0.5, "annotations": {"n": 2}}
                        ],
                    }
                }
            }
        )
        out = _render(result, verbose=True)
        assert "TraceService.set_hidden" in out
        assert "step (n=2)" in out


class TestRenderQuiet:
    def test_nodes_listed(self) -> None:
        assert render_quiet(_SHOW) == "actor\ngoal"

    def test_items_by_name(self) -> None:
        result = _ok("session_list", items=[{"name": "a"}, {"name": "b"}])
        assert render_quiet(result) == "a\nb"

    def test_added_nodes(self) -> None:
        assert render_quiet(_ok("expand", added_nodes=["svc"])) == "svc"

    def test_plain_ok(self) -> None:
        assert render_quiet(_ok("pin", pinned=True)) == "OK: pin"

    def test_error(self) -> None:
        result = ServiceResult(
            ok=False, op="seed", error=ServiceError(code="NOT_FOUND", message="no seed")
        )
        assert render_quiet(result) == "ERROR: seed — no seed"
