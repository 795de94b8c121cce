"""Tests for node and edge tooltips."""

from __future__ import annotations

from tracectl.domain.dataset import Dataset
from tracectl.domain.trace import TraceEdge
from tracectl.notations.archimate import ArchimateAdapter
from tracectl.notations.generic import GenericAdapter
from tracectl.services.tooltips import (
    build_edge_tooltip,
    build_node_tooltip,
    doc_snippet,
    label_lookup,
)


class TestDocSnippet:
    def test_flattens_whitespace(self) -> None:
        assert doc_snippet("Handles\n   orders\tquickly") == "Handles orders quickly"

    def test_truncates(self) -> None:
        assert doc_snippet("abcdef", limit=4) == "abc…"

    def test_empty(self) -> None:
        assert doc_snippet(None) == ""


class TestNodeTooltip:
    def test_unknown_element(
        self, archimate_dataset: Dataset, archimate_adapter: ArchimateAdapter
    ) -> None:
        assert build_node_tooltip(archimate_adapter, archimate_dataset, "nope") is None

    def test_without_documentation(
        self, archimate_dataset: Dataset, archimate_adapter: ArchimateAdapter
    ) -> None:
        tip = build_node_tooltip(archimate_adapter, archimate_dataset, "db")
        assert tip is not None
        assert tip.title == "Database Server"
        assert tip.lines == ["Type: Node", "Layer: Technology"]

    def test_generic_namespace_layer(
        self, chain_dataset: Dataset, generic_adapter: GenericAdapter
    ) -> None:
        tip = build_node_tooltip(generic_adapter, chain_dataset, "C")
        assert tip is not None
        assert tip.to_dict() == {"title": "Gamma", "lines": ["Type: Other", "Layer: y"]}


class TestEdgeTooltip:
    def test_named_relationship(self, generic_adapter: GenericAdapter) -> None:
        dataset = Dataset.model_validate(
            {
                "elements": [{"id": "A", "name": "Alpha"}, {"id": "B", "name": "Beta"}],
                "relationships": [
                    {
                        "id": "r1",
                        "type": "bpmn.sequenceFlow",
                        "source": "A",
                        "target": "B",
                        "name": "approved",
                        "documentation": "Only when approved.",
                    }
                ],
            }
        )
        edge = TraceEdge(id="r1:A->B", from_id="A", to_id="B", relationship_id="r1")
        tip = build_edge_tooltip(
            generic_adapter, dataset, edge, label_lookup(generic_adapter, dataset)
        )
        assert tip.title == "Sequence Flow — approved"
        assert tip.lines == [
            "Type: Sequence Flow",
            "From: Alpha",
            "To: Beta",
            "Documentation: Only when approved.",
        ]

    def test_relationship_gone_from_dataset(
        self, chain_dataset: Dataset, generic_adapter: GenericAdapter
    ) -> None:
        edge = TraceEdge(id="x:A->ghost", from_id="A", to_id="ghost", type="flow")
        tip = build_edge_tooltip(
            generic_adapter, chain_dataset, edge, label_lookup(generic_adapter, chain_dataset)
        )
        assert tip.title == "Flow"
        assert tip.lines == ["Type: Flow", "From: Alpha", "To: (missing)"]
