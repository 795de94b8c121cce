"""Generic fallback adapter for notations without a dedicated adapter.

Labels are element names; facets are derived best-effort from the raw
type string, so ``"bpmn.task"`` yields layer ``"bpmn"`` when the
element carries no explicit layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracectl.notations.base import (
    LAYER_FACET,
    TYPE_FACET,
    AnalysisEdge,
    FacetDefinition,
    FacetValue,
    NotationAdapter,
    humanize_type,
    is_explicitly_undirected,
)

if TYPE_CHECKING:
    from tracectl.domain.dataset import Dataset, Element


def type_namespace(raw_type: str) -> str | None:
    """Namespace prefix of a type string, if any.

    Examples:
        >>> type_namespace("bpmn.task")
        'bpmn'
        >>> type_namespace("xmi:Class")
        'xmi'
        >>> type_namespace("Task") is None
        True
    """
    for sep in (".", ":"):
        head, found, tail = raw_type.partition(sep)
        if found and head and tail:
            return head
    return None


class GenericAdapter(NotationAdapter):
    """Name-only labels, directedness from ``attrs.isDirected``."""

    @property
    def kind(self) -> str:
        return "generic"

    def get_node_label(self, element: Element, dataset: Dataset) -> str:
        return element.name.strip() or "(unnamed)"

    def get_edge_label(self, edge: AnalysisEdge, dataset: Dataset) -> str:
        rel = edge.relationship or dataset.relationship(edge.relationship_id)
        name = (rel.name or "").strip() if rel else ""
        type_label = humanize_type(edge.relationship_type) if edge.relationship_type else ""
        if name and type_label:
            return f"{type_label} — {name}"
        return name or type_label or "Relationship"

    def is_edge_directed(self, edge: AnalysisEdge, dataset: Dataset) -> bool:
        rel = edge.relationship or dataset.relationship(edge.relationship_id)
        return not (rel is not None and is_explicitly_undirected(rel.attrs))

    def get_facet_definitions(self, dataset: Dataset) -> list[FacetDefinition]:
        return [
            FacetDefinition(id=TYPE_FACET, label="Type"),
            FacetDefinition(id=LAYER_FACET, label="Layer"),
        ]

    def get_node_facet_values(self, element: Element, dataset: Dataset) -> dict[str, FacetValue]:
        raw_type = element.type.strip()
        return {
            TYPE_FACET: raw_type or None,
            LAYER_FACET: self.layer_of(element),
        }

    def layer_of(self, element: Element) -> str | None:
        """Layer facet of *element*; subclasses derive it from the notation."""
        if element.layer and element.layer.strip():
            return element.layer.strip()
        return type_namespace(element.type.strip())
