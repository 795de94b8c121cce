"""Hover tooltips for explorer nodes and edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tracectl.domain.labels import normalize_label
from tracectl.notations.base import LAYER_FACET, TYPE_FACET, AnalysisEdge, humanize_type

if TYPE_CHECKING:
    from collections.abc import Callable

    from tracectl.domain.dataset import Dataset
    from tracectl.domain.trace import TraceEdge
    from tracectl.notations.base import NotationAdapter

DOC_SNIPPET_LENGTH = 160


@dataclass(frozen=True)
class Tooltip:
    title: str
    lines: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "lines": list(self.lines)}


def doc_snippet(text: str | None, limit: int = DOC_SNIPPET_LENGTH) -> str:
    """First *limit* characters of documentation on a single line.

    Examples:
        >>> doc_snippet("Handles\\n  orders")
        'Handles orders'
        >>> doc_snippet("x" * 5, limit=3)
        'xx…'
    """
    flat = normalize_label(text)
    if len(flat) <= limit:
        return flat
    return flat[: limit - 1].rstrip() + "…"


def build_node_tooltip(
    adapter: NotationAdapter, dataset: Dataset, element_id: str
) -> Tooltip | None:
    """Title plus type, layer and documentation lines; None for unknown ids."""
    element = dataset.element(element_id)
    if element is None:
        return None

    facets = adapter.get_node_facet_values(element, dataset)
    raw_type = facets.get(TYPE_FACET)
    layer = facets.get(LAYER_FACET)

    lines: list[str] = []
    if isinstance(raw_type, str) and raw_type:
        lines.append(f"Type: {humanize_type(raw_type)}")
    if isinstance(layer, str) and layer:
        lines.append(f"Layer: {layer}")
    doc = doc_snippet(element.documentation)
    if doc:
        lines.append(f"Documentation: {doc}")

    title = adapter.get_node_label(element, dataset) or element.name.strip() or "(unnamed)"
    return Tooltip(title=title, lines=lines)


def build_edge_tooltip(
    adapter: NotationAdapter,
    dataset: Dataset,
    edge: TraceEdge,
    label_for_id: Callable[[str], str],
) -> Tooltip:
    """Title from the adapter's edge label plus type, endpoints and documentation."""
    rel = dataset.relationship(edge.relationship_id) if edge.relationship_id else None
    raw_type = (rel.type if rel is not None else edge.type) or ""
    type_label = humanize_type(raw_type) if raw_type else "Relationship"

    if rel is not None:
        analysis_edge = AnalysisEdge(
            relationship_id=rel.id,
            relationship_type=rel.type,
            from_id=edge.from_id,
            to_id=edge.to_id,
            relationship=rel,
        )
        title = adapter.get_edge_label(analysis_edge, dataset) or type_label
    else:
        title = type_label

    lines = [
        f"Type: {type_label}",
        f"From: {label_for_id(edge.from_id)}",
        f"To: {label_for_id(edge.to_id)}",
    ]
    doc = doc_snippet(rel.documentation) if rel is not None else ""
    if doc:
        lines.append(f"Documentation: {doc}")
    return Tooltip(title=title, lines=lines)


def label_lookup(adapter: NotationAdapter, dataset: Dataset) -> Callable[[str], str]:
    """Node label function over *dataset*; ``(missing)`` for unknown ids."""

    def label_for(element_id: str) -> str:
        element = dataset.element(element_id)
        return adapter.get_node_label(element, dataset) if element is not None else "(missing)"

    return label_for
