"""UML adapter.

``layer`` is the diagram family an element belongs to (structural or
behavioural). UML also offers a ``stereotype`` facet read from
``attrs.stereotype``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracectl.notations.base import (
    AnalysisEdge,
    FacetDefinition,
    FacetValue,
    is_explicitly_directed,
    is_explicitly_undirected,
)
from tracectl.notations.bpmn import local_name
from tracectl.notations.generic import GenericAdapter

if TYPE_CHECKING:
    from tracectl.domain.dataset import Dataset, Element

STEREOTYPE_FACET = "stereotype"

_BEHAVIOURAL_TYPES = frozenset(
    {
        "activity",
        "action",
        "usecase",
        "actor",
        "statemachine",
        "state",
        "interaction",
        "lifeline",
        "message",
        "decisionnode",
        "mergenode",
        "forknode",
        "joinnode",
        "initialnode",
        "finalnode",
        "activityfinalnode",
    }
)


def uml_family(raw_type: str) -> str:
    """Diagram family of a UML element type.

    Examples:
        >>> uml_family("uml.class")
        'structural'
        >>> uml_family("uml.useCase")
        'behavioural'
    """
    return "behavioural" if local_name(raw_type).lower() in _BEHAVIOURAL_TYPES else "structural"


class UmlAdapter(GenericAdapter):
    """Adapter for UML models."""

    @property
    def kind(self) -> str:
        return "uml"

    def get_node_label(self, element: Element, dataset: Dataset) -> str:
        name = element.name.strip() or "(unnamed)"
        stereotype = _stereotype(element)
        return f"«{stereotype}» {name}" if stereotype else name

    def is_edge_directed(self, edge: AnalysisEdge, dataset: Dataset) -> bool:
        rel = edge.relationship or dataset.relationship(edge.relationship_id)
        attrs = rel.attrs if rel is not None else {}
        if is_explicitly_undirected(attrs):
            return False
        if local_name(edge.relationship_type).lower() == "association":
            return is_explicitly_directed(attrs)
        return True

    def get_facet_definitions(self, dataset: Dataset) -> list[FacetDefinition]:
        return [
            FacetDefinition(id="type", label="Element type"),
            FacetDefinition(id="layer", label="Diagram family"),
            FacetDefinition(id=STEREOTYPE_FACET, label="Stereotype"),
        ]

    def get_node_facet_values(self, element: Element, dataset: Dataset) -> dict[str, FacetValue]:
        return {
            "type": element.type.strip() or None,
            "layer": self.layer_of(element),
            STEREOTYPE_FACET: _stereotype(element),
        }

    def layer_of(self, element: Element) -> str | None:
        if element.layer and element.layer.strip():
            return element.layer.strip()
        return uml_family(element.type)


def _stereotype(element: Element) -> str | None:
    value = element.attrs.get("stereotype")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
