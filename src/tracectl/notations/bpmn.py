"""BPMN adapter.

Element types follow the ``bpmn.<localName>`` convention. The ``layer``
facet is the BPMN category of the element. Associations are undirected
unless ``attrs.associationDirection`` (or ``isDirected``) says otherwise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracectl.notations.base import (
    AnalysisEdge,
    FacetDefinition,
    FacetValue,
    humanize_type,
    is_explicitly_directed,
    is_explicitly_undirected,
)
from tracectl.notations.generic import GenericAdapter

if TYPE_CHECKING:
    from tracectl.domain.dataset import Dataset, Element

_PARTICIPANT_TYPES = frozenset({"pool", "lane", "participant", "collaboration"})
_ARTIFACT_TYPES = frozenset({"textannotation", "group"})
_ACTIVITY_TYPES = frozenset({"subprocess", "callactivity", "transaction", "adhocsubprocess"})


def local_name(raw_type: str) -> str:
    """Type name without its ``bpmn.`` / ``bpmn:`` prefix."""
    return raw_type.strip().rsplit(".", 1)[-1].rsplit(":", 1)[-1]


def bpmn_category(raw_type: str) -> str:
    """BPMN category of an element type.

    Examples:
        >>> bpmn_category("bpmn.userTask")
        'activity'
        >>> bpmn_category("bpmn.exclusiveGateway")
        'gateway'
        >>> bpmn_category("bpmn.pool")
        'participant'
    """
    name = local_name(raw_type).lower()
    if not name:
        return "other"
    if name.endswith("task") or name in _ACTIVITY_TYPES:
        return "activity"
    if name.endswith("event"):
        return "event"
    if name.endswith("gateway"):
        return "gateway"
    if name.startswith("data"):
        return "data"
    if name in _PARTICIPANT_TYPES:
        return "participant"
    if name in _ARTIFACT_TYPES:
        return "artifact"
    return "other"


class BpmnAdapter(GenericAdapter):
    """Adapter for BPMN process models."""

    @property
    def kind(self) -> str:
        return "bpmn"

    def get_node_label(self, element: Element, dataset: Dataset) -> str:
        name = element.name.strip()
        if name:
            return name
        return humanize_type(element.type) if element.type else "(unnamed)"

    def is_edge_directed(self, edge: AnalysisEdge, dataset: Dataset) -> bool:
        rel = edge.relationship or dataset.relationship(edge.relationship_id)
        attrs = rel.attrs if rel is not None else {}
        if is_explicitly_undirected(attrs):
            return False
        if local_name(edge.relationship_type).lower() == "association":
            direction = str(attrs.get("associationDirection", "")).strip().lower()
            return direction == "one" or is_explicitly_directed(attrs)
        return True

    def get_facet_definitions(self, dataset: Dataset) -> list[FacetDefinition]:
        return [
            FacetDefinition(id="type", label="Element type"),
            FacetDefinition(id="layer", label="BPMN category"),
        ]

    def get_node_facet_values(self, element: Element, dataset: Dataset) -> dict[str, FacetValue]:
        return {
            "type": element.type.strip() or None,
            "layer": self.layer_of(element),
        }

    def layer_of(self, element: Element) -> str | None:
        if element.layer and element.layer.strip():
            return element.layer.strip()
        return bpmn_category(element.type)
