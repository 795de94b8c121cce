"""ArchiMate adapter.

The ``layer`` facet is derived from the element type using the ArchiMate
3.x layer grouping. ``Association`` is the only relationship that may be
undirected: it is unless ``attrs.isDirected`` says otherwise.
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

ARCHIMATE_LAYERS: dict[str, frozenset[str]] = {
    "Strategy": frozenset({"Resource", "Capability", "ValueStream", "CourseOfAction"}),
    "Business": frozenset(
        {
            "BusinessActor",
            "BusinessRole",
            "BusinessCollaboration",
            "BusinessInterface",
            "BusinessProcess",
            "BusinessFunction",
            "BusinessInteraction",
            "BusinessEvent",
            "BusinessService",
            "BusinessObject",
            "Contract",
            "Representation",
            "Product",
        }
    ),
    "Application": frozenset(
        {
            "ApplicationComponent",
            "ApplicationCollaboration",
            "ApplicationInterface",
            "ApplicationFunction",
            "ApplicationInteraction",
            "ApplicationProcess",
            "ApplicationEvent",
            "ApplicationService",
            "DataObject",
        }
    ),
    "Technology": frozenset(
        {
            "Node",
            "Device",
            "SystemSoftware",
            "TechnologyCollaboration",
            "TechnologyInterface",
            "Path",
            "CommunicationNetwork",
            "TechnologyFunction",
            "TechnologyProcess",
            "TechnologyInteraction",
            "TechnologyEvent",
            "TechnologyService",
            "Artifact",
        }
    ),
    "Physical": frozenset({"Equipment", "Facility", "DistributionNetwork", "Material"}),
    "Motivation": frozenset(
        {
            "Stakeholder",
            "Driver",
            "Assessment",
            "Goal",
            "Outcome",
            "Principle",
            "Requirement",
            "Constraint",
            "Meaning",
            "Value",
        }
    ),
    "Implementation & Migration": frozenset(
        {"WorkPackage", "Deliverable", "ImplementationEvent", "Plateau", "Gap"}
    ),
}

_LAYER_BY_TYPE: dict[str, str] = {
    t: layer for layer, types in ARCHIMATE_LAYERS.items() for t in types
}

OTHER_LAYER = "Other"


def archimate_layer(element_type: str) -> str:
    """ArchiMate layer of an element type ("Other" for unknown types).

    Examples:
        >>> archimate_layer("ApplicationComponent")
        'Application'
        >>> archimate_layer("Grouping")
        'Other'
    """
    return _LAYER_BY_TYPE.get(element_type.strip(), OTHER_LAYER)


class ArchimateAdapter(GenericAdapter):
    """Adapter for ArchiMate models."""

    @property
    def kind(self) -> str:
        return "archimate"

    def get_node_label(self, element: Element, dataset: Dataset) -> str:
        name = element.name.strip()
        if name:
            return name
        return f"(unnamed {humanize_type(element.type)})" if element.type else "(unnamed)"

    def is_edge_directed(self, edge: AnalysisEdge, dataset: Dataset) -> bool:
        rel = edge.relationship or dataset.relationship(edge.relationship_id)
        attrs = rel.attrs if rel is not None else {}
        if is_explicitly_undirected(attrs):
            return False
        if edge.relationship_type == "Association":
            return is_explicitly_directed(attrs)
        return True

    def get_facet_definitions(self, dataset: Dataset) -> list[FacetDefinition]:
        return [
            FacetDefinition(id="type", label="Element type"),
            FacetDefinition(id="layer", label="ArchiMate layer"),
        ]

    def get_node_facet_values(self, element: Element, dataset: Dataset) -> dict[str, FacetValue]:
        return {
            "type": element.type.strip() or None,
            "layer": self.layer_of(element),
        }

    def layer_of(self, element: Element) -> str | None:
        if element.layer and element.layer.strip():
            return element.layer.strip()
        return archimate_layer(element.type)
