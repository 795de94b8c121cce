"""NotationAdapter ABC — per-notation labels, directedness and facets.

One adapter per modelling notation. The explorer core only ever talks
to this contract, so supporting a new notation means implementing five
pure methods. Every adapter exposes the standard facets ``type`` and
``layer``; expansion filters and stop conditions read those two.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tracectl.domain.dataset import Dataset, Element, Relationship

TYPE_FACET = "type"
LAYER_FACET = "layer"

type FacetValue = str | list[str] | None


@dataclass(frozen=True)
class FacetDefinition:
    """A filterable node attribute offered by a notation."""

    id: str
    label: str
    kind: str = "single"  # single | multi


@dataclass(frozen=True)
class AnalysisEdge:
    """A relationship as seen by traversal (possibly reversed)."""

    relationship_id: str
    relationship_type: str
    from_id: str
    to_id: str
    relationship: Relationship | None = None
    reversed: bool = False
    undirected: bool = False


def is_explicitly_undirected(attrs: dict[str, Any] | None) -> bool:
    """True when relationship attrs carry ``isDirected`` set to false.

    Examples:
        >>> is_explicitly_undirected({"isDirected": False})
        True
        >>> is_explicitly_undirected({"isDirected": "false"})
        True
        >>> is_explicitly_undirected({})
        False
    """
    if not attrs or "isDirected" not in attrs:
        return False
    value = attrs["isDirected"]
    if isinstance(value, str):
        return value.strip().lower() == "false"
    return value is False


def is_explicitly_directed(attrs: dict[str, Any] | None) -> bool:
    """True when relationship attrs carry ``isDirected`` set to true."""
    if not attrs or "isDirected" not in attrs:
        return False
    value = attrs["isDirected"]
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def humanize_type(raw: str) -> str:
    """Readable form of a type identifier.

    Examples:
        >>> humanize_type("ApplicationComponent")
        'Application Component'
        >>> humanize_type("bpmn.sequenceFlow")
        'Sequence Flow'
    """
    tail = raw.rsplit(".", 1)[-1].rsplit(":", 1)[-1]
    out: list[str] = []
    for i, ch in enumerate(tail):
        if i and ch.isupper() and not tail[i - 1].isupper():
            out.append(" ")
        out.append(ch)
    text = "".join(out).replace("_", " ").strip()
    return text[:1].upper() + text[1:]


class NotationAdapter(ABC):
    """Abstract notation adapter.

    Implementations must be pure and deterministic: the same element and
    dataset always yield the same label, directedness and facets.
    """

    @property
    @abstractmethod
    def kind(self) -> str:
        """Notation identifier (e.g. 'archimate')."""
        ...

    @abstractmethod
    def get_node_label(self, element: Element, dataset: Dataset) -> str:
        """Display label of an element."""
        ...

    @abstractmethod
    def get_edge_label(self, edge: AnalysisEdge, dataset: Dataset) -> str:
        """Display label of a relationship."""
        ...

    @abstractmethod
    def is_edge_directed(self, edge: AnalysisEdge, dataset: Dataset) -> bool:
        """Whether traversal must respect the relationship's direction."""
        ...

    @abstractmethod
    def get_facet_definitions(self, dataset: Dataset) -> list[FacetDefinition]:
        """Facets this notation offers for filtering."""
        ...

    @abstractmethod
    def get_node_facet_values(self, element: Element, dataset: Dataset) -> dict[str, FacetValue]:
        """Facet values of one element, keyed by facet id."""
        ...


def facet_matches(value: FacetValue, allowed: set[str]) -> bool:
    """Whether a facet value is in *allowed*. Missing or malformed values never match."""
    if isinstance(value, str):
        return bool(value) and value in allowed
    if isinstance(value, list):
        return any(isinstance(v, str) and v in allowed for v in value)
    return False
