"""Notation adapters — one per modelling notation, plus a generic fallback."""

from tracectl.notations.base import AnalysisEdge, FacetDefinition, NotationAdapter
from tracectl.notations.registry import get_adapter, register_adapter

__all__ = ["AnalysisEdge", "FacetDefinition", "NotationAdapter", "get_adapter", "register_adapter"]
