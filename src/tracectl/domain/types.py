"""Traversal directions and built-in notation identifiers."""

from __future__ import annotations

from enum import StrEnum


class TraceDirection(StrEnum):
    """Which side of a node an expansion walks."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"
    BOTH = "both"


class NotationKind(StrEnum):
    """Notations with a built-in adapter."""

    ARCHIMATE = "archimate"
    BPMN = "bpmn"
    UML = "uml"
    GENERIC = "generic"
