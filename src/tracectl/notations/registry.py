"""Notation adapter registry keyed by notation identifier.

Unknown notations resolve to the generic fallback so every dataset can
be explored. Built-in notation names are reserved; plugins register
additional ones through :func:`register_adapter`.
"""

from __future__ import annotations

from tracectl.domain.types import NotationKind
from tracectl.notations.archimate import ArchimateAdapter
from tracectl.notations.base import NotationAdapter
from tracectl.notations.bpmn import BpmnAdapter
from tracectl.notations.generic import GenericAdapter
from tracectl.notations.uml import UmlAdapter

_GENERIC = GenericAdapter()


def _builtin_adapter_map() -> dict[str, NotationAdapter]:
    return {
        NotationKind.ARCHIMATE.value: ArchimateAdapter(),
        NotationKind.BPMN.value: BpmnAdapter(),
        NotationKind.UML.value: UmlAdapter(),
        NotationKind.GENERIC.value: _GENERIC,
    }


ADAPTER_REGISTRY: dict[str, NotationAdapter] = _builtin_adapter_map()


def _normalize(kind: str) -> str:
    return kind.strip().lower()


def get_adapter(kind: str | None) -> NotationAdapter:
    """Adapter for *kind*, or the generic fallback when none is registered."""
    if not kind:
        return _GENERIC
    return ADAPTER_REGISTRY.get(_normalize(kind), _GENERIC)


def register_adapter(kind: str, adapter: NotationAdapter) -> None:
    """Register a notation adapter for *kind*.

    Raises:
        ValueError: empty name, a built-in name, or a name already taken
            by a different adapter.
        TypeError: *adapter* does not implement :class:`NotationAdapter`.
    """
    normalized = _normalize(kind)
    if not normalized:
        msg = "Notation kind must not be empty"
        raise ValueError(msg)

    if not isinstance(adapter, NotationAdapter):
        msg = f"Adapter for {normalized!r} must implement NotationAdapter"
        raise TypeError(msg)

    if normalized in _builtin_adapter_map():
        msg = f"Notation {normalized!r} conflicts with a built-in adapter"
        raise ValueError(msg)

    existing = ADAPTER_REGISTRY.get(normalized)
    if existing is not None and existing is not adapter:
        msg = f"Notation {normalized!r} is already registered"
        raise ValueError(msg)

    ADAPTER_REGISTRY[normalized] = adapter


def unregister_adapter(kind: str) -> None:
    """Remove a plugin adapter. Built-in adapters cannot be removed."""
    normalized = _normalize(kind)
    if normalized in _builtin_adapter_map():
        msg = f"Notation {normalized!r} is a built-in adapter"
        raise ValueError(msg)
    ADAPTER_REGISTRY.pop(normalized, None)


def registered_kinds() -> list[str]:
    """Sorted list of notation identifiers with a registered adapter."""
    return sorted(ADAPTER_REGISTRY)
