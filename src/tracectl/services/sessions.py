"""Session snapshots — serialization helpers and SessionService.

:func:`serialize_state` turns an explorer state into a JSON-safe mapping
and :func:`deserialize_state` is the boundary check on the way back:
anything structurally invalid raises :class:`SessionFormatError` so a
corrupt blob never reaches the explorer reducer. Pending expansion flags
are transient and never persisted.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from tracectl.domain.session import TraceSession
from tracectl.domain.trace import TraceabilityExplorerState
from tracectl.infrastructure.datasets import DatasetError
from tracectl.services._helpers import now_iso
from tracectl.services.base import BaseService
from tracectl.services.result import SESSION_INVALID, SESSION_NOT_FOUND, ServiceResult
from tracectl.services.telemetry import traced

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"
REQUIRED_STATE_KEYS = ("seed_ids", "nodes_by_id")


class SessionFormatError(ValueError):
    """A persisted state snapshot is not a valid explorer state."""


class SessionNotFoundError(LookupError):
    """No session with the requested name exists."""


def serialize_state(state: TraceabilityExplorerState) -> dict[str, Any]:
    """JSON-safe snapshot of *state*, without pending flags."""
    return state.model_dump(mode="json", by_alias=True, exclude={"pending_by_node_id"})


def deserialize_state(data: Any) -> TraceabilityExplorerState:
    """Validate a snapshot produced by :func:`serialize_state`.

    Raises:
        SessionFormatError: *data* is not a mapping, lacks seed_ids or
            nodes_by_id, fails validation, keys nodes or edges under a
            different id, or holds an edge whose endpoint is not a node.
    """
    if not isinstance(data, dict):
        msg = f"Session state must be a mapping, got {type(data).__name__}"
        raise SessionFormatError(msg)
    missing = [key for key in REQUIRED_STATE_KEYS if key not in data]
    if missing:
        msg = f"Session state is missing {', '.join(missing)}"
        raise SessionFormatError(msg)
    try:
        state = TraceabilityExplorerState.model_validate(
            {**data, "pending_by_node_id": frozenset()}
        )
    except ValidationError as exc:
        msg = f"Invalid session state ({exc.error_count()} errors)"
        raise SessionFormatError(msg) from exc

    for key, node in state.nodes_by_id.items():
        if key != node.id:
            msg = f"Node keyed {key!r} has id {node.id!r}"
            raise SessionFormatError(msg)
    for key, edge in state.edges_by_id.items():
        if key != edge.id:
            msg = f"Edge keyed {key!r} has id {edge.id!r}"
            raise SessionFormatError(msg)
        if edge.from_id not in state.nodes_by_id or edge.to_id not in state.nodes_by_id:
            msg = f"Edge {edge.id!r} references a node that is not in the session"
            raise SessionFormatError(msg)
    return state


def build_session(
    name: str,
    state: TraceabilityExplorerState,
    *,
    expand_depth: int,
) -> TraceSession:
    """Snapshot *state* as a named session stamped with the current time."""
    return TraceSession(
        name=name,
        saved_at=now_iso(),
        seed_id=state.seed_ids[0] if state.seed_ids else None,
        expand_depth=expand_depth,
        state=serialize_state(state),
    )


def _entry_count(value: Any) -> int:
    return len(value) if isinstance(value, dict) else 0


def session_summary(session: TraceSession) -> dict[str, Any]:
    """Listing row for one session."""
    state = session.state if isinstance(session.state, dict) else {}
    return {
        "name": session.name,
        "saved_at": session.saved_at,
        "seed_id": session.seed_id,
        "expand_depth": session.expand_depth,
        "nodes": _entry_count(state.get("nodes_by_id")),
        "edges": _entry_count(state.get("edges_by_id")),
    }


class SessionService(BaseService):
    """List, inspect, persist and delete saved exploration sessions."""

    # -- internal API shared with TraceService ------------------------------

    def _scope(self) -> tuple[str, str]:
        return self._workspace.notation, self._workspace.dataset.id

    def fetch(self, name: str) -> tuple[TraceSession, TraceabilityExplorerState]:
        """Load a session and validate its state.

        Raises:
            SessionNotFoundError: No such session.
            SessionFormatError: The stored state is corrupt.
            DatasetError: The dataset (which scopes sessions) cannot be loaded.
        """
        kind, model_id = self._scope()
        session = self._workspace.sessions.get(kind, model_id, name)
        if session is None:
            msg = f"No session named {name!r} for {kind}/{model_id}"
            raise SessionNotFoundError(msg)
        return session, deserialize_state(session.state)

    def store(
        self,
        name: str,
        state: TraceabilityExplorerState,
        *,
        expand_depth: int,
    ) -> TraceSession:
        """Persist *state* under *name*, replacing any previous snapshot."""
        kind, model_id = self._scope()
        session = build_session(name, state, expand_depth=expand_depth)
        self._workspace.sessions.save(kind, model_id, session)
        logger.debug("Saved session %s for %s/%s", name, kind, model_id)
        return session

    # -- public operations ----------------------------------------------------

    @traced
    def list_sessions(self) -> ServiceResult:
        op = "session_list"
        try:
            kind, model_id = self._scope()
        except DatasetError as exc:
            return self._dataset_failure(op, exc)
        items = [session_summary(s) for s in self._workspace.sessions.list(kind, model_id)]
        return ServiceResult(
            ok=True,
            op=op,
            data={"kind": kind, "model_id": model_id, "count": len(items), "items": items},
        )

    @traced
    def load_session(self, name: str) -> ServiceResult:
        op = "session_show"
        try:
            session, state = self.fetch(name)
        except DatasetError as exc:
            return self._dataset_failure(op, exc)
        except SessionNotFoundError as exc:
            return ServiceResult.failure(op, SESSION_NOT_FOUND, str(exc), name=name)
        except SessionFormatError as exc:
            return ServiceResult.failure(op, SESSION_INVALID, str(exc), name=name)
        return ServiceResult(
            ok=True,
            op=op,
            data={**session_summary(session), "state": serialize_state(state)},
        )

    @traced
    def delete_session(self, name: str) -> ServiceResult:
        op = "session_delete"
        try:
            kind, model_id = self._scope()
        except DatasetError as exc:
            return self._dataset_failure(op, exc)
        if not self._workspace.sessions.delete(kind, model_id, name):
            msg = f"No session named {name!r} for {kind}/{model_id}"
            return ServiceResult.failure(op, SESSION_NOT_FOUND, msg, name=name)
        return ServiceResult(ok=True, op=op, data={"name": name, "deleted": True})
